"""
Completion oracle: the boundary to the generative model.

Given the prior turns and a new user message, returns exactly one model
turn or raises OracleError. Every call is bounded by a timeout.
"""
import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Any, Sequence

from langchain_core.messages import HumanMessage

from .context import to_langchain_messages
from .exceptions import OracleError
from .models import Turn

logger = logging.getLogger(__name__)


class CompletionOracle(ABC):
    """Protocol for the turn-completion backend."""

    @abstractmethod
    def complete(self, history: Sequence[Turn], message: str) -> Turn:
        """
        :param history: Prior turns, oldest first
        :param message: Effective user message for this request
        :return: A single model turn
        :raises OracleError: backend failure, timeout or unusable response
        """
        pass


def _content_to_text(content: Any) -> str:
    """Flatten a chat model's message content (str or list of parts)."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        pieces = []
        for part in content:
            if isinstance(part, str):
                pieces.append(part)
            elif isinstance(part, dict) and isinstance(part.get("text"), str):
                pieces.append(part["text"])
        return "".join(pieces)
    return ""


class LangChainCompletionOracle(CompletionOracle):
    """
    Oracle over any LangChain chat model (``llm.invoke(messages)``).

    The model call runs on a worker thread and is abandoned after
    ``timeout_seconds``. A call that times out keeps its worker busy until
    the underlying client returns, so models should also be built with a
    client-side timeout (see llm_factory).
    """

    def __init__(self, llm: Any, timeout_seconds: float = 30.0, max_workers: int = 8):
        if llm is None:
            raise ValueError("llm is required")
        self._llm = llm
        self._timeout = timeout_seconds
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="oracle"
        )

    def complete(self, history: Sequence[Turn], message: str) -> Turn:
        messages = to_langchain_messages(history)
        messages.append(HumanMessage(content=message))

        future = self._executor.submit(self._llm.invoke, messages)
        try:
            result = future.result(timeout=self._timeout)
        except FuturesTimeoutError:
            future.cancel()
            logger.error(f"Completion backend timed out after {self._timeout}s")
            raise OracleError(f"Completion backend timed out after {self._timeout}s")
        except Exception as e:
            logger.error(f"Completion backend failed: {type(e).__name__}: {e}")
            raise OracleError(f"Completion backend failed: {e}") from e

        text = _content_to_text(getattr(result, "content", None)).strip()
        if not text:
            raise OracleError("Completion backend returned an empty response")

        return Turn.model(text)

    def close(self) -> None:
        self._executor.shutdown(wait=False)
