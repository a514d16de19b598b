import logging
from time import time
from typing import Optional

from .context import ContextAssembler
from .exceptions import OracleError, PersistenceError
from .memory import HistoryStore
from .models import ConversationHistory, Turn
from .oracle import CompletionOracle
from .schemas import ChatResponse
from .security import IdentityResolver, InputValidator

logger = logging.getLogger(__name__)


class ChatSessionService:
    """
    Request-level coordinator for chat sessions.
    The ONLY entry point for the HTTP layer into conversation state.

    A reply is returned only after its turn pair has been durably
    appended; a failed oracle call leaves the stored history untouched.
    """

    def __init__(
        self,
        identity_resolver: IdentityResolver,
        history_store: HistoryStore,
        oracle: CompletionOracle,
        context_assembler: Optional[ContextAssembler] = None,
        max_message_length: Optional[int] = None,
    ):
        self._identity_resolver = identity_resolver
        self._history_store = history_store
        self._oracle = oracle
        self._context_assembler = context_assembler or ContextAssembler()
        self._max_message_length = max_message_length

    # ----------------------------
    # Chat
    # ----------------------------
    def handle_chat(self, credential: Optional[str], message: str) -> ChatResponse:
        """
        Run one chat turn for the caller.

        :param credential: Bearer token (may be None)
        :param message: Raw user message
        :return: ChatResponse carrying the model reply
        :raises UnauthenticatedError: missing/invalid credential
        :raises ValidationError: unusable message
        :raises OracleError: completion backend failed; nothing was written
        :raises PersistenceError: history could not be read or the pair not saved
        """
        identity = self._identity_resolver.resolve(credential)
        message = InputValidator.validate_message(message, self._max_message_length)

        start_time = time()
        history = self._load(identity.id)
        window = self._context_assembler.build_context(history, message, identity.display_name)

        oracle_start = time()
        try:
            reply = self._oracle.complete(window.history, window.effective_message)
        except OracleError:
            logger.warning(f"Chat failed at completion backend - User: {identity.id}")
            raise
        except Exception as e:
            logger.error(f"Completion backend raised unexpectedly - User: {identity.id}", exc_info=True)
            raise OracleError(f"Completion backend failed: {e}") from e
        oracle_latency_ms = int((time() - oracle_start) * 1000)

        # Store the raw message, not the introduction-prefixed one.
        turn_count = self._append(identity.id, Turn.user(message), Turn.model(reply.text))

        latency_ms = int((time() - start_time) * 1000)
        logger.info(
            f"Chat turn saved - User: {identity.id}, Turns: {turn_count}, "
            f"Latency: {latency_ms}ms, Oracle: {oracle_latency_ms}ms"
        )

        return ChatResponse(
            text=reply.text,
            turn_count=turn_count,
            latency_ms=latency_ms,
            oracle_latency_ms=oracle_latency_ms,
        )

    # ----------------------------
    # History retrieval
    # ----------------------------
    def get_history(self, credential: Optional[str]) -> ConversationHistory:
        """
        Return the caller's stored history; turns are oldest first.

        Users who have never chatted get an empty history, not an error.
        """
        identity = self._identity_resolver.resolve(credential)
        return self._load(identity.id)

    # ----------------------------
    # Storage wrappers
    # ----------------------------
    def _load(self, user_id: str) -> ConversationHistory:
        try:
            return self._history_store.load_or_create(user_id)
        except PersistenceError:
            raise
        except Exception as e:
            logger.error(f"History store raised unexpectedly - User: {user_id}", exc_info=True)
            raise PersistenceError("Failed to load conversation history") from e

    def _append(self, user_id: str, user_turn: Turn, model_turn: Turn) -> int:
        try:
            return self._history_store.append_pair(user_id, user_turn, model_turn)
        except PersistenceError:
            logger.error(f"Reply withheld, pair not saved - User: {user_id}")
            raise
        except Exception as e:
            logger.error(f"History store raised unexpectedly - User: {user_id}", exc_info=True)
            raise PersistenceError("Failed to save conversation") from e
