"""
Shared fixtures: fake completion oracle, stores and token helpers.
"""
import threading
from typing import List, Optional, Sequence, Tuple

import pytest

from chat_session.config import ChatSessionConfig
from chat_session.memory import InMemoryHistoryStore
from chat_session.models import Turn, UserIdentity
from chat_session.oracle import CompletionOracle
from chat_session.security import SignedTokenIdentityResolver, TokenIssuer

TEST_SECRET = "test-signing-secret"


class FakeOracle(CompletionOracle):
    """Records every call and echoes the effective message back."""

    def __init__(self, error: Optional[Exception] = None, barrier: Optional[threading.Barrier] = None):
        self.calls: List[Tuple[Tuple[Turn, ...], str]] = []
        self.error = error
        self.barrier = barrier

    def complete(self, history: Sequence[Turn], message: str) -> Turn:
        self.calls.append((tuple(history), message))
        if self.barrier is not None:
            self.barrier.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return Turn.model(f"echo: {message}")


@pytest.fixture
def fake_oracle():
    return FakeOracle()


@pytest.fixture
def memory_store():
    return InMemoryHistoryStore()


@pytest.fixture
def issuer():
    return TokenIssuer(TEST_SECRET)


@pytest.fixture
def resolver():
    return SignedTokenIdentityResolver(TEST_SECRET)


@pytest.fixture
def ada():
    return UserIdentity(id="user-ada", display_name="Ada")


@pytest.fixture
def ada_token(issuer, ada):
    return issuer.issue(ada)


@pytest.fixture
def memory_config():
    """Config for the in-memory backend with rate limiting off."""
    return ChatSessionConfig(
        token_secret=TEST_SECRET,
        history_backend="memory",
        enable_rate_limiting=False,
    )
