"""
Chat Session Service.

Per-user conversation history in front of a generative model: identity
is bound to an append-only turn log that is replayed as context on
every request.
"""
from .app import ChatSessionApp
from .config import ChatSessionConfig
from .config_loader import load_config_from_env
from .exceptions import (
    ChatSessionError,
    ConfigurationError,
    OracleError,
    PersistenceError,
    UnauthenticatedError,
)
from .models import ConversationHistory, ConversationState, Role, Turn, UserIdentity
from .schemas import ChatResponse

__all__ = [
    "ChatSessionApp",
    "ChatSessionConfig",
    "load_config_from_env",
    "ChatSessionError",
    "ConfigurationError",
    "OracleError",
    "PersistenceError",
    "UnauthenticatedError",
    "ConversationHistory",
    "ConversationState",
    "Role",
    "Turn",
    "UserIdentity",
    "ChatResponse",
]
