class ChatSessionError(Exception):
    """Base exception for chat session service."""


class ConfigurationError(ChatSessionError):
    """Raised when required configuration is missing or invalid."""


class AppNotInitializedError(ChatSessionError):
    """Raised when the app is used before initialization."""


class UnauthenticatedError(ChatSessionError):
    """Raised when a credential is missing, malformed or invalid."""


class PersistenceError(ChatSessionError):
    """Raised when conversation storage is unreachable or rejects a write."""


class OracleError(ChatSessionError):
    """Raised when the completion backend fails or times out."""


class AccountError(ChatSessionError):
    """Base exception for signup / login failures."""


class AccountExistsError(AccountError):
    """Raised when signing up with an email that is already registered."""


class UserNotFoundError(AccountError):
    """Raised when logging in with an unknown email."""


class InvalidCredentialsError(AccountError):
    """Raised when the password does not match."""
