from dataclasses import dataclass, field
from typing import List, Optional

from .exceptions import ConfigurationError


DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "https://chat-bot-ai-w4c5.vercel.app",
]

HISTORY_BACKENDS = ("sql", "memory")


def is_memory_sqlite_url(database_url: str) -> bool:
    """True for SQLite URLs that open a private in-memory database."""
    url = database_url.lower()
    if not url.startswith("sqlite"):
        return False
    return url.rstrip("/").endswith(":") or ":memory:" in url or "mode=memory" in url


@dataclass
class ChatSessionConfig:
    # Identity
    token_secret: str
    token_max_age_seconds: Optional[int] = None

    # LLM / Oracle
    llm_provider: str = "google"
    llm_model: str = "gemini-1.5-flash"
    oracle_timeout_seconds: float = 30.0

    # Storage
    history_backend: str = "sql"
    database_url: str = "sqlite:///chat_session.db"
    append_retries: int = 5

    # HTTP boundary
    allowed_origins: List[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS))
    trusted_origin_suffix: Optional[str] = ".vercel.app"
    rate_limits: str = "100 per hour;10 per minute"
    chat_rate_limit: str = "20 per minute"
    login_rate_limit: str = "10 per minute"
    enable_rate_limiting: bool = True
    max_message_length: int = 4000
    port: int = 5000

    # Injected at runtime (langchain chat model)
    llm: Optional[object] = None

    def validate(self) -> "ChatSessionConfig":
        """
        Check value ranges that the env loader cannot.

        :return: self, for chaining
        :raises ConfigurationError: on the first invalid value
        """
        if not self.token_secret:
            raise ConfigurationError("token_secret is required.")
        if self.oracle_timeout_seconds <= 0:
            raise ConfigurationError(
                f"oracle_timeout_seconds must be positive, got {self.oracle_timeout_seconds}"
            )
        if self.append_retries < 1:
            raise ConfigurationError(
                f"append_retries must be at least 1, got {self.append_retries}"
            )
        if self.history_backend not in HISTORY_BACKENDS:
            raise ConfigurationError(
                f"Unknown history backend: {self.history_backend}. "
                f"Expected one of {HISTORY_BACKENDS}"
            )
        if self.history_backend == "sql" and is_memory_sqlite_url(self.database_url):
            raise ConfigurationError(
                f"DATABASE_URL {self.database_url!r} is an in-memory SQLite database, "
                "which cannot serve concurrent requests. "
                "Use a file URL or set HISTORY_BACKEND=memory."
            )
        if self.token_max_age_seconds is not None and self.token_max_age_seconds <= 0:
            raise ConfigurationError("token_max_age_seconds must be positive when set.")
        if self.max_message_length < 1:
            raise ConfigurationError("max_message_length must be at least 1.")
        return self
