"""
Configuration loader with validation.

Builds ChatSessionConfig from environment variables (and a local .env file).
"""
from dotenv import load_dotenv

from .config import ChatSessionConfig, DEFAULT_ALLOWED_ORIGINS
from .config_validator import (
    get_bool_env,
    get_float_env,
    get_int_env,
    get_list_env,
    get_optional_env,
    get_required_env,
)


def load_config_from_env(use_dotenv: bool = True) -> ChatSessionConfig:
    """
    Load configuration from environment variables with validation.

    Usage:
        config = load_config_from_env()
        app = ChatSessionApp(config)
        app.initialize()

    :param use_dotenv: Load a .env file first (local development)
    :return: Validated ChatSessionConfig instance
    :raises: ConfigurationError if required configs are missing or invalid
    """
    if use_dotenv:
        load_dotenv()

    config = ChatSessionConfig(
        token_secret=get_required_env(
            "JWT_SECRET",
            description="Secret used to sign and verify bearer tokens"
        ),
        token_max_age_seconds=get_int_env("TOKEN_MAX_AGE_SECONDS"),
        llm_provider=get_optional_env("LLM_PROVIDER", default="google").lower(),
        llm_model=get_optional_env("LLM_MODEL", default="gemini-1.5-flash"),
        oracle_timeout_seconds=get_float_env("ORACLE_TIMEOUT_SECONDS", 30.0),
        history_backend=get_optional_env("HISTORY_BACKEND", default="sql").lower(),
        database_url=get_optional_env("DATABASE_URL", default="sqlite:///chat_session.db"),
        append_retries=get_int_env("APPEND_RETRIES", 5),
        allowed_origins=get_list_env("ALLOWED_ORIGINS", DEFAULT_ALLOWED_ORIGINS),
        trusted_origin_suffix=get_optional_env("TRUSTED_ORIGIN_SUFFIX", default=".vercel.app") or None,
        rate_limits=get_optional_env("RATE_LIMITS", default="100 per hour;10 per minute"),
        chat_rate_limit=get_optional_env("CHAT_RATE_LIMIT", default="20 per minute"),
        login_rate_limit=get_optional_env("LOGIN_RATE_LIMIT", default="10 per minute"),
        enable_rate_limiting=get_bool_env("ENABLE_RATE_LIMITING", True),
        max_message_length=get_int_env("MAX_MESSAGE_LENGTH", 4000),
        port=get_int_env("PORT", 5000),
    )

    return config.validate()
