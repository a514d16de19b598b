"""
Environment variable helpers.

Typed accessors over os.environ that raise ConfigurationError with
actionable messages and never echo secrets back in full.
"""
import os
import warnings
from typing import List, Optional

from .exceptions import ConfigurationError


def get_required_env(key: str, description: str = None) -> str:
    """
    Get required environment variable with validation.

    :param key: Environment variable name
    :param description: Human-readable description for error messages
    :return: Environment variable value
    :raises: ConfigurationError if not set or a placeholder
    """
    value = os.getenv(key)

    if not value:
        desc = description or key
        raise ConfigurationError(
            f"{key} is required but not set.\n"
            f"Please set it using one of these methods:\n"
            f"  1. Environment variable: export {key}='your-value'\n"
            f"  2. .env file: Create .env in project root with {key}=your-value\n\n"
            f"Description: {desc}"
        )

    if _is_placeholder(value):
        raise ConfigurationError(
            f"{key} appears to be a placeholder value.\n"
            f"Please set a real value. Current value: {_mask_secret(value)}"
        )

    return value


def get_optional_env(key: str, default: Optional[str] = None) -> Optional[str]:
    """
    Get optional environment variable.

    :param key: Environment variable name
    :param default: Default value if not set
    :return: Environment variable value or default
    """
    value = os.getenv(key, default)

    if value and _is_placeholder(value):
        warnings.warn(
            f"{key} appears to be a placeholder. Using default or None.",
            UserWarning
        )
        return default

    return value


def get_int_env(key: str, default: Optional[int] = None) -> Optional[int]:
    """Read an integer environment variable, ``default`` when unset."""
    raw = get_optional_env(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}")


def get_float_env(key: str, default: float) -> float:
    """Read a float environment variable, ``default`` when unset."""
    raw = get_optional_env(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be a number, got {raw!r}")


def get_bool_env(key: str, default: bool = False) -> bool:
    raw = get_optional_env(key)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def get_list_env(key: str, default: Optional[List[str]] = None) -> List[str]:
    """
    Read a comma-separated list.

    Blank entries are dropped; an unset variable returns a copy of ``default``.
    """
    raw = os.getenv(key)
    if raw is None:
        return list(default or [])
    return [item.strip() for item in raw.split(",") if item.strip()]


def _is_placeholder(value: str) -> bool:
    """Check if value is a placeholder."""
    if not value:
        return False

    placeholder_patterns = [
        "your_",
        "your-",
        "placeholder",
        "xxx",
        "changeme",
        "replace",
        "TODO",
    ]

    value_lower = value.lower()
    return any(pattern.lower() in value_lower for pattern in placeholder_patterns)


def _mask_secret(secret: str, show_chars: int = 4) -> str:
    """
    Mask secret for safe display in error messages.

    :param secret: Secret to mask
    :param show_chars: Number of characters to show at start/end
    :return: Masked secret
    """
    if not secret or len(secret) <= show_chars * 2:
        return "***"

    return f"{secret[:show_chars]}...{secret[-show_chars:]}"
