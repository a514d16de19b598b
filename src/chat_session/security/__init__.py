"""
Security module: credential verification and request input validation.
"""

from .exceptions import SecurityError, ValidationError
from .input_validator import InputValidator
from .tokens import (
    IdentityResolver,
    SignedTokenIdentityResolver,
    TokenIssuer,
    extract_bearer_token,
)

__all__ = [
    "SecurityError",
    "ValidationError",
    "InputValidator",
    "IdentityResolver",
    "SignedTokenIdentityResolver",
    "TokenIssuer",
    "extract_bearer_token",
]
