"""
Bearer token minting and verification.

Tokens are itsdangerous signed payloads carrying {"id", "username"}.
Verification needs only the shared secret, no storage lookup.
"""
import logging
from abc import ABC, abstractmethod
from typing import Optional

from itsdangerous import BadData, SignatureExpired, URLSafeTimedSerializer

from ..exceptions import UnauthenticatedError
from ..models import UserIdentity

logger = logging.getLogger(__name__)

TOKEN_SALT = "chat-session.auth"
BEARER_SCHEME = "bearer"


def extract_bearer_token(header_value: Optional[str]) -> Optional[str]:
    """
    Pull the token out of an Authorization header.

    :param header_value: Raw header, e.g. "Bearer abc.def"
    :return: The token, or None if absent or not a Bearer credential
    """
    if not header_value:
        return None
    parts = header_value.strip().split(None, 1)
    if len(parts) != 2 or parts[0].lower() != BEARER_SCHEME:
        return None
    token = parts[1].strip()
    return token or None


class IdentityResolver(ABC):
    """Maps a presented credential to a caller identity."""

    @abstractmethod
    def resolve(self, credential: Optional[str]) -> UserIdentity:
        """
        :raises UnauthenticatedError: missing or invalid credential
        """
        pass


class TokenIssuer:
    """Mints tokens that SignedTokenIdentityResolver accepts."""

    def __init__(self, secret: str, salt: str = TOKEN_SALT):
        self._serializer = URLSafeTimedSerializer(secret, salt=salt)

    def issue(self, identity: UserIdentity) -> str:
        return self._serializer.dumps({"id": identity.id, "username": identity.display_name})


class SignedTokenIdentityResolver(IdentityResolver):
    """
    Verifies signed tokens against a process-wide secret.

    :param secret: Shared signing secret (read-only after startup)
    :param max_age: Reject tokens older than this many seconds; None disables expiry
    """

    def __init__(self, secret: str, max_age: Optional[int] = None, salt: str = TOKEN_SALT):
        self._serializer = URLSafeTimedSerializer(secret, salt=salt)
        self._max_age = max_age

    def resolve(self, credential: Optional[str]) -> UserIdentity:
        if not credential:
            raise UnauthenticatedError("Missing credential")

        try:
            payload = self._serializer.loads(credential, max_age=self._max_age)
        except SignatureExpired:
            logger.info("Rejected expired token")
            raise UnauthenticatedError("Credential expired")
        except BadData:
            logger.info("Rejected token with bad signature or payload")
            raise UnauthenticatedError("Invalid credential")

        if not isinstance(payload, dict):
            raise UnauthenticatedError("Invalid credential")

        user_id = payload.get("id")
        username = payload.get("username")
        if not user_id or not isinstance(username, str):
            raise UnauthenticatedError("Invalid credential")

        return UserIdentity(id=str(user_id), display_name=username)
