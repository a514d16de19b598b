"""
Signup and login.

Stands in front of the core as the identity provider: it mints the
tokens that the identity resolver later verifies, and nothing else in
the service reads accounts.
"""
import logging
import uuid

from werkzeug.security import check_password_hash, generate_password_hash

from ..exceptions import InvalidCredentialsError, UserNotFoundError
from ..models import UserIdentity
from ..schemas import LoginResult
from ..security import InputValidator, TokenIssuer
from .account_store import Account, AccountStore

logger = logging.getLogger(__name__)


class AccountService:

    def __init__(self, store: AccountStore, token_issuer: TokenIssuer):
        self._store = store
        self._token_issuer = token_issuer

    def signup(self, username, email, password) -> UserIdentity:
        """
        Register a new account.

        :raises ValidationError: blank or oversized fields, malformed email
        :raises AccountExistsError: email already registered
        """
        username = InputValidator.validate_length(
            username, InputValidator.MAX_USERNAME_LENGTH, "Username"
        ).strip()
        email = InputValidator.validate_email(email)
        password = InputValidator.validate_length(
            password, InputValidator.MAX_PASSWORD_LENGTH, "Password"
        )

        account = Account(
            id=uuid.uuid4().hex,
            username=username,
            email=email,
            password_hash=generate_password_hash(password),
        )
        self._store.add(account)
        logger.info(f"Created account {account.id}")
        return UserIdentity(id=account.id, display_name=account.username)

    def login(self, email, password) -> LoginResult:
        """
        Verify credentials and issue a bearer token.

        :raises UserNotFoundError: unknown email
        :raises InvalidCredentialsError: wrong password
        """
        if not isinstance(email, str) or not isinstance(password, str):
            raise InvalidCredentialsError("Email and password are required")

        account = self._store.find_by_email(email.strip().lower())
        if account is None:
            raise UserNotFoundError("User not found")
        if not check_password_hash(account.password_hash, password):
            logger.info(f"Rejected login for account {account.id}")
            raise InvalidCredentialsError("Invalid credentials")

        identity = UserIdentity(id=account.id, display_name=account.username)
        return LoginResult(token=self._token_issuer.issue(identity), username=account.username)
