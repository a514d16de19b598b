"""
Public application facade for the Chat Session Service.

This is the single stable entry point for the library and the HTTP layer.
All dependency wiring is encapsulated here.
"""
import logging
from typing import Optional

from .accounts import AccountService, AccountStore, InMemoryAccountStore, SqlAccountStore
from .config import ChatSessionConfig
from .db import create_db_engine
from .exceptions import AppNotInitializedError
from .llm_factory import get_llm_instance
from .memory import HistoryStore, InMemoryHistoryStore, SqlHistoryStore
from .models import ConversationHistory, UserIdentity
from .oracle import CompletionOracle, LangChainCompletionOracle
from .schemas import ChatResponse, LoginResult
from .security import SignedTokenIdentityResolver, TokenIssuer
from .service import ChatSessionService

logger = logging.getLogger(__name__)


class ChatSessionApp:
    """
    Composition root for the Chat Session Service.

    Usage:
        config = load_config_from_env()
        app = ChatSessionApp(config)
        app.initialize()
        reply = app.chat(token, "Hello")

    Any collaborator can be injected (tests pass fakes); the rest are
    built from config in initialize().
    """

    def __init__(
        self,
        config: ChatSessionConfig,
        oracle: Optional[CompletionOracle] = None,
        history_store: Optional[HistoryStore] = None,
        account_store: Optional[AccountStore] = None,
    ):
        """
        :param config: ChatSessionConfig instance
        :param oracle: Completion oracle override
        :param history_store: History store override
        :param account_store: Account store override
        """
        self._config = config
        self._oracle = oracle
        self._history_store = history_store
        self._account_store = account_store
        self._engine = None
        self._service: Optional[ChatSessionService] = None
        self._accounts: Optional[AccountService] = None

    @property
    def config(self) -> ChatSessionConfig:
        return self._config

    @property
    def is_initialized(self) -> bool:
        return self._service is not None

    def initialize(self) -> None:
        """
        Build and wire all dependencies. Idempotent.

        - Creates the database engine and schema (sql backend)
        - Builds the token issuer / identity resolver from the shared secret
        - Builds the LLM and wraps it in a timeout-bounded oracle
        - Wires the session service and account service
        """
        if self._service:
            return

        self._config.validate()

        if self._history_store is None or self._account_store is None:
            if self._config.history_backend == "sql":
                self._engine = create_db_engine(self._config.database_url)
                if self._history_store is None:
                    store = SqlHistoryStore(self._engine, max_attempts=self._config.append_retries)
                    store.create_schema()
                    self._history_store = store
                if self._account_store is None:
                    accounts = SqlAccountStore(self._engine)
                    accounts.create_schema()
                    self._account_store = accounts
            else:
                if self._history_store is None:
                    self._history_store = InMemoryHistoryStore()
                if self._account_store is None:
                    self._account_store = InMemoryAccountStore()

        if self._oracle is None:
            if self._config.llm is None:
                self._config.llm = get_llm_instance(
                    provider=self._config.llm_provider,
                    model=self._config.llm_model,
                    timeout=self._config.oracle_timeout_seconds,
                )
            self._oracle = LangChainCompletionOracle(
                self._config.llm, timeout_seconds=self._config.oracle_timeout_seconds
            )

        resolver = SignedTokenIdentityResolver(
            self._config.token_secret, max_age=self._config.token_max_age_seconds
        )
        issuer = TokenIssuer(self._config.token_secret)

        self._service = ChatSessionService(
            identity_resolver=resolver,
            history_store=self._history_store,
            oracle=self._oracle,
            max_message_length=self._config.max_message_length,
        )
        self._accounts = AccountService(self._account_store, issuer)
        logger.info(
            f"Chat session app initialized (backend={self._config.history_backend}, "
            f"provider={self._config.llm_provider}, model={self._config.llm_model})"
        )

    # ----------------------------
    # Core operations
    # ----------------------------
    def chat(self, credential: Optional[str], message: str) -> ChatResponse:
        return self._require_service().handle_chat(credential, message)

    def get_history(self, credential: Optional[str]) -> ConversationHistory:
        return self._require_service().get_history(credential)

    # ----------------------------
    # Identity provider boundary
    # ----------------------------
    def signup(self, username, email, password) -> UserIdentity:
        self._require_service()
        return self._accounts.signup(username, email, password)

    def login(self, email, password) -> LoginResult:
        self._require_service()
        return self._accounts.login(email, password)

    def close(self) -> None:
        """Release the oracle worker pool and database connections."""
        if isinstance(self._oracle, LangChainCompletionOracle):
            self._oracle.close()
        if self._engine is not None:
            self._engine.dispose()

    def _require_service(self) -> ChatSessionService:
        if not self._service:
            raise AppNotInitializedError("App not initialized. Call initialize() first.")
        return self._service
