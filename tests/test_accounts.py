"""
Tests for signup / login (identity provider boundary).
"""
import pytest

from chat_session.accounts import AccountService, InMemoryAccountStore, SqlAccountStore
from chat_session.db import create_db_engine
from chat_session.exceptions import (
    AccountExistsError,
    InvalidCredentialsError,
    UserNotFoundError,
)
from chat_session.security import ValidationError


@pytest.fixture(params=["memory", "sql"])
def account_store(request, tmp_path):
    if request.param == "memory":
        yield InMemoryAccountStore()
        return
    engine = create_db_engine(f"sqlite:///{tmp_path / 'accounts.db'}")
    store = SqlAccountStore(engine)
    store.create_schema()
    yield store
    engine.dispose()


@pytest.fixture
def accounts(account_store, issuer):
    return AccountService(account_store, issuer)


class TestAccountService:

    def test_signup_then_login_issues_resolvable_token(self, accounts, resolver):
        identity = accounts.signup("Ada", "ada@example.com", "s3cret!")
        result = accounts.login("ada@example.com", "s3cret!")

        assert result.username == "Ada"
        assert resolver.resolve(result.token) == identity

    def test_password_is_not_stored_in_clear(self, accounts, account_store):
        accounts.signup("Ada", "ada@example.com", "s3cret!")
        stored = account_store.find_by_email("ada@example.com")
        assert stored.password_hash != "s3cret!"

    def test_email_is_case_insensitive(self, accounts):
        accounts.signup("Ada", "Ada@Example.com", "s3cret!")
        assert accounts.login("ADA@example.com", "s3cret!").username == "Ada"

    def test_duplicate_email(self, accounts):
        accounts.signup("Ada", "ada@example.com", "s3cret!")
        with pytest.raises(AccountExistsError):
            accounts.signup("Other Ada", "ada@example.com", "different")

    def test_unknown_user(self, accounts):
        with pytest.raises(UserNotFoundError):
            accounts.login("nobody@example.com", "whatever")

    def test_wrong_password(self, accounts):
        accounts.signup("Ada", "ada@example.com", "s3cret!")
        with pytest.raises(InvalidCredentialsError):
            accounts.login("ada@example.com", "wrong")

    def test_signup_validation(self, accounts):
        with pytest.raises(ValidationError):
            accounts.signup("", "ada@example.com", "pw")
        with pytest.raises(ValidationError):
            accounts.signup("Ada", "not-an-email", "pw")
        with pytest.raises(ValidationError):
            accounts.signup("Ada", "ada@example.com", None)
