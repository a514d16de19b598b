from .account_service import AccountService
from .account_store import Account, AccountStore, InMemoryAccountStore, SqlAccountStore

__all__ = [
    "Account",
    "AccountService",
    "AccountStore",
    "InMemoryAccountStore",
    "SqlAccountStore",
]
