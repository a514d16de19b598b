"""
User account storage for signup / login.
"""
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional

from sqlalchemy import insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..db import create_schema, users
from ..exceptions import AccountExistsError, PersistenceError


@dataclass(frozen=True)
class Account:
    id: str
    username: str
    email: str
    password_hash: str


class AccountStore(ABC):

    @abstractmethod
    def add(self, account: Account) -> None:
        """
        :raises AccountExistsError: email already registered
        """
        pass

    @abstractmethod
    def find_by_email(self, email: str) -> Optional[Account]:
        pass


class InMemoryAccountStore(AccountStore):

    def __init__(self):
        self._by_email: Dict[str, Account] = {}
        self._lock = threading.Lock()

    def add(self, account: Account) -> None:
        with self._lock:
            if account.email in self._by_email:
                raise AccountExistsError(f"Email already registered: {account.email}")
            self._by_email[account.email] = account

    def find_by_email(self, email: str) -> Optional[Account]:
        with self._lock:
            return self._by_email.get(email)


class SqlAccountStore(AccountStore):
    """Accounts in the ``users`` table; email uniqueness enforced by the database."""

    def __init__(self, engine: Engine):
        self._engine = engine

    def create_schema(self) -> None:
        try:
            create_schema(self._engine)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to create account schema: {e}") from e

    def add(self, account: Account) -> None:
        try:
            with self._engine.begin() as conn:
                conn.execute(
                    insert(users).values(
                        id=account.id,
                        username=account.username,
                        email=account.email,
                        password_hash=account.password_hash,
                    )
                )
        except IntegrityError as e:
            raise AccountExistsError(f"Email already registered: {account.email}") from e
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to store account") from e

    def find_by_email(self, email: str) -> Optional[Account]:
        query = select(users.c.id, users.c.username, users.c.email, users.c.password_hash).where(
            users.c.email == email
        )
        try:
            with self._engine.begin() as conn:
                row = conn.execute(query).first()
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to look up account") from e
        if row is None:
            return None
        return Account(
            id=row.id,
            username=row.username,
            email=row.email,
            password_hash=row.password_hash,
        )
