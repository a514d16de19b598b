"""
SQLAlchemy schema and engine setup shared by the SQL-backed stores.
"""
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine

from .config import is_memory_sqlite_url
from .exceptions import ConfigurationError

metadata = MetaData()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# One row per turn; (user_id, position) is the logical per-user sequence.
conversation_turns = Table(
    "conversation_turns",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", String(64), nullable=False, index=True),
    Column("position", Integer, nullable=False),
    Column("role", String(16), nullable=False),
    Column("text", Text, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, default=_utcnow),
    UniqueConstraint("user_id", "position", name="uq_conversation_turns_user_position"),
)

users = Table(
    "users",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("username", String(64), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", String(255), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, default=_utcnow),
)


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Build an engine for ``database_url``.

    SQLite connections open every transaction with BEGIN IMMEDIATE so that
    concurrent writers queue on the database lock instead of failing when a
    read lock cannot be upgraded.
    In-memory SQLite is refused: one shared connection cannot hold
    overlapping transactions.
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo, pool_pre_ping=True)

    if is_memory_sqlite_url(database_url):
        raise ConfigurationError(
            f"In-memory SQLite ({database_url}) is not supported for shared storage; "
            "use a file URL or HISTORY_BACKEND=memory."
        )

    engine = create_engine(
        database_url,
        echo=echo,
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def create_schema(engine: Engine) -> None:
    """Create all tables if they do not exist."""
    metadata.create_all(engine)
