"""
Conversation history storage.

Protocol-based: the service depends on HistoryStore only, so the
in-memory and SQL stores are interchangeable.
"""
from .history_store import HistoryStore
from .in_memory_store import InMemoryHistoryStore
from .sql_store import SqlHistoryStore

__all__ = [
    "HistoryStore",
    "InMemoryHistoryStore",
    "SqlHistoryStore",
]
