"""
Process-local history store.

Thread-safe; both turns of a pair are appended under one lock.
"""
import threading
from typing import Dict, List

from ..models import ConversationHistory, Turn
from .history_store import HistoryStore


class InMemoryHistoryStore(HistoryStore):
    """History store backed by a dict of per-user turn lists."""

    def __init__(self):
        self._histories: Dict[str, List[Turn]] = {}
        self._lock = threading.Lock()

    def load_or_create(self, user_id: str) -> ConversationHistory:
        with self._lock:
            turns = tuple(self._histories.get(user_id, ()))
        return ConversationHistory(owner_id=user_id, turns=turns)

    def append_pair(self, user_id: str, user_turn: Turn, model_turn: Turn) -> int:
        self.check_pair(user_turn, model_turn)
        with self._lock:
            turns = self._histories.setdefault(user_id, [])
            turns.extend((user_turn, model_turn))
            return len(turns)
