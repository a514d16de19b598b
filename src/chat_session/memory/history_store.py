"""
History store protocol.

One logical, append-only turn sequence per user. Turns are only ever
added in user/model pairs; nothing here edits or removes a turn.
"""
from abc import ABC, abstractmethod

from ..models import ConversationHistory, Role, Turn


class HistoryStore(ABC):
    """
    Protocol for durable conversation storage.

    Implementations must make append_pair atomic per user: two concurrent
    appends for the same user both survive, never interleaved.
    """

    @abstractmethod
    def load_or_create(self, user_id: str) -> ConversationHistory:
        """
        Return the stored history, or an empty one for unknown users.

        Never persists anything.

        :raises PersistenceError: storage unreachable
        """
        pass

    @abstractmethod
    def append_pair(self, user_id: str, user_turn: Turn, model_turn: Turn) -> int:
        """
        Append a user turn and its model reply to the end of the sequence.

        :return: Total number of stored turns after the append
        :raises PersistenceError: write rejected or storage unreachable
        """
        pass

    @staticmethod
    def check_pair(user_turn: Turn, model_turn: Turn) -> None:
        if user_turn.role != Role.USER or model_turn.role != Role.MODEL:
            raise ValueError(
                "append_pair expects (user, model) turns, got "
                f"({user_turn.role.value}, {model_turn.role.value})"
            )
