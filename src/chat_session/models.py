"""
Conversation domain objects.

Pure domain models with no Flask, SQLAlchemy or LangChain dependencies.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Tuple


class Role(str, Enum):
    USER = "user"
    MODEL = "model"


class ConversationState(str, Enum):
    NEW = "new"        # no stored turns yet
    ACTIVE = "active"  # at least one turn pair


@dataclass(frozen=True)
class UserIdentity:
    id: str
    display_name: str


@dataclass(frozen=True)
class Turn:
    """
    Atomic unit of dialogue.

    Stored and served in the oracle's native shape:
    {"role": "user", "parts": [{"text": "..."}]}
    """
    role: Role
    text: str

    @classmethod
    def user(cls, text: str) -> "Turn":
        return cls(role=Role.USER, text=text)

    @classmethod
    def model(cls, text: str) -> "Turn":
        return cls(role=Role.MODEL, text=text)

    def to_wire(self) -> Dict[str, Any]:
        return {"role": self.role.value, "parts": [{"text": self.text}]}


def validate_pairing(turns: Iterable[Turn]) -> None:
    """
    Check that turns alternate user/model and come in complete pairs.

    :raises ValueError: if the sequence breaks the pairing rule
    """
    count = 0
    for index, turn in enumerate(turns):
        expected = Role.USER if index % 2 == 0 else Role.MODEL
        if turn.role != expected:
            raise ValueError(
                f"Turn {index} has role {turn.role.value}, expected {expected.value}"
            )
        count += 1
    if count % 2:
        raise ValueError(f"History has an unpaired turn (length {count})")


@dataclass(frozen=True)
class ConversationHistory:
    """Read-only snapshot of one user's stored turns."""
    owner_id: str
    turns: Tuple[Turn, ...] = field(default_factory=tuple)

    @property
    def is_new(self) -> bool:
        return not self.turns

    @property
    def state(self) -> ConversationState:
        return ConversationState.NEW if self.is_new else ConversationState.ACTIVE

    def to_wire(self) -> List[Dict[str, Any]]:
        return [turn.to_wire() for turn in self.turns]


@dataclass(frozen=True)
class ContextWindow:
    """Oracle input for one request. Never persisted."""
    history: Tuple[Turn, ...]
    effective_message: str
