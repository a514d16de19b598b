"""
SQLAlchemy-backed history store.

Each turn is its own row keyed by (user_id, position). append_pair inserts
both rows in a single transaction at max(position) + 1 and + 2; a writer
that loses the race hits the unique constraint, rolls back and retries.
"""
import logging

from sqlalchemy import func, insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..db import conversation_turns, create_schema
from ..exceptions import PersistenceError
from ..models import ConversationHistory, Role, Turn
from .history_store import HistoryStore

logger = logging.getLogger(__name__)


class SqlHistoryStore(HistoryStore):
    """
    History store over any SQLAlchemy engine.

    :param engine: SQLAlchemy engine
    :param max_attempts: Append attempts before giving up on position conflicts
    """

    def __init__(self, engine: Engine, max_attempts: int = 5):
        self._engine = engine
        self._max_attempts = max(1, max_attempts)

    def create_schema(self) -> None:
        try:
            create_schema(self._engine)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to create conversation schema: {e}") from e

    def load_or_create(self, user_id: str) -> ConversationHistory:
        query = (
            select(conversation_turns.c.role, conversation_turns.c.text)
            .where(conversation_turns.c.user_id == user_id)
            .order_by(conversation_turns.c.position)
        )
        try:
            with self._engine.begin() as conn:
                rows = conn.execute(query).all()
        except SQLAlchemyError as e:
            logger.error(f"History load failed for user {user_id}: {e}")
            raise PersistenceError("Failed to load conversation history") from e

        try:
            turns = tuple(Turn(role=Role(row.role), text=row.text) for row in rows)
        except ValueError as e:
            raise PersistenceError(f"Stored history for user {user_id} is corrupt: {e}") from e

        return ConversationHistory(owner_id=user_id, turns=turns)

    def append_pair(self, user_id: str, user_turn: Turn, model_turn: Turn) -> int:
        self.check_pair(user_turn, model_turn)
        last_position = select(
            func.coalesce(func.max(conversation_turns.c.position), -1)
        ).where(conversation_turns.c.user_id == user_id)

        for attempt in range(1, self._max_attempts + 1):
            try:
                with self._engine.begin() as conn:
                    start = conn.execute(last_position).scalar_one() + 1
                    conn.execute(
                        insert(conversation_turns),
                        [
                            {"user_id": user_id, "position": start,
                             "role": user_turn.role.value, "text": user_turn.text},
                            {"user_id": user_id, "position": start + 1,
                             "role": model_turn.role.value, "text": model_turn.text},
                        ],
                    )
                return start + 2
            except IntegrityError:
                logger.warning(
                    f"Position conflict appending for user {user_id} "
                    f"(attempt {attempt}/{self._max_attempts})"
                )
            except SQLAlchemyError as e:
                logger.error(f"History append failed for user {user_id}: {e}")
                raise PersistenceError("Failed to save conversation") from e

        raise PersistenceError(
            f"Failed to save conversation after {self._max_attempts} conflicting attempts"
        )
