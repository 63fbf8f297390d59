# app/services/moderation/store.py
"""
Storage capability used by the moderation workflow.

The workflow never touches a session or connection pool directly: it is handed
an EventStore and runs each transition inside one `store.transaction()`. The
SQLAlchemy implementation below is what the API wires in; tests substitute an
in-memory store implementing the same interface.
"""
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.crud import crud_event_status_history
from app.models.event import Event
from app.models.event_status_history import EventStatusHistory
from app.services.moderation.exceptions import ModerationError, PersistenceFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionGuard:
    """The state an event must still be in for a conditional update to apply."""

    status: str
    moderation_status: str
    is_published: bool

    @classmethod
    def from_event(cls, event: Any) -> "TransitionGuard":
        return cls(
            status=event.status,
            moderation_status=event.moderation_status,
            is_published=bool(event.is_published),
        )


@dataclass(frozen=True)
class StatusHistoryRecord:
    """Values for one new status history row."""

    event_id: str
    previous_status: Optional[str]
    new_status: str
    previous_moderation_status: Optional[str]
    new_moderation_status: str
    previous_is_published: Optional[bool]
    new_is_published: Optional[bool]
    change_reason: Optional[str]
    admin_notes: Optional[str]
    changed_by: str
    created_at: datetime


class EventStoreTransaction(ABC):
    """Operations available while a store transaction is open."""

    @abstractmethod
    def get_event(
        self, event_id: str, *, owner_id: Optional[str] = None, for_update: bool = False
    ) -> Optional[Any]:
        """Returns the event, or None if it is missing or not owned by owner_id."""

    @abstractmethod
    def update_event(
        self,
        event: Any,
        *,
        expected: Optional[TransitionGuard],
        changes: Dict[str, Any],
    ) -> bool:
        """
        Applies `changes` only if the stored row still matches `expected`
        (unconditionally when `expected` is None). Returns False when the
        row moved on; on success `event` reflects the new values.
        """

    @abstractmethod
    def add_history(self, record: StatusHistoryRecord) -> Any:
        """Appends one status history entry."""

    @abstractmethod
    def list_history(self, event_id: str) -> List[Any]:
        """History entries for the event, newest first."""


class EventStore(ABC):
    @abstractmethod
    def transaction(self) -> Iterator[EventStoreTransaction]:
        """
        Context manager: commits when the block exits normally, rolls back
        on any exception. Storage faults surface as PersistenceFailure.
        """


class _SqlAlchemyTransaction(EventStoreTransaction):
    def __init__(self, db: Session):
        self.db = db

    def get_event(
        self, event_id: str, *, owner_id: Optional[str] = None, for_update: bool = False
    ) -> Optional[Event]:
        query = self.db.query(Event).filter(Event.id == event_id)
        if owner_id is not None:
            query = query.filter(Event.owner_id == owner_id)
        if for_update:
            # Row lock on the event; populate_existing discards any copy the
            # request already loaded into the identity map.
            query = query.with_for_update().populate_existing()
        return query.first()

    def update_event(
        self,
        event: Event,
        *,
        expected: Optional[TransitionGuard],
        changes: Dict[str, Any],
    ) -> bool:
        query = self.db.query(Event).filter(Event.id == event.id)
        if expected is not None:
            query = query.filter(
                Event.status == expected.status,
                Event.moderation_status == expected.moderation_status,
                Event.is_published == expected.is_published,
            )
        affected = query.update(changes, synchronize_session=False)
        if affected != 1:
            return False
        self.db.refresh(event)
        return True

    def add_history(self, record: StatusHistoryRecord) -> EventStatusHistory:
        entry = EventStatusHistory(**asdict(record))
        self.db.add(entry)
        self.db.flush()
        return entry

    def list_history(self, event_id: str) -> List[EventStatusHistory]:
        return crud_event_status_history.event_status_history.get_for_event(
            self.db, event_id=event_id
        )


class SqlAlchemyEventStore(EventStore):
    """EventStore over a request-scoped SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def transaction(self) -> Iterator[EventStoreTransaction]:
        try:
            yield _SqlAlchemyTransaction(self.db)
            self.db.commit()
        except ModerationError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Event status transaction rolled back: {e}", exc_info=True)
            raise PersistenceFailure("Failed to update event status") from e
        except Exception:
            self.db.rollback()
            raise
