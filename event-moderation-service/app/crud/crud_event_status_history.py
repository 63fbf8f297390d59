# app/crud/crud_event_status_history.py
"""
Read side of the event status audit trail. Entries are written only by the
moderation workflow, inside the same transaction as the status change.
"""
from typing import List

from sqlalchemy.orm import Session

from app.models.event_status_history import EventStatusHistory


class CRUDEventStatusHistory:
    def get_for_event(self, db: Session, *, event_id: str) -> List[EventStatusHistory]:
        """Newest first; the integer id breaks ties between equal timestamps."""
        return (
            db.query(EventStatusHistory)
            .filter(EventStatusHistory.event_id == event_id)
            .order_by(
                EventStatusHistory.created_at.desc(),
                EventStatusHistory.id.desc(),
            )
            .all()
        )

    def count_for_event(self, db: Session, *, event_id: str) -> int:
        return (
            db.query(EventStatusHistory)
            .filter(EventStatusHistory.event_id == event_id)
            .count()
        )


event_status_history = CRUDEventStatusHistory()
