# app/models/event_status_history.py
"""
Append-only audit trail of event status transitions.
One row per successful transition; rows are never updated or deleted.
"""
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.sql import func

from app.db.base_class import Base


class EventStatusHistory(Base):
    __tablename__ = "event_status_history"

    # Integer key doubles as the insertion sequence used to break
    # created_at ties.
    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(
        String, ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )

    previous_status = Column(String(32), nullable=True)
    new_status = Column(String(32), nullable=False)
    previous_moderation_status = Column(String(32), nullable=True)
    new_moderation_status = Column(String(32), nullable=False)
    previous_is_published = Column(Boolean, nullable=True)
    new_is_published = Column(Boolean, nullable=True)

    change_reason = Column(Text, nullable=True)
    admin_notes = Column(Text, nullable=True)  # snapshot at time of change
    changed_by = Column(String, nullable=False, index=True)

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        Index("idx_status_history_event_created", "event_id", "created_at", "id"),
    )
