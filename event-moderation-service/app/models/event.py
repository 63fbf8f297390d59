# app/models/event.py
import uuid

from sqlalchemy import Boolean, Column, DateTime, String, Text, false
from sqlalchemy.sql import func

from app.constants.event_status import EventStatus, ModerationStatus
from app.db.base_class import Base


class Event(Base):
    __tablename__ = "events"

    id = Column(
        String, primary_key=True, default=lambda: f"evt_{uuid.uuid4().hex[:12]}"
    )
    owner_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=True)
    venue_id = Column(String, nullable=True)

    # Lifecycle and moderation axes
    status = Column(
        String, nullable=False, default=EventStatus.draft.value, index=True
    )
    moderation_status = Column(
        String, nullable=False, default=ModerationStatus.pending.value, index=True
    )
    is_published = Column(Boolean, nullable=False, default=False, server_default=false())
    organizer_wants_published = Column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    admin_notes = Column(Text, nullable=True)

    approved_by = Column(String, nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    status_changed_by = Column(String, nullable=True)
    status_changed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
