# app/crud/crud_event.py
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.constants.event_status import EventStatus, ModerationStatus
from app.models.event import Event
from app.schemas.event import EventCreate
from .base import CRUDBase


class CRUDEvent(CRUDBase[Event, EventCreate]):

    def create_with_owner(self, db: Session, *, obj_in: EventCreate, owner_id: str) -> Event:
        """New events always start as unpublished drafts awaiting submission."""
        return self.create(
            db,
            obj_in=obj_in,
            owner_id=owner_id,
            status=EventStatus.draft.value,
            moderation_status=ModerationStatus.pending.value,
            is_published=False,
            organizer_wants_published=False,
        )

    def get_for_owner(self, db: Session, *, id: str, owner_id: str) -> Optional[Event]:
        return (
            db.query(self.model)
            .filter(self.model.id == id, self.model.owner_id == owner_id)
            .first()
        )

    def get_multi_filtered(
        self,
        db: Session,
        *,
        owner_id: Optional[str] = None,
        status: Optional[str] = None,
        moderation_status: Optional[str] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> dict:
        """
        Lists events newest first. Organizers pass their owner_id; the admin
        listing leaves it unset to see every tenant's events.
        """
        query = db.query(self.model)

        if owner_id is not None:
            query = query.filter(self.model.owner_id == owner_id)
        if status:
            query = query.filter(self.model.status == status)
        if moderation_status:
            query = query.filter(self.model.moderation_status == moderation_status)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    self.model.title.ilike(pattern),
                    self.model.description.ilike(pattern),
                )
            )

        total_count = query.count()
        events = (
            query.order_by(self.model.created_at.desc(), self.model.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return {"events": events, "totalCount": total_count}


event = CRUDEvent(Event)
