# app/schemas/event.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, StrictBool, model_validator

from app.constants.event_status import EventStatus, ModerationDecision, ModerationStatus


class Event(BaseModel):
    id: str = Field(..., json_schema_extra={"example": "evt_c5a6d8e0f9b1"})
    owner_id: str = Field(..., json_schema_extra={"example": "usr_a1b2c3d4e5"})
    title: str = Field(..., json_schema_extra={"example": "Jazz sur le Port"})
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    venue_id: Optional[str] = None

    status: EventStatus = Field(..., json_schema_extra={"example": "draft"})
    moderation_status: ModerationStatus = Field(
        ..., json_schema_extra={"example": "pending"}
    )
    is_published: bool = Field(
        False, description="Visible to end users. Only possible once approved."
    )
    organizer_wants_published: bool = Field(
        False, description="The organizer's declared publication intent."
    )
    admin_notes: Optional[str] = Field(
        None, description="Set by admins, read-only for organizers."
    )
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    status_changed_by: Optional[str] = None
    status_changed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, json_schema_extra={"example": "Jazz sur le Port"})
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    venue_id: Optional[str] = Field(None, json_schema_extra={"example": "ven_f9e8d7c6b5"})

    @model_validator(mode="after")
    def check_dates(self) -> "EventCreate":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class Pagination(BaseModel):
    totalItems: int
    totalPages: int
    currentPage: int


class PaginatedEvent(BaseModel):
    data: List[Event]
    pagination: Pagination


# --- Transition request bodies ---


class PublicationUpdate(BaseModel):
    # Strict: JSON booleans only, "true"/1 are rejected.
    is_published: StrictBool


class PublicationIntentUpdate(BaseModel):
    organizer_wants_published: StrictBool


class ModerationDecisionRequest(BaseModel):
    moderation_status: ModerationDecision
    admin_notes: Optional[str] = Field(None, max_length=5000)
