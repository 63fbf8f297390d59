# app/api/v1/endpoints/events.py
import math
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api import deps
from app.constants.event_status import EventStatus, ModerationStatus
from app.crud import crud_event
from app.db.session import get_db
from app.schemas.event import (
    Event as EventSchema,
    EventCreate,
    PaginatedEvent,
    PublicationIntentUpdate,
    PublicationUpdate,
)
from app.schemas.event_status_history import EventStatusHistoryEntry
from app.schemas.token import TokenPayload
from app.services.moderation.exceptions import ModerationError
from app.services.moderation.workflow import EventModerationWorkflow

router = APIRouter(prefix="/events", tags=["Events"])


@router.post("", response_model=EventSchema, status_code=status.HTTP_201_CREATED)
def create_event(
    event_in: EventCreate,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """Creates a new draft event owned by the caller."""
    return crud_event.event.create_with_owner(db, obj_in=event_in, owner_id=current_user.sub)


@router.get("", response_model=PaginatedEvent)
def list_events(
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    status: Optional[EventStatus] = None,
    moderation_status: Optional[ModerationStatus] = None,
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
):
    """Lists the caller's events, newest first."""
    result = crud_event.event.get_multi_filtered(
        db,
        owner_id=current_user.sub,
        status=status.value if status else None,
        moderation_status=moderation_status.value if moderation_status else None,
        skip=(page - 1) * limit,
        limit=limit,
    )
    total = result["totalCount"]
    return {
        "data": result["events"],
        "pagination": {
            "totalItems": total,
            "totalPages": math.ceil(total / limit),
            "currentPage": page,
        },
    }


@router.get("/{eventId}", response_model=EventSchema)
def get_event_by_id(
    eventId: str,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """Get one of the caller's events."""
    event = crud_event.event.get_for_owner(db, id=eventId, owner_id=current_user.sub)
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return event


@router.patch("/{eventId}/submit", response_model=EventSchema)
def submit_event_for_review(
    eventId: str,
    workflow: EventModerationWorkflow = Depends(deps.get_moderation_workflow),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """
    Submits a draft event for moderation. Events that were rejected, flagged
    or sent back for revision can be resubmitted the same way.
    """
    try:
        return workflow.submit_for_review(eventId, current_user.sub)
    except ModerationError as e:
        raise deps.moderation_http_error(e)


@router.patch("/{eventId}/revert", response_model=EventSchema)
def revert_event_to_draft(
    eventId: str,
    workflow: EventModerationWorkflow = Depends(deps.get_moderation_workflow),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """Withdraws a submission that has not been reviewed yet."""
    try:
        return workflow.revert_to_draft(eventId, current_user.sub)
    except ModerationError as e:
        raise deps.moderation_http_error(e)


@router.patch("/{eventId}/publish", response_model=EventSchema)
def set_event_publication(
    eventId: str,
    payload: Any = Depends(deps.read_json_body),
    workflow: EventModerationWorkflow = Depends(deps.get_moderation_workflow),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """Publishes or unpublishes an approved event. Body: `{"is_published": bool}`."""
    body = deps.validate_body(PublicationUpdate, payload)
    try:
        return workflow.set_publication(eventId, current_user.sub, body.is_published)
    except ModerationError as e:
        raise deps.moderation_http_error(e)


@router.patch("/{eventId}/toggle-publication", response_model=EventSchema)
def set_event_publication_intent(
    eventId: str,
    payload: Any = Depends(deps.read_json_body),
    workflow: EventModerationWorkflow = Depends(deps.get_moderation_workflow),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """
    Records whether the organizer wants the event published once it is
    approved. Body: `{"organizer_wants_published": bool}`.
    """
    body = deps.validate_body(PublicationIntentUpdate, payload)
    try:
        return workflow.set_organizer_publication_intent(
            eventId, current_user.sub, body.organizer_wants_published
        )
    except ModerationError as e:
        raise deps.moderation_http_error(e)


@router.get("/{eventId}/status-history", response_model=List[EventStatusHistoryEntry])
def get_event_status_history(
    eventId: str,
    workflow: EventModerationWorkflow = Depends(deps.get_moderation_workflow),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """Status changes of one of the caller's events, newest first."""
    try:
        return workflow.get_status_history(eventId, owner_id=current_user.sub)
    except ModerationError as e:
        raise deps.moderation_http_error(e)
