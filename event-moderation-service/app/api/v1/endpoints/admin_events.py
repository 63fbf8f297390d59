# app/api/v1/endpoints/admin_events.py
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
    ModerationDecisionRequest,
    PaginatedEvent,
)
from app.schemas.event_status_history import EventStatusHistoryEntry
from app.schemas.token import TokenPayload
from app.services.moderation.exceptions import ModerationError
from app.services.moderation.workflow import EventModerationWorkflow

router = APIRouter(prefix="/admin/events", tags=["Event Moderation"])


@router.get("", response_model=PaginatedEvent)
def admin_list_events(
    db: Session = Depends(get_db),
    current_admin: TokenPayload = Depends(deps.get_current_admin),
    status: Optional[EventStatus] = None,
    moderation_status: Optional[ModerationStatus] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """Moderation queue: every organizer's events, newest first."""
    result = crud_event.event.get_multi_filtered(
        db,
        status=status.value if status else None,
        moderation_status=moderation_status.value if moderation_status else None,
        search=search,
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
def admin_get_event(
    eventId: str,
    db: Session = Depends(get_db),
    current_admin: TokenPayload = Depends(deps.get_current_admin),
):
    event = crud_event.event.get(db, id=eventId)
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return event


@router.patch("/{eventId}/moderation", response_model=EventSchema)
def moderate_event(
    eventId: str,
    payload: Any = Depends(deps.read_json_body),
    workflow: EventModerationWorkflow = Depends(deps.get_moderation_workflow),
    current_admin: TokenPayload = Depends(deps.get_current_admin),
):
    """
    Approves, rejects, flags or requests a revision of a submitted event.
    Body: `{"moderation_status": "...", "admin_notes": "..."}`.
    """
    body = deps.validate_body(ModerationDecisionRequest, payload)
    try:
        return workflow.apply_moderation_decision(
            eventId,
            current_admin.sub,
            body.moderation_status.value,
            body.admin_notes,
        )
    except ModerationError as e:
        raise deps.moderation_http_error(e)


@router.get("/{eventId}/status-history", response_model=List[EventStatusHistoryEntry])
def admin_get_event_status_history(
    eventId: str,
    workflow: EventModerationWorkflow = Depends(deps.get_moderation_workflow),
    current_admin: TokenPayload = Depends(deps.get_current_admin),
):
    try:
        return workflow.get_status_history(eventId)
    except ModerationError as e:
        raise deps.moderation_http_error(e)
