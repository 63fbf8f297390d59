# app/api/deps.py
import json
from typing import Any, Type, TypeVar

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import get_db
from app.schemas.token import TokenPayload
from app.services.moderation.exceptions import (
    EventNotFound,
    InvalidTransition,
    ModerationError,
)
from app.services.moderation.notifications import (
    KafkaModerationNotifier,
    ModerationNotifier,
)
from app.services.moderation.store import SqlAlchemyEventStore
from app.services.moderation.workflow import EventModerationWorkflow

ADMIN_ROLES = ("admin", "moderator")

BodyModel = TypeVar("BodyModel", bound=BaseModel)

# The `tokenUrl` is only used by the OpenAPI docs; tokens are issued by the
# auth service.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")


def get_current_user(token: str = Depends(oauth2_scheme)) -> TokenPayload:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=["HS256"])
        token_data = TokenPayload(**payload)
    except (JWTError, ValueError):
        # Catches any error from jose or Pydantic validation
        raise credentials_exception

    return token_data


def get_current_admin(
    current_user: TokenPayload = Depends(get_current_user),
) -> TokenPayload:
    """Only admins and moderators may hand down moderation decisions."""
    if not current_user.role or current_user.role.lower() not in ADMIN_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required"
        )
    return current_user


def get_moderation_notifier() -> ModerationNotifier:
    return KafkaModerationNotifier()


def get_moderation_workflow(
    db: Session = Depends(get_db),
    notifier: ModerationNotifier = Depends(get_moderation_notifier),
) -> EventModerationWorkflow:
    return EventModerationWorkflow(SqlAlchemyEventStore(db), notifier)


async def read_json_body(request: Request) -> Any:
    """
    Raw JSON body of a transition request, or None when the body is empty.
    Undecodable JSON is a 400 like every other body problem on these routes.
    """
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Request body is not valid JSON",
        )


def validate_body(model: Type[BodyModel], payload: Any) -> BodyModel:
    """
    Validates a transition request body, reporting problems as 400 rather
    than FastAPI's default 422: a missing or mistyped flag is an invalid
    request for the state machine.
    """
    if not isinstance(payload, dict):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Request body must be a JSON object",
        )
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=errors)


def moderation_http_error(exc: ModerationError) -> HTTPException:
    """Maps a moderation failure onto the HTTP status the clients expect."""
    if isinstance(exc, EventNotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    if isinstance(exc, InvalidTransition):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.reason)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Failed to update event status",
    )
