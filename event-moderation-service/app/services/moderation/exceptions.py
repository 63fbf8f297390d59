# app/services/moderation/exceptions.py
from typing import Optional


class ModerationError(Exception):
    """Base class for failures of the event moderation workflow."""


class EventNotFound(ModerationError):
    """The event does not exist or does not belong to the caller."""

    def __init__(self, event_id: str):
        self.event_id = event_id
        super().__init__(f"Event {event_id} not found")


class InvalidTransition(ModerationError):
    """The event's current state does not satisfy the operation's precondition."""

    def __init__(self, reason: str, *, event_id: Optional[str] = None):
        self.reason = reason
        self.event_id = event_id
        super().__init__(reason)


class PersistenceFailure(ModerationError):
    """The transaction could not commit. Nothing was written; safe to retry."""
