# app/constants/event_status.py
"""
Lifecycle and moderation status values for events.

`status` and `moderation_status` are independent axes: the first tracks where
the event is in its lifecycle, the second tracks the admin review verdict.
"""
from enum import Enum


class EventStatus(str, Enum):
    draft = "draft"
    candidate = "candidate"
    active = "active"
    cancelled = "cancelled"
    suspended = "suspended"
    completed = "completed"


class ModerationStatus(str, Enum):
    pending = "pending"
    under_review = "under_review"
    approved = "approved"
    rejected = "rejected"
    revision_requested = "revision_requested"
    flagged = "flagged"


class ModerationDecision(str, Enum):
    """Verdicts an admin may hand down on a candidate event."""

    approved = "approved"
    rejected = "rejected"
    revision_requested = "revision_requested"
    flagged = "flagged"


# Moderation outcomes that send the event back to the organizer for changes.
RESUBMITTABLE_MODERATION_STATUSES = frozenset(
    {
        ModerationStatus.rejected.value,
        ModerationStatus.revision_requested.value,
        ModerationStatus.flagged.value,
    }
)
