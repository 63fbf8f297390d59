# app/services/moderation/workflow.py
"""
Event moderation state machine.

Transitions (status, moderation_status):

    (draft, *) or (*, rejected|revision_requested|flagged)
        --submit-->  (candidate, under_review)
    (candidate, under_review)  --revert-->  (draft, pending)
    (candidate, *)  --approve-->  (active, approved)
    (candidate, *)  --reject|revision_requested|flag-->  (candidate, <decision>)
    (*, approved)  --set publication-->  is_published flips

Each transition runs in a single store transaction: the event row is read
under lock, the precondition is checked, the row is updated conditionally on
the state that was read, and one history entry is appended. Any failure rolls
all of it back.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from app.constants.event_status import (
    RESUBMITTABLE_MODERATION_STATUSES,
    EventStatus,
    ModerationDecision,
    ModerationStatus,
)
from app.services.moderation import notifications
from app.services.moderation.exceptions import EventNotFound, InvalidTransition
from app.services.moderation.notifications import (
    ModerationNotifier,
    StatusChangeNotification,
)
from app.services.moderation.store import (
    EventStore,
    StatusHistoryRecord,
    TransitionGuard,
)

logger = logging.getLogger(__name__)

SUBMIT_PRECONDITION = (
    "only draft or rejected/revision-requested/flagged events can be submitted"
)
REVERT_PRECONDITION = (
    "only events that are submitted and still under review can be reverted to draft"
)
PUBLICATION_PRECONDITION = "only approved events can be published/unpublished"
DECISION_PRECONDITION = "only submitted (candidate) events can be moderated"


@dataclass(frozen=True)
class _Transition:
    status: str
    moderation_status: str
    is_published: bool
    change_reason: str
    notification_type: str
    extra: Dict[str, Any] = field(default_factory=dict)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EventModerationWorkflow:
    def __init__(
        self,
        store: EventStore,
        notifier: Optional[ModerationNotifier] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.notifier = notifier
        self._clock = clock

    # --- Organizer operations -------------------------------------------------

    def submit_for_review(self, event_id: str, actor_id: str) -> Any:
        """Sends a draft (or a previously declined event) to the admins."""

        def plan(event) -> _Transition:
            resubmission = event.moderation_status in RESUBMITTABLE_MODERATION_STATUSES
            if event.status != EventStatus.draft and not resubmission:
                raise InvalidTransition(SUBMIT_PRECONDITION, event_id=event_id)
            return _Transition(
                status=EventStatus.candidate.value,
                moderation_status=ModerationStatus.under_review.value,
                is_published=False,
                change_reason="Resubmitted for review" if resubmission else "Submitted for review",
                notification_type=notifications.EVENT_SUBMITTED_FOR_REVIEW,
            )

        return self._apply(event_id, actor_id, owner_id=actor_id, plan=plan)

    def revert_to_draft(self, event_id: str, actor_id: str) -> Any:
        """Withdraws a submission the admins have not acted on yet."""

        def plan(event) -> _Transition:
            if not (
                event.status == EventStatus.candidate
                and event.moderation_status == ModerationStatus.under_review
            ):
                raise InvalidTransition(REVERT_PRECONDITION, event_id=event_id)
            return _Transition(
                status=EventStatus.draft.value,
                moderation_status=ModerationStatus.pending.value,
                is_published=False,
                change_reason="Reverted to draft",
                notification_type=notifications.EVENT_REVERTED_TO_DRAFT,
            )

        return self._apply(event_id, actor_id, owner_id=actor_id, plan=plan)

    def set_publication(self, event_id: str, actor_id: str, wants_published: bool) -> Any:
        """
        Publishes or unpublishes an approved event. Setting the flag to the
        value it already has succeeds without writing anything.
        """

        def plan(event) -> Optional[_Transition]:
            if event.moderation_status != ModerationStatus.approved:
                raise InvalidTransition(PUBLICATION_PRECONDITION, event_id=event_id)
            if bool(event.is_published) == wants_published:
                return None
            return _Transition(
                status=event.status,
                moderation_status=event.moderation_status,
                is_published=wants_published,
                change_reason="Published" if wants_published else "Unpublished",
                notification_type=notifications.EVENT_PUBLICATION_CHANGED,
            )

        return self._apply(event_id, actor_id, owner_id=actor_id, plan=plan)

    def set_organizer_publication_intent(
        self, event_id: str, actor_id: str, wants: bool
    ) -> Any:
        # Advisory flag only: no precondition, no history entry.
        with self.store.transaction() as tx:
            event = tx.get_event(event_id, owner_id=actor_id, for_update=True)
            if event is None:
                raise EventNotFound(event_id)
            if bool(event.organizer_wants_published) != wants:
                tx.update_event(
                    event,
                    expected=None,
                    changes={"organizer_wants_published": wants},
                )
        logger.info(
            f"Organizer {actor_id} set publication intent of event {event_id} to {wants}"
        )
        return event

    # --- Admin operations -----------------------------------------------------

    def apply_moderation_decision(
        self, event_id: str, actor_id: str, decision: str, notes: Optional[str] = None
    ) -> Any:
        """Records an admin verdict on a submitted event."""
        try:
            verdict = ModerationDecision(decision)
        except ValueError:
            raise InvalidTransition(
                f"'{decision}' is not a moderation decision; expected one of "
                + ", ".join(d.value for d in ModerationDecision),
                event_id=event_id,
            ) from None

        def plan(event) -> _Transition:
            if event.status != EventStatus.candidate:
                raise InvalidTransition(DECISION_PRECONDITION, event_id=event_id)

            extra: Dict[str, Any] = {"admin_notes": notes}
            if verdict == ModerationDecision.approved:
                new_status = EventStatus.active.value
                is_published = bool(event.is_published)
                extra["approved_by"] = actor_id
                extra["approved_at"] = self._clock()
            else:
                new_status = event.status
                is_published = False

            return _Transition(
                status=new_status,
                moderation_status=verdict.value,
                is_published=is_published,
                change_reason=f"Moderation decision: {verdict.value}",
                notification_type=notifications.EVENT_MODERATION_DECIDED,
                extra=extra,
            )

        return self._apply(event_id, actor_id, owner_id=None, plan=plan)

    # --- Queries --------------------------------------------------------------

    def get_status_history(self, event_id: str, owner_id: Optional[str] = None) -> List[Any]:
        """History entries for the event, newest first."""
        with self.store.transaction() as tx:
            event = tx.get_event(event_id, owner_id=owner_id)
            if event is None:
                raise EventNotFound(event_id)
            return tx.list_history(event_id)

    # --- Internals ------------------------------------------------------------

    def _apply(
        self,
        event_id: str,
        actor_id: str,
        *,
        owner_id: Optional[str],
        plan: Callable[[Any], Optional[_Transition]],
    ) -> Any:
        try:
            with self.store.transaction() as tx:
                event = tx.get_event(event_id, owner_id=owner_id, for_update=True)
                if event is None:
                    raise EventNotFound(event_id)

                transition = plan(event)
                if transition is None:
                    return event

                guard = TransitionGuard.from_event(event)
                changed_at = self._clock()
                changes = {
                    "status": transition.status,
                    "moderation_status": transition.moderation_status,
                    "is_published": transition.is_published,
                    "status_changed_by": actor_id,
                    "status_changed_at": changed_at,
                    **transition.extra,
                }
                if not tx.update_event(event, expected=guard, changes=changes):
                    # Another request moved the event between our read and write.
                    raise InvalidTransition(
                        f"event {event_id} was modified concurrently; reload and retry",
                        event_id=event_id,
                    )

                tx.add_history(
                    StatusHistoryRecord(
                        event_id=event_id,
                        previous_status=guard.status,
                        new_status=transition.status,
                        previous_moderation_status=guard.moderation_status,
                        new_moderation_status=transition.moderation_status,
                        previous_is_published=guard.is_published,
                        new_is_published=transition.is_published,
                        change_reason=transition.change_reason,
                        admin_notes=event.admin_notes,
                        changed_by=actor_id,
                        created_at=changed_at,
                    )
                )
        except InvalidTransition as e:
            logger.warning(f"Rejected transition on event {event_id} by {actor_id}: {e.reason}")
            raise

        logger.info(
            f"Event {event_id}: ({guard.status}, {guard.moderation_status}) -> "
            f"({transition.status}, {transition.moderation_status}), "
            f"published={transition.is_published}, by {actor_id}"
        )
        self._notify(event, guard, transition, actor_id, changed_at)
        return event

    def _notify(
        self,
        event: Any,
        guard: TransitionGuard,
        transition: _Transition,
        actor_id: str,
        changed_at: datetime,
    ) -> None:
        if self.notifier is None:
            return
        notification = StatusChangeNotification(
            type=transition.notification_type,
            event_id=event.id,
            owner_id=getattr(event, "owner_id", None),
            previous_status=guard.status,
            new_status=transition.status,
            previous_moderation_status=guard.moderation_status,
            new_moderation_status=transition.moderation_status,
            is_published=transition.is_published,
            admin_notes=event.admin_notes,
            changed_by=actor_id,
            changed_at=changed_at,
        )
        # The transition is already committed; a failed notification is only logged.
        try:
            self.notifier.status_changed(notification)
        except Exception as e:
            logger.error(
                f"Failed to send {transition.notification_type} for event {event.id}: {e}",
                exc_info=True,
            )
