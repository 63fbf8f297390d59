import pytest
from datetime import datetime, timezone
from unittest.mock import MagicMock

from app.services.moderation import notifications
from app.services.moderation.exceptions import (
    EventNotFound,
    InvalidTransition,
    PersistenceFailure,
)
from app.services.moderation.workflow import (
    PUBLICATION_PRECONDITION,
    SUBMIT_PRECONDITION,
    EventModerationWorkflow,
)
from tests.utils.in_memory_store import InMemoryEventStore

ORGANIZER = "user_123"
ADMIN = "admin_1"
FIXED_NOW = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def store():
    return InMemoryEventStore()


@pytest.fixture
def notifier():
    return MagicMock()


@pytest.fixture
def workflow(store, notifier):
    return EventModerationWorkflow(store, notifier, clock=lambda: FIXED_NOW)


def _moderated_fields(record):
    return (
        record.status,
        record.moderation_status,
        record.is_published,
        record.admin_notes,
    )


# --- submit_for_review ---


def test_submit_draft_moves_to_candidate_under_review(store, workflow):
    store.add_event()

    event = workflow.submit_for_review("evt_1", ORGANIZER)

    assert event.status == "candidate"
    assert event.moderation_status == "under_review"
    assert event.status_changed_by == ORGANIZER
    assert event.status_changed_at == FIXED_NOW
    assert store.state().status == "candidate"

    [entry] = store.history_for()
    assert entry.previous_status == "draft"
    assert entry.new_status == "candidate"
    assert entry.previous_moderation_status == "pending"
    assert entry.new_moderation_status == "under_review"
    assert entry.changed_by == ORGANIZER
    assert entry.change_reason == "Submitted for review"


def test_second_submit_fails_and_changes_nothing(store, workflow):
    store.add_event()
    workflow.submit_for_review("evt_1", ORGANIZER)
    before = store.state()

    with pytest.raises(InvalidTransition) as exc_info:
        workflow.submit_for_review("evt_1", ORGANIZER)

    assert exc_info.value.reason == SUBMIT_PRECONDITION
    assert store.state() == before
    assert len(store.history_for()) == 1


@pytest.mark.parametrize("moderation_status", ["rejected", "revision_requested", "flagged"])
def test_resubmit_after_negative_decision(store, workflow, moderation_status):
    store.add_event(status="candidate", moderation_status=moderation_status, admin_notes="fix it")

    event = workflow.submit_for_review("evt_1", ORGANIZER)

    assert (event.status, event.moderation_status) == ("candidate", "under_review")
    assert store.history_for()[0].change_reason == "Resubmitted for review"
    # Admin notes stay visible to the organizer until the next decision.
    assert event.admin_notes == "fix it"


@pytest.mark.parametrize(
    "status, moderation_status",
    [
        ("candidate", "under_review"),
        ("active", "approved"),
        ("cancelled", "pending"),
        ("suspended", "approved"),
        ("completed", "approved"),
    ],
)
def test_submit_rejected_for_non_submittable_states(store, workflow, status, moderation_status):
    store.add_event(status=status, moderation_status=moderation_status)
    before = store.state()

    with pytest.raises(InvalidTransition):
        workflow.submit_for_review("evt_1", ORGANIZER)

    assert _moderated_fields(store.state()) == _moderated_fields(before)
    assert store.history_for() == []


def test_submit_unknown_event_raises_not_found(workflow):
    with pytest.raises(EventNotFound):
        workflow.submit_for_review("evt_missing", ORGANIZER)


def test_submit_someone_elses_event_raises_not_found(store, workflow):
    store.add_event(owner_id="someone_else")

    with pytest.raises(EventNotFound):
        workflow.submit_for_review("evt_1", ORGANIZER)

    assert store.state().status == "draft"


# --- revert_to_draft ---


def test_revert_submitted_event_to_draft(store, workflow):
    store.add_event()
    workflow.submit_for_review("evt_1", ORGANIZER)

    event = workflow.revert_to_draft("evt_1", ORGANIZER)

    assert (event.status, event.moderation_status) == ("draft", "pending")
    latest = store.history_for()[-1]
    assert (latest.previous_status, latest.new_status) == ("candidate", "draft")
    assert latest.new_moderation_status == "pending"


@pytest.mark.parametrize(
    "status, moderation_status",
    [
        ("draft", "pending"),
        ("candidate", "rejected"),
        ("candidate", "revision_requested"),
        ("candidate", "flagged"),
        ("active", "approved"),
    ],
)
def test_revert_fails_outside_candidate_under_review(store, workflow, status, moderation_status):
    store.add_event(status=status, moderation_status=moderation_status, admin_notes="notes")
    before = store.state()

    with pytest.raises(InvalidTransition):
        workflow.revert_to_draft("evt_1", ORGANIZER)

    assert store.state() == before
    assert store.history_for() == []


# --- set_publication ---


def test_publish_approved_event(store, workflow):
    store.add_event(status="active", moderation_status="approved")

    event = workflow.set_publication("evt_1", ORGANIZER, True)

    assert event.is_published is True
    [entry] = store.history_for()
    assert (entry.previous_status, entry.new_status) == ("active", "active")
    assert (entry.previous_is_published, entry.new_is_published) == (False, True)
    assert entry.change_reason == "Published"


def test_unpublish_approved_event(store, workflow):
    store.add_event(status="active", moderation_status="approved", is_published=True)

    event = workflow.set_publication("evt_1", ORGANIZER, False)

    assert event.is_published is False
    assert store.history_for()[0].change_reason == "Unpublished"


@pytest.mark.parametrize(
    "moderation_status",
    ["pending", "under_review", "rejected", "revision_requested", "flagged"],
)
def test_publish_requires_approval(store, workflow, moderation_status):
    store.add_event(status="candidate", moderation_status=moderation_status)

    with pytest.raises(InvalidTransition) as exc_info:
        workflow.set_publication("evt_1", ORGANIZER, True)

    assert exc_info.value.reason == PUBLICATION_PRECONDITION
    assert store.state().is_published is False
    assert store.history_for() == []


def test_publication_noop_writes_no_history(store, workflow, notifier):
    store.add_event(status="active", moderation_status="approved", is_published=True)

    event = workflow.set_publication("evt_1", ORGANIZER, True)

    assert event.is_published is True
    assert store.history_for() == []
    notifier.status_changed.assert_not_called()


# --- set_organizer_publication_intent ---


@pytest.mark.parametrize(
    "status, moderation_status",
    [("draft", "pending"), ("candidate", "under_review"), ("candidate", "rejected")],
)
def test_publication_intent_has_no_moderation_precondition(store, workflow, status, moderation_status):
    store.add_event(status=status, moderation_status=moderation_status)

    event = workflow.set_organizer_publication_intent("evt_1", ORGANIZER, True)

    assert event.organizer_wants_published is True
    assert event.is_published is False
    assert (event.status, event.moderation_status) == (status, moderation_status)
    assert store.history_for() == []


def test_publication_intent_can_be_withdrawn(store, workflow):
    store.add_event(organizer_wants_published=True)

    event = workflow.set_organizer_publication_intent("evt_1", ORGANIZER, False)

    assert event.organizer_wants_published is False
    assert store.state().organizer_wants_published is False


def test_publication_intent_for_unknown_event(workflow):
    with pytest.raises(EventNotFound):
        workflow.set_organizer_publication_intent("evt_missing", ORGANIZER, True)


# --- apply_moderation_decision ---


def test_approval_activates_event_without_publishing(store, workflow):
    store.add_event(status="candidate", moderation_status="under_review", organizer_wants_published=True)

    event = workflow.apply_moderation_decision("evt_1", ADMIN, "approved", "Looks good")

    assert (event.status, event.moderation_status) == ("active", "approved")
    assert event.is_published is False
    assert event.admin_notes == "Looks good"
    assert event.approved_by == ADMIN
    assert event.approved_at == FIXED_NOW
    [entry] = store.history_for()
    assert entry.admin_notes == "Looks good"
    assert entry.changed_by == ADMIN


@pytest.mark.parametrize("decision", ["rejected", "revision_requested", "flagged"])
def test_negative_decision_keeps_candidate_and_unpublishes(store, workflow, decision):
    store.add_event(status="candidate", moderation_status="under_review")

    event = workflow.apply_moderation_decision("evt_1", ADMIN, decision, "fix description")

    assert event.status == "candidate"
    assert event.moderation_status == decision
    assert event.is_published is False
    assert event.admin_notes == "fix description"
    assert event.approved_by is None


def test_decision_can_be_revised_while_candidate(store, workflow):
    store.add_event(status="candidate", moderation_status="rejected")

    event = workflow.apply_moderation_decision("evt_1", ADMIN, "approved", "")

    assert (event.status, event.moderation_status) == ("active", "approved")


@pytest.mark.parametrize("status", ["draft", "active", "cancelled", "suspended", "completed"])
def test_decision_requires_candidate(store, workflow, status):
    store.add_event(status=status, moderation_status="pending", admin_notes="original")

    with pytest.raises(InvalidTransition):
        workflow.apply_moderation_decision("evt_1", ADMIN, "approved", "new notes")

    assert store.state().admin_notes == "original"
    assert store.history_for() == []


@pytest.mark.parametrize("decision", ["pending", "under_review", "published", ""])
def test_unknown_decision_is_invalid_transition(store, workflow, decision):
    store.add_event(status="candidate", moderation_status="under_review")

    with pytest.raises(InvalidTransition):
        workflow.apply_moderation_decision("evt_1", ADMIN, decision, None)

    assert store.state().moderation_status == "under_review"


def test_admin_decision_is_not_owner_scoped(store, workflow):
    store.add_event(owner_id="organizer_9", status="candidate", moderation_status="under_review")

    event = workflow.apply_moderation_decision("evt_1", ADMIN, "rejected", "no")

    assert event.moderation_status == "rejected"


# --- history ---


def test_full_moderation_scenario(store, workflow):
    store.add_event()

    workflow.submit_for_review("evt_1", ORGANIZER)
    workflow.apply_moderation_decision("evt_1", ADMIN, "rejected", "fix description")
    workflow.submit_for_review("evt_1", ORGANIZER)
    workflow.apply_moderation_decision("evt_1", ADMIN, "approved", "")
    event = workflow.set_publication("evt_1", ORGANIZER, True)

    assert (event.status, event.moderation_status, event.is_published) == (
        "active",
        "approved",
        True,
    )

    history = workflow.get_status_history("evt_1", owner_id=ORGANIZER)
    # All entries share FIXED_NOW, so ordering relies on the insertion sequence.
    assert [h.change_reason for h in history] == [
        "Published",
        "Moderation decision: approved",
        "Resubmitted for review",
        "Moderation decision: rejected",
        "Submitted for review",
    ]
    assert history[3].admin_notes == "fix description"


def test_history_grows_by_one_per_successful_transition_only(store, workflow):
    store.add_event()

    workflow.submit_for_review("evt_1", ORGANIZER)
    assert len(workflow.get_status_history("evt_1")) == 1

    with pytest.raises(InvalidTransition):
        workflow.set_publication("evt_1", ORGANIZER, True)
    with pytest.raises(InvalidTransition):
        workflow.submit_for_review("evt_1", ORGANIZER)
    assert len(workflow.get_status_history("evt_1")) == 1

    workflow.revert_to_draft("evt_1", ORGANIZER)
    assert len(workflow.get_status_history("evt_1")) == 2


def test_history_orders_by_timestamp_before_sequence(store):
    ticks = iter(
        [
            datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc),
            datetime(2026, 10, 1, 12, 5, tzinfo=timezone.utc),
        ]
    )
    workflow = EventModerationWorkflow(store, clock=lambda: next(ticks))
    store.add_event()

    workflow.submit_for_review("evt_1", ORGANIZER)
    workflow.revert_to_draft("evt_1", ORGANIZER)

    history = workflow.get_status_history("evt_1")
    assert [h.new_status for h in history] == ["draft", "candidate"]


def test_history_of_someone_elses_event_is_not_found(store, workflow):
    store.add_event(owner_id="someone_else")

    with pytest.raises(EventNotFound):
        workflow.get_status_history("evt_1", owner_id=ORGANIZER)


# --- atomicity and notifications ---


def test_failed_history_insert_rolls_back_status_update(store, workflow, notifier):
    store.add_event()
    store.fail_on_history = True

    with pytest.raises(RuntimeError):
        workflow.submit_for_review("evt_1", ORGANIZER)

    assert (store.state().status, store.state().moderation_status) == ("draft", "pending")
    assert store.history_for() == []
    assert store.rollbacks == 1
    notifier.status_changed.assert_not_called()


def test_persistence_failure_propagates(store, notifier):
    failing_store = MagicMock()
    failing_store.transaction.side_effect = PersistenceFailure("Failed to update event status")
    workflow = EventModerationWorkflow(failing_store, notifier)

    with pytest.raises(PersistenceFailure):
        workflow.submit_for_review("evt_1", ORGANIZER)

    notifier.status_changed.assert_not_called()


def test_successful_transition_notifies(store, workflow, notifier):
    store.add_event()

    workflow.submit_for_review("evt_1", ORGANIZER)

    notifier.status_changed.assert_called_once()
    notification = notifier.status_changed.call_args.args[0]
    assert notification.type == notifications.EVENT_SUBMITTED_FOR_REVIEW
    assert notification.event_id == "evt_1"
    assert notification.owner_id == ORGANIZER
    assert notification.previous_status == "draft"
    assert notification.new_moderation_status == "under_review"
    assert notification.changed_at == FIXED_NOW


def test_decision_notification_carries_admin_notes(store, workflow, notifier):
    store.add_event(status="candidate", moderation_status="under_review")

    workflow.apply_moderation_decision("evt_1", ADMIN, "revision_requested", "add a venue")

    notification = notifier.status_changed.call_args.args[0]
    assert notification.type == notifications.EVENT_MODERATION_DECIDED
    assert notification.admin_notes == "add a venue"
    assert notification.changed_by == ADMIN


def test_failed_transition_does_not_notify(store, workflow, notifier):
    store.add_event(status="active", moderation_status="approved")

    with pytest.raises(InvalidTransition):
        workflow.revert_to_draft("evt_1", ORGANIZER)

    notifier.status_changed.assert_not_called()


def test_notifier_error_is_logged_after_commit(store, workflow, notifier, caplog):
    store.add_event()
    notifier.status_changed.side_effect = RuntimeError("broker exploded")

    event = workflow.submit_for_review("evt_1", ORGANIZER)

    assert event.status == "candidate"
    assert store.commits == 1
    assert len(store.history_for()) == 1
    assert "Failed to send EVENT_SUBMITTED_FOR_REVIEW for event evt_1" in caplog.text


# --- publication flag only survives while approved ---


@pytest.mark.parametrize("moderation_status", ["rejected", "revision_requested", "flagged"])
def test_resubmission_clears_stale_publication_flag(store, workflow, moderation_status):
    store.add_event(status="candidate", moderation_status=moderation_status, is_published=True)

    event = workflow.submit_for_review("evt_1", ORGANIZER)

    assert event.is_published is False
    [entry] = store.history_for()
    assert (entry.previous_is_published, entry.new_is_published) == (True, False)


def test_revert_clears_stale_publication_flag(store, workflow):
    store.add_event(status="candidate", moderation_status="under_review", is_published=True)

    event = workflow.revert_to_draft("evt_1", ORGANIZER)

    assert (event.status, event.moderation_status, event.is_published) == ("draft", "pending", False)
