# app/services/moderation/notifications.py
"""
Status change notifications for organizers and admins.

Messages go to a Kafka topic; the notification consumers (email, push) live in
other services. Publishing is best-effort and happens after the transition has
committed, so a broker outage never blocks or undoes a moderation action.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from app.core.config import settings
from app.core.kafka_producer import get_kafka_singleton

logger = logging.getLogger(__name__)

EVENT_SUBMITTED_FOR_REVIEW = "EVENT_SUBMITTED_FOR_REVIEW"
EVENT_REVERTED_TO_DRAFT = "EVENT_REVERTED_TO_DRAFT"
EVENT_PUBLICATION_CHANGED = "EVENT_PUBLICATION_CHANGED"
EVENT_MODERATION_DECIDED = "EVENT_MODERATION_DECIDED"

@dataclass(frozen=True)
class StatusChangeNotification:
    type: str
    event_id: str
    owner_id: Optional[str]
    previous_status: Optional[str]
    new_status: str
    previous_moderation_status: Optional[str]
    new_moderation_status: str
    is_published: bool
    admin_notes: Optional[str]
    changed_by: str
    changed_at: datetime

    def to_message(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "eventId": self.event_id,
            "ownerId": self.owner_id,
            "previousStatus": self.previous_status,
            "newStatus": self.new_status,
            "previousModerationStatus": self.previous_moderation_status,
            "newModerationStatus": self.new_moderation_status,
            "isPublished": self.is_published,
            "adminNotes": self.admin_notes,
            "changedBy": self.changed_by,
            "changedAt": self.changed_at.isoformat(),
        }

class ModerationNotifier(ABC):
    @abstractmethod
    def status_changed(self, notification: StatusChangeNotification) -> None:
        ...

class KafkaModerationNotifier(ModerationNotifier):
    """Publishes status changes to the moderation topic, keyed by event id."""

    def __init__(
        self,
        topic: Optional[str] = None,
        producer_factory: Callable[[], Any] = get_kafka_singleton,
    ):
        self.topic = topic or settings.MODERATION_TOPIC
        self._producer_factory = producer_factory

    def status_changed(self, notification: StatusChangeNotification) -> None:
        producer = self._producer_factory()
        if producer is None:
            logger.warning(
                f"Kafka producer unavailable, skipping {notification.type} "
                f"for event {notification.event_id}"
            )
            return

        try:
            producer.send(
                self.topic, key=notification.event_id, value=notification.to_message()
            )
        except Exception as e:
            logger.error(
                f"Failed to publish {notification.type} for event "
                f"{notification.event_id}: {e}",
                exc_info=True,
            )
            return

        logger.info(
            f"Published {notification.type} for event {notification.event_id} "
            f"to {self.topic}"
        )
