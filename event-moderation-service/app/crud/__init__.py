# event-moderation-service/app/crud/__init__.py

from .crud_event import event
from .crud_event_status_history import event_status_history
