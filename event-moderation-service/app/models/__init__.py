# app/models/__init__.py
# Import all models so Base.metadata knows every table (used by Alembic
# and by the test database setup).

from app.db.base_class import Base
from app.models.event import Event
from app.models.event_status_history import EventStatusHistory
