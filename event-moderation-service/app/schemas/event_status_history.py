from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class EventStatusHistoryEntry(BaseModel):
    id: int
    event_id: str
    previous_status: Optional[str] = None
    new_status: str
    previous_moderation_status: Optional[str] = None
    new_moderation_status: str
    previous_is_published: Optional[bool] = None
    new_is_published: Optional[bool] = None
    change_reason: Optional[str] = None
    admin_notes: Optional[str] = None
    changed_by: str
    created_at: datetime

    model_config = {"from_attributes": True}
