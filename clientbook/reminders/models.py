# clientbook/reminders/models.py
"""
View of a client as seen by the reminder scheduler.
Built from ORM rows (SessionClientStore) or API JSON (ApiClientStore).
"""
import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class ReminderClient(BaseModel):
    id: uuid.UUID
    name: str
    work_description: str | None = None
    next_work_date: datetime | None = None
    reminder_time: str | None = None
    repeat_after_days: int = 0
    total_amount: float = 0
    remaining_amount: float = 0
    is_active: bool = True
    model_config = ConfigDict(from_attributes=True, extra="ignore")
