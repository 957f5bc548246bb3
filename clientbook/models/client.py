"""
Client model for work/payment tracking.
"""
import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from ..core.constants import DEFAULT_REMINDER_TIME, ClientStatus


class Client(SQLModel, table=True):
    """
    Client model representing one tracked work relationship.

    Fields:
    - id: UUID primary key
    - user_id: Owner (users.id); clients are never shared
    - name: Client name (required)
    - mobile / address / work_description: Descriptive fields
    - work_date: Most recent work date
    - next_work_date: Next due date (drives reminders)
    - reminder_time: "HH:MM" 24-hour reminder time
    - repeat_after_days: Recurrence in days (0 = no repeat)
    - total_amount / received_amount / remaining_amount: Current cycle balance
    - status: Pending, Partial or Completed (derived)
    - is_active: False once soft-deleted
    """

    __tablename__ = "clients"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, nullable=False)
    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    name: str = Field(nullable=False)
    mobile: str = Field(default="")
    address: str = Field(default="")
    work_description: str = Field(default="")
    work_date: datetime = Field(default_factory=datetime.utcnow)
    next_work_date: datetime | None = Field(default=None, index=True)
    reminder_time: str = Field(default=DEFAULT_REMINDER_TIME, max_length=5)
    repeat_after_days: int = Field(default=0, ge=0)
    total_amount: float = Field(default=0)
    received_amount: float = Field(default=0)
    remaining_amount: float = Field(default=0)
    status: str = Field(default=ClientStatus.PENDING.value, nullable=False)
    is_active: bool = Field(default=True, nullable=False, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class ClientHistory(SQLModel, table=True):
    """
    Append-only history of a client's work, payments and completed cycles.
    Insertion order (id) is meaningful: most recent last.
    """

    __tablename__ = "client_history"

    id: int | None = Field(default=None, primary_key=True)
    client_id: uuid.UUID = Field(foreign_key="clients.id", nullable=False, index=True)
    date: datetime = Field(default_factory=datetime.utcnow)
    type: str = Field(nullable=False)
    amount: float = Field(default=0)
    status: str | None = Field(default=None)
    description: str | None = Field(default=None)
