# clientbook/api/clients/models.py
import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...core.constants import DEFAULT_REMINDER_TIME
from ...reminders.utils import as_utc_naive, normalize_reminder_time


def _normalize_time(value):
    if value is None:
        return value
    return normalize_reminder_time(value)


# --- Pydantic models (Client) ---
class Client(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    mobile: str = ""
    address: str = ""
    work_description: str = ""
    work_date: datetime
    next_work_date: datetime | None = None
    reminder_time: str
    repeat_after_days: int
    total_amount: float
    received_amount: float
    remaining_amount: float
    status: str
    is_active: bool
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ClientBase(BaseModel):
    @field_validator("work_date", "next_work_date", check_fields=False)
    @classmethod
    def store_as_utc(cls, value):
        return as_utc_naive(value)

    @field_validator("reminder_time", check_fields=False)
    @classmethod
    def check_reminder_time(cls, value):
        return _normalize_time(value)


class ClientCreate(ClientBase):
    name: str = Field(min_length=1)
    mobile: str = ""
    address: str = ""
    work_description: str = ""
    work_date: datetime | None = None
    next_work_date: datetime | None = None
    reminder_time: str = DEFAULT_REMINDER_TIME
    repeat_after_days: int = Field(default=0, ge=0)
    total_amount: float = Field(default=0, ge=0)


class ClientUpdate(ClientBase):
    name: str | None = None
    mobile: str | None = None
    address: str | None = None
    work_description: str | None = None
    work_date: datetime | None = None
    next_work_date: datetime | None = None
    reminder_time: str | None = None
    repeat_after_days: int | None = Field(default=None, ge=0)
    total_amount: float | None = Field(default=None, ge=0)


class HistoryEntry(BaseModel):
    id: int
    date: datetime
    type: str
    amount: float
    status: str | None = None
    description: str | None = None
    model_config = ConfigDict(from_attributes=True)


# --- Pydantic models (Payments) ---
class Payment(BaseModel):
    id: int
    client_id: uuid.UUID
    amount: float
    payment_date: datetime
    notes: str = ""
    model_config = ConfigDict(from_attributes=True)


class PaymentCreate(BaseModel):
    amount: float | None = None
    notes: str | None = None
    is_full_payment: bool = False


class CompleteCycleRequest(BaseModel):
    completion_date: datetime
    payment_amount: float | None = None
    is_full_payment: bool = False
    notes: str | None = None
    next_total_amount: float | None = Field(default=None, ge=0)

    @field_validator("completion_date")
    @classmethod
    def store_as_utc(cls, value):
        return as_utc_naive(value)


class PaymentResult(BaseModel):
    payment: Payment
    client: Client


class CompleteResult(BaseModel):
    message: str
    client: Client
