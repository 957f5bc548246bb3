"""
Payment model for client payment tracking.
"""

import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel


class Payment(SQLModel, table=True):
    """
    Payment model representing one recorded payment. Rows are append-only.

    Fields:
    - id: Auto-increment primary key
    - user_id: Owner of the client (required)
    - client_id: Foreign key to clients table (required)
    - amount: Payment amount (>= 0)
    - payment_date: Payment timestamp
    - notes: Additional notes
    """

    __tablename__ = "payments"

    id: int | None = Field(default=None, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    client_id: uuid.UUID = Field(foreign_key="clients.id", nullable=False, index=True)
    amount: float = Field(nullable=False, ge=0)
    payment_date: datetime = Field(default_factory=datetime.utcnow)
    notes: str = Field(default="")
