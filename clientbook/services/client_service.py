# clientbook/services/client_service.py
"""
Client service layer using SQLModel ORM.
Every query is scoped to the owning user; soft-deleted clients are invisible.
"""
import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.constants import DEFAULT_REMINDER_TIME
from ..core.exceptions import ClientNotFound
from ..models.client import Client, ClientHistory
from ..models.payment import Payment
from . import cycle

logger = logging.getLogger(__name__)

# Fields a plain update may set; derived fields are always recalculated.
UPDATABLE_FIELDS = {
    "name",
    "mobile",
    "address",
    "work_description",
    "work_date",
    "next_work_date",
    "reminder_time",
    "repeat_after_days",
    "total_amount",
}


class ClientService:
    """
    Service layer for Client operations using SQLModel ORM.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize with an async SQLModel session.

        Args:
            session: AsyncSession instance
        """
        self.session = session

    async def get_all_clients(self, user_id: uuid.UUID) -> List[Client]:
        """Active clients of a user, newest first."""
        statement = (
            select(Client)
            .where(Client.user_id == user_id, Client.is_active == True)  # noqa: E712
            .order_by(Client.created_at.desc())
        )
        result = await self.session.exec(statement)
        return list(result.all())

    async def get_client(self, user_id: uuid.UUID, client_id: uuid.UUID) -> Client:
        """Get a single active client owned by user_id."""
        client = await self.session.get(Client, client_id)
        if not client or client.user_id != user_id or not client.is_active:
            raise ClientNotFound("Client not found")
        return client

    async def create_client(self, user_id: uuid.UUID, client_data: Dict[str, Any]) -> Client:
        """Create a new client for user_id."""
        name = (client_data.get("name") or "").strip()
        if not name:
            raise ValueError("Name is required")

        data = {k: v for k, v in client_data.items() if k in UPDATABLE_FIELDS and v is not None}
        data["name"] = name
        data.setdefault("reminder_time", DEFAULT_REMINDER_TIME)
        data.setdefault("work_date", datetime.utcnow())

        new_client = Client(user_id=user_id, received_amount=0, **data)
        cycle.recalculate(new_client)
        self.session.add(new_client)
        await self.session.commit()
        await self.session.refresh(new_client)
        logger.info(f"Client created: {new_client.id} ({new_client.name})")
        return new_client

    async def update_client(
        self, user_id: uuid.UUID, client_id: uuid.UUID, client_update: Dict[str, Any]
    ) -> Client:
        """Direct field update; remaining_amount and status are recalculated."""
        if not client_update:
            raise ValueError("No fields to update provided.")

        client = await self.get_client(user_id, client_id)

        for key, value in client_update.items():
            if key not in UPDATABLE_FIELDS:
                continue
            # Only next_work_date may be cleared
            if value is None and key != "next_work_date":
                continue
            if key == "name":
                value = (value or "").strip()
                if not value:
                    raise ValueError("Name is required")
            setattr(client, key, value)

        cycle.recalculate(client)
        client.updated_at = datetime.utcnow()
        self.session.add(client)
        await self.session.commit()
        await self.session.refresh(client)
        return client

    async def set_next_work_date(
        self, user_id: uuid.UUID, client_id: uuid.UUID, next_work_date: Optional[datetime]
    ) -> Client:
        return await self.update_client(user_id, client_id, {"next_work_date": next_work_date})

    async def delete_client(self, user_id: uuid.UUID, client_id: uuid.UUID):
        """Soft delete: the client disappears from every listing."""
        client = await self.get_client(user_id, client_id)
        client.is_active = False
        client.updated_at = datetime.utcnow()
        self.session.add(client)
        await self.session.commit()
        logger.info(f"Client soft-deleted: {client_id}")

    async def get_upcoming_reminders(
        self, user_id: uuid.UUID, now: Optional[datetime] = None
    ) -> List[Client]:
        """Active clients due between now and the end of tomorrow."""
        now = now or datetime.utcnow()
        end_of_tomorrow = (now + timedelta(days=1)).replace(
            hour=23, minute=59, second=59, microsecond=999999
        )
        statement = (
            select(Client)
            .where(
                Client.user_id == user_id,
                Client.is_active == True,  # noqa: E712
                Client.next_work_date != None,  # noqa: E711
                Client.next_work_date >= now,
                Client.next_work_date <= end_of_tomorrow,
                Client.reminder_time != None,  # noqa: E711
            )
            .order_by(Client.next_work_date)
        )
        result = await self.session.exec(statement)
        return list(result.all())

    async def get_history(self, user_id: uuid.UUID, client_id: uuid.UUID) -> List[ClientHistory]:
        """History entries in insertion order (most recent last)."""
        await self.get_client(user_id, client_id)
        statement = (
            select(ClientHistory)
            .where(ClientHistory.client_id == client_id)
            .order_by(ClientHistory.id)
        )
        result = await self.session.exec(statement)
        return list(result.all())

    # --- Cycle operations ---
    async def add_payment(
        self,
        user_id: uuid.UUID,
        client_id: uuid.UUID,
        amount: Optional[float] = None,
        is_full_payment: bool = False,
        notes: Optional[str] = None,
    ) -> tuple[Payment, Client]:
        """
        Apply a payment to the client's current cycle.
        The payment, the history entry and the client are committed together.
        """
        client = await self.get_client(user_id, client_id)
        payment, entry = cycle.apply_payment(client, amount, is_full_payment, notes)
        return await self._persist(client, payment, [entry])

    async def complete_cycle(
        self,
        user_id: uuid.UUID,
        client_id: uuid.UUID,
        completion_date: datetime,
        payment_amount: Optional[float] = None,
        is_full_payment: bool = False,
        notes: Optional[str] = None,
        next_total_amount: Optional[float] = None,
    ) -> tuple[Payment, Client]:
        client = await self.get_client(user_id, client_id)
        payment, entries = cycle.complete_cycle(
            client,
            completion_date,
            payment_amount=payment_amount,
            is_full_payment=is_full_payment,
            notes=notes,
            next_total_amount=next_total_amount,
        )
        payment, client = await self._persist(client, payment, entries)
        logger.info(
            f"Cycle completed for client {client_id}; next work date: {client.next_work_date}"
        )
        return payment, client

    async def mark_completed(self, user_id: uuid.UUID, client_id: uuid.UUID) -> Client:
        client = await self.get_client(user_id, client_id)
        cycle.mark_completed(client)
        self.session.add(client)
        await self.session.commit()
        await self.session.refresh(client)
        return client

    async def _persist(
        self, client: Client, payment: Payment, entries: List[ClientHistory]
    ) -> tuple[Payment, Client]:
        try:
            self.session.add(payment)
            self.session.add_all(entries)
            self.session.add(client)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        await self.session.refresh(payment)
        await self.session.refresh(client)
        return payment, client
