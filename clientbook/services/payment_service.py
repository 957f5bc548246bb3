# clientbook/services/payment_service.py
"""
Payment service layer using SQLModel ORM.
The ledger is append-only: payments are created by the cycle operations in
ClientService and are only read here.
"""
import uuid
from typing import List

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..models.payment import Payment


class PaymentService:
    """
    Read access to the payment ledger.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_payments_for_client(
        self, user_id: uuid.UUID, client_id: uuid.UUID
    ) -> List[Payment]:
        """Get all payments for a client, ordered by most recent first."""
        statement = (
            select(Payment)
            .where(Payment.user_id == user_id, Payment.client_id == client_id)
            .order_by(Payment.payment_date.desc(), Payment.id.desc())
        )
        result = await self.session.exec(statement)
        return list(result.all())
