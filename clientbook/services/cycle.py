# clientbook/services/cycle.py
"""
Payment/work-cycle state machine for a client.

Pure functions over a Client instance: they validate, mutate the in-memory
object and return the rows to persist. Nothing here touches the session, so a
validation failure leaves no partial write behind.
"""
from datetime import datetime, timedelta
from typing import Optional

from ..core.constants import ClientStatus, HistoryType
from ..core.exceptions import InvalidAmount
from ..models.client import Client, ClientHistory
from ..models.payment import Payment


def derive_status(total_amount: float, received_amount: float) -> ClientStatus:
    """
    Status as a function of received vs total:
    nothing received -> Pending, received >= total -> Completed, else Partial.
    """
    if received_amount <= 0:
        return ClientStatus.PENDING
    if received_amount >= total_amount:
        return ClientStatus.COMPLETED
    return ClientStatus.PARTIAL


def remaining_for(total_amount: float, received_amount: float) -> float:
    return total_amount - min(max(received_amount, 0), total_amount)


def recalculate(client: Client) -> Client:
    """Clamp received to [0, total] and refresh remaining_amount and status."""
    total = client.total_amount or 0
    received = client.received_amount or 0
    client.status = derive_status(total, received).value
    client.received_amount = min(max(received, 0), total)
    client.remaining_amount = total - client.received_amount
    return client


def resolve_payment_amount(
    client: Client, amount: Optional[float], is_full_payment: bool
) -> float:
    """
    Amount actually being paid. A full payment settles the remaining balance.

    Raises:
        InvalidAmount: amount missing, <= 0, or larger than the remaining balance.
    """
    if is_full_payment:
        resolved = client.remaining_amount
    elif amount is None:
        raise InvalidAmount("Amount is required or mark as full payment")
    else:
        resolved = float(amount)

    if resolved <= 0:
        raise InvalidAmount("Payment amount must be greater than 0")
    if resolved > client.remaining_amount:
        raise InvalidAmount("Payment amount exceeds remaining amount")
    return resolved


def apply_payment(
    client: Client,
    amount: Optional[float] = None,
    is_full_payment: bool = False,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> tuple[Payment, ClientHistory]:
    """
    Record a payment against the current cycle.

    Returns the new Payment and the Payment-type history entry; the caller adds
    both (and the client) to the session.
    """
    now = now or datetime.utcnow()
    paid = resolve_payment_amount(client, amount, is_full_payment)

    client.received_amount = (client.received_amount or 0) + paid
    recalculate(client)
    client.updated_at = now

    payment = Payment(
        user_id=client.user_id,
        client_id=client.id,
        amount=paid,
        payment_date=now,
        notes=notes or "",
    )
    entry = ClientHistory(
        client_id=client.id,
        date=now,
        type=HistoryType.PAYMENT.value,
        amount=paid,
        status=client.status,
        description=notes or ("Full payment received" if is_full_payment else "Payment received"),
    )
    return payment, entry


def complete_cycle(
    client: Client,
    completion_date: datetime,
    payment_amount: Optional[float] = None,
    is_full_payment: bool = False,
    notes: Optional[str] = None,
    next_total_amount: Optional[float] = None,
    now: Optional[datetime] = None,
) -> tuple[Payment, list[ClientHistory]]:
    """
    Close the current cycle with its final payment and start the next one.

    Appends a Payment entry and a Cycle entry, then resets the financial fields.
    If the client repeats, next_work_date moves to completion_date + repeat_after_days.
    """
    now = now or datetime.utcnow()
    if next_total_amount is not None and next_total_amount < 0:
        raise InvalidAmount("Next total amount cannot be negative")

    total_before = client.total_amount
    payment, payment_entry = apply_payment(
        client, payment_amount, is_full_payment, notes, now=now
    )

    cycle_entry = ClientHistory(
        client_id=client.id,
        date=completion_date,
        type=HistoryType.CYCLE.value,
        amount=client.received_amount,
        status=client.status,
        description=(
            f"Cycle completed: {client.received_amount:g} of {total_before:g} received"
            + (f". {notes}" if notes else "")
        ),
    )

    client.received_amount = 0
    if next_total_amount is not None:
        client.total_amount = next_total_amount
    client.work_date = completion_date
    if client.repeat_after_days and client.repeat_after_days > 0:
        client.next_work_date = completion_date + timedelta(days=client.repeat_after_days)
    recalculate(client)
    client.updated_at = now

    return payment, [payment_entry, cycle_entry]


def mark_completed(client: Client, now: Optional[datetime] = None) -> Client:
    """Treat the whole balance as received without recording a ledger payment."""
    client.received_amount = client.total_amount
    recalculate(client)
    client.updated_at = now or datetime.utcnow()
    return client
