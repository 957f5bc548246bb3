import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel.ext.asyncio.session import AsyncSession

from ...core.exceptions import ClientNotFound, InvalidAmount
from ...core.users import current_active_user
from ...db.engine import get_session
from ...models.user import User

# Import service classes
from ...services.client_service import ClientService as ClientManagerService
from ...services.payment_service import PaymentService
from .models import (
    Client,
    ClientCreate,
    ClientUpdate,
    CompleteCycleRequest,
    CompleteResult,
    HistoryEntry,
    Payment,
    PaymentCreate,
    PaymentResult,
)

router = APIRouter()


# --- Dependency Injectors ---
async def get_client_service(session: AsyncSession = Depends(get_session)) -> ClientManagerService:
    return ClientManagerService(session)


async def get_payment_service(session: AsyncSession = Depends(get_session)) -> PaymentService:
    return PaymentService(session)


# --- Client Endpoints ---


@router.get("/clients", response_model=list[Client])
async def api_get_all_clients(
    service: ClientManagerService = Depends(get_client_service),
    current_user: User = Depends(current_active_user),
):
    return await service.get_all_clients(current_user.id)


@router.post("/clients", response_model=Client, status_code=status.HTTP_201_CREATED)
async def api_create_client(
    client: ClientCreate,
    service: ClientManagerService = Depends(get_client_service),
    current_user: User = Depends(current_active_user),
):
    try:
        return await service.create_client(current_user.id, client.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/clients/reminders/upcoming", response_model=list[Client])
async def api_get_upcoming_reminders(
    service: ClientManagerService = Depends(get_client_service),
    current_user: User = Depends(current_active_user),
):
    """Active clients whose next work date falls between now and the end of tomorrow."""
    return await service.get_upcoming_reminders(current_user.id)


@router.get("/clients/{client_id}", response_model=Client)
async def api_get_client(
    client_id: uuid.UUID,
    service: ClientManagerService = Depends(get_client_service),
    current_user: User = Depends(current_active_user),
):
    try:
        return await service.get_client(current_user.id, client_id)
    except ClientNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/clients/{client_id}", response_model=Client)
async def api_update_client(
    client_id: uuid.UUID,
    client_update: ClientUpdate,
    service: ClientManagerService = Depends(get_client_service),
    current_user: User = Depends(current_active_user),
):
    """Direct field update; remaining amount and status are recalculated."""
    update_fields = client_update.model_dump(exclude_unset=True)
    try:
        return await service.update_client(current_user.id, client_id, update_fields)
    except ClientNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/clients/{client_id}")
async def api_delete_client(
    client_id: uuid.UUID,
    service: ClientManagerService = Depends(get_client_service),
    current_user: User = Depends(current_active_user),
):
    try:
        await service.delete_client(current_user.id, client_id)
    except ClientNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"message": "Client deleted successfully"}


@router.get("/clients/{client_id}/history", response_model=list[HistoryEntry])
async def api_get_client_history(
    client_id: uuid.UUID,
    service: ClientManagerService = Depends(get_client_service),
    current_user: User = Depends(current_active_user),
):
    try:
        return await service.get_history(current_user.id, client_id)
    except ClientNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


# --- Payment / Cycle Endpoints ---


@router.post(
    "/clients/{client_id}/payment",
    response_model=PaymentResult,
    status_code=status.HTTP_201_CREATED,
)
async def api_add_payment(
    client_id: uuid.UUID,
    payment: PaymentCreate,
    service: ClientManagerService = Depends(get_client_service),
    current_user: User = Depends(current_active_user),
):
    """
    Record a payment for the current cycle.
    Either an amount or is_full_payment (settles the remaining balance) is required.
    """
    try:
        new_payment, client = await service.add_payment(
            current_user.id,
            client_id,
            amount=payment.amount,
            is_full_payment=payment.is_full_payment,
            notes=payment.notes,
        )
    except ClientNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidAmount as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"payment": new_payment, "client": client}


@router.get("/clients/{client_id}/payments", response_model=list[Payment])
async def api_get_payment_history(
    client_id: uuid.UUID,
    service: ClientManagerService = Depends(get_client_service),
    payment_service: PaymentService = Depends(get_payment_service),
    current_user: User = Depends(current_active_user),
):
    try:
        await service.get_client(current_user.id, client_id)
    except ClientNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return await payment_service.get_payments_for_client(current_user.id, client_id)


@router.post("/clients/{client_id}/complete-cycle", response_model=PaymentResult)
async def api_complete_cycle(
    client_id: uuid.UUID,
    request: CompleteCycleRequest,
    service: ClientManagerService = Depends(get_client_service),
    current_user: User = Depends(current_active_user),
):
    """
    Close the current work cycle with its final payment and reset the balance
    for the next one. Recurring clients get their next work date moved forward.
    """
    try:
        new_payment, client = await service.complete_cycle(
            current_user.id,
            client_id,
            completion_date=request.completion_date,
            payment_amount=request.payment_amount,
            is_full_payment=request.is_full_payment,
            notes=request.notes,
            next_total_amount=request.next_total_amount,
        )
    except ClientNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidAmount as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"payment": new_payment, "client": client}


@router.put("/clients/{client_id}/complete", response_model=CompleteResult)
async def api_mark_client_complete(
    client_id: uuid.UUID,
    service: ClientManagerService = Depends(get_client_service),
    current_user: User = Depends(current_active_user),
):
    try:
        client = await service.mark_completed(current_user.id, client_id)
    except ClientNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"message": "Client marked as completed", "client": client}
