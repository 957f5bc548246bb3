# clientbook/reminders/store.py
"""
Client stores used by the reminder scheduler.

- SessionClientStore: talks to the database directly (server-side sessions).
- ApiClientStore: talks to the REST API with a bearer token (CLI agent).

Both raise StoreUnavailable when the backend cannot be reached, and
ClientNotFound when the client is gone.
"""
import abc
import logging
import uuid
from datetime import datetime
from typing import Any, Optional

import httpx
from sqlalchemy.exc import SQLAlchemyError

from ..core.exceptions import ClientNotFound, StoreUnavailable
from ..db.engine import async_session_maker
from ..services.client_service import ClientService
from .models import ReminderClient
from .utils import as_utc_naive

logger = logging.getLogger(__name__)


class ClientStore(abc.ABC):
    """Source of active clients and sink for recurrence write-backs."""

    async def open(self, session_token: Optional[str] = None) -> None:
        """Called by ReminderScheduler.start()."""

    async def close(self) -> None:
        """Called by ReminderScheduler.stop()."""

    @abc.abstractmethod
    async def list_clients(self) -> list[ReminderClient]:
        ...

    @abc.abstractmethod
    async def get_client(self, client_id: uuid.UUID) -> ReminderClient:
        """Current state of one active client; raises ClientNotFound otherwise."""

    @abc.abstractmethod
    async def update_next_work_date(
        self, client_id: uuid.UUID, next_work_date: Optional[datetime]
    ) -> ReminderClient:
        ...


class SessionClientStore(ClientStore):
    """Owner-scoped store backed by a fresh AsyncSession per call."""

    def __init__(self, user_id: uuid.UUID, session_maker=async_session_maker):
        self.user_id = user_id
        self.session_maker = session_maker

    async def list_clients(self) -> list[ReminderClient]:
        try:
            async with self.session_maker() as session:
                clients = await ClientService(session).get_all_clients(self.user_id)
                return [ReminderClient.model_validate(c) for c in clients]
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Could not load clients: {e}") from e

    async def get_client(self, client_id: uuid.UUID) -> ReminderClient:
        try:
            async with self.session_maker() as session:
                client = await ClientService(session).get_client(self.user_id, client_id)
                return ReminderClient.model_validate(client)
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Could not load client {client_id}: {e}") from e

    async def update_next_work_date(
        self, client_id: uuid.UUID, next_work_date: Optional[datetime]
    ) -> ReminderClient:
        try:
            async with self.session_maker() as session:
                client = await ClientService(session).set_next_work_date(
                    self.user_id, client_id, as_utc_naive(next_work_date)
                )
                return ReminderClient.model_validate(client)
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Could not update client {client_id}: {e}") from e


class ApiClientStore(ClientStore):
    """
    Store that goes through the HTTP API. The bearer token is attached to
    every request; it is never inspected here.
    """

    def __init__(self, base_url: str, token: Optional[str] = None, timeout: float = 10.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def open(self, session_token: Optional[str] = None) -> None:
        if session_token:
            self.token = session_token
        if not self.token:
            raise StoreUnavailable("No session token; log in first")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {self.token}",
                "Accept": "application/json",
            },
            timeout=self.timeout,
            transport=self._transport,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, url: str, **kwargs) -> Any:
        if self._client is None:
            raise StoreUnavailable("Store is not open")
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            raise StoreUnavailable(f"Connection error on {method} {url}: {e}") from e

        if response.status_code == 404:
            raise ClientNotFound(response.json().get("detail", "Client not found"))
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise StoreUnavailable(f"{method} {url} failed: {e}") from e
        return response.json()

    async def list_clients(self) -> list[ReminderClient]:
        data = await self._request("GET", "/api/clients")
        return [ReminderClient.model_validate(item) for item in data]

    async def get_client(self, client_id: uuid.UUID) -> ReminderClient:
        data = await self._request("GET", f"/api/clients/{client_id}")
        return ReminderClient.model_validate(data)

    async def list_upcoming(self) -> list[ReminderClient]:
        data = await self._request("GET", "/api/clients/reminders/upcoming")
        return [ReminderClient.model_validate(item) for item in data]

    async def update_next_work_date(
        self, client_id: uuid.UUID, next_work_date: Optional[datetime]
    ) -> ReminderClient:
        payload = {
            "next_work_date": next_work_date.isoformat() if next_work_date else None
        }
        data = await self._request("PUT", f"/api/clients/{client_id}", json=payload)
        return ReminderClient.model_validate(data)

    @staticmethod
    async def login(base_url: str, email: str, password: str,
                    transport: Optional[httpx.AsyncBaseTransport] = None) -> str:
        """Exchange credentials for a bearer token via /auth/jwt/login."""
        async with httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=10.0,
                                     transport=transport) as client:
            try:
                response = await client.post(
                    "/auth/jwt/login",
                    data={"username": email.strip().lower(), "password": password},
                )
            except httpx.RequestError as e:
                raise StoreUnavailable(f"Cannot reach {base_url}: {e}") from e
        if response.status_code != 200:
            logger.warning(f"Login failed for {email}: {response.status_code}")
            raise PermissionError("Invalid email or password")
        return response.json()["access_token"]
