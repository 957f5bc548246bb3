"""SessionClientStore against the temporary SQLite database."""
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import SQLAlchemyError

from clientbook.core.exceptions import ClientNotFound, StoreUnavailable
from clientbook.db.engine import async_session_maker
from clientbook.models.user import User
from clientbook.reminders.models import ReminderClient
from clientbook.reminders.store import SessionClientStore
from clientbook.services.client_service import ClientService

DAY = datetime(2026, 3, 10)


async def create_user(email: str) -> uuid.UUID:
    async with async_session_maker() as session:
        user = User(email=email, hashed_password="not-a-real-hash")
        session.add(user)
        await session.commit()
        return user.id


async def create_client(user_id: uuid.UUID, **overrides):
    data = {
        "name": "Lakshmi Textiles",
        "work_description": "Generator check",
        "next_work_date": DAY,
        "reminder_time": "09:00",
        "repeat_after_days": 7,
        "total_amount": 2500,
    }
    data.update(overrides)
    async with async_session_maker() as session:
        return await ClientService(session).create_client(user_id, data)


@pytest.fixture
async def owners(db):
    return await create_user("owner@example.com"), await create_user("other@example.com")


async def test_list_clients_returns_only_own_active_clients(owners):
    owner, other = owners
    mine = await create_client(owner)
    deleted = await create_client(owner, name="Closed Shop")
    await create_client(other, name="Someone Else")
    async with async_session_maker() as session:
        await ClientService(session).delete_client(owner, deleted.id)

    clients = await SessionClientStore(owner).list_clients()

    assert [c.id for c in clients] == [mine.id]
    assert isinstance(clients[0], ReminderClient)
    assert clients[0].next_work_date == DAY
    assert clients[0].reminder_time == "09:00"
    assert clients[0].repeat_after_days == 7
    assert clients[0].remaining_amount == 2500


async def test_get_client(owners):
    owner, other = owners
    mine = await create_client(owner)

    assert (await SessionClientStore(owner).get_client(mine.id)).name == "Lakshmi Textiles"
    with pytest.raises(ClientNotFound):
        await SessionClientStore(other).get_client(mine.id)


async def test_update_next_work_date_persists_as_utc(owners):
    owner, _ = owners
    mine = await create_client(owner)
    new_date = datetime(2026, 3, 17, 5, 30, tzinfo=timezone(timedelta(hours=5, minutes=30)))

    updated = await SessionClientStore(owner).update_next_work_date(mine.id, new_date)

    assert updated.next_work_date == datetime(2026, 3, 17)
    async with async_session_maker() as session:
        stored = await ClientService(session).get_client(owner, mine.id)
    assert stored.next_work_date == datetime(2026, 3, 17)


async def test_update_of_another_users_client_is_not_found(owners):
    owner, other = owners
    mine = await create_client(owner)

    with pytest.raises(ClientNotFound):
        await SessionClientStore(other).update_next_work_date(mine.id, DAY + timedelta(days=7))

    async with async_session_maker() as session:
        stored = await ClientService(session).get_client(owner, mine.id)
    assert stored.next_work_date == DAY


async def test_update_of_soft_deleted_client_is_not_found(owners):
    owner, _ = owners
    mine = await create_client(owner)
    async with async_session_maker() as session:
        await ClientService(session).delete_client(owner, mine.id)

    with pytest.raises(ClientNotFound):
        await SessionClientStore(owner).update_next_work_date(mine.id, DAY + timedelta(days=7))


@asynccontextmanager
async def broken_session():
    raise SQLAlchemyError("database is locked")
    yield


async def test_database_errors_become_store_unavailable():
    store = SessionClientStore(uuid.uuid4(), session_maker=broken_session)

    with pytest.raises(StoreUnavailable):
        await store.list_clients()
    with pytest.raises(StoreUnavailable):
        await store.get_client(uuid.uuid4())
    with pytest.raises(StoreUnavailable):
        await store.update_next_work_date(uuid.uuid4(), DAY)
