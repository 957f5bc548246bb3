# clientbook/db/engine.py
"""
SQLModel database engine and session management.
The URL comes from Settings (DATABASE_URL), defaulting to a local SQLite file.
SQLite connections run in WAL mode with foreign keys enforced.
"""

from collections.abc import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.config import settings

DATABASE_URL = settings.resolved_database_url()

# Detect dialect from URL
_is_sqlite = DATABASE_URL.startswith("sqlite")

_connect_args = {"check_same_thread": False} if _is_sqlite else {}
engine = create_async_engine(DATABASE_URL, echo=False, connect_args=_connect_args)


# Activate WAL mode only for SQLite to improve concurrency
if _is_sqlite:
    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL;")
        cursor.execute("PRAGMA foreign_keys=ON;")
        cursor.close()

async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """One AsyncSession per request; closed when the request ends."""
    async with async_session_maker() as session:
        yield session


async def create_db_and_tables():
    """Create users, clients, client_history and payments if missing."""
    # Registers every table on SQLModel.metadata
    from .. import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def drop_db_and_tables():
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
