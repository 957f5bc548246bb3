# clientbook/reminders/sessions.py
"""
One ReminderScheduler per logged-in user, shared by all of that user's open
sockets (reference counted). The last socket to close stops the scheduler.
"""
import asyncio
import logging
import uuid
from typing import Callable, Dict, Optional

from ..core.websockets import ConnectionManager, manager as default_manager
from .scheduler import ReminderScheduler
from .sinks import WebSocketSink
from .store import SessionClientStore

logger = logging.getLogger(__name__)


def _default_factory(user_id: uuid.UUID, connections: ConnectionManager) -> ReminderScheduler:
    return ReminderScheduler(SessionClientStore(user_id), WebSocketSink(connections, user_id))


class ReminderSessions:
    def __init__(
        self,
        connections: ConnectionManager = default_manager,
        factory: Optional[Callable[[uuid.UUID, ConnectionManager], ReminderScheduler]] = None,
    ):
        self.connections = connections
        self.factory = factory or _default_factory
        self._sessions: Dict[uuid.UUID, dict] = {}  # user_id -> {scheduler, ref_count}
        self._lock = asyncio.Lock()

    def get(self, user_id: uuid.UUID) -> Optional[ReminderScheduler]:
        info = self._sessions.get(user_id)
        return info["scheduler"] if info else None

    async def acquire(self, user_id: uuid.UUID, token: Optional[str] = None) -> ReminderScheduler:
        async with self._lock:
            info = self._sessions.get(user_id)
            if info is None:
                scheduler = self.factory(user_id, self.connections)
                await scheduler.start(token)
                info = {"scheduler": scheduler, "ref_count": 0}
                self._sessions[user_id] = info
                logger.info(f"[ReminderSessions] Scheduler started for user {user_id}")
            info["ref_count"] += 1
            return info["scheduler"]

    async def release(self, user_id: uuid.UUID) -> None:
        async with self._lock:
            info = self._sessions.get(user_id)
            if info is None:
                return
            info["ref_count"] -= 1
            if info["ref_count"] <= 0:
                del self._sessions[user_id]
                await info["scheduler"].stop()
                logger.info(f"[ReminderSessions] Scheduler stopped for user {user_id}")

    async def stop_all(self) -> None:
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for info in sessions:
            await info["scheduler"].stop()


reminder_sessions = ReminderSessions()
