import logging
import uuid
from typing import Dict, List

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Open WebSocket connections grouped by user."""

    def __init__(self):
        self.active_connections: Dict[uuid.UUID, List[WebSocket]] = {}

    async def connect(self, user_id: uuid.UUID, websocket: WebSocket):
        await websocket.accept()
        self.active_connections.setdefault(user_id, []).append(websocket)

    def disconnect(self, user_id: uuid.UUID, websocket: WebSocket):
        connections = self.active_connections.get(user_id, [])
        if websocket in connections:
            connections.remove(websocket)
        if not connections:
            self.active_connections.pop(user_id, None)

    def has_connections(self, user_id: uuid.UUID) -> bool:
        return bool(self.active_connections.get(user_id))

    async def send_to_user(self, user_id: uuid.UUID, payload: dict) -> int:
        """
        Send a JSON event to every socket of one user.
        Returns how many sockets received it.
        """
        delivered = 0
        # Iterate over a copy: failing sockets are removed while sending
        for connection in self.active_connections.get(user_id, [])[:]:
            try:
                await connection.send_json(payload)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping dead socket for user {user_id}: {e}")
                self.disconnect(user_id, connection)
        return delivered


manager = ConnectionManager()
