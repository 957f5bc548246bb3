# clientbook/reminders/sinks.py
"""
Notification sinks: where a fired reminder ends up.

A sink either delivers (visual + audible) or raises NotificationUnavailable;
the scheduler logs the failure and carries on with its bookkeeping.
"""
import abc
import logging
import uuid
from typing import Optional

from rich.console import Console
from rich.panel import Panel

from ..core.exceptions import NotificationUnavailable
from .models import ReminderClient

logger = logging.getLogger(__name__)

REMINDER_TITLE = "🔔 Work Reminder"


def build_reminder_body(client: ReminderClient) -> str:
    """Notification text: name, work description and amount due."""
    return (
        f"{client.name}\n"
        f"{client.work_description or 'Work due today'}\n"
        f"Amount: ₹{client.total_amount:,.0f}"
    )


class NotificationSink(abc.ABC):
    @abc.abstractmethod
    async def notify(self, client: ReminderClient) -> None:
        ...


class WebSocketSink(NotificationSink):
    """Pushes a `reminder` event to every open socket of the client's owner."""

    def __init__(self, manager, user_id: uuid.UUID):
        self.manager = manager
        self.user_id = user_id

    async def notify(self, client: ReminderClient) -> None:
        payload = {
            "type": "reminder",
            "title": REMINDER_TITLE,
            "body": build_reminder_body(client),
            "client_id": str(client.id),
            "next_work_date": client.next_work_date.isoformat() if client.next_work_date else None,
            "sound": True,
        }
        delivered = await self.manager.send_to_user(self.user_id, payload)
        if not delivered:
            raise NotificationUnavailable(f"No open connection for user {self.user_id}")


class ConsoleSink(NotificationSink):
    """Terminal rendering with a bell, for the `clientbook remind` agent."""

    def __init__(self, console: Optional[Console] = None, bell: bool = True):
        self.console = console or Console()
        self.bell = bell

    async def notify(self, client: ReminderClient) -> None:
        if self.console.quiet:
            raise NotificationUnavailable("Console output is muted")
        self.console.print(
            Panel(build_reminder_body(client), title=REMINDER_TITLE, border_style="yellow")
        )
        if self.bell:
            self.console.bell()
