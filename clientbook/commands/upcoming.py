import asyncio

from rich.console import Console
from rich.table import Table

from ..core.config import settings
from ..core.exceptions import StoreUnavailable
from ..reminders.store import ApiClientStore
from ..reminders.utils import format_reminder_datetime, local_now
from .base import BaseCommand, add_credentials


class UpcomingCommand(BaseCommand):
    name = "upcoming"
    help = "List reminders due between now and the end of tomorrow"

    def __init__(self, parser, console: Console | None = None):
        self.console = console or Console()
        super().__init__(parser)

    def add_arguments(self):
        add_credentials(self.parser, settings.api_url)

    async def _fetch(self, args):
        token = await ApiClientStore.login(args.api_url, args.email, args.password)
        store = ApiClientStore(args.api_url, token)
        await store.open()
        try:
            return await store.list_upcoming()
        finally:
            await store.close()

    def build_table(self, clients, now) -> Table:
        table = Table(title="Upcoming reminders")
        table.add_column("Client", style="bold")
        table.add_column("Work")
        table.add_column("Reminder")
        table.add_column("Amount", justify="right")
        for client in clients:
            table.add_row(
                client.name,
                client.work_description or "-",
                format_reminder_datetime(client.next_work_date, client.reminder_time, now),
                f"₹{client.total_amount:,.0f}",
            )
        return table

    def run(self, args):
        try:
            clients = asyncio.run(self._fetch(args))
        except (PermissionError, StoreUnavailable) as e:
            self.console.print(f"[red]❌ {e}[/red]")
            return 1
        if not clients:
            self.console.print("No upcoming reminders.")
            return 0
        self.console.print(self.build_table(clients, local_now()))
        return 0
