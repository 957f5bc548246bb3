import asyncio
import logging

from rich.console import Console

from ..core.config import settings
from ..core.exceptions import StoreUnavailable
from ..reminders.scheduler import ReminderScheduler
from ..reminders.sinks import ConsoleSink
from ..reminders.store import ApiClientStore
from .base import BaseCommand, add_credentials

logger = logging.getLogger(__name__)


class RemindCommand(BaseCommand):
    name = "remind"
    help = "Log in and ring the terminal when work is due (Ctrl-C to stop)"

    def __init__(self, parser, console: Console | None = None):
        self.console = console or Console()
        super().__init__(parser)

    def add_arguments(self):
        add_credentials(self.parser, settings.api_url)

    async def _run(self, args):
        token = await ApiClientStore.login(args.api_url, args.email, args.password)
        scheduler = ReminderScheduler(ApiClientStore(args.api_url), ConsoleSink(self.console))
        stats = await scheduler.start(token)
        self.console.print(
            f"[green]✅ Reminder agent running[/green] for {args.email} "
            f"({stats.get('armed', 0)} armed, {stats.get('fired', 0)} fired now)"
        )
        try:
            await asyncio.Event().wait()
        finally:
            await scheduler.stop()

    def run(self, args):
        try:
            asyncio.run(self._run(args))
        except KeyboardInterrupt:
            self.console.print("👋 Reminder agent stopped")
        except PermissionError as e:
            self.console.print(f"[red]❌ {e}[/red]")
            return 1
        except StoreUnavailable as e:
            logger.error(f"API unavailable: {e}")
            self.console.print(f"[red]❌ {e}[/red]")
            return 1
        return 0
