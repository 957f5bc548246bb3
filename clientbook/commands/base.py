import abc
import argparse


class BaseCommand(abc.ABC):
    """Base class for clientbook subcommands."""

    name = "base"
    help = "Base command"

    def __init__(self, parser: argparse.ArgumentParser):
        self.parser = parser
        self.add_arguments()

    def add_arguments(self):
        """Override to add arguments to the subparser."""
        pass

    @abc.abstractmethod
    def run(self, args: argparse.Namespace):
        """Command entry point."""
        pass


def add_credentials(parser: argparse.ArgumentParser, default_api_url: str):
    parser.add_argument("--email", required=True, help="Account email")
    parser.add_argument("--password", required=True, help="Account password")
    parser.add_argument(
        "--api-url", default=default_api_url, help=f"API base URL (default: {default_api_url})"
    )
