# clientbook/cli.py
"""Command line entry point: `clientbook serve | remind | upcoming`."""
import argparse
import logging
import sys

from dotenv import load_dotenv

# --- Logging configuration ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - [Clientbook] - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


def build_parser() -> tuple[argparse.ArgumentParser, dict]:
    from .commands.remind import RemindCommand
    from .commands.serve import ServeCommand
    from .commands.upcoming import UpcomingCommand

    parser = argparse.ArgumentParser(prog="clientbook", description="Client and payment tracker")
    subparsers = parser.add_subparsers(dest="command")
    commands = {}
    for command_cls in (ServeCommand, RemindCommand, UpcomingCommand):
        subparser = subparsers.add_parser(command_cls.name, help=command_cls.help)
        commands[command_cls.name] = command_cls(subparser)
    return parser, commands


def main(argv=None) -> int:
    load_dotenv()
    parser, commands = build_parser()
    args = parser.parse_args(argv)
    if args.command not in commands:
        parser.print_help()
        return 2
    return commands[args.command].run(args) or 0


if __name__ == "__main__":
    sys.exit(main())
