"""
Centralized constants for the system.
Removes "magic strings" and gives strong typing to common values.
"""

from enum import Enum, unique


@unique
class ClientStatus(str, Enum):
    """Payment status of a client's current cycle."""

    PENDING = "Pending"
    PARTIAL = "Partial"
    COMPLETED = "Completed"


@unique
class HistoryType(str, Enum):
    """Kinds of entries in a client's history."""

    WORK = "Work"
    PAYMENT = "Payment"
    CYCLE = "Cycle"


@unique
class ScheduleOutcome(str, Enum):
    """Result of a single scheduling decision for a reminder."""

    SKIPPED = "skipped"
    ARMED = "armed"
    FIRED = "fired"
    DROPPED = "dropped"
    DEFERRED = "deferred"


DEFAULT_REMINDER_TIME = "09:00"
DEFAULT_USER_NAME = "Chachu"
MIN_PASSWORD_LENGTH = 6
