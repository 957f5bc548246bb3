# clientbook/core/exceptions.py
"""
Domain exceptions shared by services, API routers and the reminder scheduler.

They subclass the builtin errors the API layer already translates
(ValueError -> 400, FileNotFoundError -> 404).
"""


class InvalidAmount(ValueError):
    """Payment amount is <= 0 or exceeds the remaining balance."""


class ClientNotFound(FileNotFoundError):
    """Client does not exist or belongs to another user."""


class NotificationUnavailable(RuntimeError):
    """The notification sink has no way to deliver the alert."""


class StoreUnavailable(RuntimeError):
    """A persistence call made by the reminder scheduler failed."""
