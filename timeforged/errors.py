"""Error types raised by the service layer."""
from __future__ import annotations


class TimeForgedError(Exception):
    """Base class for TimeForged errors."""


class ValidationError(TimeForgedError):
    """Input rejected before it reached storage."""


class NotFoundError(TimeForgedError):
    """Referenced entity does not exist."""


class StorageError(TimeForgedError):
    """The event store failed to append or query."""
