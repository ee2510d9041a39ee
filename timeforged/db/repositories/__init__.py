"""Repository package for database access."""

from .events import SqliteEventRepository

__all__ = [
    "SqliteEventRepository",
]
