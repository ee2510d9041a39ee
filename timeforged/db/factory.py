"""Repository factory."""
from __future__ import annotations

import aiosqlite

from timeforged.db.repositories.events import SqliteEventRepository


def get_event_repository(db: aiosqlite.Connection) -> SqliteEventRepository:
    return SqliteEventRepository(db)
