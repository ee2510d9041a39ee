"""SQLite implementation of the append-only event store."""
from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Iterable, Optional

import aiosqlite

from timeforged.date_utils import parse_timestamp, to_storage, utc_now
from timeforged.errors import StorageError
from timeforged.models import ActivityEvent, ActivityType, EventType

logger = logging.getLogger("timeforged.db.events")

_INSERT = """
    INSERT INTO events (
        user_id, timestamp, event_type, entity, project, language,
        branch, activity, machine, metadata_json, created_at
    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


class SqliteEventRepository:
    """Append/query access to the `events` table."""

    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    @staticmethod
    def _params(event: ActivityEvent) -> tuple[Any, ...]:
        return (
            event.user_id,
            to_storage(event.timestamp),
            event.event_type.value,
            event.entity,
            event.project,
            event.language,
            event.branch,
            event.activity.value if event.activity else None,
            event.machine,
            json.dumps(event.metadata) if event.metadata is not None else None,
            to_storage(utc_now()),
        )

    async def insert(self, event: ActivityEvent) -> int:
        """Append one event and return its id."""
        try:
            async with self.db.execute(_INSERT, self._params(event)) as cursor:
                event_id = cursor.lastrowid
            await self.db.commit()
        except aiosqlite.Error as e:
            raise StorageError(f"failed to insert event: {e}") from e
        return int(event_id)

    async def insert_many(self, events: Iterable[ActivityEvent]) -> list[int]:
        ids: list[int] = []
        try:
            for event in events:
                async with self.db.execute(_INSERT, self._params(event)) as cursor:
                    ids.append(int(cursor.lastrowid))
            await self.db.commit()
        except aiosqlite.Error as e:
            raise StorageError(f"failed to insert events: {e}") from e
        return ids

    async def list_events(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
        project: Optional[str] = None,
    ) -> list[ActivityEvent]:
        """Events in the half-open range [start, end), ordered by (timestamp, id)."""
        query = """
            SELECT * FROM events
            WHERE user_id = ? AND timestamp >= ? AND timestamp < ?
        """
        params: list[Any] = [user_id, to_storage(start), to_storage(end)]
        if project:
            query += " AND project = ?"
            params.append(project)
        query += " ORDER BY timestamp ASC, id ASC"

        try:
            async with self.db.execute(query, params) as cur:
                rows = await cur.fetchall()
        except aiosqlite.Error as e:
            raise StorageError(f"failed to query events: {e}") from e
        return [self._row_to_event(row) for row in rows]

    async def count(self) -> int:
        async with self.db.execute("SELECT COUNT(*) FROM events") as cur:
            row = await cur.fetchone()
        return row[0] if row else 0

    @staticmethod
    def _row_to_event(row: aiosqlite.Row) -> ActivityEvent:
        metadata = None
        if row["metadata_json"]:
            try:
                metadata = json.loads(row["metadata_json"])
            except json.JSONDecodeError:
                logger.warning("Event %s has unreadable metadata", row["id"])
        return ActivityEvent(
            id=row["id"],
            user_id=row["user_id"],
            timestamp=parse_timestamp(row["timestamp"]),
            event_type=EventType.from_str_lossy(row["event_type"]),
            entity=row["entity"],
            project=row["project"],
            language=row["language"],
            branch=row["branch"],
            activity=ActivityType.from_str_lossy(row["activity"]) if row["activity"] else None,
            machine=row["machine"],
            metadata=metadata,
            created_at=parse_timestamp(row["created_at"]),
        )
