"""Turns a captured path into a normalized activity event."""
from __future__ import annotations

import functools
import logging
import os
import socket
from pathlib import Path
from typing import Optional

from timeforged.classify import infer_language_from_path
from timeforged.date_utils import utc_now
from timeforged.models import ActivityEvent, ActivityType, EventType
from timeforged.watcher.git_branch import GitBranchCache
from timeforged.watcher.registry import WatchRegistry

logger = logging.getLogger("timeforged.watcher")


@functools.lru_cache(maxsize=1)
def machine_identity() -> Optional[str]:
    """Host name of this machine, resolved once per process."""
    for var in ("HOSTNAME", "HOST"):
        value = os.environ.get(var, "").strip()
        if value:
            return value
    try:
        return socket.gethostname().strip() or None
    except OSError:
        return None


class EventEnricher:
    def __init__(
        self,
        registry: WatchRegistry,
        branch_cache: GitBranchCache,
        user_id: str,
        machine: Optional[str] = None,
    ):
        self.registry = registry
        self.branch_cache = branch_cache
        self.user_id = user_id
        self.machine = machine if machine is not None else machine_identity()

    async def enrich(self, path: Path) -> Optional[ActivityEvent]:
        """Build an event for ``path``, or None when no watched root contains it.

        A path that fell out of scope (its root was unwatched after the
        notification fired) is dropped rather than attributed elsewhere.
        """
        match = self.registry.resolve(path)
        if match is None:
            logger.debug("No watched root for %s, dropping", path)
            return None

        entity = str(path)
        branch = await self.branch_cache.get_branch(match.project_dir)
        return ActivityEvent(
            user_id=self.user_id,
            timestamp=utc_now(),
            event_type=EventType.FILE,
            entity=entity,
            project=match.project,
            language=infer_language_from_path(entity),
            branch=branch,
            activity=ActivityType.CODING,
            machine=self.machine,
        )
