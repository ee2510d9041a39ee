"""Validation and normalization for externally submitted events."""
from __future__ import annotations

import logging
from pathlib import PurePath
from typing import Optional

from timeforged.classify import infer_language_from_path
from timeforged.errors import TimeForgedError, ValidationError
from timeforged.models import ActivityEvent, BatchEventRequest, BatchEventResponse, CreateEventRequest

logger = logging.getLogger("timeforged.events")

MAX_ENTITY_LENGTH = 1024
MAX_BATCH_SIZE = 100

_SKIP_DIRS = frozenset({"src", "lib", "bin", "test", "tests", "spec", "node_modules", ".git"})
_CONTAINER_DIRS = frozenset({
    "home", "Users", "projects", "repos", "workspace", "workSpace", "code", "dev", "src",
})


def infer_project_from_path(entity: str) -> Optional[str]:
    """Guess a project name by walking up the ancestors of ``entity``.

    A directory counts as a project when its parent is a typical container
    (``~``, ``projects``, ``repos``...) or the filesystem root. This is a
    heuristic: it can return None, or the user directory, for paths that
    plainly belong to a project.
    """
    for ancestor in PurePath(entity).parents:
        name = ancestor.name
        if not name:
            return None
        if name in _SKIP_DIRS:
            continue
        parent = ancestor.parent
        if parent.name in _CONTAINER_DIRS or parent.parent == parent:
            return name
    return None


def _validate(request: CreateEventRequest) -> None:
    if not request.entity:
        raise ValidationError("entity cannot be empty")
    if len(request.entity) > MAX_ENTITY_LENGTH:
        raise ValidationError("entity too long")


async def create_event(repo, user_id: str, request: CreateEventRequest) -> ActivityEvent:
    _validate(request)

    event = ActivityEvent(
        user_id=user_id,
        timestamp=request.timestamp,
        event_type=request.event_type,
        entity=request.entity,
        project=request.project or infer_project_from_path(request.entity),
        language=request.language or infer_language_from_path(request.entity),
        branch=request.branch,
        activity=request.activity,
        machine=request.machine,
        metadata=request.metadata,
    )
    event.id = await repo.insert(event)
    return event


async def create_batch(repo, user_id: str, request: BatchEventRequest) -> BatchEventResponse:
    if len(request.events) > MAX_BATCH_SIZE:
        raise ValidationError(f"batch size exceeds {MAX_BATCH_SIZE}")

    response = BatchEventResponse()
    for item in request.events:
        try:
            await create_event(repo, user_id, item)
        except TimeForgedError as e:
            logger.debug("Rejected batch event %r: %s", item.entity, e)
            response.rejected += 1
        else:
            response.accepted += 1
    return response
