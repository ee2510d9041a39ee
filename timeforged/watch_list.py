"""Persisted list of watched directories."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError as ModelValidationError

from timeforged.date_utils import utc_now
from timeforged.models import WatchedRoot

logger = logging.getLogger("timeforged")


class WatchListStore:
    """JSON-backed watch list, rewritten after every successful change."""

    def __init__(self, storage_path: Path):
        self.storage_path = storage_path
        self._roots: dict[str, WatchedRoot] = {}
        self._load()

    def _load(self):
        """Load the watch list from JSON storage."""
        if not self.storage_path.exists():
            return

        try:
            content = self.storage_path.read_text()
            if not content.strip():
                return
            data = json.loads(content)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load watch list file: {e}")
            return

        for entry in data.get("dirs", []) if isinstance(data, dict) else []:
            try:
                root = WatchedRoot(**entry)
            except (TypeError, ModelValidationError) as e:
                logger.error(f"Skipping malformed watch list entry: {e}")
                continue
            self._roots[root.path] = root

    def _save(self):
        data = {"dirs": [r.model_dump(mode="json") for r in self._roots.values()]}
        self.storage_path.parent.mkdir(parents=True, exist_ok=True)
        self.storage_path.write_text(json.dumps(data, indent=2))

    def paths(self) -> list[Path]:
        return [Path(r.path) for r in self._roots.values()]

    def add(self, path: Path) -> Optional[WatchedRoot]:
        """Persist ``path``; returns the new entry, or None if already listed."""
        key = str(path)
        if key in self._roots:
            return None
        root = WatchedRoot(path=key, added_at=utc_now())
        self._roots[key] = root
        self._save()
        return root

    def remove(self, path: Path) -> bool:
        if self._roots.pop(str(path), None) is None:
            return False
        self._save()
        return True

    def list(self) -> "list[WatchedRoot]":
        return [r for r in self._roots.values()]
