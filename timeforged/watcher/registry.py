"""Registry of watched root directories."""
from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from timeforged.date_utils import utc_now
from timeforged.models import WatchedRoot


def canonicalize(path: str | os.PathLike[str]) -> Path:
    """Absolute, symlink-resolved form of ``path`` (need not exist)."""
    return Path(path).expanduser().resolve(strict=False)


@dataclass(frozen=True)
class ProjectMatch:
    root: Path
    project: Optional[str]
    project_dir: Path


class WatchRegistry:
    """Thread-safe set of roots currently under observation.

    Read once per incoming change; written only by explicit watch/unwatch.
    """

    def __init__(self) -> None:
        self._roots: dict[Path, datetime] = {}
        self._lock = threading.Lock()

    def add(self, path: Path, added_at: Optional[datetime] = None) -> bool:
        root = canonicalize(path)
        with self._lock:
            if root in self._roots:
                return False
            self._roots[root] = added_at or utc_now()
            return True

    def remove(self, path: Path) -> bool:
        root = canonicalize(path)
        with self._lock:
            return self._roots.pop(root, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._roots)

    def roots(self) -> list[Path]:
        with self._lock:
            return list(self._roots)

    def snapshot(self) -> list[WatchedRoot]:
        with self._lock:
            return [
                WatchedRoot(path=str(root), added_at=added_at)
                for root, added_at in self._roots.items()
            ]

    def resolve(self, path: Path) -> Optional[ProjectMatch]:
        """Match ``path`` against the first registered root containing it.

        The project is the first path component below the root, so a file
        sitting directly in the root names itself. Hidden components yield
        no project. Branches are looked up in the project directory, or in
        the root for root-level files.
        """
        for root in self.roots():
            try:
                relative = path.relative_to(root)
            except ValueError:
                continue
            parts = relative.parts
            if not parts or parts[0].startswith("."):
                return ProjectMatch(root=root, project=None, project_dir=root)
            first = parts[0]
            project_dir = root / first if len(parts) >= 2 else root
            return ProjectMatch(root=root, project=first, project_dir=project_dir)
        return None
