"""File-change capture and enrichment pipeline."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class Watch:
    path: Path
    # Persisted watch-list timestamp; the registry stamps now when absent.
    added_at: Optional[datetime] = None


@dataclass(frozen=True)
class Unwatch:
    path: Path


WatcherCommand = Watch | Unwatch


@dataclass(frozen=True)
class RawChange:
    """A single OS change notification; never persisted."""

    path: Path
    detected_at: datetime


__all__ = ["Watch", "Unwatch", "WatcherCommand", "RawChange"]
