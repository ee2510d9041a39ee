"""Per-path debouncing of change notifications."""
from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Callable


class Debouncer:
    """Suppresses repeated notifications for the same path inside a window.

    Each path keeps its own last-emit clock, so two different files changing
    at the same instant both emit. ``cleanup()`` evicts entries idle for more
    than three windows.
    """

    def __init__(self, debounce_secs: float, clock: Callable[[], float] = time.monotonic):
        self.interval = float(debounce_secs)
        self._clock = clock
        self._last_seen: dict[Path, float] = {}
        self._lock = threading.Lock()

    def should_emit(self, path: Path) -> bool:
        now = self._clock()
        with self._lock:
            last = self._last_seen.get(path)
            if last is not None and now - last < self.interval:
                return False
            self._last_seen[path] = now
            return True

    def cleanup(self) -> int:
        """Drop stale entries and return how many were removed."""
        now = self._clock()
        cutoff = self.interval * 3
        with self._lock:
            stale = [p for p, last in self._last_seen.items() if now - last >= cutoff]
            for path in stale:
                del self._last_seen[path]
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._last_seen)
