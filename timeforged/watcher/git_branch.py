"""Per-directory git branch cache with TTL."""
from __future__ import annotations

import asyncio
import logging
import subprocess  # nosec B404 - fixed git argv, no shell
import time
from pathlib import Path
from typing import Callable, Optional

logger = logging.getLogger("timeforged.watcher.git")

BranchLookup = Callable[[Path], Optional[str]]


def lookup_git_branch(directory: Path, timeout: float = 5.0) -> Optional[str]:
    """Blocking `git rev-parse --abbrev-ref HEAD` in ``directory``."""
    try:
        result = subprocess.run(  # nosec B603 B607
            ["git", "rev-parse", "--abbrev-ref", "HEAD"],
            cwd=str(directory),
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.warning("git branch lookup failed for %s: %s", directory, e)
        return None

    if result.returncode != 0:
        logger.debug("%s is not a git work tree", directory)
        return None
    branch = result.stdout.strip()
    return branch or None


class GitBranchCache:
    """Caches the branch name per project directory.

    Negative results are cached too, so a non-repository directory spawns
    at most one git process per TTL. The lock only guards the map; the
    lookup itself runs in a worker thread with the lock released, so two
    callers racing on the same expired entry may both look it up.
    """

    def __init__(
        self,
        ttl_secs: float = 60,
        lookup: BranchLookup = lookup_git_branch,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = float(ttl_secs)
        self._lookup = lookup
        self._clock = clock
        self._cache: dict[Path, tuple[Optional[str], float]] = {}
        self._lock = asyncio.Lock()

    async def get_branch(self, directory: Path) -> Optional[str]:
        async with self._lock:
            cached = self._cache.get(directory)
            if cached is not None and self._clock() - cached[1] < self.ttl:
                return cached[0]

        try:
            branch = await asyncio.to_thread(self._lookup, directory)
        except Exception as e:
            logger.warning("git branch lookup raised for %s: %s", directory, e)
            branch = None

        async with self._lock:
            self._cache[directory] = (branch, self._clock())
        return branch

