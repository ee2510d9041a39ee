"""Watcher service: capture thread, ingestion pipeline and window poller.

Pipeline per captured change: ignore filter, per-path debounce, enrichment
against the watch registry, append to the event store. Every stage may drop
the change; nothing here raises into the event loop.
"""
from __future__ import annotations

import asyncio
import logging
import os
import time
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

from watchdog.observers import Observer

from timeforged import observability as otel
from timeforged.classify import is_ignored_path
from timeforged.config import WatcherSettings
from timeforged.errors import NotFoundError, StorageError, ValidationError
from timeforged.models import ActivityEvent
from timeforged.watch_list import WatchListStore
from timeforged.watcher import RawChange, Unwatch, Watch
from timeforged.watcher.capture import ChangeCaptureBridge
from timeforged.watcher.debounce import Debouncer
from timeforged.watcher.enrichment import EventEnricher
from timeforged.watcher.git_branch import BranchLookup, GitBranchCache, lookup_git_branch
from timeforged.watcher.registry import WatchRegistry, canonicalize
from timeforged.watcher.window_tracker import TitleQuery, WindowPoller, fetch_active_window_title

logger = logging.getLogger("timeforged.watcher")


class WatcherService:
    """Owns the capture bridge and the async tasks that consume it."""

    def __init__(
        self,
        repo,
        settings: WatcherSettings,
        user_id: str,
        watch_list: WatchListStore,
        registry: Optional[WatchRegistry] = None,
        *,
        machine: Optional[str] = None,
        branch_lookup: BranchLookup = lookup_git_branch,
        title_query: TitleQuery = fetch_active_window_title,
        observer_factory: Callable[[], Any] = Observer,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.repo = repo
        self.settings = settings
        self.watch_list = watch_list
        self.registry = registry or WatchRegistry()
        self.debouncer = Debouncer(settings.debounce_secs, clock=clock)
        self.branch_cache = GitBranchCache(settings.branch_ttl_secs, lookup=branch_lookup, clock=clock)
        self.enricher = EventEnricher(self.registry, self.branch_cache, user_id, machine)
        self.poller = WindowPoller(
            self.enricher, self._store, settings.window_poll_secs, query=title_query
        )
        self._observer_factory = observer_factory
        self._bridge: Optional[ChangeCaptureBridge] = None
        self._tasks: list[asyncio.Task] = []
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self, initial_dirs: Optional[Iterable[Path]] = None) -> None:
        """Start capture for ``initial_dirs`` (defaults to the persisted watch list)."""
        if self._running:
            logger.warning("Watcher service already running")
            return

        if initial_dirs is not None:
            initial = [Watch(Path(d)) for d in initial_dirs]
        else:
            initial = [Watch(Path(r.path), r.added_at) for r in self.watch_list.list()]
        self._bridge = ChangeCaptureBridge(
            asyncio.get_running_loop(),
            self.registry,
            raw_queue_size=self.settings.raw_queue_size,
            command_queue_size=self.settings.command_queue_size,
            observer_factory=self._observer_factory,
        )
        self._bridge.start(initial)
        self._running = True

        self._tasks = [
            asyncio.create_task(self._ingest_loop(self._bridge.changes), name="tf-ingest"),
            asyncio.create_task(self._cleanup_loop(), name="tf-debounce-cleanup"),
        ]
        if self.settings.enable_window_tracker:
            self._tasks.append(asyncio.create_task(self.poller.run(), name="tf-window-poller"))
        else:
            logger.debug("Window tracker disabled")
        logger.info(f"Watcher service started with {len(initial)} initial directories")

    async def stop(self) -> None:
        self._running = False
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks = []

        if self._bridge is not None:
            dropped = self._bridge.dropped
            await asyncio.to_thread(self._bridge.stop)
            if dropped:
                logger.info(f"Dropped {dropped} notifications on a full change queue")
            self._bridge = None
        logger.info("Watcher service stopped")

    # ── Boundary commands ──────────────────────────────────────────

    async def watch(self, path: str | os.PathLike[str]) -> str:
        """Register a directory for observation and persist it."""
        try:
            root = Path(path).expanduser().resolve(strict=True)
        except (OSError, RuntimeError) as e:
            raise ValidationError(f"invalid path: {e}") from e
        if not root.is_dir():
            raise ValidationError(f"{root} is not a directory")

        entry = self.watch_list.add(root)
        if entry is None:
            return f"already watching {root}"
        if self._bridge is not None:
            await self._bridge.submit(Watch(root, entry.added_at))
        else:
            self.registry.add(root, entry.added_at)
        return f"now watching {root}"

    async def unwatch(self, path: str | os.PathLike[str]) -> str:
        root = canonicalize(path)
        if not self.watch_list.remove(root):
            raise NotFoundError(f"{root} is not being watched")
        if self._bridge is not None:
            await self._bridge.submit(Unwatch(root))
        else:
            self.registry.remove(root)
        return f"stopped watching {root}"

    # ── Pipeline ───────────────────────────────────────────────────

    async def handle_change(self, change: RawChange) -> Optional[ActivityEvent]:
        """Run one captured change through filter, debounce, enrichment and append."""
        path = change.path
        if is_ignored_path(path, self.settings.ignore_patterns):
            otel.record_ingestion("file", "ignored")
            return None
        if not self.debouncer.should_emit(path):
            logger.debug(f"Debounced {path}")
            otel.record_ingestion("file", "suppressed")
            return None

        try:
            event = await self.enricher.enrich(path)
        except ValueError as e:
            logger.warning(f"Failed to enrich {path}: {e}")
            otel.record_ingestion("file", "failed")
            return None
        if event is None:
            otel.record_ingestion("file", "unmatched")
            return None

        stored = await self._store(event, "file")
        return event if stored else None

    async def _store(self, event: ActivityEvent, source: str) -> bool:
        try:
            event.id = await self.repo.insert(event)
        except StorageError as e:
            logger.warning(f"Failed to store event for {event.entity}: {e}")
            otel.record_ingestion(source, "failed", project=event.project)
            return False
        otel.record_ingestion(source, "stored", project=event.project)
        return True

    async def _ingest_loop(self, changes: asyncio.Queue) -> None:
        while True:
            change = await changes.get()
            try:
                with otel.start_span("watcher.ingest", {"path": str(change.path)}):
                    await self.handle_change(change)
            except Exception as e:
                logger.error(f"Error ingesting change for {change.path}: {e}")

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self.settings.cleanup_interval_secs)
            removed = self.debouncer.cleanup()
            if removed:
                logger.debug(f"Evicted {removed} stale debounce entries")
