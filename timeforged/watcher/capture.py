"""Bridge between the thread-bound watchdog observer and the async pipeline.

A dedicated thread owns the observer and is the only place that schedules
or unschedules watches. It blocks on a command queue; the event loop talks
to it through that queue only. Notifications flow back through a bounded
``asyncio.Queue`` and are dropped when it is full.
"""
from __future__ import annotations

import asyncio
import logging
import os
import queue
import threading
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from timeforged import observability as otel
from timeforged.date_utils import utc_now
from timeforged.watcher import RawChange, Unwatch, Watch, WatcherCommand
from timeforged.watcher.registry import WatchRegistry, canonicalize

logger = logging.getLogger("timeforged.watcher.capture")

_STOP = object()
_DROP_LOG_EVERY = 100
_PUT_RETRY_SECS = 0.5


class _ChangeForwarder(FileSystemEventHandler):
    """Forwards file creations, modifications and rename targets."""

    def __init__(self, offer: Callable[[str], None]):
        super().__init__()
        self._offer = offer

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._offer(os.fsdecode(event.src_path))

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._offer(os.fsdecode(event.src_path))

    def on_moved(self, event: FileSystemEvent) -> None:
        # Editors that save atomically write a temp file and rename it over the target.
        if not event.is_directory:
            self._offer(os.fsdecode(event.dest_path))


class ChangeCaptureBridge:
    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        registry: WatchRegistry,
        raw_queue_size: int = 1024,
        command_queue_size: int = 64,
        observer_factory: Callable[[], Any] = Observer,
    ):
        self._loop = loop
        self._registry = registry
        self._observer_factory = observer_factory
        self.changes: asyncio.Queue[RawChange] = asyncio.Queue(maxsize=raw_queue_size)
        self._commands: queue.Queue[Any] = queue.Queue(maxsize=command_queue_size)
        self._handler = _ChangeForwarder(self._offer)
        self._watches: dict[Path, Any] = {}
        self._thread: Optional[threading.Thread] = None
        self.dropped = 0

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, initial: Iterable[Watch] = ()) -> None:
        if self.is_running:
            logger.warning("Capture thread already running")
            return
        self._thread = threading.Thread(
            target=self._run, name="timeforged-watcher", daemon=True
        )
        self._thread.start()
        for command in initial:
            if not self._put_while_running(command):
                logger.warning("Capture thread exited before %s was subscribed", command.path)
                break

    async def submit(self, command: WatcherCommand) -> None:
        """Hand a command to the watcher thread without blocking the loop."""
        if not self.is_running:
            logger.warning("Capture thread not running, dropping %r", command)
            return
        try:
            self._commands.put_nowait(command)
        except queue.Full:
            if not await asyncio.to_thread(self._put_while_running, command):
                logger.warning("Capture thread exited, dropping %r", command)

    def stop(self, timeout: float = 5.0) -> None:
        if self._thread is None:
            return
        self._put_while_running(_STOP)
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning("Capture thread did not stop within %.1fs", timeout)
        self._thread = None

    def _put_while_running(self, item: Any) -> bool:
        # Only the capture thread drains the queue.
        while self.is_running:
            try:
                self._commands.put(item, timeout=_PUT_RETRY_SECS)
                return True
            except queue.Full:
                continue
        return False

    # ── Event loop side ────────────────────────────────────────────

    def _offer(self, path: str) -> None:
        """Called on observer threads; hops onto the event loop."""
        change = RawChange(path=Path(path), detected_at=utc_now())
        try:
            self._loop.call_soon_threadsafe(self._enqueue, change)
        except RuntimeError:
            # Loop already closed during shutdown.
            pass

    def _enqueue(self, change: RawChange) -> None:
        try:
            self.changes.put_nowait(change)
        except asyncio.QueueFull:
            self.dropped += 1
            otel.record_ingestion("file", "dropped")
            if self.dropped % _DROP_LOG_EVERY == 1:
                logger.debug(
                    "Change queue full, dropped %d notifications so far", self.dropped
                )

    # ── Watcher thread side ────────────────────────────────────────

    def _run(self) -> None:
        try:
            observer = self._observer_factory()
            observer.start()
        except Exception:
            logger.exception("Failed to start file observer, capture disabled")
            return
        logger.info("Capture thread started")
        try:
            while True:
                command = self._commands.get()
                if command is _STOP:
                    break
                if isinstance(command, Watch):
                    self._watch(observer, command)
                elif isinstance(command, Unwatch):
                    self._unwatch(observer, command.path)
                else:
                    logger.warning("Ignoring unknown watcher command: %r", command)
        finally:
            observer.stop()
            observer.join()
            self._watches.clear()
            logger.info("Capture thread stopped")

    def _watch(self, observer: Any, command: Watch) -> None:
        root = canonicalize(command.path)
        if root in self._watches:
            logger.debug("Already watching %s", root)
            return
        if not root.is_dir():
            logger.warning("Cannot watch %s: not an existing directory", root)
            return
        try:
            watch = observer.schedule(self._handler, str(root), recursive=True)
        except OSError as e:
            logger.warning("Failed to watch %s: %s", root, e)
            return
        self._watches[root] = watch
        self._registry.add(root, command.added_at)
        logger.info("Watching %s", root)

    def _unwatch(self, observer: Any, path: Path) -> None:
        root = canonicalize(path)
        # Drop from the registry first so in-flight notifications stop matching.
        self._registry.remove(root)
        watch = self._watches.pop(root, None)
        if watch is None:
            logger.debug("Unwatch of %s ignored: not watched", root)
            return
        try:
            observer.unschedule(watch)
        except KeyError:
            pass
        logger.info("Unwatched %s", root)
