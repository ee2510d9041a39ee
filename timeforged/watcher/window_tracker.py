"""Optional active-window poller.

Editors usually put the open file in the window title. Every tick we ask the
compositor (Hyprland) or X11 (xdotool) for the focused window title, pull a
file path out of it and, when the file lives under a watched root, record it
like any other captured change. Every failure just skips the tick.
"""
from __future__ import annotations

import asyncio
import json
import logging
import os
import re
from pathlib import Path
from typing import Awaitable, Callable, Optional

from timeforged.models import ActivityEvent
from timeforged.watcher.enrichment import EventEnricher
from timeforged.watcher.registry import canonicalize

logger = logging.getLogger("timeforged.watcher.window")

TitleQuery = Callable[[], Awaitable[Optional[str]]]
EventSink = Callable[[ActivityEvent, str], Awaitable[object]]

_ABSOLUTE_SPLIT = re.compile(r"[ \t—–]")
_HOME_SPLIT = re.compile(r"[ \t()]")


async def _run_tool(*argv: str, timeout: float = 2.0) -> Optional[str]:
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
        )
    except OSError:
        return None
    try:
        stdout, _ = await asyncio.wait_for(proc.communicate(), timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        logger.debug("%s timed out", argv[0])
        return None
    if proc.returncode != 0:
        return None
    return stdout.decode("utf-8", errors="replace")


async def fetch_active_window_title() -> Optional[str]:
    output = await _run_tool("hyprctl", "activewindow", "-j")
    if output:
        try:
            title = json.loads(output).get("title")
        except (json.JSONDecodeError, AttributeError):
            title = None
        if isinstance(title, str):
            return title

    output = await _run_tool("xdotool", "getactivewindow", "getwindowname")
    if output is not None:
        return output.strip()
    return None


def extract_file_path(title: str, home: Optional[str] = None) -> Optional[Path]:
    """Best-effort file path from an editor window title.

    Handles titles like ``/home/me/proj/main.rs - Editor`` and
    ``main.rs (~/proj) - NVIM`` style ``~/proj/main.rs``. Only tokens with
    a file extension count.
    """
    for part in _ABSOLUTE_SPLIT.split(title):
        token = part.strip()
        if token.startswith("/") and len(token) > 1:
            path = Path(token)
            if path.suffix:
                return path

    home = home if home is not None else os.environ.get("HOME")
    if not home:
        return None
    for part in _HOME_SPLIT.split(title):
        token = part.strip()
        if token.startswith("~/"):
            path = Path(home.rstrip("/") + "/" + token[2:])
            if path.suffix:
                return path
    return None


class WindowPoller:
    def __init__(
        self,
        enricher: EventEnricher,
        sink: EventSink,
        interval_secs: float = 15,
        query: TitleQuery = fetch_active_window_title,
    ):
        self.enricher = enricher
        self.sink = sink
        self.interval = float(interval_secs)
        self.query = query

    async def poll_once(self) -> Optional[ActivityEvent]:
        title = await self.query()
        if not title:
            return None
        path = extract_file_path(title)
        if path is None:
            return None
        path = canonicalize(path)
        match = self.enricher.registry.resolve(path)
        if match is None or match.project is None:
            return None
        event = await self.enricher.enrich(path)
        if event is not None:
            await self.sink(event, "window")
        return event

    async def run(self) -> None:
        logger.info("Window tracker polling every %.0fs", self.interval)
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.poll_once()
            except Exception as e:
                logger.debug("Window poll skipped: %s", e)
