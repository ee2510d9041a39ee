"""TimeForged configuration."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_list(name: str) -> tuple[str, ...]:
    value = os.getenv(name)
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


HOME = Path.home()
DATA_DIR = HOME / ".local" / "share" / "timeforged"
CONFIG_DIR = HOME / ".config" / "timeforged"

# Storage
DB_PATH = Path(os.getenv("TF_DB_PATH", str(DATA_DIR / "timeforged.db")))
WATCH_LIST_PATH = Path(os.getenv("TF_WATCH_LIST_PATH", str(CONFIG_DIR / "watched.json")))

# Identity stamped on captured events
USER_ID = os.getenv("TF_USER_ID", "local")

# Reports
IDLE_TIMEOUT = _env_int("TF_IDLE_TIMEOUT", 300)
REPORT_DEFAULT_DAYS = _env_int("TF_REPORT_DEFAULT_DAYS", 7)

# Watcher
DEBOUNCE_SECS = _env_int("TF_DEBOUNCE_SECS", 30)
WINDOW_POLL_SECS = _env_int("TF_WINDOW_POLL_SECS", 15)
ENABLE_WINDOW_TRACKER = _env_bool("TF_ENABLE_WINDOW_TRACKER", False)
IGNORE_PATTERNS = _env_list("TF_IGNORE_PATTERNS")
GIT_BRANCH_TTL = _env_int("TF_GIT_BRANCH_TTL", 60)
RAW_CHANGE_QUEUE_SIZE = _env_int("TF_RAW_CHANGE_QUEUE_SIZE", 1024)
COMMAND_QUEUE_SIZE = _env_int("TF_COMMAND_QUEUE_SIZE", 64)
DEBOUNCE_CLEANUP_SECS = _env_int("TF_DEBOUNCE_CLEANUP_SECS", 300)

LOG_LEVEL = os.getenv("TF_LOG_LEVEL", "INFO").upper()

# Observability
OTEL_ENABLED = _env_bool("TF_OTEL_ENABLED", False)
OTEL_ENDPOINT = os.getenv("TF_OTEL_ENDPOINT", "http://localhost:4318")
OTEL_SERVICE_NAME = os.getenv("TF_OTEL_SERVICE_NAME", "timeforged")
PROM_PORT = _env_int("TF_PROM_PORT", 0)


@dataclass(frozen=True)
class WatcherSettings:
    """Immutable watcher tuning, captured once at startup."""

    debounce_secs: int = 30
    window_poll_secs: int = 15
    enable_window_tracker: bool = False
    ignore_patterns: tuple[str, ...] = ()
    branch_ttl_secs: int = 60
    raw_queue_size: int = 1024
    command_queue_size: int = 64
    cleanup_interval_secs: int = 300

    @classmethod
    def from_config(cls) -> "WatcherSettings":
        return cls(
            debounce_secs=max(0, DEBOUNCE_SECS),
            window_poll_secs=max(1, WINDOW_POLL_SECS),
            enable_window_tracker=ENABLE_WINDOW_TRACKER,
            ignore_patterns=IGNORE_PATTERNS,
            branch_ttl_secs=max(0, GIT_BRANCH_TTL),
            raw_queue_size=max(1, RAW_CHANGE_QUEUE_SIZE),
            command_queue_size=max(1, COMMAND_QUEUE_SIZE),
            cleanup_interval_secs=max(1, DEBOUNCE_CLEANUP_SECS),
        )
