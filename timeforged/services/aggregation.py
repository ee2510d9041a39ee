"""Idle-gap time accounting over an ordered event stream.

Every summary uses the same rule: walk the events of one partition in
timestamp order and credit the gap to the previous event when it is shorter
than ``idle_timeout``. The first event of a partition and any gap at or
above the timeout credit nothing. Calendar days and hours are UTC.
"""
from __future__ import annotations

from collections import Counter
from datetime import date, datetime
from typing import Callable, Hashable, Iterable, Optional, Sequence, TypeVar

from timeforged.date_utils import ensure_utc
from timeforged.models import ActivityEvent, CategorySummary, DaySummary, HourlyActivity, Session

K = TypeVar("K", bound=Hashable)


def _percent(part: float, whole: float) -> float:
    return part / whole * 100.0 if whole > 0 else 0.0


def active_seconds(timestamps: Sequence[datetime], idle_timeout: float) -> float:
    """Sum of gaps shorter than ``idle_timeout`` between consecutive timestamps."""
    total = 0.0
    previous: Optional[datetime] = None
    for ts in timestamps:
        if previous is not None:
            gap = (ts - previous).total_seconds()
            if gap < idle_timeout:
                total += gap
        previous = ts
    return total


def _partition(
    events: Iterable[ActivityEvent],
    key: Callable[[ActivityEvent], Optional[K]],
) -> dict[K, list[datetime]]:
    groups: dict[K, list[datetime]] = {}
    for event in events:
        value = key(event)
        if value is None:
            continue
        groups.setdefault(value, []).append(ensure_utc(event.timestamp))
    for timestamps in groups.values():
        timestamps.sort()
    return groups


def total_seconds(events: Iterable[ActivityEvent], idle_timeout: float) -> float:
    timestamps = sorted(ensure_utc(e.timestamp) for e in events)
    return active_seconds(timestamps, idle_timeout)


def summarize_categories(
    events: Iterable[ActivityEvent],
    field: str,
    idle_timeout: float,
) -> list[CategorySummary]:
    """Per-value totals for ``field`` (``project``, ``language``...); absent values are skipped."""
    groups = _partition(events, lambda e: getattr(e, field))
    totals = {name: active_seconds(ts, idle_timeout) for name, ts in groups.items()}
    grand_total = sum(totals.values())
    ordered = sorted(totals.items(), key=lambda item: (-item[1], str(item[0])))
    return [
        CategorySummary(
            name=str(name),
            total_seconds=seconds,
            percent=_percent(seconds, grand_total),
        )
        for name, seconds in ordered
    ]


def summarize_days(events: Iterable[ActivityEvent], idle_timeout: float) -> list[DaySummary]:
    groups: dict[date, list[datetime]] = _partition(events, lambda e: ensure_utc(e.timestamp).date())
    totals = {day: active_seconds(ts, idle_timeout) for day, ts in groups.items()}
    grand_total = sum(totals.values())
    return [
        DaySummary(date=day, total_seconds=seconds, percent=_percent(seconds, grand_total))
        for day, seconds in sorted(totals.items())
    ]


def summarize_hours(events: Iterable[ActivityEvent], idle_timeout: float) -> list[HourlyActivity]:
    groups: dict[int, list[datetime]] = _partition(events, lambda e: ensure_utc(e.timestamp).hour)
    totals = {hour: active_seconds(ts, idle_timeout) for hour, ts in groups.items()}
    grand_total = sum(totals.values())
    return [
        HourlyActivity(
            hour=hour,
            total_seconds=totals[hour],
            event_count=len(groups[hour]),
            percent=_percent(totals[hour], grand_total),
        )
        for hour in sorted(groups)
    ]


def reconstruct_sessions(events: Sequence[ActivityEvent], idle_timeout: float) -> list[Session]:
    """Split the stream into sessions wherever the gap reaches ``idle_timeout``.

    A session's project is the most frequent one among its events (first seen
    wins a tie); a single-event session has zero duration.
    """
    ordered = sorted(events, key=lambda e: (ensure_utc(e.timestamp), e.id or 0))
    runs: list[list[ActivityEvent]] = []
    previous: Optional[datetime] = None
    for event in ordered:
        ts = ensure_utc(event.timestamp)
        if previous is None or (ts - previous).total_seconds() >= idle_timeout:
            runs.append([])
        runs[-1].append(event)
        previous = ts

    sessions = []
    for run in runs:
        start = ensure_utc(run[0].timestamp)
        end = ensure_utc(run[-1].timestamp)
        projects = Counter(e.project for e in run if e.project)
        sessions.append(
            Session(
                start=start,
                end=end,
                duration_seconds=(end - start).total_seconds(),
                project=projects.most_common(1)[0][0] if projects else None,
                event_count=len(run),
            )
        )
    return sessions
