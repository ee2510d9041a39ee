"""Report queries: totals, sessions and hour-of-day activity."""
from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta

from timeforged import config
from timeforged import observability as otel
from timeforged.date_utils import ensure_utc, utc_now
from timeforged.errors import ValidationError
from timeforged.models import ActivityEvent, HourlyActivity, ReportRequest, Session, Summary
from timeforged.services.aggregation import (
    reconstruct_sessions,
    summarize_categories,
    summarize_days,
    summarize_hours,
    total_seconds,
)

logger = logging.getLogger("timeforged.reports")


def resolve_range(request: ReportRequest) -> tuple[datetime, datetime]:
    """Concrete [from, to) bounds, defaulting to the trailing report window."""
    end = ensure_utc(request.end) if request.end else utc_now()
    start = (
        ensure_utc(request.start)
        if request.start
        else end - timedelta(days=config.REPORT_DEFAULT_DAYS)
    )
    if start > end:
        raise ValidationError("report range starts after it ends")
    return start, end


async def _load(repo, user_id: str, request: ReportRequest) -> tuple[datetime, datetime, list[ActivityEvent]]:
    start, end = resolve_range(request)
    events = await repo.list_events(user_id, start, end, project=request.project)
    return start, end, events


async def get_summary(repo, user_id: str, request: ReportRequest, idle_timeout: float) -> Summary:
    t0 = time.monotonic()
    with otel.start_span("reports.summary", {"project": request.project}):
        start, end, events = await _load(repo, user_id, request)
        summary = Summary(
            total_seconds=total_seconds(events, idle_timeout),
            start=start,
            end=end,
            projects=summarize_categories(events, "project", idle_timeout),
            languages=summarize_categories(events, "language", idle_timeout),
            days=summarize_days(events, idle_timeout),
        )
    elapsed = (time.monotonic() - t0) * 1000
    otel.record_report("summary", elapsed)
    logger.debug("Summary over %d events in %.1fms", len(events), elapsed)
    return summary


async def get_sessions(repo, user_id: str, request: ReportRequest, idle_timeout: float) -> list[Session]:
    t0 = time.monotonic()
    with otel.start_span("reports.sessions", {"project": request.project}):
        _, _, events = await _load(repo, user_id, request)
        sessions = reconstruct_sessions(events, idle_timeout)
    otel.record_report("sessions", (time.monotonic() - t0) * 1000)
    return sessions


async def get_hourly_activity(
    repo, user_id: str, request: ReportRequest, idle_timeout: float
) -> list[HourlyActivity]:
    t0 = time.monotonic()
    with otel.start_span("reports.hourly", {"project": request.project}):
        _, _, events = await _load(repo, user_id, request)
        hours = summarize_hours(events, idle_timeout)
    otel.record_report("hourly", (time.monotonic() - t0) * 1000)
    return hours
