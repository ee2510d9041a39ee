"""Pydantic models for activity events and reports."""
from __future__ import annotations

from datetime import date as date_type, datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class EventType(str, Enum):
    FILE = "file"
    TERMINAL = "terminal"
    BROWSER = "browser"
    MEETING = "meeting"
    CUSTOM = "custom"

    @classmethod
    def from_str_lossy(cls, value: str | None) -> "EventType":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.CUSTOM


class ActivityType(str, Enum):
    CODING = "coding"
    BROWSING = "browsing"
    DEBUGGING = "debugging"
    BUILDING = "building"
    COMMUNICATING = "communicating"
    DESIGNING = "designing"
    OTHER = "other"

    @classmethod
    def from_str_lossy(cls, value: str | None) -> "ActivityType":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.OTHER


# ── Events ──────────────────────────────────────────────────────────

class ActivityEvent(BaseModel):
    id: Optional[int] = None
    user_id: str
    timestamp: datetime
    event_type: EventType = EventType.FILE
    entity: str = Field(min_length=1)
    project: Optional[str] = None
    language: Optional[str] = None
    branch: Optional[str] = None
    activity: Optional[ActivityType] = None
    machine: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
    created_at: Optional[datetime] = None


class CreateEventRequest(BaseModel):
    timestamp: datetime
    event_type: EventType = EventType.FILE
    entity: str = ""
    project: Optional[str] = None
    language: Optional[str] = None
    branch: Optional[str] = None
    activity: Optional[ActivityType] = None
    machine: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None


class BatchEventRequest(BaseModel):
    events: list[CreateEventRequest] = Field(default_factory=list)


class BatchEventResponse(BaseModel):
    accepted: int = 0
    rejected: int = 0


# ── Reports ─────────────────────────────────────────────────────────

class ReportRequest(BaseModel):
    start: Optional[datetime] = Field(default=None, alias="from")
    end: Optional[datetime] = Field(default=None, alias="to")
    project: Optional[str] = None

    model_config = {"populate_by_name": True}


class CategorySummary(BaseModel):
    name: str
    total_seconds: float = 0.0
    percent: float = 0.0


class DaySummary(BaseModel):
    date: date_type
    total_seconds: float = 0.0
    percent: float = 0.0


class HourlyActivity(BaseModel):
    hour: int
    total_seconds: float = 0.0
    event_count: int = 0
    percent: float = 0.0


class Session(BaseModel):
    start: datetime
    end: datetime
    duration_seconds: float = 0.0
    project: Optional[str] = None
    event_count: int = 0


class Summary(BaseModel):
    total_seconds: float = 0.0
    start: datetime = Field(alias="from")
    end: datetime = Field(alias="to")
    projects: list[CategorySummary] = Field(default_factory=list)
    languages: list[CategorySummary] = Field(default_factory=list)
    days: list[DaySummary] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


# ── Watch list ──────────────────────────────────────────────────────

class WatchedRoot(BaseModel):
    path: str
    added_at: datetime
