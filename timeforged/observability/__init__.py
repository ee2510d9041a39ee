"""Observability helpers."""

from timeforged.observability.otel import (
    initialize,
    shutdown,
    start_span,
    record_ingestion,
    record_report,
)

__all__ = [
    "initialize",
    "shutdown",
    "start_span",
    "record_ingestion",
    "record_report",
]
