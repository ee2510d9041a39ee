"""OpenTelemetry + Prometheus fallback wiring for the TimeForged daemon."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any

from timeforged import config

logger = logging.getLogger("timeforged.observability")


_initialized = False
_enabled = False
_tracer: Any | None = None
_trace_provider: Any | None = None
_meter_provider: Any | None = None

_ingestion_counter: Any | None = None
_report_counter: Any | None = None
_report_latency_hist: Any | None = None

_prom_enabled = False
_prom_ingestion_counter: Any | None = None
_prom_report_counter: Any | None = None
_prom_report_latency_hist: Any | None = None


def _normalize_otlp_endpoint(base_endpoint: str, signal_path: str) -> str:
    endpoint = (base_endpoint or "").strip()
    if not endpoint:
        return ""
    if endpoint.endswith(signal_path):
        return endpoint
    if endpoint.endswith("/"):
        endpoint = endpoint[:-1]
    if endpoint.endswith("/v1"):
        return f"{endpoint}{signal_path[3:]}"
    return f"{endpoint}{signal_path}"


def _prom_labels(**values: str | None) -> dict[str, str]:
    return {key: (value or "").strip() or "unknown" for key, value in values.items()}


def initialize() -> None:
    global _initialized, _enabled, _tracer, _trace_provider, _meter_provider
    global _ingestion_counter, _report_counter, _report_latency_hist
    global _prom_enabled, _prom_ingestion_counter, _prom_report_counter, _prom_report_latency_hist

    if _initialized:
        return

    _initialized = True

    if not config.OTEL_ENABLED:
        logger.info("OpenTelemetry disabled (TF_OTEL_ENABLED=false)")
        return

    try:
        from opentelemetry import metrics, trace
        from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
        from opentelemetry.sdk.metrics import MeterProvider
        from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
    except ImportError as exc:
        logger.warning("OpenTelemetry dependencies unavailable: %s", exc)
        return

    traces_endpoint = _normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/traces")
    metrics_endpoint = _normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/metrics")
    service_name = config.OTEL_SERVICE_NAME or "timeforged"

    resource = Resource.create(
        {
            "service.name": service_name,
            "service.namespace": "timeforged",
        }
    )

    trace_provider = TracerProvider(resource=resource)
    trace_provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=traces_endpoint or None))
    )
    trace.set_tracer_provider(trace_provider)
    tracer = trace.get_tracer("timeforged.daemon")

    metric_reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=metrics_endpoint or None)
    )
    meter_provider = MeterProvider(resource=resource, metric_readers=[metric_reader])
    metrics.set_meter_provider(meter_provider)
    meter = metrics.get_meter("timeforged.daemon")

    _ingestion_counter = meter.create_counter(
        "timeforged_ingestion_events_total",
        unit="1",
        description="Captured changes by source and pipeline outcome",
    )
    _report_counter = meter.create_counter(
        "timeforged_reports_total",
        unit="1",
        description="Report computations by kind",
    )
    _report_latency_hist = meter.create_histogram(
        "timeforged_report_latency_ms",
        unit="ms",
        description="Time spent loading and aggregating a report",
    )

    _trace_provider = trace_provider
    _meter_provider = meter_provider
    _tracer = tracer
    _enabled = True

    if config.PROM_PORT > 0:
        try:
            from prometheus_client import Counter, Histogram, start_http_server

            start_http_server(config.PROM_PORT)
            _prom_ingestion_counter = Counter(
                "timeforged_ingestion_events_total",
                "Captured changes by source and pipeline outcome",
                ["source", "result", "project"],
            )
            _prom_report_counter = Counter(
                "timeforged_reports_total",
                "Report computations by kind",
                ["kind"],
            )
            _prom_report_latency_hist = Histogram(
                "timeforged_report_latency_ms",
                "Time spent loading and aggregating a report",
                ["kind"],
            )
            _prom_enabled = True
            logger.info("Prometheus fallback metrics server listening on port %s", config.PROM_PORT)
        except (ImportError, OSError, ValueError) as exc:
            logger.warning("Prometheus fallback not started: %s", exc)
            _prom_enabled = False

    logger.info(
        "OpenTelemetry initialized (service=%s endpoint=%s)",
        service_name,
        config.OTEL_ENDPOINT,
    )


def shutdown() -> None:
    global _enabled
    if not _initialized:
        return
    for provider in (_meter_provider, _trace_provider):
        if provider is None:
            continue
        try:
            provider.shutdown()
        except Exception as exc:  # noqa: BLE001
            logger.debug("Telemetry provider shutdown failed: %s", exc)
    _enabled = False


@contextmanager
def start_span(name: str, attributes: dict[str, Any] | None = None):
    if not _enabled or _tracer is None:
        yield None
        return
    with _tracer.start_as_current_span(name) as span:
        if attributes:
            for key, value in attributes.items():
                if value is not None:
                    span.set_attribute(key, value)
        yield span


def record_ingestion(source: str, result: str, *, project: str | None = None) -> None:
    """Count one capture outcome: stored, suppressed, ignored, unmatched, failed or dropped."""
    labels = {
        "source": source or "unknown",
        "result": result or "unknown",
        "project": project or "unknown",
    }
    if _enabled and _ingestion_counter is not None:
        _ingestion_counter.add(1, labels)
    if _prom_enabled and _prom_ingestion_counter is not None:
        prom = _prom_labels(source=source, result=result, project=project)
        _prom_ingestion_counter.labels(**prom).inc()


def record_report(kind: str, duration_ms: float) -> None:
    labels = {"kind": kind or "unknown"}
    if _enabled and _report_counter is not None:
        _report_counter.add(1, labels)
    if _enabled and _report_latency_hist is not None:
        _report_latency_hist.record(max(0.0, float(duration_ms)), labels)
    if _prom_enabled and _prom_report_counter is not None:
        _prom_report_counter.labels(**_prom_labels(kind=kind)).inc()
    if _prom_enabled and _prom_report_latency_hist is not None:
        _prom_report_latency_hist.labels(**_prom_labels(kind=kind)).observe(max(0.0, float(duration_ms)))
