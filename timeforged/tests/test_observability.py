import unittest
from unittest.mock import patch

from timeforged.observability import otel


class ObservabilityDisabledTests(unittest.TestCase):
    def test_initialize_is_a_noop_when_disabled(self) -> None:
        with patch.object(otel, "_initialized", False), patch.object(otel, "_enabled", False), patch.object(
            otel.config, "OTEL_ENABLED", False
        ):
            otel.initialize()
            self.assertFalse(otel._enabled)
            with otel.start_span("reports.summary", {"project": "app"}) as span:
                self.assertIsNone(span)
            otel.record_ingestion("file", "stored", project="app")
            otel.record_report("summary", 3.5)
            otel.shutdown()

    def test_otlp_endpoint_normalization(self) -> None:
        self.assertEqual(
            otel._normalize_otlp_endpoint("http://collector:4318", "/v1/traces"),
            "http://collector:4318/v1/traces",
        )
        self.assertEqual(
            otel._normalize_otlp_endpoint("http://collector:4318/v1/", "/v1/metrics"),
            "http://collector:4318/v1/metrics",
        )
        self.assertEqual(otel._normalize_otlp_endpoint("", "/v1/traces"), "")


if __name__ == "__main__":
    unittest.main()
