"""
Test metrics collection, structured logging and request ids.
"""
import re

import pytest

from bagr.utils.ids import extract_timestamp_from_request_id, generate_request_id
from bagr.utils.logging import get_logger
from bagr.utils.metrics import MetricsCollector, get_metrics


class TestMetricsCollector:
    def test_counters(self):
        metrics = MetricsCollector()

        metrics.increment_request_count()
        metrics.increment_source_count("url")
        metrics.increment_source_count("url")
        metrics.increment_failure_count("PhotoDecodeError")

        assert metrics.get_counters() == {
            "photo_requests_total": 1,
            "photo_source_url_total": 2,
            "failed_total_PhotoDecodeError": 1
        }

    def test_timing_stats(self):
        metrics = MetricsCollector()
        for ms in (10, 20, 30, 40, 50):
            metrics.record_timing("crop", ms)

        stats = metrics.get_timing_stats()["crop_duration_ms"]

        assert stats["count"] == 5
        assert stats["mean"] == 30
        assert stats["p50"] == 30
        assert stats["p95"] == pytest.approx(48)
        assert (stats["min"], stats["max"]) == (10, 50)

    def test_timed_records_even_on_error(self):
        metrics = MetricsCollector()

        with metrics.timed("decode"):
            pass
        with pytest.raises(RuntimeError):
            with metrics.timed("decode"):
                raise RuntimeError("decode blew up")

        stats = metrics.get_timing_stats()["decode_duration_ms"]
        assert stats["count"] == 2
        assert stats["min"] >= 0

    def test_disc_radius_stats_empty(self):
        assert MetricsCollector().get_disc_radius_stats() == {}

    def test_summary_and_reset(self):
        metrics = MetricsCollector()
        metrics.record_disc_radius_ratio(0.8)
        metrics.increment_crop_fallback_count()

        summary = metrics.get_summary()
        assert summary["disc_radius_stats"]["mean"] == 0.8
        assert summary["counters"]["crop_fallback_total"] == 1

        metrics.reset()
        assert metrics.get_counters() == {}
        assert metrics.get_disc_radius_stats() == {}

    def test_global_instance(self):
        assert get_metrics() is get_metrics()


def test_request_id_format():
    request_id = generate_request_id()

    assert re.fullmatch(r"disc-\d{14}-[0-9a-f]{8}", request_id)
    assert extract_timestamp_from_request_id(request_id) == request_id.split("-")[1]


def test_request_ids_are_unique():
    assert len({generate_request_id() for _ in range(100)}) == 100


def test_foreign_request_id_has_no_timestamp():
    assert extract_timestamp_from_request_id("seg-20240101-abc") == ""


class TestStructuredLogger:
    @pytest.fixture
    def records(self):
        from loguru import logger

        get_logger()  # configures sinks, which replaces any existing ones
        captured = []
        sink_id = logger.add(lambda message: captured.append(message.record), level="DEBUG")
        yield captured
        logger.remove(sink_id)

    def test_extra_is_bound(self, records):
        get_logger().warning("Crop failed", extra={"request_id": "disc-1-abc"})

        record = records[-1]
        assert record["level"].name == "WARNING"
        assert record["extra"]["request_id"] == "disc-1-abc"
        assert record["extra"]["service"] == "bagr-disc-photos"

    def test_exception_carries_traceback(self, records):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            get_logger().exception("Color sampling failed")

        assert records[-1]["exception"] is not None
        assert records[-1]["level"].name == "ERROR"
