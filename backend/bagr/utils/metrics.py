"""
Bagr Metrics Collection
In-process counters and timings for the disc photo pipeline.
"""
import time
from collections import Counter, defaultdict
from contextlib import contextmanager
from threading import Lock
from typing import Any, Dict, Iterator, List, Optional

import numpy as np


class MetricsCollector:
    """
    Thread-safe counters and stage timings.

    Counter names:
        photo_requests_total, photo_source_<kind>_total,
        crop_fallback_total, color_fallback_total, failed_total_<error>
    """

    def __init__(self):
        self._lock = Lock()
        self._counters: Counter = Counter()
        self._timings: Dict[str, List[float]] = defaultdict(list)
        self._disc_radius_ratios: List[float] = []
        self._started_at = time.time()

    def _increment(self, name: str):
        with self._lock:
            self._counters[name] += 1

    def increment_request_count(self):
        self._increment("photo_requests_total")

    def increment_source_count(self, kind: str):
        """Count requests per photo source kind (upload, data_uri, url)."""
        self._increment(f"photo_source_{kind}_total")

    def increment_crop_fallback_count(self):
        """A crop was abandoned in favour of the original photo."""
        self._increment("crop_fallback_total")

    def increment_color_fallback_count(self):
        """The default color was substituted."""
        self._increment("color_fallback_total")

    def increment_failure_count(self, error_type: str):
        self._increment(f"failed_total_{error_type}")

    def record_timing(self, stage: str, duration_ms: float):
        with self._lock:
            self._timings[f"{stage}_duration_ms"].append(duration_ms)

    @contextmanager
    def timed(self, stage: str) -> Iterator[None]:
        """Record the wall time of the enclosed block under ``stage``."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.record_timing(stage, (time.perf_counter() - start) * 1000)

    def record_disc_radius_ratio(self, ratio: float):
        """Detected disc radius as a fraction of the max scan radius."""
        with self._lock:
            self._disc_radius_ratios.append(ratio)

    def get_counters(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counters)

    def get_timing_stats(self) -> Dict[str, Dict[str, float]]:
        with self._lock:
            return {stage: summarize(values) for stage, values in self._timings.items() if values}

    def get_disc_radius_stats(self) -> Dict[str, float]:
        with self._lock:
            return summarize(self._disc_radius_ratios) if self._disc_radius_ratios else {}

    def get_summary(self) -> Dict[str, Any]:
        return {
            "uptime_seconds": time.time() - self._started_at,
            "counters": self.get_counters(),
            "timing_stats": self.get_timing_stats(),
            "disc_radius_stats": self.get_disc_radius_stats()
        }

    def reset(self):
        """Clear everything (used between tests)."""
        with self._lock:
            self._counters.clear()
            self._timings.clear()
            self._disc_radius_ratios.clear()
            self._started_at = time.time()


def summarize(values: List[float]) -> Dict[str, float]:
    """Count, mean, extremes and linear-interpolated p50/p95."""
    data = np.asarray(values, dtype=np.float64)
    p50, p95 = np.percentile(data, [50, 95])
    return {
        "count": int(data.size),
        "mean": float(data.mean()),
        "min": float(data.min()),
        "max": float(data.max()),
        "p50": float(p50),
        "p95": float(p95)
    }


_metrics: Optional[MetricsCollector] = None


def get_metrics() -> MetricsCollector:
    """Process-wide collector, created on first use."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics


def reset_metrics():
    if _metrics is not None:
        _metrics.reset()
