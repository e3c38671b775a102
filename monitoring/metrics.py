"""
In-process counters and timings for checkout and webhook traffic.

Series are keyed as ``name{label=value,...}`` so one name can be split by
rejection reason, sink or event type.
"""

import time
from collections import Counter, deque
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Deque, Dict, Iterator, Optional

Labels = Optional[Dict[str, str]]


def series_key(name: str, labels: Labels = None) -> str:
    if not labels:
        return name
    rendered = ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
    return f"{name}{{{rendered}}}"


def _percentile(ordered, fraction: float) -> float:
    index = min(len(ordered) - 1, int(round(fraction * (len(ordered) - 1))))
    return ordered[index]


class MetricsCollector:
    """
    Monotonic counters plus a sliding window of duration samples.

    Missing series read as zero / empty, so callers can assert on a counter
    that was never touched.
    """

    def __init__(self, window: int = 1000):
        self.window = window
        self.counters: Counter = Counter()
        self.histograms: Dict[str, Deque[float]] = {}

    def increment_counter(self, name: str, value: int = 1, labels: Labels = None) -> None:
        self.counters[series_key(name, labels)] += value

    def count(self, name: str, labels: Labels = None) -> int:
        return self.counters[series_key(name, labels)]

    def record_histogram(self, name: str, value: float, labels: Labels = None) -> None:
        key = series_key(name, labels)
        if key not in self.histograms:
            self.histograms[key] = deque(maxlen=self.window)
        self.histograms[key].append(value)

    @contextmanager
    def timer(self, name: str, labels: Labels = None) -> Iterator[None]:
        """Record the wall time of the block, in seconds, as ``<name>_duration``."""
        started = time.perf_counter()
        try:
            yield
        finally:
            self.record_histogram(f"{name}_duration", time.perf_counter() - started, labels)

    def get_metrics(self) -> Dict[str, Any]:
        """Snapshot for the health endpoint. Durations report count, avg, p50, p95, max."""
        durations: Dict[str, Dict[str, float]] = {}
        for key, samples in self.histograms.items():
            if not samples:
                continue
            ordered = sorted(samples)
            durations[key] = {
                "count": len(ordered),
                "avg": sum(ordered) / len(ordered),
                "p50": _percentile(ordered, 0.50),
                "p95": _percentile(ordered, 0.95),
                "max": ordered[-1],
            }

        return {
            "counters": dict(self.counters),
            "histograms": durations,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }


_collector: Optional[MetricsCollector] = None


def get_metrics_collector() -> MetricsCollector:
    """Process-wide collector used when none is injected."""
    global _collector
    if _collector is None:
        _collector = MetricsCollector()
    return _collector


class Metrics:
    # Checkout
    CHECKOUT_SESSIONS_CREATED = "checkout_sessions_created"
    CHECKOUT_VALIDATION_FAILED = "checkout_validation_failed"
    CHECKOUT_PROVIDER_FAILED = "checkout_provider_failed"

    # Webhooks
    WEBHOOKS_RECEIVED = "webhooks_received"
    WEBHOOKS_REJECTED = "webhooks_rejected"
    WEBHOOKS_ACKNOWLEDGED = "webhooks_acknowledged"
    WEBHOOK_HANDLER_ERRORS = "webhook_handler_errors"
    WEBHOOK_PROCESSING = "webhook_processing"

    # Fan-out
    NOTIFICATIONS_SENT = "notifications_sent"
    NOTIFICATIONS_FAILED = "notifications_failed"
