"""
Metrics Collection for the Order Sync Engine

Collects and exposes metrics for:
- Order sync outcomes (synced, failed, skipped)
- ERP calls (by method and status code)
- Processing times (average, p95)

Metrics live in memory only. The ERP is the system of record for sync state,
so nothing here is needed to recover after a restart.
"""

import statistics
from collections import defaultdict
from dataclasses import dataclass, field
from threading import Lock
from typing import Dict, List, Optional, Any


# =============================================================================
# Metric Data Classes
# =============================================================================

@dataclass
class OrderMetrics:
    """Outcome counters for order syncs."""
    synced: int = 0
    failed: int = 0
    skipped: int = 0

    # By failure reason (exception class name)
    failures_by_reason: Dict[str, int] = field(default_factory=lambda: defaultdict(int))


@dataclass
class ApiCallMetrics:
    """Counters for outbound ERP calls."""
    total: int = 0
    errors: int = 0

    # "GET 200", "POST 204", "POST 400", ...
    by_outcome: Dict[str, int] = field(default_factory=lambda: defaultdict(int))


@dataclass
class TimingMetrics:
    """Processing time metrics."""
    samples: List[float] = field(default_factory=list)
    max_samples: int = 1000

    by_stage: Dict[str, List[float]] = field(default_factory=lambda: defaultdict(list))

    def add_sample(self, duration_ms: float, stage: str = None):
        """Add a timing sample."""
        self.samples.append(duration_ms)
        if len(self.samples) > self.max_samples:
            self.samples = self.samples[-self.max_samples:]

        if stage:
            self.by_stage[stage].append(duration_ms)
            if len(self.by_stage[stage]) > self.max_samples:
                self.by_stage[stage] = self.by_stage[stage][-self.max_samples:]

    def get_average(self, stage: str = None) -> float:
        """Get average processing time."""
        samples = self.by_stage.get(stage, []) if stage else self.samples
        return statistics.mean(samples) if samples else 0.0

    def get_p95(self, stage: str = None) -> float:
        """Get 95th percentile processing time."""
        samples = self.by_stage.get(stage, []) if stage else self.samples
        if not samples:
            return 0.0
        sorted_samples = sorted(samples)
        idx = int(len(sorted_samples) * 0.95)
        return sorted_samples[min(idx, len(sorted_samples) - 1)]


# =============================================================================
# Metrics Collector (Singleton)
# =============================================================================

class MetricsCollector:
    """
    Thread-safe metrics collector for the order sync engine.

    Usage:
        metrics = MetricsCollector.instance()
        metrics.record_order_synced("5001", duration_ms=1800)
        metrics.record_api_call("POST", 204, duration_ms=350)
    """

    _instance: Optional["MetricsCollector"] = None
    _instance_lock = Lock()

    def __init__(self):
        self.orders = OrderMetrics()
        self.api_calls = ApiCallMetrics()
        self.timings = TimingMetrics()
        self._lock = Lock()

    @classmethod
    def instance(cls) -> "MetricsCollector":
        """Get singleton instance."""
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    # =========================================================================
    # Order Metrics
    # =========================================================================

    def record_order_synced(self, order_id: str, duration_ms: float = None):
        """Record a successfully synced order."""
        with self._lock:
            self.orders.synced += 1
            if duration_ms:
                self.timings.add_sample(duration_ms, "order.sync")

    def record_order_failed(self, order_id: str, reason: str = "unknown"):
        """Record a failed order sync."""
        with self._lock:
            self.orders.failed += 1
            self.orders.failures_by_reason[reason] += 1

    def record_order_skipped(self, order_id: str):
        """Record an order skipped because it was already synced."""
        with self._lock:
            self.orders.skipped += 1

    # =========================================================================
    # ERP Call Metrics
    # =========================================================================

    def record_api_call(self, method: str, status_code: int, duration_ms: float = None):
        """Record one outbound ERP call. status_code 0 means no response."""
        with self._lock:
            self.api_calls.total += 1
            if status_code == 0 or status_code >= 400:
                self.api_calls.errors += 1
            self.api_calls.by_outcome[f"{method.upper()} {status_code}"] += 1
            if duration_ms:
                self.timings.add_sample(duration_ms, f"erp.{method.upper()}")

    # =========================================================================
    # Timing Metrics
    # =========================================================================

    def record_processing_time(self, stage: str, duration_ms: float):
        """Record a processing time sample."""
        with self._lock:
            self.timings.add_sample(duration_ms, stage)

    def get_timing_stats(self, stage: str = None) -> Dict[str, float]:
        """Get timing statistics for a stage."""
        with self._lock:
            return {
                "average_ms": self.timings.get_average(stage),
                "p95_ms": self.timings.get_p95(stage),
                "sample_count": len(self.timings.by_stage.get(stage, []) if stage else self.timings.samples),
            }

    # =========================================================================
    # Summary
    # =========================================================================

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of all metrics."""
        with self._lock:
            return {
                "orders": {
                    "synced": self.orders.synced,
                    "failed": self.orders.failed,
                    "skipped": self.orders.skipped,
                    "failures_by_reason": dict(self.orders.failures_by_reason),
                },
                "api_calls": {
                    "total": self.api_calls.total,
                    "errors": self.api_calls.errors,
                    "by_outcome": dict(self.api_calls.by_outcome),
                },
                "timings": {
                    "overall": {
                        "average_ms": self.timings.get_average(),
                        "p95_ms": self.timings.get_p95(),
                    },
                    "by_stage": {
                        stage: {
                            "average_ms": self.timings.get_average(stage),
                            "p95_ms": self.timings.get_p95(stage),
                        }
                        for stage in self.timings.by_stage.keys()
                    },
                },
            }


# =============================================================================
# Module-level convenience functions
# =============================================================================

def get_metrics() -> MetricsCollector:
    """Get the global metrics collector."""
    return MetricsCollector.instance()


def record_order_synced(order_id: str, duration_ms: float = None):
    """Record a successfully synced order."""
    get_metrics().record_order_synced(order_id, duration_ms)


def record_order_failed(order_id: str, reason: str = "unknown"):
    """Record a failed order sync."""
    get_metrics().record_order_failed(order_id, reason)


def record_order_skipped(order_id: str):
    """Record an already-synced order that was skipped."""
    get_metrics().record_order_skipped(order_id)


def record_api_call(method: str, status_code: int, duration_ms: float = None):
    """Record one outbound ERP call."""
    get_metrics().record_api_call(method, status_code, duration_ms)


def record_processing_time(stage: str, duration_ms: float):
    """Record a processing time sample."""
    get_metrics().record_processing_time(stage, duration_ms)
