"""
Prometheus Metrics Collector

In-process metrics for captures, recomputations, workflow triggers and
retention, exported in Prometheus text exposition format
(text/plain; version=0.0.4).
"""
import time
import threading
from typing import Dict, List, Optional
from dataclasses import dataclass, field


@dataclass
class MetricValue:
    """Single metric value with optional labels."""
    value: float
    labels: Dict[str, str] = field(default_factory=dict)


class _LabeledMetric:
    """Shared label bookkeeping for counters and gauges."""

    kind = "untyped"

    def __init__(self, name: str, description: str, labels: Optional[List[str]] = None):
        self.name = name
        self.description = description
        self.label_names = labels or []
        self._values: Dict[tuple, float] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _label_key(labels: Dict[str, str]) -> tuple:
        return tuple(sorted(labels.items()))

    def _add(self, amount: float, labels: Dict[str, str]) -> None:
        key = self._label_key(labels)
        with self._lock:
            self._values[key] = self._values.get(key, 0.0) + amount

    def value(self, **labels: str) -> float:
        """Current value for one label combination (0 if never touched)."""
        with self._lock:
            return self._values.get(self._label_key(labels), 0.0)

    def collect(self) -> List[MetricValue]:
        with self._lock:
            return [MetricValue(value=v, labels=dict(k)) for k, v in self._values.items()]


class Counter(_LabeledMetric):
    """Cumulative metric that only goes up (captures, recomputations, removals)."""

    kind = "counter"

    def inc(self, amount: float = 1.0, **labels: str) -> None:
        if amount < 0:
            raise ValueError("Counters can only increase")
        self._add(amount, labels)


class Gauge(_LabeledMetric):
    """Metric that can go up and down (queue depth, tracked identities)."""

    kind = "gauge"

    def set(self, value: float, **labels: str) -> None:
        key = self._label_key(labels)
        with self._lock:
            self._values[key] = value

    def inc(self, amount: float = 1.0, **labels: str) -> None:
        self._add(amount, labels)

    def dec(self, amount: float = 1.0, **labels: str) -> None:
        self._add(-amount, labels)


class Histogram:
    """
    Samples observations into cumulative buckets.
    Used for recompute and tick latency.
    """

    kind = "histogram"

    # Recomputation is in-process math plus a store read, so buckets start small
    DEFAULT_BUCKETS = (0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 5.0)

    def __init__(
        self,
        name: str,
        description: str,
        labels: Optional[List[str]] = None,
        buckets: Optional[tuple] = None
    ):
        self.name = name
        self.description = description
        self.label_names = labels or []
        self.buckets = tuple(sorted(buckets or self.DEFAULT_BUCKETS))
        self._series: Dict[tuple, Dict] = {}
        self._lock = threading.Lock()

    def observe(self, value: float, **labels: str) -> None:
        key = tuple(sorted(labels.items()))
        with self._lock:
            series = self._series.setdefault(
                key, {"counts": [0] * len(self.buckets), "sum": 0.0, "count": 0}
            )
            series["sum"] += value
            series["count"] += 1
            for index, bound in enumerate(self.buckets):
                if value <= bound:
                    series["counts"][index] += 1

    def count(self, **labels: str) -> int:
        with self._lock:
            series = self._series.get(tuple(sorted(labels.items())))
            return series["count"] if series else 0

    def collect(self) -> List[MetricValue]:
        """Bucket, +Inf, sum and count samples for every label combination."""
        result = []
        with self._lock:
            for key, series in self._series.items():
                base = dict(key)
                for bound, hits in zip(self.buckets, series["counts"]):
                    result.append(MetricValue(value=hits, labels={**base, "le": str(bound)}))
                result.append(MetricValue(value=series["count"], labels={**base, "le": "+Inf"}))
                result.append(MetricValue(value=series["sum"], labels={**base, "_metric": "sum"}))
                result.append(MetricValue(value=series["count"], labels={**base, "_metric": "count"}))
        return result


class Timer:
    """Context manager for timing code blocks into a histogram."""

    def __init__(self, histogram: Histogram, **labels: str):
        self.histogram = histogram
        self.labels = labels
        self.start_time: Optional[float] = None
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args) -> None:
        if self.start_time is not None:
            self.elapsed = time.perf_counter() - self.start_time
            self.histogram.observe(self.elapsed, **self.labels)


class MetricsRegistry:
    """
    Central registry for all engine metrics.

    Provides singleton access and Prometheus text format export.
    """

    _instance: Optional["MetricsRegistry"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "MetricsRegistry":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._metrics: Dict[str, Counter | Gauge | Histogram] = {}
        self._initialized = True
        self._setup_metrics()

    def _setup_metrics(self) -> None:
        # ============================================
        # CAPTURE METRICS
        # ============================================
        self.signals_captured = self.counter(
            "intent_signals_captured_total",
            "Signals stored by source",
            ["source"]
        )

        self.captures = self.counter(
            "intent_captures_total",
            "Capture calls by channel",
            ["channel"]
        )

        # ============================================
        # SCORING METRICS
        # ============================================
        self.recomputations = self.counter(
            "intent_recomputations_total",
            "Score recomputations by outcome",
            ["status"]
        )

        self.recompute_duration = self.histogram(
            "intent_recompute_duration_seconds",
            "Single identity recomputation duration"
        )

        self.tick_duration = self.histogram(
            "intent_tick_duration_seconds",
            "Processing scheduler tick duration",
            buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0)
        )

        self.workflow_triggers = self.counter(
            "intent_workflow_triggers_total",
            "Workflow trigger attempts by tier and outcome",
            ["tier", "status"]
        )

        # ============================================
        # QUEUE METRICS
        # ============================================
        self.queue_pending = self.gauge(
            "intent_queue_pending",
            "Identities awaiting recomputation"
        )

        self.queue_processing = self.gauge(
            "intent_queue_processing",
            "Identities currently being recomputed"
        )

        self.queue_deferred = self.gauge(
            "intent_queue_deferred",
            "Identities deferred behind an in-flight recomputation"
        )

        # ============================================
        # RETENTION METRICS
        # ============================================
        self.retention_removals = self.counter(
            "intent_retention_identities_removed_total",
            "Identities removed because every signal expired"
        )

        self.tracked_identities = self.gauge(
            "intent_tracked_identities",
            "Identities with a live signal log"
        )

    def counter(self, name: str, description: str, labels: Optional[List[str]] = None) -> Counter:
        metric = Counter(name, description, labels)
        self._metrics[name] = metric
        return metric

    def gauge(self, name: str, description: str, labels: Optional[List[str]] = None) -> Gauge:
        metric = Gauge(name, description, labels)
        self._metrics[name] = metric
        return metric

    def histogram(
        self,
        name: str,
        description: str,
        labels: Optional[List[str]] = None,
        buckets: Optional[tuple] = None
    ) -> Histogram:
        metric = Histogram(name, description, labels, buckets)
        self._metrics[name] = metric
        return metric

    def track_queue(self, pending: int, processing: int, deferred: int) -> None:
        """Mirror the recompute queue depth into gauges."""
        self.queue_pending.set(pending)
        self.queue_processing.set(processing)
        self.queue_deferred.set(deferred)

    def export(self) -> str:
        """
        Export all metrics in Prometheus text exposition format.

        Format specification:
        https://prometheus.io/docs/instrumenting/exposition_formats/
        """
        lines = []

        for name, metric in self._metrics.items():
            lines.append(f"# HELP {name} {metric.description}")
            lines.append(f"# TYPE {name} {metric.kind}")

            for mv in metric.collect():
                labels = dict(mv.labels)
                metric_name = name
                if isinstance(metric, Histogram):
                    if "_metric" in labels:
                        metric_name = f"{name}_{labels.pop('_metric')}"
                    else:
                        metric_name = f"{name}_bucket"

                lines.append(f"{metric_name}{self._format_labels(labels)} {mv.value}")

            lines.append("")

        return "\n".join(lines)

    @staticmethod
    def _format_labels(labels: Dict[str, str]) -> str:
        if not labels:
            return ""
        parts = [f'{k}="{v}"' for k, v in sorted(labels.items())]
        return "{" + ",".join(parts) + "}"

    def reset(self) -> None:
        """Reset all metrics. Useful for testing."""
        self._metrics.clear()
        self._setup_metrics()


# Global metrics instance
metrics = MetricsRegistry()
