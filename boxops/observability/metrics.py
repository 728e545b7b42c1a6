"""
In-process metrics for the data client and snapshot builder.

Counters, gauges and timing histograms kept in one registry and exported
as Prometheus text on /api/metrics.
"""

import functools
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field

# Observations kept per histogram
HISTOGRAM_WINDOW = 1000


@dataclass
class Counter:
    """Thread-safe monotonically increasing counter."""

    name: str
    description: str = ""
    _value: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def inc(self, amount: int = 1) -> None:
        with self._lock:
            self._value += amount

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


@dataclass
class Gauge:
    """Thread-safe last-value gauge."""

    name: str
    description: str = ""
    _value: float = 0.0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def set(self, value: float) -> None:
        with self._lock:
            self._value = value

    @property
    def value(self) -> float:
        with self._lock:
            return self._value


@dataclass
class Histogram:
    """Rolling window of timing observations."""

    name: str
    description: str = ""
    _values: list[float] = field(default_factory=list)
    _total_count: int = 0
    _total_sum: float = 0.0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def observe(self, value: float) -> None:
        with self._lock:
            self._values.append(value)
            self._total_count += 1
            self._total_sum += value
            if len(self._values) > HISTOGRAM_WINDOW:
                del self._values[:-HISTOGRAM_WINDOW]

    @property
    def count(self) -> int:
        with self._lock:
            return self._total_count

    @property
    def sum(self) -> float:
        with self._lock:
            return self._total_sum

    @property
    def avg(self) -> float:
        """Mean over the retained window."""
        with self._lock:
            return sum(self._values) / len(self._values) if self._values else 0.0


class MetricsRegistry:
    """Get-or-create registry; names are unique per metric kind."""

    def __init__(self) -> None:
        self._metrics: dict[str, Counter | Gauge | Histogram] = {}
        self._lock = threading.Lock()

    def _get(self, kind: type, name: str, description: str):
        with self._lock:
            metric = self._metrics.get(name)
            if metric is None:
                metric = kind(name, description)
                self._metrics[name] = metric
            elif not isinstance(metric, kind):
                raise ValueError(f"Metric {name!r} already registered as {type(metric).__name__}")
            return metric

    def counter(self, name: str, description: str = "") -> Counter:
        return self._get(Counter, name, description)

    def gauge(self, name: str, description: str = "") -> Gauge:
        return self._get(Gauge, name, description)

    def histogram(self, name: str, description: str = "") -> Histogram:
        return self._get(Histogram, name, description)

    def to_prometheus(self) -> str:
        """Export in Prometheus text format (histograms as summaries)."""
        with self._lock:
            metrics = sorted(self._metrics.items())
        lines: list[str] = []
        for name, metric in metrics:
            if metric.description:
                lines.append(f"# HELP {name} {metric.description}")
            if isinstance(metric, Histogram):
                lines.append(f"# TYPE {name} summary")
                lines.append(f"{name}_count {metric.count}")
                lines.append(f"{name}_sum {metric.sum}")
            else:
                kind = "counter" if isinstance(metric, Counter) else "gauge"
                lines.append(f"# TYPE {name} {kind}")
                lines.append(f"{name} {metric.value}")
        return "\n".join(lines) + "\n"

    def to_dict(self) -> dict[str, dict[str, float | int | str]]:
        with self._lock:
            metrics = list(self._metrics.items())
        result: dict[str, dict[str, float | int | str]] = {}
        for name, metric in metrics:
            if isinstance(metric, Histogram):
                result[name] = {"type": "histogram", "count": metric.count, "sum": metric.sum, "avg": metric.avg}
            elif isinstance(metric, Counter):
                result[name] = {"type": "counter", "value": metric.value}
            else:
                result[name] = {"type": "gauge", "value": metric.value}
        return result


REGISTRY = MetricsRegistry()

# Job-data provider
job_data_requests = REGISTRY.counter("job_data_requests_total", "Requests sent to the job-data API")
job_data_errors = REGISTRY.counter("job_data_errors_total", "Failed job-data API requests")
job_data_latency = REGISTRY.histogram("job_data_latency_seconds", "Job-data API request latency")
step_detail_lookups = REGISTRY.counter("step_detail_lookups_total", "Per-step detail lookups")

# Snapshot builder
snapshot_builds = REGISTRY.counter("snapshot_builds_total", "Dashboard snapshots built")
snapshot_duration = REGISTRY.histogram("snapshot_build_seconds", "Fetch plus build time per snapshot")
snapshot_jobs = REGISTRY.gauge("snapshot_total_jobs", "totalJobs of the last unfiltered snapshot")


def timed(histogram: Histogram) -> Callable:
    """Decorator recording a function's wall time in histogram."""

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                histogram.observe(time.perf_counter() - start)

        return wrapper

    return decorator
