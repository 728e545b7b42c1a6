"""
Observability: structured logging, request IDs, metrics.

Usage:
    from boxops.observability import configure_logging, RequestContext, REGISTRY

    configure_logging("INFO")
    with RequestContext():
        service.load("week")
    print(REGISTRY.to_prometheus())
"""

from .context import RequestContext, generate_request_id, get_request_id
from .logging import CorrelationIdMiddleware, HumanFormatter, JSONFormatter, configure_logging, get_logger
from .metrics import (
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    MetricsRegistry,
    job_data_errors,
    job_data_latency,
    job_data_requests,
    snapshot_builds,
    snapshot_duration,
    snapshot_jobs,
    step_detail_lookups,
    timed,
)

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    "JSONFormatter",
    "HumanFormatter",
    "CorrelationIdMiddleware",
    # Context
    "RequestContext",
    "get_request_id",
    "generate_request_id",
    # Metrics
    "REGISTRY",
    "MetricsRegistry",
    "Counter",
    "Gauge",
    "Histogram",
    "timed",
    "job_data_requests",
    "job_data_errors",
    "job_data_latency",
    "step_detail_lookups",
    "snapshot_builds",
    "snapshot_duration",
    "snapshot_jobs",
]
