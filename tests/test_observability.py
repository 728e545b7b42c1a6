"""
Tests for structured logging, request context and metrics.
"""

import json
import logging

import pytest

from boxops.observability import (
    HumanFormatter,
    JSONFormatter,
    MetricsRegistry,
    RequestContext,
    get_request_id,
    timed,
)


def _record(msg="Built snapshot", **extra):
    record = logging.LogRecord("boxops.snapshot", logging.INFO, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestRequestContext:
    def test_sets_and_resets(self):
        assert get_request_id() is None
        with RequestContext("dash-abc") as ctx:
            assert ctx.request_id == "dash-abc"
            assert get_request_id() == "dash-abc"
        assert get_request_id() is None

    def test_generates_id(self):
        with RequestContext() as ctx:
            assert ctx.request_id.startswith("dash-")


class TestFormatters:
    def test_json_includes_request_id_and_extra(self):
        with RequestContext("dash-xyz"):
            line = JSONFormatter().format(_record(total_jobs=12))
        entry = json.loads(line)
        assert entry["message"] == "Built snapshot"
        assert entry["logger"] == "boxops.snapshot"
        assert entry["request_id"] == "dash-xyz"
        assert entry["total_jobs"] == 12
        assert "args" not in entry

    def test_human_format(self):
        line = HumanFormatter().format(_record())
        assert "INFO" in line
        assert "boxops.snapshot: Built snapshot" in line


class TestMetricsRegistry:
    def test_get_or_create(self):
        registry = MetricsRegistry()
        assert registry.counter("a_total") is registry.counter("a_total")

    def test_kind_conflict(self):
        registry = MetricsRegistry()
        registry.counter("x")
        with pytest.raises(ValueError, match="already registered"):
            registry.gauge("x")

    def test_prometheus_export(self):
        registry = MetricsRegistry()
        registry.counter("fetches_total", "Fetches").inc(3)
        registry.gauge("jobs").set(7)
        registry.histogram("build_seconds").observe(0.5)
        text = registry.to_prometheus()
        assert "# TYPE fetches_total counter\nfetches_total 3" in text
        assert "jobs 7" in text
        assert "build_seconds_count 1" in text

    def test_timed_records_even_on_error(self):
        registry = MetricsRegistry()
        histogram = registry.histogram("op_seconds")

        @timed(histogram)
        def fails():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            fails()
        assert histogram.count == 1
        assert registry.to_dict()["op_seconds"]["type"] == "histogram"
