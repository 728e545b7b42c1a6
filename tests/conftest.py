"""
Test configuration - ensures repo root is in sys.path + determinism guards.

This allows tests to import from top-level packages (boxops, api, cli).
Blocks real HTTP so no test can reach the job-data API by accident.
"""

import sys
from datetime import date, timezone
from pathlib import Path

import pytest

# Add repo root to sys.path so tests can import boxops.*, api.*, cli.*
REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


# =============================================================================
# DETERMINISM GUARD: Block live network access
# =============================================================================


@pytest.fixture(autouse=True)
def _no_live_http(monkeypatch):
    """Fail any test that sends a real request through httpx."""
    import httpx

    def _blocked(*args, **kwargs):
        raise AssertionError("Live HTTP blocked in tests; patch boxops.client.httpx.request")

    monkeypatch.setattr(httpx.HTTPTransport, "handle_request", _blocked)


@pytest.fixture
def utc():
    """Fixed zone so calendar-day tests don't depend on the host."""
    return timezone.utc


@pytest.fixture
def today():
    # Wednesday
    return date(2024, 3, 13)
