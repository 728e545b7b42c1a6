"""
Centralized configuration for the box-plant operations dashboard.

All values that vary by deployment belong here.
Override via environment variables where marked.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from . import paths
from .catalog import DETAIL_ENDPOINTS, PRODUCTION_STEPS, StepCategory

logger = logging.getLogger(__name__)

# ============================================================
# Job-data API
# ============================================================

API_BASE_URL: str = os.environ.get("BOXOPS_API_BASE_URL", "https://nrprod.nrcontainers.com/api").rstrip("/")
"""Base URL of the job-planning backend."""

API_TOKEN: str | None = os.environ.get("BOXOPS_API_TOKEN") or None
"""Bearer token for the job-planning backend."""

HTTP_TIMEOUT: float = float(os.environ.get("BOXOPS_HTTP_TIMEOUT", "30"))
"""Per-request timeout in seconds."""

# ============================================================
# Dashboard behaviour
# ============================================================

DEFAULT_FILTER: str = os.environ.get("BOXOPS_DEFAULT_FILTER", "today")
"""Date filter applied when a caller names none."""

TIMEZONE_NAME: str = os.environ.get("BOXOPS_TIMEZONE", "")
"""IANA zone used for calendar days. Empty means the host's local zone."""

LOG_LEVEL: str = os.environ.get("BOXOPS_LOG_LEVEL", "INFO")


def local_timezone() -> tzinfo | None:
    """Configured zone, or None for the host's local zone."""
    if not TIMEZONE_NAME:
        return None
    try:
        return ZoneInfo(TIMEZONE_NAME)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown BOXOPS_TIMEZONE %r, using host local time", TIMEZONE_NAME)
        return None


# ============================================================
# dashboard.yaml
# ============================================================


@dataclass
class DashboardSettings:
    """Settings loaded from config/dashboard.yaml."""

    production_steps: tuple[StepCategory, ...] = PRODUCTION_STEPS
    detail_endpoints: dict[StepCategory, str] = field(default_factory=lambda: dict(DETAIL_ENDPOINTS))


def _load_yaml(config_path: Path) -> dict:
    """Load YAML config, return empty dict on failure."""
    if not config_path.exists():
        logger.warning("Dashboard config not found at %s, using defaults", config_path)
        return {}
    try:
        with open(config_path) as f:
            loaded = yaml.safe_load(f) or {}
    except (yaml.YAMLError, OSError) as exc:
        logger.error("Failed to load dashboard config: %s", exc)
        return {}
    if not isinstance(loaded, dict):
        logger.error("Dashboard config at %s is not a mapping", config_path)
        return {}
    return loaded


def load_dashboard_settings(config_path: Path | None = None) -> DashboardSettings:
    """Read dashboard.yaml, keeping defaults for missing or invalid keys."""
    if config_path is None:
        config_path = paths.dashboard_config_path()
    raw = _load_yaml(config_path)
    settings = DashboardSettings()

    steps = []
    for name in raw.get("production_steps") or []:
        try:
            steps.append(StepCategory(name))
        except ValueError:
            logger.warning("Ignoring unknown production step %r in %s", name, config_path)
    if steps:
        settings.production_steps = tuple(steps)

    endpoints = raw.get("detail_endpoints") or {}
    if isinstance(endpoints, dict):
        for name, slug in endpoints.items():
            try:
                settings.detail_endpoints[StepCategory(name)] = str(slug).strip("/")
            except ValueError:
                logger.warning("Ignoring detail endpoint for unknown step %r", name)

    return settings
