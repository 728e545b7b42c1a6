"""
Dashboard API Router - Read-only endpoints over the aggregate snapshot.

Provides endpoints for:
- The admin dashboard snapshot, with named or custom date windows
- Drill-down job lists per job category
- The production-head counters and printing roll-up
- The job-plan table (search, demand and status filters)

Every request runs one aggregation pass against the job-data API.
"""

import logging
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException, Query

from api.response_models import ListResponse, ProductionResponse, SnapshotResponse
from boxops import config
from boxops.client import DashboardService, JobDataAuthError, JobDataError
from boxops.contracts import InvariantViolation
from boxops.job_table import filter_job_table, job_table_rows
from boxops.production import (
    jobs_by_step_and_status,
    printing_records,
    printing_summary,
    production_summary,
)
from boxops.snapshot import CARDS, card_jobs

logger = logging.getLogger(__name__)

dashboard_router = APIRouter(
    prefix="/api/dashboard",
    tags=["Dashboard"],
)


@lru_cache(maxsize=1)
def get_service() -> DashboardService:
    """Process-wide service; overridden in tests."""
    return DashboardService()


def _custom_range(start: str | None, end: str | None) -> tuple[str, str] | None:
    if start is None and end is None:
        return None
    if not start or not end:
        raise HTTPException(status_code=400, detail="start and end must be given together")
    return (start, end)


def _load(service: DashboardService, filter: str | None, start: str | None, end: str | None):
    """Run one pass, mapping provider and input errors to HTTP errors."""
    try:
        return service.load(filter, _custom_range(start, end))
    except JobDataAuthError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e
    except JobDataError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    except InvariantViolation as e:
        logger.error("Snapshot invariant violated: %s", e)
        raise HTTPException(status_code=500, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@dashboard_router.get("", response_model=SnapshotResponse)
def get_dashboard(
    filter: str | None = Query(None, description="all, today, week, month, quarter, year, custom"),
    start: str | None = Query(None, description="Custom window start, YYYY-MM-DD"),
    end: str | None = Query(None, description="Custom window end, YYYY-MM-DD"),
    include_jobs: bool = Query(True, description="Include drill-down job lists"),
    service: DashboardService = Depends(get_service),
) -> dict:
    """
    Aggregate snapshot for a date window.

    heldJobs and majorHoldJobs ignore the window.
    """
    if filter is None:
        filter = "custom" if start or end else config.DEFAULT_FILTER
    snapshot = _load(service, filter, start, end)
    return snapshot.to_dict(include_jobs=include_jobs)


@dashboard_router.get("/jobs", response_model=ListResponse)
def get_jobs_in_category(
    category: str = Query(..., description="completed, in_progress, planned, held, major_hold"),
    filter: str | None = Query(None),
    start: str | None = Query(None),
    end: str | None = Query(None),
    service: DashboardService = Depends(get_service),
) -> dict:
    """
    Records behind one summary card.

    held and major_hold ignore the window, matching heldJobs and majorHoldJobs.
    """
    if category not in CARDS:
        raise HTTPException(status_code=400, detail="Invalid category. Supported: " + ", ".join(CARDS))

    if filter is None:
        filter = "custom" if start or end else config.DEFAULT_FILTER
    snapshot = _load(service, filter, start, end)
    items = card_jobs(snapshot, category, service.resolver)
    return {"items": items, "total": len(items)}


@dashboard_router.get("/production", response_model=ProductionResponse)
def get_production(service: DashboardService = Depends(get_service)) -> dict:
    """Production-head counters for the configured steps, plus printing."""
    try:
        job_plans, completed = service.production()
    except JobDataAuthError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e
    except JobDataError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e

    summary = production_summary(job_plans, completed, service.settings.production_steps).to_dict()
    summary["printing"] = printing_summary(printing_records(job_plans)).to_dict()
    return summary


@dashboard_router.get("/production/steps", response_model=ListResponse)
def get_production_steps(
    step: str = Query(..., description="Step category or view key, e.g. corrugation"),
    status: str = Query(..., description="planned, start, stop, completed"),
    service: DashboardService = Depends(get_service),
) -> dict:
    """Steps behind one production-head counter."""
    try:
        job_plans, completed = service.production()
    except JobDataAuthError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e
    except JobDataError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e

    matches = jobs_by_step_and_status(job_plans, completed, step, status)
    return {"items": [m.to_dict() for m in matches], "total": len(matches)}


@dashboard_router.get("/job-table", response_model=ListResponse)
def get_job_table(
    search: str = Query("", description="Substring of nrcJobNo"),
    demand: str = Query("all", description="low, medium, high or all"),
    status: str = Query("all", description="completed, in_progress, planned or all"),
    service: DashboardService = Depends(get_service),
) -> dict:
    """Job-plan table rows (strict step resolution)."""
    try:
        job_plans, _ = service.production()
        rows = job_table_rows(filter_job_table(job_plans, search, demand, status))
    except JobDataAuthError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e
    except JobDataError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return {"items": rows, "total": len(rows)}
