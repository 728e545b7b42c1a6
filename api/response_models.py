"""
Pydantic response models for the dashboard API.

Field names are snake_case in Python and camelCase on the wire (aliases),
matching the JSON the dashboards already consume. Nested structures are
left open (extra="allow") since their keys depend on the step catalog.

Usage:
    from api.response_models import SnapshotResponse

    @router.get("", response_model=SnapshotResponse)
    def dashboard(): ...
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# ==== Dashboard Snapshot ====


class TimeSeriesPointResponse(BaseModel):
    """One day of activity."""

    model_config = ConfigDict(populate_by_name=True)

    date: str
    jobs_started: int = Field(alias="jobsStarted")
    jobs_completed: int = Field(alias="jobsCompleted")
    total_steps: int = Field(alias="totalSteps")
    completed_steps: int = Field(alias="completedSteps")


class SnapshotResponse(BaseModel):
    """Aggregate snapshot every dashboard renders from."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    total_jobs: int = Field(alias="totalJobs")
    completed_jobs: int = Field(alias="completedJobs")
    in_progress_jobs: int = Field(alias="inProgressJobs")
    planned_jobs: int = Field(alias="plannedJobs")
    held_jobs: int = Field(alias="heldJobs", description="Always current, ignores the date window")
    major_hold_jobs: int = Field(alias="majorHoldJobs", description="Always current, ignores the date window")
    total_steps: int = Field(alias="totalSteps")
    completed_steps: int = Field(alias="completedSteps")
    efficiency: int = Field(ge=0, le=100, description="Completed steps as a rounded percentage")
    active_users: int = Field(alias="activeUsers")
    step_completion_stats: dict[str, Any] = Field(alias="stepCompletionStats", default_factory=dict)
    time_series_data: list[TimeSeriesPointResponse] = Field(alias="timeSeriesData", default_factory=list)
    machine_utilization: dict[str, Any] = Field(alias="machineUtilization", default_factory=dict)
    date_range: dict[str, str] | None = Field(alias="dateRange", default=None)


# ==== Production Head ====


class ProductionResponse(BaseModel):
    """Production-head step counters plus the printing roll-up."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    total_jobs: int = Field(alias="totalJobs")
    step_summary: dict[str, dict[str, int]] = Field(alias="stepSummary", default_factory=dict)
    overall_efficiency: int = Field(alias="overallEfficiency")
    printing: dict[str, Any] = Field(default_factory=dict)


# ==== Lists ====


class ListResponse(BaseModel):
    """Standard list endpoint response."""

    items: list[Any] = Field(default_factory=list, description="Result items")
    total: int = Field(description="Total count")


# ==== Health Check ====


class HealthResponse(BaseModel):
    """Health check result."""

    status: str = Field(description="healthy")
    version: str = Field(description="Package version")
    timestamp: str = Field(description="ISO timestamp")
