"""
boxops - aggregation engine behind the box-plant operations dashboards.

Raw job-planning records go in; one DashboardSnapshot comes out:
job counts by category, per-step completion statistics, a daily time
series, machine utilization and the held/major-hold figures.

    from boxops import DashboardService

    snapshot = DashboardService().load("week")
    print(snapshot.efficiency)
"""

from .classify import JobCategory, JobClassification, classify_job, jobs_in_category
from .client import DashboardService, JobDataAuthError, JobDataClient, JobDataError
from .contracts import InvariantViolation, check_snapshot_invariants
from .date_range import DateFilter, DateRange, in_range, range_for
from .models import CompletedJob, HeldJob, JobPlan, MachineRecord, Step, StepDetails
from .snapshot import DashboardSnapshot, always_current_counts, apply_date_filter, build_snapshot, card_jobs
from .status import StepState, is_major_hold, resolve_step_status, resolve_step_status_strict
from .step_stats import StepBucket, aggregate_step_stats, merge_alias_buckets
from .timeseries import TimeSeriesPoint, bin_time_series

__version__ = "1.0.0"

__all__ = [
    # Records
    "Step",
    "StepDetails",
    "JobPlan",
    "CompletedJob",
    "HeldJob",
    "MachineRecord",
    # Engine
    "StepState",
    "resolve_step_status",
    "resolve_step_status_strict",
    "is_major_hold",
    "JobCategory",
    "JobClassification",
    "classify_job",
    "jobs_in_category",
    "StepBucket",
    "aggregate_step_stats",
    "merge_alias_buckets",
    "DateFilter",
    "DateRange",
    "range_for",
    "in_range",
    "TimeSeriesPoint",
    "bin_time_series",
    "DashboardSnapshot",
    "build_snapshot",
    "apply_date_filter",
    "always_current_counts",
    "card_jobs",
    "InvariantViolation",
    "check_snapshot_invariants",
    # Data fetch
    "JobDataClient",
    "JobDataError",
    "JobDataAuthError",
    "DashboardService",
]
