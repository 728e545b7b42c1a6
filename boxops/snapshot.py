"""
Dashboard Aggregate Builder - One consistent snapshot for every view.

build_snapshot folds the four feeds (job plans, completed jobs, held jobs,
machines) into a DashboardSnapshot. apply_date_filter re-runs the job
classification, step statistics and time series over the date-filtered
plans and completed jobs, then copies the held and major-hold counts from
the unfiltered snapshot: those two figures are always current.

A job plan whose nrcJobNo already appears in the completed feed is
superseded and left out of plan-side counting, so each job is counted
once in totalJobs.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import date, tzinfo

from .classify import JobCategory, classify_job, jobs_in_category
from .contracts import check_snapshot_invariants, expected_efficiency
from .date_range import DateRange, filter_completed_jobs, filter_job_plans, range_for
from .machines import MachineUtilization, machine_utilization
from .models import CompletedJob, HeldJob, JobPlan, MachineRecord
from .status import StatusResolver, is_major_hold, resolve_step_status
from .step_stats import StepBucket, aggregate_step_stats
from .timeseries import TimeSeriesPoint, bin_time_series

logger = logging.getLogger(__name__)


@dataclass
class DashboardSnapshot:
    """The aggregate every dashboard view renders from."""

    total_jobs: int = 0
    completed_jobs: int = 0
    in_progress_jobs: int = 0
    planned_jobs: int = 0
    held_jobs: int = 0
    major_hold_jobs: int = 0
    total_steps: int = 0
    completed_steps: int = 0
    efficiency: int = 0
    active_users: int = 0
    step_completion_stats: dict[str, StepBucket] = field(default_factory=dict)
    time_series: list[TimeSeriesPoint] = field(default_factory=list)
    machine_utilization: MachineUtilization = field(default_factory=MachineUtilization)

    # Records behind the counters, for drill-down
    job_plans: list[JobPlan] = field(default_factory=list)
    completed_jobs_data: list[CompletedJob] = field(default_factory=list)
    held_jobs_data: list[HeldJob] = field(default_factory=list)
    major_hold_jobs_data: list[JobPlan] = field(default_factory=list)
    machines: list[MachineRecord] = field(default_factory=list)
    date_range: DateRange | None = None

    def to_dict(self, include_jobs: bool = True) -> dict:
        out = {
            "totalJobs": self.total_jobs,
            "completedJobs": self.completed_jobs,
            "inProgressJobs": self.in_progress_jobs,
            "plannedJobs": self.planned_jobs,
            "heldJobs": self.held_jobs,
            "majorHoldJobs": self.major_hold_jobs,
            "totalSteps": self.total_steps,
            "completedSteps": self.completed_steps,
            "efficiency": self.efficiency,
            "activeUsers": self.active_users,
            "stepCompletionStats": {
                name: bucket.to_dict(include_jobs) for name, bucket in self.step_completion_stats.items()
            },
            "timeSeriesData": [p.to_dict() for p in self.time_series],
            "machineUtilization": self.machine_utilization.to_dict(),
            "dateRange": self.date_range.to_dict() if self.date_range else None,
        }
        if include_jobs:
            out["completedJobsData"] = [c.ref() for c in self.completed_jobs_data]
            out["heldJobsData"] = [h.ref() for h in self.held_jobs_data]
            out["majorHoldJobsData"] = [j.ref() for j in self.major_hold_jobs_data]
        return out


def active_job_plans(job_plans: Iterable[JobPlan], completed_jobs: Iterable[CompletedJob]) -> list[JobPlan]:
    """Job plans not yet superseded by a completed-jobs record."""
    done = {c.nrc_job_no for c in completed_jobs if c.nrc_job_no}
    return [job for job in job_plans if job.nrc_job_no not in done]


def _fold_jobs(
    snapshot: DashboardSnapshot,
    job_plans: list[JobPlan],
    completed_jobs: list[CompletedJob],
    resolver: StatusResolver,
    tz: tzinfo | None,
) -> None:
    """Fill the job, step and series figures of snapshot from the given sets."""
    in_progress = planned = total_steps = completed_steps = 0
    for job in job_plans:
        result = classify_job(job, resolver)
        total_steps += result.total_step_count
        completed_steps += result.completed_step_count
        if result.category is JobCategory.IN_PROGRESS:
            in_progress += 1
        elif result.category is JobCategory.PLANNED:
            planned += 1

    stats = aggregate_step_stats(job_plans, resolver)

    snapshot.job_plans = job_plans
    snapshot.completed_jobs_data = completed_jobs
    snapshot.completed_jobs = len(completed_jobs)
    snapshot.total_jobs = len(job_plans) + len(completed_jobs)
    snapshot.in_progress_jobs = in_progress
    snapshot.planned_jobs = planned
    snapshot.total_steps = total_steps
    snapshot.completed_steps = completed_steps
    snapshot.efficiency = expected_efficiency(completed_steps, total_steps)
    snapshot.active_users = len(stats.active_users)
    snapshot.step_completion_stats = stats.buckets
    snapshot.time_series = bin_time_series(job_plans, completed_jobs, resolver, tz=tz)


def build_snapshot(
    job_plans: Iterable[JobPlan],
    completed_jobs: Iterable[CompletedJob],
    held_jobs: Iterable[HeldJob] = (),
    machines: Iterable[MachineRecord] = (),
    resolver: StatusResolver = resolve_step_status,
    tz: tzinfo | None = None,
) -> DashboardSnapshot:
    """
    Build the unfiltered snapshot.

    Empty inputs give a well-defined all-zero snapshot.

    Raises:
        InvariantViolation: If the result breaks a snapshot invariant
    """
    completed = list(completed_jobs)
    active = active_job_plans(job_plans, completed)
    held = list(held_jobs)
    major_hold = [job for job in active if is_major_hold(job)]
    machine_list = list(machines)

    snapshot = DashboardSnapshot(
        held_jobs=len(held),
        major_hold_jobs=len(major_hold),
        held_jobs_data=held,
        major_hold_jobs_data=major_hold,
        machines=machine_list,
        machine_utilization=machine_utilization(machine_list),
    )
    _fold_jobs(snapshot, active, completed, resolver, tz)
    check_snapshot_invariants(snapshot.to_dict(include_jobs=False), active)

    logger.info(
        "Built dashboard snapshot: %d jobs (%d completed, %d in progress, %d planned), "
        "%d held, %d major hold, efficiency %d%%",
        snapshot.total_jobs,
        snapshot.completed_jobs,
        snapshot.in_progress_jobs,
        snapshot.planned_jobs,
        snapshot.held_jobs,
        snapshot.major_hold_jobs,
        snapshot.efficiency,
    )
    return snapshot


def always_current_counts(source: DashboardSnapshot, target: DashboardSnapshot) -> DashboardSnapshot:
    """
    Copy the held and major-hold figures (and their job lists) from source onto target.

    These never follow the date window: a job held last month is still
    held today.
    """
    target.held_jobs = source.held_jobs
    target.major_hold_jobs = source.major_hold_jobs
    target.held_jobs_data = source.held_jobs_data
    target.major_hold_jobs_data = source.major_hold_jobs_data
    return target


def apply_date_filter(
    snapshot: DashboardSnapshot,
    filter_name: str | None,
    custom_range: "tuple[str, str] | dict | None" = None,
    today: date | None = None,
    resolver: StatusResolver = resolve_step_status,
    tz: tzinfo | None = None,
) -> DashboardSnapshot:
    """
    Recompute snapshot over a date window; the input snapshot is not modified.

    "all" (or None) returns an unfiltered copy. Machine utilization is
    carried over unchanged.

    Raises:
        ValueError: On an unknown filter name or an unreadable custom date
    """
    date_range = range_for(filter_name, custom_range, today=today)
    filtered = replace(snapshot, date_range=date_range)
    if date_range is None:
        return filtered

    plans = filter_job_plans(snapshot.job_plans, date_range, tz)
    completed = filter_completed_jobs(snapshot.completed_jobs_data, date_range, tz)
    _fold_jobs(filtered, plans, completed, resolver, tz)
    always_current_counts(snapshot, filtered)
    check_snapshot_invariants(filtered.to_dict(include_jobs=False), plans)

    logger.debug(
        "Filtered snapshot to %s..%s: %d plans, %d completed",
        date_range.start,
        date_range.end,
        len(plans),
        len(completed),
    )
    return filtered


# Summary cards a dashboard can drill into.
CARDS = ("completed", "in_progress", "planned", "held", "major_hold")


def card_jobs(
    snapshot: DashboardSnapshot,
    card: str,
    resolver: StatusResolver = resolve_step_status,
) -> list[dict]:
    """
    Records behind one summary card; the list length equals the card's count.

    completed and held list the completed and held-machines feeds, so they
    match completedJobs and heldJobs. held and major_hold stay current
    under a date window, like their counts.

    Raises:
        ValueError: On an unknown card name
    """
    if card == "completed":
        return [c.ref() for c in snapshot.completed_jobs_data]
    if card == "held":
        return [h.ref() for h in snapshot.held_jobs_data]
    if card == "major_hold":
        return [job.to_dict() for job in snapshot.major_hold_jobs_data]
    if card in ("in_progress", "planned"):
        return [job.to_dict() for job in jobs_in_category(snapshot.job_plans, JobCategory(card), resolver)]
    raise ValueError(f"Invalid category {card!r}. Supported: {', '.join(CARDS)}")
