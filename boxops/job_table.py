"""
Job-plan table view.

The table reads steps with the strict resolver and shows held jobs as
"in progress": a held job has started and is not done.
"""

from collections.abc import Iterable
from enum import StrEnum

from .models import JobPlan
from .status import StatusResolver, StepState, resolve_step_status_strict


class TableStatus(StrEnum):
    COMPLETED = "completed"
    IN_PROGRESS = "in_progress"
    PLANNED = "planned"


# Query-string spellings accepted by the status filter.
_STATUS_ALIASES = {
    "completed": TableStatus.COMPLETED,
    "in_progress": TableStatus.IN_PROGRESS,
    "inprogress": TableStatus.IN_PROGRESS,
    "planned": TableStatus.PLANNED,
}


def job_table_status(job: JobPlan, resolver: StatusResolver = resolve_step_status_strict) -> TableStatus:
    states = [resolver(step) for step in job.steps]
    if all(state is StepState.COMPLETED for state in states):
        return TableStatus.COMPLETED
    if any(state in (StepState.IN_PROGRESS, StepState.HOLD) for state in states):
        return TableStatus.IN_PROGRESS
    return TableStatus.PLANNED


def progress_percentage(job: JobPlan, resolver: StatusResolver = resolve_step_status_strict) -> float:
    if not job.steps:
        return 0.0
    completed = sum(1 for step in job.steps if resolver(step) is StepState.COMPLETED)
    return completed / len(job.steps) * 100


def filter_job_table(
    jobs: Iterable[JobPlan],
    search: str = "",
    demand: str = "all",
    status: str = "all",
    resolver: StatusResolver = resolve_step_status_strict,
) -> list[JobPlan]:
    """
    Search and filter job plans for the table.

    search is a case-insensitive substring of nrcJobNo; demand and status
    accept "all" to disable the filter. Raises ValueError on an unknown status.
    """
    term = (search or "").strip().lower()
    wanted_status = None
    if status and status.lower() != "all":
        wanted_status = _STATUS_ALIASES.get(status.lower())
        if wanted_status is None:
            raise ValueError(f"Unknown table status {status!r}")

    rows = []
    for job in jobs:
        if term and term not in job.nrc_job_no.lower():
            continue
        if demand and demand != "all" and job.job_demand != demand:
            continue
        if wanted_status is not None and job_table_status(job, resolver) is not wanted_status:
            continue
        rows.append(job)
    return rows


def job_table_rows(
    jobs: Iterable[JobPlan],
    resolver: StatusResolver = resolve_step_status_strict,
) -> list[dict]:
    """Serialized rows with table status and progress."""
    rows = []
    for job in jobs:
        completed = sum(1 for step in job.steps if resolver(step) is StepState.COMPLETED)
        rows.append(
            {
                **job.ref(),
                "jobDemand": job.job_demand,
                "status": job_table_status(job, resolver).value,
                "completedSteps": completed,
                "totalSteps": len(job.steps),
                "progress": round(progress_percentage(job, resolver), 1),
            }
        )
    return rows
