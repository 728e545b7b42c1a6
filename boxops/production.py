"""
Production-Head and Printing Views.

The production-head view counts the four machine steps by their raw
workflow flag, with one refinement: a stopped step only counts as
completed once some record accepts it. Acceptance can come from the
step's attached details, the step-type sub-object, or the completion
ledger (allStepDetails) of the job. The ledger is taken from the
completed-jobs record with the same nrcJobNo when one exists.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from .catalog import DETAIL_KEYS, PRODUCTION_STEPS, StepCategory, canonical_category, ledger_key
from .models import CompletedJob, JobPlan, Step
from .status import ACCEPT, START, STOP

logger = logging.getLogger(__name__)

# View keys used by the production-head screens.
VIEW_KEYS: dict[StepCategory, str] = {
    StepCategory.CORRUGATION: "corrugation",
    StepCategory.FLUTE_LAMINATION: "fluteLamination",
    StepCategory.PUNCHING: "punching",
    StepCategory.SIDE_FLAP_PASTING: "flapPasting",
}
_VIEW_KEY_TO_CATEGORY = {v: k for k, v in VIEW_KEYS.items()}

ACCEPTED_LABEL = "accepted"


# =============================================================================
# ACCEPTANCE
# =============================================================================


def _ledger_entries_accept(ledger: dict[str, Any], key: str) -> bool:
    entries = ledger.get(key)
    if isinstance(entries, dict):
        entries = [entries]
    if not isinstance(entries, list):
        return False
    return any(isinstance(e, dict) and e.get("status") == ACCEPT for e in entries)


def step_accepted(step: Step, ledger: dict[str, Any] | None = None) -> bool:
    """True when any detail record or the completion ledger accepts the step."""
    category = step.category
    keys = DETAIL_KEYS[category] if category else (step.step_name.lower(),)
    details = step.step_details

    if details is not None:
        if category and details.nested_status(ledger_key(category)) == ACCEPT:
            return True
        if details.data_status == ACCEPT or details.status == ACCEPT:
            return True

    if ledger and any(_ledger_entries_accept(ledger, key) for key in keys):
        return True

    return any(
        step.type_detail(key) is not None and step.type_detail(key).has_status(ACCEPT)
        for key in keys
    )


def _ledgers_by_job(completed_jobs: Iterable[CompletedJob]) -> dict[str, dict[str, Any]]:
    return {c.nrc_job_no: c.all_step_details for c in completed_jobs if c.all_step_details}


def _ledger_for(job: JobPlan, ledgers: dict[str, dict[str, Any]]) -> dict[str, Any]:
    return ledgers.get(job.nrc_job_no) or job.all_step_details


def _to_category(step: "StepCategory | str") -> StepCategory | None:
    if isinstance(step, StepCategory):
        return step
    return _VIEW_KEY_TO_CATEGORY.get(step) or canonical_category(step)


# =============================================================================
# PRODUCTION SUMMARY
# =============================================================================


@dataclass
class ProductionStepCounts:
    total: int = 0
    planned: int = 0
    start: int = 0
    stop: int = 0
    completed: int = 0
    in_progress: int = 0

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "planned": self.planned,
            "start": self.start,
            "stop": self.stop,
            "completed": self.completed,
            "inProgress": self.in_progress,
        }


@dataclass
class ProductionSummary:
    total_jobs: int = 0
    step_summary: dict[StepCategory, ProductionStepCounts] = field(default_factory=dict)
    overall_efficiency: int = 0

    def to_dict(self) -> dict:
        return {
            "totalJobs": self.total_jobs,
            "stepSummary": {
                VIEW_KEYS.get(category, category.value): counts.to_dict()
                for category, counts in self.step_summary.items()
            },
            "overallEfficiency": self.overall_efficiency,
        }


def production_summary(
    job_plans: Iterable[JobPlan],
    completed_jobs: Iterable[CompletedJob] = (),
    steps: Iterable[StepCategory] = PRODUCTION_STEPS,
) -> ProductionSummary:
    """Count production steps by workflow flag, completing accepted stops."""
    wanted = tuple(steps)
    summary = ProductionSummary(step_summary={c: ProductionStepCounts() for c in wanted})
    ledgers = _ledgers_by_job(completed_jobs)
    completed_steps = 0
    total_steps = 0

    for job in job_plans:
        summary.total_jobs += 1
        ledger = _ledger_for(job, ledgers)
        for step in job.steps:
            category = step.category
            if category not in summary.step_summary:
                continue
            counts = summary.step_summary[category]
            counts.total += 1
            total_steps += 1

            if step.status == "planned":
                counts.planned += 1
            elif step.status == START:
                counts.start += 1
                counts.in_progress += 1
            elif step.status == STOP:
                if step_accepted(step, ledger):
                    counts.completed += 1
                    completed_steps += 1
                else:
                    counts.stop += 1
                    counts.in_progress += 1
            elif step.status in ("completed", ACCEPT):
                counts.completed += 1
                completed_steps += 1
            else:
                counts.planned += 1

    summary.overall_efficiency = round(completed_steps / total_steps * 100) if total_steps > 0 else 0
    return summary


@dataclass
class StepMatch:
    """One step row in a production drill-down."""

    job: JobPlan
    step: Step
    display_status: str | None

    def to_dict(self) -> dict:
        step = self.step.to_dict()
        step["status"] = self.display_status
        return {"jobPlan": self.job.ref(), "step": step}


def jobs_by_step_and_status(
    job_plans: Iterable[JobPlan],
    completed_jobs: Iterable[CompletedJob],
    step: "StepCategory | str",
    status: str,
) -> list[StepMatch]:
    """
    Drill down from a production counter to its steps.

    ``completed`` selects accept/completed steps and accepted stops;
    ``stop`` excludes accepted stops. Accepted stops are labelled
    ``accepted`` in the returned rows.
    """
    category = _to_category(step)
    if category is None:
        logger.warning("Unknown production step %r", step)
        return []
    ledgers = _ledgers_by_job(completed_jobs)
    matches: list[StepMatch] = []

    for job in job_plans:
        ledger = _ledger_for(job, ledgers)
        for candidate in job.steps:
            if candidate.category is not category:
                continue
            accepted = candidate.status == STOP and step_accepted(candidate, ledger)
            if status == "completed":
                selected = candidate.status in ("completed", ACCEPT) or accepted
            elif status == STOP:
                selected = candidate.status == STOP and not accepted
            else:
                selected = candidate.status == status
            if selected:
                label = ACCEPTED_LABEL if accepted else candidate.status
                matches.append(StepMatch(job=job, step=candidate, display_status=label))

    return matches


def production_steps_for_job(
    job: JobPlan | None,
    steps: Iterable[StepCategory] = PRODUCTION_STEPS,
) -> dict[StepCategory, list[Step]]:
    """The production steps of one job grouped by category; empty lists when job is None."""
    grouped: dict[StepCategory, list[Step]] = {c: [] for c in steps}
    if job is None:
        return grouped
    for step in job.steps:
        if step.category in grouped:
            grouped[step.category].append(step)
    return grouped


# =============================================================================
# PRINTING
# =============================================================================


@dataclass
class PrintingSummary:
    total_print_jobs: int = 0
    total_quantity_printed: float = 0
    total_wastage: float = 0
    accepted_jobs: int = 0
    pending_jobs: int = 0
    rejected_jobs: int = 0
    in_progress_jobs: int = 0
    hold_jobs: int = 0
    planned_jobs: int = 0
    average_wastage_percentage: int = 0

    def to_dict(self) -> dict:
        return {
            "totalPrintJobs": self.total_print_jobs,
            "totalQuantityPrinted": self.total_quantity_printed,
            "totalWastage": self.total_wastage,
            "acceptedJobs": self.accepted_jobs,
            "pendingJobs": self.pending_jobs,
            "rejectedJobs": self.rejected_jobs,
            "inProgressJobs": self.in_progress_jobs,
            "holdJobs": self.hold_jobs,
            "plannedJobs": self.planned_jobs,
            "averageWastagePercentage": self.average_wastage_percentage,
        }


def _number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return value


_PRINT_STATUS_FIELDS = {
    ACCEPT: "accepted_jobs",
    "pending": "pending_jobs",
    "rejected": "rejected_jobs",
    "in_progress": "in_progress_jobs",
    "hold": "hold_jobs",
}


def printing_records(job_plans: Iterable[JobPlan]) -> list[dict[str, Any]]:
    """
    Printing-detail records of every printing step, tagged with stepStatus.

    Uses the attached stepDetails when present, else the printingDetails
    sub-object; steps with neither yield a bare record carrying only the
    workflow status.
    """
    records = []
    for job in job_plans:
        for step in job.steps:
            if step.category is not StepCategory.PRINTING:
                continue
            if step.step_details is not None:
                record = dict(step.step_details.data)
                record.setdefault("status", step.step_details.status)
            else:
                detail = step.type_detail("printingDetails")
                record = dict(detail.entries[-1]) if detail and detail.entries else {}
            record["jobNrcJobNo"] = job.nrc_job_no
            record["stepStatus"] = step.status
            records.append(record)
    return records


def printing_summary(records: Iterable[dict[str, Any]]) -> PrintingSummary:
    """Roll up printing-detail records (quantity, wastage, status counts)."""
    summary = PrintingSummary()
    for record in records:
        if not isinstance(record, dict):
            continue
        summary.total_print_jobs += 1
        summary.total_quantity_printed += _number(record.get("quantity"))
        summary.total_wastage += _number(record.get("wastage"))
        counter = _PRINT_STATUS_FIELDS.get(record.get("status"))
        if counter:
            setattr(summary, counter, getattr(summary, counter) + 1)
        if record.get("stepStatus") == "planned":
            summary.planned_jobs += 1

    if summary.total_quantity_printed > 0:
        summary.average_wastage_percentage = round(
            summary.total_wastage / summary.total_quantity_printed * 100
        )
    return summary
