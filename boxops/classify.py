"""
Job Classification - Roll resolved step states up to one job category.

A job is COMPLETED only when every step resolves to completed. Hold
beats in-progress, in-progress beats planned.
"""

from dataclasses import dataclass
from enum import StrEnum

from .models import JobPlan
from .status import StatusResolver, StepState, resolve_step_status


class JobCategory(StrEnum):
    """Job-level category."""

    COMPLETED = "completed"
    HELD = "held"
    IN_PROGRESS = "in_progress"
    PLANNED = "planned"


@dataclass
class JobClassification:
    """Result of classifying one job."""

    category: JobCategory
    completed_step_count: int
    total_step_count: int

    @property
    def progress_percentage(self) -> float:
        if self.total_step_count == 0:
            return 0.0
        return self.completed_step_count / self.total_step_count * 100


def classify_job(job: JobPlan, resolver: StatusResolver = resolve_step_status) -> JobClassification:
    """
    Classify a job from its steps.

    A job with no steps is COMPLETED (nothing is left to do); callers that
    want empty plans shown as planned must special-case them.
    """
    completed = True
    in_progress = False
    on_hold = False
    completed_steps = 0

    for step in job.steps:
        state = resolver(step)
        if state is StepState.HOLD:
            on_hold = True
            completed = False
        elif state is StepState.IN_PROGRESS:
            in_progress = True
            completed = False
        elif state is StepState.PLANNED:
            completed = False
        else:
            completed_steps += 1

    if on_hold:
        category = JobCategory.HELD
    elif in_progress:
        category = JobCategory.IN_PROGRESS
    elif not completed:
        category = JobCategory.PLANNED
    else:
        category = JobCategory.COMPLETED

    return JobClassification(
        category=category,
        completed_step_count=completed_steps,
        total_step_count=len(job.steps),
    )


def jobs_in_category(
    jobs: list[JobPlan],
    category: JobCategory,
    resolver: StatusResolver = resolve_step_status,
) -> list[JobPlan]:
    """Job plans whose classification matches category (card drill-down lists)."""
    return [job for job in jobs if classify_job(job, resolver).category is category]
