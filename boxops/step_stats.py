"""
Step Completion Statistics - Per-category counters with drill-down lists.

Each job contributes at most once to each category bucket: the first of
its steps matching the category (or any alias) is resolved and counted.
Steps matching no known category get an ad-hoc bucket under their literal
name, so unknown workflow steps are never dropped.

After counting, alias buckets are merged under one display label
(PrintingDetails + Printing -> "Printing", ...).

Invariant: for every bucket, completed + in_progress + planned equals the
number of jobs with a step in that category. Held steps therefore count
as planned: they have not progressed.
"""

import logging
from dataclasses import dataclass, field

from .catalog import StepCategory, canonical_category, merge_label
from .models import JobPlan
from .status import StatusResolver, StepState, resolve_step_status

logger = logging.getLogger(__name__)


@dataclass
class StepBucket:
    """Counters for one step category plus the jobs behind each counter."""

    completed: int = 0
    in_progress: int = 0
    planned: int = 0
    completed_jobs: list[JobPlan] = field(default_factory=list)
    in_progress_jobs: list[JobPlan] = field(default_factory=list)
    planned_jobs: list[JobPlan] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.completed + self.in_progress + self.planned

    def add(self, state: StepState, job: JobPlan) -> None:
        if state is StepState.COMPLETED:
            self.completed += 1
            self.completed_jobs.append(job)
        elif state is StepState.IN_PROGRESS:
            self.in_progress += 1
            self.in_progress_jobs.append(job)
        else:
            self.planned += 1
            self.planned_jobs.append(job)

    def merge(self, other: "StepBucket") -> None:
        self.completed += other.completed
        self.in_progress += other.in_progress
        self.planned += other.planned
        self.completed_jobs.extend(other.completed_jobs)
        self.in_progress_jobs.extend(other.in_progress_jobs)
        self.planned_jobs.extend(other.planned_jobs)

    def to_dict(self, include_jobs: bool = True) -> dict:
        out = {
            "completed": self.completed,
            "inProgress": self.in_progress,
            "planned": self.planned,
        }
        if include_jobs:
            out["completedData"] = [j.ref() for j in self.completed_jobs]
            out["inProgressData"] = [j.ref() for j in self.in_progress_jobs]
            out["plannedData"] = [j.ref() for j in self.planned_jobs]
        return out


@dataclass
class StepStatistics:
    """Merged buckets plus the operators seen on counted steps."""

    buckets: dict[str, StepBucket]
    active_users: set[str]

    def to_dict(self, include_jobs: bool = True) -> dict:
        return {name: b.to_dict(include_jobs) for name, b in self.buckets.items()}


def aggregate_step_stats(
    jobs: list[JobPlan],
    resolver: StatusResolver = resolve_step_status,
) -> StepStatistics:
    """Fold jobs into per-category buckets and merge alias buckets."""
    raw: dict[str, StepBucket] = {category.value: StepBucket() for category in StepCategory}
    users: set[str] = set()

    for job in jobs:
        for category in StepCategory:
            step = next((s for s in job.steps if canonical_category(s.step_name) is category), None)
            if step is None:
                continue
            raw[category.value].add(resolver(step), job)
            if step.user:
                users.add(step.user)

        seen_unknown: set[str] = set()
        for step in job.steps:
            if step.category is not None or step.step_name in seen_unknown:
                continue
            seen_unknown.add(step.step_name)
            if step.step_name not in raw:
                logger.debug("Unknown step %r on job %s", step.step_name, job.nrc_job_no)
                raw[step.step_name] = StepBucket()
            raw[step.step_name].add(resolver(step), job)
            if step.user:
                users.add(step.user)

    return StepStatistics(buckets=merge_alias_buckets(raw), active_users=users)


def merge_alias_buckets(buckets: dict[str, StepBucket]) -> dict[str, StepBucket]:
    """
    Sum alias buckets into one bucket per display label.

    Input buckets are not modified. Names outside every alias group pass
    through under their own name.
    """
    merged: dict[str, StepBucket] = {}
    for name, bucket in buckets.items():
        key = merge_label(name)
        if key not in merged:
            merged[key] = StepBucket()
        merged[key].merge(bucket)
    return merged
