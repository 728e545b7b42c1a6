"""
Daily time series of job starts, completions and step progress.

Job plans are binned by the local calendar day of createdAt; completed
jobs by the day of completedAt. Bins are keyed by the YYYY-MM-DD string
and the series is returned in ascending date order.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, tzinfo

from .classify import JobCategory, classify_job
from .date_range import local_day
from .models import CompletedJob, JobPlan
from .status import StatusResolver, resolve_step_status

logger = logging.getLogger(__name__)


@dataclass
class TimeSeriesPoint:
    """One day of activity."""

    date: str
    jobs_started: int = 0
    jobs_completed: int = 0
    total_steps: int = 0
    completed_steps: int = 0

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "jobsStarted": self.jobs_started,
            "jobsCompleted": self.jobs_completed,
            "totalSteps": self.total_steps,
            "completedSteps": self.completed_steps,
        }


def bin_time_series(
    jobs: Iterable[JobPlan],
    completed_jobs: Iterable[CompletedJob],
    resolver: StatusResolver = resolve_step_status,
    tz: tzinfo | None = None,
) -> list[TimeSeriesPoint]:
    """
    Bucket job creation and completion events into daily points.

    Completed jobs without a usable completedAt are skipped here (they
    still count toward the completed-jobs total elsewhere).
    """
    points: dict[str, TimeSeriesPoint] = {}

    def point_for(day: date) -> TimeSeriesPoint:
        key = day.isoformat()
        if key not in points:
            points[key] = TimeSeriesPoint(date=key)
        return points[key]

    for job in jobs:
        day = local_day(job.created_at, tz)
        if day is None:
            logger.warning("Job %s has no usable createdAt, skipping in time series", job.nrc_job_no)
            continue
        result = classify_job(job, resolver)
        point = point_for(day)
        point.total_steps += result.total_step_count
        point.completed_steps += result.completed_step_count
        if result.category is JobCategory.IN_PROGRESS:
            point.jobs_started += 1

    for completed in completed_jobs:
        if not completed.completed_at:
            logger.warning("Completed job %s has no completedAt date, skipping", completed.id or completed.nrc_job_no)
            continue
        day = local_day(completed.completed_at, tz)
        if day is None:
            continue
        point_for(day).jobs_completed += 1

    return sorted(points.values(), key=lambda p: date.fromisoformat(p.date))
