"""
Date Range Filtering - Named dashboard windows and membership tests.

Windows are calendar-day ranges in the plant's local zone. Membership
normalizes the window to [start 00:00:00.000, end 23:59:59.999] so a
record stamped any time on the last day is still inside.

Job plans are filtered by activity, not creation: a job is in the window
if any of its steps was updated inside it, falling back to the job's own
createdAt only when no step qualifies. An old job therefore reappears in
a window during which one of its steps was touched.

Unparseable dates never raise; they are logged and treated as outside
every window.
"""

import calendar
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from enum import StrEnum
from typing import Any

from . import config
from .models import CompletedJob, JobPlan

logger = logging.getLogger(__name__)

_END_OF_DAY = time(23, 59, 59, 999000)


class DateFilter(StrEnum):
    """Named date windows offered by every dashboard."""

    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, name: "str | DateFilter | None") -> "DateFilter | None":
        """Parse a filter name. None, "" and "all" mean no filtering."""
        if name is None or isinstance(name, cls):
            return name
        normalized = str(name).strip().lower()
        if normalized in ("", "all"):
            return None
        try:
            return cls(normalized)
        except ValueError as e:
            raise ValueError(
                f"Unknown date filter {name!r}. Supported: all, "
                + ", ".join(f.value for f in cls)
            ) from e


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar-day window."""

    start: date
    end: date

    @property
    def start_of_day(self) -> datetime:
        return datetime.combine(self.start, time.min)

    @property
    def end_of_day(self) -> datetime:
        return datetime.combine(self.end, _END_OF_DAY)

    def contains(self, value: Any, tz: tzinfo | None = None) -> bool:
        return in_range(value, self.start, self.end, tz=tz)

    def to_dict(self) -> dict:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


# =============================================================================
# PARSING
# =============================================================================


def parse_timestamp(value: Any) -> datetime | None:
    """
    Parse an API timestamp. Returns None (and logs) when it can't be read.

    Accepts datetime, date, and ISO-8601 strings including a trailing "Z".
    Date-only strings are local calendar dates, not UTC midnight.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if not isinstance(value, str) or not value.strip():
        logger.warning("Unparseable date value %r", value)
        return None

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        logger.warning("Unparseable date value %r", value)
        return None


def to_local(value: Any, tz: tzinfo | None = None) -> datetime | None:
    """
    Naive local wall-clock time for a timestamp.

    Zone-aware values are converted to tz (host zone when tz is None and no
    zone is configured); naive values are taken as already local.
    """
    moment = parse_timestamp(value)
    if moment is None:
        return None
    if moment.tzinfo is not None:
        target = tz if tz is not None else config.local_timezone()
        moment = moment.astimezone(target).replace(tzinfo=None)
    return moment


def local_day(value: Any, tz: tzinfo | None = None) -> date | None:
    """Local calendar day of a timestamp."""
    moment = to_local(value, tz)
    return moment.date() if moment is not None else None


def parse_calendar_date(value: "str | date") -> date:
    """Parse a custom-range bound as a local calendar date. Raises ValueError."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError as e:
        raise ValueError(f"Invalid date {value!r}, expected YYYY-MM-DD") from e


# =============================================================================
# WINDOWS
# =============================================================================


def current_date(tz: tzinfo | None = None) -> date:
    """Today in the configured zone."""
    zone = tz if tz is not None else config.local_timezone()
    if zone is None:
        return date.today()
    return datetime.now(timezone.utc).astimezone(zone).date()


def range_for(
    filter_name: "str | DateFilter | None",
    custom_range: "tuple[str, str] | dict | None" = None,
    today: date | None = None,
) -> DateRange | None:
    """
    Concrete window for a named filter. None means include everything.

    custom_range is (start, end) or {"start": ..., "end": ...}; a custom
    filter without one falls back to today.
    """
    date_filter = DateFilter.parse(filter_name)
    if date_filter is None:
        return None
    if today is None:
        today = current_date()

    if date_filter is DateFilter.TODAY:
        return DateRange(today, today)

    if date_filter is DateFilter.WEEK:
        monday = today - timedelta(days=today.weekday())
        return DateRange(monday, monday + timedelta(days=6))

    if date_filter is DateFilter.MONTH:
        last_day = calendar.monthrange(today.year, today.month)[1]
        return DateRange(today.replace(day=1), today.replace(day=last_day))

    if date_filter is DateFilter.QUARTER:
        quarter = (today.month - 1) // 3
        first_month = quarter * 3 + 1
        last_month = first_month + 2
        last_day = calendar.monthrange(today.year, last_month)[1]
        return DateRange(date(today.year, first_month, 1), date(today.year, last_month, last_day))

    if date_filter is DateFilter.YEAR:
        return DateRange(date(today.year, 1, 1), date(today.year, 12, 31))

    # CUSTOM
    if not custom_range:
        return DateRange(today, today)
    if isinstance(custom_range, dict):
        start, end = custom_range.get("start"), custom_range.get("end")
    else:
        start, end = custom_range
    if not start or not end:
        return DateRange(today, today)
    return DateRange(parse_calendar_date(start), parse_calendar_date(end))


def _bound(value: "date | datetime", tz: tzinfo | None) -> date:
    if isinstance(value, datetime):
        local = to_local(value, tz)
        return local.date() if local is not None else value.date()
    return value


def in_range(
    value: Any,
    start: "date | datetime",
    end: "date | datetime",
    tz: tzinfo | None = None,
) -> bool:
    """
    True iff start <= value <= end once start is widened to 00:00:00.000
    and end to 23:59:59.999. Caller-owned bounds are never modified.
    """
    moment = to_local(value, tz)
    if moment is None:
        return False
    lower = datetime.combine(_bound(start, tz), time.min)
    upper = datetime.combine(_bound(end, tz), _END_OF_DAY)
    return lower <= moment <= upper


# =============================================================================
# RECORD FILTERS
# =============================================================================


def job_in_range(job: JobPlan, date_range: DateRange, tz: tzinfo | None = None) -> bool:
    """Activity-based membership: any step updatedAt, else the job's createdAt."""
    for step in job.steps:
        if step.updated_at and date_range.contains(step.updated_at, tz):
            return True
    return date_range.contains(job.created_at, tz)


def filter_job_plans(
    jobs: Iterable[JobPlan],
    date_range: DateRange | None,
    tz: tzinfo | None = None,
) -> list[JobPlan]:
    if date_range is None:
        return list(jobs)
    return [job for job in jobs if job_in_range(job, date_range, tz)]


def filter_completed_jobs(
    completed_jobs: Iterable[CompletedJob],
    date_range: DateRange | None,
    tz: tzinfo | None = None,
) -> list[CompletedJob]:
    """Completed jobs finished inside the window; jobs without completedAt are excluded."""
    if date_range is None:
        return list(completed_jobs)
    return [
        job
        for job in completed_jobs
        if job.completed_at and date_range.contains(job.completed_at, tz)
    ]
