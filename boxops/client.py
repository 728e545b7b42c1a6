"""
JobDataClient - Read-only client for the job-planning backend.

Wraps the REST endpoints the dashboards read from. Every list endpoint
answers with an envelope {"success": bool, "data": ...}; a failed
envelope, a non-2xx status or a transport error raises JobDataError so a
dashboard is never built from partial data. The one tolerated failure is
a 404 from a per-step detail lookup, which just means no detail yet.

Uses httpx for HTTP calls.
"""

import logging
import time
from collections.abc import Iterable
from datetime import date, tzinfo

import httpx

from . import config
from .catalog import DETAIL_ENDPOINTS, DETAIL_KEYS, StepCategory
from .config import DashboardSettings, load_dashboard_settings
from .date_range import DateFilter, range_for
from .models import CompletedJob, HeldJob, JobPlan, MachineRecord, Step, StepDetails
from .observability import metrics
from .observability.context import REQUEST_ID_HEADER, get_request_id
from .snapshot import DashboardSnapshot, apply_date_filter, build_snapshot
from .status import START, STOP, StatusResolver, resolve_step_status

logger = logging.getLogger(__name__)


class JobDataError(Exception):
    """The job-data API could not deliver a usable response."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class JobDataAuthError(JobDataError):
    """The API rejected the bearer token (HTTP 401)."""

    pass


class JobDataClient:
    """Fetch job plans, completed jobs, held jobs, machines and step details."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        detail_endpoints: dict[StepCategory, str] | None = None,
    ):
        """
        Args:
            base_url: API root. Defaults to BOXOPS_API_BASE_URL.
            token: Bearer token. Defaults to BOXOPS_API_TOKEN.
            timeout: Per-request timeout in seconds. Defaults to BOXOPS_HTTP_TIMEOUT.
            detail_endpoints: Per-category detail slugs (dashboard.yaml overrides).
        """
        self.base_url = (base_url or config.API_BASE_URL).rstrip("/")
        self.token = token if token is not None else config.API_TOKEN
        self.timeout = timeout if timeout is not None else config.HTTP_TIMEOUT
        self.detail_endpoints = dict(detail_endpoints or DETAIL_ENDPOINTS)

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        request_id = get_request_id()
        if request_id:
            headers[REQUEST_ID_HEADER] = request_id
        return headers

    def _request(
        self,
        endpoint: str,
        params: dict[str, str] | None = None,
        allow_not_found: bool = False,
    ) -> dict | None:
        """
        GET endpoint and return the decoded envelope.

        Returns None only for a 404 when allow_not_found is set.
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        metrics.job_data_requests.inc()
        start = time.perf_counter()
        try:
            response = httpx.request(
                "GET",
                url,
                headers=self._headers(),
                params=params,
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            metrics.job_data_errors.inc()
            logger.error("Job-data request to %s failed: %s", url, e)
            raise JobDataError(f"Request to {endpoint} failed: {e}") from e
        finally:
            metrics.job_data_latency.observe(time.perf_counter() - start)

        if response.status_code == 404 and allow_not_found:
            return None

        if response.status_code == 401:
            metrics.job_data_errors.inc()
            logger.error("Job-data API rejected credentials for %s", url)
            raise JobDataAuthError("Job-data API rejected the access token", status_code=401)

        if not 200 <= response.status_code < 300:
            metrics.job_data_errors.inc()
            error_msg = f"Job-data API error {response.status_code} for {endpoint}: {response.text[:200]}"
            logger.error(error_msg)
            raise JobDataError(error_msg, status_code=response.status_code)

        try:
            payload = response.json()
        except ValueError as e:
            metrics.job_data_errors.inc()
            logger.error("Job-data API returned invalid JSON for %s", url)
            raise JobDataError(f"Invalid JSON from {endpoint}") from e

        if not isinstance(payload, dict) or payload.get("success") is False:
            metrics.job_data_errors.inc()
            message = payload.get("message") if isinstance(payload, dict) else None
            logger.error("Job-data API reported failure for %s: %s", url, message)
            raise JobDataError(f"Job-data API reported failure for {endpoint}: {message or 'invalid envelope'}")

        return payload

    def _list(self, endpoint: str, params: dict[str, str] | None = None) -> list[dict]:
        data = self._request(endpoint, params).get("data")
        if not isinstance(data, list):
            raise JobDataError(f"Expected a list from {endpoint}, got {type(data).__name__}")
        return [item for item in data if isinstance(item, dict)]

    # =========================================================================
    # Feeds
    # =========================================================================

    @staticmethod
    def date_params(
        filter_name: str | None = None,
        custom_range: "tuple[str, str] | dict | None" = None,
    ) -> dict[str, str]:
        """
        Query parameters for a server-side date filter.

        Named filters pass through as ``filter=``; a custom window becomes
        ``startDate=``/``endDate=``; "all" sends nothing.
        """
        date_filter = DateFilter.parse(filter_name)
        if date_filter is None:
            return {}
        if date_filter is not DateFilter.CUSTOM:
            return {"filter": date_filter.value}
        window = range_for(date_filter, custom_range)
        return {"startDate": window.start.isoformat(), "endDate": window.end.isoformat()}

    def fetch_job_plans(self, filter_name: str | None = None, custom_range=None) -> list[JobPlan]:
        raw = self._list("job-planning/", self.date_params(filter_name, custom_range))
        return [JobPlan.from_dict(item) for item in raw]

    def fetch_completed_jobs(self, filter_name: str | None = None, custom_range=None) -> list[CompletedJob]:
        raw = self._list("completed-jobs", self.date_params(filter_name, custom_range))
        return [CompletedJob.from_dict(item) for item in raw]

    def fetch_held_jobs(self) -> list[HeldJob]:
        """Held jobs from the held-machines feed (data.heldJobs)."""
        data = self._request("job-step-machines/held-machines").get("data")
        held = data.get("heldJobs") if isinstance(data, dict) else None
        if not isinstance(held, list):
            raise JobDataError("Expected data.heldJobs list from held-machines")
        return [HeldJob.from_dict(item) for item in held if isinstance(item, dict)]

    def fetch_machines(self) -> list[MachineRecord]:
        return [MachineRecord.from_dict(item) for item in self._list("machines")]

    # =========================================================================
    # Step details
    # =========================================================================

    def fetch_step_detail(self, step: Step) -> StepDetails | None:
        """
        Look up the outcome record of one step.

        Returns None for unknown step names, steps without an id, and 404s.
        The backend wraps the record as data.<detailKey>; when that record
        has no nested "data" of its own, its fields become stepDetails.data
        so remarks and status sit where the resolvers look for them.
        """
        category = step.category
        if category is None or step.id is None:
            return None
        slug = self.detail_endpoints.get(category)
        if not slug:
            return None

        metrics.step_detail_lookups.inc()
        payload = self._request(f"{slug}/by-step-id/{step.id}", allow_not_found=True)
        if payload is None:
            return None
        data = payload.get("data")
        if not isinstance(data, dict):
            return None

        record = next(
            (data[key] for key in DETAIL_KEYS[category] if isinstance(data.get(key), dict)),
            data,
        )
        if isinstance(record.get("data"), dict):
            return StepDetails.from_dict(record)
        return StepDetails(status=record.get("status") if isinstance(record.get("status"), str) else None, data=record)

    def attach_step_details(self, job_plans: Iterable[JobPlan]) -> int:
        """
        Fill stepDetails for started and stopped steps, in place.

        Planned steps have no detail yet and are not looked up.
        Returns the number of steps that received details.
        """
        attached = 0
        for job in job_plans:
            for step in job.steps:
                if step.status not in (START, STOP):
                    continue
                details = self.fetch_step_detail(step)
                if details is not None:
                    step.step_details = details
                    attached += 1
        return attached


# =============================================================================
# SERVICE
# =============================================================================


class DashboardService:
    """
    One aggregation pass: fetch every feed, build, filter.

    The machine inventory is fetched exactly once per pass.
    """

    def __init__(
        self,
        client: JobDataClient | None = None,
        settings: DashboardSettings | None = None,
        resolver: StatusResolver = resolve_step_status,
        tz: tzinfo | None = None,
    ):
        self.settings = settings or load_dashboard_settings()
        self.client = client or JobDataClient(detail_endpoints=self.settings.detail_endpoints)
        self.resolver = resolver
        self.tz = tz if tz is not None else config.local_timezone()

    def fetch_feeds(self) -> tuple[list[JobPlan], list[CompletedJob], list[HeldJob], list[MachineRecord]]:
        """Unfiltered feeds with step details attached."""
        job_plans = self.client.fetch_job_plans()
        completed = self.client.fetch_completed_jobs()
        held = self.client.fetch_held_jobs()
        machines = self.client.fetch_machines()
        attached = self.client.attach_step_details(job_plans)
        logger.info(
            "Fetched %d job plans, %d completed, %d held, %d machines (%d step details)",
            len(job_plans),
            len(completed),
            len(held),
            len(machines),
            attached,
        )
        return job_plans, completed, held, machines

    @metrics.timed(metrics.snapshot_duration)
    def load(
        self,
        filter_name: str | None = None,
        custom_range: "tuple[str, str] | dict | None" = None,
        today: date | None = None,
    ) -> DashboardSnapshot:
        """
        Fetch unfiltered feeds, build, then apply the date window locally.

        Fetching unfiltered keeps the held and major-hold counts current
        whatever window is shown.

        Raises:
            JobDataError: If any feed fails (no partial snapshot)
            ValueError: On an unknown filter name or bad custom dates
        """
        if filter_name is None:
            filter_name = config.DEFAULT_FILTER
        range_for(filter_name, custom_range, today=today)

        job_plans, completed, held, machines = self.fetch_feeds()
        snapshot = build_snapshot(job_plans, completed, held, machines, self.resolver, tz=self.tz)
        metrics.snapshot_builds.inc()
        metrics.snapshot_jobs.set(snapshot.total_jobs)
        return apply_date_filter(snapshot, filter_name, custom_range, today=today, resolver=self.resolver, tz=self.tz)

    def production(self) -> tuple[list[JobPlan], list[CompletedJob]]:
        """Unfiltered plans (with step details) and completed jobs for the production view."""
        job_plans = self.client.fetch_job_plans()
        completed = self.client.fetch_completed_jobs()
        self.client.attach_step_details(job_plans)
        return job_plans, completed
