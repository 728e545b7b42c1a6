"""
Tests for the dashboard API endpoints.
"""

from datetime import timezone
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from api.dashboard_router import get_service
from api.server import app
from boxops.client import DashboardService, JobDataAuthError, JobDataClient, JobDataError
from boxops.config import DashboardSettings
from tests.fixtures import make_completed, make_held, make_job, make_step


@pytest.fixture
def job_client():
    client = MagicMock(spec=JobDataClient)
    client.fetch_job_plans.return_value = [
        make_job("NRC-1", created_at="2024-03-12T08:00:00", job_demand="high", steps=[make_step(status="stop"), make_step("Punching", status="start")]),
        make_job("NRC-2", created_at="2024-03-12T08:00:00", job_demand="low", steps=[make_step(status="planned")]),
    ]
    client.fetch_completed_jobs.return_value = [make_completed("NRC-0", completed_at="2024-03-12T10:00:00")]
    client.fetch_held_jobs.return_value = [make_held("NRC-9")]
    client.fetch_machines.return_value = []
    client.attach_step_details.return_value = 0
    return client


@pytest.fixture
def api(job_client):
    service = DashboardService(client=job_client, settings=DashboardSettings(), tz=timezone.utc)
    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealth:
    def test_health(self, api):
        response = api.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_request_id_echoed(self, api):
        response = api.get("/api/health", headers={"X-Request-ID": "dash-test-1"})
        assert response.headers["x-request-id"] == "dash-test-1"

    def test_metrics_text(self, api):
        api.get("/api/dashboard", params={"filter": "all"})
        response = api.get("/api/metrics")
        assert response.status_code == 200
        assert "snapshot_builds_total" in response.text


class TestDashboardEndpoint:
    def test_all(self, api):
        response = api.get("/api/dashboard", params={"filter": "all"})
        assert response.status_code == 200
        body = response.json()
        assert body["totalJobs"] == 3
        assert body["completedJobs"] == 1
        assert body["inProgressJobs"] == 1
        assert body["plannedJobs"] == 1
        assert body["heldJobs"] == 1
        assert body["efficiency"] == 33
        assert body["stepCompletionStats"]["Corrugation"]["completed"] == 1
        assert body["timeSeriesData"][0]["date"] == "2024-03-12"

    def test_custom_range(self, api):
        response = api.get("/api/dashboard", params={"start": "2024-03-01", "end": "2024-03-05", "include_jobs": False})
        assert response.status_code == 200
        body = response.json()
        assert body["totalJobs"] == 0
        assert body["heldJobs"] == 1
        assert body["dateRange"] == {"start": "2024-03-01", "end": "2024-03-05"}

    def test_unknown_filter_is_400(self, api):
        assert api.get("/api/dashboard", params={"filter": "decade"}).status_code == 400

    def test_half_custom_range_is_400(self, api):
        assert api.get("/api/dashboard", params={"filter": "custom", "start": "2024-03-01"}).status_code == 400

    def test_bad_date_is_400(self, api):
        response = api.get("/api/dashboard", params={"filter": "custom", "start": "March", "end": "2024-03-05"})
        assert response.status_code == 400

    def test_auth_failure_is_401(self, api, job_client):
        job_client.fetch_job_plans.side_effect = JobDataAuthError("expired", status_code=401)
        assert api.get("/api/dashboard", params={"filter": "all"}).status_code == 401

    def test_provider_failure_is_502(self, api, job_client):
        job_client.fetch_machines.side_effect = JobDataError("down", status_code=503)
        assert api.get("/api/dashboard", params={"filter": "all"}).status_code == 502


class TestDrillDownEndpoints:
    def test_jobs_in_category(self, api):
        response = api.get("/api/dashboard/jobs", params={"category": "planned", "filter": "all"})
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["items"][0]["nrcJobNo"] == "NRC-2"

    def test_invalid_category(self, api):
        assert api.get("/api/dashboard/jobs", params={"category": "archived"}).status_code == 400

    def test_card_lists_match_counts_under_week(self, api, job_client):
        last_year = "2023-05-01T08:00:00"
        job_client.fetch_job_plans.return_value.append(
            make_job(
                "NRC-3",
                created_at=last_year,
                steps=[make_step(status="start", updatedAt=last_year, stepDetails={"data": {"status": "hold", "majorHoldRemark": "die crack"}})],
            )
        )
        job_client.fetch_held_jobs.return_value = [make_held("NRC-3"), make_held("NRC-9")]

        cards = api.get("/api/dashboard", params={"filter": "week", "include_jobs": False}).json()
        assert (cards["heldJobs"], cards["majorHoldJobs"]) == (2, 1)

        for category, key in [
            ("completed", "completedJobs"),
            ("in_progress", "inProgressJobs"),
            ("planned", "plannedJobs"),
            ("held", "heldJobs"),
            ("major_hold", "majorHoldJobs"),
        ]:
            body = api.get("/api/dashboard/jobs", params={"category": category, "filter": "week"}).json()
            assert body["total"] == cards[key], category

    def test_held_list_is_held_feed(self, api):
        body = api.get("/api/dashboard/jobs", params={"category": "held", "filter": "today"}).json()
        assert [item["nrcJobNo"] for item in body["items"]] == ["NRC-9"]

    def test_production(self, api):
        response = api.get("/api/dashboard/production")
        assert response.status_code == 200
        body = response.json()
        assert body["stepSummary"]["corrugation"]["total"] == 2
        assert body["stepSummary"]["punching"]["start"] == 1
        assert body["printing"]["totalPrintJobs"] == 0

    def test_production_steps(self, api):
        response = api.get("/api/dashboard/production/steps", params={"step": "punching", "status": "start"})
        assert response.json()["total"] == 1

    def test_job_table(self, api):
        response = api.get("/api/dashboard/job-table", params={"demand": "high"})
        assert response.status_code == 200
        items = response.json()["items"]
        assert [i["nrcJobNo"] for i in items] == ["NRC-1"]
        assert items[0]["status"] == "in_progress"

    def test_job_table_bad_status(self, api):
        assert api.get("/api/dashboard/job-table", params={"status": "archived"}).status_code == 400
