"""
Tests for the dashboard aggregate builder and date re-filtering.
"""

from datetime import date

import pytest

from boxops.contracts import InvariantViolation, check_snapshot_invariants
from boxops.snapshot import (
    DashboardSnapshot,
    active_job_plans,
    always_current_counts,
    apply_date_filter,
    build_snapshot,
    card_jobs,
)
from tests.fixtures import make_completed, make_held, make_job, make_machine, make_step


@pytest.fixture
def feeds():
    """One job of each category plus a superseded plan."""
    this_week = "2024-03-12T09:00:00"
    last_year = "2023-05-01T09:00:00"
    job_plans = [
        make_job("NRC-RUN", created_at=this_week, steps=[make_step(status="stop", user="ana"), make_step("Punching", status="start", user="raj")]),
        make_job("NRC-WAIT", created_at=last_year, steps=[make_step(status="planned", updatedAt=last_year)]),
        make_job(
            "NRC-HOLD",
            created_at=last_year,
            steps=[make_step(status="start", updatedAt=last_year, stepDetails={"data": {"status": "hold", "holdRemark": "major die crack"}})],
        ),
        make_job("NRC-DONE", created_at=last_year, steps=[make_step(status="stop", updatedAt=last_year)]),
    ]
    completed = [
        make_completed("NRC-DONE", completed_at="2024-03-13T11:00:00"),
        make_completed("NRC-OLD", completed_at="2023-06-01T11:00:00"),
    ]
    held = [make_held("NRC-HOLD"), make_held("NRC-ELSEWHERE", machines=2)]
    machines = [make_machine("Corrugator", "available"), make_machine("Corrugator", "busy"), make_machine("Die Cutter", "available", is_active=False)]
    return job_plans, completed, held, machines


class TestBuildSnapshot:
    """Unfiltered aggregation."""

    def test_counts(self, feeds, utc):
        snapshot = build_snapshot(*feeds, tz=utc)

        assert snapshot.total_jobs == 5  # 3 active plans + 2 completed
        assert snapshot.completed_jobs == 2
        assert snapshot.in_progress_jobs == 1
        assert snapshot.planned_jobs == 1
        assert snapshot.held_jobs == 2
        assert snapshot.major_hold_jobs == 1
        assert snapshot.total_steps == 4
        assert snapshot.completed_steps == 1
        assert snapshot.efficiency == 25
        assert snapshot.active_users == 2

    def test_superseded_plan_excluded(self, feeds, utc):
        snapshot = build_snapshot(*feeds, tz=utc)
        assert "NRC-DONE" not in {job.nrc_job_no for job in snapshot.job_plans}

    def test_machine_utilization_from_active_machines(self, feeds, utc):
        stats = build_snapshot(*feeds, tz=utc).machine_utilization.machine_stats
        assert set(stats) == {"Corrugator"}
        assert stats["Corrugator"].available == 1
        assert stats["Corrugator"].in_use == 1

    def test_empty_inputs_give_all_zero_snapshot(self):
        snapshot = build_snapshot([], [], [], [])
        out = snapshot.to_dict()
        for key in ("totalJobs", "completedJobs", "inProgressJobs", "plannedJobs", "heldJobs", "majorHoldJobs", "totalSteps", "completedSteps", "efficiency", "activeUsers"):
            assert out[key] == 0
        assert out["timeSeriesData"] == []

    def test_to_dict_camel_case(self, feeds, utc):
        out = build_snapshot(*feeds, tz=utc).to_dict()
        assert out["stepCompletionStats"]["Corrugation"]["completed"] == 1
        assert out["stepCompletionStats"]["Corrugation"]["planned"] == 2
        assert out["stepCompletionStats"]["Punching"]["inProgressData"][0]["nrcJobNo"] == "NRC-RUN"
        assert out["heldJobsData"][1]["totalHeldMachines"] == 2
        assert out["dateRange"] is None

    def test_logs_build(self, feeds, caplog, utc):
        caplog.set_level("INFO", logger="boxops.snapshot")
        build_snapshot(*feeds, tz=utc)
        assert "Built dashboard snapshot" in caplog.text


class TestApplyDateFilter:
    """Re-aggregation over a date window."""

    def test_week_window(self, feeds, utc):
        snapshot = build_snapshot(*feeds, tz=utc)
        filtered = apply_date_filter(snapshot, "week", today=date(2024, 3, 13), tz=utc)

        assert [job.nrc_job_no for job in filtered.job_plans] == ["NRC-RUN"]
        assert filtered.completed_jobs == 1
        assert filtered.total_jobs == 2
        assert filtered.planned_jobs == 0
        assert filtered.efficiency == 50
        assert [p.date for p in filtered.time_series] == ["2024-03-12", "2024-03-13"]

    def test_held_counts_always_current(self, feeds, utc):
        snapshot = build_snapshot(*feeds, tz=utc)
        filtered = apply_date_filter(snapshot, "today", today=date(2024, 3, 13), tz=utc)

        # The held job was last touched a year ago but still counts
        assert filtered.held_jobs == 2
        assert filtered.major_hold_jobs == 1

    def test_input_snapshot_not_modified(self, feeds, utc):
        snapshot = build_snapshot(*feeds, tz=utc)
        apply_date_filter(snapshot, "today", today=date(2024, 3, 13), tz=utc)
        assert snapshot.total_jobs == 5
        assert snapshot.date_range is None

    def test_all_returns_unfiltered_copy(self, feeds, utc):
        snapshot = build_snapshot(*feeds, tz=utc)
        filtered = apply_date_filter(snapshot, "all", tz=utc)
        assert filtered is not snapshot
        assert filtered.total_jobs == snapshot.total_jobs

    def test_records_window(self, feeds, utc):
        snapshot = build_snapshot(*feeds, tz=utc)
        filtered = apply_date_filter(snapshot, "custom", ("2024-03-01", "2024-03-31"), tz=utc)
        assert filtered.to_dict()["dateRange"] == {"start": "2024-03-01", "end": "2024-03-31"}

    def test_unknown_filter_raises(self, feeds, utc):
        snapshot = build_snapshot(*feeds, tz=utc)
        with pytest.raises(ValueError):
            apply_date_filter(snapshot, "decade", tz=utc)


class TestAlwaysCurrentCounts:
    def test_copies_only_hold_figures(self):
        source = DashboardSnapshot(held_jobs=4, major_hold_jobs=2, total_jobs=40, held_jobs_data=[make_held()])
        target = DashboardSnapshot(held_jobs=0, major_hold_jobs=0, total_jobs=3)

        always_current_counts(source, target)

        assert (target.held_jobs, target.major_hold_jobs, target.total_jobs) == (4, 2, 3)
        assert target.held_jobs_data == source.held_jobs_data
        assert target.major_hold_jobs_data == source.major_hold_jobs_data


class TestCardJobs:
    """Drill-down lists behind the summary cards."""

    def test_held_card_lists_held_feed(self):
        running = make_job("NRC-RUN", steps=[make_step(status="start")])
        snapshot = build_snapshot([running], [], [make_held("X"), make_held("Y")], [])

        held = card_jobs(snapshot, "held")
        assert len(held) == snapshot.held_jobs == 2
        assert [h["nrcJobNo"] for h in held] == ["X", "Y"]

    def test_lengths_match_counts_under_week(self, feeds, utc):
        snapshot = build_snapshot(*feeds, tz=utc)
        filtered = apply_date_filter(snapshot, "week", today=date(2024, 3, 13), tz=utc)

        assert len(card_jobs(filtered, "completed")) == filtered.completed_jobs == 1
        assert len(card_jobs(filtered, "in_progress")) == filtered.in_progress_jobs == 1
        assert len(card_jobs(filtered, "planned")) == filtered.planned_jobs == 0
        assert len(card_jobs(filtered, "held")) == filtered.held_jobs == 2
        assert [j["nrcJobNo"] for j in card_jobs(filtered, "major_hold")] == ["NRC-HOLD"]
        assert filtered.major_hold_jobs == 1

    def test_unknown_card_raises(self, feeds, utc):
        with pytest.raises(ValueError):
            card_jobs(build_snapshot(*feeds, tz=utc), "archived")


class TestActiveJobPlans:
    def test_drops_plans_in_completed_feed(self):
        plans = [make_job("A"), make_job("B")]
        assert active_job_plans(plans, [make_completed("B")]) == [plans[0]]


class TestSnapshotInvariants:
    """Contract checks catch inconsistent snapshots."""

    def test_built_snapshot_passes(self, feeds, utc):
        snapshot = build_snapshot(*feeds, tz=utc)
        check_snapshot_invariants(snapshot.to_dict(include_jobs=False), snapshot.job_plans)

    def test_total_jobs_mismatch(self, feeds, utc):
        snapshot = build_snapshot(*feeds, tz=utc)
        out = snapshot.to_dict(include_jobs=False)
        out["totalJobs"] += 1
        with pytest.raises(InvariantViolation, match="totalJobs"):
            check_snapshot_invariants(out, snapshot.job_plans)

    def test_efficiency_out_of_bounds(self, feeds, utc):
        snapshot = build_snapshot(*feeds, tz=utc)
        out = snapshot.to_dict(include_jobs=False)
        out["efficiency"] = 101
        with pytest.raises(InvariantViolation, match="efficiency"):
            check_snapshot_invariants(out, snapshot.job_plans)

    def test_bucket_sum_mismatch(self, feeds, utc):
        snapshot = build_snapshot(*feeds, tz=utc)
        out = snapshot.to_dict(include_jobs=False)
        out["stepCompletionStats"]["Punching"]["planned"] += 1
        with pytest.raises(InvariantViolation, match="Punching"):
            check_snapshot_invariants(out, snapshot.job_plans)
