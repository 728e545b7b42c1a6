"""
Tests for the production-head and printing views.
"""

from boxops.catalog import StepCategory
from boxops.production import (
    jobs_by_step_and_status,
    printing_records,
    printing_summary,
    production_steps_for_job,
    production_summary,
    step_accepted,
)
from tests.fixtures import make_completed, make_job, make_step


class TestStepAccepted:
    """Acceptance from details, sub-objects or the completion ledger."""

    def test_nested_detail_block(self):
        step = make_step("Corrugation", status="stop", stepDetails={"data": {"corrugation": {"status": "accept"}}})
        assert step_accepted(step)

    def test_detail_data_status(self):
        step = make_step("Punching", status="stop", stepDetails={"data": {"status": "accept"}})
        assert step_accepted(step)

    def test_ledger_entry(self):
        step = make_step("FluteLaminateBoardConversion", status="stop")
        ledger = {"flutelam": [{"status": "pending"}, {"status": "accept"}]}
        assert step_accepted(step, ledger)

    def test_sub_object(self):
        step = make_step("SideFlapPasting", status="stop", sideFlapPasting={"status": "accept"})
        assert step_accepted(step)

    def test_stop_alone_is_not_accepted(self):
        assert not step_accepted(make_step("Punching", status="stop"), {})


class TestProductionSummary:
    """Workflow-flag counters for the four machine steps."""

    def test_counts(self):
        jobs = [
            make_job("NRC-1", steps=[make_step("Corrugation", status="planned"), make_step("Punching", status="start")]),
            make_job("NRC-2", steps=[make_step("Corrugation", status="stop"), make_step("Punching", status="accept")]),
            make_job("NRC-3", steps=[make_step("Corrugation", status="stop"), make_step("PaperStore", status="stop")]),
        ]
        completed = [make_completed("NRC-3", allStepDetails={"corrugation": [{"status": "accept"}]})]

        summary = production_summary(jobs, completed)

        corrugation = summary.step_summary[StepCategory.CORRUGATION]
        assert corrugation.total == 3
        assert corrugation.planned == 1
        assert corrugation.stop == 1
        assert corrugation.completed == 1
        assert corrugation.in_progress == 1

        punching = summary.step_summary[StepCategory.PUNCHING]
        assert (punching.start, punching.completed) == (1, 1)

        assert StepCategory.PAPER_STORE not in summary.step_summary
        assert summary.total_jobs == 3
        # 2 completed of 5 counted steps
        assert summary.overall_efficiency == 40

    def test_legacy_alias_counted(self):
        summary = production_summary([make_job(steps=[make_step("Flap Pasting", status="start")])])
        assert summary.step_summary[StepCategory.SIDE_FLAP_PASTING].start == 1

    def test_empty(self):
        out = production_summary([]).to_dict()
        assert out["overallEfficiency"] == 0
        assert set(out["stepSummary"]) == {"corrugation", "fluteLamination", "punching", "flapPasting"}

    def test_custom_step_list(self):
        summary = production_summary([], steps=[StepCategory.PRINTING])
        assert list(summary.step_summary) == [StepCategory.PRINTING]


class TestJobsByStepAndStatus:
    """Drill-down from a counter to its steps."""

    def _jobs(self):
        return [
            make_job("NRC-1", steps=[make_step("Punching", status="stop", stepDetails={"data": {"status": "accept"}})]),
            make_job("NRC-2", steps=[make_step("Punching", status="stop")]),
            make_job("NRC-3", steps=[make_step("Punching", status="accept")]),
        ]

    def test_completed_includes_accepted_stops(self):
        matches = jobs_by_step_and_status(self._jobs(), [], "punching", "completed")
        assert [m.job.nrc_job_no for m in matches] == ["NRC-1", "NRC-3"]
        assert matches[0].display_status == "accepted"
        assert matches[1].display_status == "accept"

    def test_stop_excludes_accepted(self):
        matches = jobs_by_step_and_status(self._jobs(), [], StepCategory.PUNCHING, "stop")
        assert [m.job.nrc_job_no for m in matches] == ["NRC-2"]

    def test_unknown_step(self):
        assert jobs_by_step_and_status(self._jobs(), [], "laser", "stop") == []

    def test_to_dict(self):
        row = jobs_by_step_and_status(self._jobs(), [], "Punching", "completed")[0].to_dict()
        assert row["jobPlan"]["nrcJobNo"] == "NRC-1"
        assert row["step"]["status"] == "accepted"


class TestProductionStepsForJob:
    def test_groups_by_category(self):
        job = make_job(steps=[make_step("Corrugation"), make_step("PaperStore"), make_step("Punching")])
        grouped = production_steps_for_job(job)
        assert len(grouped[StepCategory.CORRUGATION]) == 1
        assert grouped[StepCategory.FLUTE_LAMINATION] == []
        assert StepCategory.PAPER_STORE not in grouped

    def test_none_job(self):
        assert all(steps == [] for steps in production_steps_for_job(None).values())


class TestPrintingSummary:
    """Printing roll-up."""

    def test_totals(self):
        records = [
            {"status": "accept", "quantity": 1000, "wastage": 50, "stepStatus": "stop"},
            {"status": "hold", "quantity": 500, "wastage": 25},
            {"status": "pending", "stepStatus": "planned"},
        ]
        summary = printing_summary(records)
        assert summary.total_print_jobs == 3
        assert summary.total_quantity_printed == 1500
        assert summary.accepted_jobs == 1
        assert summary.hold_jobs == 1
        assert summary.pending_jobs == 1
        assert summary.planned_jobs == 1
        assert summary.average_wastage_percentage == 5

    def test_empty(self):
        assert printing_summary([]).to_dict()["averageWastagePercentage"] == 0

    def test_records_from_printing_steps(self):
        job = make_job(
            steps=[
                make_step("PrintingDetails", status="stop", stepDetails={"status": "accept", "data": {"quantity": 200}}),
                make_step("Printing", status="planned", printingDetails={"status": "pending"}),
                make_step("Corrugation", status="stop"),
            ]
        )
        records = printing_records([job])
        assert len(records) == 2
        assert records[0]["quantity"] == 200
        assert records[0]["status"] == "accept"
        assert records[1] == {"status": "pending", "jobNrcJobNo": "NRC-1", "stepStatus": "planned"}
