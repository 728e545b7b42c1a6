"""
Snapshot Invariants - Semantic correctness checks on a built snapshot.

These run every time a snapshot is built, not only in tests. Each check
recomputes one figure a second way and compares:
- totalJobs == active job plans + completed jobs
- efficiency == round(completedSteps / totalSteps * 100), 0 with no steps
- every step bucket's counters sum to the jobs carrying that step
"""

from collections.abc import Iterable

from .catalog import merge_label
from .models import JobPlan


class InvariantViolation(Exception):
    """Raised when a snapshot invariant is violated."""

    pass


def expected_efficiency(completed_steps: int, total_steps: int) -> int:
    if total_steps <= 0:
        return 0
    return round(completed_steps / total_steps * 100)


# =============================================================================
# INVARIANT FUNCTIONS
# =============================================================================


def check_total_jobs(snapshot: dict, active_job_count: int) -> None:
    """
    INVARIANT: totalJobs counts each active plan and each completed job once.

    Raises:
        InvariantViolation: If totalJobs disagrees with the two feeds
    """
    expected = active_job_count + snapshot.get("completedJobs", 0)
    if snapshot.get("totalJobs") != expected:
        raise InvariantViolation(
            f"totalJobs={snapshot.get('totalJobs')} but active plans + completed = {expected}"
        )


def check_efficiency(snapshot: dict) -> None:
    """
    INVARIANT: efficiency is the rounded completed-step share, within 0..100.

    Raises:
        InvariantViolation: If efficiency is out of bounds or miscomputed
    """
    efficiency = snapshot.get("efficiency")
    if not isinstance(efficiency, int) or not 0 <= efficiency <= 100:
        raise InvariantViolation(f"efficiency out of bounds: {efficiency!r}")

    expected = expected_efficiency(snapshot.get("completedSteps", 0), snapshot.get("totalSteps", 0))
    if efficiency != expected:
        raise InvariantViolation(
            f"efficiency={efficiency} but completedSteps/totalSteps gives {expected}"
        )


def check_step_bucket_sums(snapshot: dict, job_plans: Iterable[JobPlan]) -> None:
    """
    INVARIANT: completed + inProgress + planned equals the number of jobs
    having a step in the bucket's category (aliases included).

    Raises:
        InvariantViolation: If any bucket's counters disagree with the jobs
    """
    carrying: dict[str, int] = {}
    for job in job_plans:
        for label in {merge_label(step.step_name) for step in job.steps}:
            carrying[label] = carrying.get(label, 0) + 1

    mismatches = []
    for label, bucket in snapshot.get("stepCompletionStats", {}).items():
        counted = bucket.get("completed", 0) + bucket.get("inProgress", 0) + bucket.get("planned", 0)
        if counted != carrying.get(label, 0):
            mismatches.append(f"{label}: counted={counted}, jobs={carrying.get(label, 0)}")

    if mismatches:
        raise InvariantViolation(
            f"{len(mismatches)} step buckets do not sum to their jobs: {mismatches[:5]}"
        )


# =============================================================================
# RUNNER
# =============================================================================


def check_snapshot_invariants(snapshot: dict, job_plans: list[JobPlan]) -> None:
    """
    Run all invariants against a serialized snapshot.

    Args:
        snapshot: DashboardSnapshot.to_dict(include_jobs=False) output
        job_plans: the active (non-superseded) plans the snapshot was built from

    Raises:
        InvariantViolation: On the first failing invariant
    """
    check_total_jobs(snapshot, len(job_plans))
    check_efficiency(snapshot)
    check_step_bucket_sums(snapshot, job_plans)
