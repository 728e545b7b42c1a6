"""
Step Status Resolution - One canonical lifecycle state per production step.

A step's fields come from several backend generations (primitive flag,
nested stepDetails, step-type sub-objects). The resolvers collapse them
into one of four states with a fixed priority chain; the first rule that
produces a state wins.

Two variants exist because different dashboards read steps at different
precision:
- resolve_step_status: the dashboard/statistics chain (lenient)
- resolve_step_status_strict: the job-plan table chain, which trusts
  endDate and refuses the primitive start/stop shortcut once stepDetails
  has been attached

The two can disagree on the same step; which one the job table should
really use is still open with the plant owners, so both stay.

Both are pure: the result depends only on the step's fields. Neither
raises; absent fields fall through to the next rule and end at PLANNED.
"""

from collections.abc import Callable
from enum import StrEnum

from .catalog import StepCategory
from .models import JobPlan, Step, StepDetails


class StepState(StrEnum):
    """Canonical resolved lifecycle state of a step."""

    COMPLETED = "completed"
    IN_PROGRESS = "in_progress"
    HOLD = "hold"
    PLANNED = "planned"


StatusResolver = Callable[[Step], StepState]

# Raw status strings
ACCEPT = "accept"
IN_PROGRESS = "in_progress"
HOLD = "hold"
MAJOR_HOLD = "major_hold"
START = "start"
STOP = "stop"

_SUB_STATUS = {
    ACCEPT: StepState.COMPLETED,
    IN_PROGRESS: StepState.IN_PROGRESS,
    HOLD: StepState.HOLD,
}


def _is_detail_hold(details: StepDetails | None) -> bool:
    if details is None:
        return False
    return details.data_status == HOLD or details.status == HOLD


def _detail_state(detail_status: str | None, primitive: str | None) -> StepState | None:
    """
    Map a stepDetails status under the lenient rules.

    ``accept`` only completes a step the workflow has stopped; while the
    step is still started it stays IN_PROGRESS. Any other primitive leaves
    the decision to later rules.
    """
    if not detail_status:
        return None
    if detail_status == ACCEPT:
        if primitive == STOP:
            return StepState.COMPLETED
        if primitive == START:
            return StepState.IN_PROGRESS
        return None
    if detail_status == IN_PROGRESS:
        return StepState.IN_PROGRESS
    if detail_status == HOLD:
        return StepState.HOLD
    return None


def resolve_step_status(step: Step) -> StepState:
    """
    Resolve a step's canonical state (dashboard variant).

    Priority:
    1. stepDetails.data.status / stepDetails.status == hold -> HOLD
    2. PaperStore with paperStore.status set -> accept/in_progress/hold
    3. stepDetails.data.status (accept needs primitive stop)
    4. stepDetails.status, same rules
    5. primitive accept -> COMPLETED, in_progress -> IN_PROGRESS
    6. primitive stop -> COMPLETED, start -> IN_PROGRESS
    7. PLANNED
    """
    details = step.step_details
    if _is_detail_hold(details):
        return StepState.HOLD

    if step.step_name == StepCategory.PAPER_STORE:
        paper_store = step.type_detail("paperStore")
        paper_status = paper_store.status if paper_store else None
        if paper_status in _SUB_STATUS:
            return _SUB_STATUS[paper_status]

    if details is not None:
        state = _detail_state(details.data_status, step.status)
        if state is not None:
            return state
        state = _detail_state(details.status, step.status)
        if state is not None:
            return state

    if step.status == ACCEPT:
        return StepState.COMPLETED
    if step.status == IN_PROGRESS:
        return StepState.IN_PROGRESS

    if step.status == STOP:
        return StepState.COMPLETED
    if step.status == START:
        return StepState.IN_PROGRESS

    return StepState.PLANNED


def resolve_step_status_strict(step: Step) -> StepState:
    """
    Resolve a step's canonical state (job-plan table variant).

    Differs from resolve_step_status:
    - endDate plus primitive accept/stop completes the step outright
    - an accepted step-type sub-object completes the step
    - stepDetails accept completes regardless of the primitive flag
    - primitive stop/start are trusted only while stepDetails is absent
    """
    details = step.step_details
    if _is_detail_hold(details):
        return StepState.HOLD

    if step.end_date is not None and step.status in (ACCEPT, STOP):
        return StepState.COMPLETED

    if step.status == ACCEPT:
        return StepState.COMPLETED

    type_detail = step.first_type_detail()
    if type_detail is not None and type_detail.status == ACCEPT:
        return StepState.COMPLETED

    if details is not None:
        for detail_status in (details.data_status, details.status):
            if detail_status in _SUB_STATUS:
                return _SUB_STATUS[detail_status]

    if details is None:
        if step.status == STOP:
            return StepState.COMPLETED
        if step.status == START:
            return StepState.IN_PROGRESS

    return StepState.PLANNED


# =============================================================================
# MAJOR HOLD
# =============================================================================


def step_is_major_hold(step: Step) -> bool:
    """True when any status generation flags the step as an escalated hold."""
    if step.status == MAJOR_HOLD:
        return True
    if any(detail.has_status(MAJOR_HOLD) for detail in step.type_details.values()):
        return True

    details = step.step_details
    if details is None:
        return False
    if details.data_status == MAJOR_HOLD or details.status == MAJOR_HOLD:
        return True
    if details.major_hold_remark:
        return True
    hold_remark = details.hold_remark
    return bool(hold_remark and "major" in hold_remark.lower())


def is_major_hold(job: JobPlan) -> bool:
    """True when any step of the job is on major hold."""
    return any(step_is_major_hold(step) for step in job.steps)
