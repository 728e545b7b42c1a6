"""
Typed records for the raw job-data payloads.

The job-planning backend went through several generations of status
fields, so a step can carry any mix of:
- a primitive workflow flag (``status``)
- an on-demand ``stepDetails`` record with its own ``status`` and ``data.status``
- step-type sub-objects (``paperStore``, ``corrugation``, ...) with a ``status``

Parsing never raises: missing or mistyped fields become None or empty.
"""

import re
from dataclasses import dataclass, field
from typing import Any

from .catalog import ALL_DETAIL_KEYS, StepCategory, canonical_category

_INT_RE = re.compile(r"-?[0-9]+")


def _as_str(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value or None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and _INT_RE.fullmatch(value.strip()):
        return int(value)
    return None


# =============================================================================
# STEP DETAIL RECORDS
# =============================================================================


@dataclass
class StepDetails:
    """Backend-populated outcome record, fetched only for started/stopped steps."""

    status: str | None = None
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Any) -> "StepDetails | None":
        if not isinstance(raw, dict):
            return None
        return cls(status=_as_str(raw.get("status")), data=_as_dict(raw.get("data")))

    @property
    def data_status(self) -> str | None:
        return _as_str(self.data.get("status"))

    @property
    def major_hold_remark(self) -> str | None:
        return _as_str(self.data.get("majorHoldRemark"))

    @property
    def hold_remark(self) -> str | None:
        return _as_str(self.data.get("holdRemark"))

    def nested_status(self, key: str) -> str | None:
        """Status of a step-type block nested in data (e.g. data.corrugation.status)."""
        return _as_str(_as_dict(self.data.get(key)).get("status"))

    def to_dict(self) -> dict:
        return {"status": self.status, "data": dict(self.data)}


@dataclass
class StepTypeDetail:
    """
    A step-type sub-object such as ``paperStore`` or ``flutelam``.

    Some endpoints return a single record, others a list of records; both
    are kept as a list of entries.
    """

    key: str
    entries: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_raw(cls, key: str, raw: Any) -> "StepTypeDetail | None":
        if isinstance(raw, dict):
            return cls(key=key, entries=[raw])
        if isinstance(raw, list):
            return cls(key=key, entries=[e for e in raw if isinstance(e, dict)])
        return None

    @property
    def status(self) -> str | None:
        """Status of the latest entry carrying one."""
        for entry in reversed(self.entries):
            status = _as_str(entry.get("status"))
            if status:
                return status
        return None

    def has_status(self, status: str) -> bool:
        return any(entry.get("status") == status for entry in self.entries)


# =============================================================================
# STEP / JOB RECORDS
# =============================================================================


@dataclass
class Step:
    """One production step of a job plan."""

    step_name: str
    status: str | None = None
    id: int | None = None
    step_no: int | None = None
    user: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    step_details: StepDetails | None = None
    type_details: dict[str, StepTypeDetail] = field(default_factory=dict)
    machine_details: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: dict) -> "Step":
        raw = _as_dict(raw)
        type_details = {}
        for key in ALL_DETAIL_KEYS:
            detail = StepTypeDetail.from_raw(key, raw.get(key))
            if detail is not None:
                type_details[key] = detail
        machines = raw.get("machineDetails")
        return cls(
            step_name=_as_str(raw.get("stepName")) or "",
            status=_as_str(raw.get("status")),
            id=_as_int(raw.get("id")),
            step_no=_as_int(raw.get("stepNo")),
            user=_as_str(raw.get("user")),
            start_date=_as_str(raw.get("startDate")),
            end_date=_as_str(raw.get("endDate")),
            created_at=_as_str(raw.get("createdAt")),
            updated_at=_as_str(raw.get("updatedAt")),
            step_details=StepDetails.from_dict(raw.get("stepDetails")),
            type_details=type_details,
            machine_details=[m for m in machines if isinstance(m, dict)]
            if isinstance(machines, list)
            else [],
        )

    @property
    def category(self) -> StepCategory | None:
        return canonical_category(self.step_name)

    def type_detail(self, key: str) -> StepTypeDetail | None:
        return self.type_details.get(key)

    def first_type_detail(self) -> StepTypeDetail | None:
        """First step-type sub-object present, in catalog order."""
        for key in ALL_DETAIL_KEYS:
            if key in self.type_details:
                return self.type_details[key]
        return None

    def to_dict(self) -> dict:
        out: dict[str, Any] = {
            "id": self.id,
            "stepNo": self.step_no,
            "stepName": self.step_name,
            "status": self.status,
            "user": self.user,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "stepDetails": self.step_details.to_dict() if self.step_details else None,
            "machineDetails": list(self.machine_details),
        }
        for key, detail in self.type_details.items():
            out[key] = list(detail.entries)
        return out


@dataclass
class JobPlan:
    """A work order and its ordered steps, keyed by nrcJobNo."""

    nrc_job_no: str
    job_plan_id: int | None = None
    job_demand: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    steps: list[Step] = field(default_factory=list)
    all_step_details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: dict) -> "JobPlan":
        raw = _as_dict(raw)
        steps = raw.get("steps")
        return cls(
            nrc_job_no=_as_str(raw.get("nrcJobNo")) or "",
            job_plan_id=_as_int(raw.get("jobPlanId")),
            job_demand=_as_str(raw.get("jobDemand")),
            created_at=_as_str(raw.get("createdAt")),
            updated_at=_as_str(raw.get("updatedAt")),
            steps=[Step.from_dict(s) for s in steps if isinstance(s, dict)]
            if isinstance(steps, list)
            else [],
            all_step_details=_as_dict(raw.get("allStepDetails")),
        )

    def ref(self) -> dict:
        """Compact back-reference used in drill-down lists."""
        return {"jobPlanId": self.job_plan_id, "nrcJobNo": self.nrc_job_no}

    def to_dict(self) -> dict:
        return {
            "jobPlanId": self.job_plan_id,
            "nrcJobNo": self.nrc_job_no,
            "jobDemand": self.job_demand,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "steps": [s.to_dict() for s in self.steps],
        }


@dataclass
class CompletedJob:
    """A fully finished job from the completed-jobs feed."""

    nrc_job_no: str
    id: int | None = None
    completed_at: str | None = None
    all_step_details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: dict) -> "CompletedJob":
        raw = _as_dict(raw)
        return cls(
            nrc_job_no=_as_str(raw.get("nrcJobNo")) or "",
            id=_as_int(raw.get("id")),
            completed_at=_as_str(raw.get("completedAt")),
            all_step_details=_as_dict(raw.get("allStepDetails")),
        )

    def ref(self) -> dict:
        return {"id": self.id, "nrcJobNo": self.nrc_job_no, "completedAt": self.completed_at}


@dataclass
class HeldJob:
    """A job blocked on one or more held machines."""

    job_planning_id: int | None
    nrc_job_no: str | None = None
    held_machines: list[dict[str, Any]] = field(default_factory=list)
    total_held_machines: int = 0

    @classmethod
    def from_dict(cls, raw: dict) -> "HeldJob":
        raw = _as_dict(raw)
        job_details = _as_dict(raw.get("jobDetails"))
        held = raw.get("heldMachines")
        held_machines = [m for m in held if isinstance(m, dict)] if isinstance(held, list) else []
        total = _as_int(raw.get("totalHeldMachines"))
        return cls(
            job_planning_id=_as_int(raw.get("jobPlanningId")),
            nrc_job_no=_as_str(raw.get("nrcJobNo")) or _as_str(job_details.get("nrcJobNo")),
            held_machines=held_machines,
            total_held_machines=total if total is not None else len(held_machines),
        )

    def ref(self) -> dict:
        return {
            "jobPlanningId": self.job_planning_id,
            "nrcJobNo": self.nrc_job_no,
            "totalHeldMachines": self.total_held_machines,
        }


@dataclass
class MachineRecord:
    """One machine from the inventory feed."""

    id: str | None
    machine_code: str | None = None
    machine_type: str = "Unknown"
    description: str | None = None
    status: str | None = None
    capacity: float | None = None
    unit: str | None = None
    is_active: bool = True
    jobs: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: dict) -> "MachineRecord":
        raw = _as_dict(raw)
        capacity = raw.get("capacity")
        jobs = raw.get("jobs")
        return cls(
            id=_as_str(raw.get("id")),
            machine_code=_as_str(raw.get("machineCode")),
            machine_type=_as_str(raw.get("machineType")) or "Unknown",
            description=_as_str(raw.get("description")),
            status=_as_str(raw.get("status")),
            capacity=capacity if isinstance(capacity, (int, float)) and not isinstance(capacity, bool) else None,
            unit=_as_str(raw.get("unit")),
            is_active=bool(raw.get("isActive", True)),
            jobs=[j for j in jobs if isinstance(j, dict)] if isinstance(jobs, list) else [],
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "machineCode": self.machine_code,
            "machineType": self.machine_type,
            "description": self.description,
            "status": self.status,
            "capacity": self.capacity,
            "unit": self.unit,
            "jobs": list(self.jobs),
        }
