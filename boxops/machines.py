"""Machine utilization roll-up from the machine inventory feed."""

from collections.abc import Iterable
from dataclasses import dataclass, field

from .models import MachineRecord

IN_USE_STATUSES = frozenset({"busy", "in_use", "occupied"})
AVAILABLE_STATUS = "available"


@dataclass
class MachineTypeStats:
    total: int = 0
    available: int = 0
    in_use: int = 0

    def to_dict(self) -> dict:
        return {"total": self.total, "available": self.available, "inUse": self.in_use}


@dataclass
class MachineUtilization:
    """Per-type counters plus the active machines behind them."""

    machine_stats: dict[str, MachineTypeStats] = field(default_factory=dict)
    machine_details: list[MachineRecord] = field(default_factory=list)

    @property
    def total_machines(self) -> int:
        return sum(s.total for s in self.machine_stats.values())

    def to_dict(self) -> dict:
        return {
            "machineStats": {k: v.to_dict() for k, v in self.machine_stats.items()},
            "machineDetails": [m.to_dict() for m in self.machine_details],
        }


def machine_utilization(machines: Iterable[MachineRecord]) -> MachineUtilization:
    """
    Count active machines per type.

    Statuses other than available/in-use (maintenance, ...) count only
    toward the type total.
    """
    result = MachineUtilization()
    for machine in machines:
        if not machine.is_active:
            continue
        result.machine_details.append(machine)
        stats = result.machine_stats.setdefault(machine.machine_type, MachineTypeStats())
        stats.total += 1
        status = (machine.status or "").lower()
        if status == AVAILABLE_STATUS:
            stats.available += 1
        elif status in IN_USE_STATUSES:
            stats.in_use += 1
    return result
