"""
Tests for machine utilization.
"""

from boxops.machines import machine_utilization
from boxops.models import MachineRecord
from tests.fixtures import make_machine


class TestMachineUtilization:
    def test_counts_by_type(self):
        machines = [
            make_machine("Corrugator", "available"),
            make_machine("Corrugator", "Busy"),
            make_machine("Corrugator", "maintenance"),
            make_machine("Printer", "in_use"),
            make_machine("Printer", "available", is_active=False),
        ]
        result = machine_utilization(machines)

        assert result.machine_stats["Corrugator"].to_dict() == {"total": 3, "available": 1, "inUse": 1}
        assert result.machine_stats["Printer"].to_dict() == {"total": 1, "available": 0, "inUse": 1}
        assert result.total_machines == 4
        assert len(result.machine_details) == 4

    def test_missing_type_is_unknown(self):
        machine = MachineRecord.from_dict({"id": "x", "status": "available"})
        assert "Unknown" in machine_utilization([machine]).machine_stats

    def test_empty(self):
        assert machine_utilization([]).to_dict() == {"machineStats": {}, "machineDetails": []}
