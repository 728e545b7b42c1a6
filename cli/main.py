#!/usr/bin/env python3
"""
Box-plant Operations Dashboard CLI - Snapshot reports in the terminal.
"""

import sys

from boxops import config
from boxops.client import DashboardService, JobDataError
from boxops.contracts import InvariantViolation
from boxops.job_table import filter_job_table, job_table_rows
from boxops.observability import RequestContext, configure_logging
from boxops.production import printing_records, printing_summary, production_summary


def print_header(text: str):
    """Print a section header."""
    print(f"\n{'═' * 50}")
    print(f"  {text}")
    print(f"{'═' * 50}")


def print_table(headers: list[str], rows: list[list], widths: list[int]):
    """Print fixed-width columns; cells longer than their column are cut."""
    header = " │ ".join(h.ljust(w) for h, w in zip(headers, widths))
    print(header)
    print("─" * len(header))

    for row in rows:
        print(" │ ".join(str(c)[:w].ljust(w) for c, w in zip(row, widths)))


def efficiency_color(efficiency: int) -> str:
    """ANSI color for an efficiency percentage."""
    if efficiency >= 75:
        return "\033[92m"  # Green
    if efficiency >= 40:
        return "\033[93m"  # Yellow
    return "\033[91m"  # Red


RESET = "\033[0m"


def cmd_snapshot(args):
    """Show the dashboard snapshot for a date window."""
    filter_name = args[0] if args else config.DEFAULT_FILTER
    custom = (args[1], args[2]) if len(args) >= 3 else None

    snapshot = DashboardService().load(filter_name, custom)
    window = (
        f"{snapshot.date_range.start} .. {snapshot.date_range.end}" if snapshot.date_range else "all time"
    )
    print_header(f"DASHBOARD: {filter_name} ({window})")

    print("\n📋 JOBS")
    print(f"  Total:       {snapshot.total_jobs}")
    print(f"  Completed:   {snapshot.completed_jobs}")
    print(f"  In progress: {snapshot.in_progress_jobs}")
    print(f"  Planned:     {snapshot.planned_jobs}")
    print(f"  Held:        {snapshot.held_jobs}  (major hold: {snapshot.major_hold_jobs})")

    color = efficiency_color(snapshot.efficiency)
    print("\n⚙️  STEPS")
    print(f"  {snapshot.completed_steps}/{snapshot.total_steps} completed, efficiency {color}{snapshot.efficiency}%{RESET}")
    print(f"  Active operators: {snapshot.active_users}")

    if snapshot.step_completion_stats:
        print()
        rows = [
            [name, b.completed, b.in_progress, b.planned]
            for name, b in snapshot.step_completion_stats.items()
        ]
        print_table(["Step", "Done", "Running", "Planned"], rows, [20, 6, 8, 8])

    machine_stats = snapshot.machine_utilization.machine_stats
    if machine_stats:
        print("\n🏭 MACHINES")
        rows = [[t, s.total, s.available, s.in_use] for t, s in sorted(machine_stats.items())]
        print_table(["Type", "Total", "Free", "In use"], rows, [20, 6, 6, 7])


def cmd_production(args):
    """Show production-head counters."""
    service = DashboardService()
    job_plans, completed = service.production()
    summary = production_summary(job_plans, completed, service.settings.production_steps)

    print_header(f"PRODUCTION ({summary.total_jobs} jobs)")
    rows = [
        [category.value, c.total, c.planned, c.start, c.stop, c.completed]
        for category, c in summary.step_summary.items()
    ]
    print_table(["Step", "Total", "Planned", "Start", "Stop", "Done"], rows, [30, 6, 8, 6, 6, 6])
    color = efficiency_color(summary.overall_efficiency)
    print(f"\nOverall efficiency: {color}{summary.overall_efficiency}%{RESET}")

    printing = printing_summary(printing_records(job_plans))
    print(
        f"Printing: {printing.total_print_jobs} jobs, {printing.total_quantity_printed} printed, "
        f"{printing.average_wastage_percentage}% wastage"
    )


def cmd_table(args):
    """Show the job-plan table: table [search] [demand] [status]."""
    search = args[0] if args else ""
    demand = args[1] if len(args) > 1 else "all"
    status = args[2] if len(args) > 2 else "all"

    job_plans, _ = DashboardService().production()
    rows = job_table_rows(filter_job_table(job_plans, search, demand, status))

    print_header(f"JOB PLANS ({len(rows)})")
    if not rows:
        print("No matching job plans.")
        return
    print_table(
        ["Job", "Demand", "Status", "Steps", "Progress"],
        [
            [r["nrcJobNo"], r["jobDemand"] or "-", r["status"], f"{r['completedSteps']}/{r['totalSteps']}", f"{r['progress']:.0f}%"]
            for r in rows
        ],
        [20, 7, 12, 6, 8],
    )


def cmd_help(args):
    """Show help."""
    print("""
Box-plant Operations Dashboard CLI

USAGE: python -m cli.main <command> [args]

COMMANDS:

  snapshot [filter] [start end]   Dashboard snapshot (default filter from BOXOPS_DEFAULT_FILTER)
  production                      Production-head step counters
  table [search] [demand] [status]  Job-plan table
  help                            Show this help

FILTERS:
  all, today, week, month, quarter, year, custom (custom takes start end as YYYY-MM-DD)
""")


COMMANDS = {
    "snapshot": cmd_snapshot,
    "s": cmd_snapshot,
    "production": cmd_production,
    "p": cmd_production,
    "table": cmd_table,
    "t": cmd_table,
    "help": cmd_help,
    "h": cmd_help,
}


def main():
    """Main entry point."""
    configure_logging(config.LOG_LEVEL)

    if len(sys.argv) < 2:
        cmd_help([])
        return

    cmd = sys.argv[1]
    args = sys.argv[2:]

    if cmd not in COMMANDS:
        print(f"Unknown command: {cmd}")
        print("Run 'help' for available commands.")
        sys.exit(2)

    try:
        with RequestContext():
            COMMANDS[cmd](args)
    except (JobDataError, InvariantViolation, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
