"""
Test fixtures for deterministic testing.

This module provides:
- factories: builders for raw job-data payloads and parsed records
"""

from .factories import make_completed, make_held, make_job, make_machine, make_step, raw_step

__all__ = ["raw_step", "make_step", "make_job", "make_completed", "make_held", "make_machine"]
