"""Test helpers for ClearCue tests.

This module re-exports all helpers for convenient imports:

    from tests.helpers import (
        # Builders
        make_utc_dt, make_context, make_reminder, make_rule,

        # Scenarios
        load_scenario, ScenarioRecords,
    )

See individual modules for full documentation:
- builders.py: Reminder/rule/context factories with sensible defaults
- setup.py: YAML scenario loading for record-level tests
"""

from tests.helpers.builders import (
    make_context,
    make_reminder,
    make_rule,
    make_utc_dt,
    timings,
)
from tests.helpers.setup import ScenarioRecords, load_scenario

__all__ = [
    "ScenarioRecords",
    "load_scenario",
    "make_context",
    "make_reminder",
    "make_rule",
    "make_utc_dt",
    "timings",
]
