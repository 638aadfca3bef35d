"""Shared fixtures for ClearCue tests."""

from collections.abc import Iterator
from zoneinfo import ZoneInfo

import pytest

from clearcue.utils import dt_utils


@pytest.fixture(autouse=True)
def reset_default_timezone() -> Iterator[None]:
    """Restore the module default zone after each test."""
    original = dt_utils.get_default_timezone()
    yield
    dt_utils.set_default_timezone(original)


@pytest.fixture
def utc_tz() -> ZoneInfo:
    """Return UTC timezone."""
    return ZoneInfo("UTC")


@pytest.fixture
def local_tz() -> ZoneInfo:
    """Return a local timezone (Europe/Berlin for DST testing)."""
    return ZoneInfo("Europe/Berlin")
