"""Pytest configuration and shared fixtures."""

import time
from datetime import timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import pytest

from recur_app.persistence.anchor_store import PersistedAnchorState
from recur_app.persistence.byte_store import InMemoryByteStore


@pytest.fixture
def utc():
    """UTC as the local calendar, independent of the host zone."""
    return timezone.utc


@pytest.fixture
def new_york():
    """A zone with daylight saving transitions."""
    try:
        return ZoneInfo("America/New_York")
    except ZoneInfoNotFoundError:
        pytest.skip("IANA time zone data not available")


@pytest.fixture
def process_tz(monkeypatch):
    """Switch the process-local zone via TZ for the duration of a test."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset not available on this platform")

    def _set(name: str) -> None:
        monkeypatch.setenv("TZ", name)
        time.tzset()

    yield _set

    monkeypatch.undo()
    time.tzset()


@pytest.fixture
def memory_store() -> InMemoryByteStore:
    """Empty in-memory byte store."""
    return InMemoryByteStore()


@pytest.fixture
def anchor_state(memory_store) -> PersistedAnchorState:
    """Loaded PersistedAnchorState over an empty in-memory store."""
    state = PersistedAnchorState(memory_store)
    state.load()
    return state
