"""Shared fixtures: event-loop runner, fixed clock, data file paths."""

import asyncio
from datetime import datetime, timezone

import pytest

from motolog import LegacyFlatStore, RecordStore, Tracker

FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def run():
    """Run a coroutine to completion on a fresh event loop."""
    return asyncio.run


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "motolog.db"


@pytest.fixture
def legacy(tmp_path):
    return LegacyFlatStore(tmp_path / "legacy.json")


@pytest.fixture
def make_tracker(db_path, legacy, clock):
    """Build a tracker on the temp data files (not started)."""

    def _make(**kwargs):
        kwargs.setdefault("clock", clock)
        return Tracker(RecordStore(db_path), legacy, **kwargs)

    return _make
