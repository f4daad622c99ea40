#!/usr/bin/env python3
"""Tests for the migration controller."""

import json

import pytest

from motolog import (
    MigrationController,
    MigrationError,
    RecordStore,
    StoreError,
    load_default_schedule,
)
from motolog.migration import legacy_to_record
from motolog.settings import get_setting

LEGACY_HISTORY = [
    {"date": "2024-05-01", "mileage": 25000, "type": "oil-change", "description": "first",
     "timestamp": "2024-05-01T09:00:00.000Z"},
    {"date": "2024-09-01", "mileage": 28500, "type": "oil-change", "description": "second",
     "timestamp": "2024-09-01T09:00:00.000Z"},
    {"id": 1700000000000, "date": "2023-04-01", "mileage": 20000, "type": "coolant",
     "description": "third", "timestamp": "2023-04-01T09:00:00.000Z"},
]


class FailingAdds:
    """Collection wrapper whose add() fails after a number of successes."""

    def __init__(self, inner, ok_adds):
        self._inner = inner
        self._ok_adds = ok_adds

    async def add(self, record):
        if self._ok_adds <= 0:
            raise StoreError("disk full")
        self._ok_adds -= 1
        return await self._inner.add(record)

    def __getattr__(self, name):
        return getattr(self._inner, name)


@pytest.fixture
def seeded_legacy(legacy):
    legacy.set_item("currentMileage", "31000")
    legacy.set_item("workHistory", json.dumps(LEGACY_HISTORY))
    return legacy


@pytest.fixture
def store(run, db_path):
    store = RecordStore(db_path)
    run(store.open())
    yield store
    run(store.close())


class TestLegacyToRecord:
    def test_stamps_migration_fields(self):
        record = legacy_to_record(LEGACY_HISTORY[2], "2025-06-01T12:00:00.000Z")
        assert "id" not in record
        assert record["lastModified"] == "2025-06-01T12:00:00.000Z"
        assert record["modifiedBy"] == "migration"
        assert record["timestamp"] == "2023-04-01T09:00:00.000Z"

    def test_fills_missing_timestamp_and_numeric_mileage(self):
        record = legacy_to_record({"date": "2024-01-01", "mileage": "123", "type": "x"}, "now")
        assert record["timestamp"] == "now"
        assert record["mileage"] == 123

    @pytest.mark.parametrize("mileage", ["lots", None])
    def test_unusable_mileage_becomes_none(self, mileage):
        record = legacy_to_record({"date": "2024-01-01", "mileage": mileage, "type": "x"}, "now")
        assert record["mileage"] is None

    def test_missing_date_and_type_default_to_empty(self):
        record = legacy_to_record({"mileage": 100}, "now")
        assert record["date"] == ""
        assert record["type"] == ""


class TestMigrationController:
    def test_imports_legacy_data_and_seeds(self, run, store, seeded_legacy, clock):
        controller = MigrationController(store, seeded_legacy, load_default_schedule(), clock)

        async def scenario():
            report = await controller.run()
            history = await store.work_history.all("id")
            mileage = await get_setting(store.settings, "currentMileage")
            items = await store.maintenance_items.count()
            marker = await get_setting(store.settings, "migrationCompleted")
            return report, history, mileage, items, marker

        report, history, mileage, items, marker = run(scenario())
        assert report.migrated
        assert report.mileage == 31000
        assert report.history_imported == 3
        assert report.items_seeded == 7
        assert mileage == 31000
        assert items == 7
        assert marker == "2025-06-01T12:00:00.000Z"
        # list order preserved, legacy ids replaced by store ids
        assert [r["description"] for r in history] == ["first", "second", "third"]
        assert all(r["modifiedBy"] == "migration" for r in history)
        assert history[2]["id"] != 1700000000000

    def test_second_run_is_a_no_op(self, run, store, seeded_legacy, clock):
        controller = MigrationController(store, seeded_legacy, load_default_schedule(), clock)

        async def scenario():
            await controller.run()
            second = await controller.run()
            return second, await store.work_history.count(), await store.maintenance_items.count()

        second, works, items = run(scenario())
        assert not second.migrated
        assert second.items_seeded == 0
        assert works == 3
        assert items == 7

    def test_marker_prevents_reimport_after_history_emptied(self, run, store, seeded_legacy, clock):
        controller = MigrationController(store, seeded_legacy, load_default_schedule(), clock)

        async def scenario():
            await controller.run()
            await store.work_history.clear()
            report = await controller.run()
            return report, await store.work_history.count()

        report, works = run(scenario())
        assert not report.migrated
        assert works == 0

    def test_seeding_not_gated_on_migration(self, run, store, seeded_legacy, clock):
        controller = MigrationController(store, seeded_legacy, load_default_schedule(), clock)

        async def scenario():
            await controller.run()
            await store.maintenance_items.clear()
            report = await controller.run()
            return report, await store.maintenance_items.count()

        report, items = run(scenario())
        assert not report.migrated
        assert report.items_seeded == 7
        assert items == 7

    def test_empty_legacy_store(self, run, store, legacy, clock):
        controller = MigrationController(store, legacy, load_default_schedule(), clock)

        async def scenario():
            report = await controller.run()
            return report, await get_setting(store.settings, "currentMileage")

        report, mileage = run(scenario())
        assert report.migrated
        assert report.history_imported == 0
        assert mileage is None

    def test_history_failure_stops_history_only(self, run, store, seeded_legacy, clock):
        store.work_history = FailingAdds(store.work_history, ok_adds=1)
        controller = MigrationController(store, seeded_legacy, load_default_schedule(), clock)

        with pytest.raises(MigrationError) as excinfo:
            run(controller.run())

        report = excinfo.value.report
        assert report.history_imported == 1
        assert report.mileage == 31000
        assert report.items_seeded == 7
        assert any("work history" in e for e in report.errors)

        async def check():
            return (
                await store.work_history.count(),
                await get_setting(store.settings, "migrationCompleted"),
            )

        works, marker = run(check())
        # nothing rolled back, and no completion marker
        assert works == 1
        assert marker is None

    def test_seed_failure_reported(self, run, store, legacy, clock):
        store.maintenance_items = FailingAdds(store.maintenance_items, ok_adds=2)
        controller = MigrationController(store, legacy, load_default_schedule(), clock)

        with pytest.raises(MigrationError) as excinfo:
            run(controller.run())
        assert excinfo.value.report.items_seeded == 2
        assert run(store.maintenance_items.count()) == 2
