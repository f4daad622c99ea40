#!/usr/bin/env python3
"""Tests for the SQLite record store."""

import pytest

from motolog import NotFound, RecordStore, StoreUnavailable


def work(timestamp, mileage=1000, type="oil-change"):
    return {
        "date": "2025-01-15",
        "mileage": mileage,
        "type": type,
        "description": "",
        "timestamp": timestamp,
        "lastModified": timestamp,
        "modifiedBy": "user",
    }


class TestOpen:
    def test_creates_file(self, run, db_path):
        store = RecordStore(db_path)

        async def scenario():
            await store.open()
            await store.close()

        run(scenario())
        assert db_path.exists()

    def test_unopenable_path_raises_store_unavailable(self, run, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x")
        store = RecordStore(blocker / "motolog.db")
        with pytest.raises(StoreUnavailable):
            run(store.open())

    def test_use_before_open_raises_store_unavailable(self, run, db_path):
        store = RecordStore(db_path)
        with pytest.raises(StoreUnavailable):
            run(store.work_history.count())

    def test_data_survives_reopen(self, run, db_path):
        async def write():
            store = RecordStore(db_path)
            await store.open()
            await store.work_history.add(work("2025-01-15T10:00:00.000Z"))
            await store.close()

        async def read():
            store = RecordStore(db_path)
            await store.open()
            try:
                return await store.work_history.count()
            finally:
                await store.close()

        run(write())
        assert run(read()) == 1


class TestCollection:
    @pytest.fixture
    def store(self, run, db_path):
        store = RecordStore(db_path)
        run(store.open())
        yield store
        run(store.close())

    def test_add_assigns_ids(self, run, store):
        async def scenario():
            first = await store.work_history.add(work("t1"))
            second = await store.work_history.add(work("t2"))
            return first, second

        first, second = run(scenario())
        assert isinstance(first, int)
        assert second != first

    def test_add_keeps_explicit_id(self, run, store):
        async def scenario():
            new_id = await store.work_history.add({**work("t1"), "id": 42})
            return new_id, await store.work_history.get(42)

        new_id, record = run(scenario())
        assert new_id == 42
        assert record["timestamp"] == "t1"

    def test_add_string_id(self, run, store):
        item = {"id": "oil-change", "name": "Oil", "intervalMiles": 3500, "isCustom": False}

        async def scenario():
            new_id = await store.maintenance_items.add(item)
            return new_id, await store.maintenance_items.get("oil-change")

        new_id, record = run(scenario())
        assert new_id == "oil-change"
        assert record["isCustom"] is False
        assert record["intervalMonths"] is None

    def test_all_sorted_descending(self, run, store):
        async def scenario():
            await store.work_history.add(work("2025-01-01T00:00:00.000Z", mileage=1))
            await store.work_history.add(work("2025-03-01T00:00:00.000Z", mileage=3))
            await store.work_history.add(work("2025-02-01T00:00:00.000Z", mileage=2))
            return await store.work_history.all("timestamp", descending=True)

        assert [r["mileage"] for r in run(scenario())] == [3, 2, 1]

    def test_all_sorted_ascending_by_name(self, run, store):
        async def scenario():
            for id, name in (("b", "Coolant"), ("a", "Air Filter"), ("c", "Brake Fluid")):
                await store.maintenance_items.add({"id": id, "name": name, "intervalMonths": 24})
            return await store.maintenance_items.all("name")

        assert [r["name"] for r in run(scenario())] == ["Air Filter", "Brake Fluid", "Coolant"]

    def test_all_rejects_unknown_field(self, run, store):
        with pytest.raises(ValueError):
            run(store.work_history.all("mileage; DROP TABLE workHistory"))

    def test_update(self, run, store):
        async def scenario():
            new_id = await store.work_history.add(work("t1"))
            await store.work_history.update(new_id, {"mileage": 2000, "description": "redo"})
            return await store.work_history.get(new_id)

        record = run(scenario())
        assert record["mileage"] == 2000
        assert record["description"] == "redo"
        assert record["timestamp"] == "t1"

    def test_update_missing_raises_not_found(self, run, store):
        with pytest.raises(NotFound):
            run(store.work_history.update(999, {"mileage": 1}))

    def test_empty_update_missing_raises_not_found(self, run, store):
        with pytest.raises(NotFound):
            run(store.work_history.update(999, {}))

    def test_delete(self, run, store):
        async def scenario():
            new_id = await store.work_history.add(work("t1"))
            await store.work_history.delete(new_id)
            return await store.work_history.count()

        assert run(scenario()) == 0

    def test_delete_missing_raises_not_found(self, run, store):
        with pytest.raises(NotFound):
            run(store.maintenance_items.delete("nope"))

    def test_clear(self, run, store):
        async def scenario():
            await store.work_history.add(work("t1"))
            await store.work_history.add(work("t2"))
            await store.work_history.clear()
            return await store.work_history.count()

        assert run(scenario()) == 0

    def test_setting_values_are_json(self, run, store):
        async def scenario():
            await store.settings.add({"key": "currentMileage", "value": 32300})
            return await store.settings.first_where("key", "currentMileage")

        record = run(scenario())
        assert record["value"] == 32300

    def test_first_where_missing(self, run, store):
        assert run(store.settings.first_where("key", "currentMileage")) is None
