"""
In-memory substitute for the record store.

Used when the record store cannot be opened. Mileage and work history are
read from the legacy flat store and every change is written straight back
to it. The maintenance schedule is the built-in default and cannot be
changed.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Union

from .errors import NotFound, StoreError, StoreUnavailable
from .legacy_store import LegacyFlatStore
from .maintenance_item import MaintenanceItem
from .settings import CURRENT_MILEAGE

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


def _sort_key(field: str):
    def key(record: Record):
        value = record.get(field)
        return (value is not None, value if value is not None else 0, str(record.get("id")))

    return key


class FlatCollection:
    """List-backed collection with the same contract as the record store's."""

    def __init__(self, name: str, records: List[Record], on_change: Optional[Callable[[], None]] = None):
        self.table = name
        self._records = records
        self._on_change = on_change

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()

    def _find(self, id: Union[int, str]) -> Record:
        for record in self._records:
            if record.get("id") == id:
                return record
        raise NotFound(f"No {self.table} record with id {id!r}")

    def _next_id(self) -> int:
        ids = [r["id"] for r in self._records if isinstance(r.get("id"), int)]
        return max(ids, default=0) + 1

    async def add(self, record: Record) -> Union[int, str]:
        record = dict(record)
        if record.get("id") is None:
            record["id"] = self._next_id()
        self._records.append(record)
        self._changed()
        return record["id"]

    async def get(self, id: Union[int, str]) -> Optional[Record]:
        try:
            return dict(self._find(id))
        except NotFound:
            return None

    async def update(self, id: Union[int, str], patch: Record) -> None:
        record = self._find(id)
        record.update({k: v for k, v in patch.items() if k != "id"})
        self._changed()

    async def delete(self, id: Union[int, str]) -> None:
        self._records.remove(self._find(id))
        self._changed()

    async def count(self) -> int:
        return len(self._records)

    async def clear(self) -> None:
        self._records.clear()
        self._changed()

    async def all(self, order_by: Optional[str] = None, descending: bool = False) -> List[Record]:
        records = [dict(r) for r in self._records]
        if order_by is not None:
            records.sort(key=_sort_key(order_by), reverse=descending)
        return records

    async def first_where(self, field: str, value: Any) -> Optional[Record]:
        for record in self._records:
            if record.get(field) == value:
                return dict(record)
        return None


class ReadOnlyCollection(FlatCollection):
    """Collection whose every mutation is refused."""

    def _refuse(self):
        raise StoreUnavailable(f"{self.table} cannot be changed while the record store is unavailable")

    async def add(self, record: Record) -> Union[int, str]:
        self._refuse()

    async def update(self, id: Union[int, str], patch: Record) -> None:
        self._refuse()

    async def delete(self, id: Union[int, str]) -> None:
        self._refuse()

    async def clear(self) -> None:
        self._refuse()


class FallbackStore:
    """Degraded store over the legacy flat representation."""

    def __init__(self, legacy: LegacyFlatStore, default_schedule: List[MaintenanceItem]):
        self.legacy = legacy

        mileage = legacy.read_mileage() or 0
        history = [dict(entry) for entry in legacy.read_history() or []]
        self.work_history = FlatCollection("workHistory", history, self._persist)
        for entry in history:
            if entry.get("id") is None:
                entry["id"] = self.work_history._next_id()

        self.settings = FlatCollection(
            "settings", [{"id": 1, "key": CURRENT_MILEAGE, "value": mileage}], self._persist
        )
        self.maintenance_items = ReadOnlyCollection(
            "maintenanceItems", [item.to_dict() for item in default_schedule]
        )
        logger.warning(
            "Running on fallback store: mileage=%s, %d work entries", mileage, len(history)
        )

    @property
    def is_open(self) -> bool:
        return True

    async def open(self) -> None:
        pass

    async def close(self) -> None:
        pass

    def _persist(self) -> None:
        mileage = 0
        for record in self.settings._records:
            if record.get("key") == CURRENT_MILEAGE:
                mileage = record.get("value") or 0
        try:
            self.legacy.write_snapshot(mileage, [dict(r) for r in self.work_history._records])
        except OSError as e:
            raise StoreError(f"Cannot write legacy store {self.legacy.path}: {e}") from e
