"""
SQLite-backed record store with three collections.

Every public operation is a coroutine; the blocking sqlite call runs in a
worker thread and a lock serialises access to the single connection.
"""

import asyncio
import json
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from .errors import NotFound, StoreError, StoreUnavailable

logger = logging.getLogger(__name__)

SETTINGS = "settings"
WORK_HISTORY = "workHistory"
MAINTENANCE_ITEMS = "maintenanceItems"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS settings (
    id      INTEGER PRIMARY KEY AUTOINCREMENT,
    key     TEXT NOT NULL,
    value   TEXT
);
CREATE INDEX IF NOT EXISTS idx_settings_key ON settings(key);

CREATE TABLE IF NOT EXISTS workHistory (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    date         TEXT,
    mileage      INTEGER,
    type         TEXT,
    description  TEXT,
    timestamp    TEXT,
    lastModified TEXT,
    modifiedBy   TEXT
);
CREATE INDEX IF NOT EXISTS idx_work_timestamp ON workHistory(timestamp);

CREATE TABLE IF NOT EXISTS maintenanceItems (
    id             TEXT PRIMARY KEY,
    name           TEXT,
    description    TEXT,
    intervalMiles  INTEGER,
    intervalMonths INTEGER,
    isCustom       INTEGER DEFAULT 0,
    created        TEXT,
    lastModified   TEXT
);
CREATE INDEX IF NOT EXISTS idx_items_name ON maintenanceItems(name);
"""

Record = Dict[str, Any]


class Collection:
    """One named collection (table) of the record store."""

    def __init__(
        self,
        store: "RecordStore",
        table: str,
        columns: Sequence[str],
        json_columns: Sequence[str] = (),
        bool_columns: Sequence[str] = (),
    ):
        self._store = store
        self.table = table
        self.columns = tuple(columns)
        self._json_columns = frozenset(json_columns)
        self._bool_columns = frozenset(bool_columns)

    def _check_fields(self, fields) -> None:
        unknown = [f for f in fields if f not in self.columns]
        if unknown:
            raise ValueError(f"Unknown field(s) for {self.table}: {', '.join(unknown)}")

    def _encode(self, column: str, value: Any) -> Any:
        if column in self._json_columns:
            return json.dumps(value)
        if column in self._bool_columns:
            return int(bool(value))
        return value

    def _decode(self, row: sqlite3.Row) -> Record:
        record = dict(row)
        for column in self._json_columns:
            if record.get(column) is not None:
                record[column] = json.loads(record[column])
        for column in self._bool_columns:
            record[column] = bool(record.get(column))
        return record

    async def add(self, record: Record) -> Union[int, str]:
        """Insert a record; returns its id (store-assigned when absent)."""
        data = {k: v for k, v in record.items() if k in self.columns}
        if data.get("id") is None:
            data.pop("id", None)
        names = list(data)
        sql = (
            f"INSERT INTO {self.table} ({', '.join(names)}) "
            f"VALUES ({', '.join('?' for _ in names)})"
        )
        params = [self._encode(n, data[n]) for n in names]

        def _add(conn: sqlite3.Connection):
            with conn:
                cursor = conn.execute(sql, params)
            return data["id"] if "id" in data else cursor.lastrowid

        return await self._store._call(_add)

    async def get(self, id: Union[int, str]) -> Optional[Record]:
        def _get(conn: sqlite3.Connection):
            row = conn.execute(f"SELECT * FROM {self.table} WHERE id = ?", (id,)).fetchone()
            return self._decode(row) if row else None

        return await self._store._call(_get)

    async def update(self, id: Union[int, str], patch: Record) -> None:
        """Apply a partial update. Raises NotFound for a missing id."""
        data = {k: v for k, v in patch.items() if k != "id"}
        self._check_fields(data)

        def _update(conn: sqlite3.Connection):
            with conn:
                if data:
                    assignments = ", ".join(f"{k} = ?" for k in data)
                    params = [self._encode(k, v) for k, v in data.items()] + [id]
                    cursor = conn.execute(
                        f"UPDATE {self.table} SET {assignments} WHERE id = ?", params
                    )
                    found = cursor.rowcount > 0
                else:
                    found = conn.execute(
                        f"SELECT 1 FROM {self.table} WHERE id = ?", (id,)
                    ).fetchone() is not None
            if not found:
                raise NotFound(f"No {self.table} record with id {id!r}")

        await self._store._call(_update)

    async def delete(self, id: Union[int, str]) -> None:
        """Delete a record. Raises NotFound for a missing id."""

        def _delete(conn: sqlite3.Connection):
            with conn:
                cursor = conn.execute(f"DELETE FROM {self.table} WHERE id = ?", (id,))
            if cursor.rowcount == 0:
                raise NotFound(f"No {self.table} record with id {id!r}")

        await self._store._call(_delete)

    async def count(self) -> int:
        def _count(conn: sqlite3.Connection):
            return conn.execute(f"SELECT COUNT(*) FROM {self.table}").fetchone()[0]

        return await self._store._call(_count)

    async def clear(self) -> None:
        def _clear(conn: sqlite3.Connection):
            with conn:
                conn.execute(f"DELETE FROM {self.table}")

        await self._store._call(_clear)

    async def all(self, order_by: Optional[str] = None, descending: bool = False) -> List[Record]:
        """All records, optionally sorted by one field (ties broken by id)."""
        sql = f"SELECT * FROM {self.table}"
        if order_by is not None:
            self._check_fields([order_by])
            direction = "DESC" if descending else "ASC"
            sql += f" ORDER BY {order_by} {direction}, id {direction}"

        def _all(conn: sqlite3.Connection):
            return [self._decode(row) for row in conn.execute(sql).fetchall()]

        return await self._store._call(_all)

    async def first_where(self, field: str, value: Any) -> Optional[Record]:
        """First record (lowest id) whose field equals value."""
        self._check_fields([field])

        def _first(conn: sqlite3.Connection):
            row = conn.execute(
                f"SELECT * FROM {self.table} WHERE {field} = ? ORDER BY id LIMIT 1",
                (self._encode(field, value),),
            ).fetchone()
            return self._decode(row) if row else None

        return await self._store._call(_first)


class RecordStore:
    """Durable collections for settings, work history and maintenance items."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()
        self.settings = Collection(self, SETTINGS, ("id", "key", "value"), json_columns=("value",))
        self.work_history = Collection(
            self,
            WORK_HISTORY,
            ("id", "date", "mileage", "type", "description",
             "timestamp", "lastModified", "modifiedBy"),
        )
        self.maintenance_items = Collection(
            self,
            MAINTENANCE_ITEMS,
            ("id", "name", "description", "intervalMiles", "intervalMonths",
             "isCustom", "created", "lastModified"),
            bool_columns=("isCustom",),
        )

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    async def open(self) -> None:
        """Open the database file and create the schema if needed."""
        if self._conn is not None:
            return

        def _open():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.path), check_same_thread=False)
            try:
                conn.row_factory = sqlite3.Row
                conn.executescript(_SCHEMA)
            except sqlite3.Error:
                conn.close()
                raise
            return conn

        try:
            self._conn = await asyncio.to_thread(_open)
        except (sqlite3.Error, OSError) as e:
            raise StoreUnavailable(f"Cannot open record store at {self.path}: {e}") from e
        logger.info("Opened record store %s", self.path)

    async def close(self) -> None:
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        await asyncio.to_thread(conn.close)

    async def _call(self, fn: Callable[[sqlite3.Connection], Any]) -> Any:
        if self._conn is None:
            raise StoreUnavailable("Record store is not open")
        conn = self._conn

        def _locked():
            with self._lock:
                return fn(conn)

        try:
            return await asyncio.to_thread(_locked)
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e
