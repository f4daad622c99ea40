"""Tracker facade - startup sequence, CRUD operations, import and export."""

import logging
from collections import Counter
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from .calculations import compute_status, parse_date
from .clock import Clock, to_iso, utc_now
from .defaults import load_default_schedule
from .errors import NotFound, TrackerError, ValidationError
from .exchange import build_export_document, parse_import_document
from .fallback_store import FallbackStore
from .legacy_store import LegacyFlatStore
from .maintenance_item import MaintenanceItem
from .maintenance_status import MaintenanceStatus
from .migration import MigrationController
from .result import Result
from .settings import CURRENT_MILEAGE, MIGRATION_COMPLETED, get_setting, put_setting
from .status import Status
from .work_record import MODIFIED_BY_USER, WorkRecord

logger = logging.getLogger(__name__)

StatusEngine = Callable[..., MaintenanceStatus]

_UNSET: Any = object()


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_work(date: Any, mileage: Any, type: Any, description: Any) -> None:
    """Raise ValidationError unless the work entry fields are usable."""
    if not isinstance(date, str) or parse_date(date) is None:
        raise ValidationError(f"Invalid or missing date: {date!r}")
    if not _is_int(mileage) or mileage < 0:
        raise ValidationError(f"Mileage must be a whole number >= 0, got {mileage!r}")
    if not isinstance(type, str) or not type.strip():
        raise ValidationError("Work type is required")
    if description is not None and not isinstance(description, str):
        raise ValidationError("Description must be text")


def validate_item(name: Any, interval_miles: Any, interval_months: Any) -> None:
    """Raise ValidationError unless the item has a name and at least one interval."""
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Maintenance item name is required")
    if interval_miles is None and interval_months is None:
        raise ValidationError("At least one interval must be specified")
    for label, value in (("Mileage interval", interval_miles), ("Month interval", interval_months)):
        if value is not None and (not _is_int(value) or value <= 0):
            raise ValidationError(f"{label} must be a positive whole number, got {value!r}")


class Tracker:
    """
    Orchestrates the record store, migration, fallback store and status engine.

    Mutating operations return a Result and never raise store errors: the
    error is logged and reported to the caller as a failed Result.
    """

    def __init__(
        self,
        store,
        legacy: LegacyFlatStore,
        status_engine: StatusEngine = compute_status,
        default_schedule: Optional[List[MaintenanceItem]] = None,
        clock: Clock = utc_now,
    ):
        self.store = store
        self.legacy = legacy
        self.status_engine = status_engine
        self.default_schedule = (
            default_schedule if default_schedule is not None else load_default_schedule()
        )
        self.clock = clock

        self.current_mileage: int = 0
        self.work_history: List[WorkRecord] = []
        self.maintenance_schedule: List[MaintenanceItem] = []
        self.degraded = False
        self.startup_error: Optional[TrackerError] = None

    # -------------------------------------------------------------------------
    # Startup
    # -------------------------------------------------------------------------

    async def start(self) -> Result:
        """
        Open the store, migrate and seed if needed, then load everything.

        On any store or migration failure the session switches to the
        fallback store; the returned Result reports the original error.
        """
        try:
            await self.store.open()
            await MigrationController(
                self.store, self.legacy, self.default_schedule, self.clock
            ).run()
            await self._load_all()
        except TrackerError as e:
            logger.error("Failed to initialize database: %s", e)
            self.startup_error = e
            await self._activate_fallback()
            await self._load_all()
            return Result.failure(e, "Failed to initialize database; using fallback storage")
        return Result.success()

    async def close(self) -> None:
        await self.store.close()

    async def _activate_fallback(self) -> None:
        try:
            await self.store.close()
        except TrackerError as e:
            logger.warning("Ignoring error while closing record store: %s", e)
        self.store = FallbackStore(self.legacy, self.default_schedule)
        self.degraded = True

    async def _load_all(self) -> None:
        await self._load_mileage()
        await self._load_schedule()
        await self._load_history()

    async def _load_mileage(self) -> None:
        self.current_mileage = await get_setting(self.store.settings, CURRENT_MILEAGE, 0) or 0

    async def _load_history(self) -> None:
        records = await self.store.work_history.all("timestamp", descending=True)
        self.work_history = [WorkRecord.from_dict(r) for r in records]

    async def _load_schedule(self) -> None:
        records = await self.store.maintenance_items.all("name")
        self.maintenance_schedule = [MaintenanceItem.from_dict(r) for r in records]

    async def _reload_after_failure(self) -> None:
        try:
            await self._load_all()
        except TrackerError as e:
            logger.error("Failed to reload data: %s", e)

    async def _attempt(self, message: str, operation: Callable[[], Awaitable[Any]]) -> Result:
        try:
            return Result.success(await operation())
        except TrackerError as e:
            logger.error("%s: %s", message, e)
            return Result.failure(e, message)

    def _now(self) -> str:
        return to_iso(self.clock())

    # -------------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------------

    def find_work(self, id: Any) -> Optional[WorkRecord]:
        for work in self.work_history:
            if work.id == id:
                return work
        return None

    def find_item(self, id: str) -> Optional[MaintenanceItem]:
        for item in self.maintenance_schedule:
            if item.id == id:
                return item
        return None

    def item_name(self, type_id: str) -> str:
        """Display name for a work type; orphaned types show the raw id."""
        item = self.find_item(type_id)
        return item.name if item else type_id

    def status_for(self, item: MaintenanceItem) -> MaintenanceStatus:
        return self.status_engine(
            item, self.current_mileage, self.work_history, today=self.clock().date()
        )

    def all_statuses(self) -> List[Tuple[MaintenanceItem, MaintenanceStatus]]:
        """Status for every schedule item, in schedule (name) order."""
        return [(item, self.status_for(item)) for item in self.maintenance_schedule]

    def summary(self) -> Dict[Status, int]:
        """Number of schedule items in each status."""
        counts = Counter(status.status for _, status in self.all_statuses())
        return {status: counts.get(status, 0) for status in Status}

    # -------------------------------------------------------------------------
    # Mileage
    # -------------------------------------------------------------------------

    async def set_mileage(self, miles: Any) -> Result:
        """Record a new odometer reading (a positive whole number)."""
        if not _is_int(miles) or miles <= 0:
            return Result.failure(
                ValidationError(f"Mileage must be a positive whole number, got {miles!r}"),
                "Failed to save mileage",
            )

        async def _save():
            await put_setting(self.store.settings, CURRENT_MILEAGE, miles)
            await self._load_mileage()
            return self.current_mileage

        return await self._attempt("Failed to save mileage", _save)

    # -------------------------------------------------------------------------
    # Work history
    # -------------------------------------------------------------------------

    async def add_work(self, date: str, mileage: int, type: str, description: str = "") -> Result:
        """Add a work entry; the Result value is the new id."""
        message = "Failed to save work entry"
        try:
            validate_work(date, mileage, type, description)
        except ValidationError as e:
            return Result.failure(e, message)

        async def _add():
            now = self._now()
            work = WorkRecord(
                date=date,
                mileage=mileage,
                type=type,
                description=description or "",
                timestamp=now,
                last_modified=now,
                modified_by=MODIFIED_BY_USER,
            )
            new_id = await self.store.work_history.add(work.to_dict(include_id=False))
            await self._load_history()
            return new_id

        return await self._attempt(message, _add)

    async def update_work(
        self,
        id: Any,
        date: Optional[str] = None,
        mileage: Optional[int] = None,
        type: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Result:
        """Update the given fields of a work entry; omitted fields are kept."""
        message = "Failed to update work entry"

        async def _update():
            existing = await self.store.work_history.get(id)
            if existing is None:
                raise NotFound(f"No work entry with id {id!r}")
            patch = {
                "date": date if date is not None else existing["date"],
                "mileage": mileage if mileage is not None else existing["mileage"],
                "type": type if type is not None else existing["type"],
                "description": (
                    description if description is not None else existing.get("description") or ""
                ),
            }
            validate_work(patch["date"], patch["mileage"], patch["type"], patch["description"])
            patch["lastModified"] = self._now()
            patch["modifiedBy"] = MODIFIED_BY_USER
            await self.store.work_history.update(id, patch)
            await self._load_history()
            return id

        return await self._attempt(message, _update)

    async def delete_work(self, id: Any) -> Result:
        async def _delete():
            await self.store.work_history.delete(id)
            await self._load_history()
            return id

        return await self._attempt("Failed to delete work entry", _delete)

    # -------------------------------------------------------------------------
    # Maintenance schedule
    # -------------------------------------------------------------------------

    def _custom_id(self) -> str:
        stamp = int(self.clock().timestamp() * 1000)
        taken = {item.id for item in self.maintenance_schedule}
        while f"custom-{stamp}" in taken:
            stamp += 1
        return f"custom-{stamp}"

    async def add_item(
        self,
        name: str,
        description: str = "",
        interval_miles: Optional[int] = None,
        interval_months: Optional[int] = None,
    ) -> Result:
        """Add a custom maintenance item; the Result value is the new id."""
        message = "Failed to add maintenance item"
        try:
            validate_item(name, interval_miles, interval_months)
        except ValidationError as e:
            return Result.failure(e, message)

        async def _add():
            now = self._now()
            item = MaintenanceItem(
                id=self._custom_id(),
                name=name,
                description=description or "",
                interval_miles=interval_miles,
                interval_months=interval_months,
                is_custom=True,
                created=now,
                last_modified=now,
            )
            new_id = await self.store.maintenance_items.add(item.to_dict())
            await self._load_schedule()
            return new_id

        return await self._attempt(message, _add)

    async def update_item(
        self,
        id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        interval_miles: Optional[int] = _UNSET,
        interval_months: Optional[int] = _UNSET,
    ) -> Result:
        """
        Update a maintenance item. Built-in items may be edited too.

        Intervals default to unchanged; pass None explicitly to clear one.
        """
        message = "Failed to update maintenance item"

        async def _update():
            existing = await self.store.maintenance_items.get(id)
            if existing is None:
                raise NotFound(f"No maintenance item with id {id!r}")
            patch = {
                "name": name if name is not None else existing["name"],
                "description": (
                    description if description is not None else existing.get("description") or ""
                ),
                "intervalMiles": (
                    existing.get("intervalMiles") if interval_miles is _UNSET else interval_miles
                ),
                "intervalMonths": (
                    existing.get("intervalMonths") if interval_months is _UNSET else interval_months
                ),
            }
            validate_item(patch["name"], patch["intervalMiles"], patch["intervalMonths"])
            patch["lastModified"] = self._now()
            await self.store.maintenance_items.update(id, patch)
            await self._load_schedule()
            return id

        return await self._attempt(message, _update)

    async def delete_item(self, id: str) -> Result:
        """Delete a custom maintenance item. Built-in items are refused."""

        async def _delete():
            existing = await self.store.maintenance_items.get(id)
            if existing is None:
                raise NotFound(f"No maintenance item with id {id!r}")
            if not existing.get("isCustom"):
                raise ValidationError(f"Built-in maintenance item {id!r} cannot be deleted")
            await self.store.maintenance_items.delete(id)
            await self._load_schedule()
            return id

        return await self._attempt("Failed to delete maintenance item", _delete)

    # -------------------------------------------------------------------------
    # Export / import
    # -------------------------------------------------------------------------

    def export_data(self) -> Result:
        """Serialize mileage, history and schedule to a JSON document."""
        return Result.success(
            build_export_document(
                self.current_mileage,
                self.work_history,
                self.maintenance_schedule,
                self._now(),
            )
        )

    async def import_data(self, text: str) -> Result:
        """
        Replace all data with the contents of an export document.

        The document is parsed and validated before anything is cleared.
        Callers must obtain the user's confirmation first. On the fallback
        store the built-in schedule is kept and only mileage and history
        are replaced. If a write fails after the clear, the in-memory view
        is reloaded so it matches what the store actually holds.
        """
        message = "Failed to import data. Please check the file format."
        try:
            data = parse_import_document(text)
        except TrackerError as e:
            logger.error("%s: %s", message, e)
            return Result.failure(e, message)

        async def _replace():
            now = self._now()
            await self.store.work_history.clear()
            if not self.degraded:
                await self.store.maintenance_items.clear()
            await self.store.settings.clear()

            if data.get("currentMileage"):
                await put_setting(self.store.settings, CURRENT_MILEAGE, data["currentMileage"])

            for dct in data.get("workHistory") or []:
                work = WorkRecord.from_dict(dct)
                work.timestamp = work.timestamp or now
                await self.store.work_history.add(work.to_dict())

            if not self.degraded:
                for dct in data.get("maintenanceSchedule") or []:
                    await self.store.maintenance_items.add(MaintenanceItem.from_dict(dct).to_dict())

            await put_setting(self.store.settings, MIGRATION_COMPLETED, now)
            await self._load_all()
            logger.info(
                "Imported %d work entries and %d maintenance items",
                len(self.work_history),
                len(self.maintenance_schedule),
            )
            return len(self.work_history)

        async def _import():
            try:
                return await _replace()
            except TrackerError:
                await self._reload_after_failure()
                raise

        return await self._attempt(message, _import)
