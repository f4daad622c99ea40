"""
One-time migration from the legacy flat store, plus default schedule seeding.

Migration runs only while the work history is empty and no completion
marker has been written. Each step writes to its own collection; a failed
write stops that step but not the others, and nothing is rolled back.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .clock import Clock, to_iso, utc_now
from .errors import MigrationError, TrackerError
from .legacy_store import LegacyFlatStore, normalise_legacy_entry
from .maintenance_item import MaintenanceItem
from .settings import CURRENT_MILEAGE, MIGRATION_COMPLETED, get_setting, put_setting
from .work_record import MODIFIED_BY_MIGRATION

logger = logging.getLogger(__name__)


@dataclass
class MigrationReport:
    """What a migration run did."""

    migrated: bool = False
    mileage: Optional[int] = None
    history_imported: int = 0
    items_seeded: int = 0
    errors: List[str] = field(default_factory=list)


def legacy_to_record(entry: Dict[str, Any], now: str) -> Dict[str, Any]:
    """Stamp a legacy work entry for import; the store assigns a new id."""
    record = normalise_legacy_entry(entry)
    record.pop("id", None)
    record["timestamp"] = record.get("timestamp") or now
    record["lastModified"] = now
    record["modifiedBy"] = MODIFIED_BY_MIGRATION
    return record


class MigrationController:
    """Moves legacy data into the record store and seeds built-in items."""

    def __init__(
        self,
        store,
        legacy: LegacyFlatStore,
        default_schedule: List[MaintenanceItem],
        clock: Clock = utc_now,
    ):
        self.store = store
        self.legacy = legacy
        self.default_schedule = default_schedule
        self.clock = clock

    async def needs_migration(self) -> bool:
        if await self.store.work_history.count() > 0:
            return False
        return await get_setting(self.store.settings, MIGRATION_COMPLETED) is None

    async def run(self) -> MigrationReport:
        """
        Migrate (when needed) then seed (when needed).

        Raises MigrationError carrying the report if any write failed.
        """
        report = MigrationReport()

        if await self.needs_migration():
            report.migrated = True
            await self._migrate_mileage(report)
            await self._migrate_history(report)
            if not report.errors:
                try:
                    await put_setting(self.store.settings, MIGRATION_COMPLETED, to_iso(self.clock()))
                except TrackerError as e:
                    report.errors.append(f"migration marker: {e}")
            logger.info(
                "Migrated legacy data: mileage=%s, %d work entries",
                report.mileage,
                report.history_imported,
            )

        if await self.store.maintenance_items.count() == 0:
            await self._seed_defaults(report)

        if report.errors:
            raise MigrationError("; ".join(report.errors), report)
        return report

    async def _migrate_mileage(self, report: MigrationReport) -> None:
        mileage = self.legacy.read_mileage()
        if mileage is None:
            return
        try:
            await put_setting(self.store.settings, CURRENT_MILEAGE, mileage)
            report.mileage = mileage
        except TrackerError as e:
            logger.error("Failed to migrate mileage: %s", e)
            report.errors.append(f"mileage: {e}")

    async def _migrate_history(self, report: MigrationReport) -> None:
        history = self.legacy.read_history()
        if not history:
            return
        now = to_iso(self.clock())
        for entry in history:
            try:
                await self.store.work_history.add(legacy_to_record(entry, now))
            except TrackerError as e:
                logger.error(
                    "Work history migration stopped after %d of %d entries: %s",
                    report.history_imported,
                    len(history),
                    e,
                )
                report.errors.append(f"work history: {e}")
                return
            report.history_imported += 1

    async def _seed_defaults(self, report: MigrationReport) -> None:
        now = to_iso(self.clock())
        for item in self.default_schedule:
            record = item.to_dict()
            record.update({"isCustom": False, "created": now, "lastModified": now})
            try:
                await self.store.maintenance_items.add(record)
            except TrackerError as e:
                logger.error("Seeding default schedule stopped at %s: %s", item.id, e)
                report.errors.append(f"maintenance items: {e}")
                return
            report.items_seeded += 1
        logger.info("Seeded %d default maintenance items", report.items_seeded)
