"""Key/value settings on top of a settings collection (one record per key)."""

from typing import Any, Optional

CURRENT_MILEAGE = "currentMileage"
MIGRATION_COMPLETED = "migrationCompleted"


async def get_setting(settings, key: str, default: Any = None) -> Any:
    record = await settings.first_where("key", key)
    return record["value"] if record else default


async def put_setting(settings, key: str, value: Any) -> None:
    """Read-then-put: update the existing record for key, else add one."""
    record: Optional[dict] = await settings.first_where("key", key)
    if record is None:
        await settings.add({"key": key, "value": value})
    else:
        await settings.update(record["id"], {"value": value})
