"""WorkRecord class for completed maintenance work."""
from typing import Any, Dict, Optional

MODIFIED_BY_USER = "user"
MODIFIED_BY_MIGRATION = "migration"


class WorkRecord:
    """A record of maintenance performed at a given date and mileage."""

    def __init__(
            self,
            date: str,
            mileage: Optional[int],
            type: str,
            description: str = "",
            timestamp: Optional[str] = None,
            last_modified: Optional[str] = None,
            modified_by: str = MODIFIED_BY_USER,
            id: Optional[int] = None,
    ):
        self.id = id
        self.date = date
        self.mileage = mileage
        self.type = type
        self.description = description
        self.timestamp = timestamp
        self.last_modified = last_modified
        self.modified_by = modified_by

    @classmethod
    def from_dict(cls, dct: Dict[str, Any]) -> "WorkRecord":
        """Build a record from the camelCase persisted shape."""
        return cls(
            dct.get("date") or "",
            dct.get("mileage"),
            dct.get("type") or "",
            dct.get("description") or "",
            dct.get("timestamp"),
            dct.get("lastModified"),
            dct.get("modifiedBy") or MODIFIED_BY_USER,
            dct.get("id"),
        )

    def to_dict(self, include_id: bool = True) -> Dict[str, Any]:
        """Serialize to the camelCase persisted shape."""
        d: Dict[str, Any] = {}
        if include_id and self.id is not None:
            d["id"] = self.id
        d.update(
            {
                "date": self.date,
                "mileage": self.mileage,
                "type": self.type,
                "description": self.description,
                "timestamp": self.timestamp,
                "lastModified": self.last_modified,
                "modifiedBy": self.modified_by,
            }
        )
        return d
