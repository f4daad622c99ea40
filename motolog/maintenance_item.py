"""MaintenanceItem class for schedule entries."""
from typing import Any, Dict, Optional


class MaintenanceItem:
    """A schedule entry defining how often a kind of work recurs."""

    def __init__(
            self,
            id: str,
            name: str,
            description: str = "",
            interval_miles: Optional[int] = None,
            interval_months: Optional[int] = None,
            is_custom: bool = False,
            created: Optional[str] = None,
            last_modified: Optional[str] = None,
    ):
        self.id = id
        self.name = name
        self.description = description
        self.interval_miles = interval_miles
        self.interval_months = interval_months
        self.is_custom = bool(is_custom)
        self.created = created
        self.last_modified = last_modified

    @property
    def is_mileage_based(self) -> bool:
        """Mileage drives the status whenever a mileage interval is set."""
        return bool(self.interval_miles)

    @property
    def interval_text(self) -> str:
        """Human-readable interval, e.g. '7500 miles or 24 months'."""
        parts = []
        if self.interval_miles:
            parts.append(f"{self.interval_miles} miles")
        if self.interval_months:
            parts.append(f"{self.interval_months} months")
        return " or ".join(parts) if parts else "-"

    @classmethod
    def from_dict(cls, dct: Dict[str, Any]) -> "MaintenanceItem":
        """Build an item from the camelCase persisted shape."""
        return cls(
            dct["id"],
            dct["name"],
            dct.get("description") or "",
            dct.get("intervalMiles"),
            dct.get("intervalMonths"),
            dct.get("isCustom", False),
            dct.get("created"),
            dct.get("lastModified"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase persisted shape."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "intervalMiles": self.interval_miles,
            "intervalMonths": self.interval_months,
            "isCustom": self.is_custom,
            "created": self.created,
            "lastModified": self.last_modified,
        }
