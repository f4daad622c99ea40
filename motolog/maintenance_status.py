"""MaintenanceStatus dataclass for the derived per-item status."""

from dataclasses import dataclass
from typing import Optional, Union

from .status import Status


@dataclass
class MaintenanceStatus:
    """Calculated status for one maintenance item. Never persisted."""

    status: Status
    message: str
    last_mileage: Optional[int] = None
    next_due: Optional[Union[int, str]] = None
    due_date: Optional[str] = None

    @property
    def is_due(self) -> bool:
        return self.status in (Status.OVERDUE, Status.DUE)

