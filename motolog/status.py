"""Status enum for maintenance urgency levels."""

from enum import Enum


class Status(Enum):
    """Maintenance status categories, most urgent first."""

    OVERDUE = "overdue"
    DUE = "due"
    OK = "ok"

    @property
    def rank(self) -> int:
        """Sort key: lower is more urgent."""
        return list(Status).index(self)
