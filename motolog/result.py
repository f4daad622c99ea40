"""Tagged outcome returned by tracker operations instead of raising."""

from dataclasses import dataclass
from typing import Any, Optional

from .errors import TrackerError


@dataclass(frozen=True)
class Result:
    """Success carries a value; failure carries the error and a user message."""

    ok: bool
    value: Any = None
    error: Optional[TrackerError] = None
    message: str = ""

    @classmethod
    def success(cls, value: Any = None) -> "Result":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: TrackerError, message: str) -> "Result":
        return cls(ok=False, error=error, message=message)

    @property
    def error_kind(self) -> Optional[str]:
        """Name of the error class, e.g. 'ValidationError'."""
        return type(self.error).__name__ if self.error is not None else None

    def __bool__(self) -> bool:
        return self.ok
