"""Error types raised by the store, migration and tracker layers."""


class TrackerError(Exception):
    """Base class for all motolog errors."""


class StoreUnavailable(TrackerError):
    """The record store could not be opened or is not usable."""


class StoreError(TrackerError):
    """A store operation failed after the store was opened."""


class NotFound(TrackerError):
    """An update or delete referenced an id that does not exist."""


class ValidationError(TrackerError):
    """Input was rejected before any store write."""


class ImportFormatError(TrackerError):
    """An import document could not be parsed or failed schema validation."""


class MigrationError(TrackerError):
    """One or more migration steps failed."""

    def __init__(self, message, report=None):
        super().__init__(message)
        self.report = report
