"""
Motorcycle maintenance tracking.

This package provides:
- Status / MaintenanceStatus: derived ok / due / overdue judgments
- WorkRecord / MaintenanceItem: the recorded work and the schedule
- RecordStore: SQLite-backed collections
- LegacyFlatStore / FallbackStore: the old flat format and its degraded use
- MigrationController: one-time import from the flat format
- Tracker: the facade the UI talks to
"""

from .status import Status
from .work_record import WorkRecord
from .maintenance_item import MaintenanceItem
from .maintenance_status import MaintenanceStatus
from .calculations import calc_due_miles, calc_due_date, check_status, compute_status
from .errors import (
    TrackerError,
    StoreUnavailable,
    StoreError,
    NotFound,
    ValidationError,
    ImportFormatError,
    MigrationError,
)
from .record_store import RecordStore
from .legacy_store import LegacyFlatStore
from .fallback_store import FallbackStore
from .migration import MigrationController, MigrationReport
from .defaults import load_default_schedule
from .result import Result
from .config import TrackerConfig, load_config
from .tracker import Tracker

__all__ = [
    "Status",
    "WorkRecord",
    "MaintenanceItem",
    "MaintenanceStatus",
    "calc_due_miles",
    "calc_due_date",
    "check_status",
    "compute_status",
    "TrackerError",
    "StoreUnavailable",
    "StoreError",
    "NotFound",
    "ValidationError",
    "ImportFormatError",
    "MigrationError",
    "RecordStore",
    "LegacyFlatStore",
    "FallbackStore",
    "MigrationController",
    "MigrationReport",
    "load_default_schedule",
    "Result",
    "TrackerConfig",
    "load_config",
    "Tracker",
]
