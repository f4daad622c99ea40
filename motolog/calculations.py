"""Status engine: derive a MaintenanceStatus from an item and work history."""

import math
from datetime import date
from typing import Iterable, Optional

from dateutil.parser import isoparse
from dateutil.relativedelta import relativedelta

from .maintenance_item import MaintenanceItem
from .maintenance_status import MaintenanceStatus
from .status import Status
from .work_record import WorkRecord

# "Due soon" bands. Fixed, not configurable.
DUE_SOON_MILES = 500
DUE_SOON_MONTHS = 2

DAYS_PER_MONTH = 30

NEVER_PERFORMED = "Never performed"
BASED_ON_TIME = "Based on time"
MILEAGE_UNKNOWN = "Last service mileage unknown"
DATE_UNKNOWN = "Last service date unknown"


def parse_date(value: Optional[str]) -> Optional[date]:
    """Parse an ISO date or instant; None if missing or malformed."""
    if not value:
        return None
    try:
        return isoparse(value).date()
    except (TypeError, ValueError):
        return None


def calc_due_miles(last_miles: int, interval: int) -> int:
    """Calculate next due mileage: last + interval."""
    return last_miles + interval


def calc_due_date(last_date: Optional[date], interval_months: Optional[int]) -> Optional[date]:
    """Calculate next due date: last + interval months."""
    if interval_months is None or last_date is None:
        return None
    return last_date + relativedelta(months=interval_months)


def months_between(start: date, end: date) -> float:
    """Elapsed months using a 30-day month approximation."""
    return (end - start).days / DAYS_PER_MONTH


def check_status(current: float, due: float, soon_threshold: float) -> Status:
    """Determine status by comparing elapsed amount to the interval."""
    if current >= due:
        return Status.OVERDUE
    if current >= due - soon_threshold:
        return Status.DUE
    return Status.OK


def find_last_work(item: MaintenanceItem, history: Iterable[WorkRecord]) -> Optional[WorkRecord]:
    """First matching record in a most-recent-first history."""
    for work in history:
        if work.type == item.id:
            return work
    return None


def compute_status(
    item: MaintenanceItem,
    current_mileage: int,
    history: Iterable[WorkRecord],
    today: Optional[date] = None,
) -> MaintenanceStatus:
    """
    Calculate the status of a maintenance item.

    Logic:
    - No matching work: OVERDUE, "Never performed"
    - Mileage interval set: compare miles since last work to the interval,
      DUE within DUE_SOON_MILES of it
    - Otherwise: compare months since last work (30-day months) to the
      interval, DUE within DUE_SOON_MONTHS of it

    Legacy records may lack a usable mileage or date; the item then reads
    as OVERDUE with an "unknown" message.

    Mileage inconsistencies (current below the last work's mileage) are not
    corrected; they show up as a large "miles remaining".
    """
    last_work = find_last_work(item, history)

    if last_work is None:
        return MaintenanceStatus(
            status=Status.OVERDUE,
            message=NEVER_PERFORMED,
            last_mileage=None,
            next_due=item.interval_miles if item.is_mileage_based else BASED_ON_TIME,
        )

    if item.is_mileage_based and last_work.mileage is None:
        return MaintenanceStatus(
            status=Status.OVERDUE,
            message=MILEAGE_UNKNOWN,
            last_mileage=None,
            next_due=None,
        )

    if item.is_mileage_based:
        interval = item.interval_miles
        miles_since = current_mileage - last_work.mileage
        status = check_status(miles_since, interval, DUE_SOON_MILES)
        if status == Status.OVERDUE:
            message = f"{miles_since - interval} miles overdue"
        elif status == Status.DUE:
            message = f"Due in {interval - miles_since} miles"
        else:
            message = f"{interval - miles_since} miles remaining"
        return MaintenanceStatus(
            status=status,
            message=message,
            last_mileage=last_work.mileage,
            next_due=calc_due_miles(last_work.mileage, interval),
        )

    interval_months = item.interval_months
    next_due = f"Every {interval_months} months"
    last_date = parse_date(last_work.date)
    if last_date is None:
        return MaintenanceStatus(
            status=Status.OVERDUE,
            message=DATE_UNKNOWN,
            last_mileage=last_work.mileage,
            next_due=next_due,
        )

    months_since = months_between(last_date, today or date.today())
    status = check_status(months_since, interval_months, DUE_SOON_MONTHS)
    if status == Status.OVERDUE:
        message = f"{math.floor(months_since - interval_months)} months overdue"
    elif status == Status.DUE:
        message = f"Due in {math.ceil(interval_months - months_since)} months"
    else:
        message = f"{math.ceil(interval_months - months_since)} months remaining"
    due_date = calc_due_date(last_date, interval_months)
    return MaintenanceStatus(
        status=status,
        message=message,
        last_mileage=last_work.mileage,
        next_due=next_due,
        due_date=due_date.isoformat() if due_date else None,
    )
