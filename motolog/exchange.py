"""Export and import documents (JSON text, validated against export_schema.yaml)."""

import json
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from jsonschema import ValidationError as SchemaValidationError
from jsonschema import validate

from .errors import ImportFormatError
from .maintenance_item import MaintenanceItem
from .work_record import WorkRecord

SCHEMA_PATH = Path(__file__).parent / "export_schema.yaml"


def load_schema() -> dict:
    """Load the JSON schema from export_schema.yaml."""
    with open(SCHEMA_PATH) as f:
        return yaml.safe_load(f)


def backup_filename(today: Optional[date] = None) -> str:
    """Default file name for an export, e.g. motorcycle-maintenance-backup-2025-01-15.json."""
    return f"motorcycle-maintenance-backup-{(today or date.today()).isoformat()}.json"


def build_export_document(
    current_mileage: int,
    history: List[WorkRecord],
    schedule: List[MaintenanceItem],
    export_date: str,
) -> str:
    """Serialize mileage, history and schedule to indented JSON text."""
    data = {
        "currentMileage": current_mileage,
        "workHistory": [work.to_dict() for work in history],
        "maintenanceSchedule": [item.to_dict() for item in schedule],
        "exportDate": export_date,
    }
    return json.dumps(data, indent=2)


def parse_import_document(text: str, schema: Optional[dict] = None) -> Dict[str, Any]:
    """
    Parse and validate an import document.

    Raises ImportFormatError if the text is not JSON, does not match the
    schema, or repeats an id within a section. Nothing is written here.
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise ImportFormatError(f"Not valid JSON: {e}") from e

    try:
        validate(instance=data, schema=schema or load_schema())
    except SchemaValidationError as e:
        message = f"Schema validation error: {e.message}"
        if e.path:
            message += f" at path: {'.'.join(str(p) for p in e.path)}"
        raise ImportFormatError(message) from e

    _check_unique_ids(data.get("workHistory") or [], "workHistory")
    _check_unique_ids(data.get("maintenanceSchedule") or [], "maintenanceSchedule")
    return data


def _check_unique_ids(entries: List[Dict[str, Any]], section: str) -> None:
    seen = set()
    for index, entry in enumerate(entries):
        id = entry.get("id")
        if id is None:
            continue
        if id in seen:
            raise ImportFormatError(f"Duplicate id {id!r} at path: {section}.{index}")
        seen.add(id)
