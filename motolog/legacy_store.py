"""
Adapter for the legacy flat key/value snapshot.

The previous storage format is a single JSON file mapping string keys to
string values: ``currentMileage`` holds the mileage as decimal text and
``workHistory`` holds a JSON-serialised list of work entries.
"""

import json
import logging
import math
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

CURRENT_MILEAGE_KEY = "currentMileage"
WORK_HISTORY_KEY = "workHistory"

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def parse_leading_int(value: Any) -> Optional[int]:
    """Leading whole number of a legacy value ("31000.5" -> 31000), or None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def normalise_legacy_entry(entry: Dict[str, Any]) -> Dict[str, Any]:
    """
    Coerce a legacy work entry into the shape WorkRecord expects.

    Legacy entries were never validated: mileage may be text or missing and
    date or type may be absent. Unusable mileage becomes None.
    """
    record = dict(entry)
    record["mileage"] = parse_leading_int(record.get("mileage"))
    for key in ("date", "type", "description"):
        if not isinstance(record.get(key), str):
            record[key] = ""
    return record


class LegacyFlatStore:
    """Unindexed key/value store backed by one JSON file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable legacy store %s: %s", self.path, e)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Ignoring legacy store %s: expected an object", self.path)
            return {}
        return raw

    def _save(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix="._legacy_", suffix=".json", dir=str(self.path.parent))
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def read_mileage(self) -> Optional[int]:
        """Stored mileage, or None when absent or not a number."""
        value = self.get_item(CURRENT_MILEAGE_KEY)
        if value in (None, ""):
            return None
        mileage = parse_leading_int(value)
        if mileage is None:
            logger.warning("Ignoring non-numeric legacy mileage %r", value)
        return mileage

    def read_history(self) -> Optional[List[Dict[str, Any]]]:
        """Stored work entries in list order, normalised, or None when absent."""
        value = self.get_item(WORK_HISTORY_KEY)
        if not value:
            return None
        try:
            history = json.loads(value)
        except ValueError as e:
            logger.warning("Ignoring malformed legacy work history: %s", e)
            return None
        if not isinstance(history, list):
            logger.warning("Ignoring legacy work history: expected a list")
            return None
        return [normalise_legacy_entry(entry) for entry in history if isinstance(entry, dict)]

    def write_snapshot(self, mileage: int, history: List[Dict[str, Any]]) -> None:
        """Re-serialise mileage and history in the legacy representation."""
        data = self._load()
        data[CURRENT_MILEAGE_KEY] = str(mileage)
        data[WORK_HISTORY_KEY] = json.dumps(history)
        self._save(data)
