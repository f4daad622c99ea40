"""Built-in maintenance schedule loaded from default_schedule.yaml."""

from pathlib import Path
from typing import List, Optional, Union

import yaml

from .maintenance_item import MaintenanceItem

DEFAULT_SCHEDULE_PATH = Path(__file__).parent / "default_schedule.yaml"


def load_default_schedule(path: Optional[Union[str, Path]] = None) -> List[MaintenanceItem]:
    """Load the built-in schedule. Items are never custom."""
    with open(path or DEFAULT_SCHEDULE_PATH, "r") as fp:
        data = yaml.load(fp, Loader=yaml.SafeLoader) or {}

    items = []
    for dct in data.get("items") or []:
        item = MaintenanceItem.from_dict(dct)
        item.is_custom = False
        items.append(item)
    return items
