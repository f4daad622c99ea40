"""Tracker configuration, optionally read from a YAML file."""

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional, Union

import yaml

CONFIG_ENV = "MOTOLOG_CONFIG"
DATA_DIR_ENV = "MOTOLOG_DATA_DIR"


@dataclass(frozen=True)
class TrackerConfig:
    data_dir: Path = Path.home() / ".motolog"
    db_name: str = "motolog.db"
    legacy_name: str = "legacy.json"
    log_level: str = "WARNING"

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name

    @property
    def legacy_path(self) -> Path:
        return self.data_dir / self.legacy_name


def load_config(path: Optional[Union[str, Path]] = None) -> TrackerConfig:
    """
    Build a config from defaults, an optional YAML file and the environment.

    The file comes from `path` or $MOTOLOG_CONFIG; a missing file means
    defaults. $MOTOLOG_DATA_DIR overrides data_dir. Unknown keys are ignored.
    """
    config = TrackerConfig()

    path = path or os.environ.get(CONFIG_ENV)
    if path and Path(path).exists():
        with open(path, "r") as fp:
            data = yaml.load(fp, Loader=yaml.SafeLoader) or {}
        known = {f.name for f in fields(TrackerConfig)}
        values = {k: v for k, v in data.items() if k in known}
        if "data_dir" in values:
            values["data_dir"] = Path(values["data_dir"]).expanduser()
        config = replace(config, **values)

    data_dir = os.environ.get(DATA_DIR_ENV)
    if data_dir:
        config = replace(config, data_dir=Path(data_dir).expanduser())
    return config
