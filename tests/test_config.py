#!/usr/bin/env python3
"""Tests for configuration loading."""
from pathlib import Path

from motolog import TrackerConfig, load_config


class TestLoadConfig:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("MOTOLOG_CONFIG", raising=False)
        monkeypatch.delenv("MOTOLOG_DATA_DIR", raising=False)
        config = load_config()
        assert config == TrackerConfig()
        assert config.db_path.name == "motolog.db"
        assert config.legacy_path.name == "legacy.json"

    def test_yaml_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("MOTOLOG_DATA_DIR", raising=False)
        path = tmp_path / "motolog.yaml"
        path.write_text(f"data_dir: {tmp_path}\ndb_name: bike.db\nlog_level: INFO\nunknown: 1\n")
        config = load_config(path)
        assert config.db_path == tmp_path / "bike.db"
        assert config.log_level == "INFO"

    def test_env_config_path(self, tmp_path, monkeypatch):
        monkeypatch.delenv("MOTOLOG_DATA_DIR", raising=False)
        path = tmp_path / "motolog.yaml"
        path.write_text("legacy_name: old.json\n")
        monkeypatch.setenv("MOTOLOG_CONFIG", str(path))
        assert load_config().legacy_name == "old.json"

    def test_data_dir_env_wins(self, tmp_path, monkeypatch):
        path = tmp_path / "motolog.yaml"
        path.write_text("data_dir: /somewhere/else\n")
        monkeypatch.setenv("MOTOLOG_DATA_DIR", str(tmp_path / "data"))
        assert load_config(path).data_dir == tmp_path / "data"

    def test_missing_file_means_defaults(self, tmp_path, monkeypatch):
        monkeypatch.delenv("MOTOLOG_DATA_DIR", raising=False)
        assert load_config(tmp_path / "nope.yaml") == TrackerConfig()

    def test_empty_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("MOTOLOG_DATA_DIR", raising=False)
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(Path(path)) == TrackerConfig()
