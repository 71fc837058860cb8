"""Tests for ConfigService."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from tasktree_cli.exceptions import ValidationError
from tasktree_cli.models.config_models import AppConfig


class TestLoadAndSave:
    def test_defaults_when_file_missing(self, tmp_config):
        assert tmp_config.config == AppConfig()
        assert not tmp_config.config_path.exists()

    def test_set_persists(self, tmp_config):
        tmp_config.set("output.format", "json")
        saved = json.loads(tmp_config.config_path.read_text())
        assert saved["output"]["format"] == "json"

    def test_load_existing_file(self, tmp_config):
        tmp_config.config_path.write_text(json.dumps({"output": {"sort": "priority"}}))
        assert tmp_config.load_config().output.sort == "priority"

    def test_corrupt_file(self, tmp_config):
        tmp_config.config_path.write_text("{not json")
        with pytest.raises(RuntimeError, match="Failed to load config"):
            tmp_config.load_config()


class TestGetSet:
    def test_get_nested(self, tmp_config):
        assert tmp_config.get("scoring.horizon_days") == 14

    def test_get_section(self, tmp_config):
        assert tmp_config.get("behavior").block_incomplete_children is False

    def test_unknown_key(self, tmp_config):
        with pytest.raises(ValidationError, match="Unknown configuration key"):
            tmp_config.get("output.colour")

    def test_set_coerces_strings(self, tmp_config):
        tmp_config.set("behavior.block_incomplete_children", "true")
        tmp_config.set("scoring.horizon_days", "7")
        assert tmp_config.config.behavior.block_incomplete_children is True
        assert tmp_config.config.scoring.horizon_days == 7

    def test_invalid_value(self, tmp_config):
        with pytest.raises(ValidationError, match="Invalid value"):
            tmp_config.set("output.format", "html")
        assert tmp_config.config.output.format == "table"

    def test_reset_key(self, tmp_config):
        tmp_config.set("output.sort", "due")
        tmp_config.reset("output.sort")
        assert tmp_config.config.output.sort == "id"

    def test_reset_section(self, tmp_config):
        tmp_config.set("scoring.priority_weight", "2")
        tmp_config.reset("scoring")
        assert tmp_config.config.scoring.priority_weight == 0.6

    def test_reset_all(self, tmp_config):
        tmp_config.set("output.sort", "due")
        tmp_config.reset()
        assert tmp_config.config == AppConfig()


class TestEnvironmentOverrides:
    def test_db_path_default(self, tmp_config, monkeypatch):
        monkeypatch.delenv("TASKTREE_DB", raising=False)
        assert tmp_config.db_path == tmp_config.data_dir / "tasktree.db"

    def test_db_path_from_config(self, tmp_config, monkeypatch, tmp_path):
        monkeypatch.delenv("TASKTREE_DB", raising=False)
        tmp_config.set("storage.db_path", str(tmp_path / "custom.db"))
        assert tmp_config.db_path == tmp_path / "custom.db"

    def test_db_path_env_wins(self, tmp_config, monkeypatch, tmp_path):
        tmp_config.set("storage.db_path", str(tmp_path / "custom.db"))
        monkeypatch.setenv("TASKTREE_DB", str(tmp_path / "env.db"))
        assert tmp_config.db_path == Path(tmp_path / "env.db")

    def test_flags_are_not_persisted(self, tmp_config, monkeypatch):
        monkeypatch.setenv("TASKTREE_NO_COLOR", "1")
        monkeypatch.setenv("TASKTREE_ASCII", "yes")
        effective = tmp_config.effective_config
        assert effective.output.color is False
        assert effective.output.unicode is False
        assert tmp_config.config.output.color is True
