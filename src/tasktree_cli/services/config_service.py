"""Configuration service for managing TaskTree CLI configuration.

This module provides the ConfigService class, which is the single source of truth
for all configuration management in TaskTree CLI. It handles:

- Loading and saving config.json
- Dotted-key get/set/reset for the ``config`` command
- Environment overrides (TASKTREE_DB, TASKTREE_NO_COLOR, TASKTREE_ASCII)
- Resolving the effective database path
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import pydantic
from platformdirs import user_config_dir, user_data_dir
from pydantic import BaseModel

from tasktree_cli.exceptions import ValidationError
from tasktree_cli.models.config_models import AppConfig

APP_NAME = "tasktree_cli"

ENV_DB_PATH = "TASKTREE_DB"
ENV_NO_COLOR = "TASKTREE_NO_COLOR"
ENV_ASCII = "TASKTREE_ASCII"


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")


class ConfigService:
    """Service for loading, editing and persisting the application configuration.

    The file on disk only ever holds what the user set; environment overrides
    are applied on top when the configuration is read and never written back.
    """

    def __init__(self):
        """Initialize the config service."""

        self.config_dir = Path(user_config_dir(APP_NAME))
        self.config_path = self.config_dir / "config.json"
        self.data_dir = Path(user_data_dir(APP_NAME))

        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        self._config: AppConfig | None = None

    @property
    def config(self) -> AppConfig:
        """Get or load the stored configuration (without env overrides)."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    @property
    def effective_config(self) -> AppConfig:
        """Stored configuration with environment overrides applied."""
        config = self.config.model_copy(deep=True)
        if os.environ.get(ENV_DB_PATH):
            config.storage.db_path = os.environ[ENV_DB_PATH]
        if _env_flag(ENV_NO_COLOR) or "NO_COLOR" in os.environ:
            config.output.color = False
        if _env_flag(ENV_ASCII):
            config.output.unicode = False
        return config

    @property
    def db_path(self) -> Path:
        """Effective SQLite database path."""
        configured = self.effective_config.storage.db_path
        if configured:
            return Path(configured).expanduser()
        return self.data_dir / "tasktree.db"

    def load_config(self) -> AppConfig:
        """Load configuration from storage."""
        if self._config is not None:
            return self._config

        try:
            with open(self.config_path, encoding="utf-8") as f:
                self._config = AppConfig.model_validate_json(f.read())
        except FileNotFoundError:
            # First run
            self._config = AppConfig()
        except Exception as e:
            raise RuntimeError(f"Failed to load config: {e}") from e

        return self._config

    def save_config(self) -> None:
        """Save the current configuration to storage."""
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                f.write(self.config.model_dump_json(indent=4))
        except OSError as e:
            raise RuntimeError(f"Failed to save config: {e}") from e

    def get(self, key: str) -> Any:
        """Get a configuration value by dot-separated key."""
        value: Any = self.config
        for k in key.split("."):
            if not isinstance(value, BaseModel) or k not in type(value).model_fields:
                raise ValidationError(f"Unknown configuration key: {key}")
            value = getattr(value, k)
        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value by dot-separated key and persist it."""
        self.get(key)  # validates the key
        keys = key.split(".")
        config_dict = self.config.model_dump()

        current = config_dict
        for k in keys[:-1]:
            current = current[k]
        current[keys[-1]] = value

        try:
            self._config = AppConfig(**config_dict)
        except pydantic.ValidationError as e:
            raise ValidationError(f"Invalid value for {key}: {value!r}") from e
        self.save_config()

    def reset(self, key: str | None = None) -> None:
        """Reset configuration (or a single key) to defaults."""
        if key is None:
            self._config = AppConfig()
            self.save_config()
            return

        default_value: Any = AppConfig()
        for k in key.split("."):
            default_value = getattr(default_value, k, None)
        if isinstance(default_value, BaseModel):
            default_value = default_value.model_dump()
        self.set(key, default_value)


@lru_cache(maxsize=1)
def get_config_service() -> ConfigService:
    """Get a cached ConfigService instance."""
    return ConfigService()
