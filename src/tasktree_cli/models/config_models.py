"""Configuration models for TaskTree CLI.

The configuration is a single JSON document validated by ``AppConfig``.
Every section has sensible defaults so an empty or missing file is valid.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator


class StorageConfig(BaseModel):
    """SQLite storage configuration."""

    db_path: str | None = Field(
        default=None, description="Database file (default: user data dir)"
    )
    timeout: float = Field(default=30.0, gt=0, description="Busy timeout in seconds")
    retries: int = Field(default=3, ge=1, description="Retries on 'database is locked'")


class OutputConfig(BaseModel):
    """Output configuration."""

    format: Literal["table", "json", "tree", "compact", "markdown", "yaml"] = Field(
        default="table"
    )
    color: bool = Field(default=True)
    unicode: bool = Field(default=True)
    date_format: str = Field(default="%Y-%m-%d")
    sort: Literal["id", "priority", "due", "created", "score"] = Field(default="id")
    tree_filter: Literal["context", "roots"] = Field(
        default="context",
        description="How filters apply to tree views: keep ancestors of matches, "
        "or match roots and keep their whole subtree",
    )


class ScoringConfig(BaseModel):
    """Weights for the weighted-score sort."""

    priority_weight: float = Field(default=0.6, ge=0)
    due_weight: float = Field(default=0.4, ge=0)
    horizon_days: int = Field(default=14, ge=1)


class BehaviorConfig(BaseModel):
    """Cascade behaviour switches."""

    block_incomplete_children: bool = Field(
        default=False,
        description="Refuse non-recursive completion while children are still open",
    )


class LoggingConfig(BaseModel):
    """Log file configuration."""

    level: str = Field(default="INFO")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return v


class AppConfig(BaseModel):
    """Main TaskTree configuration"""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    behavior: BehaviorConfig = Field(default_factory=BehaviorConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
