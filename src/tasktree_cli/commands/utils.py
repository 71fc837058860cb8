"""Shared helpers for command modules."""

from __future__ import annotations

import typer

from tasktree_cli.models import TaskFilters
from tasktree_cli.models.config_models import AppConfig
from tasktree_cli.pipeline import Pipeline
from tasktree_cli.pipeline.formatters import FormatOptions
from tasktree_cli.services.config_service import get_config_service
from tasktree_cli.services.context_manager import StorageContext, get_storage_context
from tasktree_cli.utils.dates import today

OUTPUT_HELP = "Output format: table, json, yaml, tree, compact or markdown"


def get_config() -> AppConfig:
    """Effective configuration (file plus environment overrides)."""
    return get_config_service().effective_config


def get_storage() -> StorageContext:
    return get_storage_context()


def format_options() -> FormatOptions:
    output = get_config().output
    return FormatOptions(
        color=output.color,
        unicode=output.unicode,
        date_format=output.date_format,
        today=today(),
    )


def resolve_format(output: str | None) -> str:
    return output or get_config().output.format


def build_pipeline(
    *,
    filters: TaskFilters | None = None,
    sort: str | None = None,
    output: str | None = None,
) -> Pipeline:
    return Pipeline.from_config(
        get_config(), filters=filters, sort=sort, output_format=output, today=today()
    )


def emit(text: str) -> None:
    """Write rendered output verbatim (no Rich markup processing)."""
    if text:
        typer.echo(text)
