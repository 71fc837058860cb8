"""Configuration management commands."""

import json

import typer
import yaml
from pydantic import BaseModel

from tasktree_cli.services.config_service import get_config_service
from tasktree_cli.utils.typer_helpers import SuggestingGroup
from tasktree_cli.utils.ui.console import get_console
from tasktree_cli.utils.ui.formatters import format_info, format_success

from .decorators import command_wrapper

app = typer.Typer(cls=SuggestingGroup, help="Configuration management commands")
console = get_console()

_NULL_VALUES = ("null", "none")


def parse_value(value: str) -> str | None:
    """Map the literal ``null``/``none`` to None; pydantic coerces the rest."""
    if value.strip().lower() in _NULL_VALUES:
        return None
    return value


@app.command("show")
@command_wrapper
def show_config(
    output: str = typer.Option("yaml", "--output", "-o", help="yaml or json"),
) -> None:
    """Show the effective configuration (file plus environment overrides)."""
    data = get_config_service().effective_config.model_dump(mode="json")
    if output == "json":
        typer.echo(json.dumps(data, indent=2))
    else:
        typer.echo(yaml.safe_dump(data, default_flow_style=False, sort_keys=False).rstrip())


@app.command("get")
@command_wrapper
def get_config(
    key: str = typer.Argument(..., help="Configuration key (e.g., output.format)"),
) -> None:
    """Get a configuration value."""
    value = get_config_service().get(key)
    if isinstance(value, BaseModel):
        typer.echo(json.dumps(value.model_dump(mode="json"), indent=2))
    else:
        typer.echo("null" if value is None else str(value))


@app.command("set")
@command_wrapper
def set_config(
    key: str = typer.Argument(..., help="Configuration key (e.g., output.format)"),
    value: str = typer.Argument(..., help="Configuration value ('null' to unset)"),
) -> None:
    """Set a configuration value."""
    parsed_value = parse_value(value)
    get_config_service().set(key, parsed_value)
    format_success(f"Configuration '{key}' set to '{parsed_value}'")


@app.command("reset")
@command_wrapper
def reset_config(
    key: str | None = typer.Argument(None, help="Configuration key to reset"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Reset configuration to defaults."""
    if not yes:
        msg = "entire configuration" if not key else f"'{key}'"
        if not typer.confirm(f"Are you sure you want to reset {msg}?"):
            format_info("Cancelled")
            raise typer.Exit(0)

    get_config_service().reset(key)

    if key:
        format_success(f"Configuration '{key}' reset to default")
    else:
        format_success("Configuration reset to defaults")


@app.command("path")
@command_wrapper
def config_path() -> None:
    """Show where the configuration and database live."""
    service = get_config_service()
    typer.echo(f"config: {service.config_path}")
    typer.echo(f"database: {service.db_path}")
