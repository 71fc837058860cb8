"""Data management commands (import, export)."""

import gzip
import json
from datetime import datetime
from pathlib import Path

import typer
from rich.table import Table

from tasktree_cli.exceptions import InvalidImportError, NotFoundError
from tasktree_cli.services.codec_service import ImportMode
from tasktree_cli.utils.typer_helpers import SuggestingGroup
from tasktree_cli.utils.ui.console import get_console
from tasktree_cli.utils.ui.formatters import format_info, format_success, format_warning

from .decorators import command_wrapper
from .utils import get_storage

app = typer.Typer(cls=SuggestingGroup, help="Data management commands")
console = get_console()


def read_document(file_path: Path) -> dict:
    """Read an export file, transparently decompressing ``.gz``."""
    if not file_path.exists():
        raise NotFoundError(f"File not found: {file_path}")
    try:
        if file_path.suffix == ".gz":
            with gzip.open(file_path, "rt", encoding="utf-8") as f:
                return json.load(f)
        with file_path.open(encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError, gzip.BadGzipFile) as e:
        raise InvalidImportError(
            f"Invalid JSON file: {file_path}", problems=[str(e)]
        ) from e


def write_document(document: dict, file_path: Path, compress: bool) -> None:
    text = json.dumps(document, indent=2, ensure_ascii=False)
    if compress:
        with gzip.open(file_path, "wt", encoding="utf-8") as f:
            f.write(text)
    else:
        file_path.write_text(text, encoding="utf-8")


@app.command("export")
@command_wrapper
def export_data(
    output: str | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file path (default: tasktree-export-{timestamp}.json); '-' for stdout",
    ),
    compress: bool = typer.Option(
        False,
        "--compress",
        "-z",
        help="Compress output with gzip",
    ),
) -> None:
    """
    Export all projects and tasks to JSON.

    Examples:
        tasktree data export
        tasktree data export --output backup.json
        tasktree data export --compress
    """
    document = get_storage().codec_service.export()

    if output == "-":
        typer.echo(json.dumps(document, indent=2, ensure_ascii=False))
        return

    if output is None:
        timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        extension = ".json.gz" if compress else ".json"
        output = f"tasktree-export-{timestamp}{extension}"
    output_path = Path(output)
    write_document(document, output_path, compress or output_path.suffix == ".gz")

    stats = document["stats"]
    table = Table(title="Export Summary", show_header=True)
    table.add_column("Type", style="cyan")
    table.add_column("Count", justify="right", style="green")
    table.add_row("Projects", str(stats["projects_count"]))
    table.add_row("Tasks", str(stats["tasks_count"]))
    console.print(table)

    format_success(f"Data exported to: {output_path.absolute()}")


@app.command("import")
@command_wrapper
def import_data(
    file: Path = typer.Argument(..., help="JSON file to import (.json or .json.gz)"),
    mode: ImportMode = typer.Option(
        ImportMode.MERGE,
        "--mode",
        "-m",
        help="merge: add with new ids; replace: wipe the store and load verbatim",
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Skip confirmation prompt",
    ),
) -> None:
    """
    Import data from a JSON file produced by 'data export'.

    Examples:
        tasktree data import backup.json
        tasktree data import backup.json.gz --mode replace --yes
    """
    data = read_document(file)
    codec = get_storage().codec_service
    document = codec.parse_document(data)

    table = Table(title="Import Preview", show_header=True)
    table.add_column("Type", style="cyan")
    table.add_column("Count", justify="right", style="yellow")
    table.add_row("Projects", str(len(document.projects)))
    table.add_row("Tasks", str(len(document.tasks)))
    console.print(table)

    if mode == ImportMode.REPLACE:
        format_warning("Replace mode deletes every existing project and task first")
    if not yes and not typer.confirm("Do you want to import this data?"):
        format_info("Import cancelled")
        raise typer.Exit(0)

    result = codec.import_document(data, mode)
    format_success(
        f"Imported {result.projects} project(s) and {result.tasks} task(s) ({result.mode.value})"
    )
