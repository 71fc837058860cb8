"""Main entry point for TaskTree CLI."""

import typer

from tasktree_cli import __version__
from tasktree_cli.commands import config, data, projects, tasks
from tasktree_cli.commands.decorators import command_wrapper
from tasktree_cli.exceptions import ValidationError
from tasktree_cli.services.config_service import get_config_service
from tasktree_cli.utils.logger import set_level
from tasktree_cli.utils.typer_helpers import SuggestingGroup
from tasktree_cli.utils.ui.console import get_console
from tasktree_cli.utils.ui.formatters import format_info

# Create main app with custom group class
app = typer.Typer(
    name="tasktree",
    cls=SuggestingGroup,
    help="Nested task and project tracking from the command line",
    no_args_is_help=True,
)

console = get_console()


# Add subcommands
app.add_typer(projects.app, name="project", help="Project management commands")
app.add_typer(tasks.app, name="task", help="Task management commands")
app.add_typer(data.app, name="data", help="Data management (import, export)")
app.add_typer(config.app, name="config", help="Configuration management")


@app.callback()
def main_callback() -> None:
    """Apply the configured log level before any command runs."""
    set_level(get_config_service().effective_config.logging.level)


# Add top-level commands
@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]TaskTree CLI[/bold] version [cyan]{__version__}[/cyan]")


@app.command()
@command_wrapper
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind"),
    port: int = typer.Option(8000, "--port", help="Port to listen on"),
) -> None:
    """Serve the HTTP API (requires the 'server' extra)."""
    try:
        import uvicorn

        from tasktree_cli.server.app import create_app
    except ImportError as e:
        raise ValidationError(
            "The HTTP server needs extra packages: pip install 'tasktree-cli[server]'"
        ) from e

    format_info(f"Serving TaskTree API on http://{host}:{port}")
    uvicorn.run(create_app(), host=host, port=port)


# Main entry point
def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
