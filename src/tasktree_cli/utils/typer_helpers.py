"""Typer helper utilities."""

from __future__ import annotations

from difflib import get_close_matches

import click
import typer
from typer.core import TyperGroup

from tasktree_cli.utils.exit_codes import ERROR_INVALID_ARGS
from tasktree_cli.utils.ui.console import get_console

MAX_SUGGESTIONS = 3
SIMILARITY_CUTOFF = 0.6


def suggest_commands(attempted: str, names: list[str]) -> list[str]:
    """Commands that start with ``attempted``, then the closest spellings."""
    prefixed = sorted(name for name in names if name.startswith(attempted))
    similar = get_close_matches(attempted, names, n=MAX_SUGGESTIONS, cutoff=SIMILARITY_CUTOFF)
    ordered = dict.fromkeys(prefixed + similar)
    return list(ordered)[:MAX_SUGGESTIONS]


class SuggestingGroup(TyperGroup):
    """Command group that answers an unknown subcommand with "Did you mean ...?".

    Used by the root app and every ``project``/``task``/``data``/``config``
    sub-app. Hidden commands are never suggested.
    """

    def resolve_command(self, ctx, args):
        try:
            return super().resolve_command(ctx, args)
        except click.UsageError as e:
            if not args:
                raise
            visible = [name for name, cmd in self.commands.items() if not cmd.hidden]
            suggestions = suggest_commands(args[0], visible)
            if not suggestions:
                raise

            console = get_console(highlight=False)
            console.print(f'[red]Error:[/red] unknown command "{args[0]}" for "{ctx.info_name}"')
            console.print()
            heading = "Did you mean this?" if len(suggestions) == 1 else "Did you mean one of these?"
            console.print(f"[yellow]{heading}[/yellow]")
            for suggestion in suggestions:
                console.print(f"        {suggestion}")
            raise typer.Exit(ERROR_INVALID_ARGS) from e
