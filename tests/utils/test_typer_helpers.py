"""Tests for command suggestions on typos."""

from __future__ import annotations

import typer
from typer.testing import CliRunner

from tasktree_cli.utils.exit_codes import ERROR_INVALID_ARGS
from tasktree_cli.utils.typer_helpers import SuggestingGroup, suggest_commands

COMMANDS = ["add", "list", "tree", "complete", "reopen", "delete", "progress"]


def test_prefix_matches_come_first():
    assert suggest_commands("pro", COMMANDS) == ["progress"]
    assert suggest_commands("re", COMMANDS)[0] == "reopen"


def test_close_spelling():
    assert suggest_commands("lst", COMMANDS) == ["list"]
    assert suggest_commands("complet", COMMANDS) == ["complete"]


def test_no_duplicates_and_capped():
    suggestions = suggest_commands("", COMMANDS)
    assert len(suggestions) == 3
    assert len(set(suggestions)) == 3


def test_nothing_close():
    assert suggest_commands("zzz", COMMANDS) == []


def make_app():
    app = typer.Typer(cls=SuggestingGroup)

    @app.command()
    def complete():
        pass

    @app.command()
    def compact():
        pass

    @app.command(hidden=True)
    def completion_debug():
        pass

    return app


def test_group_lists_visible_suggestions():
    result = CliRunner().invoke(make_app(), ["comp"])
    assert result.exit_code == ERROR_INVALID_ARGS
    assert "Did you mean one of these?" in result.output
    assert "compact" in result.output
    assert "completion-debug" not in result.output


def test_group_without_suggestion_keeps_click_error():
    result = CliRunner().invoke(make_app(), ["zzz"])
    assert result.exit_code == 2
    assert "No such command" in result.output
