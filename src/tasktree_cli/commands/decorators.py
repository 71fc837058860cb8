"""Decorators for command functions."""

import functools
import time
import traceback
from collections.abc import Callable

import typer

from tasktree_cli.exceptions import InvalidImportError, TaskTreeError
from tasktree_cli.utils.exit_codes import ERROR_GENERAL, exit_code_for
from tasktree_cli.utils.logger import get_logger
from tasktree_cli.utils.ui.formatters import format_error


def command_wrapper(func: Callable):
    """Log a command's run time and turn raised errors into exit codes."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = get_logger()
        cmd = func.__name__
        start = time.monotonic()
        logger.info("command started: %s", cmd)
        try:
            result = func(*args, **kwargs)
            elapsed = time.monotonic() - start
            logger.info("command completed: %s (%.3fs)", cmd, elapsed)
            return result

        except TaskTreeError as e:
            elapsed = time.monotonic() - start
            logger.error(
                "command failed: %s (%.3fs) - %s: %s",
                cmd,
                elapsed,
                e.kind,
                e.message,
            )
            format_error(e.message)
            if isinstance(e, InvalidImportError):
                for problem in e.problems:
                    format_error(f"  {problem}")
            raise typer.Exit(code=exit_code_for(e)) from e

        except typer.Exit:
            # Re-raise Typer's own exits (like --help or explicit Exit(0))
            raise

        except Exception as e:
            elapsed = time.monotonic() - start
            logger.error(
                "command failed: %s (%.3fs) - %s\n%s",
                cmd,
                elapsed,
                str(e),
                traceback.format_exc(),
            )
            # Generic fallback for unexpected crashes
            format_error(f"An unexpected error occurred: {str(e)}")
            raise typer.Exit(code=ERROR_GENERAL) from e

    return wrapper
