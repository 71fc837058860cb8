"""Rich consoles for TaskTree CLI.

``get_console()`` is the shared terminal console used for status messages.
``render_to_text()`` prints a renderable into a private buffer console, which
is how tables end up as plain strings for the output pipeline.
"""

from __future__ import annotations

import io
from functools import lru_cache

from rich.console import Console, RenderableType


@lru_cache(maxsize=2)
def get_console(highlight: bool = True) -> Console:
    """Shared terminal console (one per highlight setting)."""
    return Console(highlight=highlight)


def render_to_text(renderable: RenderableType, *, color: bool, width: int) -> str:
    """Render ``renderable`` at a fixed width, with ANSI styles only when ``color``."""
    buffer = io.StringIO()
    console = Console(
        file=buffer,
        width=width,
        force_terminal=color,
        color_system="standard" if color else None,
        no_color=not color,
        highlight=False,
        legacy_windows=False,
    )
    console.print(renderable)
    return buffer.getvalue().rstrip("\n")
