#!/usr/bin/env python3
"""Generate man pages for tasktree from the Typer/Click app definition.

Usage:
    python scripts/generate_man.py [--output-dir DIR]

Pages are written to man/man1/ by default: tasktree.1 plus one page per
subcommand (tasktree-task-add.1, tasktree-data-export.1, ...).
"""

import argparse
import sys
from pathlib import Path

# Allow running from a source checkout without installing
repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root / "src"))

import typer
from click_man.core import write_man_pages

from tasktree_cli import __version__
from tasktree_cli.main import app


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate tasktree man pages.")
    parser.add_argument(
        "--output-dir",
        default=str(repo_root / "man" / "man1"),
        help="Directory to write generated man pages into (default: man/man1/)",
    )
    args = parser.parse_args()

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    # The Click group Typer builds internally
    click_app = typer.main.get_command(app)

    write_man_pages(
        name="tasktree",
        cli=click_app,
        version=__version__,
        target_dir=str(output_dir),
    )

    generated = sorted(output_dir.glob("tasktree*.1"))
    if not generated:
        print("Warning: no man pages were generated.", file=sys.stderr)
        sys.exit(1)
    print(f"Wrote {len(generated)} man page(s) to: {output_dir}")


if __name__ == "__main__":
    main()
