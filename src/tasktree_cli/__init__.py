"""TaskTree CLI - nested task tracking from the terminal."""

__version__ = "0.4.0"
