"""Logging utilities for Geotokens.

Provides color-coded output to distinguish world bookkeeping from player actions.
"""

import os
from enum import Enum


class Color(Enum):
    """ANSI color codes for terminal output."""

    # Colors for operation types
    BLUE = "\033[94m"      # World bookkeeping (spawn, despawn, reconcile)
    YELLOW = "\033[93m"    # Player actions (moves, exchanges)
    RED = "\033[91m"       # Errors (storage, position source)
    GREEN = "\033[92m"     # Success (win, save)
    CYAN = "\033[96m"      # Info/metadata

    # Formatting
    BOLD = "\033[1m"
    RESET = "\033[0m"


def colored(text: str, color: Color, bold: bool = False) -> str:
    """Wrap text in ANSI color codes if colors are enabled.

    Args:
        text: Text to colorize
        color: Color to apply
        bold: Whether to make text bold

    Returns:
        Colorized text if GEOTOKENS_NO_COLOR is not set, otherwise plain text
    """
    if os.getenv("GEOTOKENS_NO_COLOR"):
        return text

    prefix = color.value
    if bold:
        prefix = Color.BOLD.value + prefix

    return f"{prefix}{text}{Color.RESET.value}"


# Markers for operation types (color-blind accessible)
LOG_TAG_WORLD = "[•]"     # Grid bookkeeping
LOG_TAG_PLAYER = "[@]"    # Player action
LOG_TAG_ERROR = "[!]"     # Error, degraded but still running
LOG_TAG_SUCCESS = "[✓]"   # Success
LOG_TAG_INFO = "[i]"      # Information


def log_world(message: str) -> None:
    """Log a grid bookkeeping operation (blue)."""
    print(colored(f"{LOG_TAG_WORLD} {message}", Color.BLUE))


def log_player(message: str) -> None:
    """Log a player action (yellow)."""
    print(colored(f"{LOG_TAG_PLAYER} {message}", Color.YELLOW))


def log_error(message: str) -> None:
    """Log an error (red)."""
    print(colored(f"{LOG_TAG_ERROR} {message}", Color.RED))


def log_success(message: str) -> None:
    """Log a success (green)."""
    print(colored(f"{LOG_TAG_SUCCESS} {message}", Color.GREEN))


def log_info(message: str) -> None:
    """Log metadata/info (cyan)."""
    print(colored(f"{LOG_TAG_INFO} {message}", Color.CYAN))
