"""Console logging for envrefresh.

Four verbosity levels:
- QUIET (0): Warnings + errors
- NORMAL (1): Stage lines, summary, warnings, errors
- VERBOSE (2): Synced files and captured tool output
- DEBUG (3): Command metadata

Usage:
    from envrefresh.core.logging import get_logger, set_verbosity

    logger = get_logger(__name__)
    set_verbosity(VerbosityLevel.VERBOSE)

    logger.info("DO: RELOAD")
    logger.verbose("synced .direnv/nix-profile.rc")
"""

from __future__ import annotations

import sys
from enum import IntEnum
from typing import TextIO

from envrefresh.core.log_bus import LogRecord, get_log_bus


class VerbosityLevel(IntEnum):
    """Verbosity levels for envrefresh."""

    QUIET = 0
    NORMAL = 1
    VERBOSE = 2
    DEBUG = 3


_LEVEL_NAMES = {
    "quiet": VerbosityLevel.QUIET,
    "normal": VerbosityLevel.NORMAL,
    "verbose": VerbosityLevel.VERBOSE,
    "debug": VerbosityLevel.DEBUG,
}

_VERBOSITY: VerbosityLevel = VerbosityLevel.NORMAL
_USE_COLORS: bool = True


def set_verbosity(level: int | VerbosityLevel) -> None:
    """Set global verbosity level.

    Args:
        level: Verbosity level (0-3 or VerbosityLevel enum)
    """
    global _VERBOSITY

    if isinstance(level, int):
        level = VerbosityLevel(level)

    _VERBOSITY = level


def get_verbosity() -> VerbosityLevel:
    return _VERBOSITY


def verbosity_from_name(name: str) -> VerbosityLevel:
    """Map a validated ``logging.level`` value to a VerbosityLevel."""
    return _LEVEL_NAMES[name.strip().lower()]


def set_colors(enabled: bool) -> None:
    global _USE_COLORS
    _USE_COLORS = enabled


class EnvRefreshLogger:
    """Logger with verbosity filtering and optional ANSI colors."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "VERBOSE": "\033[34m",  # Blue
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "RESET": "\033[0m",
    }

    def __init__(self, name: str):
        self.name = name

    def _format_message(self, level_name: str, message: str, stream: TextIO) -> str:
        if _USE_COLORS and stream.isatty():
            color = self.COLORS.get(level_name, "")
            reset = self.COLORS["RESET"]
            return f"{color}[{level_name.lower()}]{reset} {message}"
        return f"[{level_name.lower()}] {message}"

    def _log(self, level: VerbosityLevel, level_name: str, message: str) -> None:
        if level > _VERBOSITY:
            return
        self._publish(level_name, message)
        print(self._format_message(level_name, message, sys.stdout), file=sys.stdout)

    def _publish(self, level_name: str, message: str) -> None:
        plain = f"[{level_name.lower()}] {message}"
        get_log_bus().publish(LogRecord(level_name=level_name, plain=plain, logger_name=self.name))

    def debug(self, message: str) -> None:
        self._log(VerbosityLevel.DEBUG, "DEBUG", message)

    def verbose(self, message: str) -> None:
        self._log(VerbosityLevel.VERBOSE, "VERBOSE", message)

    def info(self, message: str) -> None:
        self._log(VerbosityLevel.NORMAL, "INFO", message)

    def warning(self, message: str) -> None:
        self._log(VerbosityLevel.QUIET, "WARNING", message)

    def error(self, message: str) -> None:
        """Log error message (always shown, on stderr)."""
        self._publish("ERROR", message)
        print(self._format_message("ERROR", message, sys.stderr), file=sys.stderr)

    def error_detail(self, text: str) -> None:
        """Write captured output of a failed step verbatim to stderr.

        Bypasses verbosity filtering: a failed step's output is visible even
        in quiet mode.
        """
        self._publish("ERROR", text.rstrip("\n"))
        sys.stderr.write(text if text.endswith("\n") else text + "\n")
        sys.stderr.flush()


_LOGGERS: dict[str, EnvRefreshLogger] = {}


def get_logger(name: str = __name__) -> EnvRefreshLogger:
    if name not in _LOGGERS:
        _LOGGERS[name] = EnvRefreshLogger(name)
    return _LOGGERS[name]
