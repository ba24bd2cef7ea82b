"""Error handling with friendly messages."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path


class EnvRefreshError(Exception):
    """Base exception for all envrefresh errors."""

    exit_code: int = 1

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(message)

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message}\nSuggestion: {self.suggestion}"
        return self.message


class ConfigError(EnvRefreshError):
    """Configuration error."""

    pass


class ProjectDirNotFoundError(EnvRefreshError):
    """Project directory does not exist."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(
            "project directory not found",
            "Set ENVREFRESH_PROJECT_DIR or project_dir in config.yaml to specify location",
        )

    def diagnostic_lines(self) -> list[str]:
        return [
            f"Error: {self.message}",
            f"Expected: {self.path}",
            str(self.suggestion),
        ]


class ReloadError(EnvRefreshError):
    """The environment manager exited non-zero during a forced reload."""

    def __init__(self, argv: Sequence[str], returncode: int) -> None:
        self.argv = list(argv)
        self.returncode = returncode
        # A child killed by signal N has returncode -N; a shell reports 128 + N.
        self.exit_code = 128 - returncode if returncode < 0 else returncode
        super().__init__(
            f"Reload command failed with exit code {returncode}: {' '.join(self.argv)}",
            "Run the command manually in the project directory to see why it fails",
        )


class CommandNotFoundError(EnvRefreshError):
    """The environment manager binary cannot be executed."""

    exit_code = 127

    def __init__(self, command: str) -> None:
        self.command = command
        super().__init__(
            f"Command '{command}' not found",
            "Install direnv or set direnv_command in config.yaml",
        )


class TimestampSyncError(EnvRefreshError):
    """Updating a file timestamp failed."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Cannot update timestamp of '{path}': {reason}")


class CommandNotExecutableError(EnvRefreshError):
    """The environment manager binary exists but cannot be executed."""

    exit_code = 126

    def __init__(self, command: str) -> None:
        self.command = command
        super().__init__(
            f"Command '{command}' is not executable",
            f"Check the permissions of '{command}'",
        )
