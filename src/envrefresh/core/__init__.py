"""envrefresh core: configuration, logging, errors and the refresh steps."""

__version__ = "1.0.0"

from envrefresh.core.config import ConfigResolver, ConfigSource, RefreshSettings
from envrefresh.core.deps import CommandRunner, RunResult, SubprocessRunner
from envrefresh.core.errors import (
    CommandNotExecutableError,
    CommandNotFoundError,
    ConfigError,
    EnvRefreshError,
    ProjectDirNotFoundError,
    ReloadError,
    TimestampSyncError,
)
from envrefresh.core.logging import (
    VerbosityLevel,
    get_logger,
    get_verbosity,
    set_colors,
    set_verbosity,
)
from envrefresh.core.refresh import (
    RefreshResult,
    build_reload_env,
    check_project_dir,
    force_reload,
    run_refresh,
    sync_timestamps,
)

__all__ = [
    # Config
    "ConfigResolver",
    "ConfigSource",
    "RefreshSettings",
    # Command execution
    "CommandRunner",
    "RunResult",
    "SubprocessRunner",
    # Errors
    "EnvRefreshError",
    "ConfigError",
    "ProjectDirNotFoundError",
    "ReloadError",
    "CommandNotFoundError",
    "CommandNotExecutableError",
    "TimestampSyncError",
    # Logging
    "VerbosityLevel",
    "get_logger",
    "get_verbosity",
    "set_verbosity",
    "set_colors",
    # Refresh
    "RefreshResult",
    "check_project_dir",
    "build_reload_env",
    "force_reload",
    "sync_timestamps",
    "run_refresh",
]
