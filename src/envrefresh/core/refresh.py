"""Forced direnv reload followed by cache timestamp synchronization.

A refresh is three fail-fast steps:

1. the project directory must exist,
2. ``direnv exec <dir> true`` runs with the nix-direnv force flag set, so the
   cached shell hook is rebuilt,
3. ``.envrc`` is touched and its timestamps are copied onto ``.direnv/*.rc``,
   so the next ``cd`` into the directory sees the cache as fresh.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from envrefresh.core.config import RefreshSettings
from envrefresh.core.deps import CommandRunner, RunResult, SubprocessRunner
from envrefresh.core.errors import ProjectDirNotFoundError, ReloadError, TimestampSyncError
from envrefresh.core.logging import get_logger

logger = get_logger(__name__)

STAGE_RELOAD = "RELOAD"
STAGE_SYNC = "SYNC_TIMESTAMPS"


@dataclass
class RefreshResult:
    envrc_path: Path
    mtime_ns: int
    synced: list[Path] = field(default_factory=list)


def check_project_dir(settings: RefreshSettings) -> None:
    logger.debug(f"project_dir={settings.project_dir}")
    if not settings.project_dir.is_dir():
        raise ProjectDirNotFoundError(settings.project_dir)


def build_reload_env(
    settings: RefreshSettings, base_env: Mapping[str, str] | None = None
) -> dict[str, str]:
    env = dict(os.environ if base_env is None else base_env)
    env[settings.reload_env_var] = settings.reload_env_value
    return env


def force_reload(
    settings: RefreshSettings,
    runner: CommandRunner,
    env: Mapping[str, str] | None = None,
) -> RunResult:
    """Run the payload inside the project's environment with the force flag set.

    Raises:
        ReloadError: If the command exits non-zero.
        CommandNotFoundError: If direnv cannot be executed.
    """
    argv = [settings.direnv_command, "exec", str(settings.project_dir), *settings.payload]
    run_env = build_reload_env(settings, env)

    logger.debug(f"cmd={argv}")
    logger.debug(f"env {settings.reload_env_var}={settings.reload_env_value}")

    result = runner.run(argv, cwd=settings.project_dir, env=run_env)

    if result.returncode != 0:
        _emit_failed_output(result)
        raise ReloadError(argv, result.returncode)

    for text in (result.stdout, result.stderr):
        for line in (text or "").splitlines():
            logger.verbose(line)
    return result


def sync_timestamps(settings: RefreshSettings) -> RefreshResult:
    """Touch the config file and copy its timestamps onto the cache files.

    Equivalent of ``touch .envrc && touch -r .envrc .direnv/*.rc``.

    Raises:
        TimestampSyncError: If any touch or utime call fails.
    """
    envrc = settings.envrc_path
    try:
        envrc.touch(exist_ok=True)
        ref = envrc.stat()
    except OSError as e:
        raise TimestampSyncError(envrc, e.strerror or str(e)) from e

    result = RefreshResult(envrc_path=envrc, mtime_ns=ref.st_mtime_ns)

    targets = sorted(p for p in settings.cache_dir.glob(settings.cache_glob) if p.is_file())
    if not targets:
        logger.warning(f"No files match {settings.cache_dir / settings.cache_glob}")
        return result

    for path in targets:
        try:
            os.utime(path, ns=(ref.st_atime_ns, ref.st_mtime_ns))
        except OSError as e:
            raise TimestampSyncError(path, e.strerror or str(e)) from e
        logger.verbose(f"synced {path}")
        result.synced.append(path)

    return result


def run_refresh(settings: RefreshSettings, runner: CommandRunner | None = None) -> RefreshResult:
    """Run check, forced reload and timestamp sync in order, stopping at the first failure."""
    check_project_dir(settings)

    runner = runner or SubprocessRunner()

    _stage_do(STAGE_RELOAD)
    try:
        force_reload(settings, runner)
    except Exception:
        _stage_fail(STAGE_RELOAD)
        raise
    _stage_ok(STAGE_RELOAD)

    _stage_do(STAGE_SYNC)
    try:
        result = sync_timestamps(settings)
    except Exception:
        _stage_fail(STAGE_SYNC)
        raise
    _stage_ok(STAGE_SYNC)

    logger.info(f"Refreshed {settings.project_dir} ({len(result.synced)} cache file(s) synced)")
    return result


def _stage_do(stage: str) -> None:
    logger.info(f"DO: {stage}")


def _stage_ok(stage: str) -> None:
    logger.info(f"OK: {stage}")


def _stage_fail(stage: str) -> None:
    logger.error(f"FAIL: {stage}")


def _emit_failed_output(result: RunResult) -> None:
    # Failed step output is shown at every verbosity.
    logger.error_detail("=" * 80 + "\nFAILED STEP OUTPUT\n" + "=" * 80)
    if result.stdout:
        logger.error_detail("[stdout]")
        logger.error_detail(result.stdout)
    if result.stderr:
        logger.error_detail("[stderr]")
        logger.error_detail(result.stderr)
