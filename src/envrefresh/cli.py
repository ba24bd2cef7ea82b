from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from envrefresh.core import __version__
from envrefresh.core.config import ConfigResolver
from envrefresh.core.deps import CommandRunner
from envrefresh.core.errors import EnvRefreshError, ProjectDirNotFoundError
from envrefresh.core.logging import get_logger, set_colors, set_verbosity, verbosity_from_name
from envrefresh.core.refresh import run_refresh

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="envrefresh",
        description=(
            "Force direnv/nix-direnv to rebuild the cached environment of a project "
            "and mark the rebuilt cache as fresh."
        ),
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument(
        "-d",
        "--project-dir",
        dest="project_dir",
        default=None,
        help="Project directory to refresh (default: project_dir from config).",
    )
    p.add_argument(
        "-c",
        "--config",
        dest="config_path",
        default=None,
        help="User config file (default: ~/.config/envrefresh/config.yaml).",
    )
    level = p.add_mutually_exclusive_group()
    level.add_argument(
        "-q", "--quiet", action="store_true", help="Only show warnings and errors."
    )
    level.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Show more detail; repeat (-vv) for debug output.",
    )
    p.add_argument("--no-color", action="store_true", help="Disable colored output.")
    p.add_argument(
        "--show-config",
        action="store_true",
        help="Print effective configuration and value sources, then exit.",
    )
    return p


def _cli_overrides(ns: argparse.Namespace) -> dict[str, Any]:
    level: str | None = None
    if ns.quiet:
        level = "quiet"
    elif ns.verbose >= 2:
        level = "debug"
    elif ns.verbose == 1:
        level = "verbose"

    return {
        "project_dir": ns.project_dir,
        "logging": {
            "level": level,
            "color": False if ns.no_color else None,
        },
    }


def _show_config(resolver: ConfigResolver) -> None:
    for key, src in resolver.resolve_all().items():
        print(f"{key} = {src.value!r}  ({src.source})")


def main(argv: Sequence[str] | None = None, *, runner: CommandRunner | None = None) -> int:
    ns = build_parser().parse_args(argv)

    resolver = ConfigResolver(
        cli_args=_cli_overrides(ns),
        user_config_path=Path(ns.config_path).expanduser() if ns.config_path else None,
    )

    try:
        set_verbosity(verbosity_from_name(resolver.resolve_logging_level()))
        set_colors(resolver.resolve_color())

        if ns.show_config:
            _show_config(resolver)
            return 0

        settings = resolver.resolve_settings()
        run_refresh(settings, runner=runner)
    except ProjectDirNotFoundError as e:
        for line in e.diagnostic_lines():
            print(line)
        return e.exit_code
    except EnvRefreshError as e:
        logger.error(str(e))
        return e.exit_code
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130

    return 0
