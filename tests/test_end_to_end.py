"""Run ``python -m envrefresh`` against a fake direnv on PATH."""

from __future__ import annotations

import os
import stat
import subprocess
import sys
from pathlib import Path

import pytest

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell")

FAKE_DIRENV = """#!/bin/sh
# Record how we were called, then exit with FAKE_DIRENV_RC.
printf '%s\\n' "$@" > "$FAKE_DIRENV_LOG"
printf 'force=%s\\n' "$_nix_direnv_force_reload" >> "$FAKE_DIRENV_LOG"
echo "direnv: loading .envrc" >&2
exit "${FAKE_DIRENV_RC:-0}"
"""


def _src_dir() -> Path:
    return Path(__file__).resolve().parents[1] / "src"


@pytest.fixture
def fake_direnv_env(tmp_path) -> dict[str, str]:
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    script = bin_dir / "direnv"
    script.write_text(FAKE_DIRENV)
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    env = {k: v for k, v in os.environ.items() if not k.startswith("ENVREFRESH_")}
    env["PATH"] = f"{bin_dir}{os.pathsep}{env.get('PATH', '')}"
    env["PYTHONPATH"] = str(_src_dir())
    env["HOME"] = str(tmp_path / "home")
    env["FAKE_DIRENV_LOG"] = str(tmp_path / "direnv.log")
    return env


def _run(env: dict[str, str], *args: str) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        [sys.executable, "-m", "envrefresh", *args],
        env=env,
        capture_output=True,
        text=True,
    )


def test_refresh_end_to_end(project_dir, fake_direnv_env, tmp_path):
    fake_direnv_env["ENVREFRESH_PROJECT_DIR"] = str(project_dir)

    p = _run(fake_direnv_env)

    assert p.returncode == 0, p.stdout + p.stderr
    calls = (tmp_path / "direnv.log").read_text().splitlines()
    assert calls == ["exec", str(project_dir), "true", "force=1"]

    envrc_mtime = (project_dir / ".envrc").stat().st_mtime_ns
    rc_files = list((project_dir / ".direnv").glob("*.rc"))
    assert len(rc_files) == 2
    assert all(f.stat().st_mtime_ns == envrc_mtime for f in rc_files)


def test_missing_default_dir_end_to_end(fake_direnv_env, tmp_path):
    p = _run(fake_direnv_env)

    expected = Path(fake_direnv_env["HOME"]) / ".dotfiles"
    assert p.returncode == 1
    assert p.stdout.splitlines() == [
        "Error: project directory not found",
        f"Expected: {expected}",
        "Set ENVREFRESH_PROJECT_DIR or project_dir in config.yaml to specify location",
    ]
    assert not (tmp_path / "direnv.log").exists()
    assert not Path(fake_direnv_env["HOME"]).exists()


def test_direnv_failure_end_to_end(project_dir, fake_direnv_env):
    fake_direnv_env["FAKE_DIRENV_RC"] = "5"
    envrc = project_dir / ".envrc"
    before = envrc.stat().st_mtime_ns

    p = _run(fake_direnv_env, "-d", str(project_dir))

    assert p.returncode == 5
    assert "direnv: loading .envrc" in p.stderr
    assert envrc.stat().st_mtime_ns == before
