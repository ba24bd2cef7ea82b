"""Pytest configuration and fixtures."""

import os
import sys
from pathlib import Path

import pytest

# Add src to path (for 'envrefresh.*' imports without an install)
repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root / "src"))


@pytest.fixture(autouse=True)
def _isolate_env_and_logging(monkeypatch):
    """Keep ENVREFRESH_* variables and global logger state from leaking between tests."""
    from envrefresh.core.log_bus import get_log_bus
    from envrefresh.core.logging import VerbosityLevel, set_colors, set_verbosity

    for key in list(os.environ):
        if key.startswith("ENVREFRESH_"):
            monkeypatch.delenv(key, raising=False)

    get_log_bus().clear()
    yield
    get_log_bus().clear()
    set_verbosity(VerbosityLevel.NORMAL)
    set_colors(True)


@pytest.fixture
def project_dir(tmp_path):
    """Create a project with an .envrc and two nix-direnv cache files.

    All three files start with an old, fixed timestamp.

    Returns:
        Path to the project directory
    """
    project = tmp_path / "project"
    cache = project / ".direnv"
    cache.mkdir(parents=True)

    envrc = project / ".envrc"
    envrc.write_text("use flake\n")
    (cache / "flake-profile-a1b2.rc").write_text("export A=1\n")
    (cache / "flake-inputs.rc").write_text("export B=2\n")
    (cache / "flake-profile-a1b2").write_text("not a hook\n")

    for p in (envrc, *cache.iterdir()):
        os.utime(p, (1_000_000_000, 1_000_000_000))

    return project


@pytest.fixture
def settings(project_dir):
    """RefreshSettings for the project_dir fixture."""
    from envrefresh.core.config import RefreshSettings

    return RefreshSettings(project_dir=project_dir)


@pytest.fixture
def fake_runner():
    """Command runner that records calls instead of spawning direnv."""
    return FakeRunner()


class FakeRunner:
    def __init__(self, returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.calls: list[dict] = []

    def run(self, argv, *, cwd=None, env=None):
        from envrefresh.core.deps import RunResult

        self.calls.append({"argv": list(argv), "cwd": cwd, "env": dict(env or {})})
        return RunResult(
            argv=list(argv),
            returncode=self.returncode,
            stdout=self.stdout,
            stderr=self.stderr,
        )


@pytest.fixture
def make_runner():
    """Factory for FakeRunner instances with a chosen outcome."""

    def _make(returncode: int = 0, stdout: str = "", stderr: str = "") -> FakeRunner:
        return FakeRunner(returncode=returncode, stdout=stdout, stderr=stderr)

    return _make
