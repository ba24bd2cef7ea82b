"""Tests for the subprocess command runner."""

from __future__ import annotations

import stat
import sys
from pathlib import Path

import pytest

from envrefresh.cli import main
from envrefresh.core.deps import SubprocessRunner
from envrefresh.core.errors import CommandNotExecutableError, CommandNotFoundError

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell")

NON_UTF8_DIRENV = """#!/bin/sh
printf 'nix: \\377\\376 building\\n' >&2
printf 'out \\377\\n'
exit 0
"""


def _write_script(path: Path, body: str, *, executable: bool = True) -> Path:
    path.write_text(body)
    mode = stat.S_IRUSR | stat.S_IWUSR
    if executable:
        mode |= stat.S_IXUSR
    path.chmod(mode)
    return path


def test_captures_output_and_exit_code(tmp_path):
    script = _write_script(tmp_path / "tool", "#!/bin/sh\necho hello\necho oops >&2\nexit 4\n")

    result = SubprocessRunner().run([str(script)], cwd=tmp_path, env={"PATH": "/usr/bin:/bin"})

    assert result.returncode == 4
    assert result.stdout == "hello\n"
    assert result.stderr == "oops\n"
    assert result.argv == [str(script)]


def test_non_utf8_output_is_replaced_not_fatal(tmp_path):
    script = _write_script(tmp_path / "direnv", NON_UTF8_DIRENV)

    result = SubprocessRunner().run([str(script)], env={"PATH": "/usr/bin:/bin"})

    assert result.returncode == 0
    assert result.stderr == "nix: �� building\n"
    assert result.stdout == "out �\n"


def test_reload_with_non_utf8_output_succeeds(project_dir, tmp_path, monkeypatch):
    script = _write_script(tmp_path / "direnv", NON_UTF8_DIRENV)
    monkeypatch.setenv("ENVREFRESH_DIRENV_COMMAND", str(script))

    rc = main(["-d", str(project_dir), "-c", str(tmp_path / "no-config.yaml"), "-v"])

    assert rc == 0


def test_missing_binary_raises_not_found(tmp_path):
    with pytest.raises(CommandNotFoundError) as exc:
        SubprocessRunner().run([str(tmp_path / "no-such-direnv")])
    assert exc.value.exit_code == 127


def test_non_executable_binary_raises_not_executable(tmp_path):
    script = _write_script(tmp_path / "direnv", "#!/bin/sh\nexit 0\n", executable=False)

    with pytest.raises(CommandNotExecutableError) as exc:
        SubprocessRunner().run([str(script)])
    assert exc.value.exit_code == 126
    assert "is not executable" in str(exc.value)
