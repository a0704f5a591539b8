from __future__ import annotations

import os
import shlex
import sys

import pytest

from gradeci.ui.console import Console, set_console


def py(code: str) -> str:
    """Shell command running `code` with the current interpreter."""
    return f"{shlex.quote(sys.executable)} -c {shlex.quote(code)}"


def touch(path) -> str:
    """Shell command that creates `path` and exits 0."""
    return py(f"open({str(path)!r}, 'w').close()")


@pytest.fixture
def console() -> Console:
    c = Console(quiet=True)
    set_console(c)
    return c


FAKE_TOOL = """#!/bin/sh
name=$(basename "$0")
echo "$name $* STACK=${RUST_MIN_STACK:-unset}" >> "$GRADECI_FAKE_LOG"
if [ -n "$GRADECI_FAKE_FAIL" ] && [ "$name $1" = "$GRADECI_FAKE_FAIL" ]; then
  exit "${GRADECI_FAKE_FAIL_CODE:-1}"
fi
exit 0
"""


class FakeTools:
    """Logging stand-ins for cargo and python3, first on PATH."""

    def __init__(self, root, monkeypatch):
        self.root = root
        self.bin = root / "bin"
        self.log = root / "calls.log"
        self._monkeypatch = monkeypatch

        self.bin.mkdir()
        for name in ("cargo", "python3"):
            tool = self.bin / name
            tool.write_text(FAKE_TOOL)
            tool.chmod(0o755)

        monkeypatch.setenv("PATH", f"{self.bin}{os.pathsep}{os.environ.get('PATH', '')}")
        monkeypatch.setenv("GRADECI_FAKE_LOG", str(self.log))
        monkeypatch.delenv("GRADECI_FAKE_FAIL", raising=False)
        monkeypatch.delenv("RUST_MIN_STACK", raising=False)
        monkeypatch.chdir(root)

    def fail(self, command: str, code: int) -> None:
        """Make e.g. "cargo clippy" or "python3 tests/fuzz.py" exit with `code`."""
        self._monkeypatch.setenv("GRADECI_FAKE_FAIL", command)
        self._monkeypatch.setenv("GRADECI_FAKE_FAIL_CODE", str(code))

    def calls(self) -> list[str]:
        if not self.log.exists():
            return []
        return self.log.read_text().splitlines()


@pytest.fixture
def fake_tools(tmp_path, monkeypatch) -> FakeTools:
    return FakeTools(tmp_path, monkeypatch)
