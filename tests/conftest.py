"""
Shared pytest configuration.

Tests marked @pytest.mark.screen, @pytest.mark.tmux or @pytest.mark.docker
drive the real tools and are automatically skipped when the tool is
missing. Everything else runs against `fake_exec`, which replaces
asyncio.create_subprocess_exec with a recorder.

To run the tool-backed tests:
    pytest tests/test_integration.py -v -s
"""

import asyncio
import shutil
import subprocess
from typing import Callable, List, Optional

import pytest


def pytest_collection_modifyitems(config, items):
    """Skip tool-backed tests when the tool is missing."""
    available = {
        "screen": shutil.which("screen") is not None,
        "tmux": shutil.which("tmux") is not None,
        "docker": _check_docker(),
    }

    for item in items:
        for tool, ok in available.items():
            if tool in item.keywords and not ok:
                item.add_marker(pytest.mark.skip(reason=f"{tool} not available"))


def _check_docker() -> bool:
    try:
        result = subprocess.run(
            ["docker", "version"], capture_output=True, timeout=5
        )
        return result.returncode == 0
    except (OSError, subprocess.TimeoutExpired):
        return False


class FakeProcess:
    """Stands in for asyncio.subprocess.Process."""

    def __init__(self, returncode: int = 0, stdout: str = "", stderr: str = ""):
        self.returncode = returncode
        self._stdout = stdout.encode()
        self._stderr = stderr.encode()

    async def wait(self) -> int:
        return self.returncode

    async def communicate(self):
        return self._stdout, self._stderr


class FakeExec:
    """
    Records spawned commands and answers them.

    `handler(argv)` may return a FakeProcess; when it returns None (or no
    handler is set) the command "succeeds" with no output.
    """

    def __init__(self):
        self.calls: List[List[str]] = []
        self.handler: Optional[Callable[[List[str]], Optional[FakeProcess]]] = None

    async def __call__(self, *args, **kwargs):
        argv = [str(a) for a in args]
        self.calls.append(argv)
        if self.handler:
            process = self.handler(argv)
            if process is not None:
                return process
        return FakeProcess()

    def calls_to(self, binary: str) -> List[List[str]]:
        return [c for c in self.calls if c[0] == binary]


@pytest.fixture
def fake_exec(monkeypatch):
    """Every binary is "installed" and every spawn is recorded, not run."""
    fake = FakeExec()
    monkeypatch.setattr(asyncio, "create_subprocess_exec", fake)
    monkeypatch.setattr(
        "startcmd.isolation.base.shutil.which", lambda name: f"/usr/bin/{name}"
    )
    monkeypatch.setenv("SHELL", "/bin/sh")
    return fake


@pytest.fixture
def no_tools(monkeypatch):
    """Pretend no backend binary is installed."""
    monkeypatch.setattr("startcmd.isolation.base.shutil.which", lambda name: None)
