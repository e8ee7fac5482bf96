"""
Common contract for isolation backends.

Four runners implement it:
- ScreenRunner: GNU Screen session (attached mode captures output via a log)
- TmuxRunner: tmux session
- DockerRunner: docker container
- SshRunner: command on a remote host

A runner never raises for tool or process problems. A missing binary,
a failed launch or a non-zero exit all come back as an ExecutionResult
with success=False.
"""

import asyncio
import os
import shutil
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any, List, Tuple

from ..config import Backend, StartConfig
from ..logging import get_logger
from ..session import generate_session_name

logger = get_logger("isolation")


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of running one command through one backend."""
    success: bool
    session_name: Optional[str]
    message: str
    exit_code: Optional[int] = None
    output: Optional[str] = None
    container_id: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.success

    @property
    def effective_exit_code(self) -> int:
        """The real exit code when known, otherwise 0/1 from success."""
        if self.exit_code is not None:
            return self.exit_code
        return 0 if self.success else 1

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class RunOptions:
    """Per-level options handed to a runner."""
    session: Optional[str] = None
    detached: bool = False
    keep_alive: bool = False
    image: Optional[str] = None
    endpoint: Optional[str] = None
    user: Optional[str] = None
    auto_remove_docker_container: bool = False


def is_command_available(command: str) -> bool:
    return shutil.which(command) is not None


def get_shell() -> str:
    """The user's shell, used as `<shell> -c <command>`."""
    return os.environ.get("SHELL") or "/bin/sh"


def has_tty() -> bool:
    return sys.stdin.isatty() and sys.stdout.isatty()


def wrap_command_with_user(command: str, user: Optional[str]) -> str:
    """
    Run `command` as `user` through non-interactive sudo.

    -n makes sudo fail at once when no NOPASSWD rule exists instead of
    waiting on a password prompt nobody can see.
    """
    if not user:
        return command
    escaped = command.replace("'", "'\\''")
    return f"sudo -n -u {user} sh -c '{escaped}'"


def keep_alive_command(command: str, shell: str) -> str:
    """Drop into a shell after the command so the session stays open."""
    return f"{command}; exec {shell}"


class IsolationRunner(ABC):
    """
    Abstract base for isolation backends.

    Subclasses set `backend`, `binary` and `install_hint`, and implement the
    detached and attached paths. run() takes care of tool lookup, session
    naming and turning launch errors into failed results.
    """

    backend: Backend
    binary: str
    install_hint: str

    def __init__(self, config: Optional[StartConfig] = None):
        self.config = config or StartConfig()

    async def run(self, command: str, options: Optional[RunOptions] = None) -> ExecutionResult:
        """
        Execute `command` in this backend.

        Args:
            command: Shell command to run (already built for the next level)
            options: Session name, mode and backend-specific settings

        Returns:
            ExecutionResult; never raises for runtime failures
        """
        options = options or RunOptions()

        if not is_command_available(self.binary):
            logger.warning(
                f"{self.binary} not found on PATH",
                extra={"backend": self.backend.value},
            )
            return ExecutionResult(
                success=False,
                session_name=None,
                message=self.install_hint,
            )

        session_name = options.session or generate_session_name(self.backend.value)

        try:
            if options.detached:
                return await self.run_detached(command, session_name, options)
            return await self.run_attached(command, session_name, options)
        except OSError as e:
            logger.error(
                f"Failed to run in {self.backend.value}: {e}",
                extra={"backend": self.backend.value, "session": session_name},
            )
            return ExecutionResult(
                success=False,
                session_name=session_name,
                message=f"Failed to run in {self.backend.value}: {e}",
            )

    @abstractmethod
    async def run_detached(
        self, command: str, session_name: str, options: RunOptions
    ) -> ExecutionResult:
        """Launch and return at once, without waiting for completion."""
        ...

    @abstractmethod
    async def run_attached(
        self, command: str, session_name: str, options: RunOptions
    ) -> ExecutionResult:
        """Run to completion and report the exit code."""
        ...

    async def _spawn(self, args: List[str]) -> int:
        """Run the binary with inherited stdio and wait for it to exit."""
        logger.debug(
            f"Running: {self.binary} {' '.join(args)}",
            extra={"backend": self.backend.value},
        )
        process = await asyncio.create_subprocess_exec(self.binary, *args)
        return await process.wait()

    async def _capture(self, args: List[str]) -> Tuple[int, str, str]:
        """Run the binary with stdout/stderr captured."""
        logger.debug(
            f"Running: {self.binary} {' '.join(args)}",
            extra={"backend": self.backend.value},
        )
        process = await asyncio.create_subprocess_exec(
            self.binary, *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await process.communicate()
        return (
            process.returncode,
            stdout.decode(errors="replace"),
            stderr.decode(errors="replace"),
        )

    def _exited(self, label: str, session_name: str, code: int) -> ExecutionResult:
        return ExecutionResult(
            success=code == 0,
            session_name=session_name,
            message=f'{label} "{session_name}" exited with code {code}',
            exit_code=code,
        )
