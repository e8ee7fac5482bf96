"""
SSH backend.

Attached mode runs the command on the endpoint and waits for the remote
exit code. Detached mode starts it under nohup with output redirected to
/tmp/<session>.log on the remote host, and returns at once.
"""

from ..config import Backend
from ..logging import get_logger
from .base import (
    IsolationRunner,
    ExecutionResult,
    RunOptions,
    wrap_command_with_user,
)

logger = get_logger("isolation.ssh")

REMOTE_LOG_DIR = "/tmp"


def remote_log_path(session_name: str) -> str:
    return f"{REMOTE_LOG_DIR}/{session_name}.log"


class SshRunner(IsolationRunner):
    """Runs commands on a remote host over ssh."""

    backend = Backend.SSH
    binary = "ssh"
    install_hint = (
        "ssh is not installed. Install it with: sudo apt-get install openssh-client "
        "(Debian/Ubuntu) or brew install openssh (macOS)"
    )

    @staticmethod
    def _missing_endpoint(session_name: str) -> ExecutionResult:
        return ExecutionResult(
            success=False,
            session_name=session_name,
            message="SSH isolation requires --endpoint option",
        )

    async def run_detached(
        self, command: str, session_name: str, options: RunOptions
    ) -> ExecutionResult:
        if not options.endpoint:
            return self._missing_endpoint(session_name)

        endpoint = options.endpoint
        log_path = remote_log_path(session_name)
        effective = wrap_command_with_user(command, options.user)
        escaped = effective.replace("'", "'\\''")
        remote_command = f"nohup sh -c '{escaped}' > {log_path} 2>&1 &"

        code = await self._spawn([endpoint, remote_command])
        if code != 0:
            return ExecutionResult(
                success=False,
                session_name=session_name,
                message=f"Failed to start SSH session on {endpoint} (exit code {code})",
            )

        return ExecutionResult(
            success=True,
            session_name=session_name,
            message=(
                f"Command started in detached SSH session on {endpoint}\n"
                f"Session: {session_name}\n"
                f'View logs: ssh {endpoint} "tail -f {log_path}"'
            ),
        )

    async def run_attached(
        self, command: str, session_name: str, options: RunOptions
    ) -> ExecutionResult:
        if not options.endpoint:
            return self._missing_endpoint(session_name)

        effective = wrap_command_with_user(command, options.user)
        code = await self._spawn([options.endpoint, effective])
        return ExecutionResult(
            success=code == 0,
            session_name=session_name,
            message=f'SSH session "{session_name}" on {options.endpoint} exited with code {code}',
            exit_code=code,
        )
