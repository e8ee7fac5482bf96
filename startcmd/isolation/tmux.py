"""
tmux backend.

Detached mode is fire-and-forget (`tmux new-session -d`). Attached mode
runs `tmux new-session` in the foreground with the terminal inherited and
reports the real exit code.
"""

from ..config import Backend
from ..logging import get_logger
from .base import (
    IsolationRunner,
    ExecutionResult,
    RunOptions,
    get_shell,
    keep_alive_command,
    wrap_command_with_user,
)

logger = get_logger("isolation.tmux")


class TmuxRunner(IsolationRunner):
    """Runs commands in tmux sessions."""

    backend = Backend.TMUX
    binary = "tmux"
    install_hint = (
        "tmux is not installed. Install it with: sudo apt-get install tmux "
        "(Debian/Ubuntu) or brew install tmux (macOS)"
    )

    async def run_detached(
        self, command: str, session_name: str, options: RunOptions
    ) -> ExecutionResult:
        effective = wrap_command_with_user(command, options.user)
        if options.keep_alive:
            effective = keep_alive_command(effective, get_shell())

        code = await self._spawn(["new-session", "-d", "-s", session_name, effective])
        if code != 0:
            return ExecutionResult(
                success=False,
                session_name=session_name,
                message=f"Failed to start tmux session (exit code {code})",
            )

        lines = [f"Command started in detached tmux session: {session_name}"]
        if options.keep_alive:
            lines.append("Session will stay alive after command completes.")
        else:
            lines.append("Session will exit automatically after command completes.")
        lines.append(f"Reattach with: tmux attach -t {session_name}")

        return ExecutionResult(
            success=True,
            session_name=session_name,
            message="\n".join(lines),
        )

    async def run_attached(
        self, command: str, session_name: str, options: RunOptions
    ) -> ExecutionResult:
        effective = wrap_command_with_user(command, options.user)
        code = await self._spawn(["new-session", "-s", session_name, effective])
        logger.debug(
            "tmux session finished",
            extra={"backend": "tmux", "session": session_name, "exit_code": code},
        )
        return self._exited("Tmux session", session_name, code)
