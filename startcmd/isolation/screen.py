"""
GNU Screen backend.

Detached mode starts `screen -dmS` and returns. Attached mode never runs
screen in the foreground: its virtual terminal is torn down before the
output of fast commands reaches the user. Instead the command is started
detached with its output logged to a file, the session list is polled
until the session is gone, and the log is replayed on stdout.

Log capture depends on the installed screen. `-L -Logfile <path>` exists
from 4.5.1 onwards; older builds (macOS still bundles 4.0.3) get the
command wrapped as `(command) 2>&1 | tee "<path>"` instead.

Known limitation: screen does not report the wrapped command's exit
status through either capture path, so attached runs that complete are
reported with exit code 0.
"""

import asyncio
import re
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import List, NamedTuple, Optional

from ..config import Backend, StartConfig
from ..logging import get_logger
from .base import (
    IsolationRunner,
    ExecutionResult,
    RunOptions,
    get_shell,
    keep_alive_command,
    wrap_command_with_user,
)

logger = get_logger("isolation.screen")

# Matches "4.09.01", "4.00.03", "4.5.1"
_VERSION_RE = re.compile(r"(\d+)\.(\d+)\.(\d+)")


class ScreenVersion(NamedTuple):
    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


LOGFILE_MIN_VERSION = ScreenVersion(4, 5, 1)


def parse_screen_version(banner: str) -> Optional[ScreenVersion]:
    match = _VERSION_RE.search(banner or "")
    if not match:
        return None
    return ScreenVersion(*(int(part) for part in match.groups()))


def supports_logfile_option(version: Optional[ScreenVersion]) -> bool:
    """True if `screen -Logfile` is available (4.5.1 or newer)."""
    if version is None:
        return False
    # Tuple comparison orders major, then minor, then patch
    return tuple(version) >= tuple(LOGFILE_MIN_VERSION)


class ScreenVersionProbe:
    """
    Detects the installed screen version once and remembers it.

    Pass `version` to pin the result (tests, or a caller that already
    knows it). reset() forgets the cached answer.
    """

    def __init__(self, version: Optional[ScreenVersion] = None, binary: str = "screen"):
        self.binary = binary
        self._version = version
        self._checked = version is not None

    def detect(self) -> Optional[ScreenVersion]:
        if self._checked:
            return self._version
        self._checked = True

        try:
            result = subprocess.run(
                [self.binary, "--version"],
                capture_output=True, text=True, timeout=5,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug(f"Could not detect screen version: {e}")
            return None

        self._version = parse_screen_version(result.stdout + result.stderr)
        if self._version:
            logger.debug(f"Detected screen version: {self._version}")
        else:
            logger.debug("Could not parse screen version banner")
        return self._version

    def supports_logfile(self) -> bool:
        return supports_logfile_option(self.detect())

    def reset(self) -> None:
        self._version = None
        self._checked = False


class ScreenRunner(IsolationRunner):
    """Runs commands in GNU Screen sessions."""

    backend = Backend.SCREEN
    binary = "screen"
    install_hint = (
        "screen is not installed. Install it with: sudo apt-get install screen "
        "(Debian/Ubuntu) or brew install screen (macOS)"
    )

    def __init__(
        self,
        config: Optional[StartConfig] = None,
        probe: Optional[ScreenVersionProbe] = None,
    ):
        super().__init__(config)
        self.probe = probe or ScreenVersionProbe()

    async def run_detached(
        self, command: str, session_name: str, options: RunOptions
    ) -> ExecutionResult:
        shell = get_shell()
        effective = wrap_command_with_user(command, options.user)
        if options.keep_alive:
            effective = keep_alive_command(effective, shell)

        code = await self._spawn(["-dmS", session_name, shell, "-c", effective])
        if code != 0:
            return ExecutionResult(
                success=False,
                session_name=session_name,
                message=f"Failed to start screen session (exit code {code})",
            )

        lines = [f"Command started in detached screen session: {session_name}"]
        if options.keep_alive:
            lines.append("Session will stay alive after command completes.")
        else:
            lines.append("Session will exit automatically after command completes.")
        lines.append(f"Reattach with: screen -r {session_name}")

        return ExecutionResult(
            success=True,
            session_name=session_name,
            message="\n".join(lines),
        )

    async def run_attached(
        self, command: str, session_name: str, options: RunOptions
    ) -> ExecutionResult:
        effective = wrap_command_with_user(command, options.user)
        log_file = self.log_path(session_name)

        code = await self._spawn(self.log_capture_args(effective, session_name, log_file))
        if code != 0:
            return ExecutionResult(
                success=False,
                session_name=session_name,
                message=f"Failed to start screen session (exit code {code})",
            )

        return await self.wait_for_session(session_name, log_file)

    def log_path(self, session_name: str) -> Path:
        return Path(tempfile.gettempdir()) / f"screen-output-{session_name}.log"

    def log_capture_args(self, command: str, session_name: str, log_file: Path) -> List[str]:
        """Arguments for a detached session whose output lands in `log_file`."""
        shell = get_shell()

        if self.probe.supports_logfile():
            logger.debug(
                "Using native screen log capture (-Logfile)",
                extra={"backend": "screen", "session": session_name},
            )
            return ["-dmS", session_name, "-L", "-Logfile", str(log_file), shell, "-c", command]

        logger.debug(
            "Using tee log capture (screen older than 4.5.1)",
            extra={"backend": "screen", "session": session_name},
        )
        tee_command = f'({command}) 2>&1 | tee "{log_file}"'
        return ["-dmS", session_name, shell, "-c", tee_command]

    async def session_exists(self, session_name: str) -> bool:
        try:
            _, stdout, _ = await self._capture(["-ls"])
        except OSError:
            return False
        # Listing lines look like "\t12345.name\t(Detached)"
        pattern = rf"\d+\.{re.escape(session_name)}\s"
        return re.search(pattern, stdout) is not None

    async def wait_for_session(self, session_name: str, log_file: Path) -> ExecutionResult:
        """Poll until the session ends, then replay and remove its log."""
        interval = self.config.screen.poll_interval
        timeout = self.config.screen.poll_timeout
        waited = 0.0

        while True:
            await asyncio.sleep(interval)

            if not await self.session_exists(session_name):
                output = self._collect_output(log_file)
                return ExecutionResult(
                    success=True,
                    session_name=session_name,
                    message=f'Screen session "{session_name}" exited with code 0',
                    exit_code=0,
                    output=output,
                )

            waited += interval
            if waited >= timeout:
                logger.warning(
                    f"Gave up waiting for screen session after {timeout:g}s",
                    extra={"backend": "screen", "session": session_name},
                )
                return ExecutionResult(
                    success=False,
                    session_name=session_name,
                    message=(
                        f'Screen session "{session_name}" timed out after '
                        f"{timeout:g} seconds"
                    ),
                    exit_code=1,
                )

    def _collect_output(self, log_file: Path) -> str:
        try:
            output = log_file.read_text(errors="replace")
        except FileNotFoundError:
            # Very short commands may end before anything was logged
            return ""

        if output.strip():
            sys.stdout.write(output)
            sys.stdout.flush()

        try:
            log_file.unlink()
        except OSError as e:
            logger.debug(f"Could not remove {log_file}: {e}")
        return output
