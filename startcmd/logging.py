"""
Structured logging for startcmd.

Console output is always human-readable with colors and goes to stderr so
it never mixes with the wrapped command's output.
Optional file logging writes JSON lines for later inspection.

Usage:
    from startcmd.logging import get_logger
    logger = get_logger(__name__)
    logger.debug("Spawning screen", extra={"backend": "screen", "session": name})
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


COLORS = {
    "DEBUG": "\033[36m",     # cyan
    "INFO": "\033[32m",      # green
    "WARNING": "\033[33m",   # yellow
    "ERROR": "\033[31m",     # red
    "RESET": "\033[0m",
}

# Extra fields that get included in structured output
_EXTRA_FIELDS = ("backend", "session", "depth", "exit_code", "container_id")


class HumanFormatter(logging.Formatter):
    """Colored, readable log format for terminals."""

    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname
        color = COLORS.get(level, "")
        reset = COLORS["RESET"]
        ts = datetime.now(timezone.utc).strftime("%H:%M:%S")

        extras = ""
        for key in _EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                extras += f" {key}={val}"

        return f"{color}{ts} [{level:>7}]{reset} {record.getMessage()}{extras}"


class JsonFormatter(logging.Formatter):
    """JSON lines format for machine parsing."""

    def format(self, record: logging.LogRecord) -> str:
        data = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in _EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                data[key] = val
        if record.exc_info and record.exc_info[1]:
            data["error"] = str(record.exc_info[1])
        return json.dumps(data)


# Track whether setup has already run to avoid clobbering handlers
_setup_done = False


def setup_logging(level: str = "WARNING", log_file: Optional[Path] = None) -> None:
    """
    Configure the startcmd logging system.

    Console always uses human-readable colored output on stderr.
    If log_file is set, a second handler writes JSON lines to that file.

    Safe to call multiple times: handlers are installed on the first call
    only, later calls just update the log level.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional path for JSON lines output
    """
    global _setup_done

    root = logging.getLogger("startcmd")
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))

    if _setup_done:
        return

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(HumanFormatter())
    root.addHandler(console)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(log_file))
        file_handler.setFormatter(JsonFormatter())
        root.addHandler(file_handler)

    _setup_done = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the startcmd namespace."""
    if not name.startswith("startcmd"):
        name = f"startcmd.{name}"
    return logging.getLogger(name)
