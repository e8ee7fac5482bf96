"""
Per-invocation execution log.

Each CLI run leaves a small text file describing what was run where and
how it ended:

    === Start Command Log ===
    Execution ID: ...
    Timestamp: 2026-01-01 12:00:00.000
    Command: npm test
    Environment: docker
    ...
    ==================================================

    <result message>

    ==================================================
    Finished: ...
    Exit Code: 0
"""

import os
import platform
import random
import string
import sys
import tempfile
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .logging import get_logger

logger = get_logger("execution_log")

RULE = "=" * 50


def get_timestamp() -> str:
    """UTC time as "YYYY-MM-DD HH:MM:SS.mmm"."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]


def generate_log_filename(environment: str) -> str:
    timestamp = int(time.time() * 1000)
    suffix = "".join(random.choice(string.digits + string.ascii_lowercase) for _ in range(6))
    return f"start-command-{environment}-{timestamp}-{suffix}.log"


def get_log_dir(log_dir: Optional[Path] = None) -> Path:
    return log_dir or Path(tempfile.gettempdir())


def create_log_path(environment: str, log_dir: Optional[Path] = None) -> Path:
    return get_log_dir(log_dir) / generate_log_filename(environment)


def create_log_header(
    command: str,
    environment: str,
    mode: str,
    session_name: Optional[str],
    start_time: str,
    execution_id: Optional[str] = None,
    image: Optional[str] = None,
    user: Optional[str] = None,
) -> str:
    lines = ["=== Start Command Log ==="]
    if execution_id:
        lines.append(f"Execution ID: {execution_id}")
    lines.append(f"Timestamp: {start_time}")
    lines.append(f"Command: {command}")
    lines.append(f"Environment: {environment}")
    lines.append(f"Mode: {mode}")
    if session_name:
        lines.append(f"Session: {session_name}")
    if image:
        lines.append(f"Image: {image}")
    if user:
        lines.append(f"User: {user}")
    lines.append(f"Platform: {sys.platform}")
    lines.append(f"Python Version: {platform.python_version()}")
    lines.append(f"Working Directory: {os.getcwd()}")
    lines.append(RULE)
    return "\n".join(lines) + "\n\n"


def create_log_footer(end_time: str, exit_code: int) -> str:
    return f"\n{RULE}\nFinished: {end_time}\nExit Code: {exit_code}\n"


def write_log_file(log_path: Path, content: str) -> bool:
    """Write the log, returning False (and warning) instead of raising."""
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        log_path.write_text(content, encoding="utf-8")
        return True
    except OSError as e:
        logger.warning(f"Could not save log file {log_path}: {e}")
        return False
