"""
Configuration dataclasses for startcmd.

All settings have sensible defaults. Override via StartConfig() or the
START_* environment variables (see StartConfig.from_env).
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, List


class Backend(str, Enum):
    SCREEN = "screen"
    TMUX = "tmux"
    DOCKER = "docker"
    SSH = "ssh"


VALID_BACKENDS = [b.value for b in Backend]

# Deepest isolation stack accepted by validation
MAX_ISOLATION_DEPTH = 7


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true")


@dataclass
class ScreenConfig:
    """Screen runner settings."""
    poll_interval: float = 0.1  # seconds between `screen -ls` checks
    poll_timeout: float = 300.0  # give up waiting after this many seconds


@dataclass
class StartConfig:
    """Top-level configuration for a start-command invocation."""
    wrapper_command: str = "start-command"  # token used to re-invoke ourselves
    log_level: str = "WARNING"
    log_file: Optional[Path] = None  # JSON lines diagnostics
    log_dir: Optional[Path] = None  # execution logs; None = system temp dir
    screen: ScreenConfig = field(default_factory=ScreenConfig)

    @classmethod
    def from_env(cls) -> "StartConfig":
        """Build a config from START_DEBUG, START_LOG_DIR, START_LOG_FILE, START_WRAPPER_COMMAND."""
        config = cls()
        if _env_flag("START_DEBUG"):
            config.log_level = "DEBUG"
        if os.getenv("START_LOG_DIR"):
            config.log_dir = Path(os.environ["START_LOG_DIR"])
        if os.getenv("START_LOG_FILE"):
            config.log_file = Path(os.environ["START_LOG_FILE"])
        if os.getenv("START_WRAPPER_COMMAND"):
            config.wrapper_command = os.environ["START_WRAPPER_COMMAND"]
        return config


@dataclass
class WrapperOptions:
    """
    Options consumed by the isolation engine for one invocation.

    The raw fields (isolated, image, endpoint, session) hold the values as
    typed on the command line, possibly sequences like "_ user@host _".
    validate_options() resolves them into the *_stack fields, one slot per
    isolation level; the raw fields are never rewritten.
    """
    isolated: Optional[str] = None
    attached: bool = False
    detached: bool = False
    session: Optional[str] = None
    image: Optional[str] = None
    endpoint: Optional[str] = None
    user: Optional[str] = None  # run the command as this local user
    keep_alive: bool = False
    auto_remove_docker_container: bool = False
    session_id: Optional[str] = None

    # Filled in by validation
    isolated_stack: List[str] = field(default_factory=list)
    image_stack: List[Optional[str]] = field(default_factory=list)
    endpoint_stack: List[Optional[str]] = field(default_factory=list)
    session_stack: List[Optional[str]] = field(default_factory=list)

    @property
    def has_isolation(self) -> bool:
        return bool(self.isolated_stack) or bool(self.isolated)

    @property
    def is_stacked(self) -> bool:
        return len(self.isolated_stack) > 1

    @property
    def backend(self) -> Optional[str]:
        return self.isolated_stack[0] if self.isolated_stack else None

    @property
    def current_image(self) -> Optional[str]:
        return self.image_stack[0] if self.image_stack else None

    @property
    def current_endpoint(self) -> Optional[str]:
        return self.endpoint_stack[0] if self.endpoint_stack else None

    @property
    def current_session(self) -> Optional[str]:
        return self.session_stack[0] if self.session_stack else None

    @property
    def mode(self) -> str:
        # Attached is the default for every backend
        return "detached" if self.detached else "attached"
