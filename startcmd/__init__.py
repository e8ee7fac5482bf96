"""
startcmd — run a command directly or inside isolation backends.

Backends: screen, tmux, docker and ssh. Backends can be stacked, e.g. a
docker container on a remote host inside a local screen session; each
level re-invokes start-command for the levels below it.

Quick start:
    from startcmd import IsolationDispatcher, WrapperOptions, validate_options

    options = validate_options(WrapperOptions(isolated="docker", image="alpine:latest"))
    result = await IsolationDispatcher().run(options, "echo hello")
    print(result.success, result.exit_code)

Single backend:
    from startcmd import RunOptions, run_isolated

    result = await run_isolated("tmux", "htop", RunOptions(detached=True))
"""

from .config import (
    Backend,
    StartConfig,
    ScreenConfig,
    WrapperOptions,
    VALID_BACKENDS,
    MAX_ISOLATION_DEPTH,
)
from .sequence import parse_sequence, format_sequence, is_sequence, format_isolation_chain
from .validation import ValidationError, validate_options
from .command_builder import build_next_level_command, build_next_level_options
from .isolation import (
    IsolationRunner,
    ExecutionResult,
    RunOptions,
    ScreenRunner,
    ScreenVersion,
    ScreenVersionProbe,
    TmuxRunner,
    DockerRunner,
    SshRunner,
)
from .dispatcher import IsolationDispatcher, run_isolated
from .session import generate_session_name
from .docker_utils import get_default_docker_image
from .logging import get_logger, setup_logging

__version__ = "0.1.0"

__all__ = [
    # Engine
    "IsolationDispatcher",
    "run_isolated",
    "build_next_level_command",
    "build_next_level_options",
    # Config
    "Backend",
    "StartConfig",
    "ScreenConfig",
    "WrapperOptions",
    "VALID_BACKENDS",
    "MAX_ISOLATION_DEPTH",
    # Sequences & validation
    "parse_sequence",
    "format_sequence",
    "is_sequence",
    "format_isolation_chain",
    "ValidationError",
    "validate_options",
    # Runners
    "IsolationRunner",
    "ExecutionResult",
    "RunOptions",
    "ScreenRunner",
    "ScreenVersion",
    "ScreenVersionProbe",
    "TmuxRunner",
    "DockerRunner",
    "SshRunner",
    # Helpers
    "generate_session_name",
    "get_default_docker_image",
    # Logging
    "get_logger",
    "setup_logging",
]
