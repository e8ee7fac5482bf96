from .base import IsolationRunner, ExecutionResult, RunOptions, wrap_command_with_user
from .screen import ScreenRunner, ScreenVersion, ScreenVersionProbe, supports_logfile_option
from .tmux import TmuxRunner
from .docker import DockerRunner
from .ssh import SshRunner

__all__ = [
    "IsolationRunner",
    "ExecutionResult",
    "RunOptions",
    "wrap_command_with_user",
    "ScreenRunner",
    "ScreenVersion",
    "ScreenVersionProbe",
    "supports_logfile_option",
    "TmuxRunner",
    "DockerRunner",
    "SshRunner",
]
