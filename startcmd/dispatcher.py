"""
IsolationDispatcher — entry point of the isolation engine.

Picks the runner for the first level of a validated stack, hands it the
command that level must execute (the user's command, or a start-command
invocation for the remaining levels), and returns the runner's result
untouched.

Usage:
    from startcmd import IsolationDispatcher, WrapperOptions, validate_options

    options = validate_options(WrapperOptions(isolated="screen docker", image="alpine:latest"))
    result = await IsolationDispatcher().run(options, "echo hi")
"""

import asyncio
from typing import Optional

from .command_builder import build_next_level_command
from .config import Backend, StartConfig, WrapperOptions
from .isolation.base import (
    IsolationRunner,
    ExecutionResult,
    RunOptions,
    get_shell,
)
from .isolation.docker import DockerRunner
from .isolation.screen import ScreenRunner, ScreenVersionProbe
from .isolation.ssh import SshRunner
from .isolation.tmux import TmuxRunner
from .logging import get_logger

logger = get_logger("dispatcher")


class IsolationDispatcher:
    """
    Routes commands to isolation backends.

    The dispatcher owns the screen version probe, so the version is
    detected at most once per dispatcher however many screen levels run.
    """

    def __init__(
        self,
        config: Optional[StartConfig] = None,
        screen_probe: Optional[ScreenVersionProbe] = None,
    ):
        self.config = config or StartConfig()
        self.screen_probe = screen_probe or ScreenVersionProbe()

    def create_runner(self, backend: str) -> IsolationRunner:
        """
        Create the runner for a backend tag.

        Raises:
            ValueError: if the tag is not a known backend
        """
        backend = Backend(backend)
        if backend == Backend.SCREEN:
            return ScreenRunner(self.config, probe=self.screen_probe)
        if backend == Backend.TMUX:
            return TmuxRunner(self.config)
        if backend == Backend.DOCKER:
            return DockerRunner(self.config)
        return SshRunner(self.config)

    async def run_isolated(
        self, backend: str, command: str, options: Optional[RunOptions] = None
    ) -> ExecutionResult:
        """Run `command` in a single backend."""
        try:
            runner = self.create_runner(backend)
        except ValueError:
            return ExecutionResult(
                success=False,
                session_name=None,
                message=f"Unknown isolation backend: {backend}",
            )

        result = await runner.run(command, options)
        logger.info(
            f"{backend} run finished: success={result.success}",
            extra={
                "backend": backend,
                "session": result.session_name,
                "exit_code": result.exit_code,
            },
        )
        return result

    @staticmethod
    def level_options(options: WrapperOptions) -> RunOptions:
        """Runner options for the first level of a validated stack."""
        return RunOptions(
            session=options.current_session,
            detached=options.detached,
            keep_alive=options.keep_alive,
            image=options.current_image,
            endpoint=options.current_endpoint,
            user=options.user,
            auto_remove_docker_container=options.auto_remove_docker_container,
        )

    async def run(self, options: WrapperOptions, command: str) -> ExecutionResult:
        """
        Execute `command` according to validated wrapper options.

        Without isolation the command runs directly (as options.user when
        set). With a stack, level 1 is run here and levels 2..N are reached
        through the command built for it.

        Args:
            options: Options already passed through validate_options()
            command: The user's command

        Returns:
            The ExecutionResult of the level-1 runner, unmodified
        """
        if not options.isolated_stack:
            if options.user:
                return await self.run_as_user(command, options.user)
            return await self.run_direct(command)

        level_command = build_next_level_command(
            options, command, wrapper_command=self.config.wrapper_command
        )
        if options.is_stacked:
            logger.debug(
                f"Level 1 will run: {level_command}",
                extra={"backend": options.backend, "depth": 1},
            )

        return await self.run_isolated(
            options.backend, level_command, self.level_options(options)
        )

    async def run_direct(self, command: str) -> ExecutionResult:
        """Run in the user's shell with the terminal inherited."""
        shell = get_shell()
        logger.debug(f"Running directly: {shell} -c {command}")
        try:
            process = await asyncio.create_subprocess_exec(shell, "-c", command)
            code = await process.wait()
        except OSError as e:
            return ExecutionResult(
                success=False,
                session_name=None,
                message=f"Failed to run command: {e}",
            )
        return ExecutionResult(
            success=code == 0,
            session_name=None,
            message=f"Command exited with code {code}",
            exit_code=code,
        )

    async def run_as_user(self, command: str, user: str) -> ExecutionResult:
        """Run through `sudo -n -u <user> sh -c`, without any backend."""
        logger.debug(f"Running as {user}: {command}")
        try:
            process = await asyncio.create_subprocess_exec(
                "sudo", "-n", "-u", user, "sh", "-c", command,
            )
            code = await process.wait()
        except OSError as e:
            return ExecutionResult(
                success=False,
                session_name=None,
                message=f'Failed to run as user "{user}": {e}',
                exit_code=1,
            )
        return ExecutionResult(
            success=code == 0,
            session_name=None,
            message=f'Command completed as user "{user}" with exit code {code}',
            exit_code=code,
        )


async def run_isolated(
    backend: str,
    command: str,
    options: Optional[RunOptions] = None,
    config: Optional[StartConfig] = None,
) -> ExecutionResult:
    """Single-backend entry point for non-stacked callers."""
    return await IsolationDispatcher(config).run_isolated(backend, command, options)
