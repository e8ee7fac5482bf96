"""
Docker backend.

Every run creates a fresh container from the level's image and executes
the command with /bin/sh -c. Detached containers are kept after exit
unless auto-remove was requested; attached containers always use --rm.
A run-as user maps to `docker run --user`.
"""

from ..config import Backend
from ..logging import get_logger
from .base import (
    IsolationRunner,
    ExecutionResult,
    RunOptions,
    has_tty,
    keep_alive_command,
)

logger = get_logger("isolation.docker")

CONTAINER_SHELL = "/bin/sh"


class DockerRunner(IsolationRunner):
    """Runs commands in docker containers."""

    backend = Backend.DOCKER
    binary = "docker"
    install_hint = (
        "docker is not installed. Install Docker from https://docs.docker.com/get-docker/"
    )

    @staticmethod
    def _missing_image(session_name: str) -> ExecutionResult:
        return ExecutionResult(
            success=False,
            session_name=session_name,
            message="Docker isolation requires --image option",
        )

    async def run_detached(
        self, command: str, session_name: str, options: RunOptions
    ) -> ExecutionResult:
        if not options.image:
            return self._missing_image(session_name)

        effective = command
        if options.keep_alive:
            effective = keep_alive_command(command, CONTAINER_SHELL)

        args = ["run", "-d", "--name", session_name]
        if options.auto_remove_docker_container:
            args.append("--rm")
        if options.user:
            args.extend(["--user", options.user])
        args.extend([options.image, CONTAINER_SHELL, "-c", effective])

        code, stdout, stderr = await self._capture(args)
        if code != 0:
            return ExecutionResult(
                success=False,
                session_name=session_name,
                message=f"Failed to start docker container: {stderr.strip()}",
                exit_code=code,
            )

        container_id = stdout.strip()
        logger.info(
            f"Docker container started: {session_name} (image={options.image})",
            extra={"backend": "docker", "container_id": container_id[:12]},
        )

        lines = [
            f"Command started in detached docker container: {session_name}",
            f"Container ID: {container_id[:12]}",
        ]
        if options.keep_alive:
            lines.append("Container will stay alive after command completes.")
        else:
            lines.append("Container will exit automatically after command completes.")
        if options.auto_remove_docker_container:
            lines.append("Container will be automatically removed after exit.")
        else:
            lines.append("Container filesystem will be preserved after exit.")
        lines.append(f"Attach with: docker attach {session_name}")
        lines.append(f"View logs: docker logs {session_name}")

        return ExecutionResult(
            success=True,
            session_name=session_name,
            message="\n".join(lines),
            container_id=container_id,
        )

    async def run_attached(
        self, command: str, session_name: str, options: RunOptions
    ) -> ExecutionResult:
        if not options.image:
            return self._missing_image(session_name)

        # -t needs a terminal on our side; without one docker refuses to start
        interactive = "-it" if has_tty() else "-i"
        args = ["run", interactive, "--rm", "--name", session_name]
        if options.user:
            args.extend(["--user", options.user])
        args.extend([options.image, CONTAINER_SHELL, "-c", command])

        code = await self._spawn(args)
        return self._exited("Docker container", session_name, code)
