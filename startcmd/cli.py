"""
Command-line driver.

    start-command [options] -- <command...>
    start-command [options] <command...>

Examples:
    start-command -- echo hello
    start-command --isolated tmux -- npm start
    start-command --isolated docker --image alpine:latest -- ls /
    start-command --isolated ssh --endpoint user@host -- uptime
    start-command --isolated "screen ssh docker" --endpoint "_ user@host _" -- npm test
"""

import argparse
import asyncio
import sys
from typing import List, Optional, Tuple

from dotenv import load_dotenv

from . import __version__
from .config import StartConfig, WrapperOptions, MAX_ISOLATION_DEPTH, VALID_BACKENDS
from .dispatcher import IsolationDispatcher
from .execution_log import (
    create_log_footer,
    create_log_header,
    create_log_path,
    get_timestamp,
    write_log_file,
)
from .logging import get_logger, setup_logging
from .sequence import format_isolation_chain
from .session import generate_session_id
from .validation import ValidationError, validate_options

logger = get_logger("cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="start-command",
        description="Run a command directly or inside screen, tmux, docker or ssh.",
        epilog=(
            f"Backends: {', '.join(VALID_BACKENDS)}. Stack up to {MAX_ISOLATION_DEPTH} "
            'levels with --isolated "screen ssh docker" and give per-level values '
            'with "_" placeholders, e.g. --endpoint "_ user@host _".'
        ),
    )
    parser.add_argument("--isolated", "-i", metavar="BACKENDS",
                        help="isolation backend, or a space-separated stack of them")
    parser.add_argument("--attached", "-a", action="store_true",
                        help="run in the foreground (default)")
    parser.add_argument("--detached", "-d", action="store_true",
                        help="start in the background and return")
    parser.add_argument("--session", "-s", metavar="NAME",
                        help="session or container name (sequence for stacks)")
    parser.add_argument("--image", metavar="IMAGE",
                        help="docker image (defaults to one matching the host OS)")
    parser.add_argument("--endpoint", metavar="ENDPOINT",
                        help="ssh endpoint such as user@host (required for ssh)")
    parser.add_argument("--user", "-u", metavar="USER",
                        help="run the command as this local user via sudo -n")
    parser.add_argument("--keep-alive", "-k", action="store_true",
                        help="keep the session/container open after the command exits")
    parser.add_argument("--auto-remove-docker-container", action="store_true",
                        help="remove detached docker containers after they exit")
    parser.add_argument("--session-id", "--session-name", dest="session_id", metavar="UUID",
                        help="UUID identifying this execution")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("command", nargs=argparse.REMAINDER,
                        help="command to run (after --)")
    return parser


def parse_args(argv: List[str]) -> Tuple[WrapperOptions, str]:
    """
    Split argv into wrapper options and the command string.

    Everything after the first "--" is the command. Without "--", the
    command starts at the first argument that is not a wrapper option.
    """
    parser = build_parser()

    if "--" in argv:
        idx = argv.index("--")
        wrapper_args, command_args = argv[:idx], argv[idx + 1:]
    else:
        wrapper_args, command_args = argv, []

    ns = parser.parse_args(wrapper_args)
    command_args = list(ns.command) + command_args

    options = WrapperOptions(
        isolated=ns.isolated,
        attached=ns.attached,
        detached=ns.detached,
        session=ns.session,
        image=ns.image,
        endpoint=ns.endpoint,
        user=ns.user,
        keep_alive=ns.keep_alive,
        auto_remove_docker_container=ns.auto_remove_docker_container,
        session_id=ns.session_id,
    )
    return options, " ".join(command_args)


def _print_isolation_info(options: WrapperOptions) -> None:
    if options.isolated_stack:
        print(f"[Isolation] Environment: {options.backend}, Mode: {options.mode}")
        if options.is_stacked:
            chain = format_isolation_chain(
                options.isolated_stack, options.image_stack, options.endpoint_stack
            )
            print(f"[Isolation] Stack: {chain}")
    if options.current_session:
        print(f"[Isolation] Session: {options.current_session}")
    if options.current_image:
        print(f"[Isolation] Image: {options.current_image}")
    if options.current_endpoint:
        print(f"[Isolation] Endpoint: {options.current_endpoint}")
    if options.user:
        print(f"[Isolation] User: {options.user}")


async def run_command(options: WrapperOptions, command: str, config: StartConfig) -> int:
    """Run a validated invocation, print the report and return the exit code."""
    session_id = options.session_id or generate_session_id()
    # Nested levels report under the same execution id
    options.session_id = session_id

    environment = options.backend or "direct"
    log_path = create_log_path(environment, config.log_dir)
    start_time = get_timestamp()

    print(session_id)
    print()
    print(f"[{start_time}] Starting: {command}")
    print()
    if options.isolated_stack or options.user:
        _print_isolation_info(options)
        print()

    dispatcher = IsolationDispatcher(config)
    result = await dispatcher.run(options, command)

    exit_code = result.effective_exit_code
    end_time = get_timestamp()

    content = create_log_header(
        command=command,
        environment=environment,
        mode=options.mode,
        session_name=result.session_name,
        start_time=start_time,
        execution_id=session_id,
        image=options.current_image,
        user=options.user,
    )
    content += f"{result.message}\n"
    content += create_log_footer(end_time, exit_code)
    saved = write_log_file(log_path, content)

    print()
    print(result.message)
    print()
    print(f"[{end_time}] Finished")
    print(f"Exit code: {exit_code}")
    if saved:
        print(f"Log saved: {log_path}")
    print()
    print(session_id)

    return exit_code


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    config = StartConfig.from_env()
    setup_logging(level=config.log_level, log_file=config.log_file)

    argv = sys.argv[1:] if argv is None else argv
    options, command = parse_args(argv)

    try:
        validate_options(options)
    except ValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not command.strip():
        print("Error: No command provided", file=sys.stderr)
        build_parser().print_usage(sys.stderr)
        return 1

    return asyncio.run(run_command(options, command, config))


if __name__ == "__main__":
    sys.exit(main())
