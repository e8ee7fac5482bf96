"""
Command builder for isolation stacking.

A stack like "screen ssh docker" is not run as one process tree. Level 1
(screen) is told to run start-command again for the remaining levels:

    start-command --isolated "ssh docker" --endpoint "user@host _" -- npm test

and that invocation does the same for ssh, until a single level is left
and the user's command itself is run.
"""

import dataclasses
from typing import Optional

from .config import WrapperOptions
from .sequence import Sequence, format_sequence, is_all_placeholders, shift_sequence

DEFAULT_WRAPPER_COMMAND = "start-command"


def _masked(sequence: Sequence, stack: Sequence, backend: Optional[str]) -> Sequence:
    """Blank the slots of levels that don't run `backend` (None keeps all)."""
    if backend is None:
        return list(sequence)
    return [v if level == backend else None for v, level in zip(sequence, stack)]


def _sequence_flag(
    name: str, sequence: Sequence, stack: Sequence, backend: Optional[str] = None
) -> Optional[str]:
    remaining = _masked(shift_sequence(sequence), shift_sequence(stack), backend)
    if not remaining or is_all_placeholders(remaining):
        return None
    return f'--{name} "{format_sequence(remaining)}"'


def build_next_level_command(
    options: WrapperOptions,
    command: str,
    wrapper_command: str = DEFAULT_WRAPPER_COMMAND,
) -> str:
    """
    Build the command the current isolation level must execute.

    Args:
        options: Validated options (stacks populated)
        command: The user's command
        wrapper_command: Token that invokes start-command on the next level

    Returns:
        `command` unchanged when at most one level is left, otherwise a
        start-command invocation for levels 2..N followed by `-- command`
    """
    stack = options.isolated_stack
    if len(stack) <= 1:
        return command

    remaining_stack = shift_sequence(stack)
    parts = [wrapper_command, f'--isolated "{format_sequence(remaining_stack)}"']

    # Images and endpoints only travel to levels that can use them; the
    # next level rejects --image without docker and --endpoint without ssh.
    for flag in (
        _sequence_flag("image", options.image_stack, stack, "docker"),
        _sequence_flag("endpoint", options.endpoint_stack, stack, "ssh"),
        _sequence_flag("session", options.session_stack, stack),
    ):
        if flag:
            parts.append(flag)

    if options.detached:
        parts.append("--detached")
    if options.keep_alive:
        parts.append("--keep-alive")
    if options.session_id:
        parts.append(f"--session-id {options.session_id}")
    if options.auto_remove_docker_container and "docker" in remaining_stack:
        parts.append("--auto-remove-docker-container")

    parts.append("--")
    parts.append(command)
    return " ".join(parts)


def build_next_level_options(options: WrapperOptions) -> WrapperOptions:
    """
    Return a copy of the options as the next level will see them.

    Every per-level stack is shifted by one in lock-step, and the raw
    fields are rewritten to the formatted shifted sequences.
    """
    isolated_stack = shift_sequence(options.isolated_stack)
    image_stack = shift_sequence(options.image_stack)
    endpoint_stack = shift_sequence(options.endpoint_stack)
    session_stack = shift_sequence(options.session_stack)

    def raw(sequence: Sequence) -> Optional[str]:
        if not sequence or is_all_placeholders(sequence):
            return None
        return format_sequence(sequence)

    return dataclasses.replace(
        options,
        isolated=raw(isolated_stack),
        image=raw(image_stack),
        endpoint=raw(endpoint_stack),
        session=raw(session_stack),
        isolated_stack=isolated_stack,
        image_stack=image_stack,
        endpoint_stack=endpoint_stack,
        session_stack=session_stack,
    )


def escape_for_shell(command: str) -> str:
    """Escape single quotes for embedding inside '...'."""
    return command.replace("'", "'\\''")


def is_last_level(options: WrapperOptions) -> bool:
    return len(options.isolated_stack) <= 1


def get_current_backend(options: WrapperOptions) -> Optional[str]:
    if options.isolated_stack:
        return options.isolated_stack[0]
    return options.isolated


def get_current_value(sequence: Optional[Sequence]) -> Optional[str]:
    if sequence:
        return sequence[0]
    return None
