"""
Stack validation and per-level option distribution.

validate_options() turns the raw --isolated/--image/--endpoint/--session
values of a WrapperOptions into aligned per-level stacks, applies the docker
default image, and enforces every cross-option rule. It runs before any
process is spawned; every violation raises ValidationError with a message
meant to be shown to the user as-is.
"""

import re
from typing import Callable, List, Optional

from .config import WrapperOptions, VALID_BACKENDS, MAX_ISOLATION_DEPTH
from .docker_utils import get_default_docker_image
from .logging import get_logger
from .sequence import (
    Sequence,
    distribute_option,
    is_sequence,
    parse_sequence,
)
from .session import is_valid_uuid

logger = get_logger("validation")

USERNAME_RE = re.compile(r"^[a-zA-Z0-9_-]+$")
MAX_USERNAME_LENGTH = 32


class ValidationError(ValueError):
    """Wrapper options violate an isolation invariant."""


def parse_isolated_value(value: str) -> Sequence:
    """
    Parse a raw --isolated value into a stack of lower-cased backend tags.

    A single token is a one-level stack, which keeps the pre-stacking
    `--isolated docker` form working unchanged.
    """
    if is_sequence(value):
        return [v.lower() if v else None for v in parse_sequence(value)]
    return [value.strip().lower()]


def _distribute(value: Optional[str], depth: int, option_name: str) -> Sequence:
    try:
        return distribute_option(value, depth, option_name)
    except ValueError as e:
        raise ValidationError(str(e)) from e


def _distribute_session(value: Optional[str], depth: int) -> Sequence:
    # A scalar session name belongs to the first level only; nested levels
    # of the same backend would otherwise collide on one name.
    if is_sequence(value):
        return _distribute(value, depth, "--session")
    return [value.strip() if value else None] + [None] * (depth - 1)


def _check_stack(stack: Sequence) -> List[str]:
    if len(stack) > MAX_ISOLATION_DEPTH:
        raise ValidationError(
            f"Isolation stack too deep: {len(stack)} levels (max: {MAX_ISOLATION_DEPTH})"
        )

    for i, backend in enumerate(stack):
        if backend is None:
            raise ValidationError(
                f"Isolation level {i + 1} has no backend. "
                f"Placeholders (_) are not allowed in --isolated."
            )
        if backend not in VALID_BACKENDS:
            raise ValidationError(
                f'Invalid isolation environment: "{backend}". '
                f"Valid options are: {', '.join(VALID_BACKENDS)}"
            )

    return list(stack)


def _resolve_stack(
    options: WrapperOptions, default_image: Callable[[], str]
) -> None:
    stack = _check_stack(parse_isolated_value(options.isolated))
    depth = len(stack)

    image_stack = _distribute(options.image, depth, "--image")
    endpoint_stack = _distribute(options.endpoint, depth, "--endpoint")
    session_stack = _distribute_session(options.session, depth)

    has_image = any(image_stack)
    has_endpoint = any(endpoint_stack)

    for i, backend in enumerate(stack):
        if backend == "docker" and not image_stack[i]:
            image_stack[i] = default_image()
            logger.debug(
                f"No image for docker level {i + 1}, using {image_stack[i]}",
                extra={"backend": backend, "depth": i + 1},
            )
        if backend == "ssh" and not endpoint_stack[i]:
            raise ValidationError(
                f"SSH isolation at level {i + 1} requires --endpoint option. "
                f'Use a sequence like --endpoint "_ user@host _" to specify '
                f"endpoints for specific levels."
            )

    if has_image and "docker" not in stack:
        raise ValidationError(
            "--image option is only valid when isolation stack includes docker"
        )
    if has_endpoint and "ssh" not in stack:
        raise ValidationError(
            "--endpoint option is only valid when isolation stack includes ssh"
        )
    if options.auto_remove_docker_container and "docker" not in stack:
        raise ValidationError(
            "--auto-remove-docker-container option is only valid when "
            "isolation stack includes docker"
        )

    # User switching happens before level 1 is spawned, so only a docker
    # first level conflicts with it.
    if options.user and stack[0] == "docker":
        raise ValidationError(
            "--user is not supported with Docker as the first isolation level. "
            "Docker uses its own user namespace for isolation."
        )

    options.isolated_stack = stack
    options.image_stack = image_stack
    options.endpoint_stack = endpoint_stack
    options.session_stack = session_stack


def _check_without_isolation(options: WrapperOptions) -> None:
    if options.auto_remove_docker_container:
        raise ValidationError(
            "--auto-remove-docker-container option is only valid when "
            "isolation stack includes docker"
        )
    if options.image:
        raise ValidationError(
            "--image option is only valid when isolation stack includes docker"
        )
    if options.endpoint:
        raise ValidationError(
            "--endpoint option is only valid when isolation stack includes ssh"
        )
    if options.session:
        raise ValidationError("--session option is only valid with --isolated")
    if options.keep_alive:
        raise ValidationError("--keep-alive option is only valid with --isolated")


def validate_options(
    options: WrapperOptions,
    default_image: Callable[[], str] = get_default_docker_image,
) -> WrapperOptions:
    """
    Validate options and resolve their per-level stacks in place.

    Raw option fields are left untouched, so calling this twice on the same
    object yields the same stacks.

    Args:
        options: Options as produced by argument parsing
        default_image: Called for each docker level that has no image

    Returns:
        The same options object, with isolated/image/endpoint/session
        stacks populated (all empty when no isolation was requested)

    Raises:
        ValidationError: on any configuration error
    """
    if options.attached and options.detached:
        raise ValidationError(
            "Cannot use both --attached and --detached at the same time. "
            "Please choose only one mode."
        )

    if options.isolated and options.isolated.strip():
        _resolve_stack(options, default_image)
    else:
        _check_without_isolation(options)
        options.isolated_stack = []
        options.image_stack = []
        options.endpoint_stack = []
        options.session_stack = []

    if options.user is not None:
        if not USERNAME_RE.match(options.user):
            raise ValidationError(
                f'Invalid username format for --user: "{options.user}". Username '
                f"should contain only letters, numbers, hyphens, and underscores."
            )
        if len(options.user) > MAX_USERNAME_LENGTH:
            raise ValidationError(
                f'Username too long for --user: "{options.user}". '
                f"Maximum length is {MAX_USERNAME_LENGTH} characters."
            )

    if options.session_id is not None and not is_valid_uuid(options.session_id):
        raise ValidationError(
            f'Invalid session ID: "{options.session_id}". '
            f"Session ID must be a valid UUID v4."
        )

    return options
