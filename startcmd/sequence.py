"""
Sequence codec for isolation stacking.

A sequence is a whitespace-separated option value with one slot per
isolation level, where "_" marks a level the option does not apply to:

    "screen ssh docker"   -> ["screen", "ssh", "docker"]
    "_ user@host _"       -> [None, "user@host", None]

Parsing is total: bad or empty input yields an empty list, never an error.
"""

from typing import List, Optional

PLACEHOLDER = "_"

Sequence = List[Optional[str]]


def parse_sequence(value: Optional[str]) -> Sequence:
    """Split on whitespace runs, mapping the placeholder token to None."""
    if not value or not isinstance(value, str):
        return []
    return [None if part == PLACEHOLDER else part for part in value.split()]


def format_sequence(sequence: Optional[Sequence]) -> str:
    """Inverse of parse_sequence: None becomes "_", joined by single spaces."""
    if not sequence:
        return ""
    return " ".join(PLACEHOLDER if v is None else v for v in sequence)


def is_sequence(value: Optional[str]) -> bool:
    """
    True if the trimmed value holds more than one token.

    A lone scalar is not a sequence: it applies to every level rather than
    positionally.
    """
    if not isinstance(value, str):
        return False
    return len(value.split()) > 1


def is_all_placeholders(sequence: Sequence) -> bool:
    return all(v is None for v in sequence)


def shift_sequence(sequence: Optional[Sequence]) -> Sequence:
    """Drop the first slot (the level being executed now)."""
    if not sequence:
        return []
    return list(sequence[1:])


def distribute_option(
    value: Optional[str], depth: int, option_name: str
) -> Sequence:
    """
    Spread a raw option value over `depth` isolation levels.

    A scalar is replicated to every level; a sequence must have exactly
    `depth` slots. A missing value gives all placeholders.

    Raises:
        ValueError: if a sequence length does not match the stack depth
    """
    if not value:
        return [None] * depth

    if not is_sequence(value):
        return [value.strip()] * depth

    parsed = parse_sequence(value)
    if len(parsed) != depth:
        raise ValueError(
            f"{option_name} has {len(parsed)} value(s) but isolation stack has "
            f"{depth} level(s). Use underscores (_) as placeholders for levels "
            f"that don't need this option."
        )
    return parsed


def get_value_at_level(sequence: Optional[Sequence], level: int) -> Optional[str]:
    if not sequence or level < 0 or level >= len(sequence):
        return None
    return sequence[level]


def format_isolation_chain(
    stack: Sequence,
    image_stack: Optional[Sequence] = None,
    endpoint_stack: Optional[Sequence] = None,
) -> str:
    """Render a stack for display, e.g. "screen → ssh@host → docker:ubuntu"."""
    if not stack:
        return ""

    parts = []
    for i, backend in enumerate(stack):
        if not backend:
            parts.append(PLACEHOLDER)
            continue

        endpoint = get_value_at_level(endpoint_stack, i)
        image = get_value_at_level(image_stack, i)
        if backend == "ssh" and endpoint:
            parts.append(f"ssh@{endpoint}")
        elif backend == "docker" and image:
            short_name = image.split(":")[0].split("/")[-1]
            parts.append(f"docker:{short_name}")
        else:
            parts.append(backend)

    return " → ".join(parts)
