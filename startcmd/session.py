"""
Session identity helpers.

Session and container names are `{prefix}-{epochMillis}-{base36random}`.
Uniqueness is probabilistic (time plus six random characters), not
guaranteed.
"""

import random
import re
import string
import time
import uuid

_BASE36 = string.digits + string.ascii_lowercase

UUID_V4_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def generate_session_name(prefix: str = "start") -> str:
    timestamp = int(time.time() * 1000)
    suffix = "".join(random.choice(_BASE36) for _ in range(6))
    return f"{prefix}-{timestamp}-{suffix}"


def generate_session_id() -> str:
    """New UUID v4 used to tag one invocation."""
    return str(uuid.uuid4())


def is_valid_uuid(value: str) -> bool:
    return bool(UUID_V4_RE.match(value or ""))
