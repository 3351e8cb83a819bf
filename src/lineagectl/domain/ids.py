"""ID generation for saved projects and user-created nodes.

Manifest nodes keep their dbt ``unique_id``; only projects and nodes
added by hand get synthesized ids.

INVARIANT: IDs are permanent. Once generated, an ID never changes.
"""

from __future__ import annotations

import re
import secrets
import string
import time

_BASE36 = string.digits + string.ascii_lowercase

ID_PATTERNS: dict[str, re.Pattern[str]] = {
    "project": re.compile(r"^proj-\d+-[0-9a-z]{7}$"),
    "user_node": re.compile(r"^user-node-\d+-[0-9a-z]{9}$"),
}


def _random_suffix(length: int) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def _epoch_ms() -> int:
    return time.time_ns() // 1_000_000


def generate_project_id() -> str:
    """Return ``proj-<epoch ms>-<7 base36 chars>``."""
    return f"proj-{_epoch_ms()}-{_random_suffix(7)}"


def generate_user_node_id() -> str:
    """Return ``user-node-<epoch ms>-<9 base36 chars>``."""
    return f"user-node-{_epoch_ms()}-{_random_suffix(9)}"


def validate_id(value: str, kind: str) -> bool:
    """Check whether *value* matches the expected pattern for *kind*."""
    pattern = ID_PATTERNS.get(kind)
    if pattern is None:
        return False
    return pattern.match(value) is not None
