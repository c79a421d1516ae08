"""Task UID allocation and event ID generation."""

from __future__ import annotations

import re

from ulid import ULID

# Crockford Base32 alphabet: 0-9 A-Z excluding I, L, O, U
_CROCKFORD_B32_RE = re.compile(r"^[0-9A-HJKMNP-TV-Z]{26}$", re.IGNORECASE)


class UidAllocator:
    """Monotonic task UID counter.

    The counter is persisted alongside the registry as ``next_uid``.  UIDs
    are never reused and gaps left by removed tasks are never filled.
    """

    def __init__(self, next_uid: int = 0) -> None:
        if not isinstance(next_uid, int) or isinstance(next_uid, bool) or next_uid < 0:
            raise ValueError(f"next_uid must be a non-negative integer, got {next_uid!r}")
        self._next_uid = next_uid

    @property
    def next_uid(self) -> int:
        return self._next_uid

    def allocate(self) -> int:
        uid = self._next_uid
        self._next_uid += 1
        return uid


def parse_uid(s: str) -> int:
    """Parse a user-supplied task UID. Raises ValueError if invalid."""
    s = s.strip()
    if not (s.isascii() and s.isdigit()):
        raise ValueError(f"Invalid task UID: '{s}'")
    return int(s)


def generate_event_id() -> str:
    """Generate a new event ID with the ev_ prefix."""
    return f"ev_{ULID()}"


def validate_event_id(id_str: str) -> bool:
    """Validate an ``ev_<ulid>`` identifier.

    The ULID portion must be exactly 26 characters of valid Crockford
    Base32 (0-9, A-Z excluding I, L, O, U -- case insensitive).
    """
    if not isinstance(id_str, str):
        return False

    parts = id_str.split("_", maxsplit=1)
    if len(parts) != 2 or parts[0] != "ev":
        return False

    return bool(_CROCKFORD_B32_RE.match(parts[1]))
