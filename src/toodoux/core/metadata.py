"""Metadata grammar: ``@project``, ``+priority`` and ``#tag`` tokens.

Pure functions, no I/O.  Metadata values are transient: they are extracted
from user input and turned into events when applied to a task.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Union

from toodoux.core.events import Priority

logger = logging.getLogger(__name__)

PROJECT_SIGIL = "@"
PRIORITY_SIGIL = "+"
TAG_SIGIL = "#"

PRIORITY_SHORTHANDS: dict[str, Priority] = {
    "l": Priority.LOW,
    "m": Priority.MEDIUM,
    "h": Priority.HIGH,
    "c": Priority.CRITICAL,
}


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class MetadataParsingError(ValueError):
    """Raised when a ``+`` token is not a known priority shorthand."""

    def __init__(self, token: str) -> None:
        self.token = token
        valid = ", ".join(f"+{k}" for k in PRIORITY_SHORTHANDS)
        super().__init__(f"unknown priority '{token}' (expected one of {valid})")


class MetadataValidationError(ValueError):
    """Base class for metadata batches that cannot be applied together."""

    def __init__(self, count: int, message: str) -> None:
        self.count = count
        super().__init__(message)


class TooManyProjects(MetadataValidationError):
    def __init__(self, count: int) -> None:
        super().__init__(count, f"too many projects: {count}")


class TooManyPriorities(MetadataValidationError):
    def __init__(self, count: int) -> None:
        super().__init__(count, f"too many priorities: {count}")


# ---------------------------------------------------------------------------
# Metadata values
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Project:
    name: str


@dataclass(frozen=True)
class PriorityMeta:
    priority: Priority


@dataclass(frozen=True)
class Tag:
    name: str


Metadata = Union[Project, PriorityMeta, Tag]


# ---------------------------------------------------------------------------
# Grammar
# ---------------------------------------------------------------------------


def parse_token(word: str) -> Metadata | None:
    """Classify a single whitespace-free token.

    Returns ``None`` for plain description words.  Raises
    :class:`MetadataParsingError` for ``+`` tokens that are not exactly one
    of ``+l``, ``+m``, ``+h``, ``+c``.
    """
    if len(word) < 2:
        return None

    sigil, rest = word[0], word[1:]
    if sigil == PROJECT_SIGIL:
        return Project(rest)
    if sigil == TAG_SIGIL:
        return Tag(rest)
    if sigil == PRIORITY_SIGIL:
        priority = PRIORITY_SHORTHANDS.get(rest) if len(word) == 2 else None
        if priority is None:
            raise MetadataParsingError(word)
        return PriorityMeta(priority)
    return None


def from_words(words: Iterable[str]) -> tuple[list[Metadata], str]:
    """Split input words into metadata and the remaining description.

    Each element of *words* is further split on ASCII whitespace, so both
    ``["@foo bar"]`` and ``["@foo", "bar"]`` yield ``([Project("foo")], "bar")``.
    Metadata tokens are removed wherever they appear; the remaining words
    are joined with single spaces in their original order.
    """
    metadata: list[Metadata] = []
    output: list[str] = []

    for chunk in words:
        for word in split_words(chunk):
            md = parse_token(word)
            if md is None:
                output.append(word)
            else:
                metadata.append(md)

    logger.debug("extracted metadata: %r", metadata)
    logger.debug("remaining description: %r", output)

    return metadata, " ".join(output)


def validate(metadata: Iterable[Metadata]) -> None:
    """Reject batches with more than one project or more than one priority.

    Duplicate tags are allowed.
    """
    projects = 0
    priorities = 0
    for md in metadata:
        if isinstance(md, Project):
            projects += 1
        elif isinstance(md, PriorityMeta):
            priorities += 1

    if projects > 1:
        raise TooManyProjects(projects)
    if priorities > 1:
        raise TooManyPriorities(priorities)


def filter_like(md: Metadata) -> str:
    """Render *md* the way a user would type it as a filter (``+High`` style)."""
    if isinstance(md, Project):
        return f"{PROJECT_SIGIL}{md.name}"
    if isinstance(md, PriorityMeta):
        return f"{PRIORITY_SIGIL}{md.priority.name.capitalize()}"
    if isinstance(md, Tag):
        return f"{TAG_SIGIL}{md.name}"
    raise TypeError(f"Not a metadata value: {md!r}")


def to_token(md: Metadata) -> str:
    """Render *md* as the input token that parses back to it."""
    if isinstance(md, PriorityMeta):
        shorthand = next(k for k, v in PRIORITY_SHORTHANDS.items() if v is md.priority)
        return f"{PRIORITY_SIGIL}{shorthand}"
    return filter_like(md)


_ASCII_WHITESPACE = " \t\n\x0b\x0c\r"


def split_words(s: str) -> list[str]:
    """Split on ASCII whitespace only (``str.split()`` also splits on U+3000 etc.)."""
    words: list[str] = []
    current: list[str] = []
    for ch in s:
        if ch in _ASCII_WHITESPACE:
            if current:
                words.append("".join(current))
                current = []
        else:
            current.append(ch)
    if current:
        words.append("".join(current))
    return words
