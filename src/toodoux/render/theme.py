"""Highlighters: map statuses, priorities and labels to decorated text.

The renderer always pads undecorated text first and decorates afterwards,
so a highlighter may wrap its input in escape sequences freely.
"""

from __future__ import annotations

import copy
from typing import Protocol

import click

from toodoux.core.events import Priority, Status


class Highlighter(Protocol):
    def status(self, status: Status, text: str) -> str: ...

    def priority(self, priority: Priority, text: str) -> str: ...

    def description(self, status: Status, text: str) -> str: ...

    def spent(self, status: Status, text: str) -> str: ...

    def header(self, text: str) -> str: ...

    def label(self, text: str) -> str: ...

    def dim(self, text: str) -> str: ...

    def project(self, text: str) -> str: ...

    def tag(self, text: str) -> str: ...

    def count(self, text: str) -> str: ...

    def date(self, text: str) -> str: ...


class PlainHighlighter:
    """Leaves every string untouched."""

    def status(self, status: Status, text: str) -> str:
        return text

    def priority(self, priority: Priority, text: str) -> str:
        return text

    def description(self, status: Status, text: str) -> str:
        return text

    def spent(self, status: Status, text: str) -> str:
        return text

    def header(self, text: str) -> str:
        return text

    def label(self, text: str) -> str:
        return text

    def dim(self, text: str) -> str:
        return text

    def project(self, text: str) -> str:
        return text

    def tag(self, text: str) -> str:
        return text

    def count(self, text: str) -> str:
        return text

    def date(self, text: str) -> str:
        return text


# Section -> entry -> click.style keyword arguments.
DEFAULT_PALETTE: dict[str, dict[str, dict]] = {
    "status": {
        "todo": {"fg": "magenta", "bold": True},
        "ongoing": {"fg": "green", "bold": True},
        "done": {"fg": "bright_black", "dim": True},
        "cancelled": {"fg": "bright_red", "dim": True},
    },
    "priority": {
        "low": {"fg": "bright_black", "dim": True},
        "medium": {"fg": "blue"},
        "high": {"fg": "red"},
        "critical": {"fg": "black", "bg": "bright_red"},
    },
    "description": {
        "todo": {"fg": "bright_white", "bg": "black"},
        "ongoing": {"fg": "black", "bg": "bright_green"},
        "done": {"fg": "bright_black", "bg": "black", "dim": True},
        "cancelled": {"fg": "bright_black", "bg": "black", "dim": True, "strikethrough": True},
    },
}


class ThemeHighlighter:
    """ANSI styling through :func:`click.style`.

    *overrides* has the shape of the ``colors`` config key; each entry
    replaces the matching default style entirely.
    """

    def __init__(self, overrides: dict | None = None) -> None:
        self.palette = copy.deepcopy(DEFAULT_PALETTE)
        for section, entries in (overrides or {}).items():
            self.palette.setdefault(section, {}).update(copy.deepcopy(entries))

    def _apply(self, section: str, name: str, text: str) -> str:
        return click.style(text, **self.palette[section][name])

    def status(self, status: Status, text: str) -> str:
        return self._apply("status", status.value, text)

    def priority(self, priority: Priority, text: str) -> str:
        return self._apply("priority", priority.value, text)

    def description(self, status: Status, text: str) -> str:
        return self._apply("description", status.value, text)

    def spent(self, status: Status, text: str) -> str:
        return click.style(text, fg="blue" if status is Status.ONGOING else "bright_black")

    def header(self, text: str) -> str:
        return click.style(text, underline=True)

    def label(self, text: str) -> str:
        return click.style(text, fg="bright_black")

    def dim(self, text: str) -> str:
        return click.style(text, fg="bright_black")

    def project(self, text: str) -> str:
        return click.style(text, italic=True)

    def tag(self, text: str) -> str:
        return click.style(text, fg="yellow")

    def count(self, text: str) -> str:
        return click.style(text, fg="blue", italic=True)

    def date(self, text: str) -> str:
        return click.style(text, fg="blue", italic=True)
