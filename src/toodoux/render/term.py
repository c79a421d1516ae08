"""Terminal size capability used by the listing renderer."""

from __future__ import annotations

import os
import shutil
import sys
from typing import Protocol


class Terminal(Protocol):
    def dimensions(self) -> tuple[int, int] | None:
        """Return ``(columns, rows)``, or ``None`` if the size is unknown."""
        ...


class DefaultTerminal:
    """The process's stdout.

    A pipe or file has no size, so ``None`` is reported unless ``COLUMNS``
    is set explicitly.
    """

    def dimensions(self) -> tuple[int, int] | None:
        if not sys.stdout.isatty() and "COLUMNS" not in os.environ:
            return None
        size = shutil.get_terminal_size()
        return size.columns, size.lines


class FixedTerminal:
    """A terminal of known (or deliberately unknown) size."""

    def __init__(self, columns: int | None, rows: int = 24) -> None:
        self.columns = columns
        self.rows = rows

    def dimensions(self) -> tuple[int, int] | None:
        if self.columns is None:
            return None
        return self.columns, self.rows
