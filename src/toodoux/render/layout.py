"""Column layout and description wrapping for task listings.

Widths are measured in display columns.  Every cell is padded as plain
text and only then passed to the highlighter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Sequence

from toodoux.core.config import default_config, status_alias
from toodoux.core.events import Priority, utc_now
from toodoux.core.metadata import split_words
from toodoux.core.tasks import Task
from toodoux.render.durations import duration_width, friendly_duration, number_width
from toodoux.render.term import FixedTerminal, Terminal
from toodoux.render.theme import Highlighter, PlainHighlighter
from toodoux.render.width import ELLIPSIS, display_width, pad, truncate

logger = logging.getLogger(__name__)

PRIORITY_LABELS: dict[Priority, str] = {
    Priority.LOW: "LOW",
    Priority.MEDIUM: "MED",
    Priority.HIGH: "HIGH",
    Priority.CRITICAL: "CRIT",
}


# ---------------------------------------------------------------------------
# Word wrapping
# ---------------------------------------------------------------------------


def wrap_description(text: str, width: int, max_lines: int) -> list[str]:
    """Wrap *text* into at most *max_lines* lines of at most *width* columns.

    Words are split on ASCII whitespace.  A word is appended while
    ``offset + word_width + 1 <= width``, so a full line always keeps one
    free column.  When another line would exceed *max_lines*, that column
    receives an ellipsis and wrapping stops.  A word that does not fit on an
    empty line is cut to ``width - 1`` columns and followed by an ellipsis.
    """
    if width < 1:
        return []

    lines: list[str] = []
    buffer: list[str] = []
    offset = 0

    for word in split_words(text):
        word_size = display_width(word) + 1

        if offset + word_size <= width:
            buffer.append(word)
            offset += word_size
            continue

        if not buffer:
            buffer.append(truncate(word, width - 1) + ELLIPSIS)
            break

        if len(lines) + 1 >= max_lines:
            buffer[-1] += ELLIPSIS
            break

        lines.append(" ".join(buffer))
        if word_size > width:
            buffer = [truncate(word, width - 1) + ELLIPSIS]
            break
        buffer = [word]
        offset = word_size

    lines.append(" ".join(buffer))
    return lines


# ---------------------------------------------------------------------------
# Column widths
# ---------------------------------------------------------------------------


@dataclass
class DisplayOptions:
    uid_width: int
    age_width: int
    spent_width: int
    prio_width: int
    project_width: int
    tags_width: int
    notes_width: int
    status_width: int
    description_width: int
    show_spent: bool
    show_priority: bool
    show_project: bool
    show_tags: bool
    show_notes: bool
    description_offset: int
    max_description_cols: int | None

    @property
    def description_cols(self) -> int | None:
        """Width of the description column, or ``None`` when it is hidden."""
        if self.max_description_cols is None or self.max_description_cols <= 0:
            return None
        return min(self.description_width, self.max_description_cols)


@dataclass
class _Row:
    uid: int
    task: Task
    age: timedelta
    spent: timedelta
    notes: int


def compute_display_options(
    rows: Sequence[_Row], config: dict, terminal: Terminal
) -> DisplayOptions:
    uid_width = age_width = spent_width = project_width = tags_width = 0
    notes_width = status_width = description_width = 0
    has_spent = has_priorities = has_projects = has_tags = has_notes = False

    for row in rows:
        task = row.task
        project = task.project()
        tags = task.tags()
        uid_width = max(uid_width, number_width(row.uid))
        age_width = max(age_width, duration_width(row.age))
        spent_width = max(spent_width, duration_width(row.spent))
        status_width = max(status_width, display_width(status_alias(config, task.status())))
        description_width = max(description_width, display_width(task.name))
        project_width = max(project_width, display_width(project or ""))
        tags_width = max(tags_width, display_width(", ".join(tags)))
        if row.notes:
            notes_width = max(notes_width, number_width(row.notes))
        has_spent = has_spent or row.spent > timedelta(0)
        has_priorities = has_priorities or task.priority() is not None
        has_projects = has_projects or project is not None
        has_tags = has_tags or bool(tags)
        has_notes = has_notes or row.notes > 0

    every = config["display_empty_cols"]
    opts = DisplayOptions(
        uid_width=max(uid_width, display_width(config["uid_col_name"])),
        age_width=max(age_width, display_width(config["age_col_name"])),
        spent_width=max(spent_width, display_width(config["spent_col_name"])),
        prio_width=max(
            max(len(label) for label in PRIORITY_LABELS.values()),
            display_width(config["prio_col_name"]),
        ),
        project_width=max(project_width, display_width(config["project_col_name"])),
        tags_width=max(tags_width, display_width(config["tags_col_name"])),
        notes_width=max(notes_width, display_width(config["notes_nb_col_name"])),
        status_width=max(status_width, display_width(config["status_col_name"])),
        description_width=max(description_width, display_width(config["description_col_name"])),
        show_spent=every or has_spent,
        show_priority=every or has_priorities,
        show_project=every or has_projects,
        show_tags=config["display_tags_listings"] and (every or has_tags),
        show_notes=every or has_notes,
        description_offset=0,
        max_description_cols=None,
    )

    optional = (
        (opts.show_spent, opts.spent_width),
        (opts.show_priority, opts.prio_width),
        (opts.show_project, opts.project_width),
        (opts.show_tags, opts.tags_width),
        (opts.show_notes, opts.notes_width),
    )
    # One separating space before every column, plus the leading one.
    opts.description_offset = (
        1
        + opts.uid_width
        + 1
        + opts.age_width
        + 1
        + sum(width + 1 for shown, width in optional if shown)
        + opts.status_width
        + 1
    )

    dims = terminal.dimensions()
    if dims is None:
        logger.warning("terminal does not expose its dimensions; descriptions are hidden")
    else:
        opts.max_description_cols = dims[0] - opts.description_offset
    return opts


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


def render_listing(
    listing: Sequence[tuple[int, Task]],
    config: dict | None = None,
    highlighter: Highlighter | None = None,
    terminal: Terminal | None = None,
    *,
    now: datetime | None = None,
) -> list[str]:
    """Render a header and one or more lines per task.

    An empty listing renders nothing, not even the header.  Without a
    terminal the width is unknown and the description column is dropped.
    """
    if not listing:
        return []
    config = config if config is not None else default_config()
    hl = highlighter or PlainHighlighter()
    now = now or utc_now()

    rows = [
        _Row(uid, task, task.age(now=now), task.spent_time(now=now), len(task.notes()))
        for uid, task in listing
    ]
    opts = compute_display_options(rows, config, terminal or FixedTerminal(None))

    lines = [_header_line(opts, config, hl)]
    for row in rows:
        lines.extend(_task_lines(row, opts, config, hl))
    return lines


def _header_line(opts: DisplayOptions, config: dict, hl: Highlighter) -> str:
    cells = [
        (config["uid_col_name"], opts.uid_width),
        (config["age_col_name"], opts.age_width),
    ]
    if opts.show_spent:
        cells.append((config["spent_col_name"], opts.spent_width))
    if opts.show_priority:
        cells.append((config["prio_col_name"], opts.prio_width))
    if opts.show_project:
        cells.append((config["project_col_name"], opts.project_width))
    if opts.show_tags:
        cells.append((config["tags_col_name"], opts.tags_width))
    if opts.show_notes:
        cells.append((config["notes_nb_col_name"], opts.notes_width))
    cells.append((config["status_col_name"], opts.status_width))

    description_cols = opts.description_cols
    if description_cols is not None:
        name = truncate(config["description_col_name"], description_cols)
        cells.append((name, description_cols))

    # Underline the title only, not its padding.
    return "".join(
        " " + hl.header(text) + " " * max(0, width - display_width(text)) for text, width in cells
    )


def _task_lines(row: _Row, opts: DisplayOptions, config: dict, hl: Highlighter) -> list[str]:
    task = row.task
    status = task.status()

    parts = [
        " " + pad(str(row.uid), opts.uid_width),
        " " + pad(friendly_duration(row.age), opts.age_width),
    ]
    if opts.show_spent:
        spent = friendly_duration(row.spent) if row.spent > timedelta(0) else ""
        parts.append(" " + hl.spent(status, pad(spent, opts.spent_width)))
    if opts.show_priority:
        priority = task.priority()
        if priority is None:
            parts.append(" " + pad("", opts.prio_width))
        else:
            label = pad(PRIORITY_LABELS[priority], opts.prio_width)
            parts.append(" " + hl.priority(priority, label))
    if opts.show_project:
        parts.append(" " + hl.project(pad(task.project() or "", opts.project_width)))
    if opts.show_tags:
        parts.append(" " + hl.tag(pad(", ".join(task.tags()), opts.tags_width)))
    if opts.show_notes:
        notes = str(row.notes) if row.notes else ""
        parts.append(" " + hl.count(pad(notes, opts.notes_width)))
    parts.append(" " + hl.status(status, pad(status_alias(config, status), opts.status_width)))

    description_cols = opts.description_cols
    if description_cols is None:
        return ["".join(parts)]

    wrapped = wrap_description(task.name, description_cols, config["max_description_lines"])
    first, rest = wrapped[0], wrapped[1:]
    lines = ["".join(parts) + " " + hl.description(status, pad(first, description_cols))]
    indent = " " * opts.description_offset
    for line in rest:
        lines.append(indent + hl.description(status, pad(line, description_cols)))
    return lines
