"""Single-task views: ``show`` details and ``history`` event log."""

from __future__ import annotations

from datetime import datetime, timedelta

from toodoux.core.config import default_config, status_alias
from toodoux.core.events import (
    Created,
    Event,
    NoteAdded,
    NoteReplaced,
    PrioritySet,
    ProjectSet,
    StatusChanged,
    TagAdded,
    utc_now,
)
from toodoux.core.tasks import Task
from toodoux.render.durations import friendly_date, friendly_duration
from toodoux.render.layout import PRIORITY_LABELS
from toodoux.render.theme import Highlighter, PlainHighlighter


def render_details(
    uid: int,
    task: Task,
    config: dict | None = None,
    highlighter: Highlighter | None = None,
    *,
    now: datetime | None = None,
) -> list[str]:
    config = config if config is not None else default_config()
    hl = highlighter or PlainHighlighter()
    now = now or utc_now()
    status = task.status()

    def field_line(label: str, value: str) -> str:
        return f" {hl.label(label)}: {value}"

    lines = [
        field_line(config["description_col_name"], task.name),
        field_line(config["uid_col_name"], str(uid)),
        field_line(config["age_col_name"], friendly_duration(task.age(now=now))),
    ]

    spent = task.spent_time(now=now)
    if spent == timedelta(0):
        lines.append(field_line(config["spent_col_name"], hl.dim("not started yet")))
    else:
        lines.append(field_line(config["spent_col_name"], hl.spent(status, friendly_duration(spent))))

    priority = task.priority()
    if priority is not None:
        label = hl.priority(priority, PRIORITY_LABELS[priority])
        lines.append(field_line(config["prio_col_name"], label))

    project = task.project()
    if project is not None:
        lines.append(field_line(config["project_col_name"], hl.project(project)))

    tags = task.tags()
    if tags:
        rendered = ", ".join(hl.dim("#") + hl.tag(tag) for tag in tags)
        lines.append(field_line(config["tags_col_name"], rendered))

    lines.append(field_line(config["status_col_name"], hl.status(status, status_alias(config, status))))
    lines.append("")

    for number, note in enumerate(task.notes(), start=1):
        heading = (
            hl.dim(" Note #") + hl.count(str(number)) + hl.dim(", on ")
            + hl.date(friendly_date(note.creation_date))
        )
        if note.last_modification_date != note.creation_date:
            heading += hl.dim(", edited on ") + hl.date(friendly_date(note.last_modification_date))
        lines.append(heading)
        lines.append(note.content.strip())
        lines.append("")

    return lines


def describe_event(uid: int, event: Event, config: dict, hl: Highlighter) -> str:
    """One human-readable sentence for *event*."""
    if isinstance(event, Created):
        return f"{hl.dim('Task created with uid')} {uid}"
    if isinstance(event, StatusChanged):
        return f"{hl.dim('Status changed to')} {hl.status(event.status, status_alias(config, event.status))}"
    if isinstance(event, NoteAdded):
        return f"{hl.dim('Note added')} {event.content.strip()}"
    if isinstance(event, NoteReplaced):
        number = hl.count(str(event.note_index + 1))
        return f"{hl.dim('Note')} {number} {hl.dim('updated')} {event.content.strip()}"
    if isinstance(event, ProjectSet):
        if not event.project:
            return hl.dim("Project cleared")
        return f"{hl.dim('Project set to')} {hl.project(event.project)}"
    if isinstance(event, PrioritySet):
        label = hl.priority(event.priority, PRIORITY_LABELS[event.priority])
        return f"{hl.dim('Priority set to')} {label}"
    if isinstance(event, TagAdded):
        return f"{hl.dim('Tag added #')}{hl.tag(event.tag)}"
    raise TypeError(f"Not an event: {event!r}")


def render_history(
    uid: int,
    task: Task,
    config: dict | None = None,
    highlighter: Highlighter | None = None,
) -> list[str]:
    config = config if config is not None else default_config()
    hl = highlighter or PlainHighlighter()
    return [
        f"{hl.date(friendly_date(event.ts))}: {describe_event(uid, event, config, hl)}"
        for event in task.history
    ]
