"""Compose notes in the user's editor.

The buffer optionally starts with the task's previous notes, followed by a
marker line; only the text below the marker becomes the note.
"""

from __future__ import annotations

import logging

import click

from toodoux.core.tasks import Task
from toodoux.render.durations import friendly_date

logger = logging.getLogger(__name__)

PREVIOUS_NOTES_HELP_END_MARKER = "---------------------- >8 ----------------------\n"


class NoteEditError(ValueError):
    """The edited buffer cannot be turned into a note."""


class EmptyNoteError(NoteEditError):
    def __init__(self) -> None:
        super().__init__("the note was empty; nothing added")


def build_buffer(task: Task, with_history: bool, prefill: str = "") -> str:
    """Text shown in the editor before the user types anything."""
    if not with_history:
        return prefill

    blocks = []
    for number, note in enumerate(task.notes(), start=1):
        heading = f"> Note #{number}, on {friendly_date(note.creation_date)}"
        if note.last_modification_date != note.creation_date:
            heading += f", modified on {friendly_date(note.last_modification_date)}"
        blocks.append(f"{heading}\n{note.content}")

    buffer = "\n\n".join(blocks)
    if blocks:
        buffer += "\n\n"
    buffer += "> Above are the previously recorded notes. You are free to tamper with them if you want.\n"
    buffer += "> You can add the content of your note under the following line. However, do not remove this line!\n"
    buffer += PREVIOUS_NOTES_HELP_END_MARKER
    buffer += prefill
    return buffer


def extract_note(edited: str | None, with_history: bool) -> str:
    """Pull the note out of an edited buffer.

    Raises :class:`EmptyNoteError` when nothing was written (or the editor
    was closed without saving) and :class:`NoteEditError` when the marker
    line was removed.
    """
    if edited is None:
        raise EmptyNoteError()

    content = edited
    if with_history:
        index = edited.find(PREVIOUS_NOTES_HELP_END_MARKER)
        if index < 0:
            raise NoteEditError("the marker line was removed; note discarded")
        content = edited[index + len(PREVIOUS_NOTES_HELP_END_MARKER):]

    content = content.strip()
    if not content:
        raise EmptyNoteError()
    return content


def edit_note(config: dict, task: Task, with_history: bool, prefill: str = "") -> str:
    """Open the editor and return the new note text."""
    editor = config.get("interactive_editor")
    logger.debug("editing note via %s", editor or "$EDITOR")
    edited = click.edit(
        build_buffer(task, with_history, prefill),
        editor=editor,
        extension=".md",
        require_save=True,
    )
    return extract_note(edited, with_history)
