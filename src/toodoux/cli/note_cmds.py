"""Note commands: add and edit notes through the editor."""

from __future__ import annotations

import click

from toodoux.cli.editor import NoteEditError, edit_note
from toodoux.cli.helpers import (
    get_task_or_exit,
    open_project,
    output_error,
    output_result,
    save_registry,
)
from toodoux.cli.main import cli
from toodoux.core.tasks import UnknownNoteError


@cli.group()
def note() -> None:
    """Add or edit task notes."""


def _with_history(config: dict, no_history: bool) -> bool:
    return not no_history and config["previous_notes_help"]


@note.command("add")
@click.argument("uid")
@click.option("--no-history", is_flag=True, help="Do not show previous notes in the editor.")
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
def note_add(uid: str, no_history: bool, output_json: bool) -> None:
    """Write a new note for a task."""
    is_json = output_json
    root, config, registry = open_project(is_json)
    task_uid, task = get_task_or_exit(registry, uid, is_json)

    try:
        content = edit_note(config, task, _with_history(config, no_history), prefill="\n")
    except NoteEditError as e:
        output_error(f"cannot add note: {e}", "INVALID_NOTE", is_json)

    task.add_note(content)
    save_registry(registry, root, config, is_json)

    number = len(task.notes())
    output_result(
        data={"uid": task_uid, "note": number, "content": content},
        human_message=f"Added note #{number} to task {task_uid}",
        is_json=is_json,
    )


@note.command("edit")
@click.argument("uid")
@click.argument("note_number", type=click.IntRange(min=1))
@click.option("--no-history", is_flag=True, help="Do not show previous notes in the editor.")
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
def note_edit(uid: str, note_number: int, no_history: bool, output_json: bool) -> None:
    """Rewrite note NOTE_NUMBER (starting at 1) of a task."""
    is_json = output_json
    root, config, registry = open_project(is_json)
    task_uid, task = get_task_or_exit(registry, uid, is_json)

    index = note_number - 1
    notes = task.notes()
    if index >= len(notes):
        output_error(
            f"task {task_uid} has no note #{note_number}", "NOT_FOUND", is_json
        )

    try:
        content = edit_note(
            config, task, _with_history(config, no_history), prefill=notes[index].content
        )
    except NoteEditError as e:
        output_error(f"cannot edit note: {e}", "INVALID_NOTE", is_json)

    if content == notes[index].content:
        output_result(
            data={"uid": task_uid, "note": note_number, "content": content, "changed": False},
            human_message=f"Note #{note_number} of task {task_uid} is unchanged",
            is_json=is_json,
        )
        return

    try:
        task.replace_note(index, content)
    except UnknownNoteError as e:
        output_error(str(e), "NOT_FOUND", is_json)

    save_registry(registry, root, config, is_json)
    output_result(
        data={"uid": task_uid, "note": note_number, "content": content, "changed": True},
        human_message=f"Updated note #{note_number} of task {task_uid}",
        is_json=is_json,
    )
