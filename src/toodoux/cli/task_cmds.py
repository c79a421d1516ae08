"""Task write commands: add, edit, status changes, remove."""

from __future__ import annotations

import click

from toodoux.cli.editor import NoteEditError, edit_note
from toodoux.cli.helpers import (
    echo_lines,
    extract_metadata_or_exit,
    get_task_or_exit,
    json_envelope,
    make_highlighter,
    make_terminal,
    open_project,
    output_error,
    output_result,
    save_registry,
    task_to_json,
)
from toodoux.cli.main import cli
from toodoux.core.events import Status, utc_now
from toodoux.core.tasks import Task
from toodoux.render.layout import render_listing

# ---------------------------------------------------------------------------
# toodoux add
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("words", nargs=-1, required=True)
@click.option("--start", is_flag=True, help="Create the task as ongoing.")
@click.option("--done", is_flag=True, help="Create the task as done.")
@click.option("-n", "--note", "with_note", is_flag=True, help="Write a first note in the editor.")
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
def add(words: tuple[str, ...], start: bool, done: bool, with_note: bool, output_json: bool) -> None:
    """Add a task. Words starting with @, + or # are metadata.

    Example: toodoux add Buy milk @groceries +h #errand
    """
    is_json = output_json
    if start and done:
        output_error("--start and --done are mutually exclusive.", "INVALID_ARGS", is_json)

    metadata, name = extract_metadata_or_exit(words, is_json)
    if not name:
        output_error("a task needs a description", "INVALID_ARGS", is_json)

    root, config, registry = open_project(is_json)

    task = Task.create(name)
    task.apply_metadata(metadata)
    if start:
        task.change_status(Status.ONGOING)
    elif done:
        task.change_status(Status.DONE)

    if with_note:
        try:
            task.add_note(edit_note(config, task, with_history=False))
        except NoteEditError as e:
            output_error(f"cannot add note: {e}", "INVALID_NOTE", is_json)

    uid = registry.register(task)
    save_registry(registry, root, config, is_json)

    if is_json:
        click.echo(json_envelope(True, data=task_to_json(uid, task, utc_now())))
    else:
        echo_lines(render_listing([(uid, task)], config, make_highlighter(config), make_terminal()))


# ---------------------------------------------------------------------------
# toodoux edit
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("uid")
@click.argument("words", nargs=-1, required=True)
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
def edit(uid: str, words: tuple[str, ...], output_json: bool) -> None:
    """Apply metadata to a task, and rename it if plain words remain."""
    is_json = output_json
    metadata, name = extract_metadata_or_exit(words, is_json)

    root, config, registry = open_project(is_json)
    task_uid, task = get_task_or_exit(registry, uid, is_json)

    task.apply_metadata(metadata)
    if name:
        task.change_name(name)
    save_registry(registry, root, config, is_json)

    output_result(
        data=task_to_json(task_uid, task, utc_now()),
        human_message=f"Updated task {task_uid}",
        is_json=is_json,
    )


# ---------------------------------------------------------------------------
# toodoux todo / start / done / cancel
# ---------------------------------------------------------------------------


def _register_status_command(name: str, status: Status, help_text: str) -> None:
    @cli.command(name=name, help=help_text)
    @click.argument("uid")
    @click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
    def _command(uid: str, output_json: bool) -> None:
        is_json = output_json
        root, config, registry = open_project(is_json)
        task_uid, task = get_task_or_exit(registry, uid, is_json)

        task.change_status(status)
        save_registry(registry, root, config, is_json)

        output_result(
            data=task_to_json(task_uid, task, utc_now()),
            human_message=f"Task {task_uid} is now {status.value}",
            is_json=is_json,
        )


_register_status_command("todo", Status.TODO, "Move a task back to todo.")
_register_status_command("start", Status.ONGOING, "Start working on a task.")
_register_status_command("done", Status.DONE, "Mark a task as done.")
_register_status_command("cancel", Status.CANCELLED, "Cancel a task.")


# ---------------------------------------------------------------------------
# toodoux remove
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("uid")
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
def remove(uid: str, output_json: bool) -> None:
    """Remove a task and its whole history from the registry."""
    is_json = output_json
    root, config, registry = open_project(is_json)
    task_uid, task = get_task_or_exit(registry, uid, is_json)

    registry.remove(task_uid)
    save_registry(registry, root, config, is_json)

    output_result(
        data={"uid": task_uid, "name": task.name},
        human_message=f"Removed task {task_uid}",
        is_json=is_json,
    )
