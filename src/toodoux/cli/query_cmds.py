"""Read-only commands: list, show, history."""

from __future__ import annotations

import click

from toodoux.cli.helpers import (
    echo_lines,
    extract_metadata_or_exit,
    get_task_or_exit,
    json_envelope,
    make_highlighter,
    make_terminal,
    open_project,
    task_to_json,
)
from toodoux.cli.main import cli
from toodoux.core.events import event_to_dict, utc_now
from toodoux.core.filters import StatusFilter, TaskDescriptionFilter
from toodoux.core.metadata import Metadata, filter_like
from toodoux.render.details import render_details, render_history
from toodoux.render.layout import render_listing
from toodoux.render.theme import Highlighter


def describe_filters(
    metadata: list[Metadata], name_filter: TaskDescriptionFilter, hl: Highlighter
) -> str | None:
    """Echo line for the active filters, e.g. ``[ @p, +High ] [ contains: w ]``."""
    sections = []
    if metadata:
        sections.append(
            f"{hl.dim('[')} {', '.join(filter_like(md) for md in metadata)} {hl.dim(']')}"
        )
    if not name_filter.is_empty():
        sections.append(
            f"{hl.dim('[')} {hl.project('contains')}: {', '.join(name_filter.terms())} {hl.dim(']')}"
        )
    if not sections:
        return None
    return " ".join(sections)


# ---------------------------------------------------------------------------
# toodoux list
# ---------------------------------------------------------------------------


@cli.command("list")
@click.argument("filters", nargs=-1)
@click.option("-t", "--todo", is_flag=True, help="Include todo tasks.")
@click.option("-s", "--start", is_flag=True, help="Include ongoing tasks.")
@click.option("-d", "--done", is_flag=True, help="Include done tasks.")
@click.option("-c", "--cancelled", is_flag=True, help="Include cancelled tasks.")
@click.option("-a", "--all", "show_all", is_flag=True, help="Include every status.")
@click.option("-C", "--case-insensitive", is_flag=True, help="Ignore case in filters.")
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
def list_cmd(
    filters: tuple[str, ...] | None,
    todo: bool,
    start: bool,
    done: bool,
    cancelled: bool,
    show_all: bool,
    case_insensitive: bool,
    output_json: bool,
) -> None:
    """List tasks, by default the todo and ongoing ones.

    FILTERS are metadata (@project, +priority, #tag) and words that must all
    appear in the description.
    """
    is_json = output_json
    metadata, text = extract_metadata_or_exit(filters or (), is_json)
    name_filter = TaskDescriptionFilter(text.split(" ") if text else (), case_insensitive)

    if show_all:
        status_filter = StatusFilter.all()
    else:
        status_filter = StatusFilter(todo=todo, ongoing=start, done=done, cancelled=cancelled)
        if status_filter.is_empty():
            status_filter = StatusFilter.active()

    _root, config, registry = open_project(is_json)
    now = utc_now()
    listing = registry.filtered_listing(
        metadata, name_filter, status_filter, case_insensitive, now=now
    )

    if is_json:
        click.echo(json_envelope(True, data=[task_to_json(uid, task, now) for uid, task in listing]))
        return

    hl = make_highlighter(config)
    echo = describe_filters(metadata, name_filter, hl)
    if echo is not None:
        click.echo(echo)
    echo_lines(render_listing(listing, config, hl, make_terminal(), now=now))


# ---------------------------------------------------------------------------
# toodoux show
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("uid")
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
def show(uid: str, output_json: bool) -> None:
    """Show a task's details and notes."""
    is_json = output_json
    _root, config, registry = open_project(is_json)
    task_uid, task = get_task_or_exit(registry, uid, is_json)

    if is_json:
        click.echo(json_envelope(True, data=task_to_json(task_uid, task, utc_now())))
        return
    echo_lines(render_details(task_uid, task, config, make_highlighter(config)))


# ---------------------------------------------------------------------------
# toodoux history
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("uid")
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
def history(uid: str, output_json: bool) -> None:
    """Show every recorded event of a task, oldest first."""
    is_json = output_json
    _root, config, registry = open_project(is_json)
    task_uid, task = get_task_or_exit(registry, uid, is_json)

    if is_json:
        events = [event_to_dict(event) for event in task.history]
        click.echo(json_envelope(True, data={"uid": task_uid, "events": events}))
        return
    echo_lines(render_history(task_uid, task, config, make_highlighter(config)))
