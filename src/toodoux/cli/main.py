"""CLI entry point and commands."""

from __future__ import annotations

import click

from toodoux.cli.helpers import (
    LOG_LEVEL_ENV,
    output_result,
    root_from_context,
    setup_logging,
)
from toodoux.core.config import default_config, serialize_config
from toodoux.storage.fs import atomic_write, config_path, is_initialized

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@click.group(invoke_without_command=True)
@click.option(
    "--root",
    "root",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory holding config.json and the task store.",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    envvar=LOG_LEVEL_ENV,
    default="WARNING",
    show_default=True,
    help="Verbosity of diagnostics written to stderr.",
)
@click.pass_context
def cli(ctx: click.Context, root: str | None, log_level: str) -> None:
    """Toodoux: a task, todo and note manager.

    Without a subcommand, lists active (todo and ongoing) tasks.
    """
    setup_logging(log_level)
    ctx.ensure_object(dict)
    ctx.obj["root"] = root

    if ctx.invoked_subcommand is None:
        from toodoux.cli.query_cmds import list_cmd

        ctx.invoke(list_cmd)


@cli.command()
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
def init(output_json: bool) -> None:
    """Create the configuration directory and a default config.json."""
    is_json = output_json
    root = root_from_context(is_json)
    path = config_path(root)

    if is_initialized(root):
        output_result(
            data={"root": str(root), "created": False},
            human_message=f"Toodoux already initialized in {root}",
            is_json=is_json,
        )
        return

    try:
        root.mkdir(parents=True, exist_ok=True)
        atomic_write(path, serialize_config(default_config()))
    except PermissionError:
        raise click.ClickException(f"Permission denied: cannot create {path}")
    except OSError as e:
        raise click.ClickException(f"Failed to initialize toodoux: {e}")

    output_result(
        data={"root": str(root), "created": True},
        human_message=f"Toodoux initialized in {root}",
        is_json=is_json,
    )


# ---------------------------------------------------------------------------
# Register command modules (must be after cli group is defined)
# ---------------------------------------------------------------------------
from toodoux.cli import task_cmds as _task_cmds  # noqa: E402, F401
from toodoux.cli import query_cmds as _query_cmds  # noqa: E402, F401
from toodoux.cli import note_cmds as _note_cmds  # noqa: E402, F401
from toodoux.cli import project_cmds as _project_cmds  # noqa: E402, F401

if __name__ == "__main__":
    cli()
