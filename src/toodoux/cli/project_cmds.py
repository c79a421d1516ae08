"""Project commands."""

from __future__ import annotations

import click

from toodoux.cli.helpers import open_project, output_result, save_registry
from toodoux.cli.main import cli


@cli.group()
def project() -> None:
    """Manage projects."""


@project.command("rename")
@click.argument("current_project")
@click.argument("new_project")
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
def project_rename(current_project: str, new_project: str, output_json: bool) -> None:
    """Move every task of CURRENT_PROJECT to NEW_PROJECT."""
    is_json = output_json
    root, config, registry = open_project(is_json)

    renamed = registry.rename_project(current_project, new_project)
    if renamed:
        save_registry(registry, root, config, is_json)
        message = f"updated {len(renamed)} tasks"
    else:
        message = "no task for this project"

    output_result(data={"renamed": renamed}, human_message=message, is_json=is_json)
