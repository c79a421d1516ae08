"""Shared CLI helpers and output utilities."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import NoReturn

import click

from toodoux.core.config import ConfigError, load_config
from toodoux.core.events import format_ts
from toodoux.core.ids import parse_uid
from toodoux.core.metadata import (
    Metadata,
    MetadataParsingError,
    MetadataValidationError,
    from_words,
    validate,
)
from toodoux.core.tasks import Task
from toodoux.render.term import DefaultTerminal, Terminal
from toodoux.render.theme import Highlighter, ThemeHighlighter
from toodoux.storage.fs import RootError, config_path, is_initialized, resolve_root
from toodoux.storage.registry import StoreError, TaskRegistry

APP_NAME = "toodoux"
LOG_LEVEL_ENV = "TOODOUX_LOG"


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


class ClickEchoHandler(logging.Handler):
    """Send log records to stderr through :func:`click.echo`.

    The stream is looked up on every record, so output follows whatever
    stderr is current (including a test runner's capture).
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            click.echo(self.format(record), err=True)
        except Exception:
            self.handleError(record)


def setup_logging(level: str | None) -> None:
    """Attach the stderr handler to the ``toodoux`` logger once."""
    logger = logging.getLogger(APP_NAME)
    if not any(isinstance(h, ClickEchoHandler) for h in logger.handlers):
        handler = ClickEchoHandler()
        handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        logger.addHandler(handler)
        logger.propagate = False
    logger.setLevel((level or "WARNING").upper())


# ---------------------------------------------------------------------------
# Root & config
# ---------------------------------------------------------------------------


def root_from_context(is_json: bool = False) -> Path:
    """Resolve the root directory from ``--root``, the environment or the app dir."""
    ctx = click.get_current_context()
    explicit = (ctx.find_root().obj or {}).get("root")
    try:
        return resolve_root(explicit, click.get_app_dir(APP_NAME))
    except RootError as e:
        output_error(str(e), "INVALID_ROOT", is_json)


def require_root(is_json: bool = False) -> Path:
    """Find an initialized root directory or exit with error."""
    root = root_from_context(is_json)
    if not is_initialized(root):
        output_error(
            f"No toodoux configuration in {root}. Run 'toodoux init' first.",
            "NOT_INITIALIZED",
            is_json,
        )
    return root


def load_project_config(root: Path, is_json: bool = False) -> dict:
    """Load and validate config.json from the root directory."""
    path = config_path(root)
    try:
        return dict(load_config(path.read_text(encoding="utf-8")))
    except OSError as e:
        output_error(f"Cannot read {path}: {e}", "INVALID_CONFIG", is_json)
    except ConfigError as e:
        output_error(f"{path}: {e}", "INVALID_CONFIG", is_json)


def tasks_path(root: Path, config: dict) -> Path:
    return root / config["tasks_file"]


def load_registry(root: Path, config: dict, is_json: bool = False) -> TaskRegistry:
    try:
        return TaskRegistry.load(tasks_path(root, config))
    except StoreError as e:
        output_error(str(e), "STORE_ERROR", is_json)


def save_registry(registry: TaskRegistry, root: Path, config: dict, is_json: bool = False) -> None:
    try:
        registry.save(tasks_path(root, config))
    except StoreError as e:
        output_error(str(e), "STORE_ERROR", is_json)


def open_project(is_json: bool = False) -> tuple[Path, dict, TaskRegistry]:
    """Resolve the root, load its config and its task registry."""
    root = require_root(is_json)
    config = load_project_config(root, is_json)
    return root, config, load_registry(root, config, is_json)


# ---------------------------------------------------------------------------
# Rendering collaborators
# ---------------------------------------------------------------------------


def make_highlighter(config: dict) -> Highlighter:
    # click.echo strips the styles again when stdout is not a terminal.
    return ThemeHighlighter(config.get("colors"))


def make_terminal() -> Terminal:
    return DefaultTerminal()


def echo_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


# ---------------------------------------------------------------------------
# Input parsing
# ---------------------------------------------------------------------------


def parse_uid_or_exit(raw: str, is_json: bool = False) -> int:
    try:
        return parse_uid(raw)
    except ValueError as e:
        output_error(str(e), "INVALID_ID", is_json)


def get_task_or_exit(
    registry: TaskRegistry, raw_uid: str, is_json: bool = False, what: str = "task"
) -> tuple[int, Task]:
    """Resolve a UID argument to a live task or exit with NOT_FOUND."""
    uid = parse_uid_or_exit(raw_uid, is_json)
    task = registry.get(uid)
    if task is None:
        output_error(f"missing or unknown {what}: {uid}", "NOT_FOUND", is_json)
    return uid, task


def extract_metadata_or_exit(
    words: tuple[str, ...] | list[str], is_json: bool = False
) -> tuple[list[Metadata], str]:
    """Split words into validated metadata and the remaining text."""
    try:
        metadata, text = from_words(words)
        validate(metadata)
    except (MetadataParsingError, MetadataValidationError) as e:
        output_error(f"metadata validation error: {e}", "INVALID_METADATA", is_json)
    return metadata, text


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------


def json_envelope(ok: bool, *, data: object = None, error: object = None) -> str:
    """Build a structured JSON output envelope."""
    result: dict = {"ok": ok}
    if data is not None:
        result["data"] = data
    if error is not None:
        result["error"] = error
    return json.dumps(result, sort_keys=True, indent=2) + "\n"


def json_error_obj(code: str, message: str) -> dict:
    """Build an error object for the JSON envelope."""
    return {"code": code, "message": message}


def output_error(message: str, code: str, is_json: bool, exit_code: int = 1) -> NoReturn:
    """Print error and exit. JSON errors go to stdout; human errors to stderr."""
    if is_json:
        click.echo(json_envelope(False, error=json_error_obj(code, message)))
    else:
        click.echo(f"Error: {message}", err=True)
    raise SystemExit(exit_code)


def output_result(*, data: object, human_message: str, is_json: bool) -> None:
    """Print success result in the appropriate format."""
    if is_json:
        click.echo(json_envelope(True, data=data))
    else:
        click.echo(human_message)


def task_to_json(uid: int, task: Task, now: datetime) -> dict:
    """Compact, JSON-ready view of a task's derived state."""
    priority = task.priority()
    return {
        "uid": uid,
        "name": task.name,
        "status": task.status().value,
        "project": task.project(),
        "priority": priority.value if priority is not None else None,
        "tags": task.tags(),
        "created_at": format_ts(task.creation_date()),
        "age_seconds": int(task.age(now=now).total_seconds()),
        "spent_seconds": int(task.spent_time(now=now).total_seconds()),
        "notes": [
            {
                "created_at": format_ts(note.creation_date),
                "modified_at": format_ts(note.last_modification_date),
                "content": note.content,
            }
            for note in task.notes()
        ],
    }
