"""Default config generation and validation."""

from __future__ import annotations

import json
import logging
from typing import TypedDict

import click

from toodoux.core.events import Status

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Raised for config values that cannot be used."""


class ColorStyle(TypedDict, total=False):
    fg: str
    bg: str
    bold: bool
    dim: bool
    underline: bool
    italic: bool
    strikethrough: bool


class ColorOverrides(TypedDict, total=False):
    status: dict[str, ColorStyle]
    priority: dict[str, ColorStyle]
    description: dict[str, ColorStyle]


class ToodouxConfig(TypedDict, total=False):
    schema_version: int
    tasks_file: str
    todo_alias: str
    wip_alias: str
    done_alias: str
    cancelled_alias: str
    uid_col_name: str
    age_col_name: str
    spent_col_name: str
    prio_col_name: str
    project_col_name: str
    tags_col_name: str
    notes_nb_col_name: str
    status_col_name: str
    description_col_name: str
    display_empty_cols: bool
    display_tags_listings: bool
    max_description_lines: int
    previous_notes_help: bool
    interactive_editor: str | None
    colors: ColorOverrides


def default_config() -> ToodouxConfig:
    """Return the default toodoux configuration.

    The returned dict, when serialized with :func:`serialize_config`,
    produces the canonical default config.json.
    """
    return {
        "schema_version": 1,
        "tasks_file": "tasks.json",
        "todo_alias": "TODO",
        "wip_alias": "WIP",
        "done_alias": "DONE",
        "cancelled_alias": "CANCELLED",
        "uid_col_name": "UID",
        "age_col_name": "Age",
        "spent_col_name": "Spent",
        "prio_col_name": "Prio",
        "project_col_name": "Project",
        "tags_col_name": "Tags",
        "notes_nb_col_name": "Notes",
        "status_col_name": "Status",
        "description_col_name": "Description",
        "display_empty_cols": False,
        "display_tags_listings": True,
        "max_description_lines": 2,
        "previous_notes_help": True,
        "interactive_editor": None,
        "colors": {},
    }


_STRING_KEYS: tuple[str, ...] = (
    "tasks_file",
    "todo_alias",
    "wip_alias",
    "done_alias",
    "cancelled_alias",
    "uid_col_name",
    "age_col_name",
    "spent_col_name",
    "prio_col_name",
    "project_col_name",
    "tags_col_name",
    "notes_nb_col_name",
    "status_col_name",
    "description_col_name",
)

_BOOL_KEYS: tuple[str, ...] = (
    "display_empty_cols",
    "display_tags_listings",
    "previous_notes_help",
)

COLOR_SECTIONS: dict[str, tuple[str, ...]] = {
    "status": ("todo", "ongoing", "done", "cancelled"),
    "priority": ("low", "medium", "high", "critical"),
    "description": ("todo", "ongoing", "done", "cancelled"),
}

_STYLE_FLAGS: tuple[str, ...] = ("bold", "dim", "underline", "italic", "strikethrough")


def serialize_config(config: ToodouxConfig | dict[str, object]) -> str:
    """Serialize a config dict to the canonical JSON format."""
    return json.dumps(config, sort_keys=True, indent=2) + "\n"


def load_config(raw: str) -> ToodouxConfig:
    """Parse a JSON config string, fill in defaults and validate it.

    This is a pure function (no I/O).  The CLI layer reads the file and
    passes the raw string here.  Raises :class:`ConfigError`.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid config JSON: {exc}") from None
    if not isinstance(data, dict):
        raise ConfigError("Config must be a JSON object")

    config = default_config()
    config.update(data)
    validate_config(config)
    logger.debug("loaded config with %d keys", len(data))
    return config


def validate_config(config: dict) -> None:
    """Raise :class:`ConfigError` if any known key holds an unusable value."""
    for key in _STRING_KEYS:
        if not isinstance(config.get(key), str) or not config[key]:
            raise ConfigError(f"'{key}' must be a non-empty string")

    for key in _BOOL_KEYS:
        if not isinstance(config.get(key), bool):
            raise ConfigError(f"'{key}' must be true or false")

    lines = config.get("max_description_lines")
    if not isinstance(lines, int) or isinstance(lines, bool) or lines < 1:
        raise ConfigError(f"'max_description_lines' must be an integer >= 1, got {lines!r}")

    editor = config.get("interactive_editor")
    if editor is not None and not isinstance(editor, str):
        raise ConfigError("'interactive_editor' must be a string or null")

    colors = config.get("colors")
    if colors is not None:
        _validate_colors(colors)


def _validate_colors(colors: object) -> None:
    if not isinstance(colors, dict):
        raise ConfigError("'colors' must be an object")
    for section, entries in colors.items():
        names = COLOR_SECTIONS.get(section)
        if names is None:
            raise ConfigError(f"Unknown color section '{section}'")
        if not isinstance(entries, dict):
            raise ConfigError(f"'colors.{section}' must be an object")
        for name, style in entries.items():
            where = f"colors.{section}.{name}"
            if name not in names:
                raise ConfigError(f"Unknown color entry '{where}'")
            if not isinstance(style, dict):
                raise ConfigError(f"'{where}' must be an object")
            for attr, value in style.items():
                if attr in ("fg", "bg"):
                    if not isinstance(value, str) or not _is_color(value):
                        raise ConfigError(f"'{where}.{attr}' must be a color name, got {value!r}")
                elif attr in _STYLE_FLAGS:
                    if not isinstance(value, bool):
                        raise ConfigError(f"'{where}.{attr}' must be true or false")
                else:
                    raise ConfigError(f"Unknown style attribute '{where}.{attr}'")


def _is_color(name: str) -> bool:
    try:
        click.style("", fg=name)
    except (TypeError, ValueError):
        return False
    return True


def status_alias(config: dict, status: Status) -> str:
    """Return the user-facing label for *status*."""
    key = {
        Status.TODO: "todo_alias",
        Status.ONGOING: "wip_alias",
        Status.DONE: "done_alias",
        Status.CANCELLED: "cancelled_alias",
    }[status]
    return config.get(key) or default_config()[key]
