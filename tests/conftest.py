"""Shared test fixtures."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner


@pytest.fixture()
def toodoux_root(tmp_path: Path) -> Path:
    """Return a temporary directory suitable for ``toodoux init``."""
    return tmp_path / "toodoux"


@pytest.fixture()
def initialized_root(toodoux_root: Path) -> Path:
    """Return a root directory that already holds a default config.json."""
    from toodoux.core.config import default_config, serialize_config
    from toodoux.storage.fs import atomic_write, config_path

    toodoux_root.mkdir(parents=True, exist_ok=True)
    atomic_write(config_path(toodoux_root), serialize_config(default_config()))
    return toodoux_root


@pytest.fixture()
def cli_runner() -> CliRunner:
    """Return a Click CliRunner for invoking CLI commands."""
    return CliRunner()


@pytest.fixture()
def cli_env(initialized_root: Path) -> dict[str, str]:
    """Return env dict with TOODOUX_ROOT pointing to initialized_root.

    COLUMNS gives the listing renderer a known terminal width.
    """
    return {"TOODOUX_ROOT": str(initialized_root), "COLUMNS": "80", "TOODOUX_LOG": "WARNING"}


@pytest.fixture()
def invoke(cli_runner: CliRunner, cli_env: dict[str, str]):
    """Return a helper that invokes CLI commands with the right environment.

    Usage::

        result = invoke("add", "Buy", "milk", "@groceries")
    """
    from toodoux.cli.main import cli

    def _invoke(*args: str, **kwargs):
        return cli_runner.invoke(cli, list(args), env=cli_env, **kwargs)

    return _invoke


@pytest.fixture()
def invoke_json(invoke):
    """Like invoke, but appends --json and parses the response.

    Returns (parsed_dict, exit_code) tuple.
    """

    def _invoke_json(*args: str) -> tuple[dict, int]:
        result = invoke(*args, "--json")
        parsed = json.loads(result.stdout)
        return parsed, result.exit_code

    return _invoke_json


@pytest.fixture()
def create_task(invoke_json):
    """Factory fixture: add a task through the CLI and return its JSON view.

    Usage::

        task = create_task("Buy milk", "+h")
    """

    def _create(*words: str) -> dict:
        parsed, code = invoke_json("add", *(words or ("Test", "task")))
        assert code == 0, f"add failed: {parsed}"
        return parsed["data"]

    return _create


@pytest.fixture()
def read_store(initialized_root: Path):
    """Return a helper that reads the raw tasks.json as a dict."""

    def _read() -> dict:
        return json.loads((initialized_root / "tasks.json").read_text())

    return _read
