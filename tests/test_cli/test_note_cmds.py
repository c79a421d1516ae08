"""Tests for `toodoux note add` / `toodoux note edit` and the editor buffer."""

from __future__ import annotations

import json
from pathlib import Path

import click
import pytest

from toodoux.cli.editor import (
    PREVIOUS_NOTES_HELP_END_MARKER,
    EmptyNoteError,
    NoteEditError,
    build_buffer,
    extract_note,
)
from toodoux.core.tasks import Task


class FakeEditor:
    """Stands in for :func:`click.edit`, recording what it was given."""

    def __init__(self, reply=None, append: str | None = None) -> None:
        self.reply = reply
        self.append = append
        self.calls: list[tuple[str, dict]] = []

    def __call__(self, text, **kwargs):
        self.calls.append((text, kwargs))
        if self.append is not None:
            return text + self.append
        return self.reply


@pytest.fixture()
def editor(monkeypatch: pytest.MonkeyPatch):
    def _install(**kwargs) -> FakeEditor:
        fake = FakeEditor(**kwargs)
        monkeypatch.setattr(click, "edit", fake)
        return fake

    return _install


# ---------------------------------------------------------------------------
# Buffer handling
# ---------------------------------------------------------------------------


class TestEditorBuffer:
    def test_without_history_is_prefill(self) -> None:
        task = Task.create("x")
        assert build_buffer(task, with_history=False, prefill="draft") == "draft"

    def test_with_history_lists_previous_notes(self) -> None:
        task = Task.create("x")
        task.add_note("first")
        task.add_note("second")
        buffer = build_buffer(task, with_history=True)
        assert buffer.index("> Note #1") < buffer.index("first") < buffer.index("> Note #2")
        assert buffer.endswith(PREVIOUS_NOTES_HELP_END_MARKER)

    def test_extract_below_marker(self) -> None:
        edited = "anything\n" + PREVIOUS_NOTES_HELP_END_MARKER + "\n  new note \n"
        assert extract_note(edited, with_history=True) == "new note"

    def test_extract_without_history_keeps_everything(self) -> None:
        assert extract_note("  line one\nline two\n", with_history=False) == "line one\nline two"

    @pytest.mark.parametrize("edited", [None, "", "   \n"])
    def test_empty(self, edited) -> None:
        with pytest.raises(EmptyNoteError):
            extract_note(edited, with_history=False)

    def test_marker_removed(self) -> None:
        with pytest.raises(NoteEditError, match="marker"):
            extract_note("no marker here", with_history=True)


# ---------------------------------------------------------------------------
# note add
# ---------------------------------------------------------------------------


class TestNoteAdd:
    def test_adds_note_below_history(self, create_task, invoke, invoke_json, editor) -> None:
        create_task("Buy", "milk")
        fake = editor(append="call first\n")
        result = invoke("note", "add", "0")
        assert result.exit_code == 0, result.stderr
        assert "Added note #1 to task 0" in result.stdout

        text, kwargs = fake.calls[0]
        assert PREVIOUS_NOTES_HELP_END_MARKER in text
        assert kwargs["extension"] == ".md"
        assert kwargs["require_save"] is True

        parsed, _ = invoke_json("show", "0")
        assert [n["content"] for n in parsed["data"]["notes"]] == ["call first"]

    def test_no_history(self, create_task, invoke, editor) -> None:
        create_task("Buy", "milk")
        fake = editor(reply="  plain note \n")
        result = invoke("note", "add", "0", "--no-history")
        assert result.exit_code == 0
        text, _ = fake.calls[0]
        assert PREVIOUS_NOTES_HELP_END_MARKER not in text

    def test_config_can_disable_history(
        self, create_task, invoke, editor, initialized_root: Path
    ) -> None:
        config_file = initialized_root / "config.json"
        config = json.loads(config_file.read_text())
        config["previous_notes_help"] = False
        config["interactive_editor"] = "nano"
        config_file.write_text(json.dumps(config))

        create_task("Buy", "milk")
        fake = editor(reply="note")
        assert invoke("note", "add", "0").exit_code == 0
        text, kwargs = fake.calls[0]
        assert PREVIOUS_NOTES_HELP_END_MARKER not in text
        assert kwargs["editor"] == "nano"

    def test_empty_note_aborts(self, create_task, invoke, read_store, editor) -> None:
        create_task("Buy", "milk")
        before = read_store()
        editor(reply=None)
        result = invoke("note", "add", "0")
        assert result.exit_code == 1
        assert "the note was empty" in result.stderr
        assert read_store() == before

    def test_removed_marker_aborts(self, create_task, invoke_json, read_store, editor) -> None:
        create_task("Buy", "milk")
        before = read_store()
        editor(reply="I deleted everything")
        parsed, code = invoke_json("note", "add", "0")
        assert code == 1
        assert parsed["error"]["code"] == "INVALID_NOTE"
        assert read_store() == before

    def test_unknown_task(self, invoke, editor) -> None:
        fake = editor(reply="x")
        result = invoke("note", "add", "4")
        assert result.exit_code == 1
        assert fake.calls == []


# ---------------------------------------------------------------------------
# note edit
# ---------------------------------------------------------------------------


class TestNoteEdit:
    def test_replaces_note(self, create_task, invoke, invoke_json, editor) -> None:
        create_task("Buy", "milk")
        editor(reply="call first")
        invoke("note", "add", "0", "--no-history")

        fake = editor(reply="call first, bring wallet")
        result = invoke("note", "edit", "0", "1", "--no-history")
        assert result.exit_code == 0, result.stderr
        assert "Updated note #1 of task 0" in result.stdout
        assert fake.calls[0][0] == "call first"

        notes = invoke_json("show", "0")[0]["data"]["notes"]
        assert len(notes) == 1
        assert notes[0]["content"] == "call first, bring wallet"
        assert notes[0]["modified_at"] > notes[0]["created_at"]

    def test_history_prefills_below_marker(self, create_task, invoke, editor) -> None:
        create_task("Buy", "milk")
        editor(reply="old text")
        invoke("note", "add", "0", "--no-history")

        fake = editor(reply=None)
        invoke("note", "edit", "0", "1")
        text, _ = fake.calls[0]
        assert text.endswith(PREVIOUS_NOTES_HELP_END_MARKER + "old text")

    def test_unknown_note_number(self, create_task, invoke_json, editor) -> None:
        create_task("Buy", "milk")
        fake = editor(reply="x")
        parsed, code = invoke_json("note", "edit", "0", "3")
        assert code == 1
        assert parsed["error"]["code"] == "NOT_FOUND"
        assert "no note #3" in parsed["error"]["message"]
        assert fake.calls == []

    def test_note_numbers_start_at_one(self, create_task, invoke) -> None:
        create_task("Buy", "milk")
        result = invoke("note", "edit", "0", "0")
        assert result.exit_code == 2

    def test_empty_edit_keeps_note(self, create_task, invoke, read_store, editor) -> None:
        create_task("Buy", "milk")
        editor(reply="keep me")
        invoke("note", "add", "0", "--no-history")
        before = read_store()

        editor(reply="   ")
        result = invoke("note", "edit", "0", "1", "--no-history")
        assert result.exit_code == 1
        assert read_store() == before

    def test_unchanged_note_records_no_event(
        self, create_task, invoke, invoke_json, read_store, editor
    ) -> None:
        create_task("Buy", "milk")
        editor(reply="keep me")
        invoke("note", "add", "0", "--no-history")
        before = read_store()

        editor(reply="keep me\n")
        result = invoke("note", "edit", "0", "1", "--no-history")
        assert result.exit_code == 0
        assert "Note #1 of task 0 is unchanged" in result.stdout
        assert read_store() == before

        editor(reply="  keep me ")
        parsed, code = invoke_json("note", "edit", "0", "1", "--no-history")
        assert code == 0
        assert parsed["data"]["changed"] is False
        assert read_store() == before
