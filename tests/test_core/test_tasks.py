"""Tests for toodoux.core.tasks: event appends and replayed state."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from toodoux.core.events import (
    Created,
    NoteAdded,
    NoteReplaced,
    Priority,
    PrioritySet,
    ProjectSet,
    Status,
    StatusChanged,
    TagAdded,
)
from toodoux.core.metadata import PriorityMeta, Project, Tag
from toodoux.core.tasks import Task, UnknownNoteError, replay

T0 = datetime(2024, 3, 1, 9, 0, 0, tzinfo=timezone.utc)


def _at(**delta: float) -> datetime:
    return T0 + timedelta(**delta)


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


class TestCreate:
    def test_history_is_created_then_todo(self) -> None:
        task = Task.create("Buy milk", ts=T0)
        assert [type(e) for e in task.history] == [Created, StatusChanged]
        assert task.history[1].status is Status.TODO
        assert all(e.ts == T0 for e in task.history)

    def test_fresh_task_state(self) -> None:
        task = Task.create("Buy milk", ts=T0)
        assert task.name == "Buy milk"
        assert task.status() is Status.TODO
        assert task.creation_date() == T0
        assert task.project() is None
        assert task.priority() is None
        assert task.tags() == []
        assert task.notes() == []
        assert task.age(now=T0) == timedelta(0)
        assert task.spent_time(now=_at(hours=1)) == timedelta(0)

    def test_event_ids_are_unique(self) -> None:
        task = Task.create("x", ts=T0)
        assert task.history[0].id != task.history[1].id
        assert task.history[0].id.startswith("ev_")

    def test_status_defaults_to_todo_without_status_events(self) -> None:
        task = Task("x", [Created(T0)])
        assert task.status() is Status.TODO


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


class TestMutations:
    def test_change_name_appends_nothing(self) -> None:
        task = Task.create("old", ts=T0)
        before = list(task.history)
        task.change_name("new")
        assert task.name == "new"
        assert task.history == before

    def test_change_status_is_never_a_noop(self) -> None:
        task = Task.create("x", ts=T0)
        task.change_status(Status.TODO, ts=_at(seconds=1))
        assert len(task.history) == 3
        assert task.status() is Status.TODO

    def test_status_transitions_are_unrestricted(self) -> None:
        task = Task.create("x", ts=T0)
        for minutes, status in enumerate(
            [Status.DONE, Status.TODO, Status.CANCELLED, Status.ONGOING], start=1
        ):
            task.change_status(status, ts=_at(minutes=minutes))
            assert task.status() is status

    def test_last_project_and_priority_win(self) -> None:
        task = Task.create("x", ts=T0)
        task.set_project("a", ts=_at(seconds=1))
        task.set_project("b", ts=_at(seconds=2))
        task.set_priority(Priority.LOW, ts=_at(seconds=3))
        task.set_priority(Priority.CRITICAL, ts=_at(seconds=4))
        assert task.project() == "b"
        assert task.priority() is Priority.CRITICAL

    def test_empty_project_clears_it(self) -> None:
        task = Task.create("x", ts=T0)
        task.set_project("a")
        task.set_project("")
        assert task.project() is None
        assert isinstance(task.history[-1], ProjectSet)

    def test_tags_keep_duplicates_and_order(self) -> None:
        task = Task.create("x", ts=T0)
        for tag in ["b", "a", "b"]:
            task.add_tag(tag)
        assert task.tags() == ["b", "a", "b"]

    def test_apply_metadata_in_order(self) -> None:
        task = Task.create("x", ts=T0)
        task.apply_metadata(
            [Project("groceries"), PriorityMeta(Priority.HIGH), Tag("errand")], ts=_at(seconds=1)
        )
        assert [type(e) for e in task.history[2:]] == [ProjectSet, PrioritySet, TagAdded]
        assert task.project() == "groceries"
        assert task.priority() is Priority.HIGH
        assert task.tags() == ["errand"]


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------


class TestNotes:
    def test_add_note(self) -> None:
        task = Task.create("x", ts=T0)
        task.add_note("call first", ts=_at(minutes=1))
        notes = task.notes()
        assert len(notes) == 1
        assert notes[0].content == "call first"
        assert notes[0].creation_date == notes[0].last_modification_date == _at(minutes=1)

    def test_replace_note_keeps_creation_date(self) -> None:
        task = Task.create("x", ts=T0)
        task.add_note("call first", ts=_at(minutes=1))
        task.replace_note(0, "call first, bring wallet", ts=_at(minutes=2))
        notes = task.notes()
        assert len(notes) == 1
        assert notes[0].content == "call first, bring wallet"
        assert notes[0].creation_date == _at(minutes=1)
        assert notes[0].last_modification_date == _at(minutes=2)
        assert notes[0].last_modification_date > notes[0].creation_date

    def test_index_counts_note_added_events_only(self) -> None:
        task = Task.create("x", ts=T0)
        task.add_note("first")
        task.add_tag("t")
        task.add_note("second")
        task.replace_note(1, "second, edited")
        task.replace_note(1, "second, edited twice")
        assert [n.content for n in task.notes()] == ["first", "second, edited twice"]

    @pytest.mark.parametrize("index", [1, 5, -1])
    def test_replace_unknown_note_fails_without_mutation(self, index: int) -> None:
        task = Task.create("x", ts=T0)
        task.add_note("only")
        before = list(task.history)
        with pytest.raises(UnknownNoteError):
            task.replace_note(index, "nope")
        assert task.history == before

    def test_replay_reports_dangling_replacement(self) -> None:
        history = [Created(T0), NoteReplaced(T0, 0, "orphan")]
        with pytest.raises(UnknownNoteError):
            replay(history)


# ---------------------------------------------------------------------------
# Spent time
# ---------------------------------------------------------------------------


class TestSpentTime:
    def test_closed_interval(self) -> None:
        task = Task.create("x", ts=T0)
        task.change_status(Status.ONGOING, ts=_at(minutes=10))
        task.change_status(Status.DONE, ts=_at(minutes=40))
        assert task.spent_time(now=_at(days=3)) == timedelta(minutes=30)

    def test_open_interval_counts_until_now(self) -> None:
        task = Task.create("x", ts=T0)
        task.change_status(Status.ONGOING, ts=_at(minutes=10))
        assert task.spent_time(now=_at(minutes=25)) == timedelta(minutes=15)

    def test_several_intervals_add_up(self) -> None:
        task = Task.create("x", ts=T0)
        task.change_status(Status.ONGOING, ts=_at(minutes=0))
        task.change_status(Status.TODO, ts=_at(minutes=5))
        task.change_status(Status.ONGOING, ts=_at(minutes=20))
        task.change_status(Status.CANCELLED, ts=_at(minutes=30))
        assert task.spent_time(now=_at(hours=5)) == timedelta(minutes=15)

    def test_reentering_ongoing_restarts_interval(self) -> None:
        task = Task.create("x", ts=T0)
        task.change_status(Status.ONGOING, ts=_at(minutes=0))
        task.change_status(Status.ONGOING, ts=_at(minutes=10))
        task.change_status(Status.DONE, ts=_at(minutes=12))
        assert task.spent_time(now=_at(hours=1)) == timedelta(minutes=2)

    def test_leaving_non_ongoing_credits_nothing(self) -> None:
        task = Task.create("x", ts=T0)
        task.change_status(Status.DONE, ts=_at(minutes=5))
        task.change_status(Status.CANCELLED, ts=_at(minutes=9))
        assert task.spent_time(now=_at(hours=1)) == timedelta(0)

    def test_never_negative(self) -> None:
        task = Task.create("x", ts=T0)
        task.change_status(Status.ONGOING, ts=_at(minutes=10))
        task.change_status(Status.DONE, ts=_at(minutes=5))
        assert task.spent_time(now=_at(minutes=1)) == timedelta(0)


# ---------------------------------------------------------------------------
# Metadata matching
# ---------------------------------------------------------------------------


class TestCheckMetadata:
    @pytest.fixture()
    def task(self) -> Task:
        task = Task.create("x", ts=T0)
        task.apply_metadata([Project("Home"), PriorityMeta(Priority.HIGH), Tag("Errand"), Tag("car")])
        return task

    def test_empty_criteria_match(self, task: Task) -> None:
        assert task.check_metadata([])

    def test_all_criteria_must_match(self, task: Task) -> None:
        assert task.check_metadata([Project("Home"), PriorityMeta(Priority.HIGH), Tag("car")])
        assert not task.check_metadata([Project("Home"), PriorityMeta(Priority.LOW)])

    def test_case_sensitivity(self, task: Task) -> None:
        assert not task.check_metadata([Project("home")])
        assert task.check_metadata([Project("home")], case_insensitive=True)
        assert task.check_metadata([Tag("errand")], case_insensitive=True)
        assert not task.check_metadata([Tag("errand")])

    def test_task_without_project_never_matches_project(self) -> None:
        task = Task.create("x", ts=T0)
        assert not task.check_metadata([Project("Home")])


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


class TestTaskDict:
    def test_round_trip(self) -> None:
        task = Task.create("x", ts=T0)
        task.apply_metadata([Project("p"), Tag("t")], ts=_at(seconds=1))
        task.add_note("n", ts=_at(seconds=2))
        task.replace_note(0, "m", ts=_at(seconds=3))
        assert Task.from_dict(task.to_dict()) == task

    def test_history_must_start_with_created(self) -> None:
        data = Task("x", [StatusChanged(T0, Status.TODO)]).to_dict()
        with pytest.raises(ValueError, match="created"):
            Task.from_dict(data)

    def test_dangling_note_replacement_is_rejected(self) -> None:
        data = Task("x", [Created(T0), NoteReplaced(T0, 0, "orphan")]).to_dict()
        with pytest.raises(ValueError, match="unknown note"):
            Task.from_dict(data)

    def test_note_added_content_survives(self) -> None:
        data = Task("x", [Created(T0), NoteAdded(T0, "hello")]).to_dict()
        assert Task.from_dict(data).notes()[0].content == "hello"
