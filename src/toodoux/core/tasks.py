"""Task entity: an append-only event history with derived state.

Every observable attribute of a task except its ``name`` is a pure function
of ``history`` and is recomputed by a full replay on each accessor call.
``name`` is the one stored field: ``change_name`` overwrites it in place and
records no event, so a rename leaves no trace in the history.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Iterable

from toodoux.core.events import (
    EVENT_CLASSES,
    Created,
    Event,
    NoteAdded,
    NoteReplaced,
    Priority,
    PrioritySet,
    ProjectSet,
    Status,
    StatusChanged,
    TagAdded,
    event_from_dict,
    event_to_dict,
    utc_now,
)
from toodoux.core.metadata import Metadata, PriorityMeta, Project, Tag

__all__ = ["Note", "Priority", "Status", "Task", "UnknownNoteError"]


class UnknownNoteError(LookupError):
    """Raised when a note index does not refer to a prior ``NoteAdded`` event."""

    def __init__(self, note_index: int, note_count: int) -> None:
        self.note_index = note_index
        self.note_count = note_count
        super().__init__(f"unknown note {note_index} (task has {note_count} notes)")


@dataclass
class Note:
    creation_date: datetime
    last_modification_date: datetime
    content: str


# ---------------------------------------------------------------------------
# Replay
# ---------------------------------------------------------------------------


@dataclass
class _Snapshot:
    """State accumulated while replaying a history, oldest event first."""

    creation_date: datetime | None = None
    status: Status = Status.TODO
    project: str | None = None
    priority: Priority | None = None
    tags: list[str] = field(default_factory=list)
    notes: list[Note] = field(default_factory=list)
    spent: timedelta = field(default_factory=timedelta)
    ongoing_since: datetime | None = None


# Handler registry: maps an event class to a function(snap, event) that
# mutates the snapshot in place.  Every event class must have a handler.
_REPLAY_HANDLERS: dict[type, Callable[[_Snapshot, Event], None]] = {}


def _register_replay(cls: type):  # noqa: ANN202
    """Decorator that registers the replay handler for event class *cls*."""

    def decorator(fn):  # noqa: ANN001, ANN202
        _REPLAY_HANDLERS[cls] = fn
        return fn

    return decorator


@_register_replay(Created)
def _replay_created(snap: _Snapshot, event: Created) -> None:
    snap.creation_date = event.ts


@_register_replay(StatusChanged)
def _replay_status_changed(snap: _Snapshot, event: StatusChanged) -> None:
    if event.status is Status.ONGOING:
        # Re-entering Ongoing restarts the open interval without crediting it.
        snap.ongoing_since = event.ts
    elif snap.ongoing_since is not None:
        snap.spent += event.ts - snap.ongoing_since
        snap.ongoing_since = None
    snap.status = event.status


@_register_replay(NoteAdded)
def _replay_note_added(snap: _Snapshot, event: NoteAdded) -> None:
    snap.notes.append(Note(event.ts, event.ts, event.content))


@_register_replay(NoteReplaced)
def _replay_note_replaced(snap: _Snapshot, event: NoteReplaced) -> None:
    if event.note_index >= len(snap.notes):
        raise UnknownNoteError(event.note_index, len(snap.notes))
    note = snap.notes[event.note_index]
    note.last_modification_date = event.ts
    note.content = event.content


@_register_replay(ProjectSet)
def _replay_project_set(snap: _Snapshot, event: ProjectSet) -> None:
    snap.project = event.project or None


@_register_replay(PrioritySet)
def _replay_priority_set(snap: _Snapshot, event: PrioritySet) -> None:
    snap.priority = event.priority


@_register_replay(TagAdded)
def _replay_tag_added(snap: _Snapshot, event: TagAdded) -> None:
    snap.tags.append(event.tag)


if set(_REPLAY_HANDLERS) != set(EVENT_CLASSES):
    raise RuntimeError("Replay handlers out of sync with event classes")


def replay(history: Iterable[Event]) -> _Snapshot:
    """Fold *history* into a snapshot.

    Raises :class:`UnknownNoteError` if a ``NoteReplaced`` event refers to a
    note that does not exist at that point of the history.
    """
    snap = _Snapshot()
    for event in history:
        handler = _REPLAY_HANDLERS.get(type(event))
        if handler is None:
            raise TypeError(f"Not an event: {event!r}")
        handler(snap, event)
    return snap


# ---------------------------------------------------------------------------
# Task
# ---------------------------------------------------------------------------


@dataclass
class Task:
    name: str
    history: list[Event] = field(default_factory=list)

    @classmethod
    def create(cls, name: str, *, ts: datetime | None = None) -> Task:
        """Create a task whose history is ``[Created, StatusChanged(TODO)]``."""
        ts = ts or utc_now()
        return cls(name, [Created(ts), StatusChanged(ts, Status.TODO)])

    # -- mutations ----------------------------------------------------------

    def change_name(self, name: str) -> None:
        """Overwrite the name. Not event-sourced: no history entry is added."""
        self.name = name

    def change_status(self, status: Status, *, ts: datetime | None = None) -> None:
        """Append a status change, even when *status* is the current one."""
        self.history.append(StatusChanged(ts or utc_now(), status))

    def add_note(self, content: str, *, ts: datetime | None = None) -> None:
        self.history.append(NoteAdded(ts or utc_now(), content))

    def replace_note(self, note_index: int, content: str, *, ts: datetime | None = None) -> None:
        """Replace the note at zero-based *note_index*.

        Raises :class:`UnknownNoteError` and leaves the history untouched if
        no such note exists.
        """
        count = len(self.notes())
        if note_index < 0 or note_index >= count:
            raise UnknownNoteError(note_index, count)
        self.history.append(NoteReplaced(ts or utc_now(), note_index, content))

    def set_project(self, project: str, *, ts: datetime | None = None) -> None:
        """Set the project. An empty name clears it from now on."""
        self.history.append(ProjectSet(ts or utc_now(), project))

    def set_priority(self, priority: Priority, *, ts: datetime | None = None) -> None:
        self.history.append(PrioritySet(ts or utc_now(), priority))

    def add_tag(self, tag: str, *, ts: datetime | None = None) -> None:
        self.history.append(TagAdded(ts or utc_now(), tag))

    def apply_metadata(self, metadata: Iterable[Metadata], *, ts: datetime | None = None) -> None:
        """Apply each metadata value in order. Does not validate the batch."""
        for md in metadata:
            if isinstance(md, Project):
                self.set_project(md.name, ts=ts)
            elif isinstance(md, PriorityMeta):
                self.set_priority(md.priority, ts=ts)
            elif isinstance(md, Tag):
                self.add_tag(md.name, ts=ts)
            else:
                raise TypeError(f"Not a metadata value: {md!r}")

    # -- derived state ------------------------------------------------------

    def creation_date(self) -> datetime:
        created = replay(self.history).creation_date
        if created is None:
            raise RuntimeError(f"Task {self.name!r} has no creation event")
        return created

    def status(self) -> Status:
        return replay(self.history).status

    def project(self) -> str | None:
        return replay(self.history).project

    def priority(self) -> Priority | None:
        return replay(self.history).priority

    def tags(self) -> list[str]:
        return replay(self.history).tags

    def notes(self) -> list[Note]:
        return replay(self.history).notes

    def age(self, *, now: datetime | None = None) -> timedelta:
        return (now or utc_now()) - self.creation_date()

    def spent_time(self, *, now: datetime | None = None) -> timedelta:
        """Total time spent in ONGOING, including a still-open interval."""
        snap = replay(self.history)
        spent = snap.spent
        if snap.status is Status.ONGOING and snap.ongoing_since is not None:
            spent += (now or utc_now()) - snap.ongoing_since
        return max(spent, timedelta(0))

    def check_metadata(self, criteria: Iterable[Metadata], case_insensitive: bool = False) -> bool:
        """Return True if the task satisfies every criterion."""
        snap = replay(self.history)

        def same(a: str, b: str) -> bool:
            if case_insensitive:
                return a.casefold() == b.casefold()
            return a == b

        for md in criteria:
            if isinstance(md, Project):
                if snap.project is None or not same(snap.project, md.name):
                    return False
            elif isinstance(md, PriorityMeta):
                if snap.priority is not md.priority:
                    return False
            elif isinstance(md, Tag):
                if not any(same(tag, md.name) for tag in snap.tags):
                    return False
            else:
                raise TypeError(f"Not a metadata value: {md!r}")
        return True

    # -- serialization ------------------------------------------------------

    def to_dict(self) -> dict:
        return {"name": self.name, "history": [event_to_dict(e) for e in self.history]}

    @classmethod
    def from_dict(cls, data: dict) -> Task:
        """Decode a task written by :meth:`to_dict`.

        Raises ``ValueError`` on malformed input, including a history that
        does not start with a ``created`` event or that replaces a note
        which does not exist.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Task must be an object, got {type(data).__name__}")
        name = data.get("name")
        if not isinstance(name, str):
            raise ValueError("Task 'name' must be a string")
        raw_history = data.get("history")
        if not isinstance(raw_history, list):
            raise ValueError("Task 'history' must be a list")

        history = [event_from_dict(record) for record in raw_history]
        if not history or not isinstance(history[0], Created):
            raise ValueError(f"Task {name!r} history must start with a 'created' event")
        if sum(isinstance(e, Created) for e in history) != 1:
            raise ValueError(f"Task {name!r} history has more than one 'created' event")
        try:
            replay(history)
        except UnknownNoteError as exc:
            raise ValueError(f"Task {name!r}: {exc}") from None
        return cls(name, history)
