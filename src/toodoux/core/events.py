"""Event types, timestamps, and the event wire codec.

A task's history is an append-only list of these events.  The seven event
classes form a closed union (``Event``); every derivation over a history
dispatches on the concrete class and treats an unknown class as a bug.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, ClassVar, Union

from toodoux.core.ids import generate_event_id, validate_event_id

TS_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


# ---------------------------------------------------------------------------
# Payload enums
# ---------------------------------------------------------------------------


class Status(Enum):
    """Task status, declared in sort order."""

    TODO = "todo"
    ONGOING = "ongoing"
    DONE = "done"
    CANCELLED = "cancelled"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)

    @property
    def is_active(self) -> bool:
        return self in (Status.TODO, Status.ONGOING)


class Priority(Enum):
    """Task priority, declared in sort order (lowest first)."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _PRIORITY_ORDER.index(self)


_STATUS_ORDER: tuple[Status, ...] = tuple(Status)
_PRIORITY_ORDER: tuple[Priority, ...] = tuple(Priority)


# ---------------------------------------------------------------------------
# Event variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Created:
    TYPE: ClassVar[str] = "created"

    ts: datetime
    id: str = field(default_factory=generate_event_id)


@dataclass(frozen=True)
class StatusChanged:
    TYPE: ClassVar[str] = "status_changed"

    ts: datetime
    status: Status
    id: str = field(default_factory=generate_event_id)


@dataclass(frozen=True)
class NoteAdded:
    TYPE: ClassVar[str] = "note_added"

    ts: datetime
    content: str
    id: str = field(default_factory=generate_event_id)


@dataclass(frozen=True)
class NoteReplaced:
    """Replaces the note at ``note_index``.

    The index is the zero-based occurrence index among ``NoteAdded`` events
    of the same history.
    """

    TYPE: ClassVar[str] = "note_replaced"

    ts: datetime
    note_index: int
    content: str
    id: str = field(default_factory=generate_event_id)


@dataclass(frozen=True)
class ProjectSet:
    """Sets the project; an empty name clears it."""

    TYPE: ClassVar[str] = "project_set"

    ts: datetime
    project: str
    id: str = field(default_factory=generate_event_id)


@dataclass(frozen=True)
class PrioritySet:
    TYPE: ClassVar[str] = "priority_set"

    ts: datetime
    priority: Priority
    id: str = field(default_factory=generate_event_id)


@dataclass(frozen=True)
class TagAdded:
    TYPE: ClassVar[str] = "tag_added"

    ts: datetime
    tag: str
    id: str = field(default_factory=generate_event_id)


Event = Union[Created, StatusChanged, NoteAdded, NoteReplaced, ProjectSet, PrioritySet, TagAdded]

EVENT_CLASSES: tuple[type, ...] = (
    Created,
    StatusChanged,
    NoteAdded,
    NoteReplaced,
    ProjectSet,
    PrioritySet,
    TagAdded,
)

EVENT_TYPES: frozenset[str] = frozenset(cls.TYPE for cls in EVENT_CLASSES)


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_ts(ts: datetime) -> str:
    """Render *ts* as RFC 3339 UTC with microseconds and a ``Z`` suffix."""
    return ts.astimezone(timezone.utc).strftime(TS_FORMAT)


def parse_ts(raw: str) -> datetime:
    """Parse a timestamp written by :func:`format_ts`. Raises ValueError."""
    if not isinstance(raw, str):
        raise ValueError(f"Timestamp must be a string, got {type(raw).__name__}")
    return datetime.strptime(raw, TS_FORMAT).replace(tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Wire codec
# ---------------------------------------------------------------------------


def _enc_created(event: Created) -> dict:
    return {}


def _dec_created(data: dict) -> dict:
    return {}


def _enc_status_changed(event: StatusChanged) -> dict:
    return {"status": event.status.value}


def _dec_status_changed(data: dict) -> dict:
    return {"status": Status(data["status"])}


def _enc_note_added(event: NoteAdded) -> dict:
    return {"content": event.content}


def _dec_note_added(data: dict) -> dict:
    return {"content": _require_str(data, "content")}


def _enc_note_replaced(event: NoteReplaced) -> dict:
    return {"note_index": event.note_index, "content": event.content}


def _dec_note_replaced(data: dict) -> dict:
    index = data["note_index"]
    if not isinstance(index, int) or isinstance(index, bool) or index < 0:
        raise ValueError(f"note_index must be a non-negative integer, got {index!r}")
    return {"note_index": index, "content": _require_str(data, "content")}


def _enc_project_set(event: ProjectSet) -> dict:
    return {"project": event.project}


def _dec_project_set(data: dict) -> dict:
    return {"project": _require_str(data, "project")}


def _enc_priority_set(event: PrioritySet) -> dict:
    return {"priority": event.priority.value}


def _dec_priority_set(data: dict) -> dict:
    return {"priority": Priority(data["priority"])}


def _enc_tag_added(event: TagAdded) -> dict:
    return {"tag": event.tag}


def _dec_tag_added(data: dict) -> dict:
    return {"tag": _require_str(data, "tag")}


# event type -> (encode_payload, decode_payload)
_CODECS: dict[str, tuple[Callable[..., dict], Callable[[dict], dict]]] = {
    Created.TYPE: (_enc_created, _dec_created),
    StatusChanged.TYPE: (_enc_status_changed, _dec_status_changed),
    NoteAdded.TYPE: (_enc_note_added, _dec_note_added),
    NoteReplaced.TYPE: (_enc_note_replaced, _dec_note_replaced),
    ProjectSet.TYPE: (_enc_project_set, _dec_project_set),
    PrioritySet.TYPE: (_enc_priority_set, _dec_priority_set),
    TagAdded.TYPE: (_enc_tag_added, _dec_tag_added),
}

_CLASS_BY_TYPE: dict[str, type] = {cls.TYPE: cls for cls in EVENT_CLASSES}

if set(_CODECS) != EVENT_TYPES:
    raise RuntimeError(f"Event codecs out of sync: {sorted(EVENT_TYPES ^ set(_CODECS))}")


def event_to_dict(event: Event) -> dict:
    """Encode *event* as a JSON-ready dict."""
    encode, _ = _CODECS[event.TYPE]
    record = {"type": event.TYPE, "id": event.id, "ts": format_ts(event.ts)}
    record.update(encode(event))
    return record


def event_from_dict(record: dict) -> Event:
    """Decode a dict produced by :func:`event_to_dict`.

    Raises ``ValueError`` for unknown types or malformed payloads (missing
    keys are reported as ``ValueError`` too).
    """
    if not isinstance(record, dict):
        raise ValueError(f"Event must be an object, got {type(record).__name__}")
    etype = record.get("type")
    if not isinstance(etype, str) or etype not in _CODECS:
        raise ValueError(f"Unknown event type: {etype!r}")
    _, decode = _CODECS[etype]
    try:
        payload = decode(record)
        event_id = _require_str(record, "id")
        if not validate_event_id(event_id):
            raise ValueError(f"Malformed event id: {event_id!r}")
        ts = parse_ts(record["ts"])
    except KeyError as exc:
        raise ValueError(f"Event '{etype}' is missing field {exc.args[0]!r}") from None
    return _CLASS_BY_TYPE[etype](ts=ts, id=event_id, **payload)


def _require_str(data: dict, key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise ValueError(f"Field '{key}' must be a string, got {type(value).__name__}")
    return value
