"""Listing query pipeline: status, metadata and description filters plus sorting."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from toodoux.core.events import Status, utc_now
from toodoux.core.metadata import Metadata, split_words
from toodoux.core.tasks import Task

# ---------------------------------------------------------------------------
# Status filter
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StatusFilter:
    """Four independent inclusion flags, one per status.

    No defaulting happens here: a filter with every flag unset matches
    nothing.  Callers wanting "active tasks" ask for :meth:`active`.
    """

    todo: bool = False
    ongoing: bool = False
    done: bool = False
    cancelled: bool = False

    @classmethod
    def active(cls) -> StatusFilter:
        return cls(todo=True, ongoing=True)

    @classmethod
    def all(cls) -> StatusFilter:
        return cls(todo=True, ongoing=True, done=True, cancelled=True)

    def is_empty(self) -> bool:
        return not (self.todo or self.ongoing or self.done or self.cancelled)

    def matches(self, status: Status) -> bool:
        return {
            Status.TODO: self.todo,
            Status.ONGOING: self.ongoing,
            Status.DONE: self.done,
            Status.CANCELLED: self.cancelled,
        }[status]


# ---------------------------------------------------------------------------
# Description filter
# ---------------------------------------------------------------------------


class TaskDescriptionFilter:
    """A set of words that must all appear in a task description.

    Matching is order-independent; each filter word is credited at most
    once.  In case-insensitive mode both sides are case-folded.
    """

    def __init__(self, words: Iterable[str] = (), case_insensitive: bool = False) -> None:
        self.case_insensitive = case_insensitive
        self._terms: list[str] = []
        seen: set[str] = set()
        for word in words:
            for term in split_words(word):
                key = self._key(term)
                if key not in seen:
                    seen.add(key)
                    self._terms.append(term)

    def _key(self, word: str) -> str:
        return word.casefold() if self.case_insensitive else word

    def is_empty(self) -> bool:
        return not self._terms

    def terms(self) -> list[str]:
        """Search terms in the order they were given."""
        return list(self._terms)

    def matches(self, description: str) -> bool:
        remaining = {self._key(t) for t in self._terms}
        for word in split_words(description):
            if not remaining:
                break
            remaining.discard(self._key(word))
        return not remaining


# ---------------------------------------------------------------------------
# Sorting
# ---------------------------------------------------------------------------


def sort_key(uid: int, task: Task, now: datetime) -> tuple:
    """Composite key, sorted in descending order by :func:`filtered_listing`.

    Tasks without a priority rank below every prioritized task.  The UID is
    the final component, which makes the order total.
    """
    priority = task.priority()
    return (
        priority.rank if priority is not None else -1,
        task.age(now=now),
        task.status().rank,
        uid,
    )


def filtered_listing(
    tasks: Iterable[tuple[int, Task]],
    metadata: Iterable[Metadata] = (),
    name_filter: TaskDescriptionFilter | None = None,
    status_filter: StatusFilter | None = None,
    case_insensitive: bool = False,
    *,
    now: datetime | None = None,
) -> list[tuple[int, Task]]:
    """Filter *tasks* by status, metadata and description, then sort them.

    ``status_filter`` defaults to :meth:`StatusFilter.all`; an empty
    ``metadata`` list and an empty or missing ``name_filter`` match
    everything.
    """
    metadata = list(metadata)
    status_filter = status_filter if status_filter is not None else StatusFilter.all()
    now = now or utc_now()

    selected = [
        (uid, task)
        for uid, task in tasks
        if status_filter.matches(task.status())
        and task.check_metadata(metadata, case_insensitive)
        and (name_filter is None or name_filter.matches(task.name))
    ]
    selected.sort(key=lambda item: sort_key(item[0], item[1], now), reverse=True)
    return selected
