"""Task registry: UID allocation, persistence and queries."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, Iterator

from toodoux.core.filters import StatusFilter, TaskDescriptionFilter, filtered_listing
from toodoux.core.ids import UidAllocator
from toodoux.core.metadata import Metadata
from toodoux.core.tasks import Task
from toodoux.storage.fs import atomic_write

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class StoreError(Exception):
    """Base class for task store failures."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")


class StoreOpenError(StoreError):
    """The store exists but cannot be read."""


class StoreDecodeError(StoreError):
    """The store was read but its content is not a valid registry."""


class StoreSaveError(StoreError):
    """The registry could not be serialized or written."""


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TaskRegistry:
    """All known tasks, keyed by UID.

    There is no locking: the registry is loaded once per process and saved
    once, and concurrent processes overwrite each other's changes.
    """

    def __init__(self, tasks: dict[int, Task] | None = None, next_uid: int = 0) -> None:
        self._uids = UidAllocator(next_uid)
        self._tasks: dict[int, Task] = dict(tasks or {})

    @property
    def next_uid(self) -> int:
        return self._uids.next_uid

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, uid: object) -> bool:
        return uid in self._tasks

    # -- persistence --------------------------------------------------------

    @classmethod
    def load(cls, path: Path) -> TaskRegistry:
        """Load the registry stored at *path*.

        A missing file yields an empty registry.  Any other failure raises a
        :class:`StoreError` subclass; an existing store is never replaced by
        an empty registry.
        """
        if not path.exists():
            logger.debug("no task store at %s, starting empty", path)
            return cls()

        try:
            raw = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise StoreOpenError(path, f"cannot read task store: {exc}") from exc

        try:
            registry = cls.from_dict(json.loads(raw))
        except ValueError as exc:
            # json.JSONDecodeError is a ValueError too.
            raise StoreDecodeError(path, f"cannot decode task store: {exc}") from exc

        logger.debug("loaded %d tasks from %s", len(registry), path)
        return registry

    def save(self, path: Path) -> None:
        """Serialize the whole registry and atomically replace *path*."""
        try:
            content = self.serialize()
        except (TypeError, ValueError) as exc:
            raise StoreSaveError(path, f"cannot serialize tasks: {exc}") from exc
        try:
            atomic_write(path, content)
        except OSError as exc:
            raise StoreSaveError(path, f"cannot write task store: {exc}") from exc
        logger.debug("saved %d tasks to %s", len(self), path)

    def serialize(self) -> str:
        """Pretty-print the registry as sorted JSON with trailing newline."""
        return json.dumps(self.to_dict(), sort_keys=True, indent=2) + "\n"

    def to_dict(self) -> dict:
        return {
            "next_uid": self.next_uid,
            "tasks": {str(uid): task.to_dict() for uid, task in self._tasks.items()},
        }

    @classmethod
    def from_dict(cls, data: object) -> TaskRegistry:
        """Build a registry from :meth:`to_dict` output. Raises ValueError."""
        if not isinstance(data, dict):
            raise ValueError("task store must be a JSON object")
        next_uid = data.get("next_uid")
        if not isinstance(next_uid, int) or isinstance(next_uid, bool) or next_uid < 0:
            raise ValueError(f"'next_uid' must be a non-negative integer, got {next_uid!r}")
        raw_tasks = data.get("tasks")
        if not isinstance(raw_tasks, dict):
            raise ValueError("'tasks' must be an object")

        tasks: dict[int, Task] = {}
        for key, raw_task in raw_tasks.items():
            if not (key.isascii() and key.isdigit()):
                raise ValueError(f"invalid task UID {key!r}")
            uid = int(key)
            if uid >= next_uid:
                raise ValueError(f"task UID {uid} is not below next_uid {next_uid}")
            try:
                tasks[uid] = Task.from_dict(raw_task)
            except ValueError as exc:
                raise ValueError(f"task {uid}: {exc}") from None
        return cls(tasks, next_uid)

    # -- access -------------------------------------------------------------

    def register(self, task: Task) -> int:
        """Insert *task* under a freshly allocated UID and return it."""
        uid = self._uids.allocate()
        self._tasks[uid] = task
        logger.debug("registered task %d", uid)
        return uid

    def get(self, uid: int) -> Task | None:
        """Return the live task for *uid*, or ``None``."""
        return self._tasks.get(uid)

    def remove(self, uid: int) -> Task | None:
        """Drop *uid* from the registry. Its UID is never handed out again."""
        return self._tasks.pop(uid, None)

    def tasks(self) -> Iterator[tuple[int, Task]]:
        """Iterate over ``(uid, task)`` pairs in UID order."""
        for uid in sorted(self._tasks):
            yield uid, self._tasks[uid]

    # -- bulk operations and queries ----------------------------------------

    def rename_project(
        self, old_name: str, new_name: str, *, ts: datetime | None = None
    ) -> list[int]:
        """Move every task currently in *old_name* to *new_name*.

        Appends one ``ProjectSet`` event per matching task (exact match on
        the current project) and returns the affected UIDs in UID order.
        """
        renamed: list[int] = []
        for uid, task in self.tasks():
            if task.project() == old_name:
                task.set_project(new_name, ts=ts)
                renamed.append(uid)
        logger.debug("renamed project %r -> %r on %d tasks", old_name, new_name, len(renamed))
        return renamed

    def filtered_listing(
        self,
        metadata: Iterable[Metadata],
        name_filter: TaskDescriptionFilter | None,
        status_filter: StatusFilter,
        case_insensitive: bool = False,
        *,
        now: datetime | None = None,
    ) -> list[tuple[int, Task]]:
        """Filter and sort the registry's tasks for display."""
        return filtered_listing(
            self.tasks(),
            metadata,
            name_filter,
            status_filter,
            case_insensitive,
            now=now,
        )
