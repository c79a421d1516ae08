"""Atomic file writes and root directory discovery."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

TOODOUX_ROOT_ENV = "TOODOUX_ROOT"
CONFIG_FILE = "config.json"


class RootError(Exception):
    """Raised when the toodoux root directory cannot be used."""


def _fsync_directory(path: Path) -> None:
    """Fsync a directory to ensure metadata (e.g. renames) is durable.

    Some platforms (notably macOS HFS+) may not support fsync on directory
    file descriptors, so ``OSError`` is silently ignored.
    """
    try:
        fd = os.open(str(path), os.O_RDONLY)
        try:
            os.fsync(fd)
        finally:
            os.close(fd)
    except OSError:
        pass


def atomic_write(path: Path, content: str | bytes) -> None:
    """Write content to path atomically via temp file + fsync + rename.

    The temp file is created in the same directory as the target so that
    ``os.replace()`` stays on one filesystem.

    Raises:
        FileNotFoundError: If the parent directory does not exist.
    """
    parent = path.parent
    if not parent.is_dir():
        raise FileNotFoundError(f"Parent directory does not exist: {parent}")

    data = content.encode("utf-8") if isinstance(content, str) else content

    fd, tmp_path = tempfile.mkstemp(dir=parent, prefix=".tmp.")
    closed = False
    try:
        # os.write() can short-write; loop until all bytes are flushed.
        mv = memoryview(data)
        while mv:
            written = os.write(fd, mv)
            mv = mv[written:]
        os.fsync(fd)
        os.close(fd)
        closed = True
        os.replace(tmp_path, path)
        _fsync_directory(parent)
    except BaseException:
        if not closed:
            os.close(fd)
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def resolve_root(explicit: str | Path | None, default: str | Path) -> Path:
    """Pick the toodoux root directory.

    Order: *explicit* (the ``--root`` option), then ``TOODOUX_ROOT``, then
    *default* (the per-user application directory).  The directory does not
    have to exist yet; ``toodoux init`` creates it.

    Raises:
        RootError: If the chosen path exists but is not a directory, or if
            ``TOODOUX_ROOT`` is set but empty.
    """
    if explicit is not None:
        path = Path(explicit)
    else:
        env_root = os.environ.get(TOODOUX_ROOT_ENV)
        if env_root is not None:
            if not env_root:
                raise RootError(f"{TOODOUX_ROOT_ENV} is set but empty")
            path = Path(env_root)
        else:
            path = Path(default)

    if path.exists() and not path.is_dir():
        raise RootError(f"Toodoux root is not a directory: {path}")
    return path


def config_path(root: Path) -> Path:
    return root / CONFIG_FILE


def is_initialized(root: Path) -> bool:
    return config_path(root).is_file()
