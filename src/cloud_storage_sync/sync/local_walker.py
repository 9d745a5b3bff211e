"""Lazy enumeration of regular files (and, on request, directories) under a local root."""

from __future__ import annotations

import logging
import os
import stat
from enum import Enum
from pathlib import Path
from typing import Iterator

from ..config.settings import SyncConfig
from ..errors import LocalIoError, UnsupportedSymlinkError
from .sync_types import LocalDirectory, LocalEntry

logger = logging.getLogger(__name__)


class SymlinkPolicy(str, Enum):
    """What the walker does when it meets a symlink."""

    ERROR = "error"
    FOLLOW = "follow"


def _stat(path: Path, follow: bool) -> os.stat_result:
    try:
        return path.stat() if follow else path.lstat()
    except OSError as e:
        raise LocalIoError(path, f"Cannot stat: {e}") from e


def _list_children(directory: Path) -> list:
    try:
        return sorted(directory.iterdir(), key=lambda p: p.name)
    except OSError as e:
        raise LocalIoError(directory, f"Cannot list directory: {e}") from e

def _entry(root_is_file: bool, path: Path, relative: str, st: os.stat_result, chunk_size: int) -> LocalEntry:
    return LocalEntry(
        relative_path="" if root_is_file else relative,
        absolute_path=path,
        size=st.st_size,
        mtime=st.st_mtime,
        chunk_size=chunk_size,
    )


def walk_local(
    root: Path,
    symlinks: SymlinkPolicy = SymlinkPolicy.ERROR,
    chunk_size: int = SyncConfig.CHUNK_SIZE,
) -> Iterator[LocalEntry]:
    """Yield a LocalEntry for every regular file under ``root``.

    A missing root yields nothing. A root that is a file yields a single entry
    with relative path ``""``. Directories are traversed but never yielded.

    Raises:
        UnsupportedSymlinkError: symlink found under SymlinkPolicy.ERROR
        LocalIoError: unreadable directory, dangling link, or directory cycle
    """
    root = Path(root)
    follow = symlinks is SymlinkPolicy.FOLLOW

    if not os.path.lexists(root):
        logger.debug(f"Local root does not exist, nothing to enumerate: {root}")
        return

    root_stat = _stat(root, follow=False)
    if stat.S_ISLNK(root_stat.st_mode):
        if not follow:
            raise UnsupportedSymlinkError(root)
        root_stat = _stat(root, follow=True)

    if stat.S_ISREG(root_stat.st_mode):
        yield _entry(True, root, "", root_stat, chunk_size)
        return
    if not stat.S_ISDIR(root_stat.st_mode):
        raise LocalIoError(root, "Local root is neither a file nor a directory")

    # Real paths of directories on the current descent, for cycle detection
    yield from _walk_dir(root, "", {os.path.realpath(root)}, follow, chunk_size)


def _walk_dir(
    directory: Path,
    relative: str,
    ancestors: set,
    follow: bool,
    chunk_size: int,
) -> Iterator[LocalEntry]:
    for child in _list_children(directory):
        child_rel = f"{relative}/{child.name}" if relative else child.name
        st = _stat(child, follow=False)

        if stat.S_ISLNK(st.st_mode):
            if not follow:
                raise UnsupportedSymlinkError(child)
            st = _stat(child, follow=True)

        if stat.S_ISDIR(st.st_mode):
            real = os.path.realpath(child)
            if real in ancestors:
                raise LocalIoError(child, "Symlink cycle detected")
            yield from _walk_dir(child, child_rel, ancestors | {real}, follow, chunk_size)
        elif stat.S_ISREG(st.st_mode):
            yield _entry(False, child, child_rel, st, chunk_size)
        else:
            logger.warning(f"Skipping special file (not a regular file): {child}")


def walk_local_dirs(root: Path, symlinks: SymlinkPolicy = SymlinkPolicy.ERROR) -> Iterator[LocalDirectory]:
    """Yield every directory below ``root``, flagging the empty ones.

    The root itself is never yielded, and a root that is a file or missing
    has no directories. Symlinks follow the same policy as walk_local.
    """
    root = Path(root)
    follow = symlinks is SymlinkPolicy.FOLLOW

    if not os.path.lexists(root):
        return
    if root.is_symlink() and not follow:
        raise UnsupportedSymlinkError(root)
    if not stat.S_ISDIR(_stat(root, follow=True).st_mode):
        return

    yield from _walk_subdirs(root, "", {os.path.realpath(root)}, follow)


def _walk_subdirs(directory: Path, relative: str, ancestors: set, follow: bool) -> Iterator[LocalDirectory]:
    for child in _list_children(directory):
        st = _stat(child, follow=False)
        if stat.S_ISLNK(st.st_mode):
            if not follow:
                raise UnsupportedSymlinkError(child)
            st = _stat(child, follow=True)
        if not stat.S_ISDIR(st.st_mode):
            continue

        real = os.path.realpath(child)
        if real in ancestors:
            raise LocalIoError(child, "Symlink cycle detected")
        child_rel = f"{relative}/{child.name}" if relative else child.name
        yield LocalDirectory(child_rel, child, is_empty=not _list_children(child))
        yield from _walk_subdirs(child, child_rel, ancestors | {real}, follow)
