"""Exception hierarchy for sync runs."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .sync.sync_types import SyncResult


class SyncError(Exception):
    """Base class for every error raised by the sync engine."""


class PathError(SyncError, ValueError):
    """Invalid relative path, or one that escapes its root."""

    def __init__(self, path: Any, message: str = "invalid path"):
        self.path = path
        super().__init__(f"{message}: {path!r}")


class LocalIoError(SyncError):
    """Filesystem failure on the local side."""

    def __init__(self, path: Optional[Path], message: str):
        self.path = path
        super().__init__(f"{message} ({path})" if path is not None else message)


class UnsupportedSymlinkError(LocalIoError):
    """A symlink was found while the walk policy forbids symlinks."""

    def __init__(self, path: Path):
        super().__init__(path, "symlink encountered and symlink policy is 'error'")


class RemoteError(SyncError):
    """Failure reported by the object store."""

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        transient: bool = False,
        category: Any = None,
    ):
        self.key = key
        self.transient = transient
        self.category = category
        super().__init__(message)


class VerificationError(SyncError):
    """Checksum after transfer does not match the expected checksum."""

    def __init__(self, target: str, expected: Optional[str], actual: Optional[str]):
        self.target = target
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"checksum mismatch for {target}: expected {expected}, got {actual}"
        )


class PlanError(SyncError):
    """Listings cannot be joined into a consistent plan."""


class PartialSyncError(SyncError):
    """Raised on request when a sync finished with failed operations."""

    def __init__(self, result: "SyncResult"):
        self.result = result
        super().__init__(
            f"{len(result.failures)} operation(s) failed, "
            f"{result.succeeded} succeeded"
        )
