"""Typed contracts for local/cloud synchronization flows."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from pathlib import Path
from typing import Iterable, Optional, Union

from ..errors import PartialSyncError, SyncError
from .checksum import compute_file_checksum


class SyncDirection(str, Enum):
    """Direction selected for a sync operation."""

    LOCAL_TO_CLOUD = "local_to_cloud"
    CLOUD_TO_LOCAL = "cloud_to_local"


class JoinKind(str, Enum):
    """Which sides of the join hold an entry for a relative path."""

    LOCAL_ONLY = "local_only"
    REMOTE_ONLY = "remote_only"
    BOTH = "both"


class OperationKind(str, Enum):
    UPLOAD = "upload"
    DOWNLOAD = "download"
    DELETE = "delete"
    MKDIR = "mkdir"
    SKIP = "skip"


class SkipReason(str, Enum):
    CHECKSUM_MATCH = "checksum_match"
    DESTINATION_ONLY = "destination_only"


@dataclass(frozen=True)
class LocalEntry:
    """A regular file found under the local root.

    ``mtime`` is advisory and never used for skip decisions. The checksum is
    computed on first access and cached for the lifetime of the entry.
    """

    relative_path: str
    absolute_path: Path
    size: int
    mtime: float
    chunk_size: int = field(default=256 * 1024, compare=False, repr=False)

    @cached_property
    def checksum(self) -> str:
        return compute_file_checksum(self.absolute_path, self.chunk_size)


@dataclass(frozen=True)
class RemoteEntry:
    """An object found under the remote prefix."""

    key: str
    size: int
    checksum: Optional[str]
    generation: Optional[int] = None
    relative_path: str = ""

    @property
    def is_marker(self) -> bool:
        """Zero-byte "dir/" objects that stand for a directory."""
        return self.key.endswith("/")


@dataclass(frozen=True)
class LocalDirectory:
    relative_path: str
    absolute_path: Path
    is_empty: bool


@dataclass(frozen=True)
class JoinedPair:
    relative_path: str
    local: Optional[LocalEntry] = None
    remote: Optional[RemoteEntry] = None

    def __post_init__(self):
        if self.local is None and self.remote is None:
            raise ValueError(f"empty join pair for {self.relative_path!r}")

    @property
    def kind(self) -> JoinKind:
        if self.local is not None and self.remote is not None:
            return JoinKind.BOTH
        if self.local is not None:
            return JoinKind.LOCAL_ONLY
        return JoinKind.REMOTE_ONLY


@dataclass(frozen=True)
class Upload:
    relative_path: str
    local: LocalEntry
    key: str
    kind = OperationKind.UPLOAD

    def describe(self) -> str:
        return f"upload {self.local.absolute_path} -> {self.key}"


@dataclass(frozen=True)
class Download:
    relative_path: str
    remote: RemoteEntry
    path: Path
    kind = OperationKind.DOWNLOAD

    def describe(self) -> str:
        return f"download {self.remote.key} -> {self.path}"


@dataclass(frozen=True)
class Delete:
    relative_path: str
    target: Union[LocalEntry, RemoteEntry]
    kind = OperationKind.DELETE

    def describe(self) -> str:
        if isinstance(self.target, RemoteEntry):
            return f"delete remote {self.target.key}"
        return f"delete local {self.target.absolute_path}"


@dataclass(frozen=True)
class MakeDirectory:
    """Create an empty directory: a marker object remotely, a real one locally."""

    relative_path: str
    key: Optional[str] = None
    path: Optional[Path] = None
    kind = OperationKind.MKDIR

    def describe(self) -> str:
        if self.key is not None:
            return f"create marker {self.key}"
        return f"create directory {self.path}"


@dataclass(frozen=True)
class Skip:
    relative_path: str
    reason: SkipReason
    kind = OperationKind.SKIP

    def describe(self) -> str:
        return f"skip {self.relative_path or '.'} ({self.reason.value})"


Operation = Union[Upload, Download, Delete, MakeDirectory, Skip]


@dataclass(frozen=True)
class SyncPlan:
    """Operations ordered by relative path."""

    direction: SyncDirection
    operations: tuple[Operation, ...] = ()

    @classmethod
    def from_operations(cls, direction: SyncDirection, operations: Iterable[Operation]) -> "SyncPlan":
        return cls(direction, tuple(sorted(operations, key=lambda op: op.relative_path)))

    @property
    def actionable(self) -> list[Operation]:
        return [op for op in self.operations if op.kind is not OperationKind.SKIP]

    @property
    def skipped(self) -> list[Operation]:
        return [op for op in self.operations if op.kind is OperationKind.SKIP]

    def counts(self) -> dict[OperationKind, int]:
        return dict(Counter(op.kind for op in self.operations))

    def __len__(self) -> int:
        return len(self.operations)

    def __iter__(self):
        return iter(self.operations)


@dataclass(frozen=True)
class OperationFailure:
    operation: Operation
    reason: str
    error: Optional[SyncError] = None


@dataclass
class SyncResult:
    """Outcome of a sync run. Partial success is reported, never hidden."""

    direction: SyncDirection
    succeeded: int = 0
    skipped: int = 0
    failures: list[OperationFailure] = field(default_factory=list)

    @property
    def operation_count(self) -> int:
        return self.succeeded

    @property
    def success(self) -> bool:
        return not self.failures

    def raise_for_failures(self) -> "SyncResult":
        if self.failures:
            raise PartialSyncError(self)
        return self
