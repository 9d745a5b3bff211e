"""Outer join of local and remote listings, and classification into a plan.

Everything here is deterministic. Given the same listings in any order, the
same plan comes out, sorted by relative path. The only I/O is the lazy local
checksum, computed for pairs present on both sides.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from ..errors import LocalIoError, PlanError
from .checksum import checksums_match
from .path_mapper import PathMapper, relative_to_local
from .sync_types import (
    Delete,
    Download,
    JoinedPair,
    JoinKind,
    LocalDirectory,
    LocalEntry,
    MakeDirectory,
    Operation,
    RemoteEntry,
    Skip,
    SkipReason,
    SyncDirection,
    SyncPlan,
    Upload,
)

logger = logging.getLogger(__name__)


def _index(entries: Iterable, side: str, check_shape: bool = True) -> dict:
    index = {}
    for entry in entries:
        rel = entry.relative_path
        if rel in index:
            raise PlanError(f"Duplicate {side} entry for relative path {rel!r}")
        index[rel] = entry
    if check_shape and "" in index and len(index) > 1:
        raise PlanError(
            f"Inconsistent {side} listing: the namespace is both a single file and a directory"
        )
    return index


def join_entries(
    local_entries: Iterable[LocalEntry],
    remote_entries: Iterable[RemoteEntry],
    direction: Optional[SyncDirection] = None,
) -> list[JoinedPair]:
    """Full outer join keyed by normalized relative path, sorted by that path.

    GCS allows an object named exactly like the prefix next to objects under
    it. When a local directory is uploaded, that object is just another
    destination-only entry; in every other case it makes the namespace
    ambiguous and raises PlanError.
    """
    local_index = _index(local_entries, "local")
    uploading_directory = direction is SyncDirection.LOCAL_TO_CLOUD and "" not in local_index
    remote_index = _index(remote_entries, "remote", check_shape=not uploading_directory)

    pairs = []
    for rel in sorted(local_index.keys() | remote_index.keys()):
        pairs.append(JoinedPair(rel, local_index.get(rel), remote_index.get(rel)))
    return pairs


def _local_checksum(entry: LocalEntry) -> Optional[str]:
    try:
        return entry.checksum
    except LocalIoError as e:
        # An unknown checksum never matches, so the pair is transferred
        logger.warning(f"Cannot checksum {entry.absolute_path}, treating as changed: {e}")
        return None


def _transfer(
    pair: JoinedPair,
    direction: SyncDirection,
    mapper: PathMapper,
    local_root: Path,
) -> Operation:
    if direction is SyncDirection.LOCAL_TO_CLOUD:
        return Upload(pair.relative_path, pair.local, mapper.local_to_key(pair.relative_path))
    return Download(pair.relative_path, pair.remote, relative_to_local(local_root, pair.relative_path))


def classify(
    pair: JoinedPair,
    direction: SyncDirection,
    mapper: PathMapper,
    local_root: Path,
    force_overwrite: bool = False,
    mirror: bool = False,
) -> Operation:
    """Decide what to do with one joined pair."""
    kind = pair.kind
    uploading = direction is SyncDirection.LOCAL_TO_CLOUD
    source_only = JoinKind.LOCAL_ONLY if uploading else JoinKind.REMOTE_ONLY

    if kind is source_only:
        return _transfer(pair, direction, mapper, local_root)

    if kind is not JoinKind.BOTH:
        # Destination-only entries are only removed when mirroring was requested
        if mirror:
            return Delete(pair.relative_path, pair.remote if uploading else pair.local)
        return Skip(pair.relative_path, SkipReason.DESTINATION_ONLY)

    if force_overwrite:
        return _transfer(pair, direction, mapper, local_root)

    if checksums_match(_local_checksum(pair.local), pair.remote.checksum):
        return Skip(pair.relative_path, SkipReason.CHECKSUM_MATCH)
    return _transfer(pair, direction, mapper, local_root)


def reconcile(
    pairs: Iterable[JoinedPair],
    direction: SyncDirection,
    mapper: PathMapper,
    local_root: Path,
    force_overwrite: bool = False,
    mirror: bool = False,
) -> SyncPlan:
    operations = [
        classify(pair, direction, mapper, local_root, force_overwrite, mirror)
        for pair in pairs
    ]
    plan = SyncPlan.from_operations(direction, operations)
    counts = {kind.value: n for kind, n in plan.counts().items()}
    logger.info(f"Planned {len(plan)} entries for {direction.value}: {counts}")
    return plan


def plan_directories(
    local_dirs: Iterable[LocalDirectory],
    remote_markers: Iterable[RemoteEntry],
    direction: SyncDirection,
    mapper: PathMapper,
    local_root: Path,
    file_paths: Iterable[str] = (),
) -> list[MakeDirectory]:
    """Directories missing on the destination side.

    Uploads create a marker for every empty local directory that has none.
    Downloads create every marked directory that does not exist locally.
    Markers and directories are never deleted, mirror or not. A marker whose
    path is taken by a file is ignored.
    """
    local_dirs = list(local_dirs)
    marker_paths = {marker.relative_path for marker in remote_markers}
    taken = set(file_paths)

    if direction is SyncDirection.LOCAL_TO_CLOUD:
        return [
            MakeDirectory(d.relative_path, key=mapper.local_to_marker_key(d.relative_path))
            for d in local_dirs
            if d.is_empty and d.relative_path not in marker_paths
        ]

    existing = {d.relative_path for d in local_dirs}
    operations = []
    for rel in sorted(marker_paths - existing):
        if rel in taken:
            logger.warning(f"Ignoring directory marker for {rel!r}, a file has the same path")
            continue
        operations.append(MakeDirectory(rel, path=relative_to_local(local_root, rel)))
    return operations


def build_plan(
    local_entries: Iterable[LocalEntry],
    remote_entries: Iterable[RemoteEntry],
    direction: SyncDirection,
    mapper: PathMapper,
    local_root: Path,
    force_overwrite: bool = False,
    mirror: bool = False,
    local_dirs: Iterable[LocalDirectory] = (),
    remote_markers: Iterable[RemoteEntry] = (),
) -> SyncPlan:
    """Join both listings and classify every pair.

    Directory operations are only planned when directories or markers are
    passed in.
    """
    pairs = join_entries(local_entries, remote_entries, direction)
    plan = reconcile(pairs, direction, mapper, local_root, force_overwrite, mirror)

    directories = plan_directories(
        local_dirs, remote_markers, direction, mapper, local_root, (p.relative_path for p in pairs)
    )
    if not directories:
        return plan
    logger.info(f"Planned {len(directories)} empty directories for {direction.value}")
    return SyncPlan.from_operations(direction, plan.operations + tuple(directories))
