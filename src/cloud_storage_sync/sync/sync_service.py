"""Storage synchronization service: the direction-specific entry points."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Optional, Union

from ..config.settings import SyncSettings
from ..errors import LocalIoError, SyncError
from ..storage.error_handling import to_sync_error
from ..storage.object_store import ObjectStore
from ..storage.remote_listing import list_remote
from .executor import OperationExecutor
from .local_walker import SymlinkPolicy, walk_local, walk_local_dirs
from .path_mapper import PathMapper
from .reconciler import build_plan
from .sync_types import LocalDirectory, LocalEntry, RemoteEntry, SyncDirection, SyncPlan, SyncResult

PathArg = Union[str, Path]


class SyncService:
    """
    Service for synchronizing a local tree with a GCS prefix.

    Every call recomputes the full diff from the current state of both sides;
    nothing is cached between calls. Deletion only happens with mirror=True.
    Empty directories are carried across as "dir/" marker objects only with
    empty_dirs=True.
    """

    def __init__(
        self,
        store: ObjectStore,
        settings: Optional[SyncSettings] = None,
        symlinks: SymlinkPolicy = SymlinkPolicy.ERROR,
        logger_obj: Optional[logging.Logger] = None,
        empty_dirs: bool = False,
    ):
        """
        Initialize sync service.

        Args:
            store: Authenticated object store (GCSObjectStore or any ObjectStore)
            settings: Concurrency, retry and I/O settings
            symlinks: How the local walker treats symlinks
            logger_obj: Logger instance
            empty_dirs: Create markers for empty local directories and local
                directories for markers
        """
        self.store = store
        self.settings = settings or SyncSettings()
        self.symlinks = symlinks
        self.logger = logger_obj or logging.getLogger(__name__)
        self.empty_dirs = empty_dirs

    def _list_local(self, root: Path) -> tuple[list[LocalEntry], list[LocalDirectory]]:
        entries = list(walk_local(root, self.symlinks, self.settings.chunk_size))
        dirs = list(walk_local_dirs(root, self.symlinks)) if self.empty_dirs else []
        return entries, dirs

    def _list_remote(self, bucket: str, mapper: PathMapper) -> tuple[list[RemoteEntry], list[RemoteEntry]]:
        try:
            listed = list(list_remote(
                self.store, bucket, mapper, self.settings.list_page_size, include_markers=self.empty_dirs
            ))
            return [e for e in listed if not e.is_marker], [e for e in listed if e.is_marker]
        except SyncError:
            raise
        except Exception as e:
            raise to_sync_error(e, key=mapper.list_prefix) from e

    async def plan(
        self,
        direction: SyncDirection,
        local_path: PathArg,
        bucket: str,
        remote_prefix: str,
        force_overwrite: bool = False,
        mirror: bool = False,
    ) -> SyncPlan:
        """Enumerate both sides concurrently and reconcile them into a plan."""
        if not bucket:
            raise ValueError("bucket name is required")

        local_root = Path(local_path)
        if direction is SyncDirection.LOCAL_TO_CLOUD:
            mapper = PathMapper.for_local_root(local_root, remote_prefix)
            if not os.path.lexists(local_root):
                raise LocalIoError(local_root, "Local source does not exist")
        else:
            mapper = PathMapper.for_remote_prefix(remote_prefix)

        self.logger.info(
            f"Planning {direction.value}: {local_root} <-> gs://{bucket}/{mapper.base_key}"
        )

        # The join below is the only barrier between the two enumerations
        (local_entries, local_dirs), (remote_entries, remote_markers) = await asyncio.gather(
            asyncio.to_thread(self._list_local, local_root),
            asyncio.to_thread(self._list_remote, bucket, mapper),
        )
        self.logger.debug(f"Found {len(local_entries)} local and {len(remote_entries)} remote entries")

        return await asyncio.to_thread(
            build_plan,
            local_entries,
            remote_entries,
            direction,
            mapper,
            local_root,
            force_overwrite,
            mirror,
            local_dirs,
            remote_markers,
        )

    async def execute(self, bucket: str, plan: SyncPlan) -> SyncResult:
        executor = OperationExecutor(self.store, bucket, self.settings, self.logger)
        return await executor.run(plan)

    async def upload(
        self,
        local_path: PathArg,
        bucket: str,
        remote_prefix: str,
        force_overwrite: bool = False,
        mirror: bool = False,
    ) -> SyncResult:
        """Make gs://bucket/remote_prefix match local_path."""
        plan = await self.plan(
            SyncDirection.LOCAL_TO_CLOUD, local_path, bucket, remote_prefix, force_overwrite, mirror
        )
        return await self.execute(bucket, plan)

    async def download(
        self,
        bucket: str,
        remote_prefix: str,
        local_path: PathArg,
        force_overwrite: bool = False,
        mirror: bool = False,
    ) -> SyncResult:
        """Make local_path match gs://bucket/remote_prefix."""
        plan = await self.plan(
            SyncDirection.CLOUD_TO_LOCAL, local_path, bucket, remote_prefix, force_overwrite, mirror
        )
        return await self.execute(bucket, plan)


async def sync_local_to_gcs(
    local_path: PathArg,
    bucket: str,
    remote_prefix: str,
    force_overwrite: bool = False,
    *,
    store: ObjectStore,
    mirror: bool = False,
    settings: Optional[SyncSettings] = None,
    symlinks: SymlinkPolicy = SymlinkPolicy.ERROR,
    logger_obj: Optional[logging.Logger] = None,
    empty_dirs: bool = False,
) -> SyncResult:
    """Upload new and changed files from ``local_path`` to the bucket prefix."""
    service = SyncService(store, settings, symlinks, logger_obj, empty_dirs)
    return await service.upload(local_path, bucket, remote_prefix, force_overwrite, mirror)


async def sync_gcs_to_local(
    bucket: str,
    remote_prefix: str,
    local_path: PathArg,
    force_overwrite: bool = False,
    *,
    store: ObjectStore,
    mirror: bool = False,
    settings: Optional[SyncSettings] = None,
    symlinks: SymlinkPolicy = SymlinkPolicy.ERROR,
    logger_obj: Optional[logging.Logger] = None,
    empty_dirs: bool = False,
) -> SyncResult:
    """Download new and changed objects under the bucket prefix into ``local_path``."""
    service = SyncService(store, settings, symlinks, logger_obj, empty_dirs)
    return await service.download(bucket, remote_prefix, local_path, force_overwrite, mirror)


async def plan_local_to_gcs(
    local_path: PathArg,
    bucket: str,
    remote_prefix: str,
    force_overwrite: bool = False,
    *,
    store: ObjectStore,
    mirror: bool = False,
    settings: Optional[SyncSettings] = None,
    symlinks: SymlinkPolicy = SymlinkPolicy.ERROR,
    empty_dirs: bool = False,
) -> SyncPlan:
    service = SyncService(store, settings, symlinks, empty_dirs=empty_dirs)
    return await service.plan(
        SyncDirection.LOCAL_TO_CLOUD, local_path, bucket, remote_prefix, force_overwrite, mirror
    )


async def plan_gcs_to_local(
    bucket: str,
    remote_prefix: str,
    local_path: PathArg,
    force_overwrite: bool = False,
    *,
    store: ObjectStore,
    mirror: bool = False,
    settings: Optional[SyncSettings] = None,
    symlinks: SymlinkPolicy = SymlinkPolicy.ERROR,
    empty_dirs: bool = False,
) -> SyncPlan:
    service = SyncService(store, settings, symlinks, empty_dirs=empty_dirs)
    return await service.plan(
        SyncDirection.CLOUD_TO_LOCAL, local_path, bucket, remote_prefix, force_overwrite, mirror
    )
