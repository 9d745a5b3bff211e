"""Transfer/upload/download/delete execution for a sync plan."""

from __future__ import annotations

import asyncio
import io
import logging
import mimetypes
import os
import tempfile
from pathlib import Path
from typing import Optional

import backoff
from tqdm import tqdm

from ..config.settings import SyncConfig, SyncSettings
from ..errors import LocalIoError, VerificationError
from ..storage.error_handling import categorize_error, is_transient, to_sync_error
from ..storage.object_store import ObjectStore
from .checksum import ChecksumComputer
from .sync_types import (
    Delete,
    Download,
    MakeDirectory,
    Operation,
    OperationFailure,
    RemoteEntry,
    Skip,
    SyncPlan,
    SyncResult,
    Upload,
)


def guess_content_type(path: Path) -> str:
    """Content type from the file extension, generic binary otherwise."""
    content_type, _ = mimetypes.guess_type(path.name)
    return content_type or SyncConfig.DEFAULT_CONTENT_TYPE


def _target_of(operation: Operation) -> tuple[Optional[str], Optional[Path]]:
    if isinstance(operation, Upload):
        return operation.key, operation.local.absolute_path
    if isinstance(operation, Download):
        return operation.remote.key, operation.path
    if isinstance(operation, Delete):
        target = operation.target
        if isinstance(target, RemoteEntry):
            return target.key, None
        return None, target.absolute_path
    if isinstance(operation, MakeDirectory):
        return operation.key, operation.path
    return None, None


class OperationExecutor:
    """Runs the actionable operations of a plan with bounded concurrency.

    Operations target distinct relative paths, so they run in any order and a
    failure in one never affects another. Transient errors are retried with
    exponential backoff; anything else fails just that operation.
    """

    def __init__(
        self,
        store: ObjectStore,
        bucket: str,
        settings: Optional[SyncSettings] = None,
        logger_obj: Optional[logging.Logger] = None,
    ):
        self.store = store
        self.bucket = bucket
        self.settings = settings or SyncSettings()
        self.logger = logger_obj or logging.getLogger(__name__)

    async def run(self, plan: SyncPlan) -> SyncResult:
        """Execute ``plan`` and return counts plus per-operation failures."""
        result = SyncResult(direction=plan.direction, skipped=len(plan.skipped))
        for op in plan.skipped:
            self.logger.debug(op.describe())

        actionable = plan.actionable
        if not actionable:
            self.logger.info("Nothing to transfer, destination is up to date")
            return result

        semaphore = asyncio.Semaphore(self.settings.concurrency)

        with tqdm(
            total=len(actionable),
            desc=f"Syncing ({plan.direction.value})",
            unit=" ops",
            leave=False,
            disable=not self.settings.show_progress,
        ) as pbar:

            async def run_one(operation: Operation) -> None:
                async with semaphore:
                    try:
                        await self._execute_with_retry(operation)
                    except Exception as e:
                        key, path = _target_of(operation)
                        error = to_sync_error(e, key=key, path=path)
                        category = categorize_error(error)
                        self.logger.error(f"Failed to {operation.describe()}: {category.value} error: {error}")
                        result.failures.append(
                            OperationFailure(operation, f"{category.value}: {error}", error)
                        )
                    else:
                        result.succeeded += 1
                    finally:
                        pbar.update(1)

            await asyncio.gather(*(run_one(op) for op in actionable))

        result.failures.sort(key=lambda failure: failure.operation.relative_path)
        self.logger.info(
            f"Sync complete: {result.succeeded} succeeded, {len(result.failures)} failed, "
            f"{result.skipped} skipped"
        )
        return result

    def _backoff_handler(self, details):
        """Handler for logging backoff attempts with error categorization."""
        exception = details["exception"]
        error_category = categorize_error(exception)
        self.logger.warning(
            f"Backing off {details['wait']:.1f}s after {error_category.value} error "
            f"(attempt {details['tries']}/{self.settings.max_retries}): {exception}"
        )

    async def _execute_with_retry(self, operation: Operation) -> None:
        retrying = backoff.on_exception(
            backoff.expo,
            Exception,
            max_tries=self.settings.max_retries,
            giveup=lambda e: not is_transient(e),
            on_backoff=self._backoff_handler,
            jitter=backoff.full_jitter,
            factor=self.settings.retry_base_delay,
            max_value=self.settings.retry_max_delay,
        )(self._execute)
        await retrying(operation)

    async def _execute(self, operation: Operation) -> None:
        if isinstance(operation, Upload):
            await asyncio.to_thread(self._upload, operation)
        elif isinstance(operation, Download):
            await asyncio.to_thread(self._download, operation)
        elif isinstance(operation, Delete):
            await asyncio.to_thread(self._delete, operation)
        elif isinstance(operation, MakeDirectory):
            await asyncio.to_thread(self._make_directory, operation)
        elif isinstance(operation, Skip):
            return
        else:
            raise TypeError(f"Unknown operation: {operation!r}")

    def _upload(self, op: Upload) -> None:
        path = op.local.absolute_path
        checksum = op.local.checksum
        content_type = guess_content_type(path)

        try:
            stream = open(path, "rb")
        except OSError as e:
            raise LocalIoError(path, f"Cannot open file for upload: {e}") from e

        with stream:
            size = os.fstat(stream.fileno()).st_size
            stored = self.store.put_object(
                self.bucket,
                op.key,
                stream,
                content_type=content_type,
                checksum=checksum,
                size=size,
            )

        if stored.checksum is not None and stored.checksum != checksum:
            raise VerificationError(f"gs://{self.bucket}/{op.key}", checksum, stored.checksum)
        self.logger.info(f"Uploaded {path} to gs://{self.bucket}/{op.key} ({size} bytes, {content_type})")

    def _download(self, op: Download) -> None:
        dest = op.path
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=dest.parent, prefix=f".{dest.name}.", suffix=SyncConfig.TEMP_SUFFIX
            )
        except OSError as e:
            raise LocalIoError(dest, f"Cannot prepare download target: {e}") from e

        tmp_path = Path(tmp_name)
        committed = False
        try:
            computer = ChecksumComputer()
            with os.fdopen(fd, "wb") as out, self.store.get_object(
                self.bucket, op.remote.key, generation=op.remote.generation
            ) as src:
                while True:
                    chunk = src.read(self.settings.chunk_size)
                    if not chunk:
                        break
                    computer.update(chunk)
                    out.write(chunk)
                out.flush()
                os.fsync(out.fileno())

            expected = op.remote.checksum
            if expected is not None and computer.value != expected:
                raise VerificationError(f"gs://{self.bucket}/{op.remote.key}", expected, computer.value)

            # The rename is the only commit point for the final path
            os.replace(tmp_path, dest)
            committed = True
        finally:
            if not committed:
                try:
                    tmp_path.unlink(missing_ok=True)
                except OSError as e:
                    self.logger.warning(f"Could not remove temporary file {tmp_path}: {e}")

        self.logger.info(
            f"Downloaded gs://{self.bucket}/{op.remote.key} to {dest} ({computer.bytes_seen} bytes)"
        )

    def _delete(self, op: Delete) -> None:
        target = op.target
        if isinstance(target, RemoteEntry):
            self.store.delete_object(self.bucket, target.key)
            self.logger.info(f"Deleted gs://{self.bucket}/{target.key}")
        else:
            target.absolute_path.unlink()
            self.logger.info(f"Deleted {target.absolute_path}")

    def _make_directory(self, op: MakeDirectory) -> None:
        if op.key is not None:
            self.store.put_object(
                self.bucket,
                op.key,
                io.BytesIO(b""),
                content_type=SyncConfig.DIRECTORY_CONTENT_TYPE,
                checksum=ChecksumComputer().value,
                size=0,
            )
            self.logger.info(f"Created marker gs://{self.bucket}/{op.key}")
            return

        try:
            op.path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise LocalIoError(op.path, f"Cannot create directory: {e}") from e
        self.logger.info(f"Created directory {op.path}")
