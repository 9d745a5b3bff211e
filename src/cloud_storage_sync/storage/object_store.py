"""Narrow capability interface the sync engine needs from an object store."""

from __future__ import annotations

from typing import BinaryIO, ContextManager, Iterator, Optional, Protocol, runtime_checkable

from ..sync.sync_types import RemoteEntry


@runtime_checkable
class ObjectStore(Protocol):
    """list/get/put/delete against a bucket.

    Implementations may raise library exceptions. The executor classifies
    them through ``storage.error_handling.categorize_error``.
    """

    def list_objects(
        self, bucket: str, prefix: str, page_size: Optional[int] = None
    ) -> Iterator[RemoteEntry]:
        """Yield every object whose key starts with ``prefix``; paging is internal."""
        ...

    def get_object(
        self, bucket: str, key: str, generation: Optional[int] = None
    ) -> ContextManager[BinaryIO]:
        """Open a readable byte stream over the object's content.

        With ``generation`` set, that exact generation is read. If it has
        been replaced or deleted since, NotFound is raised.
        """
        ...

    def put_object(
        self,
        bucket: str,
        key: str,
        stream: BinaryIO,
        *,
        content_type: str,
        checksum: Optional[str],
        size: Optional[int] = None,
    ) -> RemoteEntry:
        """Store ``stream`` under ``key`` and return the stored object's entry."""
        ...

    def delete_object(self, bucket: str, key: str) -> None:
        ...
