"""Lazy enumeration of remote objects inside one namespace."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterator, Optional

from ..sync.path_mapper import PathMapper
from ..sync.sync_types import RemoteEntry
from .object_store import ObjectStore

logger = logging.getLogger(__name__)


def list_remote(
    store: ObjectStore,
    bucket: str,
    mapper: PathMapper,
    page_size: Optional[int] = None,
    include_markers: bool = False,
) -> Iterator[RemoteEntry]:
    """Yield entries for objects that belong to ``mapper``'s namespace.

    Objects that share the string prefix but not the namespace (``data.bak``
    next to ``data/``) are left out. Directory markers are left out unless
    ``include_markers`` is set; then they are yielded with the relative path
    of the directory they stand for. Each yielded entry carries its
    normalized relative path.
    """
    for entry in store.list_objects(bucket, mapper.list_prefix, page_size=page_size):
        if include_markers and entry.is_marker:
            relative = mapper.marker_to_relative(entry.key)
        else:
            relative = mapper.key_to_relative(entry.key)
        if relative is None:
            logger.debug(f"Ignoring gs://{bucket}/{entry.key} (outside namespace or directory marker)")
            continue
        yield replace(entry, relative_path=relative)
