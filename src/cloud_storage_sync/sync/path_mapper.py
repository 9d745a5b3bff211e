"""Translation between local relative paths and bucket keys.

Both sides are reduced to a normalized relative key: forward slashes, no
empty or ``.`` components, never ``..``. The empty string stands for the
namespace root itself, which is how a single file maps to a single object.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Optional, Union

from ..errors import PathError

PathLike = Union[str, Path, PurePosixPath]


def normalize_relative(path: PathLike) -> str:
    """Normalize a relative path into the shared key space.

    Raises:
        PathError: if any component is ``..``
    """
    text = str(path).replace("\\", "/")
    parts = []
    for part in text.split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            raise PathError(path, "path escapes its root")
        parts.append(part)
    return "/".join(parts)


def _strip_prefix(prefix: str) -> str:
    return prefix.replace("\\", "/").strip("/")


@dataclass(frozen=True)
class PathMapper:
    """One remote namespace rooted at ``base_key``.

    Keys inside the namespace are ``base_key`` itself (relative path ``""``)
    or ``base_key/<relative>``. An empty base key covers the whole bucket.
    """

    base_key: str

    def __post_init__(self):
        if self.base_key != normalize_relative(self.base_key):
            raise PathError(self.base_key, "remote prefix is not normalized")

    @classmethod
    def for_remote_prefix(cls, prefix: str) -> "PathMapper":
        return cls(normalize_relative(_strip_prefix(prefix)))

    @classmethod
    def for_local_root(cls, root: Path, prefix: str) -> "PathMapper":
        """Namespace for uploading ``root``.

        A directory maps onto the prefix. A single file maps to
        ``prefix + filename`` when the prefix is empty or ends with ``/``,
        otherwise the prefix is taken as the explicit target key.
        """
        # Validate before touching the filesystem
        base = normalize_relative(_strip_prefix(prefix))
        root = Path(root)
        if root.is_file() and (not prefix or prefix.endswith("/")):
            return cls(normalize_relative(f"{base}/{root.name}"))
        return cls(base)

    @property
    def list_prefix(self) -> str:
        """Prefix passed to the object store listing."""
        return self.base_key

    def local_to_key(self, relative_path: PathLike) -> str:
        rel = normalize_relative(relative_path)
        if not rel:
            if not self.base_key:
                raise PathError(relative_path, "empty key for bucket root")
            return self.base_key
        return f"{self.base_key}/{rel}" if self.base_key else rel

    def key_to_relative(self, key: str) -> Optional[str]:
        """Relative path for ``key``, or None when it lies outside the namespace.

        Directory markers (keys ending in ``/``) are not files and map to None.
        """
        if key.endswith("/"):
            return None
        if not self.base_key:
            return normalize_relative(key)
        if key == self.base_key:
            return ""
        head = f"{self.base_key}/"
        if not key.startswith(head):
            return None
        return normalize_relative(key[len(head):])

    def marker_to_relative(self, key: str) -> Optional[str]:
        """Relative directory path for a ``dir/`` marker key, or None.

        The marker of the namespace root itself maps to None as well.
        """
        if not key.endswith("/"):
            return None
        relative = self.key_to_relative(key.rstrip("/"))
        return relative or None

    def local_to_marker_key(self, relative_path: PathLike) -> str:
        return f"{self.local_to_key(relative_path)}/"


def local_to_key(root: Path, relative_path: PathLike, prefix: str) -> str:
    """Remote key for a file at ``relative_path`` under ``root``."""
    return PathMapper.for_local_root(root, prefix).local_to_key(relative_path)


def key_to_local(root: Path, key: str, prefix: str) -> Optional[Path]:
    """Local path for ``key`` listed under ``prefix``, or None if outside it."""
    relative = PathMapper.for_remote_prefix(prefix).key_to_relative(key)
    if relative is None:
        return None
    return relative_to_local(root, relative)


def relative_to_local(root: Path, relative_path: PathLike) -> Path:
    """Join a relative path under ``root``. ``""`` is the root itself."""
    rel = normalize_relative(relative_path)
    root = Path(root)
    if not rel:
        return root
    return root.joinpath(*rel.split("/"))
