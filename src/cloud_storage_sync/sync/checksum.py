"""Streaming CRC32C checksums in the representation GCS reports.

GCS exposes ``Blob.crc32c`` as the base64 encoding of the big-endian 4-byte
CRC32C digest. Everything here produces and compares that exact string.
"""

from __future__ import annotations

import base64
from pathlib import Path
from typing import BinaryIO, Optional

import google_crc32c

from ..errors import LocalIoError

DEFAULT_CHUNK_SIZE = 256 * 1024


class ChecksumComputer:
    """Incremental CRC32C over a byte stream."""

    def __init__(self):
        self._crc = google_crc32c.Checksum()
        self.bytes_seen = 0

    def update(self, chunk: bytes) -> None:
        self._crc.update(chunk)
        self.bytes_seen += len(chunk)

    def digest(self) -> bytes:
        return self._crc.digest()

    @property
    def value(self) -> str:
        return base64.b64encode(self.digest()).decode("ascii")


def compute_stream_checksum(stream: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Checksum a readable binary stream from its current position to EOF."""
    computer = ChecksumComputer()
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        computer.update(chunk)
    return computer.value


def compute_file_checksum(path: Path, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Checksum a local file using bounded memory."""
    try:
        with open(path, "rb") as f:
            return compute_stream_checksum(f, chunk_size)
    except OSError as e:
        raise LocalIoError(Path(path), f"Cannot read file for checksum: {e}") from e


def checksums_match(a: Optional[str], b: Optional[str]) -> bool:
    """Equal, non-empty checksums identify identical content."""
    return bool(a) and bool(b) and a == b
