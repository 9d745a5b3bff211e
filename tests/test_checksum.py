"""
Tests for streaming CRC32C checksums.
"""
import io

import pytest

from cloud_storage_sync.errors import LocalIoError
from cloud_storage_sync.sync.checksum import (
    ChecksumComputer,
    checksums_match,
    compute_file_checksum,
    compute_stream_checksum,
)


class TestChecksumComputer:
    """Test the incremental checksum."""

    def test_known_vector(self):
        """CRC32C of the standard check string, in GCS base64 form."""
        computer = ChecksumComputer()
        computer.update(b"123456789")

        assert computer.value == "4waSgw=="
        assert computer.digest() == bytes.fromhex("e3069283")
        assert computer.bytes_seen == 9

    def test_empty_input(self):
        assert ChecksumComputer().value == "AAAAAA=="

    def test_chunking_does_not_change_result(self):
        whole = ChecksumComputer()
        whole.update(b"hello world")

        pieces = ChecksumComputer()
        for chunk in (b"he", b"llo", b" ", b"world"):
            pieces.update(chunk)

        assert pieces.value == whole.value
        assert pieces.bytes_seen == 11


class TestComputeChecksums:
    """Test stream and file helpers."""

    def test_stream_checksum_small_chunks(self):
        assert compute_stream_checksum(io.BytesIO(b"123456789"), chunk_size=2) == "4waSgw=="

    def test_stream_checksum_reads_from_current_position(self):
        stream = io.BytesIO(b"xx123456789")
        stream.seek(2)

        assert compute_stream_checksum(stream) == "4waSgw=="

    def test_file_checksum(self, tmp_path):
        path = tmp_path / "check.txt"
        path.write_bytes(b"123456789")

        assert compute_file_checksum(path, chunk_size=4) == "4waSgw=="

    def test_missing_file_raises_local_io_error(self, tmp_path):
        with pytest.raises(LocalIoError) as exc_info:
            compute_file_checksum(tmp_path / "missing.bin")

        assert exc_info.value.path == tmp_path / "missing.bin"


class TestChecksumsMatch:
    @pytest.mark.parametrize("a,b,expected", [
        ("4waSgw==", "4waSgw==", True),
        ("4waSgw==", "AAAAAA==", False),
        (None, "4waSgw==", False),
        ("4waSgw==", None, False),
        (None, None, False),
        ("", "", False),
    ])
    def test_match(self, a, b, expected):
        assert checksums_match(a, b) is expected
