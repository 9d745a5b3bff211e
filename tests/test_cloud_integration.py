# tests/test_cloud_integration.py
"""
Cloud Integration Tests

End-to-end tests against a real GCS bucket. Skipped unless a bucket is
configured; credentials come from GOOGLE_APPLICATION_CREDENTIALS or
application default credentials.

Run with real GCS:
    GCS_TEST_BUCKET=my-bucket pytest tests/test_cloud_integration.py -v -m integration
"""

import os
import uuid

import pytest

from cloud_storage_sync.config.settings import SyncSettings
from cloud_storage_sync.storage.cloud_storage import create_gcs_store_from_config
from cloud_storage_sync.storage.credential_resolver import GCSCredentialResolver
from cloud_storage_sync.sync.sync_service import sync_gcs_to_local, sync_local_to_gcs

from tests.fixtures.store_fixtures import read_tree, write_tree

# Check if real GCS credentials are available
REAL_GCS_AVAILABLE = os.environ.get("GCS_TEST_BUCKET") is not None

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not REAL_GCS_AVAILABLE, reason="GCS_TEST_BUCKET not set"),
]


@pytest.fixture
def gcs_store():
    credentials, _ = GCSCredentialResolver.resolve()
    return create_gcs_store_from_config({"credentials": credentials} if credentials else {})


@pytest.fixture
def remote_prefix(gcs_store):
    """Unique prefix per test, removed afterwards."""
    bucket = os.environ["GCS_TEST_BUCKET"]
    prefix = f"csync-tests/{uuid.uuid4().hex}"
    yield prefix
    for entry in list(gcs_store.list_objects(bucket, prefix)):
        gcs_store.delete_object(bucket, entry.key)


class TestRealBucketRoundTrip:
    """Round trip through a real bucket."""

    @pytest.mark.asyncio
    async def test_upload_download_and_idempotence(self, tmp_path, gcs_store, remote_prefix):
        bucket = os.environ["GCS_TEST_BUCKET"]
        settings = SyncSettings(concurrency=4)
        source = write_tree(tmp_path / "src", {
            "a.txt": b"alpha",
            "nested/b.bin": os.urandom(300 * 1024),
        })

        up = await sync_local_to_gcs(source, bucket, remote_prefix, store=gcs_store, settings=settings)
        again = await sync_local_to_gcs(source, bucket, remote_prefix, store=gcs_store, settings=settings)
        down = await sync_gcs_to_local(bucket, remote_prefix, tmp_path / "dst", store=gcs_store, settings=settings)

        assert up.success and up.operation_count == 2
        assert again.operation_count == 0
        assert down.success
        assert read_tree(tmp_path / "dst") == read_tree(source)

    @pytest.mark.asyncio
    async def test_mirror_deletes_remote_extras(self, tmp_path, gcs_store, remote_prefix):
        bucket = os.environ["GCS_TEST_BUCKET"]
        source = write_tree(tmp_path, {"keep.txt": b"k", "drop.txt": b"d"})
        await sync_local_to_gcs(source, bucket, remote_prefix, store=gcs_store)
        (source / "drop.txt").unlink()

        result = await sync_local_to_gcs(source, bucket, remote_prefix, store=gcs_store, mirror=True)

        assert result.operation_count == 1
        keys = [e.key for e in gcs_store.list_objects(bucket, remote_prefix)]
        assert keys == [f"{remote_prefix}/keep.txt"]
