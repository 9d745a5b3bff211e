# tests/conftest.py
import logging

import pytest

from cloud_storage_sync.config.settings import SyncSettings
from cloud_storage_sync.sync.sync_service import SyncService

from tests.fixtures.cloud_fixtures import mock_gcs_client  # noqa: F401
from tests.fixtures.store_fixtures import InMemoryObjectStore

BUCKET = "test-bucket"


@pytest.fixture
def bucket():
    return BUCKET


@pytest.fixture
def store():
    """Empty in-memory object store with two-item listing pages."""
    return InMemoryObjectStore(page_size=2)


@pytest.fixture
def fast_settings():
    """Settings with retries but no backoff delay."""
    return SyncSettings(
        concurrency=4,
        max_retries=3,
        retry_base_delay=0,
        retry_max_delay=0,
        chunk_size=4,
    )


@pytest.fixture
def service(store, fast_settings):
    return SyncService(store, fast_settings)


@pytest.fixture(autouse=True)
def quiet_package_logger():
    """Keep package loggers from leaking handlers between tests."""
    logger = logging.getLogger("cloud_storage_sync")
    handlers = list(logger.handlers)
    yield
    for handler in logger.handlers[:]:
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
