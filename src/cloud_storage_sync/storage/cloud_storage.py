"""Google Cloud Storage implementation of the ObjectStore interface."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, BinaryIO, Dict, Iterator, Optional

from google.cloud import storage
from google.oauth2 import service_account

from ..config.settings import SyncConfig
from ..sync.sync_types import RemoteEntry

REQUIRED_CREDENTIAL_FIELDS = frozenset({"type", "client_email", "private_key", "token_uri"})


def validate_credentials_dict(credentials_dict: Dict[str, Any]) -> None:
    """Validate service-account credentials dictionary shape."""
    if not credentials_dict:
        raise ValueError("credentials_dict cannot be empty")

    missing = REQUIRED_CREDENTIAL_FIELDS - set(credentials_dict.keys())
    if missing:
        raise ValueError(
            f"GCS credentials missing required fields: {sorted(missing)}. "
            f"Expected fields: {sorted(REQUIRED_CREDENTIAL_FIELDS)}"
        )


def blob_to_entry(blob: Any) -> RemoteEntry:
    return RemoteEntry(
        key=blob.name,
        size=int(blob.size or 0),
        checksum=blob.crc32c,
        generation=blob.generation,
    )


class GCSObjectStore:
    """
    Object store backed by google-cloud-storage.

    The client owns the HTTP connection pool and authentication. One store can
    serve any bucket the credentials can reach.
    """

    def __init__(
        self,
        client: Optional[storage.Client] = None,
        credentials_dict: Optional[Dict[str, Any]] = None,
        credentials_path: Optional[Path] = None,
        project: Optional[str] = None,
        chunk_size: int = SyncConfig.CHUNK_SIZE,
        logger_obj: Optional[logging.Logger] = None
    ):
        """
        Initialize the GCS store.

        Args:
            client: Pre-built, already authenticated storage client
            credentials_dict: Service account credentials as dict
            credentials_path: Path to service account JSON file
            project: Project id used when no credentials carry one
            chunk_size: Read chunk size for streamed downloads
            logger_obj: Logger instance
        """
        self.logger = logger_obj or logging.getLogger(__name__)
        self.chunk_size = chunk_size

        if client is not None:
            self.client = client
            return

        if credentials_dict:
            validate_credentials_dict(credentials_dict)
            credentials = service_account.Credentials.from_service_account_info(credentials_dict)
        elif credentials_path:
            credentials = service_account.Credentials.from_service_account_file(str(credentials_path))
        else:
            # Application default credentials from the environment
            credentials = None

        self.client = storage.Client(project=project, credentials=credentials)
        self.logger.info("Initialized GCSObjectStore")

    def list_objects(
        self, bucket: str, prefix: str, page_size: Optional[int] = None
    ) -> Iterator[RemoteEntry]:
        """Yield objects under ``prefix``; the client fetches pages on demand."""
        blobs = self.client.list_blobs(
            bucket,
            prefix=prefix or None,
            page_size=page_size or SyncConfig.LIST_PAGE_SIZE,
        )
        for blob in blobs:
            yield blob_to_entry(blob)

    def get_object(self, bucket: str, key: str, generation: Optional[int] = None) -> BinaryIO:
        """Open a streaming reader; usable as a context manager.

        Pins the read to ``generation`` when one is given.
        """
        blob = self.client.bucket(bucket).blob(key, generation=generation)
        return blob.open("rb", chunk_size=self.chunk_size)

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
        """Upload ``stream``; GCS rejects the write if the content doesn't match ``checksum``."""
        blob = self.client.bucket(bucket).blob(key)
        if checksum:
            blob.crc32c = checksum
        blob.upload_from_file(stream, size=size, content_type=content_type, rewind=False)
        self.logger.debug(f"Stored gs://{bucket}/{key} (generation {blob.generation})")
        return blob_to_entry(blob)

    def delete_object(self, bucket: str, key: str) -> None:
        self.client.bucket(bucket).blob(key).delete()
        self.logger.debug(f"Deleted gs://{bucket}/{key}")


def create_gcs_store_from_config(
    config: Dict[str, Any],
    logger_obj: Optional[logging.Logger] = None
) -> GCSObjectStore:
    """
    Create GCSObjectStore from a configuration dictionary.

    The config dict may have:
    - 'credentials': Dict with service account credentials
    - 'credentials_path': Path to credentials JSON file
    - 'project': GCP project id

    With neither credential key, application default credentials are used.
    """
    logger = logger_obj or logging.getLogger(__name__)

    credentials_path = config.get("credentials_path")
    try:
        return GCSObjectStore(
            credentials_dict=config.get("credentials"),
            credentials_path=Path(credentials_path) if credentials_path else None,
            project=config.get("project"),
            logger_obj=logger,
        )
    except Exception as e:
        logger.error(f"Error creating GCS store from config: {e}", exc_info=True)
        raise
