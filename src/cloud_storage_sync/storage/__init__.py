"""Object store access: capability interface, GCS adapter, credentials."""

from .cloud_storage import GCSObjectStore, create_gcs_store_from_config
from .credential_resolver import GCSCredentialResolver
from .object_store import ObjectStore
from .remote_listing import list_remote

__all__ = [
    "GCSObjectStore",
    "GCSCredentialResolver",
    "ObjectStore",
    "create_gcs_store_from_config",
    "list_remote",
]
