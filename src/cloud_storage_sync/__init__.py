"""rsync-like reconciliation between local files and Google Cloud Storage."""

from .config.settings import SyncConfig, SyncSettings
from .errors import (
    LocalIoError,
    PartialSyncError,
    PathError,
    PlanError,
    RemoteError,
    SyncError,
    UnsupportedSymlinkError,
    VerificationError,
)
from .storage.cloud_storage import GCSObjectStore
from .storage.object_store import ObjectStore
from .sync.local_walker import SymlinkPolicy
from .sync.sync_service import (
    SyncService,
    plan_gcs_to_local,
    plan_local_to_gcs,
    sync_gcs_to_local,
    sync_local_to_gcs,
)
from .sync.sync_types import (
    Delete,
    Download,
    MakeDirectory,
    OperationFailure,
    Skip,
    SkipReason,
    SyncDirection,
    SyncPlan,
    SyncResult,
    Upload,
)

__version__ = "0.6.1"

__all__ = [
    "Delete",
    "Download",
    "GCSObjectStore",
    "LocalIoError",
    "MakeDirectory",
    "ObjectStore",
    "OperationFailure",
    "PartialSyncError",
    "PathError",
    "PlanError",
    "RemoteError",
    "Skip",
    "SkipReason",
    "SymlinkPolicy",
    "SyncConfig",
    "SyncDirection",
    "SyncError",
    "SyncPlan",
    "SyncResult",
    "SyncService",
    "SyncSettings",
    "UnsupportedSymlinkError",
    "Upload",
    "VerificationError",
    "plan_gcs_to_local",
    "plan_local_to_gcs",
    "sync_gcs_to_local",
    "sync_local_to_gcs",
]
