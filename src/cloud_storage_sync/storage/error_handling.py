"""Error handling and categorization for object-store operations."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

import requests
from google.api_core import exceptions as api_exceptions
from google.auth import exceptions as auth_exceptions

from ..errors import LocalIoError, PathError, RemoteError, SyncError, VerificationError


class ErrorCategory(Enum):
    """Categories for different types of sync errors."""
    NETWORK = "network"
    SERVER = "server"
    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    AUTH = "auth"
    NOT_FOUND = "not_found"
    CLIENT = "client"
    LOCAL_IO = "local_io"
    VERIFICATION = "verification"
    PATH = "path"
    UNKNOWN = "unknown"


TRANSIENT_CATEGORIES = frozenset({
    ErrorCategory.NETWORK,
    ErrorCategory.SERVER,
    ErrorCategory.RATE_LIMIT,
    ErrorCategory.TIMEOUT,
})


def _categorize_status(status: Optional[int]) -> ErrorCategory:
    if status is None:
        return ErrorCategory.UNKNOWN
    if status in (401, 403):
        return ErrorCategory.AUTH
    if status == 404:
        return ErrorCategory.NOT_FOUND
    if status == 408:
        return ErrorCategory.TIMEOUT
    if status == 429:
        return ErrorCategory.RATE_LIMIT
    if 400 <= status < 500:
        return ErrorCategory.CLIENT
    if 500 <= status < 600:
        return ErrorCategory.SERVER
    return ErrorCategory.UNKNOWN


def categorize_error(exception: BaseException) -> ErrorCategory:
    """Categorize an exception into error types for retry and reporting."""
    if isinstance(exception, RemoteError):
        if isinstance(exception.category, ErrorCategory):
            return exception.category
        return ErrorCategory.NETWORK if exception.transient else ErrorCategory.CLIENT
    elif isinstance(exception, VerificationError):
        return ErrorCategory.VERIFICATION
    elif isinstance(exception, PathError):
        return ErrorCategory.PATH
    elif isinstance(exception, LocalIoError):
        return ErrorCategory.LOCAL_IO
    elif isinstance(exception, api_exceptions.RetryError):
        return ErrorCategory.TIMEOUT
    elif isinstance(exception, api_exceptions.GoogleAPICallError):
        return _categorize_status(exception.code)
    elif isinstance(exception, auth_exceptions.RefreshError):
        return ErrorCategory.AUTH
    elif isinstance(exception, auth_exceptions.TransportError):
        return ErrorCategory.NETWORK
    # requests exceptions derive from OSError, so they go before the OS checks
    elif isinstance(exception, requests.exceptions.Timeout):
        return ErrorCategory.TIMEOUT
    elif isinstance(exception, (requests.exceptions.ConnectionError, requests.exceptions.ChunkedEncodingError)):
        return ErrorCategory.NETWORK
    elif isinstance(exception, requests.exceptions.HTTPError):
        response = exception.response
        return _categorize_status(response.status_code if response is not None else None)
    elif isinstance(exception, TimeoutError):
        return ErrorCategory.TIMEOUT
    elif isinstance(exception, ConnectionError):
        return ErrorCategory.NETWORK
    elif isinstance(exception, OSError):
        return ErrorCategory.LOCAL_IO
    else:
        return ErrorCategory.UNKNOWN


def is_transient(exception: BaseException) -> bool:
    """True when retrying the same call may succeed."""
    return categorize_error(exception) in TRANSIENT_CATEGORIES


def to_sync_error(
    exception: BaseException,
    key: Optional[str] = None,
    path: Optional[Path] = None,
) -> SyncError:
    """Wrap a raw exception into the matching SyncError kind."""
    if isinstance(exception, SyncError):
        return exception

    category = categorize_error(exception)
    if category is ErrorCategory.LOCAL_IO:
        return LocalIoError(path or getattr(exception, "filename", None), str(exception))
    return RemoteError(
        f"{category.value} error: {exception}",
        key=key,
        transient=category in TRANSIENT_CATEGORIES,
        category=category,
    )
