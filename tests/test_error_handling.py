"""
Tests for error categorization and wrapping.
"""
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests
from google.api_core import exceptions as api_exceptions
from google.auth import exceptions as auth_exceptions

from cloud_storage_sync.errors import (
    LocalIoError,
    PathError,
    RemoteError,
    UnsupportedSymlinkError,
    VerificationError,
)
from cloud_storage_sync.storage.error_handling import (
    TRANSIENT_CATEGORIES,
    ErrorCategory,
    categorize_error,
    is_transient,
    to_sync_error,
)


def http_error(status):
    response = MagicMock()
    response.status_code = status
    return requests.exceptions.HTTPError(response=response)


class TestCategorizeError:
    """Test categorize_error over library and engine exceptions."""

    @pytest.mark.parametrize("exc,category", [
        (api_exceptions.ServiceUnavailable("x"), ErrorCategory.SERVER),
        (api_exceptions.InternalServerError("x"), ErrorCategory.SERVER),
        (api_exceptions.TooManyRequests("x"), ErrorCategory.RATE_LIMIT),
        (api_exceptions.from_http_status(408, "x"), ErrorCategory.TIMEOUT),
        (api_exceptions.GatewayTimeout("x"), ErrorCategory.SERVER),
        (api_exceptions.Forbidden("x"), ErrorCategory.AUTH),
        (api_exceptions.Unauthorized("x"), ErrorCategory.AUTH),
        (api_exceptions.NotFound("x"), ErrorCategory.NOT_FOUND),
        (api_exceptions.BadRequest("x"), ErrorCategory.CLIENT),
        (api_exceptions.RetryError("deadline", None), ErrorCategory.TIMEOUT),
        (auth_exceptions.RefreshError("expired"), ErrorCategory.AUTH),
        (auth_exceptions.TransportError("dns"), ErrorCategory.NETWORK),
        (requests.exceptions.ConnectTimeout(), ErrorCategory.TIMEOUT),
        (requests.exceptions.ConnectionError(), ErrorCategory.NETWORK),
        (requests.exceptions.ChunkedEncodingError(), ErrorCategory.NETWORK),
        (http_error(503), ErrorCategory.SERVER),
        (http_error(404), ErrorCategory.NOT_FOUND),
        (TimeoutError(), ErrorCategory.TIMEOUT),
        (ConnectionResetError(), ErrorCategory.NETWORK),
        (PermissionError("denied"), ErrorCategory.LOCAL_IO),
        (VerificationError("k", "a", "b"), ErrorCategory.VERIFICATION),
        (PathError("../x"), ErrorCategory.PATH),
        (UnsupportedSymlinkError(Path("link")), ErrorCategory.LOCAL_IO),
        (RuntimeError("?"), ErrorCategory.UNKNOWN),
    ])
    def test_categories(self, exc, category):
        assert categorize_error(exc) is category

    def test_remote_error_uses_its_category(self):
        assert categorize_error(RemoteError("x", category=ErrorCategory.RATE_LIMIT)) is ErrorCategory.RATE_LIMIT
        assert categorize_error(RemoteError("x", transient=True)) is ErrorCategory.NETWORK
        assert categorize_error(RemoteError("x")) is ErrorCategory.CLIENT

    def test_transient_categories(self):
        assert TRANSIENT_CATEGORIES == {
            ErrorCategory.NETWORK,
            ErrorCategory.SERVER,
            ErrorCategory.RATE_LIMIT,
            ErrorCategory.TIMEOUT,
        }
        assert is_transient(api_exceptions.ServiceUnavailable("x"))
        assert not is_transient(api_exceptions.Forbidden("x"))
        assert not is_transient(VerificationError("k", "a", "b"))


class TestToSyncError:
    def test_sync_errors_pass_through(self):
        error = LocalIoError(Path("f"), "boom")

        assert to_sync_error(error) is error

    def test_remote_wrapping(self):
        error = to_sync_error(api_exceptions.ServiceUnavailable("busy"), key="pre/a.txt")

        assert isinstance(error, RemoteError)
        assert error.key == "pre/a.txt"
        assert error.transient
        assert error.category is ErrorCategory.SERVER
        assert "server error" in str(error)

    def test_os_error_becomes_local_io(self):
        error = to_sync_error(PermissionError(13, "Permission denied", "/tmp/x"), path=Path("/tmp/x"))

        assert isinstance(error, LocalIoError)
        assert error.path == Path("/tmp/x")

    def test_os_error_path_from_filename(self):
        error = to_sync_error(FileNotFoundError(2, "No such file", "/tmp/missing"))

        assert error.path == "/tmp/missing"
