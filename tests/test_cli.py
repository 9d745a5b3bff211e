import pytest
import typer
from typer.testing import CliRunner
from unittest import mock
from google.api_core import exceptions as api_exceptions

from cloud_storage_sync.cli import app, parse_gcs_url

from tests.fixtures.store_fixtures import InMemoryObjectStore, read_tree, write_tree

runner = CliRunner()


@pytest.fixture
def cli_store(monkeypatch):
    """Route the CLI to an in-memory store and keep retries instant."""
    fake = InMemoryObjectStore()
    monkeypatch.setattr("cloud_storage_sync.cli.build_store", lambda: fake)
    monkeypatch.setenv("CSYNC_RETRY_BASE_DELAY", "0")
    monkeypatch.setenv("CSYNC_RETRY_MAX_DELAY", "0")
    monkeypatch.setenv("CSYNC_MAX_RETRIES", "2")
    return fake


def test_parse_gcs_url():
    """Test bucket/prefix splitting."""
    assert parse_gcs_url("gs://bucket/some/prefix/") == ("bucket", "some/prefix/")
    assert parse_gcs_url("gs://bucket") == ("bucket", "")
    with pytest.raises(typer.BadParameter):
        parse_gcs_url("s3://bucket/x")
    with pytest.raises(typer.BadParameter):
        parse_gcs_url("gs:///x")


def test_upload_command(tmp_path, cli_store):
    """Test upload of a directory tree."""
    write_tree(tmp_path, {"a.txt": b"a", "sub/b.txt": b"b"})

    result = runner.invoke(app, ["upload", str(tmp_path), "gs://bkt/backup"])

    assert result.exit_code == 0
    assert "Sync completed: 2 operation(s) succeeded, 0 failed, 0 skipped." in result.output
    assert cli_store.keys("bkt") == ["backup/a.txt", "backup/sub/b.txt"]


def test_download_command(tmp_path, cli_store):
    """Test download into a new directory."""
    cli_store.add_object("bkt", "data/x.txt", b"x")

    result = runner.invoke(app, ["download", "gs://bkt/data", str(tmp_path / "out")])

    assert result.exit_code == 0
    assert read_tree(tmp_path / "out") == {"x.txt": b"x"}


def test_dry_run_prints_plan_without_transfers(tmp_path, cli_store):
    """Test --dry-run output."""
    write_tree(tmp_path, {"a.txt": b"a"})

    result = runner.invoke(app, ["upload", str(tmp_path), "gs://bkt/p", "--dry-run"])

    assert result.exit_code == 0
    assert "-> p/a.txt" in result.output
    assert "Dry run: 1 operation(s) planned, 0 skipped." in result.output
    assert cli_store.keys("bkt") == []


@mock.patch("cloud_storage_sync.cli.SyncService")
def test_options_reach_the_service(mock_service_cls, tmp_path, cli_store):
    """Test --force, --mirror and --concurrency wiring."""
    service = mock_service_cls.return_value
    service.upload = mock.AsyncMock(return_value=mock.MagicMock(success=True, succeeded=0, failures=[], skipped=0))

    result = runner.invoke(
        app, ["upload", str(tmp_path), "gs://bkt/p", "--force", "--mirror", "-c", "3", "--follow-symlinks"]
    )

    assert result.exit_code == 0
    service.upload.assert_awaited_once_with(tmp_path, "bkt", "p", True, True)
    settings = mock_service_cls.call_args.args[1]
    assert settings.concurrency == 3
    assert mock_service_cls.call_args.kwargs["symlinks"].value == "follow"


def test_empty_dirs_option(tmp_path, cli_store):
    """Test --empty-dirs in both directions."""
    write_tree(tmp_path / "src", {"a.txt": b"a"})
    (tmp_path / "src" / "empty").mkdir()

    plain = runner.invoke(app, ["upload", str(tmp_path / "src"), "gs://bkt/p"])
    marked = runner.invoke(app, ["upload", str(tmp_path / "src"), "gs://bkt/p", "--empty-dirs"])
    down = runner.invoke(app, ["download", "gs://bkt/p", str(tmp_path / "dst"), "--empty-dirs"])

    assert plain.exit_code == 0 and marked.exit_code == 0 and down.exit_code == 0
    assert "Sync completed: 1 operation(s) succeeded" in marked.output
    assert cli_store.keys("bkt") == ["p/a.txt", "p/empty/"]
    assert (tmp_path / "dst" / "empty").is_dir()


def test_partial_failure_exits_non_zero(tmp_path, cli_store):

    """Test exit code when some operations fail."""
    write_tree(tmp_path, {"ok.txt": b"ok", "bad.txt": b"bad"})
    cli_store.fail("put", "p/bad.txt", api_exceptions.Forbidden("denied"), always=True)

    result = runner.invoke(app, ["upload", str(tmp_path), "gs://bkt/p"])

    assert result.exit_code == 1
    assert "FAILED upload" in result.output
    assert "Sync finished with failures: 1 operation(s) succeeded, 1 failed" in result.output


def test_sync_error_exits_non_zero(tmp_path, cli_store):
    """Test a run-level error such as a missing source."""
    result = runner.invoke(app, ["upload", str(tmp_path / "missing"), "gs://bkt/p"])

    assert result.exit_code == 1
    assert "Error: Local source does not exist" in result.output


def test_unexpected_error(tmp_path, monkeypatch):
    """Test an unexpected failure while building the store."""
    def broken_store():
        raise RuntimeError("Something went wrong")

    monkeypatch.setattr("cloud_storage_sync.cli.build_store", broken_store)
    result = runner.invoke(app, ["upload", str(tmp_path), "gs://bkt/p"])

    assert result.exit_code == 1
    assert "An unexpected error occurred during sync:" in result.output
    assert "Something went wrong" in result.output


def test_invalid_url_is_usage_error(tmp_path, cli_store):
    result = runner.invoke(app, ["upload", str(tmp_path), "bkt/p"])

    assert result.exit_code == 2
