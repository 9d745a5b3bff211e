import asyncio
import logging
from pathlib import Path
from typing import Optional, Tuple

import typer

from .config.settings import SyncSettings
from .errors import SyncError
from .storage.cloud_storage import create_gcs_store_from_config
from .storage.credential_resolver import GCSCredentialResolver
from .storage.object_store import ObjectStore
from .sync.local_walker import SymlinkPolicy
from .sync.sync_service import SyncService
from .sync.sync_types import SyncDirection, SyncPlan, SyncResult
from .utils.logger_setup import setup_logging

app = typer.Typer(
    name="csync",
    help="Sync a local directory or file with a Google Cloud Storage prefix.",
    add_completion=False
)


def parse_gcs_url(url: str) -> Tuple[str, str]:
    """Split gs://bucket/prefix into (bucket, prefix)."""
    if not url.startswith("gs://"):
        raise typer.BadParameter(f"Expected a gs://bucket/prefix URL, got: {url}")
    bucket, _, prefix = url[len("gs://"):].partition("/")
    if not bucket:
        raise typer.BadParameter(f"Missing bucket name in: {url}")
    return bucket, prefix


def build_store() -> ObjectStore:
    """GCS store from a resolved key file, or application default credentials."""
    credentials, _ = GCSCredentialResolver.resolve()
    config = {"credentials": credentials} if credentials else {}
    return create_gcs_store_from_config(config)


def _print_plan(plan: SyncPlan) -> None:
    for op in plan.actionable:
        typer.echo(op.describe())
    typer.echo(f"Dry run: {len(plan.actionable)} operation(s) planned, {len(plan.skipped)} skipped.")


def _report(result: SyncResult) -> None:
    for failure in result.failures:
        typer.secho(f"FAILED {failure.operation.describe()}: {failure.reason}", fg=typer.colors.RED, err=True)
    summary = (
        f"{result.succeeded} operation(s) succeeded, {len(result.failures)} failed, "
        f"{result.skipped} skipped."
    )
    if result.success:
        typer.secho(f"Sync completed: {summary}", fg=typer.colors.GREEN)
    else:
        typer.secho(f"Sync finished with failures: {summary}", fg=typer.colors.RED)
        raise typer.Exit(code=1)


def _run(
    direction: SyncDirection,
    local_path: Path,
    gcs_url: str,
    force: bool,
    mirror: bool,
    concurrency: Optional[int],
    dry_run: bool,
    progress: bool,
    follow_symlinks: bool,
    empty_dirs: bool = False,
) -> None:
    bucket, prefix = parse_gcs_url(gcs_url)

    try:
        settings = SyncSettings.from_env().with_overrides(concurrency=concurrency, show_progress=progress)
        service = SyncService(
            build_store(),
            settings,
            symlinks=SymlinkPolicy.FOLLOW if follow_symlinks else SymlinkPolicy.ERROR,
            empty_dirs=empty_dirs,
        )

        if dry_run:
            plan = asyncio.run(service.plan(direction, local_path, bucket, prefix, force, mirror))
            _print_plan(plan)
            return

        if direction is SyncDirection.LOCAL_TO_CLOUD:
            result = asyncio.run(service.upload(local_path, bucket, prefix, force, mirror))
        else:
            result = asyncio.run(service.download(bucket, prefix, local_path, force, mirror))
    except (SyncError, ValueError) as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    except Exception as e:
        typer.secho(f"An unexpected error occurred during sync: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    _report(result)


ForceOption = typer.Option(False, "--force", "-f", help="Transfer even when checksums already match.")
MirrorOption = typer.Option(False, "--mirror", help="Also delete destination entries missing from the source.")
ConcurrencyOption = typer.Option(None, "--concurrency", "-c", min=1, help="Maximum operations in flight.")
DryRunOption = typer.Option(False, "--dry-run", help="Print the plan without transferring anything.")
ProgressOption = typer.Option(False, "--progress/--no-progress", help="Show a progress bar.")
FollowOption = typer.Option(False, "--follow-symlinks", help="Follow symlinks instead of failing on them.")
EmptyDirsOption = typer.Option(False, "--empty-dirs", help="Carry empty directories across as dir/ marker objects.")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir", help="Also write rotating log files here."),
):
    setup_logging(log_level=logging.DEBUG if verbose else logging.INFO, log_dir=log_dir)


@app.command()
def upload(
    local_path: Path = typer.Argument(..., help="Local file or directory to upload."),
    gcs_url: str = typer.Argument(..., help="Destination, gs://bucket/prefix."),
    force: bool = ForceOption,
    mirror: bool = MirrorOption,
    concurrency: Optional[int] = ConcurrencyOption,
    dry_run: bool = DryRunOption,
    progress: bool = ProgressOption,
    follow_symlinks: bool = FollowOption,
    empty_dirs: bool = EmptyDirsOption,
):
    """
    Upload new and changed files to a bucket prefix.
    """
    _run(SyncDirection.LOCAL_TO_CLOUD, local_path, gcs_url, force, mirror,
         concurrency, dry_run, progress, follow_symlinks, empty_dirs)


@app.command()
def download(
    gcs_url: str = typer.Argument(..., help="Source, gs://bucket/prefix."),
    local_path: Path = typer.Argument(..., help="Local directory (or file) to write to."),
    force: bool = ForceOption,
    mirror: bool = MirrorOption,
    concurrency: Optional[int] = ConcurrencyOption,
    dry_run: bool = DryRunOption,
    progress: bool = ProgressOption,
    follow_symlinks: bool = FollowOption,
    empty_dirs: bool = EmptyDirsOption,
):
    """
    Download new and changed objects from a bucket prefix.
    """
    _run(SyncDirection.CLOUD_TO_LOCAL, local_path, gcs_url, force, mirror,
         concurrency, dry_run, progress, follow_symlinks, empty_dirs)


if __name__ == "__main__":
    app()
