"""Sync engine settings and configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional


class SyncConfig:
    """Centralized default settings."""

    # Project paths
    PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
    LOGS_DIR = PROJECT_ROOT / "logs"

    # Execution settings
    CONCURRENCY_LIMIT = 8
    MAX_RETRIES = 5

    # Retry settings
    RETRY_BASE_DELAY = 1
    RETRY_MAX_DELAY = 30

    # I/O settings
    CHUNK_SIZE = 256 * 1024
    LIST_PAGE_SIZE = 1000
    DEFAULT_CONTENT_TYPE = "application/octet-stream"
    TEMP_SUFFIX = ".part"
    DIRECTORY_CONTENT_TYPE = "application/x-directory"

    # Environment overrides, e.g. CSYNC_CONCURRENCY=16
    ENV_PREFIX = "CSYNC_"


@dataclass(frozen=True)
class SyncSettings:
    """Per-invocation settings. Each run owns its own copy."""

    concurrency: int = SyncConfig.CONCURRENCY_LIMIT
    max_retries: int = SyncConfig.MAX_RETRIES
    retry_base_delay: float = SyncConfig.RETRY_BASE_DELAY
    retry_max_delay: float = SyncConfig.RETRY_MAX_DELAY
    chunk_size: int = SyncConfig.CHUNK_SIZE
    list_page_size: int = SyncConfig.LIST_PAGE_SIZE
    show_progress: bool = False

    def __post_init__(self):
        if self.concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if self.list_page_size <= 0:
            raise ValueError("list_page_size must be positive")
        if self.retry_base_delay < 0 or self.retry_max_delay < 0:
            raise ValueError("retry delays cannot be negative")

    def with_overrides(self, **overrides) -> "SyncSettings":
        """Return a copy with the non-None overrides applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SyncSettings":
        """Build settings from CSYNC_* environment variables."""
        env = os.environ if environ is None else environ
        prefix = SyncConfig.ENV_PREFIX

        def _get(name: str, cast):
            raw = env.get(f"{prefix}{name}")
            if raw is None or raw == "":
                return None
            try:
                return cast(raw)
            except ValueError as e:
                raise ValueError(f"Invalid value for {prefix}{name}: {raw!r}") from e

        return cls().with_overrides(
            concurrency=_get("CONCURRENCY", int),
            max_retries=_get("MAX_RETRIES", int),
            retry_base_delay=_get("RETRY_BASE_DELAY", float),
            retry_max_delay=_get("RETRY_MAX_DELAY", float),
            chunk_size=_get("CHUNK_SIZE", int),
            list_page_size=_get("LIST_PAGE_SIZE", int),
        )
