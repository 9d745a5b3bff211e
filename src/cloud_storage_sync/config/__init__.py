"""Configuration management for cloud-storage-sync."""

from .settings import SyncConfig, SyncSettings

__all__ = ["SyncConfig", "SyncSettings"]
