"""Retention and upload pipeline."""

from backup_rotate.sync.runner import BackupSynchronizer

__all__ = ["BackupSynchronizer"]
