"""Custom exceptions for backup-rotate."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from backup_rotate.core.models import SyncReport


class BackupRotateError(Exception):
    """Base exception for all backup-rotate errors."""


class ConfigError(BackupRotateError):
    """Raised when configuration is invalid or missing."""


class InvalidDateFormat(ConfigError):
    """Raised when a file name does not match the configured date format."""


class DirectoryUnreadable(BackupRotateError):
    """Raised when the local backup directory cannot be listed."""


class StorageError(BackupRotateError):
    """Raised when a storage operation fails."""


class RemoteListError(StorageError):
    """Raised when listing the remote folder fails."""


class UploadError(StorageError):
    """Raised when uploading a backup fails."""


class DeleteError(StorageError):
    """Raised when deleting a remote backup fails."""


class SyncFailedError(BackupRotateError):
    """Raised at the end of a run in which one or more prefixes failed."""

    def __init__(self, report: SyncReport) -> None:
        self.report = report
        failed = [p.prefix for p in report.prefixes if p.error]
        super().__init__(f"Sync failed for prefix(es): {', '.join(failed)}")
