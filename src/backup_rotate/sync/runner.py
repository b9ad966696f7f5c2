"""Run the retention and upload pipeline for every configured prefix."""

from __future__ import annotations

import time
from pathlib import Path

import structlog

from backup_rotate.core.dates import DatePattern
from backup_rotate.core.exceptions import (
    BackupRotateError,
    InvalidDateFormat,
    SyncFailedError,
    UploadError,
)
from backup_rotate.core.models import (
    DatedFile,
    PrefixReport,
    PrefixStatus,
    SyncConfig,
    SyncReport,
)
from backup_rotate.logging import get_logger
from backup_rotate.storage.base import BaseStorage
from backup_rotate.sync.listing import list_local, list_remote
from backup_rotate.sync.selection import (
    local_backups,
    remote_backups,
    select_deletions,
    select_upload,
)

log = get_logger(__name__)


class BackupSynchronizer:
    """Prune old remote backups and upload the newest local one, per prefix.

    Prefixes are processed in configuration order, one blocking storage call
    at a time. By default the first error aborts the run. With
    ``continue_on_error`` each prefix's error is recorded and the remaining
    prefixes still run; a :class:`SyncFailedError` is raised at the end.
    A date that does not match ``date_format`` always aborts immediately.
    """

    def __init__(
            self,
            config: SyncConfig,
            storage: BaseStorage,
            *,
            dry_run: bool = False,
    ) -> None:
        self.config = config
        self.storage = storage
        self.dry_run = dry_run
        self.pattern = DatePattern(config.date_format)

    def run(self) -> SyncReport:
        """Execute one synchronization pass.

        Raises:
            DirectoryUnreadable: If the local backup directory cannot be listed.
            RemoteListError: If the remote folder cannot be listed.
            InvalidDateFormat: If a matching file name carries no valid date.
            StorageError: On the first delete/upload failure (fail-fast mode).
            SyncFailedError: If any prefix failed with ``continue_on_error``.
        """
        started = time.perf_counter()
        report = SyncReport(dry_run=self.dry_run)

        local_files = list_local(self.config.backup_dir)
        remote_entries = list_remote(self.storage)
        log.info(
            "listing_complete",
            local=len(local_files),
            remote=len(remote_entries),
            dry_run=self.dry_run,
        )

        for prefix in self.config.prefixes:
            prefix_report = PrefixReport(prefix=prefix)
            report.prefixes.append(prefix_report)
            with structlog.contextvars.bound_contextvars(prefix=prefix):
                try:
                    self._prune(prefix, remote_entries, prefix_report)
                    self._push(prefix, local_files, remote_entries, prefix_report)
                    prefix_report.status = PrefixStatus.COMPLETED
                except InvalidDateFormat:
                    prefix_report.status = PrefixStatus.FAILED
                    raise
                except BackupRotateError as exc:
                    prefix_report.status = PrefixStatus.FAILED
                    prefix_report.error = str(exc)
                    log.error("prefix_failed", error=str(exc))
                    if not self.config.continue_on_error:
                        raise

        report.duration_seconds = time.perf_counter() - started
        log.info(
            "sync_complete",
            duration_ms=round(report.duration_seconds * 1000),
            deleted=report.deleted_count,
            uploaded=report.uploaded_count,
            dry_run=self.dry_run,
        )
        if report.failed:
            raise SyncFailedError(report)
        return report

    def _prune(
            self,
            prefix: str,
            remote_entries: list[str],
            prefix_report: PrefixReport,
    ) -> None:
        """Delete the remote backups that fall outside the retention window."""
        backups = remote_backups(remote_entries, prefix, self.pattern)
        prefix_report.remote_count = len(backups)
        log.info("backups_detected", count=len(backups))

        for backup in select_deletions(backups, self.config.retention_count):
            if not self.dry_run:
                self.storage.delete(backup.name)
            remote_entries.remove(backup.name)
            prefix_report.deleted.append(backup.name)
            log.info("backup_deleted", name=backup.name, dry_run=self.dry_run)

    def _push(
            self,
            prefix: str,
            local_files: list[Path],
            remote_entries: list[str],
            prefix_report: PrefixReport,
    ) -> None:
        """Upload the newest local backup unless the remote folder already has it."""
        backups = local_backups(local_files, prefix, self.pattern)
        prefix_report.local_count = len(backups)

        newest = select_upload(backups)
        if newest is None:
            log.info("no_local_backup")
            return

        if newest.name.lower() in {e.lower() for e in remote_entries}:
            prefix_report.upload_skipped = newest.name
            log.info("upload_skipped_present", name=newest.name)
            return

        if not self.dry_run:
            self._upload(newest)
        remote_entries.append(newest.name)
        prefix_report.uploaded = newest.name
        log.info("backup_uploaded", name=newest.name, dry_run=self.dry_run)

    def _upload(self, backup: DatedFile) -> str:
        try:
            with open(backup.path, "rb") as stream:
                return self.storage.upload(backup.name, stream)
        except OSError as exc:
            raise UploadError(f"Cannot read local backup {backup.path}: {exc}") from exc
