"""Decide which remote backups to prune and which local backup to push."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from backup_rotate.core.dates import DatePattern, parse_date
from backup_rotate.core.models import DatedFile


def matches_prefix(name: str, prefix: str) -> bool:
    """Case-insensitive test for whether ``name`` belongs to the ``prefix`` series."""
    return name.lower().startswith(prefix.lower())


def remote_backups(
        entries: Iterable[str],
        prefix: str,
        pattern: DatePattern,
) -> list[DatedFile]:
    """Map remote entry names in the ``prefix`` series to dated files.

    Raises:
        InvalidDateFormat: If a matching name carries no valid date.
    """
    return [
        DatedFile(name=name, timestamp=parse_date(name, prefix, pattern))
        for name in entries
        if matches_prefix(name, prefix)
    ]


def local_backups(
        paths: Iterable[Path],
        prefix: str,
        pattern: DatePattern,
) -> list[DatedFile]:
    """Map local files in the ``prefix`` series to dated files.

    Raises:
        InvalidDateFormat: If a matching name carries no valid date.
    """
    return [
        DatedFile(name=path.name, path=path, timestamp=parse_date(path.name, prefix, pattern))
        for path in paths
        if matches_prefix(path.name, prefix)
    ]


def select_deletions(files: list[DatedFile], retention_count: int) -> list[DatedFile]:
    """Return the remote backups to delete, newest first.

    Nothing is deleted while fewer than ``retention_count`` backups exist.
    Once the count is reached, only the ``retention_count - 1`` newest are
    kept, which leaves room for the upload that follows in the same run.
    Equal timestamps keep their listing order (earlier entries rank newer).
    """
    if retention_count < 1:
        raise ValueError("retention_count must be at least 1")
    if len(files) < retention_count:
        return []
    newest_first = sorted(files, key=lambda f: f.timestamp, reverse=True)
    return newest_first[retention_count - 1:]


def select_upload(files: list[DatedFile]) -> DatedFile | None:
    """Return the newest local backup, or ``None`` if there is none.

    On equal timestamps the first one in listing order wins.
    """
    if not files:
        return None
    return max(files, key=lambda f: f.timestamp)
