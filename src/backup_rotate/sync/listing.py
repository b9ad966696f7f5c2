"""Enumerate the local backup directory and the remote folder."""

from __future__ import annotations

from pathlib import Path

from backup_rotate.core.exceptions import DirectoryUnreadable
from backup_rotate.logging import get_logger
from backup_rotate.storage.base import BaseStorage

log = get_logger(__name__)


def list_local(directory: Path) -> list[Path]:
    """Return the files directly inside ``directory``, sorted by name.

    Raises:
        DirectoryUnreadable: If the directory is missing or cannot be read.
    """
    try:
        files = sorted(p for p in directory.iterdir() if p.is_file())
    except OSError as exc:
        raise DirectoryUnreadable(f"Cannot list backup directory {directory}: {exc}") from exc
    log.debug("local_listed", directory=str(directory), count=len(files))
    return files


def list_remote(storage: BaseStorage) -> list[str]:
    """Fetch every page of the remote listing and concatenate them in call order.

    Raises:
        RemoteListError: If any page request fails. There is no retry.
    """
    page = storage.list_page()
    entries = list(page.entries)
    pages = 1
    while page.has_more:
        page = storage.list_page(page.cursor)
        entries.extend(page.entries)
        pages += 1
    log.debug("remote_listed", count=len(entries), pages=pages)
    return entries
