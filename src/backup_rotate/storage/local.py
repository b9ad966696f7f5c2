"""Local filesystem storage backend (e.g. a mounted network share)."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import BinaryIO

from backup_rotate.core.exceptions import DeleteError, RemoteListError, UploadError
from backup_rotate.logging import get_logger
from backup_rotate.storage.base import BaseStorage, ListPage

log = get_logger(__name__)


class LocalStorage(BaseStorage):
    """Store backup files in a directory on the local filesystem."""

    def __init__(self, base_path: Path, page_size: int = 1000) -> None:
        self.base_path = base_path.expanduser().resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.page_size = page_size

    def _full_path(self, name: str) -> Path:
        return self.base_path / name

    def list_page(self, cursor: str | None = None) -> ListPage:
        """List files in the base directory, ``page_size`` entries at a time.

        The cursor is the offset of the next entry in name order.
        """
        try:
            offset = int(cursor) if cursor else 0
            names = sorted(p.name for p in self.base_path.iterdir() if p.is_file())
        except (OSError, ValueError) as exc:
            raise RemoteListError(f"Failed to list {self.base_path}: {exc}") from exc

        end = offset + self.page_size
        has_more = end < len(names)
        return ListPage(
            entries=names[offset:end],
            has_more=has_more,
            cursor=str(end) if has_more else None,
        )

    def upload(self, name: str, stream: BinaryIO) -> str:
        """Copy a byte stream into the storage directory."""
        dest = self._full_path(name)
        try:
            with open(dest, "wb") as out:
                shutil.copyfileobj(stream, out)
        except OSError as exc:
            raise UploadError(f"Failed to copy backup to {dest}: {exc}") from exc

        log.info("local_upload_complete", destination=str(dest), size=dest.stat().st_size)
        return str(dest)

    def delete(self, name: str) -> None:
        """Delete a backup file from the storage directory."""
        target = self._full_path(name)
        try:
            target.unlink()
        except FileNotFoundError as exc:
            raise DeleteError(f"File not found: {target}") from exc
        except OSError as exc:
            raise DeleteError(f"Failed to delete {target}: {exc}") from exc
        log.info("local_delete_complete", path=str(target))
