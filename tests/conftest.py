"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO

import pytest

from backup_rotate.core.exceptions import DeleteError, UploadError
from backup_rotate.core.models import StorageConfig, StorageType, SyncConfig
from backup_rotate.storage.base import BaseStorage, ListPage


class FakeStorage(BaseStorage):
    """In-memory storage that serves a fixed listing in pages and records calls."""

    def __init__(
            self,
            entries: list[str] | None = None,
            page_size: int = 100,
            fail_delete: set[str] | None = None,
            fail_upload: set[str] | None = None,
    ) -> None:
        self.files: dict[str, bytes] = {name: b"" for name in entries or []}
        self.page_size = page_size
        self.fail_delete = fail_delete or set()
        self.fail_upload = fail_upload or set()
        self.calls: list[tuple[str, ...]] = []
        self.streams: list[BinaryIO] = []
        self.closed = False

    def list_page(self, cursor: str | None = None) -> ListPage:
        self.calls.append(("list", cursor or ""))
        names = list(self.files)
        offset = int(cursor) if cursor else 0
        end = offset + self.page_size
        has_more = end < len(names)
        return ListPage(names[offset:end], has_more, str(end) if has_more else None)

    def upload(self, name: str, stream: BinaryIO) -> str:
        self.calls.append(("upload", name))
        self.streams.append(stream)
        if name in self.fail_upload:
            raise UploadError(f"upload of {name} refused")
        self.files[name] = stream.read()
        return f"fake:/{name}"

    def delete(self, name: str) -> None:
        self.calls.append(("delete", name))
        if name in self.fail_delete:
            raise DeleteError(f"delete of {name} refused")
        del self.files[name]

    def close(self) -> None:
        self.closed = True

    def calls_of(self, kind: str) -> list[str]:
        return [c[1] for c in self.calls if c[0] == kind]


@pytest.fixture()
def backup_dir(tmp_path: Path) -> Path:
    """Return an empty local backup directory."""
    d = tmp_path / "backups"
    d.mkdir()
    return d


@pytest.fixture()
def make_backups(backup_dir: Path):
    """Create local backup files by name, each holding its own name as content."""

    def _make(*names: str) -> list[Path]:
        paths = []
        for name in names:
            p = backup_dir / name
            p.write_bytes(name.encode())
            paths.append(p)
        return paths

    return _make


@pytest.fixture()
def sync_config(backup_dir: Path, tmp_path: Path) -> SyncConfig:
    """Return a config with one ``db_`` prefix, daily dates and N=2."""
    return SyncConfig(
        backup_dir=backup_dir,
        prefixes=["db_"],
        date_format="yyyyMMdd",
        retention_count=2,
        storage=StorageConfig(type=StorageType.LOCAL, local_path=tmp_path / "remote"),
    )


@pytest.fixture()
def fake_storage_cls() -> type[FakeStorage]:
    return FakeStorage
