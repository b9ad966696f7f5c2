"""Tests for the local storage backend."""

from __future__ import annotations

import io
from pathlib import Path
from unittest.mock import patch

import pytest

from backup_rotate.core.exceptions import DeleteError
from backup_rotate.storage.local import LocalStorage


class TestLocalStorage:
    def test_creates_base_path(self, tmp_path: Path) -> None:
        LocalStorage(tmp_path / "store")
        assert (tmp_path / "store").is_dir()

    def test_upload(self, tmp_path: Path) -> None:
        storage = LocalStorage(tmp_path / "store")
        location = storage.upload("db_20230101", io.BytesIO(b"payload"))
        assert Path(location).read_bytes() == b"payload"

    def test_list_single_page(self, tmp_path: Path) -> None:
        storage = LocalStorage(tmp_path / "store")
        storage.upload("db_20230102", io.BytesIO(b"b"))
        storage.upload("db_20230101", io.BytesIO(b"a"))
        (tmp_path / "store" / "nested").mkdir()

        page = storage.list_page()
        assert page.entries == ["db_20230101", "db_20230102"]
        assert not page.has_more
        assert page.cursor is None

    def test_list_paginated(self, tmp_path: Path) -> None:
        storage = LocalStorage(tmp_path / "store", page_size=2)
        for name in ("a", "b", "c"):
            storage.upload(name, io.BytesIO(b""))

        first = storage.list_page()
        assert first.entries == ["a", "b"]
        assert first.has_more
        second = storage.list_page(first.cursor)
        assert second.entries == ["c"]
        assert not second.has_more

    def test_list_empty(self, tmp_path: Path) -> None:
        assert LocalStorage(tmp_path / "store").list_page().entries == []

    def test_delete(self, tmp_path: Path) -> None:
        storage = LocalStorage(tmp_path / "store")
        storage.upload("db_20230101", io.BytesIO(b""))
        storage.delete("db_20230101")
        assert storage.list_page().entries == []

    def test_delete_missing(self, tmp_path: Path) -> None:
        storage = LocalStorage(tmp_path / "store")
        with pytest.raises(DeleteError, match="not found"):
            storage.delete("nonexistent")

    def test_delete_removed_concurrently(self, tmp_path: Path) -> None:
        storage = LocalStorage(tmp_path / "store")
        storage.upload("db_20230101", io.BytesIO(b""))
        gone = FileNotFoundError(2, "No such file or directory")
        with patch.object(Path, "unlink", side_effect=gone):
            with pytest.raises(DeleteError, match="not found"):
                storage.delete("db_20230101")

    def test_delete_permission_denied(self, tmp_path: Path) -> None:
        storage = LocalStorage(tmp_path / "store")
        storage.upload("db_20230101", io.BytesIO(b""))
        denied = PermissionError(13, "Permission denied")
        with patch.object(Path, "unlink", side_effect=denied):
            with pytest.raises(DeleteError, match="Failed to delete"):
                storage.delete("db_20230101")

    def test_context_manager(self, tmp_path: Path) -> None:
        with LocalStorage(tmp_path / "store") as storage:
            assert storage.list_page().entries == []
