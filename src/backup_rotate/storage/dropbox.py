"""Dropbox storage backend speaking the Dropbox HTTP API v2 over httpx."""

from __future__ import annotations

import json
from typing import Any, BinaryIO

import httpx

from backup_rotate.core.exceptions import (
    DeleteError,
    RemoteListError,
    StorageError,
    UploadError,
)
from backup_rotate.logging import get_logger
from backup_rotate.storage.base import BaseStorage, ListPage

log = get_logger(__name__)

API_URL = "https://api.dropboxapi.com/2"
CONTENT_URL = "https://content.dropboxapi.com/2"

# Streams larger than one chunk go through an upload session
_SESSION_CHUNKSIZE = 16 * 1024 * 1024  # 16 MB


class DropboxStorage(BaseStorage):
    """Store backup files in a Dropbox folder."""

    def __init__(
            self,
            token: str,
            client_identifier: str = "backup-rotate",
            folder: str = "",
            timeout: float = 60.0,
            chunk_size: int = _SESSION_CHUNKSIZE,
            transport: httpx.BaseTransport | None = None,
    ) -> None:
        folder = folder.strip("/")
        # The API addresses the root folder as "" rather than "/"
        self.folder = f"/{folder}" if folder else ""
        self.chunk_size = chunk_size
        self._client = httpx.Client(
            headers={
                "Authorization": f"Bearer {token}",
                "User-Agent": client_identifier,
            },
            timeout=timeout,
            transport=transport,
        )

    def _path(self, name: str) -> str:
        return f"{self.folder}/{name}"

    # ── HTTP helpers ──

    def _rpc(
            self,
            endpoint: str,
            payload: dict[str, Any],
            error_cls: type[StorageError],
    ) -> dict[str, Any]:
        """Call an RPC endpoint (JSON in, JSON out)."""
        try:
            response = self._client.post(f"{API_URL}/{endpoint}", json=payload)
            _raise_for_status(response, endpoint, error_cls)
            return response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise error_cls(f"Dropbox {endpoint} failed: {exc}") from exc

    def _content(
            self,
            endpoint: str,
            arg: dict[str, Any],
            data: bytes,
            error_cls: type[StorageError],
    ) -> dict[str, Any]:
        """Call a content-upload endpoint (arguments in a header, bytes in the body)."""
        headers = {
            "Dropbox-API-Arg": json.dumps(arg),
            "Content-Type": "application/octet-stream",
        }
        try:
            response = self._client.post(
                f"{CONTENT_URL}/{endpoint}", headers=headers, content=data,
            )
            _raise_for_status(response, endpoint, error_cls)
            return response.json() if response.content else {}
        except (httpx.HTTPError, ValueError) as exc:
            raise error_cls(f"Dropbox {endpoint} failed: {exc}") from exc

    # ── BaseStorage ──

    def list_page(self, cursor: str | None = None) -> ListPage:
        """List the files directly inside the configured folder."""
        if cursor is None:
            data = self._rpc(
                "files/list_folder",
                {"path": self.folder, "recursive": False, "include_deleted": False},
                RemoteListError,
            )
        else:
            data = self._rpc("files/list_folder/continue", {"cursor": cursor}, RemoteListError)

        entries = [e["name"] for e in data.get("entries", []) if e.get(".tag") == "file"]
        has_more = bool(data.get("has_more"))
        return ListPage(
            entries=entries,
            has_more=has_more,
            cursor=data.get("cursor") if has_more else None,
        )

    def upload(self, name: str, stream: BinaryIO) -> str:
        """Upload a stream, switching to an upload session past one chunk."""
        path = self._path(name)
        commit = {"path": path, "mode": "add", "autorename": False, "mute": False}

        chunk = stream.read(self.chunk_size)
        if len(chunk) < self.chunk_size:
            result = self._content("files/upload", commit, chunk, UploadError)
            log.info("dropbox_upload_complete", path=path, size=len(chunk))
            return result.get("path_display", path)

        log.info("dropbox_upload_session_start", path=path)
        started = self._content(
            "files/upload_session/start", {"close": False}, chunk, UploadError,
        )
        session_id = started.get("session_id")
        if not session_id:
            raise UploadError("Dropbox files/upload_session/start returned no session_id")
        session_cursor = {"session_id": session_id, "offset": len(chunk)}

        while True:
            chunk = stream.read(self.chunk_size)
            if len(chunk) < self.chunk_size:
                result = self._content(
                    "files/upload_session/finish",
                    {"cursor": session_cursor, "commit": commit},
                    chunk,
                    UploadError,
                )
                break
            self._content(
                "files/upload_session/append_v2",
                {"cursor": session_cursor, "close": False},
                chunk,
                UploadError,
            )
            session_cursor["offset"] += len(chunk)
            log.debug("dropbox_upload_progress", path=path, offset=session_cursor["offset"])

        size = session_cursor["offset"] + len(chunk)
        log.info("dropbox_upload_complete", path=path, size=size)
        return result.get("path_display", path)

    def delete(self, name: str) -> None:
        """Delete a file from the Dropbox folder."""
        path = self._path(name)
        self._rpc("files/delete_v2", {"path": path}, DeleteError)
        log.info("dropbox_delete_complete", path=path)

    def close(self) -> None:
        self._client.close()


def _raise_for_status(
        response: httpx.Response,
        endpoint: str,
        error_cls: type[StorageError],
) -> None:
    """Turn an API error response into ``error_cls`` with Dropbox's error summary."""
    if response.is_success:
        return
    try:
        summary = response.json().get("error_summary", response.text)
    except ValueError:
        summary = response.text
    raise error_cls(f"Dropbox {endpoint} failed ({response.status_code}): {summary}")
