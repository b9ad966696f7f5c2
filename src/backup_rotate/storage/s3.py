"""AWS S3 storage backend."""

from __future__ import annotations

from typing import Any, BinaryIO

import boto3
from boto3.exceptions import S3UploadFailedError
from boto3.s3.transfer import TransferConfig
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from backup_rotate.core.exceptions import DeleteError, RemoteListError, UploadError
from backup_rotate.logging import get_logger
from backup_rotate.storage.base import BaseStorage, ListPage

log = get_logger(__name__)

# Multipart upload configuration
_MULTIPART_THRESHOLD = 100 * 1024 * 1024  # 100 MB
_MULTIPART_CHUNKSIZE = 50 * 1024 * 1024  # 50 MB


class S3Storage(BaseStorage):
    """Store backup files under a key prefix in an S3 bucket."""

    def __init__(
            self,
            bucket: str,
            prefix: str = "",
            region: str = "us-east-1",
            endpoint_url: str | None = None,
            client: Any | None = None,
    ) -> None:
        self.bucket = bucket
        self.prefix = prefix.rstrip("/") + "/" if prefix else ""
        self.region = region
        self.endpoint_url = endpoint_url

        if client is None:
            # A failed call aborts the run; the next scheduled run is the retry
            boto_config = BotoConfig(
                region_name=region,
                retries={"max_attempts": 1, "mode": "standard"},
            )
            client_kwargs: dict[str, Any] = {"config": boto_config}
            if endpoint_url:
                client_kwargs["endpoint_url"] = endpoint_url
            client = boto3.Session().client("s3", **client_kwargs)
        self._client = client

        self._transfer_config = TransferConfig(
            multipart_threshold=_MULTIPART_THRESHOLD,
            multipart_chunksize=_MULTIPART_CHUNKSIZE,
            use_threads=False,
        )

    def _full_key(self, name: str) -> str:
        """Prepend the configured prefix to a file name."""
        return f"{self.prefix}{name}"

    def list_page(self, cursor: str | None = None) -> ListPage:
        """List the objects directly under the prefix, one S3 page per call."""
        kwargs: dict[str, Any] = {
            "Bucket": self.bucket,
            "Prefix": self.prefix,
            "Delimiter": "/",
        }
        if cursor:
            kwargs["ContinuationToken"] = cursor

        try:
            page = self._client.list_objects_v2(**kwargs)
        except (ClientError, BotoCoreError) as exc:
            raise RemoteListError(f"Failed to list S3 objects: {exc}") from exc

        entries = [obj["Key"][len(self.prefix):] for obj in page.get("Contents", [])]
        has_more = bool(page.get("IsTruncated"))
        return ListPage(
            entries=[e for e in entries if e],
            has_more=has_more,
            cursor=page.get("NextContinuationToken") if has_more else None,
        )

    def upload(self, name: str, stream: BinaryIO) -> str:
        """Upload a stream to S3, using multipart transfers for large files."""
        full_key = self._full_key(name)
        log.info("s3_upload_start", bucket=self.bucket, key=full_key)

        try:
            self._client.upload_fileobj(
                stream,
                self.bucket,
                full_key,
                Config=self._transfer_config,
            )
        except (ClientError, BotoCoreError, S3UploadFailedError) as exc:
            raise UploadError(f"S3 upload failed: {exc}") from exc

        location = f"s3://{self.bucket}/{full_key}"
        log.info("s3_upload_complete", location=location)
        return location

    def delete(self, name: str) -> None:
        """Delete a backup object from S3."""
        full_key = self._full_key(name)

        try:
            self._client.delete_object(Bucket=self.bucket, Key=full_key)
            log.info("s3_delete_complete", bucket=self.bucket, key=full_key)
        except (ClientError, BotoCoreError) as exc:
            raise DeleteError(f"Failed to delete S3 object: {exc}") from exc
