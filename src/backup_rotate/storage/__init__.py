"""Storage backend registry."""

from __future__ import annotations

from backup_rotate.core.exceptions import ConfigError
from backup_rotate.core.models import StorageConfig, StorageType
from backup_rotate.storage.base import BaseStorage, ListPage


def get_storage(config: StorageConfig) -> BaseStorage:
    """Instantiate the appropriate storage backend.

    Raises:
        ConfigError: If the storage type is not supported or misconfigured.
    """
    if config.type == StorageType.DROPBOX:
        if not config.token:
            raise ConfigError(
                "Dropbox access token is required ([storage] token or BACKUP_ROTATE_DROPBOX_TOKEN)"
            )
        from backup_rotate.storage.dropbox import DropboxStorage

        return DropboxStorage(
            token=config.token.get_secret_value(),
            client_identifier=config.client_identifier,
            folder=config.remote_folder,
            timeout=config.timeout,
        )

    if config.type == StorageType.S3:
        if not config.s3_bucket:
            raise ConfigError("S3 bucket name is required ([storage] s3_bucket or BACKUP_ROTATE_S3_BUCKET)")
        from backup_rotate.storage.s3 import S3Storage

        return S3Storage(
            bucket=config.s3_bucket,
            prefix=config.s3_prefix,
            region=config.s3_region,
            endpoint_url=config.s3_endpoint_url,
        )

    if config.type == StorageType.LOCAL:
        from backup_rotate.storage.local import LocalStorage

        return LocalStorage(base_path=config.local_path)

    raise ConfigError(f"Unsupported storage type: {config.type}")


__all__ = ["BaseStorage", "ListPage", "get_storage"]
