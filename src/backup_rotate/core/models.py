"""Pydantic models for backup-rotate configuration and run results."""

from __future__ import annotations

import enum
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


# ──────────────────────── Enums ──────────────────────────


class StorageType(enum.StrEnum):
    """Supported remote storage backends."""

    DROPBOX = "dropbox"
    S3 = "s3"
    LOCAL = "local"


class LogFormat(enum.StrEnum):
    """Structured log output format."""

    CONSOLE = "console"
    JSON = "json"


class PrefixStatus(enum.StrEnum):
    """Outcome of processing one prefix."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


# ──────────────────── Config Models ──────────────────────


class StorageConfig(BaseModel):
    """Remote storage backend configuration."""

    model_config = ConfigDict(frozen=True)

    type: StorageType = StorageType.DROPBOX

    # Dropbox settings
    client_identifier: str = "backup-rotate"
    token: SecretStr | None = None
    remote_folder: str = ""
    timeout: float = 60.0

    # S3 settings
    s3_bucket: str | None = None
    s3_prefix: str = ""
    s3_region: str = "us-east-1"
    s3_endpoint_url: str | None = None

    # Local settings
    local_path: Path = Path("./remote")


class LoggingConfig(BaseModel):
    """Logging settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: Path | None = None
    format: LogFormat = LogFormat.CONSOLE


class SyncConfig(BaseModel):
    """Top-level application configuration, loaded once per run."""

    model_config = ConfigDict(frozen=True)

    backup_dir: Path
    prefixes: tuple[str, ...]
    date_format: str = "yyyyMMdd"
    retention_count: int = 7
    continue_on_error: bool = False
    storage: StorageConfig = StorageConfig()
    logging: LoggingConfig = LoggingConfig()

    @field_validator("prefixes")
    @classmethod
    def validate_prefixes(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        if not v:
            msg = "At least one prefix is required"
            raise ValueError(msg)
        if any(not p for p in v):
            msg = "Prefixes must not be empty strings"
            raise ValueError(msg)
        return v

    @field_validator("retention_count")
    @classmethod
    def validate_retention_count(cls, v: int) -> int:
        if v < 1:
            msg = "Retention count must be at least 1"
            raise ValueError(msg)
        return v

    @field_validator("date_format")
    @classmethod
    def validate_date_format(cls, v: str) -> str:
        if not v:
            msg = "Date format must not be empty"
            raise ValueError(msg)
        return v


# ──────────────────── Domain Models ──────────────────────


class DatedFile(BaseModel):
    """A backup file whose name carries a timestamp right after its prefix."""

    model_config = ConfigDict(frozen=True)

    name: str
    timestamp: datetime
    path: Path | None = None  # set for local files only


class PrefixReport(BaseModel):
    """What a run did (or would do) for one prefix."""

    prefix: str
    status: PrefixStatus = PrefixStatus.PENDING
    remote_count: int = 0
    local_count: int = 0
    deleted: list[str] = Field(default_factory=list)
    uploaded: str | None = None
    upload_skipped: str | None = None
    error: str | None = None


class SyncReport(BaseModel):
    """Summary of a full synchronization run."""

    started_at: datetime = Field(default_factory=datetime.now)
    dry_run: bool = False
    prefixes: list[PrefixReport] = Field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def failed(self) -> bool:
        return any(p.status == PrefixStatus.FAILED for p in self.prefixes)

    @property
    def deleted_count(self) -> int:
        return sum(len(p.deleted) for p in self.prefixes)

    @property
    def uploaded_count(self) -> int:
        return sum(1 for p in self.prefixes if p.uploaded)
