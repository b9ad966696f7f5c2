"""Configuration loading and management for backup-rotate.

Configuration sources (highest to lowest priority):
  1. CLI arguments (passed directly)
  2. Environment variables (BACKUP_ROTATE_* prefix)
  3. Config file (~/.config/backup-rotate/config.toml)
  4. Defaults
"""

from __future__ import annotations

import contextlib
import os
import sys
import tomllib
from pathlib import Path
from typing import Any

import tomli_w
from pydantic import ValidationError

from backup_rotate.core.exceptions import ConfigError
from backup_rotate.core.models import LogFormat, StorageType, SyncConfig

# ──────────────────── Paths ──────────────────────────────

_APP_NAME = "backup-rotate"


def _get_config_dir() -> Path:
    """Return the platform-appropriate config directory."""
    if sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    elif sys.platform == "win32":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return base / _APP_NAME


CONFIG_DIR = _get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.toml"

# ──────────────────── Environment Loading ────────────────

_ENV_PREFIX = "BACKUP_ROTATE_"


def _env(key: str, default: str | None = None) -> str | None:
    """Read an environment variable with the BACKUP_ROTATE_ prefix."""
    return os.environ.get(f"{_ENV_PREFIX}{key}", default)


def _load_sync_from_env() -> dict[str, Any]:
    """Load top-level sync settings from environment."""
    overrides: dict[str, Any] = {}
    if bd := _env("BACKUP_DIR"):
        overrides["backup_dir"] = Path(bd)
    if pf := _env("PREFIXES"):
        overrides["prefixes"] = [p.strip() for p in pf.split(",") if p.strip()]
    if df := _env("DATE_FORMAT"):
        overrides["date_format"] = df
    if rc := _env("RETENTION_COUNT"):
        try:
            overrides["retention_count"] = int(rc)
        except ValueError as exc:
            raise ConfigError(f"Invalid {_ENV_PREFIX}RETENTION_COUNT: {rc!r}") from exc
    if coe := _env("CONTINUE_ON_ERROR"):
        overrides["continue_on_error"] = coe.lower() in ("true", "1", "yes")
    return overrides


def _load_storage_from_env() -> dict[str, Any]:
    """Load storage config overrides from environment."""
    overrides: dict[str, Any] = {}
    if st := _env("STORAGE_TYPE"):
        try:
            overrides["type"] = StorageType(st.lower())
        except ValueError as exc:
            raise ConfigError(f"Invalid {_ENV_PREFIX}STORAGE_TYPE: {st!r}") from exc
    if tok := _env("DROPBOX_TOKEN"):
        overrides["token"] = tok
    if ci := _env("DROPBOX_CLIENT_IDENTIFIER"):
        overrides["client_identifier"] = ci
    if rf := _env("REMOTE_FOLDER"):
        overrides["remote_folder"] = rf
    if sb := _env("S3_BUCKET"):
        overrides["s3_bucket"] = sb
    if sp := _env("S3_PREFIX"):
        overrides["s3_prefix"] = sp
    if sr := _env("S3_REGION"):
        overrides["s3_region"] = sr
    if se := _env("S3_ENDPOINT_URL"):
        overrides["s3_endpoint_url"] = se
    if lp := _env("STORAGE_LOCAL_PATH"):
        overrides["local_path"] = Path(lp)
    return overrides


def _load_logging_from_env() -> dict[str, Any]:
    """Load logging config overrides from environment."""
    overrides: dict[str, Any] = {}
    if ll := _env("LOG_LEVEL"):
        overrides["level"] = ll.upper()
    if lf := _env("LOG_FILE"):
        overrides["log_file"] = Path(lf)
    if fmt := _env("LOG_FORMAT"):
        try:
            overrides["format"] = LogFormat(fmt.lower())
        except ValueError as exc:
            raise ConfigError(f"Invalid {_ENV_PREFIX}LOG_FORMAT: {fmt!r}") from exc
    return overrides


# ──────────────────── TOML File Loading ──────────────────


def load_config_file(path: Path | None = None) -> dict[str, Any]:
    """Load and return the raw TOML config dict. Returns empty dict if file missing."""
    config_path = path or CONFIG_FILE
    if not config_path.exists():
        return {}
    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {config_path}: {exc}") from exc


def save_config_file(config: SyncConfig, path: Path | None = None) -> Path:
    """Save a SyncConfig to a TOML file."""
    config_path = path or CONFIG_FILE
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = _config_to_toml_dict(config)
    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)

    # Restrict file permissions (Unix only), the file holds the access token
    with contextlib.suppress(OSError):
        config_path.chmod(0o600)

    return config_path


def _config_to_toml_dict(config: SyncConfig) -> dict[str, Any]:
    """Convert a SyncConfig to a TOML-serialisable dict."""
    data: dict[str, Any] = {
        "backup_dir": str(config.backup_dir),
        "prefixes": list(config.prefixes),
        "date_format": config.date_format,
        "retention_count": config.retention_count,
        "continue_on_error": config.continue_on_error,
    }

    # Storage
    storage_dict = config.storage.model_dump(exclude_none=True)
    storage_dict["type"] = config.storage.type.value
    storage_dict["local_path"] = str(config.storage.local_path)
    if config.storage.token:
        storage_dict["token"] = config.storage.token.get_secret_value()
    data["storage"] = storage_dict

    # Logging
    log_dict = config.logging.model_dump(exclude_none=True)
    log_dict["format"] = config.logging.format.value
    if config.logging.log_file:
        log_dict["log_file"] = str(config.logging.log_file)
    data["logging"] = log_dict

    return data


# ──────────────────── Main Loader ────────────────────────


def load_config(
        config_path: Path | None = None,
        overrides: dict[str, Any] | None = None,
) -> SyncConfig:
    """Load the full application config (file + env + CLI overrides).

    Raises:
        ConfigError: If the file is unreadable or the merged values are invalid.
    """
    raw = load_config_file(config_path)

    data: dict[str, Any] = {
        k: v for k, v in raw.items() if k not in ("storage", "logging")
    }
    data.update(_load_sync_from_env())

    storage_data = dict(raw.get("storage", {}))
    storage_data.update(_load_storage_from_env())

    log_data = dict(raw.get("logging", {}))
    log_data.update(_load_logging_from_env())

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return SyncConfig(**data, storage=storage_data, logging=log_data)
    except ValidationError as exc:
        source = config_path or CONFIG_FILE
        raise ConfigError(f"Invalid configuration ({source}): {exc}") from exc
