"""Structured logging for backup-rotate using structlog over stdlib logging."""

from __future__ import annotations

import logging
import logging.handlers
import re
import sys
from pathlib import Path

import structlog

from backup_rotate.core.models import LogFormat

_REDACTED = "***REDACTED***"

# Keys whose values are never logged
_SENSITIVE_KEYS = frozenset({
    "token",
    "secret",
    "password",
    "authorization",
    "access_key",
})

# Bearer credentials that end up inside free-text values such as error messages
_BEARER_RE = re.compile(r"(Bearer\s+)[^\s'\"]+", re.IGNORECASE)

_NOISY_LOGGERS = ("boto3", "botocore", "s3transfer", "urllib3", "httpx", "httpcore")

_FILE_MAX_BYTES = 10 * 1024 * 1024
_FILE_BACKUP_COUNT = 5


def _redact_sensitive(
        _logger: logging.Logger,
        _method: str,
        event_dict: dict,
) -> dict:
    """Mask secret-looking keys and bearer tokens embedded in string values."""
    for key, value in event_dict.items():
        if any(s in key.lower() for s in _SENSITIVE_KEYS):
            event_dict[key] = _REDACTED
        elif isinstance(value, str) and "bearer" in value.lower():
            event_dict[key] = _BEARER_RE.sub(rf"\g<1>{_REDACTED}", value)
    return event_dict


def _renderer(log_format: LogFormat) -> structlog.types.Processor:
    if log_format == LogFormat.JSON:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def _file_handler(log_file: Path) -> logging.Handler:
    """Rotating handler that always writes JSON lines."""
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=_FILE_MAX_BYTES,
        backupCount=_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.JSONRenderer(),
        ],
    ))
    return handler


def setup_logging(
        level: str = "INFO",
        log_file: Path | None = None,
        log_format: LogFormat = LogFormat.CONSOLE,
) -> None:
    """Configure structlog + stdlib logging. Safe to call more than once.

    The CLI calls this twice: first from the global flags, then again once the
    config file's ``[logging]`` section is known.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional JSON log file, rotated at 10 MB.
        log_format: Console output format - console (human-friendly) or json.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            _redact_sensitive,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(log_format),
        ],
    ))

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.addHandler(console_handler)
    if log_file:
        root_logger.addHandler(_file_handler(log_file))
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog bound logger."""
    return structlog.get_logger(name)
