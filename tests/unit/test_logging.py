"""Tests for log redaction."""

from __future__ import annotations

import logging
from pathlib import Path

from backup_rotate.core.models import LogFormat
from backup_rotate.logging import _redact_sensitive, setup_logging


class TestRedactSensitive:
    def test_sensitive_keys(self) -> None:
        event = _redact_sensitive(None, "info", {"event": "x", "dropbox_token": "sl.abc"})
        assert event["dropbox_token"] == "***REDACTED***"
        assert event["event"] == "x"

    def test_bearer_in_message(self) -> None:
        event = _redact_sensitive(
            None, "error", {"event": "sync_failed", "error": "header Bearer sl.abc rejected"},
        )
        assert event["error"] == "header Bearer ***REDACTED*** rejected"

    def test_plain_values_untouched(self) -> None:
        event = _redact_sensitive(None, "info", {"event": "backup_deleted", "name": "db_20230101"})
        assert event["name"] == "db_20230101"


class TestSetupLogging:
    def test_repeated_setup_keeps_one_console_handler(self, tmp_path: Path) -> None:
        setup_logging()
        setup_logging(level="DEBUG", log_file=tmp_path / "logs" / "run.log", log_format=LogFormat.JSON)

        root = logging.getLogger()
        assert len(root.handlers) == 2
        assert root.level == logging.DEBUG
        assert (tmp_path / "logs").is_dir()
        setup_logging()
