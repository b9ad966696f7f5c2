"""Tests for the CLI interface."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from backup_rotate.cli.app import app

runner = CliRunner()


@pytest.fixture()
def local_setup(tmp_path: Path) -> tuple[Path, Path, Path]:
    """Create a local backup dir, a local 'remote' dir and a config file using them."""
    backups = tmp_path / "backups"
    remote = tmp_path / "remote"
    backups.mkdir()
    remote.mkdir()
    for name in ("db_20230101.sql", "db_20230105.sql", "notes.txt"):
        (backups / name).write_text(name)
    for name in ("db_20230101.sql", "db_20230102.sql", "db_20230103.sql"):
        (remote / name).write_text(name)

    config = tmp_path / "config.toml"
    config.write_text(
        f'backup_dir = "{backups.as_posix()}"\n'
        'prefixes = ["db_"]\n'
        'date_format = "yyyyMMdd"\n'
        "retention_count = 2\n"
        "\n[storage]\n"
        'type = "local"\n'
        f'local_path = "{remote.as_posix()}"\n'
    )
    return backups, remote, config


class TestMainApp:
    def test_help(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "sync" in result.output.lower()

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_no_args(self) -> None:
        result = runner.invoke(app)
        # Typer returns exit code 2 when showing help via no_args_is_help
        assert result.exit_code == 2


class TestSyncCommand:
    def test_sync_help(self) -> None:
        result = runner.invoke(app, ["sync", "--help"])
        assert result.exit_code == 0
        assert "--dry-run" in result.output

    def test_sync_local(self, local_setup: tuple[Path, Path, Path]) -> None:
        _, remote, config = local_setup
        result = runner.invoke(app, ["sync", "--config", str(config)])

        assert result.exit_code == 0, result.output
        assert "Sync completed" in result.output
        assert sorted(p.name for p in remote.iterdir()) == [
            "db_20230103.sql",
            "db_20230105.sql",
        ]

    def test_sync_dry_run(self, local_setup: tuple[Path, Path, Path]) -> None:
        _, remote, config = local_setup
        result = runner.invoke(app, ["sync", "--config", str(config), "--dry-run"])

        assert result.exit_code == 0, result.output
        assert "Dry run completed" in result.output
        assert len(list(remote.iterdir())) == 3

    def test_sync_cli_overrides(self, local_setup: tuple[Path, Path, Path]) -> None:
        _, remote, config = local_setup
        result = runner.invoke(app, [
            "sync", "--config", str(config), "--retention-count", "5",
        ])

        assert result.exit_code == 0, result.output
        assert len(list(remote.iterdir())) == 4

    def test_sync_bad_date_format_exits_1(
            self, local_setup: tuple[Path, Path, Path],
    ) -> None:
        backups, _, config = local_setup
        (backups / "db_latest.sql").write_text("x")
        result = runner.invoke(app, ["sync", "--config", str(config)])

        assert result.exit_code == 1
        assert "date_format" in result.output

    def test_sync_missing_config_exits_1(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["sync", "--config", str(tmp_path / "none.toml")])
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output


class TestListCommand:
    def test_list(self, local_setup: tuple[Path, Path, Path]) -> None:
        _, _, config = local_setup
        result = runner.invoke(app, ["list", "--config", str(config)])

        assert result.exit_code == 0, result.output
        assert "db_20230103.sql" in result.output
        assert "2023-01-01" in result.output

    def test_list_unknown_prefix(self, local_setup: tuple[Path, Path, Path]) -> None:
        _, _, config = local_setup
        result = runner.invoke(app, ["list", "--config", str(config), "--prefix", "wiki_"])

        assert result.exit_code == 0
        assert "No backups found" in result.output


class TestConfigSubcommand:
    def test_config_help(self) -> None:
        result = runner.invoke(app, ["config", "--help"])
        assert result.exit_code == 0
        assert "init" in result.output.lower()
        assert "show" in result.output.lower()

    def test_config_path(self) -> None:
        result = runner.invoke(app, ["config", "path"])
        assert result.exit_code == 0
        assert "Config dir" in result.output

    def test_config_init_and_show(self, tmp_path: Path) -> None:
        target = tmp_path / "config.toml"
        answers = "\n".join([
            str(tmp_path / "backups"),  # backup dir
            "db_,wiki_",  # prefixes
            "yyyyMMdd",  # date format
            "3",  # retention count
            "dropbox",  # storage type
            "sl.very-secret",  # token
            "backup-rotate",  # client identifier
            "nightly",  # remote folder
        ]) + "\n"
        result = runner.invoke(app, ["config", "init", "--path", str(target)], input=answers)
        assert result.exit_code == 0, result.output
        assert target.exists()

        shown = runner.invoke(app, ["config", "show", "--path", str(target)])
        assert shown.exit_code == 0
        assert "sl.very-secret" not in shown.output
        assert "REDACTED" in shown.output

    def test_config_init_reprompts_unknown_storage_type(self, tmp_path: Path) -> None:
        from backup_rotate.core.config import load_config_file

        target = tmp_path / "config.toml"
        answers = "\n".join([
            str(tmp_path / "backups"),  # backup dir
            "db_",  # prefixes
            "yyyyMMdd",  # date format
            "7",  # retention count
            "ftp",  # storage type, rejected
            "local",  # storage type
            str(tmp_path / "remote"),  # destination directory
        ]) + "\n"
        result = runner.invoke(app, ["config", "init", "--path", str(target)], input=answers)
        assert result.exit_code == 0, result.output
        assert "ftp" in result.output

        saved = load_config_file(target)
        assert saved["storage"]["type"] == "local"
