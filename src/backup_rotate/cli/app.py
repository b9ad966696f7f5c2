"""Main Typer application entry point for backup-rotate CLI."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from backup_rotate import __version__
from backup_rotate.cli.config_cmd import config_app
from backup_rotate.core.exceptions import BackupRotateError, SyncFailedError
from backup_rotate.core.models import LogFormat, PrefixStatus, SyncConfig, SyncReport
from backup_rotate.logging import setup_logging

app = typer.Typer(
    name="backup-rotate",
    help="Push the newest dated backups to cloud storage and prune old copies.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=True,
)
console = Console()

app.add_typer(config_app, name="config", help="Configuration management")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"backup-rotate {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
        ctx: typer.Context,
        version: bool = typer.Option(
            False,
            "--version",
            "-V",
            help="Show version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
        verbose: bool = typer.Option(
            False,
            "--verbose",
            "-v",
            help="Enable verbose (DEBUG) logging.",
        ),
        log_json: bool = typer.Option(
            False,
            "--log-json",
            help="Output logs in JSON format.",
        ),
) -> None:
    """backup-rotate — dated backup retention and upload."""
    ctx.obj = {"verbose": verbose, "log_json": log_json}
    setup_logging(
        level="DEBUG" if verbose else "INFO",
        log_format=LogFormat.JSON if log_json else LogFormat.CONSOLE,
    )


def _load(
        ctx: typer.Context,
        config_path: Path | None,
        overrides: dict | None = None,
) -> SyncConfig:
    """Load config and re-apply logging with the config file's settings."""
    from backup_rotate.core.config import load_config

    try:
        config = load_config(config_path, overrides)
    except BackupRotateError as exc:
        console.print(f"[bold red]✗ {escape(str(exc))}[/bold red]")
        raise typer.Exit(code=1) from exc

    flags = ctx.obj or {}
    setup_logging(
        level="DEBUG" if flags.get("verbose") else config.logging.level,
        log_file=config.logging.log_file,
        log_format=LogFormat.JSON if flags.get("log_json") else config.logging.format,
    )
    return config


# ──────────────────── sync command ───────────────────────


@app.command("sync")
def sync(
        ctx: typer.Context,
        config_path: Path | None = typer.Option(
            None, "--config", "-c", help="Path to the config file."
        ),
        backup_dir: Path | None = typer.Option(
            None, "--backup-dir", "-d", help="Local directory holding the backups."
        ),
        prefixes: list[str] | None = typer.Option(
            None, "--prefix", "-p", help="Backup prefix to process (repeatable)."
        ),
        retention_count: int | None = typer.Option(
            None, "--retention-count", "-n", help="Number of remote backups to keep per prefix."
        ),
        dry_run: bool = typer.Option(
            False, "--dry-run", help="Show what would be deleted and uploaded without doing it."
        ),
) -> None:
    """Prune old remote backups and upload the newest local backup per prefix.

    Examples:
        backup-rotate sync
        backup-rotate sync --config ./config.toml --dry-run
        backup-rotate sync -d /var/backups -p db_dump_ -p wiki_ -n 7
    """
    from backup_rotate.logging import get_logger
    from backup_rotate.storage import get_storage
    from backup_rotate.sync import BackupSynchronizer

    log = get_logger("sync")
    config = _load(ctx, config_path, {
        "backup_dir": backup_dir,
        "prefixes": prefixes or None,
        "retention_count": retention_count,
    })

    try:
        with get_storage(config.storage) as storage:
            report = BackupSynchronizer(config, storage, dry_run=dry_run).run()
    except SyncFailedError as exc:
        _print_report(exc.report)
        console.print(f"\n[bold red]✗ {escape(str(exc))}[/bold red]")
        log.error("sync_failed", error=str(exc))
        raise typer.Exit(code=1) from exc
    except BackupRotateError as exc:
        console.print(f"\n[bold red]✗ Sync failed: {escape(str(exc))}[/bold red]")
        log.error("sync_failed", error=str(exc))
        raise typer.Exit(code=1) from exc

    _print_report(report)
    verb = "Dry run" if dry_run else "Sync"
    console.print(
        f"\n[bold green]{verb} completed in {report.duration_seconds:.1f}s[/bold green] "
        f"({report.deleted_count} deleted, {report.uploaded_count} uploaded)"
    )


def _print_report(report: SyncReport) -> None:
    title = "Sync Plan (dry run)" if report.dry_run else "Sync Summary"
    table = Table(title=title, show_lines=True)
    table.add_column("Prefix", style="cyan")
    table.add_column("Status", style="bold")
    table.add_column("Remote", justify="right")
    table.add_column("Deleted", style="red")
    table.add_column("Uploaded", style="green")

    for p in report.prefixes:
        status_style = "green" if p.status == PrefixStatus.COMPLETED else "red"
        if p.uploaded:
            uploaded = p.uploaded
        elif p.upload_skipped:
            uploaded = f"[dim]{p.upload_skipped} (already present)[/dim]"
        else:
            uploaded = "-"
        table.add_row(
            p.prefix,
            f"[{status_style}]{p.status.value}[/{status_style}]",
            str(p.remote_count),
            "\n".join(p.deleted) or "-",
            uploaded if not p.error else f"[red]{escape(p.error)}[/red]",
        )

    console.print(table)


# ──────────────────── list command ───────────────────────


@app.command("list")
def list_backups(
        ctx: typer.Context,
        config_path: Path | None = typer.Option(
            None, "--config", "-c", help="Path to the config file."
        ),
        prefix: str | None = typer.Option(
            None, "--prefix", "-p", help="Only show this prefix."
        ),
) -> None:
    """List dated backups in the remote folder, newest first."""
    from backup_rotate.core.dates import DatePattern
    from backup_rotate.storage import get_storage
    from backup_rotate.sync.listing import list_remote
    from backup_rotate.sync.selection import remote_backups

    config = _load(ctx, config_path)
    wanted = [prefix] if prefix else list(config.prefixes)

    try:
        pattern = DatePattern(config.date_format)
        with get_storage(config.storage) as storage:
            entries = list_remote(storage)
        rows = [
            (p, backup)
            for p in wanted
            for backup in sorted(
                remote_backups(entries, p, pattern), key=lambda f: f.timestamp, reverse=True,
            )
        ]
    except BackupRotateError as exc:
        console.print(f"[bold red]✗ {escape(str(exc))}[/bold red]")
        raise typer.Exit(code=1) from exc

    if not rows:
        console.print("[yellow]No backups found.[/yellow]")
        return

    table = Table(title="Remote Backups", show_lines=True)
    table.add_column("Prefix", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Date", style="magenta")
    for p, backup in rows:
        table.add_row(p, backup.name, backup.timestamp.isoformat(sep=" "))

    console.print(table)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
