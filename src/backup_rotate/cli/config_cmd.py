"""CLI config subcommands for managing backup-rotate configuration."""

from __future__ import annotations

from pathlib import Path

import click
import typer
from rich.console import Console
from rich.syntax import Syntax

from backup_rotate.core.models import LogFormat, LoggingConfig, StorageType

config_app = typer.Typer(no_args_is_help=True, rich_markup_mode="rich")
console = Console()


@config_app.command("init")
def config_init(
        path: Path | None = typer.Option(
            None, "--path", help="Custom config file location."
        ),
) -> None:
    """Create or update the configuration file interactively.

    If no --path is given, writes to the default location:
      macOS:  ~/Library/Application Support/backup-rotate/config.toml
      Linux:  ~/.config/backup-rotate/config.toml
    """
    from backup_rotate.core.config import CONFIG_FILE, save_config_file
    from backup_rotate.core.dates import DatePattern
    from backup_rotate.core.exceptions import ConfigError
    from backup_rotate.core.models import StorageConfig, SyncConfig

    target = path or CONFIG_FILE

    if target.exists():
        overwrite = typer.confirm(f"Config already exists at {target}. Overwrite?")
        if not overwrite:
            console.print("[yellow]Aborted.[/yellow]")
            raise typer.Exit()

    console.print("[bold]backup-rotate configuration wizard[/bold]\n")

    # ── Backups ──
    console.print("[bold blue]Local Backups[/bold blue]")
    backup_dir = Path(typer.prompt("Local backup directory", default="./backups"))
    prefixes = [
        p.strip()
        for p in typer.prompt("Backup prefixes (comma-separated)", default="db_").split(",")
        if p.strip()
    ]
    date_format = typer.prompt("Date format in file names", default="yyyyMMdd")
    try:
        DatePattern(date_format)
    except ConfigError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    retention_count = typer.prompt("Backups to keep per prefix", default=7, type=int)

    # ── Storage ──
    console.print("\n[bold blue]Storage[/bold blue]")
    storage_type = typer.prompt(
        "Storage type",
        type=click.Choice([t.value for t in StorageType]),
        default="dropbox",
    )
    storage_kwargs: dict = {"type": StorageType(storage_type)}

    if storage_type == "dropbox":
        storage_kwargs["token"] = typer.prompt("Dropbox access token", hide_input=True)
        storage_kwargs["client_identifier"] = typer.prompt(
            "Client identifier", default="backup-rotate"
        )
        storage_kwargs["remote_folder"] = typer.prompt(
            "Remote folder (empty for app root)", default=""
        )
    elif storage_type == "s3":
        storage_kwargs["s3_bucket"] = typer.prompt("S3 bucket name")
        storage_kwargs["s3_prefix"] = typer.prompt("S3 key prefix", default="")
        storage_kwargs["s3_region"] = typer.prompt("AWS region", default="us-east-1")
    else:
        storage_kwargs["local_path"] = Path(
            typer.prompt("Destination directory", default="./remote")
        )

    # ── Save ──
    try:
        config = SyncConfig(
            backup_dir=backup_dir,
            prefixes=prefixes,
            date_format=date_format,
            retention_count=retention_count,
            storage=StorageConfig(**storage_kwargs),
            logging=LoggingConfig(level="INFO", format=LogFormat.CONSOLE),
        )
    except ValueError as exc:
        console.print(f"[red]Invalid configuration: {exc}[/red]")
        raise typer.Exit(code=1) from exc

    saved_path = save_config_file(config, target)
    console.print(f"\n[green]✓[/green] Config saved to: {saved_path}")
    console.print("  File permissions set to 600 (owner-only read/write).")


@config_app.command("show")
def config_show(
        path: Path | None = typer.Option(
            None, "--path", help="Custom config file location."
        ),
) -> None:
    """Display the current configuration (the access token is masked)."""
    import re

    from backup_rotate.core.config import CONFIG_FILE

    target = path or CONFIG_FILE

    if not target.exists():
        console.print(
            f"[yellow]No config file found at {target}.[/yellow]\n"
            f"Run [bold]backup-rotate config init[/bold] to create one."
        )
        raise typer.Exit()

    content = re.sub(r'(?m)^(token\s*=\s*).*$', r'\1"***REDACTED***"', target.read_text())
    syntax = Syntax(content, "toml", theme="monokai", line_numbers=True)
    console.print(f"[bold]Config: {target}[/bold]\n")
    console.print(syntax)


@config_app.command("path")
def config_path() -> None:
    """Show the config directory and file paths."""
    from backup_rotate.core.config import CONFIG_DIR, CONFIG_FILE

    console.print("[bold]backup-rotate paths:[/bold]")
    console.print(f"  Config dir:    {CONFIG_DIR}")
    console.print(f"  Config file:   {CONFIG_FILE}")
