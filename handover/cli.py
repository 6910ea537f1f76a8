"""Command Line Interface for Handover."""

import signal
import sqlite3
import sys
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.table import Table

from .backup import (
    CATEGORY_EXTENSIONS,
    FileCategory,
    LogSession,
    ReplicationEngine,
    ReplicationRequest,
    RunSummary,
    expand_selection,
)
from .browser import BROWSER_PROFILES, HistoryExporter, backup_browsers, get_profile, history_database
from .config import HandoverConfig, get_config, load_config, set_config
from .diagnostics import run_probes
from .errors import CommandError, HandoverError
from .media import list_removable_drives
from .recovery import POLICIES, RecoveryRequest, SnapshotRecoveryEngine, get_policy
from .util import format_size, setup_logging

console = Console()

CATEGORY_CHOICES = [c.value for c in FileCategory] + ["all"]


def setup_cli_logging(verbose: bool = False, config: Optional[HandoverConfig] = None):
    """Setup logging for CLI."""
    level = "DEBUG" if verbose else (config.log_level if config else "INFO")
    setup_logging(level=level, log_file=config.log_file if config else None, console=console)


def _config(ctx) -> HandoverConfig:
    return ctx.obj["config"]


def _fail(message: str) -> None:
    """Report a fatal precondition error and exit non-zero."""
    console.print(f"[red]Error: {message}[/red]")
    sys.exit(1)


@contextmanager
def _cancel_on_interrupt():
    """Turn Ctrl+C into a cancellation request for the running engine."""
    cancel_event = threading.Event()

    def _handler(signum, frame):
        console.print("[yellow]Cancelling: finishing in-flight copies...[/yellow]")
        cancel_event.set()

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield cancel_event
    finally:
        signal.signal(signal.SIGINT, previous)


def _print_summary(title: str, summary: RunSummary) -> None:
    table = Table(title=title)
    table.add_column("Result", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Copied", str(summary.copied))
    table.add_row("Failed", str(summary.failed))
    table.add_row("Cancelled", "Yes" if summary.cancelled else "No")
    table.add_row("Activity log", str(summary.activity_log))
    table.add_row("Error log", str(summary.error_log))

    console.print(table)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--config", "-c", "config_path", type=click.Path(exists=True, path_type=Path), help="Configuration file path")
@click.pass_context
def cli(ctx, verbose: bool, config_path: Optional[Path]):
    """Handover - preserve user data before a device changes hands."""
    ctx.ensure_object(dict)

    config = load_config(config_path) if config_path else get_config()
    set_config(config)
    ctx.obj["config"] = config

    setup_cli_logging(verbose, config)


@cli.command("categories")
def categories():
    """Show the file categories and their extensions."""
    table = Table(title="File Categories")
    table.add_column("Category", style="cyan")
    table.add_column("Extensions", style="white")

    for category, extensions in CATEGORY_EXTENSIONS.items():
        table.add_row(category.value, ", ".join(sorted(extensions)))

    console.print(table)


@cli.group()
def backup():
    """Backup commands."""
    pass


@backup.command("run")
@click.argument("source", type=click.Path(path_type=Path))
@click.argument("target", type=click.Path(path_type=Path))
@click.option("--category", "-C", "category_names", multiple=True, type=click.Choice(CATEGORY_CHOICES, case_sensitive=False), help="Categories to back up (repeatable)")
@click.option("--workers", "-w", type=int, help="Concurrent copy workers")
@click.option("--timeout", "-t", type=float, help="Per-file copy time limit in seconds")
@click.option("--no-overwrite", is_flag=True, help="Record existing destination files as failures instead of overwriting")
@click.option("--verify", is_flag=True, help="Verify each copy with SHA-256")
@click.option("--mirror-from-source", is_flag=True, help="Mirror paths relative to SOURCE instead of its drive")
@click.pass_context
def backup_run(ctx, source: Path, target: Path, category_names: List[str], workers: Optional[int],
               timeout: Optional[float], no_overwrite: bool, verify: bool, mirror_from_source: bool):
    """Copy files of the selected categories from SOURCE to TARGET."""
    config = _config(ctx)
    names = list(category_names) or config.replication.default_categories

    try:
        categories = expand_selection(names)
    except ValueError as e:
        _fail(str(e))

    destination_root = target / config.replication.backup_folder
    request = ReplicationRequest(
        source_root=source,
        destination_root=destination_root,
        selected_categories=categories,
        mirror_root=source if mirror_from_source else None,
    )

    try:
        session = LogSession.open(destination_root / config.replication.log_folder, "Backup")
        engine = ReplicationEngine.from_config(
            session,
            config.replication,
            workers=workers,
            copy_timeout=timeout,
            overwrite=False if no_overwrite else None,
            verify_integrity=True if verify else None,
            show_progress=True,
        )

        console.print(f"[bold cyan]Backing up {source} -> {destination_root}[/bold cyan]")
        with _cancel_on_interrupt() as cancel_event:
            summary = engine.run(request, cancel_event)
    except (HandoverError, ValueError) as e:
        _fail(str(e))

    _print_summary("Backup Summary", summary)


@backup.command("browsers")
@click.argument("target", type=click.Path(path_type=Path))
@click.option("--browser", "-b", "browser_names", multiple=True, type=click.Choice(list(BROWSER_PROFILES), case_sensitive=False), help="Browsers to back up (default: all)")
@click.option("--home", type=click.Path(exists=True, file_okay=False, path_type=Path), default=Path.home, help="User profile folder")
@click.pass_context
def backup_browser_data(ctx, target: Path, browser_names: List[str], home: Path):
    """Copy browser profile data to TARGET."""
    config = _config(ctx)
    destination_root = target / config.replication.backup_folder

    try:
        session = LogSession.open(destination_root / config.replication.log_folder, "Browser")
        engine = ReplicationEngine.from_config(session, config.replication)
        with _cancel_on_interrupt() as cancel_event:
            summary = backup_browsers(engine, browser_names or list(BROWSER_PROFILES), home, destination_root, cancel_event)
    except HandoverError as e:
        _fail(str(e))

    _print_summary("Browser Backup Summary", summary)


@cli.group()
def browser():
    """Browser data commands."""
    pass


@browser.command("history")
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--browser", "-b", "browser_name", default="chrome", type=click.Choice([n for n, p in BROWSER_PROFILES.items() if p.engine == "chromium"], case_sensitive=False), help="Chromium-based browser")
@click.option("--home", type=click.Path(exists=True, file_okay=False, path_type=Path), default=Path.home, help="User profile folder")
@click.option("--database", type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Explicit History database")
def browser_history(output: Path, browser_name: str, home: Path, database: Optional[Path]):
    """Export browsing history to a CSV file."""
    profile = get_profile(browser_name)
    history_db = database or history_database(profile, home)

    if history_db is None:
        _fail(f"No {profile.display_name} history found under {home}")

    try:
        count = HistoryExporter(history_db).export_csv(output)
    except (OSError, sqlite3.Error) as e:
        _fail(f"History export failed: {e}")

    console.print(f"[bold green]Exported {count} visits to {output}[/bold green]")


@cli.group()
def recover():
    """Snapshot recovery commands."""
    pass


@recover.command("list")
@click.pass_context
def recover_list(ctx):
    """List the available shadow copies."""
    engine = SnapshotRecoveryEngine.from_config(_config(ctx).recovery)

    try:
        handles = engine.list_snapshots()
    except CommandError as e:
        _fail(f"Could not enumerate snapshots: {e}")

    if not handles:
        console.print("[yellow]No snapshots found[/yellow]")
        return

    table = Table(title="Available Snapshots")
    table.add_column("Created", style="cyan")
    table.add_column("Device root", style="white")
    table.add_column("ID", style="white")

    for handle in handles:
        created = handle.created_at.isoformat() if handle.created_at else "unknown"
        table.add_row(created, handle.device_root, handle.snapshot_id)

    console.print(table)


@recover.command("file")
@click.argument("relative_path")
@click.argument("target", type=click.Path(path_type=Path))
@click.option("--policy", "-p", type=click.Choice(list(POLICIES), case_sensitive=False), help="Snapshot selection policy")
@click.option("--install-tool", is_flag=True, help="Install the recovery utility first if it is missing")
@click.pass_context
def recover_file(ctx, relative_path: str, target: Path, policy: Optional[str], install_tool: bool):
    """Recover RELATIVE_PATH from a shadow copy into TARGET."""
    config = _config(ctx).recovery
    destination_root = target / config.recovery_folder

    try:
        selection_policy = get_policy(policy or config.snapshot_policy)
    except ValueError as e:
        _fail(str(e))

    try:
        session = LogSession.open(destination_root, "Recovery")
    except HandoverError as e:
        _fail(str(e))

    engine = SnapshotRecoveryEngine.from_config(config, session=session)

    if install_tool and not engine.install_recovery_tool_if_missing():
        console.print("[yellow]Recovery utility unavailable; continuing with snapshots only[/yellow]")

    request = RecoveryRequest(
        relative_file_path=relative_path,
        destination_root=destination_root,
        selection_policy=selection_policy,
    )
    result = engine.recover(request)

    if result.ok:
        console.print(f"[bold green]Recovered:[/bold green] {result.path}")
    else:
        console.print(f"[yellow]{type(result.error).__name__}: {result.error}[/yellow]")

    console.print(f"Activity log: {session.activity_path}")
    console.print(f"Error log: {session.error_path}")


@recover.command("install-tool")
@click.pass_context
def recover_install_tool(ctx):
    """Install the recovery utility if it is missing."""
    engine = SnapshotRecoveryEngine.from_config(_config(ctx).recovery)

    if engine.install_recovery_tool_if_missing():
        console.print("[bold green]Recovery utility is available[/bold green]")
    else:
        console.print("[yellow]Recovery utility could not be installed[/yellow]")


@cli.command("drives")
def drives():
    """List attached removable drives."""
    try:
        found = list_removable_drives()
    except CommandError as e:
        _fail(f"Could not list drives: {e}")

    if not found:
        console.print("[yellow]No removable drives found[/yellow]")
        return

    table = Table(title="Removable Drives")
    table.add_column("Drive", style="cyan")
    table.add_column("Label", style="white")
    table.add_column("Size", style="white")

    for drive in found:
        table.add_row(drive.device_id, drive.description, format_size(drive.size_bytes))

    console.print(table)


@cli.command("diagnose")
@click.argument("drive")
@click.option("--log-dir", type=click.Path(file_okay=False, path_type=Path), help="Write probe results to a run log here")
@click.pass_context
def diagnose(ctx, drive: str, log_dir: Optional[Path]):
    """Run read-only health probes against DRIVE."""
    session = None
    if log_dir:
        try:
            session = LogSession.open(log_dir, "Diagnostics")
        except HandoverError as e:
            _fail(str(e))

    results = run_probes(drive, _config(ctx).diagnostics, session)

    table = Table(title=f"Disk Health - {drive}")
    table.add_column("Probe", style="cyan")
    table.add_column("Status", style="white")
    table.add_column("Detail", style="white")

    for result in results:
        status = "[green]OK[/green]" if result.ok else "[yellow]WARN[/yellow]"
        table.add_row(result.name, status, result.detail)

    console.print(table)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
