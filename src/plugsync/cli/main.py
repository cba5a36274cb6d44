"""
PlugSync CLI Main Entry Point.

Command-line front end for listing, installing, updating and deleting
plugin checkouts.
"""

from __future__ import annotations

import json
import sys
from datetime import timedelta
from pathlib import Path
from typing import Any

import click
import humanize
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from plugsync import __version__
from plugsync.core.config import PlugSyncConfig, load_config
from plugsync.core.errors import PlugSyncError
from plugsync.core.job import Job, JobResult
from plugsync.core.models import PluginRecord, VersionStatus
from plugsync.core.session import Session
from plugsync.plugins.base import InMemoryRuntime
from plugsync.plugins.operations import DeleteJob, InstallJob, RefreshJob, UpdateJob

console = Console()

VERSION_LABELS = {
    VersionStatus.LATEST: ("Latest", "green"),
    VersionStatus.UPDATE_AVAILABLE: ("Update Available", "yellow"),
    VersionStatus.UNTRACKED: ("No Tracking Branch", "blue"),
    VersionStatus.NOT_A_REPOSITORY: ("Not a repo", "dim"),
}


def get_session(ctx: click.Context, scan: bool = True) -> Session:
    """
    Get or create the session from context.

    The CLI is its own host, so every plugin folder is loaded into an
    in-memory runtime first, then the inventory is scanned.
    """
    if "session" not in ctx.obj:
        config: PlugSyncConfig = ctx.obj.get("config") or load_config()
        runtime = InMemoryRuntime(config.paths.app_root)
        session = Session(config=config, runtime=runtime)
        runtime.load_all(config.paths.sources_dir, exclude=config.paths.manager_folder)
        ctx.obj["session"] = session
        ctx.call_on_close(session.close)
        if scan:
            with console.status("Scanning plugins..."):
                session.rebuild_inventory()
    return ctx.obj["session"]


def emit_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def report(ctx: click.Context, job: Job[Any], result: JobResult[Any] | None) -> None:
    """Print the outcome of a job and exit non-zero on failure."""
    if result is None:
        console.print("[yellow]Operation ignored: PlugSync is disabled or busy[/yellow]")
        sys.exit(1)

    if ctx.obj.get("json_output"):
        emit_json(
            {
                "operation": job.name,
                "success": result.success,
                "error": result.error,
                "error_type": result.error_type,
                "warnings": result.warnings,
                "duration_seconds": result.duration_seconds,
            }
        )
    else:
        elapsed = humanize.naturaldelta(timedelta(seconds=result.duration_seconds or 0))
        if result.success:
            console.print(f"[green]✓ {job.success_message()}[/green] [dim]({elapsed})[/dim]")
            for warning in result.warnings:
                console.print(f"[yellow]⚠ {warning}[/yellow]")
        else:
            console.print(f"[red]✗ {job.failure_message(result.error)}[/red]")

    if not result.success:
        sys.exit(1)


def run_with_status(session: Session, job: Job[Any], text: str) -> JobResult[Any] | None:
    """Run ``job`` behind a spinner that follows the job's progress messages."""
    with console.status(text) as status:
        job.context.add_progress_callback(lambda progress: status.update(progress.message or text))
        return session.run(job)


def show_plan(session: Session, job: Job[Any]) -> None:
    plan = session.plan(job)
    console.print(Panel(f"[yellow]DRY RUN[/yellow]\n\n{plan.get_plan_text()}", title=plan.description))


def lookup(session: Session, name: str) -> PluginRecord:
    try:
        return session.find(name)
    except PlugSyncError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="PlugSync")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)
@click.option(
    "--app-root",
    type=click.Path(file_okay=False, path_type=Path),
    help="Host application root (contains Plugins/Source)",
)
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.pass_context
def cli(
    ctx: click.Context,
    config: Path | None,
    app_root: Path | None,
    json_output: bool,
    quiet: bool,
) -> None:
    """
    PlugSync - Manage plugin source checkouts for a host application.

    Lists plugin folders with their git sync state and installs, updates
    or deletes them.
    """
    ctx.ensure_object(dict)

    loaded = PlugSyncConfig.load(config) if config else load_config()
    if app_root is not None:
        loaded.paths.app_root = app_root.expanduser().resolve()
    if quiet:
        loaded.logging.console_enabled = False

    ctx.obj["config"] = loaded
    ctx.obj["json_output"] = json_output
    ctx.obj["quiet"] = quiet


@cli.command("list")
@click.option("--catalog", "with_catalog", is_flag=True, help="Match plugins against the catalog")
@click.pass_context
def list_plugins(ctx: click.Context, with_catalog: bool) -> None:
    """List installed plugins and their sync state."""
    session = get_session(ctx, scan=not with_catalog)
    if with_catalog:
        job = RefreshJob(with_catalog=True)
        result = run_with_status(session, job, "Fetching catalog...")
        if result is None or not result.success:
            report(ctx, job, result)

    snapshot = session.inventory_snapshot

    if ctx.obj.get("json_output"):
        emit_json(snapshot.to_dict())
        return

    table = Table(title="Installed Plugins")
    table.add_column("Name", style="cyan")
    table.add_column("Status")
    table.add_column("Version Status")
    table.add_column("Branch", style="magenta")
    table.add_column("Remote", style="white")
    table.add_column("Description", style="dim")

    for record in snapshot:
        label, color = VERSION_LABELS[record.version_status]
        if record.version_status is VersionStatus.UPDATE_AVAILABLE and record.behind:
            label = f"{label} ({record.behind} behind)"
        table.add_row(
            record.folder_name,
            "[green]Loaded[/green]" if record.is_loaded else "[red]Not Loaded[/red]",
            f"[{color}]{label}[/{color}]",
            record.branch or "",
            str(record.remote_identity) if record.remote_identity else (record.remote_url or ""),
            record.catalog_entry.description[:60] if record.catalog_entry else "",
        )

    console.print(table)
    if not ctx.obj.get("quiet"):
        console.print(f"[dim]{len(snapshot)} plugins in {session.config.paths.sources_root}[/dim]")


@cli.command("catalog")
@click.pass_context
def show_catalog(ctx: click.Context) -> None:
    """Show the remote plugin catalog."""
    session = get_session(ctx, scan=False)

    job = RefreshJob(with_catalog=True)
    result = run_with_status(session, job, "Fetching catalog...")
    if result is None or not result.success:
        report(ctx, job, result)
    if not session.catalog:
        console.print("[red]Plugin catalog is unavailable[/red]")
        sys.exit(1)

    listings = session.catalog_listing()

    if ctx.obj.get("json_output"):
        emit_json([listing.to_dict() for listing in listings])
        return

    table = Table(title="Plugin Catalog")
    table.add_column("Name", style="cyan")
    table.add_column("Author", style="magenta")
    table.add_column("Installed", style="green")
    table.add_column("Description", style="white")

    for listing in listings:
        table.add_row(
            listing.entry.name,
            listing.entry.author,
            listing.installed.folder_name if listing.installed else "",
            listing.entry.description,
        )

    console.print(table)


@cli.command("install")
@click.argument("git_url")
@click.option("--dry-run", is_flag=True, help="Show what would be done")
@click.pass_context
def install(ctx: click.Context, git_url: str, dry_run: bool) -> None:
    """Install a plugin from a git URL (https://github.com/owner/repo)."""
    session = get_session(ctx, scan=False)
    job = InstallJob(git_url)

    job.set_session(session)
    errors = job.validate()
    if errors:
        console.print(f"[red]{'; '.join(errors)}[/red]")
        sys.exit(1)

    if dry_run:
        show_plan(session, job)
        return

    result = run_with_status(session, job, f"Installing {git_url}...")
    report(ctx, job, result)


@cli.command("update")
@click.argument("name")
@click.option("--dry-run", is_flag=True, help="Show what would be done")
@click.pass_context
def update(ctx: click.Context, name: str, dry_run: bool) -> None:
    """Reset a plugin to the tip of its remote branch and reload it."""
    session = get_session(ctx)
    job = UpdateJob(lookup(session, name))

    if dry_run:
        show_plan(session, job)
        return

    result = run_with_status(session, job, f"Updating {name}...")
    report(ctx, job, result)


@cli.command("delete")
@click.argument("name")
@click.option("--dry-run", is_flag=True, help="Show what would be done")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete(ctx: click.Context, name: str, dry_run: bool, yes: bool) -> None:
    """Unload a plugin and delete its folder."""
    session = get_session(ctx)
    job = DeleteJob(lookup(session, name))

    if dry_run:
        show_plan(session, job)
        return

    if not yes:
        console.print(f"[red]⚠️  This will PERMANENTLY DELETE {job.record.folder_path}[/red]")
        if not click.confirm("Continue?", default=False):
            console.print("[yellow]Aborted[/yellow]")
            sys.exit(1)

    result = run_with_status(session, job, f"Deleting {name}...")
    report(ctx, job, result)


@cli.command("refresh")
@click.option("--catalog", "with_catalog", is_flag=True, help="Also fetch the catalog")
@click.pass_context
def refresh(ctx: click.Context, with_catalog: bool) -> None:
    """Rescan plugin folders and fetch from every remote."""
    session = get_session(ctx, scan=False)
    job = RefreshJob(with_catalog=with_catalog)

    result = run_with_status(session, job, "Refreshing plugins...")
    report(ctx, job, result)


def main() -> None:
    """Main entry point."""
    try:
        cli(obj={})
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled[/yellow]")
        sys.exit(130)
    except PlugSyncError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
