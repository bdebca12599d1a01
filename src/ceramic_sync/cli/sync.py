"""
ceramic-sync CLI - sync, status and footprint commands.

Provides the command-line interface to the SyncCoordinator: one sync of
the local project with its remote repository, plus read-only views of the
sync metadata stored in the project file.
"""

import asyncio
import logging
from datetime import datetime
from enum import Enum
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ceramic_sync.cli.errors import ExitCode, exit_code_for_failure, print_sync_failure
from ceramic_sync.cli.project import open_project
from ceramic_sync.core.config import load_user_record
from ceramic_sync.core.errors import SyncError
from ceramic_sync.core.project import SyncStatus
from ceramic_sync.core.sync import (
    ConsolePromptService,
    SyncCoordinator,
    SyncDecision,
    SyncDirection,
    SyncOutcome,
)

console = Console()
logger = logging.getLogger(__name__)


class Preference(str, Enum):
    """Which side wins when local and remote have diverged."""

    LOCAL = "local"
    REMOTE = "remote"


_DIRECTIONS = {
    None: SyncDirection.AUTO,
    Preference.LOCAL: SyncDirection.LOCAL_TO_REMOTE,
    Preference.REMOTE: SyncDirection.REMOTE_TO_LOCAL,
}

_PROJECT_ARGUMENT_HELP = "Project file or directory (defaults to the last opened project)"


def sync(
    project: Path | None = typer.Argument(
        None,
        help=_PROJECT_ARGUMENT_HELP,
        show_default=False,
    ),
    message: str | None = typer.Option(
        None,
        "--message",
        "-m",
        help="Commit message for pushed changes (asked for when omitted)",
    ),
    prefer: Preference | None = typer.Option(
        None,
        "--prefer",
        help="Resolve a conflict without asking",
        case_sensitive=False,
    ),
    files_only: bool = typer.Option(
        False,
        "--files-only",
        help="Sync the project directories but leave the project file alone",
    ),
) -> None:
    """
    Synchronize the project with its remote repository.

    Local changes are pushed, remote changes are pulled. When both sides
    changed since the last sync you are asked which version to keep.

    Examples:
        ceramic-sync sync                       # Sync the last opened project
        ceramic-sync sync game/project.ceramic  # Sync a specific project
        ceramic-sync sync -m "New level"        # Don't ask for a commit message
        ceramic-sync sync --prefer remote       # Take the remote on conflict
        ceramic-sync sync --files-only          # Only the synced directories
    """
    store, config = open_project(project)
    token = load_user_record().effective_token

    coordinator = SyncCoordinator(
        store,
        ConsolePromptService(console, show_alerts=False),
        token=token,
        config=config,
    )

    try:
        result = asyncio.run(
            coordinator.sync(
                commit_message=message,
                direction=_DIRECTIONS[prefer],
                files_only=files_only,
            )
        )
    except KeyboardInterrupt:
        console.print("\n[yellow]Sync interrupted[/yellow]")
        raise typer.Exit(ExitCode.SIGINT)

    if result.outcome == SyncOutcome.SUCCESS:
        if result.decision == SyncDecision.PULL_REMOTE:
            console.print("[green]✓[/green] Local project updated from remote")
        else:
            console.print("[green]✓[/green] Local changes pushed to remote")
        if result.commit_hash:
            console.print(f"[dim]Commit {result.commit_hash[:8]}[/dim]")
        return

    if result.outcome == SyncOutcome.ABORTED:
        console.print("[yellow]Sync cancelled[/yellow]")
        return

    if result.outcome == SyncOutcome.SKIPPED:
        console.print("[yellow]Another sync is already running[/yellow]")
        return

    # Keep lastSyncStatus on disk in line with the failed attempt
    try:
        store.save()
    except SyncError as e:
        logger.warning("Could not record sync failure: %s", e.message)

    if result.failure_kind is None:
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    print_sync_failure(result.failure_kind, result.message or "")
    raise typer.Exit(exit_code_for_failure(result.failure_kind))


def _format_timestamp(timestamp: int | None) -> str:
    if not timestamp:
        return "[dim]Never[/dim]"
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M:%S")


def status(
    project: Path | None = typer.Argument(
        None,
        help=_PROJECT_ARGUMENT_HELP,
        show_default=False,
    ),
) -> None:
    """
    Show the sync state of a project.

    Examples:
        ceramic-sync status
        ceramic-sync status game/project.ceramic
    """
    store, _ = open_project(project)
    project_model = store.project

    status_icons = {
        SyncStatus.SUCCESS: ("✓", "green", "Last sync succeeded"),
        SyncStatus.FAILURE: ("✗", "red", "Last sync failed"),
        SyncStatus.NONE: ("○", "blue", "Never synced"),
    }
    icon, color, label = status_icons[project_model.last_sync_status]
    console.print(f"[{color}]{icon}[/{color}] {label}")

    table = Table(title="Sync Details", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("Project", str(store.path))
    table.add_row("Remote", project_model.git_repository_url or "[dim]Not set[/dim]")
    table.add_row("Last synced commit", _format_timestamp(project_model.last_git_sync_timestamp))
    if project_model.last_git_sync_commit_hash:
        table.add_row("Commit", project_model.last_git_sync_commit_hash[:8])
    table.add_row("Footprint", store.footprint or "")

    synced_here = (
        project_model.last_git_sync_project_footprint is not None
        and project_model.last_git_sync_project_footprint == store.footprint
    )
    table.add_row("Synced from this device", "yes" if synced_here else "no")

    console.print()
    console.print(table)

    if project_model.git_repository_url is None:
        console.print(
            "\n[dim]→ Run [bold]ceramic-sync remote set <url>[/bold] to add a remote[/dim]"
        )


def footprint(
    project: Path | None = typer.Argument(
        None,
        help=_PROJECT_ARGUMENT_HELP,
        show_default=False,
    ),
) -> None:
    """Print the footprint of the project on this machine."""
    store, _ = open_project(project)
    typer.echo(store.footprint)
