"""
ceramic-sync CLI - remote repository commands.
"""

from pathlib import Path

import typer
from rich.console import Console

from ceramic_sync.cli.errors import ExitCode, print_error
from ceramic_sync.cli.project import open_project
from ceramic_sync.core.errors import SyncError
from ceramic_sync.core.project import is_valid_repository_url

console = Console()
app = typer.Typer(
    name="remote",
    help="Show or change the project's remote repository",
    no_args_is_help=True,
)


@app.command("set")
def set_remote(
    url: str = typer.Argument(..., help="HTTPS URL of the git repository"),
    project: Path | None = typer.Option(
        None,
        "--project",
        "-p",
        help="Project file or directory (defaults to the last opened project)",
    ),
) -> None:
    """
    Set the remote repository of a project.

    Only https:// URLs are accepted; the access token is added to the URL
    at sync time and never stored in the project.

    Examples:
        ceramic-sync remote set https://github.com/me/game.git
    """
    url = url.strip()
    if not is_valid_repository_url(url):
        print_error(
            f"Invalid repository URL: {url}",
            reason="Only https:// repository URLs are supported",
            solution="ceramic-sync remote set https://host/owner/repo.git",
        )
        raise typer.Exit(ExitCode.USER_ERROR)

    store, _ = open_project(project)
    store.project.git_repository_url = url
    try:
        store.save()
    except SyncError as e:
        print_error("Could not save project", reason=e.message)
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    console.print(f"[green]✓[/green] Remote set to {url}")


@app.command("show")
def show_remote(
    project: Path | None = typer.Option(
        None,
        "--project",
        "-p",
        help="Project file or directory (defaults to the last opened project)",
    ),
) -> None:
    """Print the remote repository of a project."""
    store, _ = open_project(project)
    url = store.project.git_repository_url
    if url is None:
        console.print("[dim]No remote repository set[/dim]")
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    typer.echo(url)
