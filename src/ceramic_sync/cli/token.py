"""
ceramic-sync CLI - access token commands.

The token lives in the user record, never in the project file.
"""

import os

import typer
from rich.console import Console

from ceramic_sync.cli.errors import ExitCode, print_error
from ceramic_sync.core.config import (
    TOKEN_ENV_VAR,
    get_user_record_path,
    load_user_record,
    save_user_record,
)

console = Console()
app = typer.Typer(
    name="token",
    help="Manage the personal access token used for the remote",
    no_args_is_help=True,
)


@app.command("set")
def set_token() -> None:
    """
    Store a personal access token.

    The token is read without echo and saved to the user record,
    readable by the owner only.
    """
    token = typer.prompt("Personal access token", hide_input=True).strip()
    if not token:
        print_error("Token must not be empty")
        raise typer.Exit(ExitCode.USER_ERROR)

    record = load_user_record()
    record.git_token = token
    try:
        save_user_record(record)
    except OSError as e:
        print_error("Could not save token", reason=type(e).__name__)
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    console.print(f"[green]✓[/green] Token saved to {get_user_record_path()}")


@app.command("clear")
def clear_token() -> None:
    """Remove the stored token."""
    record = load_user_record()
    if record.git_token is None:
        console.print("[dim]No token stored[/dim]")
    else:
        record.git_token = None
        save_user_record(record)
        console.print("[green]✓[/green] Token removed")

    if TOKEN_ENV_VAR in os.environ:
        console.print(f"[yellow]⚠[/yellow]  {TOKEN_ENV_VAR} is still set in the environment")
