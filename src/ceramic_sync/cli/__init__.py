"""
ceramic-sync CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import logging
import sys

import typer
from rich.console import Console

from ceramic_sync import __version__
from ceramic_sync.cli import remote, sync, token
from ceramic_sync.core.config.env import load_layered_env

app = typer.Typer(
    name="ceramic-sync",
    help="Synchronize Ceramic projects with a remote git repository",
    no_args_is_help=True,
    add_completion=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for all commands.

    Args:
        debug: If True, enable DEBUG level logging
    """
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
) -> None:
    """
    ceramic-sync - keep a Ceramic project in sync with a git repository.

    Quick Start:
        1. ceramic-sync remote set https://github.com/me/game.git
        2. ceramic-sync token set
        3. ceramic-sync sync
    """
    setup_logging(debug)

    # Precedence: OS env > project .env > user .env
    load_layered_env()

    ctx.obj = {"debug": debug}


@app.command()
def version() -> None:
    """Show the ceramic-sync version."""
    console.print(f"ceramic-sync version {__version__}")


app.command(name="sync")(sync.sync)
app.command(name="status")(sync.status)
app.command(name="footprint")(sync.footprint)
app.add_typer(remote.app, name="remote")
app.add_typer(token.app, name="token")


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]
