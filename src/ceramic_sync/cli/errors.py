"""
Standardized error handling and exit codes for the ceramic-sync CLI.

This module provides consistent error messaging with actionable guidance
and standardized exit codes across all CLI commands.
"""

from enum import IntEnum

from rich.console import Console

from ceramic_sync.core.errors import SyncFailureKind

console = Console()


class ExitCode(IntEnum):
    """Standard exit codes for ceramic-sync operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Generic error or failed sync."""

    USER_ERROR = 2
    """User configuration or input error (actionable by user)."""

    SIGINT = 130
    """Terminated by SIGINT (Ctrl+C) - Unix standard."""


# Follow-up hints for failures the user can fix themselves
SYNC_FAILURE_HINTS: dict[SyncFailureKind, str] = {
    SyncFailureKind.MISSING_GIT_BINARY: "install git and make sure it is in PATH",
    SyncFailureKind.MISSING_TOKEN: "ceramic-sync token set",
    SyncFailureKind.INVALID_REPO_URL: "ceramic-sync remote set https://host/owner/repo.git",
    SyncFailureKind.PROJECT_NOT_SAVED_LOCALLY: "save the project to disk first",
    SyncFailureKind.CLONE_FAILURE: "check the repository URL and that your token can read it",
    SyncFailureKind.GIT_PUSH_FAILURE: "check that your token can write to the repository",
}

USER_FAILURES = frozenset(
    {
        SyncFailureKind.MISSING_GIT_BINARY,
        SyncFailureKind.MISSING_TOKEN,
        SyncFailureKind.INVALID_REPO_URL,
        SyncFailureKind.PROJECT_NOT_SAVED_LOCALLY,
    }
)


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(f"[dim]{reason}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


def print_sync_failure(kind: SyncFailureKind, message: str) -> None:
    """Print a failed sync with the hint for its kind."""
    print_error(
        "Sync failed",
        reason=message,
        solution=SYNC_FAILURE_HINTS.get(kind),
    )


def exit_code_for_failure(kind: SyncFailureKind) -> ExitCode:
    if kind in USER_FAILURES:
        return ExitCode.USER_ERROR
    return ExitCode.GENERAL_ERROR


def print_project_not_found_error(path: str) -> None:
    """Print error when no project file can be opened."""
    print_error(
        f"Project not found: {path}",
        reason="ceramic-sync needs a saved project.ceramic file",
        solution="ceramic-sync sync path/to/project.ceramic",
    )


def print_invalid_project_error(path: str, detail: str) -> None:
    """Print error when the project file can't be parsed."""
    print_error(
        f"Invalid project file: {path}",
        reason=detail,
    )


__all__ = [
    "ExitCode",
    "exit_code_for_failure",
    "print_error",
    "print_invalid_project_error",
    "print_project_not_found_error",
    "print_sync_failure",
]
