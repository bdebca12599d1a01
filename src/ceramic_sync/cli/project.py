"""
Opening the project a command works on.

Commands take an optional project file argument. Without one they fall back
to the project recorded in the user record, then to ``project.ceramic`` in
the current directory.
"""

from __future__ import annotations

import logging
from pathlib import Path

import typer

from ceramic_sync.cli.errors import (
    ExitCode,
    print_error,
    print_invalid_project_error,
    print_project_not_found_error,
)
from ceramic_sync.core.config import (
    SyncConfig,
    load_config,
    load_layered_env,
    load_user_record,
    save_user_record,
)
from ceramic_sync.core.footprint import load_machine_id
from ceramic_sync.core.project import ProjectStore

logger = logging.getLogger(__name__)


def resolve_project_file(project: Path | None, config: SyncConfig | None = None) -> Path:
    """Pick the project file a command should operate on."""
    if project is not None:
        if project.is_dir():
            file_name = (config or SyncConfig()).layout.project_file_name
            return project / file_name
        return project

    record = load_user_record()
    if record.project_path is not None:
        return record.project_path

    return Path.cwd() / (config or SyncConfig()).layout.project_file_name


def open_project(project: Path | None) -> tuple[ProjectStore, SyncConfig]:
    """
    Load the project and the configuration that applies to it.

    Prints an error and exits when the project can't be opened. On success
    the project is remembered in the user record.
    """
    path = resolve_project_file(project).expanduser()
    if not path.is_file():
        print_project_not_found_error(str(path))
        raise typer.Exit(ExitCode.USER_ERROR)

    project_dir = path.resolve().parent
    load_layered_env(project_dir=project_dir)
    config = load_config(project_dir)

    try:
        machine_id = load_machine_id(config.machine_id_path)
    except OSError as e:
        print_error("Could not read machine identifier", reason=str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    try:
        store = ProjectStore.load(path, machine_id)
    except (OSError, ValueError) as e:
        print_invalid_project_error(str(path), str(e))
        raise typer.Exit(ExitCode.USER_ERROR)

    record = load_user_record()
    if record.project_path != store.path:
        record.project_path = store.path
        try:
            save_user_record(record)
        except OSError as e:
            logger.warning("Could not update user record: %s", e)

    return store, config
