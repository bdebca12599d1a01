"""
Pytest configuration and shared fixtures.

Provides an isolated user config directory, sample project files, and
test doubles for the git transport and the prompt service so that sync
pipelines can run without a network or a terminal.
"""

from __future__ import annotations

import hashlib
import json
import shutil
from pathlib import Path
from typing import Any

import pytest

from ceramic_sync.core.config import clear_cache
from ceramic_sync.core.config.models import SyncConfig
from ceramic_sync.core.project import ProjectStore
from ceramic_sync.core.sync import GitResult, GitTransport, SyncCoordinator

TOKEN = "ghp_T0kenValue42"
REPO_URL = "https://github.com/example/game.git"
MACHINE_ID = "machine-a"

EMPTY_REPOSITORY_STDERR = (
    "fatal: your current branch 'main' does not have any commits yet\n"
)


# ==============================================================================
# Environment Isolation
# ==============================================================================


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep every test away from the real user config, machine id and token."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setenv("CERAMIC_SYNC_MACHINE_ID_PATH", str(tmp_path / "machine"))
    for var in (
        "CERAMIC_SYNC_GIT_TOKEN",
        "CERAMIC_SYNC_GIT_BINARY",
        "CERAMIC_SYNC_GIT_TIMEOUT",
        "CERAMIC_SYNC_TEMP_ROOT",
    ):
        monkeypatch.delenv(var, raising=False)
    clear_cache()
    yield
    clear_cache()


# ==============================================================================
# Project Fixtures
# ==============================================================================


def project_document(**fields: Any) -> dict[str, Any]:
    """A minimal project document; keyword arguments override project fields."""
    project = {
        "id": "project",
        "name": "Game",
        "assetsPath": "assets",
        "gitRepositoryUrl": REPO_URL,
        **fields,
    }
    return {"project": project, "entries": [{"id": "scene-1", "name": "Intro"}]}


def write_project(directory: Path, document: dict[str, Any] | None = None, **fields: Any) -> Path:
    """Write a project file (and an assets directory) into directory."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "project.ceramic"
    path.write_text(json.dumps(document or project_document(**fields), indent=2))
    return path


def read_document(path: Path) -> dict[str, Any]:
    return json.loads(path.read_text())


@pytest.fixture
def sync_config(tmp_path) -> SyncConfig:
    """Config whose clones land under tmp_path."""
    return SyncConfig(temp_root=tmp_path / "clones", machine_id_path=tmp_path / "machine")


@pytest.fixture
def local_dir(tmp_path) -> Path:
    """
    A saved local project.

    Creates:
    - project.ceramic (never synced)
    - assets/hero.png
    """
    directory = tmp_path / "local"
    write_project(directory)
    assets = directory / "assets"
    assets.mkdir()
    (assets / "hero.png").write_text("local hero")
    return directory


@pytest.fixture
def store(local_dir) -> ProjectStore:
    return ProjectStore.load(local_dir / "project.ceramic", MACHINE_ID)


# ==============================================================================
# Git Doubles
# ==============================================================================


class FakeRemote:
    """
    A remote repository kept as a plain directory plus a commit log.

    ``root`` holds the files of the latest commit; a clone copies it and a
    push replaces it.
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)
        self.commits: list[tuple[int, str, str]] = []

    @property
    def head(self) -> tuple[int, str, str] | None:
        return self.commits[-1] if self.commits else None

    def commit(
        self,
        timestamp: int,
        *,
        document: dict[str, Any] | None = None,
        assets: dict[str, str] | None = None,
        files: dict[str, str] | None = None,
        message: str = "Remote edit",
    ) -> str:
        """Publish a commit made by another device."""
        if document is not None:
            (self.root / "project.ceramic").write_text(json.dumps(document, indent=2))
        for dir_name, contents in (("assets", assets), ("files", files)):
            if contents is None:
                continue
            directory = self.root / dir_name
            if directory.exists():
                shutil.rmtree(directory)
            directory.mkdir()
            for name, content in contents.items():
                (directory / name).write_text(content)
        return self._record(timestamp, message)

    def _record(self, timestamp: int, message: str) -> str:
        commit_hash = hashlib.sha1(f"{len(self.commits)}:{timestamp}:{message}".encode()).hexdigest()
        self.commits.append((timestamp, commit_hash, message))
        return commit_hash

    def document(self) -> dict[str, Any]:
        return read_document(self.root / "project.ceramic")


class FakeGitTransport(GitTransport):
    """
    GitTransport that simulates git against a :class:`FakeRemote`.

    Outputs are returned unredacted, the way a careless git would print
    them, so the coordinator's own redaction is what tests observe.

    Args:
        remote: The simulated remote.
        installed: False makes every command fail as if git were missing.
        failures: Canned results keyed by subcommand (``"push"``, ``"clone"``...).
        commit_timestamp: Timestamp given to commits made in a clone.
    """

    def __init__(
        self,
        remote: FakeRemote,
        *,
        installed: bool = True,
        failures: dict[str, GitResult] | None = None,
        commit_timestamp: int = 5000,
    ) -> None:
        super().__init__("git")
        self.remote = remote
        self.installed = installed
        self.failures = dict(failures or {})
        self.commit_timestamp = commit_timestamp
        self.calls: list[tuple[list[str], Path]] = []
        self.clone_dirs: list[Path] = []
        self.commit_messages: list[str] = []
        self._local_commits: dict[Path, tuple[int, str, str]] = {}

    @property
    def commands(self) -> list[str]:
        """Subcommands run so far, in order (``--version`` excluded)."""
        return [argv[0] for argv, _ in self.calls if argv[0] != "--version"]

    async def run(self, argv: list[str], cwd: Path) -> GitResult:
        self.calls.append((list(argv), cwd))
        if not self.installed:
            return GitResult(exit_code=127, stderr="git not found in PATH")
        command = argv[0]
        if command in self.failures:
            return self.failures[command]
        handler = getattr(self, "_" + command.lstrip("-").replace("-", "_"))
        return handler(argv, cwd)

    def _version(self, argv: list[str], cwd: Path) -> GitResult:
        return GitResult(exit_code=0, stdout="git version 2.43.0\n")

    def _clone(self, argv: list[str], cwd: Path) -> GitResult:
        destination = Path(argv[-1])
        shutil.copytree(self.remote.root, destination)
        self.clone_dirs.append(destination)
        return GitResult(exit_code=0, stderr=f"Cloning into '{destination}'...\n")

    def _head(self, cwd: Path) -> tuple[int, str, str] | None:
        return self._local_commits.get(cwd) or self.remote.head

    def _log(self, argv: list[str], cwd: Path) -> GitResult:
        head = self._head(cwd)
        if head is None:
            return GitResult(exit_code=128, stderr=EMPTY_REPOSITORY_STDERR)
        return GitResult(exit_code=0, stdout=str(head[0]))

    def _rev_parse(self, argv: list[str], cwd: Path) -> GitResult:
        head = self._head(cwd)
        if head is None:
            return GitResult(exit_code=128, stderr="fatal: ambiguous argument 'HEAD'\n")
        return GitResult(exit_code=0, stdout=head[1] + "\n")

    def _add(self, argv: list[str], cwd: Path) -> GitResult:
        return GitResult(exit_code=0)

    def _commit(self, argv: list[str], cwd: Path) -> GitResult:
        message = argv[2]
        self.commit_messages.append(message)
        commit_hash = hashlib.sha1(f"local:{message}".encode()).hexdigest()
        self._local_commits[cwd] = (self.commit_timestamp, commit_hash, message)
        return GitResult(exit_code=0, stdout=f"[main {commit_hash[:7]}] {message}\n")

    def _push(self, argv: list[str], cwd: Path) -> GitResult:
        commit = self._local_commits.pop(cwd, None)
        if commit is None:
            return GitResult(exit_code=0, stderr="Everything up-to-date\n")
        shutil.rmtree(self.remote.root)
        shutil.copytree(cwd, self.remote.root)
        self.remote.commits.append(commit)
        return GitResult(exit_code=0)


class ScriptedPrompts:
    """
    PromptService answering from a script.

    Any prompt beyond the scripted answers fails the test.
    """

    def __init__(self, choices: list[int | None] | None = None, texts: list[str | None] | None = None):
        self.choices = list(choices or [])
        self.texts = list(texts or [])
        self.choice_prompts: list[tuple[str, str, list[str]]] = []
        self.text_prompts: list[tuple[str, str]] = []
        self.alerts: list[str] = []
        self.statuses: list[str | None] = []

    async def prompt_choice(self, title: str, message: str, choices: list[str]) -> int | None:
        self.choice_prompts.append((title, message, list(choices)))
        if not self.choices:
            raise AssertionError(f"unexpected choice prompt: {title}")
        return self.choices.pop(0)

    async def prompt_text(
        self,
        title: str,
        message: str,
        placeholder: str,
        validate_label: str,
        cancel_label: str | None = None,
    ) -> str | None:
        self.text_prompts.append((title, message))
        if not self.texts:
            raise AssertionError(f"unexpected text prompt: {title}")
        return self.texts.pop(0)

    def alert(self, message: str) -> None:
        self.alerts.append(message)

    def status(self, message: str | None) -> None:
        self.statuses.append(message)


@pytest.fixture
def remote(tmp_path) -> FakeRemote:
    return FakeRemote(tmp_path / "remote")


@pytest.fixture
def transport(remote) -> FakeGitTransport:
    return FakeGitTransport(remote)


@pytest.fixture
def prompts() -> ScriptedPrompts:
    return ScriptedPrompts()


@pytest.fixture
def coordinator(store, prompts, transport, sync_config) -> SyncCoordinator:
    return SyncCoordinator(store, prompts, token=TOKEN, transport=transport, config=sync_config)
