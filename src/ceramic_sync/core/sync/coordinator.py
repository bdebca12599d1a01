"""
Sync coordinator.

Runs one synchronization of the local project with its remote repository:

    guard -> preconditions -> save locally -> shallow clone -> inspect
          -> decide (maybe ask) -> push local | pull remote -> finalize

Every step awaits the previous one; there is never more than one git
command in flight. A second ``sync()`` while one is running returns
immediately instead of queueing. The clone lives in a fresh temporary
directory that is deleted on every exit path.

Example:
    >>> coordinator = SyncCoordinator(store, ConsolePromptService(), token=token)
    >>> result = await coordinator.sync()
    >>> print(result.summary())
"""

from __future__ import annotations

import asyncio
import logging
import shutil
import uuid
from datetime import datetime
from pathlib import Path

from ceramic_sync.core.config.models import SyncConfig
from ceramic_sync.core.errors import (
    CloneFailureError,
    GitAddFailureError,
    GitCommitFailureError,
    GitPushFailureError,
    InvalidRepoUrlError,
    LocalWriteFailureError,
    MissingGitBinaryError,
    MissingTokenError,
    ProjectNotSavedLocallyError,
    RemoteParseFailureError,
    SyncError,
    SyncFailureKind,
    TimestampFetchFailureError,
)
from ceramic_sync.core.project.models import SyncStatus, is_valid_repository_url
from ceramic_sync.core.project.store import ProjectStore, parse_document
from ceramic_sync.core.sync.assets import mirror
from ceramic_sync.core.sync.git import GitTransport, parse_commit_timestamp, tokenize_url
from ceramic_sync.core.sync.models import SyncOutcome, SyncPhase, SyncResult
from ceramic_sync.core.sync.prompts import PromptService
from ceramic_sync.core.sync.resolver import (
    CONFLICT_CHOICES,
    SyncDecision,
    SyncDirection,
    decision_for_choice,
    resolve,
)

logger = logging.getLogger(__name__)

# git's complaint when HEAD has no commit, i.e. the remote is empty
_EMPTY_REPOSITORY_MARKER = "does not have any commits"

# Kind reported for an unexpected exception, by the phase it escaped from
_PHASE_FAILURE_KINDS = {
    SyncPhase.CLONING: SyncFailureKind.CLONE_FAILURE,
    SyncPhase.INSPECTING: SyncFailureKind.TIMESTAMP_FETCH_FAILURE,
    SyncPhase.PUSHING: SyncFailureKind.GIT_PUSH_FAILURE,
    SyncPhase.PULLING: SyncFailureKind.REMOTE_PARSE_FAILURE,
    SyncPhase.FINALIZING: SyncFailureKind.LOCAL_WRITE_FAILURE,
}


class SyncCoordinator:
    """
    Synchronizes a :class:`ProjectStore` with its remote git repository.

    Args:
        store: The local project document.
        prompts: User interface for questions, alerts and progress.
        token: Access token embedded in the clone URL.
        transport: Git runner; one is built from ``config`` if omitted.
        config: Sync configuration (defaults apply if omitted).
    """

    def __init__(
        self,
        store: ProjectStore,
        prompts: PromptService,
        *,
        token: str | None,
        transport: GitTransport | None = None,
        config: SyncConfig | None = None,
    ) -> None:
        self.store = store
        self.prompts = prompts
        self.token = token
        self.config = config or SyncConfig()
        self.transport = transport or GitTransport(
            self.config.git.binary,
            timeout=self.config.git.timeout_seconds,
        )
        if token:
            self.transport.add_secret(token)

        self.phase = SyncPhase.IDLE
        self.last_clone_dir: Path | None = None
        self._clone_dir: Path | None = None

    @property
    def in_progress(self) -> bool:
        return self.store.project.sync_in_progress

    async def sync(
        self,
        *,
        commit_message: str | None = None,
        direction: SyncDirection = SyncDirection.AUTO,
        files_only: bool = False,
    ) -> SyncResult:
        """
        Run one sync attempt.

        Never raises for a failed attempt: the returned result carries the
        outcome and a displayable message.

        Args:
            commit_message: Use this message instead of asking for one.
            direction: Preference applied when local and remote diverge.
            files_only: Mirror the synced directories but neither write nor
                apply the project document.
        """
        if self.store.project.sync_in_progress:
            logger.info("Sync already in progress, ignoring request")
            return SyncResult(outcome=SyncOutcome.SKIPPED)

        # No await between the check above and this assignment
        self.store.project.sync_in_progress = True
        self.phase = SyncPhase.GUARDING
        self.prompts.status("Updating remote repository…")
        started_at = datetime.now()

        try:
            result = await self._run(commit_message, direction, files_only)
        finally:
            self._remove_clone_dir()
            self.store.project.sync_in_progress = False
            self.prompts.status(None)
            self.phase = SyncPhase.IDLE

        result.started_at = started_at
        result.completed_at = datetime.now()
        logger.info("%s", result.summary())
        return result

    async def _run(
        self, commit_message: str | None, direction: SyncDirection, files_only: bool
    ) -> SyncResult:
        decision: SyncDecision | None = None
        try:
            clone_url = await self._check_preconditions()

            # Serialize what the user currently sees
            self.store.save()

            self.phase = SyncPhase.CLONING
            self.prompts.status("Fetching remote repository…")
            clone_dir = await self._clone(clone_url)

            self.phase = SyncPhase.INSPECTING
            remote_timestamp, remote_hash = await self._read_remote_head(clone_dir)
            has_project_file = (clone_dir / self.config.layout.project_file_name).is_file()
            project = self.store.project
            decision = resolve(
                remote_has_project_file=has_project_file,
                local_footprint=self.store.footprint,
                last_sync_footprint=project.last_git_sync_project_footprint,
                remote_commit_timestamp=remote_timestamp,
                last_sync_timestamp=project.last_git_sync_timestamp,
                direction=direction,
            )
            logger.info("Sync decision: %s", decision.value)

            if decision == SyncDecision.ASK_USER:
                self.phase = SyncPhase.PROMPTING
                self.prompts.status(None)
                choice = await self.prompts.prompt_choice(
                    "Resolve conflict",
                    "Remote project has new changes.\nWhich version do you want to keep?",
                    list(CONFLICT_CHOICES),
                )
                decision = decision_for_choice(choice)
                if decision is None:
                    return self._abort(SyncDecision.ASK_USER)

            if decision == SyncDecision.PUSH_LOCAL:
                self.phase = SyncPhase.PUSHING
                pushed = await self._push_local(clone_dir, commit_message, files_only)
                if pushed is None:
                    return self._abort(decision)
                synced_timestamp, synced_hash = pushed
            else:
                self.phase = SyncPhase.PULLING
                await self._pull_remote(clone_dir, files_only)
                synced_timestamp, synced_hash = remote_timestamp, remote_hash

            self.phase = SyncPhase.FINALIZING
            self._finalize(synced_timestamp, synced_hash)

            return SyncResult(
                outcome=SyncOutcome.SUCCESS,
                decision=decision,
                remote_commit_timestamp=synced_timestamp,
                commit_hash=synced_hash,
            )

        except SyncError as e:
            return self._fail(e.kind, e.message, decision)
        except Exception as e:
            kind = _PHASE_FAILURE_KINDS.get(self.phase, SyncFailureKind.LOCAL_WRITE_FAILURE)
            logger.exception("Unexpected error during sync (%s)", self.phase.value)
            return self._fail(kind, f"Unexpected error: {e}", decision)

    async def _check_preconditions(self) -> str:
        """Validate what a sync needs and return the tokenized clone URL."""
        if await self.transport.version() is None:
            raise MissingGitBinaryError(
                "Git is required to synchronize with the remote repository."
            )
        token = self.token
        if not token:
            raise MissingTokenError("You need to set a personal access token.")
        url = self.store.project.git_repository_url
        if url is None or not is_valid_repository_url(url):
            raise InvalidRepoUrlError("Invalid git repository URL.")
        if self.store.path is None:
            raise ProjectNotSavedLocallyError(
                "Cannot synchronize the project before it is saved to disk."
            )
        return tokenize_url(url, token)

    async def _clone(self, url: str) -> Path:
        temp_root = self.config.resolved_temp_root
        try:
            temp_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CloneFailureError(f"Failed to create {temp_root}: {e}") from e

        clone_dir = temp_root / uuid.uuid4().hex
        self._clone_dir = clone_dir
        self.last_clone_dir = clone_dir

        result = await self.transport.run(
            ["clone", "--depth", str(self.config.git.clone_depth), url, str(clone_dir)],
            temp_root,
        )
        if not result.ok:
            raise CloneFailureError(
                f"Failed to get latest commit: {result.stderr.strip()}",
                stderr=result.stderr,
            )
        return clone_dir

    async def _read_remote_head(self, clone_dir: Path) -> tuple[int, str | None]:
        """Timestamp and hash of the cloned commit; an empty remote reads as (0, None)."""
        log = await self.transport.run(["log", "-1", "--pretty=format:%ct"], clone_dir)
        if not log.ok:
            if _EMPTY_REPOSITORY_MARKER in log.stderr:
                logger.info("Remote repository is empty")
                return 0, None
            raise TimestampFetchFailureError(
                f"Failed to get latest commit timestamp: {log.stderr.strip()}",
                stderr=log.stderr,
            )
        timestamp = parse_commit_timestamp(log.stdout)
        return timestamp, await self._read_head_hash(clone_dir)

    async def _read_head_hash(self, clone_dir: Path) -> str:
        head = await self.transport.run(["rev-parse", "HEAD"], clone_dir)
        if not head.ok:
            raise TimestampFetchFailureError(
                f"Failed to get latest commit hash: {head.stderr.strip()}",
                stderr=head.stderr,
            )
        return head.stdout.strip()

    async def _push_local(
        self, clone_dir: Path, commit_message: str | None, files_only: bool
    ) -> tuple[int, str] | None:
        """Publish the local project. Returns None if the user cancelled."""
        layout = self.config.layout
        self.prompts.status("Pushing changes…")

        gitignore = clone_dir / ".gitignore"
        try:
            if not gitignore.exists():
                gitignore.write_text("\n".join(layout.gitignore_entries) + "\n", encoding="utf-8")
        except OSError as e:
            raise LocalWriteFailureError(f"Failed to write .gitignore: {e}") from e

        for name, local_path in self.store.sync_directories(layout.sync_dir_names):
            await asyncio.to_thread(mirror, local_path, clone_dir / name)

        if not files_only:
            try:
                (clone_dir / layout.project_file_name).write_text(
                    self.store.serialize(for_remote=True), encoding="utf-8"
                )
            except OSError as e:
                raise LocalWriteFailureError(f"Failed to write project file: {e}") from e

        added = await self.transport.run(["add", "-A"], clone_dir)
        if not added.ok:
            raise GitAddFailureError(
                f"Failed to stage modified files: {added.stderr.strip()}",
                stderr=added.stderr,
            )

        message = commit_message.strip() if commit_message else None
        if not message:
            self.prompts.status(None)
            message = await self._ask_commit_message()
            if message is None:
                return None
            self.prompts.status("Pushing changes…")

        committed = await self.transport.run(["commit", "-m", message], clone_dir)
        if not committed.ok:
            detail = committed.stderr.strip() or committed.stdout.strip()
            raise GitCommitFailureError(
                f"Failed to commit changes: {detail}",
                stderr=committed.stderr,
            )

        log = await self.transport.run(["log", "-1", "--pretty=format:%ct"], clone_dir)
        if not log.ok:
            raise TimestampFetchFailureError(
                f"Failed to get new commit timestamp: {log.stderr.strip()}",
                stderr=log.stderr,
            )
        timestamp = parse_commit_timestamp(log.stdout)
        commit_hash = await self._read_head_hash(clone_dir)

        pushed = await self.transport.run(["push"], clone_dir)
        if not pushed.ok:
            raise GitPushFailureError(
                f"Failed to push to remote repository: {pushed.stderr.strip()}",
                stderr=pushed.stderr,
            )

        logger.info("Pushed commit %s", commit_hash[:8])
        return timestamp, commit_hash

    async def _ask_commit_message(self) -> str | None:
        while True:
            text = await self.prompts.prompt_text(
                "Commit message",
                "Please describe your changes:",
                "Enter a message…",
                "Commit",
                "Cancel",
            )
            if text is None:
                return None
            if text.strip():
                return text.strip()

    async def _pull_remote(self, clone_dir: Path, files_only: bool) -> None:
        """
        Apply the remote project and mirror the synced directories.

        The document is restored if anything fails. Directories are
        resolved after the remote document is applied, so a path only the
        remote knows is honoured.
        """
        layout = self.config.layout
        self.prompts.status("Updating local files…")
        snapshot = self.store.snapshot()

        if not files_only:
            try:
                text = (clone_dir / layout.project_file_name).read_text(encoding="utf-8")
                serialized, entries = parse_document(text)
                self.store.apply_remote(serialized, entries)
            except (OSError, ValueError) as e:
                self.store.restore(snapshot)
                raise RemoteParseFailureError(f"Failed to read remote project: {e}") from e

        try:
            for name, local_path in self.store.sync_directories(layout.sync_dir_names):
                await asyncio.to_thread(mirror, clone_dir / name, local_path)
        except SyncError:
            self.store.restore(snapshot)
            raise

    def _finalize(self, timestamp: int, commit_hash: str | None) -> None:
        project = self.store.project
        previous_markers = project.sync_markers()
        previous_status = project.last_sync_status

        project.mark_synced(timestamp, self.store.footprint, commit_hash)
        project.last_sync_status = SyncStatus.SUCCESS
        try:
            self.store.save()
        except SyncError:
            project.restore_sync_markers(previous_markers)
            project.last_sync_status = previous_status
            raise

    def _fail(
        self, kind: SyncFailureKind, message: str, decision: SyncDecision | None
    ) -> SyncResult:
        self.phase = SyncPhase.FAILED
        message = self.transport.redact(message)
        self.store.project.last_sync_status = SyncStatus.FAILURE
        logger.warning("Sync failed (%s): %s", kind.value, message)
        self.prompts.alert(message)
        return SyncResult(
            outcome=SyncOutcome.FAILURE,
            decision=decision,
            message=message,
            failure_kind=kind,
        )

    def _abort(self, decision: SyncDecision | None) -> SyncResult:
        logger.info("Sync cancelled by user")
        return SyncResult(outcome=SyncOutcome.ABORTED, decision=decision, message="Sync cancelled")

    def _remove_clone_dir(self) -> None:
        clone_dir = self._clone_dir
        self._clone_dir = None
        if clone_dir is None:
            return
        shutil.rmtree(clone_dir, ignore_errors=True)
        if clone_dir.exists():
            logger.warning("Could not fully remove temporary clone %s", clone_dir)
        else:
            logger.debug("Removed temporary clone %s", clone_dir)
