"""
Git transport.

Runs git subcommands asynchronously and hands back their exit code and
output. This is the only module that sees the access token in clear: every
string leaving it (result output, log lines, error messages) has the token
redacted, so callers never need to sanitize anything themselves.

Example:
    >>> transport = GitTransport(secrets=[token])
    >>> result = await transport.run(["log", "-1", "--pretty=format:%ct"], repo_dir)
    >>> if result.ok:
    ...     timestamp = parse_commit_timestamp(result.stdout)
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Iterable
from pathlib import Path

from pydantic import BaseModel

from ceramic_sync.core.errors import TimestampFetchFailureError
from ceramic_sync.core.project.models import HTTPS_PREFIX

logger = logging.getLogger(__name__)

REDACTED = "***"

# Exit code reported when the git executable itself can't be started
EXIT_NOT_FOUND = 127


class GitResult(BaseModel):
    """Outcome of one git command. All text is already redacted."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def tokenize_url(url: str, token: str) -> str:
    """Embed the token as userinfo in an ``https://`` URL."""
    if not url.startswith(HTTPS_PREFIX):
        raise ValueError("only https:// URLs can carry a token")
    return HTTPS_PREFIX + token + "@" + url[len(HTTPS_PREFIX):]


def parse_commit_timestamp(output: str) -> int:
    """
    Parse the output of ``git log -1 --pretty=format:%ct``.

    Raises:
        TimestampFetchFailureError: If the output is not a Unix timestamp.
    """
    text = output.strip()
    try:
        return int(text)
    except ValueError:
        raise TimestampFetchFailureError(
            f"Unexpected commit timestamp output: {text[:80]!r}"
        ) from None


class GitTransport:
    """
    Asynchronous git runner with built-in credential redaction.

    Args:
        binary: Git executable.
        secrets: Strings to scrub from every output (typically the token).
        timeout: Seconds before a command is killed; None waits forever.
    """

    def __init__(
        self,
        binary: str = "git",
        *,
        secrets: Iterable[str] = (),
        timeout: float | None = 120.0,
    ) -> None:
        self.binary = binary
        self.timeout = timeout
        self._secrets: list[str] = [s for s in secrets if s]

    def add_secret(self, secret: str) -> None:
        if secret and secret not in self._secrets:
            self._secrets.append(secret)

    def redact(self, text: str) -> str:
        """Remove every known secret from text."""
        for secret in self._secrets:
            text = text.replace(secret + "@", "")
            text = text.replace(secret, REDACTED)
        return text

    async def run(self, argv: list[str], cwd: Path) -> GitResult:
        """
        Run ``git <argv>`` in ``cwd``.

        Never raises for a failing command: a non-zero exit code is returned
        as is, a missing executable as exit code 127 and a timeout as -1.
        """
        logger.debug("Running git command in %s: git %s", cwd, self.redact(" ".join(argv)))

        env = os.environ.copy()
        # A missing credential must fail the command, not block on a tty prompt
        env["GIT_TERMINAL_PROMPT"] = "0"

        try:
            process = await asyncio.create_subprocess_exec(
                self.binary,
                *argv,
                cwd=cwd,
                env=env,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            return GitResult(
                exit_code=EXIT_NOT_FOUND,
                stderr=f"{self.binary} not found in PATH",
            )

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                process.communicate(), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            await process.wait()
            subcommand = argv[0] if argv else ""
            logger.warning("git %s timed out after %ss", subcommand, self.timeout)
            return GitResult(
                exit_code=-1,
                stderr=f"git {subcommand} timed out after {self.timeout}s",
            )

        result = GitResult(
            exit_code=process.returncode if process.returncode is not None else -1,
            stdout=self.redact(stdout_bytes.decode("utf-8", errors="replace")),
            stderr=self.redact(stderr_bytes.decode("utf-8", errors="replace")),
        )
        if not result.ok:
            logger.debug("git exited with %d: %s", result.exit_code, result.stderr.strip())
        return result

    async def version(self) -> str | None:
        """Installed git version (e.g. ``"2.43.0"``), or None if git is unusable."""
        result = await self.run(["--version"], Path.cwd())
        if not result.ok:
            return None
        return result.stdout.strip().replace("git version ", "") or None
