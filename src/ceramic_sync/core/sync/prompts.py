"""
User prompts for the sync pipeline.

The pipeline can stop to ask the user two things: which side wins a
conflict, and the commit message. Each question is a request whose answer
arrives later; the pipeline awaits it without a timeout, and cancelling is
the only way to resume it without an answer.

Two implementations are provided:

- :class:`PromptBroker`: a request/response channel for an embedding UI.
  Every question becomes a :class:`PromptRequest` holding its own future;
  the UI takes requests from :attr:`PromptBroker.requests` and resolves them.
- :class:`ConsolePromptService`: asks on the terminal with rich.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Protocol

from rich.console import Console
from rich.prompt import Prompt

logger = logging.getLogger(__name__)


class PromptService(Protocol):
    """What the sync pipeline needs from the user interface."""

    async def prompt_choice(self, title: str, message: str, choices: list[str]) -> int | None:
        """Return the index of the chosen option, or None if cancelled."""
        ...

    async def prompt_text(
        self,
        title: str,
        message: str,
        placeholder: str,
        validate_label: str,
        cancel_label: str | None = None,
    ) -> str | None:
        """Return the entered text, or None if cancelled."""
        ...

    def alert(self, message: str) -> None:
        """Show a message the user must see (sync failures)."""
        ...

    def status(self, message: str | None) -> None:
        """Show a progress message; None clears it."""
        ...


class PromptKind(str, Enum):
    CHOICE = "choice"
    TEXT = "text"


@dataclass
class PromptRequest:
    """One pending question. Resolve it with :meth:`answer` or :meth:`cancel`."""

    kind: PromptKind
    title: str
    message: str
    choices: list[str] = field(default_factory=list)
    placeholder: str = ""
    validate_label: str = ""
    cancel_label: str | None = None
    future: asyncio.Future[Any] = field(
        default_factory=lambda: asyncio.get_running_loop().create_future()
    )

    @property
    def done(self) -> bool:
        return self.future.done()

    def answer(self, value: int | str) -> None:
        if self.kind == PromptKind.CHOICE:
            if not isinstance(value, int) or not 0 <= value < len(self.choices):
                raise ValueError(f"invalid choice {value!r} for {self.choices}")
        elif not isinstance(value, str):
            raise ValueError("text prompts must be answered with a string")
        if not self.future.done():
            self.future.set_result(value)

    def cancel(self) -> None:
        if not self.future.done():
            self.future.set_result(None)


class PromptBroker:
    """
    Future-based prompt service for embedding UIs.

    Example:
        >>> broker = PromptBroker()
        >>> task = asyncio.create_task(coordinator.sync())
        >>> request = await broker.requests.get()
        >>> request.answer(1)  # "Remote"
    """

    def __init__(self) -> None:
        self.requests: asyncio.Queue[PromptRequest] = asyncio.Queue()
        self.alerts: list[str] = []
        self.loading_message: str | None = None

    async def _ask(self, request: PromptRequest) -> Any:
        logger.debug("Waiting for answer to %s prompt %r", request.kind.value, request.title)
        await self.requests.put(request)
        return await request.future

    async def prompt_choice(self, title: str, message: str, choices: list[str]) -> int | None:
        return await self._ask(
            PromptRequest(
                kind=PromptKind.CHOICE,
                title=title,
                message=message,
                choices=list(choices),
            )
        )

    async def prompt_text(
        self,
        title: str,
        message: str,
        placeholder: str,
        validate_label: str,
        cancel_label: str | None = None,
    ) -> str | None:
        return await self._ask(
            PromptRequest(
                kind=PromptKind.TEXT,
                title=title,
                message=message,
                placeholder=placeholder,
                validate_label=validate_label,
                cancel_label=cancel_label,
            )
        )

    def alert(self, message: str) -> None:
        self.alerts.append(message)

    def status(self, message: str | None) -> None:
        self.loading_message = message


@contextmanager
def _interruptible() -> Iterator[None]:
    """
    Make Ctrl+C raise KeyboardInterrupt while blocked on terminal input.

    ``asyncio.run`` replaces the SIGINT handler with one that only cancels
    the main task, which a blocking ``input()`` never notices. The previous
    handler is restored on exit.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    original = signal.signal(signal.SIGINT, signal.default_int_handler)
    try:
        yield
    finally:
        if original is not None:
            signal.signal(signal.SIGINT, original)


class ConsolePromptService:
    """
    Terminal prompts. Ctrl+C or Ctrl+D cancels.

    Questions are asked on the event loop's thread: the CLI runs a single
    sync, so nothing else needs the loop while the user types.

    Args:
        console: Console to print to.
        show_alerts: Print alerts; off when the caller reports failures itself.
    """

    CANCEL = "cancel"

    def __init__(self, console: Console | None = None, *, show_alerts: bool = True) -> None:
        self.console = console or Console()
        self.show_alerts = show_alerts

    def _ask(self, prompt: str, **kwargs: Any) -> str | None:
        with _interruptible():
            try:
                return Prompt.ask(prompt, console=self.console, **kwargs)
            except (KeyboardInterrupt, EOFError):
                self.console.print()
                return None

    async def prompt_choice(self, title: str, message: str, choices: list[str]) -> int | None:
        self.console.print(f"[bold]{title}[/bold]")
        self.console.print(message)
        answer = self._ask("Choose", choices=[*choices, self.CANCEL])
        if answer is None or answer not in choices:
            return None
        return choices.index(answer)

    async def prompt_text(
        self,
        title: str,
        message: str,
        placeholder: str,
        validate_label: str,
        cancel_label: str | None = None,
    ) -> str | None:
        self.console.print(f"[bold]{title}[/bold]")
        hint = f" [dim]({placeholder})[/dim]" if placeholder else ""
        return self._ask(f"{message}{hint}", default="", show_default=False)

    def alert(self, message: str) -> None:
        if self.show_alerts:
            self.console.print(f"[red]✗[/red] {message}")

    def status(self, message: str | None) -> None:
        if message:
            self.console.print(f"[blue]{message}[/blue]")
