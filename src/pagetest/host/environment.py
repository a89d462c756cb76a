"""Hosted environment: a document, a console and the window-level signals."""
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, List, Optional, Union

import click

from pagetest.core.runner import DEFAULT_DEBOUNCE_S, DEFAULT_LOAD_DELAY_S, TestRunner
from pagetest.core.suite import TestSuite
from pagetest.reporting.console import ConsoleReporter
from pagetest.reporting.protocol import alert_line
from pagetest.utils import load_module_from_path

from .console import Console
from .dom import Document, Event, EventTarget

REGISTER_HOOK = "register"


class HostEnvironment(EventTarget):
    """Python counterpart of a browser page running the in-page test runner.

    The environment is the window: it fires ``load`` on itself and
    ``DOMContentLoaded`` on its document, owns the console the report is
    written to, and shows the blocking failure notice through :meth:`alert`.
    """

    def __init__(
        self,
        document: Optional[Document] = None,
        *,
        console: Optional[Console] = None,
        alert_handler: Optional[Callable[[str], Any]] = None,
        debounce: float = DEFAULT_DEBOUNCE_S,
        load_delay: float = DEFAULT_LOAD_DELAY_S,
    ) -> None:
        super().__init__()
        self.document = document if document is not None else Document()
        self.console = console if console is not None else Console()
        self.notices: List[str] = []
        self._alert_handler = alert_handler
        self.runner = TestRunner(
            reporters=[ConsoleReporter(self.console)],
            alert=self.alert,
            debounce=debounce,
            load_delay=load_delay,
        )
        self.suite = TestSuite(self.runner, self.document)
        self.document.add_event_listener("DOMContentLoaded", self._on_content_loaded)
        self.add_event_listener("load", self._on_load)

    @classmethod
    def from_file(cls, path: Union[str, Path], **kwargs: Any) -> "HostEnvironment":
        return cls(Document.from_file(path), **kwargs)

    @property
    def test_completed(self) -> bool:
        return self.runner.completed

    def alert(self, message: str) -> None:
        self.notices.append(message)
        if self._alert_handler is not None:
            self._alert_handler(message)
            return
        # Prefixed so the notice is never read back as a per-test line.
        click.echo(alert_line(message), err=True)

    def load_test_module(self, path: Union[str, Path]) -> None:
        """Import a test file and hand the suite to its ``register`` hook."""

        module = load_module_from_path(path)
        register = getattr(module, REGISTER_HOOK, None)
        if not callable(register):
            raise AttributeError(f"Test file {path} does not define a {REGISTER_HOOK}(suite) function")
        register(self.suite)

    async def open(self) -> None:
        """Fire the page lifecycle signals and wait for every triggered run."""

        self.document.dispatch_event(Event("DOMContentLoaded", bubbles=False))
        self.dispatch_event(Event("load", bubbles=False))
        try:
            await self.runner.join()
        finally:
            self.runner.cancel_scheduled()

    def main(self) -> int:
        """Run the environment to completion; the process exit code."""

        asyncio.run(self.open())
        if not self.runner.run_count:
            self.console.error("No tests were registered")
            return 1
        return 1 if self.runner.any_failed else 0

    def _on_content_loaded(self, event: Event) -> None:
        self.runner.content_loaded()

    def _on_load(self, event: Event) -> None:
        self.runner.resources_loaded()
