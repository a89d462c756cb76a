"""Capture the console output of a hosted environment."""
from __future__ import annotations

import asyncio
import functools
import os
import subprocess
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any, Iterator, List, Mapping, Optional, Sequence, Union

from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from pagetest.reporting.protocol import parse_alert

DEFAULT_TIMEOUT_S = 5.0
COMPLETION_FLAG = "__testCompleted"


@dataclass
class CapturedOutput:
    """Console lines in arrival order plus anything else the source observed."""

    lines: List[str] = field(default_factory=list)
    notices: List[str] = field(default_factory=list)
    exit_code: Optional[int] = None
    timed_out: bool = False

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


class ConsoleSource:
    """Base interface: launch the environment and return what it printed."""

    timeout: float = DEFAULT_TIMEOUT_S

    def capture(self) -> CapturedOutput:  # pragma: no cover - interface
        raise NotImplementedError

    def describe(self) -> str:  # pragma: no cover - interface
        raise NotImplementedError


class SubprocessSource(ConsoleSource):
    """Runs a hosted environment as a child process and reads its output.

    stderr is merged into stdout so error lines keep their place relative to
    the rest of the report. Alert lines become notices, the way dialogs do
    in a browser.
    """

    def __init__(
        self,
        argv: Sequence[str],
        *,
        cwd: Optional[Union[str, Path]] = None,
        env: Optional[Mapping[str, str]] = None,
        timeout: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        if not argv:
            raise ValueError("command cannot be empty")
        self.argv = [str(part) for part in argv]
        self.cwd = Path(cwd) if cwd is not None else None
        self.env = dict(env or {})
        self.timeout = timeout

    def describe(self) -> str:
        return " ".join(self.argv)

    def capture(self) -> CapturedOutput:
        env = os.environ.copy()
        env.update(self.env)
        env.setdefault("PYTHONUNBUFFERED", "1")
        env.setdefault("PYTHONIOENCODING", "utf-8")
        try:
            proc = subprocess.run(
                self.argv,
                cwd=str(self.cwd) if self.cwd else None,
                env=env,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            captured = _split_alerts(_decode_lines(exc.output))
            captured.timed_out = True
            return captured
        captured = _split_alerts(_decode_lines(proc.stdout))
        captured.exit_code = proc.returncode
        return captured


class BrowserSource(ConsoleSource):
    """Loads a page in headless Chromium and records its console messages.

    Dialogs (the failure notice) are recorded and dismissed. With
    ``wait_for_completion`` the capture ends as soon as the page sets
    ``window.__testCompleted``; otherwise, or when the flag never appears,
    it ends after ``timeout`` seconds.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_S,
        headless: bool = True,
        wait_for_completion: bool = True,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.headless = headless
        self.wait_for_completion = wait_for_completion

    def describe(self) -> str:
        return self.url

    def capture(self) -> CapturedOutput:
        return asyncio.run(self.capture_async())

    async def capture_async(self) -> CapturedOutput:
        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch(headless=self.headless)
            try:
                page = await browser.new_page()
                return await self.capture_page(page)
            finally:
                await browser.close()

    async def capture_page(self, page: Any) -> CapturedOutput:
        """Drive an already-open page; split out so it works with any page object."""

        captured = CapturedOutput()

        def on_console(message: Any) -> None:
            captured.lines.append(message.text)

        async def on_dialog(dialog: Any) -> None:
            captured.notices.append(dialog.message)
            await dialog.dismiss()

        page.on("console", on_console)
        page.on("dialog", on_dialog)
        timeout_ms = self.timeout * 1000
        await page.goto(self.url, timeout=timeout_ms)
        if self.wait_for_completion:
            try:
                await page.wait_for_function(f"window.{COMPLETION_FLAG} === true", timeout=timeout_ms)
            except PlaywrightTimeoutError:
                captured.timed_out = True
        else:
            await page.wait_for_timeout(timeout_ms)
        return captured


@contextmanager
def serve_directory(root: Union[str, Path], host: str = "127.0.0.1") -> Iterator[str]:
    """Serve ``root`` over HTTP on an ephemeral port; yields the base URL."""

    directory = Path(root).expanduser().resolve()
    if not directory.is_dir():
        raise FileNotFoundError(f"Directory not found: {directory}")
    handler = functools.partial(_QuietHandler, directory=str(directory))
    server = ThreadingHTTPServer((host, 0), handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://{host}:{server.server_address[1]}"
    finally:
        server.shutdown()
        server.server_close()
        thread.join()


class _QuietHandler(SimpleHTTPRequestHandler):
    def log_message(self, format: str, *args: Any) -> None:
        return


def _split_alerts(lines: List[str]) -> CapturedOutput:
    captured = CapturedOutput()
    for line in lines:
        notice = parse_alert(line)
        if notice is None:
            captured.lines.append(line)
        else:
            captured.notices.append(notice)
    return captured


def _decode_lines(raw: Union[bytes, str, None]) -> List[str]:
    if raw is None:
        return []
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
    return text.splitlines()
