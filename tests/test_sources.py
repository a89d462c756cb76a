from __future__ import annotations

import asyncio
import sys
import urllib.request

from pagetest.supervisor.sources import BrowserSource, SubprocessSource, serve_directory


class FakeMessage:
    def __init__(self, text: str) -> None:
        self.text = text


class FakeDialog:
    def __init__(self, message: str) -> None:
        self.message = message
        self.dismissed = False

    async def dismiss(self) -> None:
        self.dismissed = True


class FakePage:
    """Replays console messages and a dialog when navigated."""

    def __init__(self, messages, dialog=None) -> None:
        self.handlers = {}
        self.messages = messages
        self.dialog = dialog
        self.calls = []

    def on(self, event, handler) -> None:
        self.handlers[event] = handler

    async def goto(self, url, timeout=None) -> None:
        self.calls.append(("goto", url, timeout))
        for text in self.messages:
            self.handlers["console"](FakeMessage(text))
        if self.dialog is not None:
            await self.handlers["dialog"](self.dialog)

    async def wait_for_function(self, expression, timeout=None) -> None:
        self.calls.append(("wait_for_function", expression, timeout))

    async def wait_for_timeout(self, timeout) -> None:
        self.calls.append(("wait_for_timeout", timeout))


def test_subprocess_source_captures_stdout_and_stderr(tmp_path) -> None:
    script = tmp_path / "emit.py"
    script.write_text(
        "import sys\n"
        "print('📊 Tests: 2')\n"
        "print('✅ a')\n"
        "sys.stdout.flush()\n"
        "print('❌ b', file=sys.stderr)\n"
        "sys.exit(1)\n",
        encoding="utf-8",
    )
    captured = SubprocessSource([sys.executable, str(script)], cwd=tmp_path).capture()
    assert captured.lines == ["📊 Tests: 2", "✅ a", "❌ b"]
    assert captured.exit_code == 1
    assert not captured.timed_out


def test_subprocess_source_keeps_partial_output_on_timeout(tmp_path) -> None:
    script = tmp_path / "hang.py"
    script.write_text("import time\nprint('📊 Tests: 1', flush=True)\ntime.sleep(30)\n", encoding="utf-8")
    captured = SubprocessSource([sys.executable, str(script)], timeout=1.0).capture()
    assert captured.timed_out
    assert captured.exit_code is None


def test_subprocess_source_turns_alert_lines_into_notices(tmp_path) -> None:
    script = tmp_path / "alert.py"
    script.write_text(
        "import sys\n"
        "print('📊 Tests: 1')\n"
        "print('❌ bad')\n"
        "sys.stdout.flush()\n"
        "print('[alert] ❌ 1 of 1 tests failed. See console for details.', file=sys.stderr)\n",
        encoding="utf-8",
    )
    captured = SubprocessSource([sys.executable, str(script)]).capture()
    assert captured.lines == ["📊 Tests: 1", "❌ bad"]
    assert captured.notices == ["❌ 1 of 1 tests failed. See console for details."]


def test_browser_source_records_console_and_dialogs() -> None:
    dialog = FakeDialog("❌ 1 of 2 tests failed. See console for details.")
    page = FakePage(["📊 Tests: 2", "✅ a", "❌ b"], dialog)
    source = BrowserSource("http://localhost/test.html", timeout=2)
    captured = asyncio.run(source.capture_page(page))
    assert captured.lines == ["📊 Tests: 2", "✅ a", "❌ b"]
    assert captured.notices == [dialog.message]
    assert dialog.dismissed
    assert page.calls[0] == ("goto", "http://localhost/test.html", 2000)
    assert page.calls[1] == ("wait_for_function", "window.__testCompleted === true", 2000)


def test_browser_source_can_wait_full_timeout() -> None:
    page = FakePage(["📊 Tests: 1"])
    source = BrowserSource("http://localhost/", timeout=0.5, wait_for_completion=False)
    asyncio.run(source.capture_page(page))
    assert page.calls[-1] == ("wait_for_timeout", 500)


def test_serve_directory_serves_files(tmp_path) -> None:
    (tmp_path / "index.html").write_text("<p>hi</p>", encoding="utf-8")
    with serve_directory(tmp_path) as base_url:
        with urllib.request.urlopen(f"{base_url}/index.html") as response:
            assert response.read() == b"<p>hi</p>"
