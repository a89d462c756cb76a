from __future__ import annotations

import asyncio
import textwrap

import pytest

from pagetest.core import assertions
from pagetest.host.environment import HostEnvironment
from pagetest.reporting import protocol


def _levels(console_lines, level):
    return [text for lvl, text in console_lines if lvl == level]


def test_open_runs_registered_tests_and_reports(make_env, console_lines) -> None:
    env = make_env()
    env.suite.register_test("a+b", lambda: assertions.equal(1 + 1, 2))
    env.suite.register_test("bad", lambda: assertions.equal(1, 2))
    asyncio.run(env.open())

    texts = [text for _, text in console_lines]
    assert texts[0] == protocol.RUNNING_LINE
    assert "📊 Tests: 2" in texts
    assert texts.index("✅ a+b") < texts.index("❌ bad") < texts.index("✅ Passed: 1")
    assert "❌ Failed: 1" in texts
    assert texts[-1] == protocol.TESTS_FAILED_LINE
    assert "  🚨 AssertionError" in _levels(console_lines, "error")
    assert env.notices == ["❌ 1 of 2 tests failed. See console for details."]
    assert env.test_completed


def test_registration_after_content_loaded_runs_in_follow_up(make_env, console_lines) -> None:
    env = make_env()
    env.suite.register_test("first", lambda: None)

    def register_late(event) -> None:
        env.suite.register_test("late", lambda: None)

    env.add_event_listener("load", register_late)
    asyncio.run(env.open())
    headers = [text for _, text in console_lines if text.startswith(protocol.HEADER_LABEL)]
    assert env.runner.run_count in (1, 2)
    assert sum(int(h.split()[-1]) for h in headers) == 2
    assert env.runner.pending == 0


def test_main_exit_codes(make_env) -> None:
    passing = make_env()
    passing.suite.register_test("ok", lambda: None)
    assert passing.main() == 0

    failing = make_env()
    failing.suite.register_test("nope", lambda: assertions.ok(False))
    assert failing.main() == 1


def test_main_fails_when_an_earlier_run_failed(make_env) -> None:
    env = make_env()
    env.suite.register_test("nope", lambda: assertions.ok(False))

    def register_late(event) -> None:
        env.suite.register_test("late", lambda: None)

    env.add_event_listener("load", register_late)
    assert env.main() == 1
    assert env.runner.any_failed


def test_main_without_tests_is_an_error(make_env, console_lines) -> None:
    env = make_env()
    assert env.main() == 1
    assert ("error", "No tests were registered") in console_lines


def test_default_alert_is_prefixed_on_stderr(console, capsys) -> None:
    env = HostEnvironment(console=console)
    env.alert("❌ 1 of 1 tests failed. See console for details.")
    captured = capsys.readouterr()
    assert captured.err.startswith(f"{protocol.ALERT_PREFIX} ❌ 1 of 1")
    assert env.notices == ["❌ 1 of 1 tests failed. See console for details."]


def test_load_test_module_calls_register(make_env, tmp_path) -> None:
    test_file = tmp_path / "page_tests.py"
    test_file.write_text(
        textwrap.dedent(
            """
            from pagetest.core import assertions

            def register(suite):
                suite.register_test("from file", lambda: assertions.ok(True))
            """
        ),
        encoding="utf-8",
    )
    env = make_env()
    env.load_test_module(test_file)
    assert env.runner.pending == 1
    assert env.main() == 0


def test_load_test_module_without_hook(make_env, tmp_path) -> None:
    test_file = tmp_path / "no_hook.py"
    test_file.write_text("VALUE = 1\n", encoding="utf-8")
    with pytest.raises(AttributeError):
        make_env().load_test_module(test_file)


def test_from_file_parses_page(tmp_path, console) -> None:
    page = tmp_path / "page.html"
    page.write_text('<body><template id="t"><i>x</i></template></body>', encoding="utf-8")
    env = HostEnvironment.from_file(page, console=console)
    assert env.document.query_selector("#t") is not None
    assert env.document.url.startswith("file://")
