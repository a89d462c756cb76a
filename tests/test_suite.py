from __future__ import annotations

import asyncio

from pagetest.core import assertions
from pagetest.core.sandbox import TemplateNotFoundError


def test_register_test_direct_and_decorator(make_env) -> None:
    env = make_env()
    suite = env.suite
    action = suite.register_test("direct", lambda: None)

    @suite.register_test("decorated")
    def decorated() -> None:
        assertions.ok(True)

    assert callable(action)
    assert callable(decorated)
    assert env.runner.pending == 2
    assert asyncio.run(env.runner.run_pending_tests()) is True
    assert [r.name for r in env.runner.results] == ["direct", "decorated"]


def test_ui_test_receives_attached_fixture(make_env) -> None:
    env = make_env()
    seen = {}

    @env.suite.register_ui_test("card renders", "#card")
    def check(ctx) -> None:
        title = ctx.container.query_selector(".card .title")
        seen["connected"] = env.document.body.contains(ctx.container)
        seen["container"] = ctx.container
        assert ctx.document is env.document
        assertions.equal(title.text_content, "Hello")

    assert asyncio.run(env.runner.run_pending_tests()) is True
    assert seen["connected"] is True
    assert seen["container"].parent is None


def test_ui_tests_get_fresh_fixtures(make_env) -> None:
    env = make_env()
    clicks = []

    async def mutate(ctx) -> None:
        button = ctx.container.query_selector(".go")
        button.add_event_listener("click", lambda event: clicks.append(event.target))
        button.click()
        button.text_content = "clicked"
        await asyncio.sleep(0)

    def check_fresh(ctx) -> None:
        assertions.equal(ctx.container.query_selector(".go").text_content, "go")

    env.suite.register_ui_test("mutates", "#card", mutate)
    env.suite.register_ui_test("sees pristine copy", "#card", check_fresh)
    assert asyncio.run(env.runner.run_pending_tests()) is True
    assert len(clicks) == 1
    assert env.document.query_selector("#card").content.query_selector(".go").text_content == "go"


def test_missing_template_fails_only_that_test(make_env) -> None:
    env = make_env()
    env.suite.register_ui_test("missing", "#nowhere", lambda ctx: None)
    env.suite.register_test("sibling", lambda: None)
    assert asyncio.run(env.runner.run_pending_tests()) is False
    missing, sibling = env.runner.results
    assert not missing.passed
    assert isinstance(missing.error.exception, TemplateNotFoundError)
    assert missing.error.message == "register_ui_test(): Template not found: #nowhere"
    assert sibling.passed
    assert env.document.query_selector("[data-test-sandbox]") is None


def test_failing_ui_test_still_cleans_up(make_env) -> None:
    env = make_env()
    containers = []

    def failing(ctx) -> None:
        containers.append(ctx.container)
        assertions.equal(1, 2)

    env.suite.register_ui_test("fails", "#card", failing)
    asyncio.run(env.runner.run_pending_tests())
    assert env.runner.failed == 1
    assert containers[0].parent is None
