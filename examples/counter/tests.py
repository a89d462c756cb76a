"""Tests for the counter page; run with ``pagetest host page.html tests.py``."""
from pagetest.core import assertions


def mount_counter(root):
    value = root.query_selector(".value")

    def increment(event):
        value.text_content = int(value.text_content) + 1

    def reset(event):
        value.text_content = 0

    root.query_selector(".increment").add_event_listener("click", increment)
    root.query_selector(".reset").add_event_listener("click", reset)
    return value


def register(suite):
    @suite.register_test("arithmetic still works")
    def _():
        assertions.equal(2 + 2, 4)

    @suite.register_test("settings merge keeps nested defaults")
    def _():
        defaults = {"theme": {"mode": "light", "contrast": "normal"}, "tabs": ["home"]}
        merged = {**defaults, "tabs": ["home", "help"]}
        assertions.deep_equal(merged["theme"], {"mode": "light", "contrast": "normal"})

    @suite.register_ui_test("counter increments on click", "#counter")
    def _(ctx):
        value = mount_counter(ctx.container)
        ctx.container.query_selector(".increment").click()
        ctx.container.query_selector(".increment").click()
        assertions.equal(value.text_content, "2")

    @suite.register_ui_test("counter resets", "#counter")
    async def _(ctx):
        value = mount_counter(ctx.container)
        ctx.container.query_selector(".increment").click()
        ctx.container.query_selector(".reset").click()
        assertions.equal(value.text_content, "0")

    @suite.register_ui_test("greeting names the visitor", "#greeting")
    def _(ctx):
        name = ctx.container.query_selector(".greeting .name")
        assertions.ok(name is not None, "greeting has a name slot")
        assertions.equal(name.text_content, "world")
