"""Deliberately failing tests that show the diagnostic block and the alert."""
from pagetest.core import assertions


def register(suite):
    @suite.register_test("nested lists differ")
    def _():
        assertions.deep_equal({"a": [1, {"b": "c"}]}, {"a": [1, {"b": "d"}]})

    @suite.register_test("still passes")
    def _():
        assertions.ok([1])

    @suite.register_ui_test("missing template", "#does-not-exist")
    def _(ctx):
        pass
