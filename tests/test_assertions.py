from __future__ import annotations

import pytest

from pagetest.core import assertions
from pagetest.core.assertions import AssertionFailure
from pagetest.core.models import Difference


def test_equal_passes_on_strictly_equal_values() -> None:
    assertions.equal(1 + 1, 2)
    assertions.equal("a", "a")


def test_equal_failure_carries_values() -> None:
    with pytest.raises(AssertionFailure) as exc:
        assertions.equal(1, 2)
    assert exc.value.message == "Expected 2, but got 1"
    assert exc.value.actual == 1
    assert exc.value.expected == 2
    assert exc.value.differences == ()


def test_equal_does_not_coerce() -> None:
    with pytest.raises(AssertionFailure):
        assertions.equal("1", 1)
    with pytest.raises(AssertionFailure):
        assertions.equal([1], [1])


def test_deep_equal_reports_every_difference() -> None:
    with pytest.raises(AssertionFailure) as exc:
        assertions.deep_equal({"a": 1, "b": {"c": 2}}, {"a": 1, "b": {"c": 3}})
    assert exc.value.message == "Values are not deeply equal"
    assert exc.value.differences == (Difference(path=("b", "c"), actual=2, expected=3),)


def test_deep_equal_accepts_equal_structures() -> None:
    assertions.deep_equal({"a": [1, {"b": None}]}, {"a": [1, {"b": None}]})


def test_ok_uses_default_and_custom_messages() -> None:
    assertions.ok("non-empty")
    with pytest.raises(AssertionFailure) as exc:
        assertions.ok(0)
    assert exc.value.message == "Value should be truthy"
    with pytest.raises(AssertionFailure) as exc:
        assertions.ok([], "list must not be empty")
    assert exc.value.message == "list must not be empty"


def test_assertion_failure_is_an_assertion_error() -> None:
    assert issubclass(AssertionFailure, AssertionError)


def test_describe_renders_diagnostic_block() -> None:
    with pytest.raises(AssertionFailure) as exc:
        assertions.deep_equal({"b": {"c": 2}}, {"b": {"c": 3}})
    lines = exc.value.describe()
    assert lines[0] == "🚨 AssertionError"
    assert lines[1] == "Message: Values are not deeply equal"
    assert "Actual:" in lines
    assert "Expected:" in lines
    assert "  at ['b']['c']: actual=2 expected=3" in lines


def test_describe_without_values_omits_value_sections() -> None:
    lines = AssertionFailure("plain").describe()
    assert lines == ["🚨 AssertionError", "Message: plain"]
