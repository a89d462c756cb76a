"""Assertion helpers raising :class:`AssertionFailure` with diagnostics."""
from __future__ import annotations

import pprint
from typing import Any, Iterable, List, Tuple

from .diff import diff, strict_equal
from .models import MISSING, Difference

__all__ = ["AssertionFailure", "deep_equal", "equal", "ok"]


class AssertionFailure(AssertionError):
    """Raised by the assertion helpers; carries the compared values."""

    def __init__(
        self,
        message: str,
        *,
        actual: Any = MISSING,
        expected: Any = MISSING,
        differences: Iterable[Difference] = (),
    ) -> None:
        super().__init__(message)
        self.message = message
        self.actual = actual
        self.expected = expected
        self.differences: Tuple[Difference, ...] = tuple(differences)

    @property
    def has_values(self) -> bool:
        return self.actual is not MISSING or self.expected is not MISSING

    def describe(self) -> List[str]:
        """Return the diagnostic block printed under a failing test."""

        lines = ["🚨 AssertionError", f"Message: {self.message}"]
        if self.has_values:
            lines.append("Actual:")
            lines.extend(_indent(_format_value(self.actual)))
            lines.append("Expected:")
            lines.extend(_indent(_format_value(self.expected)))
        if self.differences:
            lines.append("Differences:")
            for difference in self.differences:
                lines.append(
                    f"  at {difference.location()}: "
                    f"actual={difference.actual!r} expected={difference.expected!r}"
                )
        return lines


def equal(actual: Any, expected: Any) -> None:
    if not strict_equal(actual, expected):
        raise AssertionFailure(
            f"Expected {expected!r}, but got {actual!r}",
            actual=actual,
            expected=expected,
        )


def deep_equal(actual: Any, expected: Any) -> None:
    differences = list(diff(actual, expected))
    if differences:
        raise AssertionFailure(
            "Values are not deeply equal",
            actual=actual,
            expected=expected,
            differences=differences,
        )


def ok(value: Any, message: str = "Value should be truthy") -> None:
    if not value:
        raise AssertionFailure(message, actual=value, expected=True)


def _format_value(value: Any) -> List[str]:
    return pprint.pformat(value, width=88, sort_dicts=False).splitlines()


def _indent(lines: List[str], prefix: str = "  ") -> List[str]:
    return [prefix + line for line in lines]
