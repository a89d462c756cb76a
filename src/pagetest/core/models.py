"""Core dataclasses shared across pagetest subsystems."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Tuple, Union

PathSegment = Union[str, int]  # mapping key, attribute name or sequence index
TestAction = Callable[[], Union[Any, Awaitable[Any]]]


class _Missing:
    """Marker for a key absent from one side of a comparison."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "<missing>"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


@dataclass(frozen=True)
class TestCase:
    """A registered test: a name and the action executed for it."""

    __test__ = False  # keep pytest from collecting this class

    name: str
    action: TestAction


@dataclass(frozen=True)
class Difference:
    """A leaf-level mismatch found by the structural comparison."""

    path: Tuple[PathSegment, ...]
    actual: Any
    expected: Any

    def location(self) -> str:
        if not self.path:
            return "<root>"
        return "".join(f"[{segment!r}]" for segment in self.path)
