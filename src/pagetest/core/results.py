"""Result data structures produced by the test runner."""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, Tuple

from .assertions import AssertionFailure
from .models import Difference

FAILURE_ASSERTION = "assertion"
FAILURE_ERROR = "error"


@dataclass(frozen=True)
class Failure:
    """Why a test did not pass.

    ``kind`` is ``"assertion"`` for failures raised by the assertion helpers
    (which carry actual/expected values and differences) and ``"error"`` for
    any other exception escaping a test body.
    """

    kind: str
    message: str
    actual: Any = None
    expected: Any = None
    differences: Tuple[Difference, ...] = field(default_factory=tuple)
    exception: Optional[BaseException] = field(default=None, compare=False, repr=False)

    @classmethod
    def from_exception(cls, exc: BaseException) -> "Failure":
        if isinstance(exc, AssertionFailure):
            return cls(
                kind=FAILURE_ASSERTION,
                message=exc.message,
                actual=exc.actual,
                expected=exc.expected,
                differences=exc.differences,
                exception=exc,
            )
        message = str(exc) or type(exc).__name__
        return cls(kind=FAILURE_ERROR, message=message, exception=exc)

    @property
    def is_assertion(self) -> bool:
        return self.kind == FAILURE_ASSERTION

    def describe(self) -> list[str]:
        if isinstance(self.exception, AssertionFailure):
            return self.exception.describe()
        if self.exception is not None:
            return [f"{type(self.exception).__name__}: {self.message}"]
        return [self.message]


@dataclass(frozen=True)
class RunResult:
    """Outcome of executing a single test case."""

    name: str
    passed: bool
    error: Optional[Failure] = None
    duration_s: float = 0.0


@dataclass(frozen=True)
class RunSummary:
    """Aggregate counters for one run, derived from its results."""

    total: int
    passed: int
    failed: int
    duration_s: float

    @classmethod
    def from_results(
        cls,
        results: Sequence[RunResult],
        started_at: float,
        *,
        now: Optional[float] = None,
    ) -> "RunSummary":
        finished = time.perf_counter() if now is None else now
        passed = sum(1 for result in results if result.passed)
        return cls(
            total=len(results),
            passed=passed,
            failed=len(results) - passed,
            duration_s=max(finished - started_at, 0.0),
        )

    @property
    def all_passed(self) -> bool:
        return self.failed == 0
