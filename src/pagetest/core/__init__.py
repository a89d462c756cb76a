"""Core runner, assertions and result model."""
from . import assertions
from .assertions import AssertionFailure
from .diff import diff
from .models import MISSING, Difference, TestCase
from .results import Failure, RunResult, RunSummary
from .runner import RunnerState, TestRunner
from .sandbox import (
    FixtureError,
    TemplateCloneError,
    TemplateNotFoundError,
    UiContext,
    with_sandbox,
)
from .suite import TestSuite

__all__ = [
    "AssertionFailure",
    "Difference",
    "Failure",
    "FixtureError",
    "MISSING",
    "RunResult",
    "RunSummary",
    "RunnerState",
    "TemplateCloneError",
    "TemplateNotFoundError",
    "TestCase",
    "TestRunner",
    "TestSuite",
    "UiContext",
    "assertions",
    "diff",
    "with_sandbox",
]
