"""Rebuild per-test records from captured console lines."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

import click

from pagetest.reporting.protocol import LineKind, classify

STATUS_PASSED = "passed"
STATUS_FAILED = "failed"
GENERIC_ERROR = "Test assertion failed"
SYNTHETIC_NAME = "Test {index}"


@dataclass
class ExtractedTestResult:
    name: str
    status: str
    error: Optional[str] = None
    details: Tuple[str, ...] = ()

    @property
    def passed(self) -> bool:
        return self.status == STATUS_PASSED


@dataclass
class Extraction:
    """Everything recovered from one capture."""

    records: List[ExtractedTestResult] = field(default_factory=list)
    total: Optional[int] = None
    reported_passed: Optional[int] = None
    reported_failed: Optional[int] = None
    all_passed_reported: bool = False
    tests_failed_reported: bool = False
    synthetic: bool = False
    malformed_headers: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def passed(self) -> int:
        return sum(1 for record in self.records if record.passed)

    @property
    def failed(self) -> int:
        return sum(1 for record in self.records if not record.passed)


def split_lines(messages: Iterable[str]) -> List[str]:
    """Flatten console messages into unstyled single lines."""

    lines: List[str] = []
    for message in messages:
        for line in click.unstyle(str(message)).splitlines():
            lines.append(line)
    return lines


def extract_results(messages: Iterable[str]) -> Extraction:
    """Scan the captured lines once and rebuild the per-test records.

    When no per-test line survived but a header reported a count, generic
    ``Test {i}`` records are synthesised from the counts instead and the
    extraction is flagged as synthetic.
    """

    extraction = Extraction()
    details: List[str] = []
    current: Optional[ExtractedTestResult] = None

    def flush() -> None:
        nonlocal current
        if current is not None and details:
            current.details = tuple(details)
        details.clear()
        current = None

    for line in split_lines(messages):
        parsed = classify(line)
        kind = parsed.kind
        if kind is LineKind.DETAIL:
            if current is not None:
                details.append(parsed.value or "")
            continue
        if kind is not LineKind.OTHER or line.strip():
            flush()
        if kind is LineKind.HEADER:
            extraction.total = (extraction.total or 0) + (parsed.count or 0)
        elif kind is LineKind.MALFORMED_HEADER:
            extraction.malformed_headers.append(line)
        elif kind is LineKind.PASSED:
            extraction.records.append(ExtractedTestResult(name=parsed.value or "", status=STATUS_PASSED))
        elif kind is LineKind.FAILED:
            current = ExtractedTestResult(name=parsed.value or "", status=STATUS_FAILED, error=GENERIC_ERROR)
            extraction.records.append(current)
        elif kind is LineKind.PASSED_COUNT:
            extraction.reported_passed = (extraction.reported_passed or 0) + (parsed.count or 0)
        elif kind is LineKind.FAILED_COUNT:
            extraction.reported_failed = (extraction.reported_failed or 0) + (parsed.count or 0)
        elif kind is LineKind.ALL_PASSED:
            extraction.all_passed_reported = True
        elif kind is LineKind.TESTS_FAILED:
            extraction.tests_failed_reported = True
    flush()

    if not extraction.records and extraction.total:
        _synthesise(extraction)
    return extraction


def _synthesise(extraction: Extraction) -> None:
    total = extraction.total or 0
    passed = extraction.reported_passed or 0
    for index in range(1, total + 1):
        ok = index <= passed
        extraction.records.append(
            ExtractedTestResult(
                name=SYNTHETIC_NAME.format(index=index),
                status=STATUS_PASSED if ok else STATUS_FAILED,
                error=None if ok else GENERIC_ERROR,
            )
        )
    extraction.synthetic = True
    extraction.warnings.append(
        f"No per-test lines captured; synthesised {total} generic record(s) from the summary"
    )
