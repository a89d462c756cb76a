"""Host-side pass/fail verdict over extracted records."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from colorama import Fore, Style, init as colorama_init

from .extractor import Extraction, ExtractedTestResult
from .sources import CapturedOutput


class ProtocolError(RuntimeError):
    """No usable signal could be recovered from the captured output."""

    def __init__(self, message: str, captured_text: str = "") -> None:
        super().__init__(message)
        self.captured_text = captured_text

    def __str__(self) -> str:
        base = super().__str__()
        if not self.captured_text:
            return f"{base}\n(captured output was empty)"
        return f"{base}\n--- captured output ---\n{self.captured_text}\n--- end of captured output ---"


@dataclass
class Verdict:
    records: List[ExtractedTestResult]
    failures: List[ExtractedTestResult]
    synthetic: bool = False
    timed_out: bool = False
    warnings: List[str] = field(default_factory=list)
    inconsistencies: List[str] = field(default_factory=list)
    notices: List[str] = field(default_factory=list)
    source: str = ""

    @property
    def total(self) -> int:
        return len(self.records)

    @property
    def passed(self) -> int:
        return self.total - self.failed

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def ok(self) -> bool:
        return bool(self.records) and self.failed == 0 and not self.inconsistencies

    def failure_messages(self) -> List[str]:
        return [_failure_message(record) for record in self.failures]


def evaluate(extraction: Extraction, captured: Optional[CapturedOutput] = None, *, source: str = "") -> Verdict:
    """Check the extraction and build the verdict.

    Raises :class:`ProtocolError` when nothing was extracted or the header is
    missing or malformed, since then "no tests" and "broken
    instrumentation" cannot be told apart.
    """

    text = captured.text if captured is not None else ""
    if extraction.malformed_headers:
        raise ProtocolError(
            f"Malformed summary header: {extraction.malformed_headers[0]!r}", text
        )
    if extraction.total is None:
        raise ProtocolError("No summary header found in the captured output", text)
    if not extraction.records:
        raise ProtocolError("No test results were captured from the hosted environment", text)
    warnings = list(extraction.warnings)
    timed_out = bool(captured and captured.timed_out)
    if timed_out:
        warnings.append("Capture ended on the wall-clock timeout")
    return Verdict(
        records=list(extraction.records),
        failures=[record for record in extraction.records if not record.passed],
        synthetic=extraction.synthetic,
        timed_out=timed_out,
        warnings=warnings,
        inconsistencies=find_inconsistencies(extraction),
        notices=list(captured.notices) if captured is not None else [],
        source=source,
    )


def find_inconsistencies(extraction: Extraction) -> List[str]:
    """Compare the records against the counts the report announced.

    Any disagreement means result lines were lost or misread, so the
    verdict cannot pass.
    """

    problems: List[str] = []
    captured = len(extraction.records)
    if extraction.total is not None and captured != extraction.total:
        problems.append(f"Header reported {extraction.total} test(s) but {captured} result line(s) were captured")
    if extraction.reported_passed is not None and extraction.reported_passed != extraction.passed:
        problems.append(
            f"Summary reported {extraction.reported_passed} passed but {extraction.passed} passing result(s) were captured"
        )
    if extraction.reported_failed is not None and extraction.reported_failed != extraction.failed:
        problems.append(
            f"Summary reported {extraction.reported_failed} failed but {extraction.failed} failing result(s) were captured"
        )
    if extraction.tests_failed_reported and not extraction.failed:
        problems.append("Report ended with \"Tests failed\" but no failing result was captured")
    return problems


def print_verdict(verdict: Verdict, *, use_color: bool = True) -> None:
    colorama_init()
    for record in verdict.records:
        label, color = _format_status(record.status, use_color=use_color)
        reset = Style.RESET_ALL if use_color else ""
        print(f"{color}{label:<6}{reset} {record.name}")
        if not record.passed:
            print(f"    error: {record.error or 'Unknown error'}")
            for line in record.details:
                print(f"    {line}")
    for notice in verdict.notices:
        print(f"notice: {notice}")
    for warning in verdict.warnings:
        print(f"warning: {warning}")
    for problem in verdict.inconsistencies:
        print(f"inconsistent report: {problem}")
    _print_summary(verdict, use_color=use_color)


def _print_summary(verdict: Verdict, *, use_color: bool) -> None:
    summary_color = ""
    if use_color:
        summary_color = Fore.GREEN if verdict.ok else Fore.RED
    reset = Style.RESET_ALL if use_color else ""
    print(
        f"{summary_color}Summary{reset}: total={verdict.total} "
        f"passed={verdict.passed} failed={verdict.failed}"
    )
    if verdict.failed:
        print(f"{verdict.failed} hosted test(s) failed: " + ", ".join(r.name for r in verdict.failures))


def _format_status(status: str, *, use_color: bool) -> tuple[str, str]:
    label = {"passed": "PASS", "failed": "FAIL"}.get(status, status.upper())
    if not use_color:
        return label, ""
    return label, Fore.GREEN if status == "passed" else Fore.RED


def _failure_message(record: ExtractedTestResult) -> str:
    lines = [f"Hosted test failed: {record.name}", f"Error: {record.error or 'Unknown error'}"]
    lines.extend(f"  {line}" for line in record.details)
    return "\n".join(lines)

