"""Console reporter emitting the line protocol."""
from __future__ import annotations

from typing import TYPE_CHECKING, List, Sequence, Tuple

from pagetest.host.console import Console

from . import protocol
from .base import Reporter

if TYPE_CHECKING:  # pragma: no cover
    from pagetest.core.results import RunResult, RunSummary

INFO = "info"
ERROR = "error"
LOG = "log"

ReportLine = Tuple[str, str]  # (console level, text)


def render_report(results: Sequence[RunResult], summary: RunSummary) -> List[ReportLine]:
    """Return the report as ``(level, text)`` pairs in emission order."""

    lines: List[ReportLine] = [(INFO, ""), (INFO, protocol.header_line(summary.total))]
    for result in results:
        if result.passed:
            lines.append((INFO, protocol.pass_line(result.name)))
            continue
        lines.append((ERROR, protocol.fail_line(result.name)))
        if result.error is not None:
            for text in result.error.describe():
                lines.append((ERROR, protocol.detail_line(text)))
    lines.append((LOG, ""))
    lines.append((LOG, protocol.passed_count_line(summary.passed)))
    if summary.failed:
        lines.append((LOG, protocol.failed_count_line(summary.failed)))
    lines.append((LOG, protocol.duration_line(summary.duration_s)))
    lines.append((LOG, ""))
    if summary.failed:
        lines.append((LOG, protocol.TESTS_FAILED_LINE))
    else:
        lines.append((LOG, protocol.ALL_PASSED_LINE))
    return lines


class ConsoleReporter(Reporter):
    """Writes the run report to the hosted environment's console.

    Per-case lines are held back until the run completes so the header,
    case lines and summary always appear as one contiguous block.
    """

    def __init__(self, console: Console) -> None:
        self._console = console

    def on_start(self, total: int) -> None:
        self._console.log(protocol.RUNNING_LINE)

    def on_case_result(self, result: RunResult, index: int, total: int) -> None:
        return

    def on_complete(self, results: Sequence[RunResult], summary: RunSummary) -> None:
        for level, text in render_report(results, summary):
            emit = getattr(self._console, level)
            emit(self._styled(text, level))

    def _styled(self, text: str, level: str) -> str:
        if not text or not self._console.use_color:
            return text
        if text.startswith(protocol.HEADER_LABEL) or text.startswith("⏱"):
            return self._console.style(text, fg="cyan")
        if text.startswith(protocol.PASS_MARKER):
            return self._console.style(text, fg="green")
        if text.startswith(protocol.FAIL_MARKER):
            return self._console.style(text, fg="red")
        return text
