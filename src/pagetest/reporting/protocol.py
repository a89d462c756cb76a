"""Line vocabulary of the console reporting protocol.

The hosted environment prints these lines and the supervisor parses them
back, so both sides build and classify lines through this module only.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

HEADER_LABEL = "📊 Tests:"
PASS_MARKER = "✅ "
FAIL_MARKER = "❌ "
ALL_PASSED_LINE = "✅ All tests passed"
TESTS_FAILED_LINE = "❌ Tests failed"
RUNNING_LINE = "Running tests..."
DETAIL_INDENT = "  "
ALERT_PREFIX = "[alert]"
NAME_QUOTE = '"'

_HEADER_RE = re.compile(r"^📊 Tests: (\d+)\s*$")
_PASSED_COUNT_RE = re.compile(r"^✅ Passed: (\d+)\s*$")
_FAILED_COUNT_RE = re.compile(r"^❌ Failed: (\d+)\s*$")
_DURATION_RE = re.compile(r"^⏱️? ?Duration: ([0-9.]+)s\s*$")


class LineKind(str, Enum):
    HEADER = "header"
    MALFORMED_HEADER = "malformed-header"
    PASSED = "passed"
    FAILED = "failed"
    PASSED_COUNT = "passed-count"
    FAILED_COUNT = "failed-count"
    DURATION = "duration"
    ALL_PASSED = "all-passed"
    TESTS_FAILED = "tests-failed"
    DETAIL = "detail"
    OTHER = "other"


SUMMARY_KINDS = frozenset(
    {
        LineKind.HEADER,
        LineKind.MALFORMED_HEADER,
        LineKind.PASSED_COUNT,
        LineKind.FAILED_COUNT,
        LineKind.DURATION,
        LineKind.ALL_PASSED,
        LineKind.TESTS_FAILED,
    }
)


@dataclass(frozen=True)
class ParsedLine:
    kind: LineKind
    text: str
    value: Optional[str] = None

    @property
    def count(self) -> Optional[int]:
        if self.value is None or not self.value.isdigit():
            return None
        return int(self.value)


def header_line(total: int) -> str:
    return f"{HEADER_LABEL} {total}"


def pass_line(name: str) -> str:
    return PASS_MARKER + _case_name(name, PASS_MARKER)


def fail_line(name: str) -> str:
    return FAIL_MARKER + _case_name(name, FAIL_MARKER)


def passed_count_line(passed: int) -> str:
    return f"✅ Passed: {passed}"


def failed_count_line(failed: int) -> str:
    return f"❌ Failed: {failed}"


def duration_line(duration_s: float) -> str:
    return f"⏱️ Duration: {duration_s:.3f}s"


def detail_line(text: str) -> str:
    return "\n".join(DETAIL_INDENT + part for part in str(text).split("\n"))


def alert_line(message: str) -> str:
    return f"{ALERT_PREFIX} {message}"


def parse_alert(line: str) -> Optional[str]:
    """Return the notice carried by an alert line, else ``None``."""

    if not line.startswith(ALERT_PREFIX):
        return None
    return line[len(ALERT_PREFIX):].strip()


def classify(line: str) -> ParsedLine:
    """Classify one unstyled line.

    Indented lines are always failure details, whatever they contain.
    Summary lines are recognised before per-case lines: they share the
    pass/fail markers, and case lines whose names would read as summary
    wording are emitted quoted by :func:`pass_line` / :func:`fail_line`.
    """

    text = line.rstrip("\r\n")
    if text[:1].isspace():
        if not text.strip():
            return ParsedLine(LineKind.OTHER, text)
        body = text[len(DETAIL_INDENT):] if text.startswith(DETAIL_INDENT) else text.lstrip()
        return ParsedLine(LineKind.DETAIL, text, body.rstrip())
    summary = _classify_summary(text)
    if summary is not None:
        return summary
    if text.startswith(PASS_MARKER):
        return ParsedLine(LineKind.PASSED, text, _parse_name(text[len(PASS_MARKER):]))
    if text.startswith(FAIL_MARKER):
        return ParsedLine(LineKind.FAILED, text, _parse_name(text[len(FAIL_MARKER):]))
    return ParsedLine(LineKind.OTHER, text)


def _classify_summary(text: str) -> Optional[ParsedLine]:
    if text.startswith(HEADER_LABEL):
        match = _HEADER_RE.match(text)
        if match:
            return ParsedLine(LineKind.HEADER, text, match.group(1))
        return ParsedLine(LineKind.MALFORMED_HEADER, text)
    for pattern, kind in (
        (_PASSED_COUNT_RE, LineKind.PASSED_COUNT),
        (_FAILED_COUNT_RE, LineKind.FAILED_COUNT),
        (_DURATION_RE, LineKind.DURATION),
    ):
        match = pattern.match(text)
        if match:
            return ParsedLine(kind, text, match.group(1))
    trimmed = text.rstrip()
    if trimmed == ALL_PASSED_LINE:
        return ParsedLine(LineKind.ALL_PASSED, text)
    if trimmed == TESTS_FAILED_LINE:
        return ParsedLine(LineKind.TESTS_FAILED, text)
    return None


def _case_name(name: str, marker: str) -> str:
    # Quoted names are JSON strings; a name is quoted when it would
    # otherwise read as summary wording or already starts with a quote.
    flat = " ".join(str(name).split("\n")).strip()
    if flat.startswith(NAME_QUOTE) or _classify_summary(marker + flat) is not None:
        return json.dumps(flat, ensure_ascii=False)
    return flat


def _parse_name(raw: str) -> str:
    name = raw.strip()
    if len(name) >= 2 and name.startswith(NAME_QUOTE) and name.endswith(NAME_QUOTE):
        try:
            decoded = json.loads(name)
        except ValueError:
            return name
        if isinstance(decoded, str):
            return decoded
    return name
