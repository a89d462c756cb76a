"""Drive a hosted environment from a supervisor config and judge its output."""
from __future__ import annotations

import sys
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator

from colorama import init as colorama_init

from .extractor import extract_results
from .reports import write_json_report, write_junit
from .sources import BrowserSource, ConsoleSource, SubprocessSource, serve_directory
from .verdict import Verdict, evaluate, print_verdict

if TYPE_CHECKING:
    from pagetest.config import SupervisorConfig


@contextmanager
def open_source(config: "SupervisorConfig") -> Iterator[ConsoleSource]:
    """Yield the console source for the configured target.

    Pages are served from ``config.root`` for the duration of the block.
    """

    target = config.target
    if target.command:
        yield SubprocessSource(target.command, cwd=config.base_dir, env=config.env, timeout=config.timeout)
        return
    if target.url:
        yield _browser(target.url, config)
        return
    if target.page is None:
        raise ValueError("No target configured")
    try:
        relative = target.page.relative_to(config.root)
    except ValueError as exc:
        raise ValueError(f"Page {target.page} is outside the served root {config.root}") from exc
    with serve_directory(config.root) as base_url:
        yield _browser(f"{base_url}/{relative.as_posix()}", config)


def supervise(config: "SupervisorConfig") -> Verdict:
    """Capture the environment's output and turn it into a verdict.

    Raises :class:`~pagetest.supervisor.verdict.ProtocolError` when the
    output does not carry a usable report.
    """

    with open_source(config) as source:
        captured = source.capture()
    extraction = extract_results(captured.lines)
    return evaluate(extraction, captured, source=source.describe())


def run_supervisor(config: "SupervisorConfig", *, use_color: bool = True) -> int:
    """Supervise once and emit reports; returns process exit code (0 success, 1 failures)."""

    colorama_init()
    verdict = supervise(config)
    if config.report.format == "json":
        destination = write_json_report(verdict, config.report.path or "pagetest_report.json")
        print(f"JSON report written to {destination}")
    else:
        print_verdict(verdict, use_color=use_color)
    if config.junit is not None:
        write_junit(verdict, config.junit)
    sys.stdout.flush()
    return 0 if verdict.ok else 1


def _browser(url: str, config: "SupervisorConfig") -> BrowserSource:
    return BrowserSource(
        url,
        timeout=config.timeout,
        headless=config.headless,
        wait_for_completion=config.wait_for_completion,
    )
