"""Supervisor side: capture a hosted environment's output and judge it."""
from .extractor import ExtractedTestResult, Extraction, extract_results
from .harness import open_source, run_supervisor, supervise
from .reports import build_json_report, build_junit, write_json_report, write_junit
from .sources import BrowserSource, CapturedOutput, SubprocessSource, serve_directory
from .verdict import ProtocolError, Verdict, evaluate, print_verdict

__all__ = [
    "BrowserSource",
    "CapturedOutput",
    "ExtractedTestResult",
    "Extraction",
    "ProtocolError",
    "SubprocessSource",
    "Verdict",
    "build_json_report",
    "build_junit",
    "evaluate",
    "extract_results",
    "open_source",
    "print_verdict",
    "run_supervisor",
    "serve_directory",
    "supervise",
    "write_json_report",
    "write_junit",
]
