"""Reporting exports."""
from .base import ReportManager, Reporter
from .console import ConsoleReporter, render_report

__all__ = [
    "ConsoleReporter",
    "ReportManager",
    "Reporter",
    "render_report",
]
