"""Reporting module - console and JSON output."""

from .console_reporter import ConsoleReporter, format_result_line
from .json_reporter import JsonReporter

__all__ = [
    "ConsoleReporter",
    "JsonReporter",
    "format_result_line",
]
