from testlens.reports.base import Reporter
from testlens.reports.console import ConsoleReporter
from testlens.reports.models import FileHeader, IncompleteReport, SummaryReport, TestLine

__all__ = [
    "ConsoleReporter",
    "FileHeader",
    "IncompleteReport",
    "Reporter",
    "SummaryReport",
    "TestLine",
]
