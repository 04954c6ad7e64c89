"""testlens - stuck-test diagnosis for streams of test lifecycle events."""

from .config import ReporterSettings, load_settings
from .events import EventIngestor, EventType, TestEvent, iter_event_lines
from .reporter import TestReporter
from .reports import ConsoleReporter, IncompleteReport, Reporter, SummaryReport
from .shutdown import ShutdownHook
from .tracking import RunAnalyzer, TestKey, TestRecord, TestRecordStore, TestState
from .version import __version__


__all__ = [
    # Tracking
    "RunAnalyzer",
    "TestKey",
    "TestRecord",
    "TestRecordStore",
    "TestState",
    # Events
    "EventIngestor",
    "EventType",
    "TestEvent",
    "iter_event_lines",
    # Reporting
    "ConsoleReporter",
    "IncompleteReport",
    "Reporter",
    "ShutdownHook",
    "SummaryReport",
    "TestReporter",
    # Configuration
    "ReporterSettings",
    "load_settings",
    "__version__",
]
