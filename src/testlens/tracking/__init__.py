"""In-memory tracking of test lifecycle state for one run."""

from .analysis import RunAnalyzer
from .hierarchy import HierarchyResolver
from .models import (
    UNKNOWN_FILE,
    FileGroup,
    RunStatistics,
    RunStats,
    TestError,
    TestKey,
    TestRecord,
    TestState,
    monotonic_ms,
)
from .store import TestRecordStore


__all__ = [
    "UNKNOWN_FILE",
    "FileGroup",
    "HierarchyResolver",
    "RunAnalyzer",
    "RunStatistics",
    "RunStats",
    "TestError",
    "TestKey",
    "TestRecord",
    "TestRecordStore",
    "TestState",
    "monotonic_ms",
]
