"""Tracking models for test lifecycle state."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple


UNKNOWN_FILE = "unknown"

# "at fn (path:line:col)" and "File "path", line N" frames
_JS_FRAME = re.compile(r"at .*?\(?([^\s()]+):(\d+):(\d+)\)?$")
_PY_FRAME = re.compile(r'File "([^"]+)", line (\d+)')
_THIRD_PARTY_MARKERS = ("node_modules", "site-packages", "node:internal")


def monotonic_ms() -> float:
    """Monotonic clock in milliseconds."""
    return time.monotonic() * 1000


class TestState(Enum):
    """Lifecycle state of a tracked test."""

    __test__ = False  # Prevent pytest from collecting this as a test class

    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"

    @property
    def is_terminal(self) -> bool:
        """Check if no further transition is allowed from this state."""
        return self is not TestState.RUNNING


class TestKey(NamedTuple):
    """Identity of a logical test: (file, nesting, name)."""

    __test__ = False  # Prevent pytest from collecting this as a test class

    file: str | None
    nesting: int
    name: str

    @property
    def id(self) -> str:
        return f"{self.file or UNKNOWN_FILE}::{self.nesting}::{self.name}"


@dataclass(frozen=True)
class TestError:
    """Error reported for a failed test."""

    __test__ = False  # Prevent pytest from collecting this as a test class

    message: str
    stack: str | None = None

    @property
    def location(self) -> tuple[str, int] | None:
        """First project frame in the stack as (file, line), if any."""
        if not self.stack:
            return None
        for line in self.stack.splitlines():
            line = line.strip()
            if any(marker in line for marker in _THIRD_PARTY_MARKERS):
                continue
            match = _PY_FRAME.search(line) or _JS_FRAME.search(line)
            if match:
                return match.group(1), int(match.group(2))
        return None

    @property
    def line(self) -> int | None:
        location = self.location
        return location[1] if location else None


@dataclass
class TestRecord:
    """One execution attempt of a test.

    ``parent_id`` and ``parent_sequence`` refer to the enclosing record by
    id and by position in the store. Ids can repeat across records, so lookups
    go through the sequence; the store owns every record.
    """

    __test__ = False  # Prevent pytest from collecting this as a test class

    id: str
    name: str
    file: str | None
    nesting: int
    start_time: float
    sequence: int
    parent_id: str | None = None
    parent_sequence: int | None = None
    state: TestState = TestState.RUNNING
    duration_ms: float | None = None
    end_time: float | None = None
    error: TestError | None = None

    @property
    def key(self) -> TestKey:
        return TestKey(self.file, self.nesting, self.name)

    @property
    def is_running(self) -> bool:
        return self.state is TestState.RUNNING

    @property
    def is_complete(self) -> bool:
        return self.state.is_terminal

    @property
    def passed(self) -> bool:
        return self.state is TestState.PASSED


@dataclass
class FileGroup:
    """Records sharing a source file, in first-seen order."""

    path: str | None
    tests: list[TestRecord] = field(default_factory=list)
    completed: int = 0
    failed: int = 0
    skipped: int = 0

    @property
    def display_path(self) -> str:
        return self.path or UNKNOWN_FILE

    @property
    def total(self) -> int:
        return len(self.tests)

    @property
    def passed(self) -> int:
        return self.completed - self.failed - self.skipped

    @property
    def is_done(self) -> bool:
        """All tests seen so far in this file have completed."""
        return self.total > 0 and self.completed == self.total


@dataclass
class RunStatistics:
    """Process-wide counters, updated only through the store's write path."""

    start_time: float
    total_files: int = 0
    total_tests: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0


@dataclass(frozen=True)
class RunStats:
    """Immutable snapshot of run statistics."""

    total_files: int
    completed_files: int
    total_tests: int
    passed: int
    failed: int
    skipped: int
    incomplete: int
    start_time: float
    total_duration_ms: float

    @property
    def completed(self) -> int:
        return self.passed + self.failed + self.skipped

    @property
    def success(self) -> bool:
        return self.failed == 0 and self.incomplete == 0
