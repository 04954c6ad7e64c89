"""Report objects handed from the tracker to reporters."""

from __future__ import annotations

from dataclasses import dataclass, field

from testlens.tracking.models import UNKNOWN_FILE, RunStats, TestRecord


@dataclass(frozen=True)
class FileHeader:
    path: str | None
    passed: int
    total: int

    @property
    def display_path(self) -> str:
        return self.path or UNKNOWN_FILE


@dataclass(frozen=True)
class TestLine:
    """A test to print, either finished or still running."""

    __test__ = False  # Prevent pytest from collecting this as a test class

    record: TestRecord
    is_running: bool
    running_elapsed_ms: float | None = None
    suspicious: bool = False


@dataclass(frozen=True)
class IncompleteReport:
    """Tests that started but never finished, ascending by start time."""

    records: tuple[TestRecord, ...]
    elapsed_ms: tuple[float, ...]

    def __post_init__(self) -> None:
        if len(self.records) != len(self.elapsed_ms):
            raise ValueError("records and elapsed_ms must have the same length")

    def __len__(self) -> int:
        return len(self.records)

    def __bool__(self) -> bool:
        return bool(self.records)

    @property
    def culprit(self) -> TestRecord | None:
        """The record to flag as most likely blocking: the last one."""
        return self.records[-1] if self.records else None

    def items(self) -> list[tuple[TestRecord, float]]:
        return list(zip(self.records, self.elapsed_ms))


@dataclass(frozen=True)
class SummaryReport:
    stats: RunStats
    failed_tests: list[TestRecord] = field(default_factory=list)
    slow_tests: list[TestRecord] = field(default_factory=list)
    # Breadcrumbs keyed by record sequence, root to leaf
    full_names: dict[int, list[str]] = field(default_factory=dict)

    def full_name(self, record: TestRecord) -> list[str]:
        return self.full_names.get(record.sequence, [record.name])
