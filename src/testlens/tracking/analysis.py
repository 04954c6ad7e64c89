"""Read-only analysis over a TestRecordStore.

Nothing here mutates the store or performs I/O, so every query is safe to run
from a signal or exit handler.
"""

from __future__ import annotations

from testlens.tracking.models import RunStats, TestRecord, TestState
from testlens.tracking.store import TestRecordStore


class RunAnalyzer:
    """Incomplete-test detection, failure listing and duration ranking."""

    def __init__(self, store: TestRecordStore) -> None:
        self.store = store

    def snapshot_incomplete(self) -> tuple[TestRecord, ...]:
        """Every running record, ascending by start time (stable).

        Reports print this order top to bottom and flag the final element as
        the likely culprit.
        """
        running = [record for record in self.store if record.is_running]
        return tuple(sorted(running, key=lambda record: record.start_time))

    def get_failed_tests(self) -> list[TestRecord]:
        """Failed records in discovery order."""
        return [record for record in self.store if record.state is TestState.FAILED]

    def get_slow_tests(self, limit: int = 10, min_duration_ms: float | None = None) -> list[TestRecord]:
        """Completed, non-skipped records ranked by duration, longest first.

        Ties keep discovery order. ``min_duration_ms`` drops records at or
        below the threshold before ranking.
        """
        if limit <= 0:
            return []
        candidates = [
            record
            for record in self.store
            if record.state in {TestState.PASSED, TestState.FAILED} and record.duration_ms is not None
        ]
        if min_duration_ms is not None:
            candidates = [record for record in candidates if record.duration_ms > min_duration_ms]
        return sorted(candidates, key=lambda record: record.duration_ms, reverse=True)[:limit]

    def get_stats(self) -> RunStats:
        """Fresh snapshot of the run's counters."""
        statistics = self.store.statistics
        completed_files = sum(
            1 for path, group in self.store.files.items() if path is not None and group.is_done
        )
        return RunStats(
            total_files=statistics.total_files,
            completed_files=completed_files,
            total_tests=statistics.total_tests,
            passed=statistics.passed,
            failed=statistics.failed,
            skipped=statistics.skipped,
            incomplete=len(self.snapshot_incomplete()),
            start_time=statistics.start_time,
            total_duration_ms=self.store.now() - statistics.start_time,
        )

    def running_by_file(self) -> dict[str | None, list[TestRecord]]:
        """Running records grouped by file, omitting files with none running."""
        grouped: dict[str | None, list[TestRecord]] = {}
        for record in self.store:
            if record.is_running:
                grouped.setdefault(record.file, []).append(record)
        return grouped

    def running_duration(self, record: TestRecord) -> float:
        """Milliseconds since ``record`` started."""
        return self.store.now() - record.start_time

    def file_status(self, path: str | None) -> tuple[int, int]:
        """(passed, total) for a file, (0, 0) when unseen."""
        group = self.store.file_group(path)
        if group is None:
            return 0, 0
        return group.passed, group.total

    def exit_code(self) -> int:
        """0 when nothing failed and nothing is left running, 1 otherwise."""
        return 0 if self.get_stats().success else 1
