"""Canonical store of test records for a single run."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator

from testlens.tracking.hierarchy import HierarchyResolver
from testlens.tracking.models import (
    FileGroup,
    RunStatistics,
    TestError,
    TestKey,
    TestRecord,
    TestState,
    monotonic_ms,
)


logger = logging.getLogger(__name__)


class TestRecordStore:
    """Owns every TestRecord and FileGroup of a run.

    ``start_test``, ``complete_test`` and ``skip_test`` are the only write
    paths; RunStatistics is updated exclusively through them. All operations
    are synchronous and perform no I/O.

    Examples:
        store = TestRecordStore()
        key = TestKey("tests/math.test.js", 0, "adds numbers")
        store.start_test(key)
        store.complete_test(key, TestState.PASSED, duration_ms=3.2)
    """

    __test__ = False  # Prevent pytest from collecting this as a test class

    def __init__(self, clock: Callable[[], float] | None = None) -> None:
        self._clock = clock or monotonic_ms
        self._records: list[TestRecord] = []
        self._index: dict[str, TestRecord] = {}
        # Running records per id, oldest first
        self._running: dict[str, list[TestRecord]] = {}
        self._files: dict[str | None, FileGroup] = {}
        self._hierarchy = HierarchyResolver()
        self.statistics = RunStatistics(start_time=self._clock())

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[TestRecord]:
        return iter(self._records)

    def now(self) -> float:
        """Current time on the store's clock, in milliseconds."""
        return self._clock()

    @property
    def records(self) -> tuple[TestRecord, ...]:
        """Every record ever started, in discovery order."""
        return tuple(self._records)

    @property
    def files(self) -> dict[str | None, FileGroup]:
        return dict(self._files)

    @property
    def hierarchy(self) -> HierarchyResolver:
        return self._hierarchy

    def get(self, key: TestKey | str) -> TestRecord | None:
        """Latest record registered under a key or id."""
        record_id = key.id if isinstance(key, TestKey) else key
        return self._index.get(record_id)

    def file_group(self, path: str | None) -> FileGroup | None:
        return self._files.get(path)

    def start_test(self, key: TestKey) -> TestRecord:
        """Create a running record for ``key``.

        A key that is already indexed is re-pointed at the new record. The
        previous record stays in the run, so a collision never hides a test
        that is still running.
        """
        previous = self._index.get(key.id)
        if previous is not None and previous.is_running:
            logger.debug("Test id %s started again while still running", key.id)

        record = TestRecord(
            id=key.id,
            name=key.name,
            file=key.file,
            nesting=key.nesting,
            start_time=self._clock(),
            sequence=len(self._records),
        )
        parent = self._hierarchy.attach(record)
        if parent is not None:
            record.parent_id = parent.id
            record.parent_sequence = parent.sequence

        self._records.append(record)
        self._index[record.id] = record
        self._running.setdefault(record.id, []).append(record)
        self._register_in_file(record)
        self.statistics.total_tests += 1
        return record

    def complete_test(
        self,
        key: TestKey,
        outcome: TestState,
        duration_ms: float | None = None,
        error: TestError | None = None,
    ) -> TestRecord | None:
        """Move a running record to a terminal state.

        The newest record under the key is completed when it is running;
        otherwise the oldest record still running under the same id is, so
        overlapping tests that share a key all reach a terminal state.
        Returns the completed record, or None when there was nothing to
        complete (unknown key, or no record under it still running).
        """
        if not outcome.is_terminal:
            raise ValueError(f"Cannot complete a test as {outcome.value}")

        record = self._running_record(key.id)
        if record is None:
            if key.id in self._index:
                logger.debug("Duplicate completion for %s ignored", key.id)
            else:
                logger.debug("Completion without matching start for %s", key.id)
            return None
        self._mark_finished(record)

        now = self._clock()
        record.state = outcome
        record.end_time = now
        record.duration_ms = duration_ms if duration_ms is not None else now - record.start_time
        if outcome is TestState.FAILED:
            record.error = error or TestError("Test failed")

        group = self._files[record.file]
        group.completed += 1
        if outcome is TestState.PASSED:
            self.statistics.passed += 1
        elif outcome is TestState.FAILED:
            group.failed += 1
            self.statistics.failed += 1
        else:
            group.skipped += 1
            self.statistics.skipped += 1
        return record

    def skip_test(self, key: TestKey, duration_ms: float | None = None) -> TestRecord | None:
        """Complete ``key`` as skipped, starting it first if it was never seen."""
        if self._index.get(key.id) is None:
            self.start_test(key)
        return self.complete_test(key, TestState.SKIPPED, duration_ms=duration_ms)

    def full_name(self, record: TestRecord) -> list[str]:
        """Names from the root ancestor down to ``record``."""
        parts = [record.name]
        current = record
        while current.parent_sequence is not None:
            current = self._records[current.parent_sequence]
            parts.append(current.name)
        parts.reverse()
        return parts

    def _running_record(self, record_id: str) -> TestRecord | None:
        latest = self._index.get(record_id)
        if latest is not None and latest.is_running:
            return latest
        running = self._running.get(record_id)
        return running[0] if running else None

    def _mark_finished(self, record: TestRecord) -> None:
        running = [other for other in self._running[record.id] if other is not record]
        if running:
            self._running[record.id] = running
        else:
            del self._running[record.id]

    def _register_in_file(self, record: TestRecord) -> None:
        group = self._files.get(record.file)
        if group is None:
            group = FileGroup(path=record.file)
            self._files[record.file] = group
            if record.file is not None:
                self.statistics.total_files += 1
        group.tests.append(record)
