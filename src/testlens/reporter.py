"""Reporting session: drains the event stream and drives a Reporter."""

from __future__ import annotations

from collections.abc import AsyncIterable, Callable, Iterable, Mapping
from typing import Any

from testlens.config import ReporterSettings
from testlens.events.ingest import Dispatch, EventIngestor
from testlens.events.models import EventType, TestEvent
from testlens.reports.base import Reporter
from testlens.reports.console import ConsoleReporter
from testlens.reports.models import FileHeader, IncompleteReport, SummaryReport, TestLine
from testlens.tracking.analysis import RunAnalyzer
from testlens.tracking.models import TestRecord, TestState
from testlens.tracking.store import TestRecordStore


RawEvent = TestEvent | Mapping[str, Any]


class TestReporter:
    """One run's tracker plus its presentation.

    Examples:
        # Replay a recorded stream
        session = TestReporter()
        exit_code = session.run(iter_event_lines(open("events.jsonl")))

        # Drain an async source
        exit_code = await session.arun(aiter_event_lines(reader))
    """

    __test__ = False  # Prevent pytest from collecting this as a test class

    def __init__(
        self,
        settings: ReporterSettings | None = None,
        reporter: Reporter | None = None,
        *,
        store: TestRecordStore | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.settings = settings or ReporterSettings()
        self.store = store or TestRecordStore(clock=clock)
        self.analyzer = RunAnalyzer(self.store)
        self.ingestor = EventIngestor(self.store)
        self.output = reporter or ConsoleReporter()
        self.progress = self._resolve_progress()
        self._current_file: str | None = None
        self._summary: SummaryReport | None = None

    def _resolve_progress(self) -> str:
        if self.settings.progress != "auto":
            return self.settings.progress
        console = getattr(self.output, "console", None)
        return "on" if console is not None and console.is_terminal else "off"

    @property
    def exit_code(self) -> int:
        return self.analyzer.exit_code()

    def run(self, source: Iterable[RawEvent]) -> int:
        """Consume every event, then print the summary. Returns the exit code."""
        try:
            for raw in source:
                self.handle(raw)
        finally:
            self.finish()
        return self.exit_code

    async def arun(self, source: AsyncIterable[RawEvent]) -> int:
        """Async variant of :meth:`run`; suspends only between events."""
        try:
            async for raw in source:
                self.handle(raw)
        finally:
            self.finish()
        return self.exit_code

    def handle(self, raw: RawEvent) -> Dispatch | None:
        """Apply one event and emit the matching report objects."""
        dispatch = self.ingestor.ingest(raw)
        if dispatch is None:
            return None

        record = dispatch.record
        if dispatch.kind is EventType.WATCH_READY:
            self.output.on_watch_ready()
        elif dispatch.kind is EventType.START and record is not None:
            self._on_start(record)
        elif dispatch.kind in {EventType.PASS, EventType.FAIL, EventType.SKIP} and record is not None:
            self._on_complete(record)
        return dispatch

    def _enter_file(self, record: TestRecord) -> None:
        if record.file is None or record.file == self._current_file:
            return
        self._current_file = record.file
        passed, total = self.analyzer.file_status(record.file)
        self.output.on_file_header(FileHeader(path=record.file, passed=passed, total=total))

    def _on_start(self, record: TestRecord) -> None:
        self._enter_file(record)
        if self.progress == "off":
            elapsed = self.analyzer.running_duration(record)
            self.output.on_test_line(
                TestLine(
                    record=record,
                    is_running=True,
                    running_elapsed_ms=elapsed,
                    suspicious=elapsed > self.settings.stuck_threshold_ms,
                )
            )

    def _on_complete(self, record: TestRecord) -> None:
        if record.state is TestState.SKIPPED:
            self._enter_file(record)
            if not self.settings.show_skip:
                return
        elif record.state is TestState.PASSED:
            if not (self.settings.show_passing or record.nesting == 0):
                return
        self.output.on_test_line(TestLine(record=record, is_running=False))

    def incomplete_report(self) -> IncompleteReport:
        """Snapshot of unfinished tests with their elapsed time. Never mutates state."""
        records = self.analyzer.snapshot_incomplete()
        now = self.store.now()
        return IncompleteReport(records=records, elapsed_ms=tuple(now - r.start_time for r in records))

    def report_incomplete(self) -> IncompleteReport | None:
        """Hand the incomplete snapshot to the reporter; None when nothing is running."""
        report = self.incomplete_report()
        if not report:
            return None
        self.output.on_incomplete(report)
        return report

    def build_summary(self) -> SummaryReport:
        failed = self.analyzer.get_failed_tests()
        slow = self.analyzer.get_slow_tests(
            self.settings.slow_test_limit,
            min_duration_ms=self.settings.timeout_warning_ms,
        )
        return SummaryReport(
            stats=self.analyzer.get_stats(),
            failed_tests=failed,
            slow_tests=slow,
            full_names={record.sequence: self.store.full_name(record) for record in [*failed, *slow]},
        )

    def finish(self) -> SummaryReport:
        """Emit the final summary once; later calls return the first one."""
        if self._summary is None:
            self._summary = self.build_summary()
            self.output.on_summary(self._summary)
        return self._summary
