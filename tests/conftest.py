import io

import pytest
from rich.console import Console

from testlens.reports.base import Reporter
from testlens.reports.models import FileHeader, IncompleteReport, SummaryReport, TestLine


class FakeClock:
    """Deterministic millisecond clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class RecordingReporter(Reporter):
    """Collects every report object it receives."""

    def __init__(self) -> None:
        self.headers: list[FileHeader] = []
        self.lines: list[TestLine] = []
        self.incomplete: list[IncompleteReport] = []
        self.summaries: list[SummaryReport] = []
        self.watch_ready = 0

    def on_file_header(self, header: FileHeader) -> None:
        self.headers.append(header)

    def on_test_line(self, line: TestLine) -> None:
        self.lines.append(line)

    def on_incomplete(self, report: IncompleteReport) -> None:
        self.incomplete.append(report)

    def on_summary(self, report: SummaryReport) -> None:
        self.summaries.append(report)

    def on_watch_ready(self) -> None:
        self.watch_ready += 1


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recorder() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def plain_console(output: io.StringIO) -> Console:
    """Non-terminal console without colors (ASCII icons)."""
    return Console(file=output, width=100, force_terminal=False, color_system=None)


@pytest.fixture
def color_console(output: io.StringIO) -> Console:
    """Terminal console with colors (unicode icons)."""
    return Console(file=output, width=100, force_terminal=True, color_system="truecolor", no_color=False)
