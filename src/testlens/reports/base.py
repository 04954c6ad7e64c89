"""Reporter interface."""

from abc import ABC, abstractmethod

from testlens.reports.models import FileHeader, IncompleteReport, SummaryReport, TestLine


class Reporter(ABC):
    """Receives report objects from a TestReporter session.

    Implementations must keep ``on_incomplete`` synchronous and free of new
    asynchronous work: it is called from signal and exit handlers.
    """

    @abstractmethod
    def on_file_header(self, header: FileHeader) -> None: ...

    @abstractmethod
    def on_test_line(self, line: TestLine) -> None: ...

    @abstractmethod
    def on_incomplete(self, report: IncompleteReport) -> None: ...

    @abstractmethod
    def on_summary(self, report: SummaryReport) -> None: ...

    def on_watch_ready(self) -> None:
        """Called when the runner enters watch mode."""

    def flush(self) -> None:
        """Push buffered output to its destination."""
