"""Console reporter for testlens output using Rich."""

from __future__ import annotations

import sys
from pathlib import Path

from rich.cells import cell_len
from rich.console import Console
from rich.markup import escape

from testlens.reports.base import Reporter
from testlens.reports.formatting import (
    duration_style,
    format_dots,
    format_duration,
    format_running_duration,
    relative_path,
    truncate,
)
from testlens.reports.models import FileHeader, IncompleteReport, SummaryReport, TestLine
from testlens.tracking.models import TestRecord, TestState


ICONS: dict[str, str] = {
    "pass": "✓",
    "fail": "✗",
    "running": "⏳",
    "skip": "⊘",
    "warning": "⚠",
    "file": "📄",
}

ASCII_ICONS: dict[str, str] = {
    "pass": "[OK]",
    "fail": "[FAIL]",
    "running": "[...]",
    "skip": "[SKIP]",
    "warning": "[!]",
    "file": "FILE:",
}

_RESERVED_WIDTH = 20


class ConsoleReporter(Reporter):
    """Reporter that writes progress, stuck tests and the summary with Rich.

    Uses unicode icons and colors when the console has a color system, and
    plain ASCII markers otherwise (pipes, CI logs).
    """

    def __init__(
        self,
        console: Console | None = None,
        *,
        root: Path | None = None,
        indent_size: int = 2,
    ) -> None:
        self.console = console or Console(file=sys.__stdout__)
        self.root = root
        self.indent_size = indent_size

    @property
    def fancy(self) -> bool:
        return self.console.color_system is not None and not self.console.no_color

    def icon(self, name: str) -> str:
        return escape(ICONS[name] if self.fancy else ASCII_ICONS[name])

    def _path(self, path: str | None) -> str:
        return escape(relative_path(path, self.root))

    def _indent(self, nesting: int) -> str:
        return " " * (nesting * self.indent_size)

    def on_file_header(self, header: FileHeader) -> None:
        counter = escape(f"[{header.passed}/{header.total}]")
        self.console.print()
        self.console.print(f"{self.icon('file')} [bold]{self._path(header.path)}[/bold] [dim]{counter}[/dim]")

    def on_test_line(self, line: TestLine) -> None:
        record = line.record
        if record.state is TestState.SKIPPED:
            self._print_skipped(record)
            return

        indent = self._indent(record.nesting)
        if line.is_running:
            icon = self.icon("running")
            style = "red" if line.suspicious else "dim"
            duration = f"[{style}]{format_running_duration(line.running_elapsed_ms or 0)}[/{style}]"
        else:
            icon = self.icon("pass" if record.passed else "fail")
            duration = self._format_completed_duration(record)

        width = self.console.width
        max_name = max(20, width - _RESERVED_WIDTH - len(indent) - 4)
        name = truncate(record.name, max_name)
        dots_width = width - len(indent) - cell_len(icon) - len(name) - 12
        dots = format_dots(dots_width)
        self.console.print(
            f"{indent}{icon} {escape(name)} [dim]{dots}[/dim] {duration}",
            no_wrap=True,
            overflow="crop",
        )

        if record.state is TestState.FAILED:
            self._print_error(record)

    def _format_completed_duration(self, record: TestRecord) -> str:
        if record.duration_ms is None:
            return "[dim]     -[/dim]"
        text = format_duration(record.duration_ms)
        if not self.fancy:
            return text
        style = duration_style(record.duration_ms)
        return f"[{style}]{text}[/{style}]"

    def _print_skipped(self, record: TestRecord) -> None:
        indent = self._indent(record.nesting)
        label = escape(f"{record.name} [skipped]")
        self.console.print(f"{indent}{self.icon('skip')} [grey50]{label}[/grey50]")

    def _print_error(self, record: TestRecord) -> None:
        if record.error is None:
            return
        indent = self._indent(record.nesting + 1)
        self.console.print()
        self.console.print(f"{indent}[red]{escape(record.error.message)}[/red]")
        location = record.error.location
        if location:
            file, line = location
            self.console.print(f"{indent}at {self._path(file)}:{line}")

    def on_incomplete(self, report: IncompleteReport) -> None:
        if not report:
            return
        if self.fancy:
            self._print_incomplete_fancy(report)
        else:
            self._print_incomplete_plain(report)
        self.flush()

    def _print_incomplete_fancy(self, report: IncompleteReport) -> None:
        self.console.print()
        self.console.print(f"[bold red]{self.icon('warning')}  INCOMPLETE TESTS DETECTED[/bold red]")
        self.console.print()
        self.console.print("[dim]These tests started but never completed. The test at the bottom[/dim]")
        self.console.print("[dim]is the most likely one blocking:[/dim]")
        self.console.print()
        culprit = report.culprit
        for record, elapsed in report.items():
            marker = "  [bold red]← likely culprit[/bold red]" if record is culprit else ""
            self.console.print(f"  {self.icon('running')} [bold]{self._path(record.file)}[/bold]")
            self.console.print(
                f"     [dim]└─[/dim] {escape(record.name)} "
                f"([dark_orange]{format_running_duration(elapsed)}[/dark_orange]){marker}"
            )
        self.console.print()
        self.console.print("  [cyan]Tip: Check for: infinite loops, blocking sync calls,[/cyan]")
        self.console.print("  [cyan]     unawaited async, database deadlocks, or hanging network requests[/cyan]")

    def _print_incomplete_plain(self, report: IncompleteReport) -> None:
        self.console.print()
        self.console.print("### PROCESS INTERRUPTED - INCOMPLETE TESTS")
        self.console.print()
        self.console.print("The following tests started but never completed:")
        self.console.print("  (Ordered by start time - the last one likely caused the hang)")
        self.console.print()
        culprit = report.culprit
        for record, elapsed in report.items():
            seconds = escape(f"[{int(elapsed // 1000):>2}s]")
            marker = " <-- LIKELY CULPRIT" if record is culprit else ""
            self.console.print(
                f"  {seconds}  {self._path(record.file)}::{escape(record.name)}{marker}",
                soft_wrap=True,
            )

    def on_summary(self, report: SummaryReport) -> None:
        stats = report.stats
        ok = stats.success
        counts = (
            f"{stats.total_files} files | {stats.passed} passed | {stats.failed} failed | "
            f"{stats.skipped} skipped"
        )
        if stats.incomplete:
            counts += f" | {stats.incomplete} incomplete"
        counts += f" | {format_duration(stats.total_duration_ms, pad_width=0)}"

        self.console.print()
        if self.fancy:
            color = "green" if ok else "red"
            icon = self.icon("pass" if ok else "fail")
            self.console.print(f"[bold {color}]{icon} TEST SUITE COMPLETE {counts}[/bold {color}]")
        else:
            self.console.print(f"TEST SUITE COMPLETE --- {counts}")

        if report.failed_tests:
            self._print_failures(report)
        if report.slow_tests:
            self._print_slow_tests(report)
        if not ok and not self.fancy:
            self.console.print()
            self.console.print("Exit code: 1 (failure)")
        self.flush()

    def _print_failures(self, report: SummaryReport) -> None:
        self.console.print()
        if self.fancy:
            self.console.print(f"[red]{self.icon('fail')} FAILURES ({len(report.failed_tests)}):[/red]")
        else:
            self.console.print("FAILED TESTS:")
        for index, record in enumerate(report.failed_tests, start=1):
            line = record.error.line if record.error and record.error.line else "?"
            self.console.print(
                f"  {index}. {self._path(record.file)}:{line} — {escape(record.name)}",
                soft_wrap=True,
            )

    def _print_slow_tests(self, report: SummaryReport) -> None:
        self.console.print()
        if self.fancy:
            self.console.print(f"[yellow]{self.icon('warning')} SLOW TESTS (potential flaky tests):[/yellow]")
            separator = " [dim]›[/dim] "
        else:
            self.console.print("SLOW TESTS (potential flaky tests):")
            separator = " > "
        for record in report.slow_tests:
            name = separator.join(escape(part) for part in report.full_name(record))
            duration = format_duration(record.duration_ms or 0)
            if self.fancy:
                style = duration_style(record.duration_ms or 0)
                duration = f"[{style}]{duration}[/{style}]"
            self.console.print(f"     {duration}  {self._path(record.file)} — {name}", soft_wrap=True)

    def on_watch_ready(self) -> None:
        self.console.print("Watch mode ready")

    def flush(self) -> None:
        self.console.file.flush()
