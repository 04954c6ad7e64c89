"""Command-line interface for testlens."""

from __future__ import annotations

import argparse
import logging
import sys
import threading
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from testlens.config import ReporterSettings, load_settings
from testlens.events.sources import iter_event_lines
from testlens.reporter import TestReporter
from testlens.reports.console import ConsoleReporter
from testlens.shutdown import ShutdownHook
from testlens.version import __version__


EXIT_USAGE = 2


class CLIApplication:
    """Top-level command router."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()
        self.parser = argparse.ArgumentParser(
            prog="testlens",
            description="Follow a stream of test lifecycle events and report stuck, failed and slow tests.",
        )
        self.parser.add_argument(
            "events",
            nargs="?",
            default="-",
            help="JSON-lines event file, or '-' for stdin (default: -)",
        )
        self.parser.add_argument(
            "--timeout-warning",
            dest="timeout_warning_ms",
            type=int,
            help="Rank completed tests slower than this many ms as slow (default: 5000)",
        )
        self.parser.add_argument(
            "--stuck-threshold",
            dest="stuck_threshold_ms",
            type=int,
            help="Flag running tests older than this many ms (default: 30000)",
        )
        self.parser.add_argument(
            "--hide-passing",
            dest="show_passing",
            action="store_false",
            default=None,
            help="Only print passing tests at the top level.",
        )
        self.parser.add_argument(
            "--hide-skip",
            dest="show_skip",
            action="store_false",
            default=None,
            help="Do not print skipped tests.",
        )
        self.parser.add_argument(
            "--progress",
            choices=["auto", "on", "off"],
            help="Progress mode; 'off' prints a line when each test starts (default: auto)",
        )
        self.parser.add_argument(
            "--slow-limit",
            dest="slow_test_limit",
            type=int,
            help="Maximum slow tests listed in the summary (default: 10)",
        )
        self.parser.add_argument(
            "--reporter-options",
            help="Comma-separated key=value options, e.g. 'timeout-warning=2000,show-skip=false'",
        )
        self.parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
        self.parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    def run(self, argv: Sequence[str] | None = None) -> int:
        load_dotenv(Path.cwd() / ".env")
        args = self.parser.parse_args(argv)
        configure_logging(args.verbose)

        try:
            settings = load_settings(
                args.reporter_options,
                timeout_warning_ms=args.timeout_warning_ms,
                stuck_threshold_ms=args.stuck_threshold_ms,
                show_passing=args.show_passing,
                show_skip=args.show_skip,
                progress=args.progress,
                slow_test_limit=args.slow_test_limit,
            )
        except ValidationError as e:
            self.console.print(f"[red]Invalid configuration:[/red] {escape(str(e))}")
            return EXIT_USAGE

        return ReportCommand(self.console, settings, args.events).run()


class ReportCommand:
    """Pipeline driver for `testlens [EVENTS]`."""

    def __init__(self, console: Console, settings: ReporterSettings, events: str) -> None:
        self.console = console
        self.settings = settings
        self.events = events
        self.session = TestReporter(settings, ConsoleReporter(console))

    def run(self) -> int:
        try:
            stream = self._open()
        except OSError as e:
            self.console.print(f"[red]Cannot read events:[/red] {escape(str(e))}")
            return EXIT_USAGE

        # Signal handlers can only be installed from the main thread
        hook = ShutdownHook(self.session)
        if threading.current_thread() is threading.main_thread():
            hook.install()
        try:
            self.session.run(iter_event_lines(stream))
            hook("end-of-stream")
        finally:
            hook.uninstall()
            if stream is not sys.stdin:
                stream.close()
        return self.session.exit_code

    def _open(self) -> TextIO:
        if self.events == "-":
            return sys.stdin
        return open(self.events, encoding="utf-8")


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def main(argv: Sequence[str] | None = None) -> None:
    raise SystemExit(CLIApplication().run(argv))


if __name__ == "__main__":
    main()
