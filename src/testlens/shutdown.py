"""Termination hook that reports tests left running."""

from __future__ import annotations

import atexit
import logging
import signal
import sys
from collections.abc import Callable, Sequence
from types import FrameType
from typing import Any

from testlens.reporter import TestReporter
from testlens.reports.models import IncompleteReport


logger = logging.getLogger(__name__)

DEFAULT_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)


class ShutdownHook:
    """Single on-shutdown hook for SIGINT, SIGTERM and interpreter exit.

    Each cause is handled at most once and the incomplete report is written at
    most once per run. The hook only reads tracker state.

    Examples:
        with ShutdownHook(session):
            session.run(events)
    """

    def __init__(
        self,
        session: TestReporter,
        *,
        signals: Sequence[signal.Signals] = DEFAULT_SIGNALS,
        terminate: Callable[[int], Any] = sys.exit,
    ) -> None:
        self.session = session
        self.signals = tuple(signals)
        self.terminate = terminate
        self._handled: set[str] = set()
        self._reported = False
        self._previous: dict[signal.Signals, Any] = {}
        self._installed = False

    @property
    def installed(self) -> bool:
        return self._installed

    @property
    def handled_causes(self) -> frozenset[str]:
        return frozenset(self._handled)

    def install(self) -> ShutdownHook:
        """Register signal handlers and the exit callback. Main thread only."""
        if self.installed:
            return self
        for sig in self.signals:
            self._previous[sig] = signal.signal(sig, self._on_signal)
        atexit.register(self._on_exit)
        self._installed = True
        return self

    def uninstall(self) -> None:
        for sig, handler in self._previous.items():
            signal.signal(sig, handler)
        self._previous.clear()
        atexit.unregister(self._on_exit)
        self._installed = False

    def __enter__(self) -> ShutdownHook:
        return self.install()

    def __exit__(self, *exc_info: object) -> None:
        self.uninstall()

    def __call__(self, cause: str) -> IncompleteReport | None:
        """Report incomplete tests for ``cause``; never raises."""
        if cause in self._handled:
            return None
        self._handled.add(cause)
        if self._reported:
            return None
        try:
            report = self.session.report_incomplete()
        except Exception:
            logger.exception("Failed to report incomplete tests on %s", cause)
            return None
        if report is not None:
            self._reported = True
        return report

    def _on_signal(self, signum: int, frame: FrameType | None) -> None:
        self(signal.Signals(signum).name)
        self.terminate(1)

    def _on_exit(self) -> None:
        self("exit")
