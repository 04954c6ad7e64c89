"""Tests for the shutdown hook."""

import logging
import os
import signal

import pytest

from testlens.config import ReporterSettings
from testlens.reporter import TestReporter
from testlens.shutdown import ShutdownHook


def start(session: TestReporter, name: str) -> None:
    session.handle({"type": "test:start", "data": {"name": name, "file": "test/a.test.js"}})


@pytest.fixture
def session(recorder, clock) -> TestReporter:
    return TestReporter(ReporterSettings(progress="on"), recorder, clock=clock)


@pytest.fixture
def exits() -> list[int]:
    return []


@pytest.fixture
def hook(session, exits) -> ShutdownHook:
    return ShutdownHook(session, signals=(signal.SIGUSR1,), terminate=exits.append)


class TestReportOnce:
    def test_reports_running_tests(self, session, hook, recorder):
        start(session, "hangs")

        report = hook("SIGINT")

        assert [r.name for r in report.records] == ["hangs"]
        assert recorder.incomplete == [report]

    def test_each_cause_handled_once(self, session, hook, recorder):
        start(session, "hangs")

        hook("SIGINT")
        assert hook("SIGINT") is None
        assert hook("exit") is None

        assert len(recorder.incomplete) == 1
        assert hook.handled_causes == {"SIGINT", "exit"}

    def test_nothing_printed_when_all_complete(self, session, hook, recorder):
        assert hook("end-of-stream") is None
        assert recorder.incomplete == []

    def test_later_cause_reports_after_empty_snapshot(self, session, hook, recorder):
        hook("end-of-stream")
        start(session, "late")

        assert hook("exit") is not None
        assert len(recorder.incomplete) == 1

    def test_does_not_mutate_tracker(self, session, hook):
        start(session, "hangs")
        hook("SIGTERM")

        stats = session.analyzer.get_stats()
        assert (stats.total_tests, stats.incomplete) == (1, 1)

    def test_errors_are_logged_not_raised(self, session, hook, monkeypatch, caplog):
        def broken():
            raise RuntimeError("console closed")

        monkeypatch.setattr(session, "report_incomplete", broken)

        with caplog.at_level(logging.ERROR, logger="testlens.shutdown"):
            assert hook("exit") is None

        assert "Failed to report incomplete tests on exit" in caplog.text


class TestSignals:
    def test_signal_reports_then_terminates(self, session, hook, exits, recorder):
        start(session, "hangs")

        hook._on_signal(signal.SIGTERM, None)

        assert exits == [1]
        assert "SIGTERM" in hook.handled_causes
        assert len(recorder.incomplete) == 1

    def test_exit_callback(self, session, hook, recorder):
        start(session, "hangs")
        hook._on_exit()

        assert hook.handled_causes == {"exit"}
        assert len(recorder.incomplete) == 1

    def test_install_and_uninstall_restore_handlers(self, hook):
        previous = signal.getsignal(signal.SIGUSR1)

        hook.install()
        try:
            assert hook.installed
            assert signal.getsignal(signal.SIGUSR1) == hook._on_signal
        finally:
            hook.uninstall()

        assert not hook.installed
        assert signal.getsignal(signal.SIGUSR1) == previous

    def test_context_manager(self, hook):
        with hook as installed:
            assert installed is hook
            assert hook.installed
        assert not hook.installed

    def test_delivered_signal_runs_hook(self, session, hook, exits, recorder):
        start(session, "hangs")

        with hook:
            os.kill(os.getpid(), signal.SIGUSR1)

        assert exits == [1]
        assert "SIGUSR1" in hook.handled_causes
        assert len(recorder.incomplete) == 1
