"""Tests for event models, ingestion and sources."""

import asyncio
import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from testlens.events import (
    EventIngestor,
    EventType,
    LifecycleData,
    TestEvent,
    aiter_event_lines,
    iter_event_lines,
)
from testlens.tracking import TestError, TestKey, TestRecordStore, TestState


FIXTURES = Path(__file__).parent.parent / "fixtures" / "events"
FILE = "test/a.test.js"


def event(kind: str, name: str | None = "adds", nesting: int = 0, file: str | None = FILE, **extra) -> dict:
    data = {"nesting": nesting, **extra}
    if name is not None:
        data["name"] = name
    if file is not None:
        data["file"] = file
    return {"type": kind, "data": data}


@pytest.fixture
def store(clock) -> TestRecordStore:
    return TestRecordStore(clock=clock)


@pytest.fixture
def ingestor(store) -> EventIngestor:
    return EventIngestor(store)


class TestEventType:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("start", EventType.START),
            ("test:start", EventType.START),
            ("test:pass", EventType.PASS),
            ("fail", EventType.FAIL),
            ("test:watch-ready", EventType.WATCH_READY),
        ],
    )
    def test_parse_known_types(self, raw, expected):
        assert EventType.parse(raw) is expected

    def test_parse_unknown_type(self):
        assert EventType.parse("test:enqueue") is None
        assert EventType.parse("bogus") is None

    def test_lifecycle_types(self):
        assert EventType.START.is_lifecycle
        assert EventType.SKIP.is_lifecycle
        assert not EventType.COMPLETE.is_lifecycle
        assert not EventType.STDERR.is_lifecycle


class TestLifecycleData:
    def test_defaults(self):
        data = LifecycleData.model_validate({"name": "adds"})
        assert data.file is None
        assert data.nesting == 0
        assert data.key == TestKey(None, 0, "adds")
        assert data.reported_duration is None
        assert data.reported_error is None

    def test_duration_aliases(self):
        assert LifecycleData.model_validate({"name": "a", "duration": 12}).reported_duration == 12
        assert LifecycleData.model_validate({"name": "a", "duration_ms": 13}).reported_duration == 13
        nested = LifecycleData.model_validate({"name": "a", "details": {"duration_ms": 14.5}})
        assert nested.reported_duration == 14.5

    def test_error_from_details(self):
        data = LifecycleData.model_validate(
            {"name": "a", "details": {"error": {"message": "boom", "stack": "at x (f.js:3:1)"}}}
        )
        assert data.reported_error == TestError("boom", "at x (f.js:3:1)")

    def test_error_as_plain_string(self):
        data = LifecycleData.model_validate({"name": "a", "error": "1 subtest failed"})
        assert data.reported_error == TestError("1 subtest failed")

    def test_missing_name_is_invalid(self):
        with pytest.raises(ValidationError):
            LifecycleData.model_validate({"file": FILE})

    def test_negative_nesting_is_invalid(self):
        with pytest.raises(ValidationError):
            LifecycleData.model_validate({"name": "a", "nesting": -1})


class TestTestError:
    def test_location_from_node_stack(self):
        error = TestError(
            "Expected user to be deleted",
            "Error: Expected user to be deleted\n"
            "    at TestContext.<anonymous> (test/basic.test.js:32:11)\n"
            "    at Test.runInAsyncScope (node:async_hooks:206:9)",
        )
        assert error.location == ("test/basic.test.js", 32)
        assert error.line == 32

    def test_location_skips_third_party_frames(self):
        error = TestError(
            "boom",
            "    at run (/app/node_modules/lib/index.js:5:3)\n    at Object.<anonymous> (/app/test/x.test.js:9:1)",
        )
        assert error.location == ("/app/test/x.test.js", 9)

    def test_location_from_python_traceback(self):
        error = TestError(
            "assert 1 == 2",
            'Traceback (most recent call last):\n'
            '  File "/venv/lib/site-packages/plugin.py", line 3, in call\n'
            '  File "tests/test_math.py", line 12, in test_add\n',
        )
        assert error.location == ("tests/test_math.py", 12)

    def test_no_stack(self):
        assert TestError("boom").location is None
        assert TestError("boom").line is None


class TestIngest:
    def test_start_creates_record(self, ingestor, store):
        dispatch = ingestor.ingest(event("test:start"))

        assert dispatch.kind is EventType.START
        assert dispatch.record is store.get(TestKey(FILE, 0, "adds"))
        assert dispatch.changed_state

    def test_pass_completes_with_reported_duration(self, ingestor, store):
        ingestor.ingest(event("test:start"))
        dispatch = ingestor.ingest(event("test:pass", details={"duration_ms": 45}))

        assert dispatch.record.state is TestState.PASSED
        assert dispatch.record.duration_ms == 45

    def test_fail_records_error(self, ingestor):
        ingestor.ingest(event("start"))
        dispatch = ingestor.ingest(event("fail", error={"message": "expected 2", "stack": "at t (a.js:4:2)"}))

        assert dispatch.record.state is TestState.FAILED
        assert dispatch.record.error.message == "expected 2"
        assert dispatch.record.error.line == 4

    def test_fail_without_error_uses_default(self, ingestor):
        ingestor.ingest(event("start"))
        dispatch = ingestor.ingest(event("fail"))
        assert dispatch.record.error.message == "Test failed"

    def test_skip_without_start(self, ingestor, store):
        dispatch = ingestor.ingest(event("test:skip", name="todo"))

        assert dispatch.record.state is TestState.SKIPPED
        assert store.statistics.total_tests == 1

    def test_malformed_event_is_rejected_and_stream_continues(self, ingestor, store):
        assert ingestor.ingest(event("test:start", name=None)) is None
        assert ingestor.rejected == 1
        assert len(store) == 0

        assert ingestor.ingest(event("test:start")) is not None
        assert len(store) == 1

    def test_non_mapping_event_is_rejected(self, ingestor):
        assert ingestor.ingest({"data": {}}) is None
        assert ingestor.ingest({"type": "test:start", "data": "oops"}) is None
        assert ingestor.rejected == 2

    def test_unknown_types_change_nothing(self, ingestor, store):
        dispatch = ingestor.ingest(event("test:enqueue"))

        assert dispatch.kind is None
        assert not dispatch.changed_state
        assert ingestor.ignored == 1
        assert len(store) == 0

    def test_complete_event_changes_nothing(self, ingestor, store):
        ingestor.ingest(event("test:start"))
        dispatch = ingestor.ingest(event("test:complete"))

        assert dispatch.kind is EventType.COMPLETE
        assert dispatch.record is None
        assert store.get(TestKey(FILE, 0, "adds")).is_running

    def test_output_events_are_logged_not_retained(self, ingestor, store, caplog):
        before = dict(vars(ingestor))

        with caplog.at_level(logging.DEBUG, logger="testlens.events.ingest"):
            for _ in range(1000):
                ingestor.ingest({"type": "test:stderr", "data": {"message": "warn\n"}})
                ingestor.ingest({"type": "test:stdout", "data": {"message": "log\n"}})
            dispatch = ingestor.ingest({"type": "test:diagnostic", "data": {"message": "tests 1"}})

        assert vars(ingestor) == before
        assert not dispatch.changed_state
        assert len(store) == 0
        assert "stderr: warn" in caplog.text
        assert "diagnostic: tests 1" in caplog.text

    def test_completion_without_start_is_tolerated(self, ingestor, store):
        dispatch = ingestor.ingest(event("test:pass", name="ghost"))

        assert dispatch is not None
        assert dispatch.record is None
        assert store.statistics.passed == 0

    def test_accepts_event_models(self, ingestor):
        dispatch = ingestor.ingest(TestEvent(type="start", data={"name": "typed"}))
        assert dispatch.record.name == "typed"


class TestSources:
    def test_iter_event_lines_skips_bad_lines(self):
        lines = (FIXTURES / "malformed.jsonl").read_text(encoding="utf-8").splitlines()
        events = list(iter_event_lines(lines))

        assert len(events) == 5
        assert all(isinstance(e, dict) for e in events)

    def test_malformed_fixture_end_to_end(self, ingestor, store):
        with (FIXTURES / "malformed.jsonl").open(encoding="utf-8") as fh:
            for raw in iter_event_lines(fh):
                ingestor.ingest(raw)

        assert ingestor.rejected == 1
        assert ingestor.ignored == 1
        assert store.statistics.total_tests == 1
        assert store.statistics.passed == 1
        assert store.get(TestKey(FILE, 0, "kept")).duration_ms == 12

    def test_aiter_event_lines_decodes_bytes(self):
        async def source():
            yield b'{"type": "test:start", "data": {"name": "a"}}\n'
            yield "\n"
            yield '{"type": "test:pass", "data": {"name": "a"}}'

        async def collect():
            return [e async for e in aiter_event_lines(source())]

        events = asyncio.run(collect())
        assert [e["type"] for e in events] == ["test:start", "test:pass"]
