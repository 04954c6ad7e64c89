"""Validate events and dispatch them to the record store."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from testlens.events.models import EventType, LifecycleData, TestEvent
from testlens.tracking.models import TestRecord, TestState
from testlens.tracking.store import TestRecordStore


logger = logging.getLogger(__name__)


@dataclass
class Dispatch:
    """Outcome of ingesting one accepted event."""

    event: TestEvent
    kind: EventType | None
    data: LifecycleData | None = None
    record: TestRecord | None = None

    @property
    def changed_state(self) -> bool:
        return self.record is not None


class EventIngestor:
    """Single consumer of the event stream.

    Each event is processed synchronously before the next is accepted, so the
    store sees a total order even when the runner executes tests in parallel.
    """

    def __init__(self, store: TestRecordStore) -> None:
        self.store = store
        self.rejected = 0
        self.ignored = 0

    def ingest(self, raw: TestEvent | Mapping[str, Any]) -> Dispatch | None:
        """Apply one event to the store.

        Returns None when the event is rejected as malformed; the stream is
        expected to continue with the next event.
        """
        try:
            event = raw if isinstance(raw, TestEvent) else TestEvent.model_validate(raw)
        except ValidationError as e:
            self._reject(raw, e)
            return None

        kind = event.kind
        if kind is None:
            self.ignored += 1
            logger.debug("Ignoring event of type %r", event.type)
            return Dispatch(event=event, kind=None)

        if not kind.is_lifecycle:
            self._handle_passive(event, kind)
            return Dispatch(event=event, kind=kind)

        try:
            data = event.lifecycle_data()
        except ValidationError as e:
            self._reject(event.data, e)
            return None

        return Dispatch(event=event, kind=kind, data=data, record=self._apply(kind, data))

    def _apply(self, kind: EventType, data: LifecycleData) -> TestRecord | None:
        key = data.key
        if kind is EventType.START:
            return self.store.start_test(key)
        if kind is EventType.PASS:
            return self.store.complete_test(key, TestState.PASSED, duration_ms=data.reported_duration)
        if kind is EventType.FAIL:
            return self.store.complete_test(
                key,
                TestState.FAILED,
                duration_ms=data.reported_duration,
                error=data.reported_error,
            )
        return self.store.skip_test(key, duration_ms=data.reported_duration)

    def _handle_passive(self, event: TestEvent, kind: EventType) -> None:
        # Runner output is not retained; it is only visible with debug logging
        if event.message is not None:
            logger.debug("%s: %s", kind.value, event.message.rstrip())

    def _reject(self, raw: Any, error: ValidationError) -> None:
        self.rejected += 1
        logger.warning("Rejected malformed event %r: %s", raw, error.errors(include_url=False))
