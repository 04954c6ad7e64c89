from testlens.events.ingest import Dispatch, EventIngestor
from testlens.events.models import ErrorInfo, EventDetails, EventType, LifecycleData, TestEvent
from testlens.events.sources import aiter_event_lines, iter_event_lines

__all__ = [
    "Dispatch",
    "ErrorInfo",
    "EventDetails",
    "EventIngestor",
    "EventType",
    "LifecycleData",
    "TestEvent",
    "aiter_event_lines",
    "iter_event_lines",
]
