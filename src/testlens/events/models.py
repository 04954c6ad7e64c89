"""Inbound test event schema."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from testlens.tracking.models import TestError, TestKey


class EventType(str, Enum):
    """Event types emitted by the test runner."""

    START = "start"
    PASS = "pass"
    FAIL = "fail"
    SKIP = "skip"
    COMPLETE = "complete"
    STDOUT = "stdout"
    STDERR = "stderr"
    DIAGNOSTIC = "diagnostic"
    WATCH_READY = "watch-ready"

    @classmethod
    def parse(cls, value: str) -> EventType | None:
        """Map a raw type (``start`` or ``test:start``) to a known type."""
        name = value.removeprefix("test:")
        try:
            return cls(name)
        except ValueError:
            return None

    @property
    def is_lifecycle(self) -> bool:
        return self in _LIFECYCLE_TYPES


_LIFECYCLE_TYPES = frozenset({EventType.START, EventType.PASS, EventType.FAIL, EventType.SKIP})


class ErrorInfo(BaseModel):
    """Error payload; a bare string is accepted as the message."""

    model_config = ConfigDict(extra="ignore")

    message: str = "Test failed"
    stack: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _coerce_string(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"message": value}
        return value

    def to_error(self) -> TestError:
        return TestError(message=self.message, stack=self.stack)


class EventDetails(BaseModel):
    """Nested ``details`` block used by node's runner."""

    model_config = ConfigDict(extra="ignore")

    duration_ms: float | None = None
    error: ErrorInfo | None = None


class LifecycleData(BaseModel):
    """Payload of start/pass/fail/skip events."""

    model_config = ConfigDict(extra="ignore")

    name: str
    file: str | None = None
    nesting: int = Field(default=0, ge=0)
    duration_ms: float | None = Field(default=None, validation_alias=AliasChoices("duration_ms", "duration"))
    error: ErrorInfo | None = None
    details: EventDetails | None = None

    @property
    def key(self) -> TestKey:
        return TestKey(self.file, self.nesting, self.name)

    @property
    def reported_duration(self) -> float | None:
        if self.duration_ms is not None:
            return self.duration_ms
        if self.details is not None:
            return self.details.duration_ms
        return None

    @property
    def reported_error(self) -> TestError | None:
        if self.error is not None:
            return self.error.to_error()
        if self.details is not None and self.details.error is not None:
            return self.details.error.to_error()
        return None


class TestEvent(BaseModel):
    """A single event from the runner: a type tag plus an untyped payload."""

    __test__ = False  # Prevent pytest from collecting this as a test class

    model_config = ConfigDict(extra="ignore")

    type: str
    data: dict[str, Any] = Field(default_factory=dict)

    @property
    def kind(self) -> EventType | None:
        return EventType.parse(self.type)

    def lifecycle_data(self) -> LifecycleData:
        """Validate the payload as a lifecycle payload.

        Raises:
            pydantic.ValidationError: If the payload is malformed.
        """
        return LifecycleData.model_validate(self.data)

    @property
    def message(self) -> str | None:
        message = self.data.get("message")
        return None if message is None else str(message)
