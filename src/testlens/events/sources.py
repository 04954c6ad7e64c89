"""Event sources: newline-delimited JSON streams."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator
from typing import Any


logger = logging.getLogger(__name__)


def _decode(line: str, lineno: int) -> dict[str, Any] | None:
    line = line.strip()
    if not line:
        return None
    try:
        event = json.loads(line)
    except json.JSONDecodeError as e:
        logger.warning("Skipping undecodable event on line %d: %s", lineno, e)
        return None
    if not isinstance(event, dict):
        logger.warning("Skipping non-object event on line %d", lineno)
        return None
    return event


def iter_event_lines(lines: Iterable[str]) -> Iterator[dict[str, Any]]:
    """Yield one event mapping per JSON line, skipping blank and bad lines."""
    for lineno, line in enumerate(lines, start=1):
        event = _decode(line, lineno)
        if event is not None:
            yield event


async def aiter_event_lines(lines: AsyncIterable[str | bytes]) -> AsyncIterator[dict[str, Any]]:
    """Async variant of :func:`iter_event_lines` for stream readers."""
    lineno = 0
    async for line in lines:
        lineno += 1
        if isinstance(line, bytes):
            line = line.decode("utf-8", errors="replace")
        event = _decode(line, lineno)
        if event is not None:
            yield event
