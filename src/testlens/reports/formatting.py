"""Plain-text formatting helpers shared by reporters."""

from __future__ import annotations

import math
from pathlib import Path

from testlens.tracking.models import UNKNOWN_FILE


def format_duration(ms: float, pad_width: int = 6) -> str:
    """Format as ``45ms`` below one second, ``1.5s`` above, right-aligned."""
    if ms < 1000:
        text = f"{math.floor(ms + 0.5)}ms"
    else:
        text = f"{ms / 1000:.1f}s"
    return text.rjust(pad_width)


def duration_style(ms: float) -> str:
    """Rich style for a completed duration."""
    if ms < 100:
        return "green"
    if ms < 1000:
        return "yellow"
    return "dark_orange"


def format_running_duration(ms: float) -> str:
    """Approximate elapsed time of a running test: ``~12s`` or ``~1m 5s``."""
    seconds = max(int(ms // 1000), 0)
    if seconds < 60:
        return f"~{seconds}s"
    minutes, remaining = divmod(seconds, 60)
    return f"~{minutes}m {remaining}s"


def format_dots(width: int) -> str:
    return "." * max(3, width)


def truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[: max(max_length - 3, 0)] + "..."


def relative_path(path: str | None, root: Path | None = None) -> str:
    """Path relative to ``root`` (default: cwd) when it lies inside it."""
    if not path:
        return UNKNOWN_FILE
    base = root or Path.cwd()
    try:
        return Path(path).relative_to(base).as_posix()
    except ValueError:
        return path
