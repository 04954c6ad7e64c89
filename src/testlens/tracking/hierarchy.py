"""Parent resolution for records arriving as a flat, depth-tagged stream."""

from __future__ import annotations

from testlens.tracking.models import TestRecord


class HierarchyResolver:
    """Tracks the currently open ancestor chain.

    The stack is ordered by push time. Starting a record at depth ``d`` closes
    every open frame at depth ``d`` or deeper, so siblings replace each other
    and a new group closes over the children of the previous one.
    """

    def __init__(self) -> None:
        self._stack: list[TestRecord] = []

    def __len__(self) -> int:
        return len(self._stack)

    def parent_for(self, nesting: int) -> TestRecord | None:
        """Most recently pushed open record at ``nesting - 1``."""
        if nesting <= 0:
            return None
        for frame in reversed(self._stack):
            if frame.nesting == nesting - 1:
                return frame
        return None

    def push(self, record: TestRecord) -> None:
        while self._stack and self._stack[-1].nesting >= record.nesting:
            self._stack.pop()
        self._stack.append(record)

    def attach(self, record: TestRecord) -> TestRecord | None:
        """Resolve the parent of a new record, then open it as context."""
        parent = self.parent_for(record.nesting)
        self.push(record)
        return parent
