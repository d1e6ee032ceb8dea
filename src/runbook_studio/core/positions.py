from __future__ import annotations

from dataclasses import dataclass


@dataclass(eq=False)
class LineAnchor:
    """A 1-based line position that follows whole-line inserts and deletes."""

    line: int


@dataclass(eq=False)
class OffsetAnchor:
    """A character span that follows character inserts and deletes."""

    offset: int
    length: int = 0

    @property
    def end(self) -> int:
        return self.offset + self.length


class PositionTracker:
    """Keeps line anchors and offset anchors in step with text edits.

    Line and offset anchors are independent axes: line edits never move an
    offset anchor and character edits never move a line anchor. Anchors are
    kept in insertion order, so anchors sharing a position stay stable.
    """

    def __init__(self) -> None:
        self._lines: list[LineAnchor] = []
        self._offsets: list[OffsetAnchor] = []

    @property
    def line_anchors(self) -> list[LineAnchor]:
        return list(self._lines)

    @property
    def offset_anchors(self) -> list[OffsetAnchor]:
        return list(self._offsets)

    def track(self, anchor: LineAnchor | OffsetAnchor) -> None:
        """Start tracking an existing anchor; tracking the same anchor twice is a no-op."""
        if self.is_tracked(anchor):
            return
        if isinstance(anchor, LineAnchor):
            if anchor.line < 1:
                raise ValueError(f"Line numbers are 1-based, got {anchor.line}")
            self._lines.append(anchor)
        else:
            if anchor.offset < 0 or anchor.length < 0:
                raise ValueError(f"Invalid span ({anchor.offset}, {anchor.length})")
            self._offsets.append(anchor)

    def track_line(self, line: int) -> LineAnchor:
        anchor = LineAnchor(line)
        self.track(anchor)
        return anchor

    def track_offset(self, offset: int, length: int = 0) -> OffsetAnchor:
        anchor = OffsetAnchor(offset, length)
        self.track(anchor)
        return anchor

    def untrack(self, anchor: LineAnchor | OffsetAnchor) -> bool:
        pool: list = self._lines if isinstance(anchor, LineAnchor) else self._offsets
        for i, tracked in enumerate(pool):
            if tracked is anchor:
                del pool[i]
                return True
        return False

    def is_tracked(self, anchor: LineAnchor | OffsetAnchor) -> bool:
        pool: list = self._lines if isinstance(anchor, LineAnchor) else self._offsets
        return any(tracked is anchor for tracked in pool)

    def lines_inserted(self, at_line: int, count: int) -> list[LineAnchor]:
        """Shift anchors at or below ``at_line`` down by ``count``; return the moved anchors."""
        if count <= 0:
            return []
        moved = [a for a in self._lines if a.line >= at_line]
        for anchor in moved:
            anchor.line += count
        return moved

    def lines_deleted(self, at_line: int, count: int) -> tuple[list[LineAnchor], list[LineAnchor]]:
        """Drop anchors on the deleted lines and pull later anchors up.

        Returns ``(removed, moved)``.
        """
        if count <= 0:
            return [], []
        last_deleted = at_line + count - 1
        removed = [a for a in self._lines if at_line <= a.line <= last_deleted]
        self._lines = [a for a in self._lines if not at_line <= a.line <= last_deleted]
        moved = [a for a in self._lines if a.line > last_deleted]
        for anchor in moved:
            anchor.line -= count
        return removed, moved

    def characters_inserted(self, at_offset: int, length: int) -> list[OffsetAnchor]:
        if length <= 0:
            return []
        moved = [a for a in self._offsets if a.offset >= at_offset]
        for anchor in moved:
            anchor.offset += length
        return moved

    def characters_deleted(self, at_offset: int, length: int) -> list[OffsetAnchor]:
        """Pull anchors after the removed range left; clip anchors overlapping it."""
        if length <= 0:
            return []
        removed_end = at_offset + length
        moved: list[OffsetAnchor] = []
        for anchor in self._offsets:
            if anchor.offset >= removed_end:
                anchor.offset -= length
            elif anchor.offset >= at_offset:
                anchor.length = max(0, anchor.end - removed_end)
                anchor.offset = at_offset
            elif anchor.end > at_offset:
                anchor.length -= min(anchor.end, removed_end) - at_offset
            else:
                continue
            moved.append(anchor)
        return moved
