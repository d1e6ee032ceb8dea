from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum

from runbook_studio.core.markers import TextMarker, TextMarkerService
from runbook_studio.core.observable import Signal
from runbook_studio.core.positions import LineAnchor, OffsetAnchor
from runbook_studio.models import ParseDiagnostic

logger = logging.getLogger(__name__)


class BookmarkKind(str, Enum):
    BREAKPOINT = "breakpoint"
    PARSE_ERROR = "parse_error"
    CURRENT_DEBUG_POINT = "current_debug_point"


LINE_KINDS = frozenset({BookmarkKind.BREAKPOINT, BookmarkKind.CURRENT_DEBUG_POINT})

_DEFAULT_STYLES: dict[BookmarkKind, dict[str, str]] = {
    BookmarkKind.BREAKPOINT: {"background_color": "#5a1e1e"},
    BookmarkKind.CURRENT_DEBUG_POINT: {"background_color": "#5a5a1e"},
    BookmarkKind.PARSE_ERROR: {"marker_color": "#ff0000"},
}


@dataclass(eq=False)
class Bookmark:
    kind: BookmarkKind
    anchor: LineAnchor | OffsetAnchor
    message: str = ""
    marker: TextMarker | None = field(default=None, repr=False)

    @classmethod
    def breakpoint(cls, line: int) -> Bookmark:
        return cls(BookmarkKind.BREAKPOINT, LineAnchor(line))

    @classmethod
    def debug_point(cls, line: int) -> Bookmark:
        return cls(BookmarkKind.CURRENT_DEBUG_POINT, LineAnchor(line))

    @classmethod
    def parse_error(cls, start_offset: int, length: int, message: str = "") -> Bookmark:
        return cls(BookmarkKind.PARSE_ERROR, OffsetAnchor(start_offset, length), message)

    @property
    def line_number(self) -> int | None:
        return self.anchor.line if isinstance(self.anchor, LineAnchor) else None

    @property
    def start_offset(self) -> int | None:
        return self.anchor.offset if isinstance(self.anchor, OffsetAnchor) else None

    @property
    def length(self) -> int | None:
        return self.anchor.length if isinstance(self.anchor, OffsetAnchor) else None


def is_line_bookmark(bookmark: Bookmark | None) -> bool:
    return bookmark is not None and bookmark.kind in LINE_KINDS


class AnnotationStore:
    """Owns the editor bookmarks and keeps them attached to their text.

    Breakpoints and the current debug point are anchored to whole lines; parse
    errors are anchored to character offsets. Every mutation emits at most one
    ``redraw_requested`` and one ``bookmark_changed(bookmark, removed)`` per
    affected bookmark. All calls are expected on the editor (UI) thread.
    """

    def __init__(
        self,
        markers: TextMarkerService | None = None,
        line_count: Callable[[], int] | None = None,
    ) -> None:
        self.markers = markers or TextMarkerService()
        self.tracker = self.markers.tracker
        self._line_count = line_count
        self._bookmarks: list[Bookmark] = []
        self.redraw_requested = Signal("redraw-requested")
        self.bookmark_changed = Signal("bookmark-changed")

    @property
    def bookmarks(self) -> list[Bookmark]:
        return list(self._bookmarks)

    def __len__(self) -> int:
        return len(self._bookmarks)

    def __contains__(self, bookmark: object) -> bool:
        return any(b is bookmark for b in self._bookmarks)

    def bookmarks_of(self, kind: BookmarkKind) -> list[Bookmark]:
        found = [b for b in self._bookmarks if b.kind == kind]
        if kind == BookmarkKind.PARSE_ERROR:
            found.sort(key=lambda b: b.anchor.offset)  # type: ignore[union-attr]
        return found

    def breakpoint_lines(self) -> list[int]:
        return sorted(b.anchor.line for b in self.bookmarks_of(BookmarkKind.BREAKPOINT))  # type: ignore[union-attr]

    def find(self, kind: BookmarkKind, line: int) -> Bookmark | None:
        for bookmark in self._bookmarks:
            if bookmark.kind == kind and bookmark.line_number == line:
                return bookmark
        return None

    # -- structural changes ---------------------------------------------------

    def add(self, bookmark: Bookmark) -> bool:
        if bookmark in self or not self._accepts(bookmark):
            return False
        self.tracker.track(bookmark.anchor)
        self._bookmarks.append(bookmark)
        if bookmark.marker is not None:
            self._watch_marker(bookmark, bookmark.marker)
        self.redraw_requested.emit()
        self.bookmark_changed.emit(bookmark, False)
        return True

    def remove(self, bookmark: Bookmark) -> bool:
        if bookmark not in self:
            return False
        self._discard(bookmark)
        self.redraw_requested.emit()
        self.bookmark_changed.emit(bookmark, True)
        return True

    def remove_at(self, kind: BookmarkKind, line: int) -> int:
        doomed = [b for b in self._bookmarks if b.kind == kind and b.line_number == line]
        for bookmark in doomed:
            self._discard(bookmark)
            self.bookmark_changed.emit(bookmark, True)
        if doomed:
            self.redraw_requested.emit()
        return len(doomed)

    def toggle_breakpoint(self, line: int) -> Bookmark | None:
        """Remove the breakpoint on ``line`` if there is one, otherwise set one.

        Returns the new breakpoint, or ``None`` when one was removed or the
        line is out of range.
        """
        if self.remove_at(BookmarkKind.BREAKPOINT, line):
            return None
        bookmark = Bookmark.breakpoint(line)
        return bookmark if self.add(bookmark) else None

    def set_debug_point(self, line: int) -> Bookmark | None:
        for previous in self.bookmarks_of(BookmarkKind.CURRENT_DEBUG_POINT):
            self.remove(previous)
        bookmark = Bookmark.debug_point(line)
        return bookmark if self.add(bookmark) else None

    def clear_debug_point(self) -> None:
        for previous in self.bookmarks_of(BookmarkKind.CURRENT_DEBUG_POINT):
            self.remove(previous)

    def replace_parse_errors(self, diagnostics: Iterable[ParseDiagnostic]) -> list[Bookmark]:
        """Reconcile parse-error bookmarks with the diagnostics of a fresh parse.

        Bookmarks whose diagnostic is still reported are kept as they are, stale
        ones are removed and one bookmark (with its marker) is created for each
        new diagnostic. Returns the parse-error bookmarks now in the store.
        """
        wanted: dict[tuple[int, int, str], ParseDiagnostic] = {}
        for diagnostic in diagnostics:
            wanted.setdefault((diagnostic.start_offset, diagnostic.length, diagnostic.message), diagnostic)

        changed = False
        for bookmark in self.bookmarks_of(BookmarkKind.PARSE_ERROR):
            key = (bookmark.anchor.offset, bookmark.anchor.length, bookmark.message)  # type: ignore[union-attr]
            if wanted.pop(key, None) is None:
                self._discard(bookmark)
                self.bookmark_changed.emit(bookmark, True)
                changed = True
            elif bookmark.marker is None:
                # still reported, but its marker was deleted elsewhere
                self._mark_parse_error(bookmark)
                changed = True

        for diagnostic in wanted.values():
            bookmark = Bookmark.parse_error(diagnostic.start_offset, diagnostic.length, diagnostic.message)
            self._bookmarks.append(bookmark)
            self._mark_parse_error(bookmark)
            self.bookmark_changed.emit(bookmark, False)
            changed = True

        if changed:
            self.redraw_requested.emit()
        return self.bookmarks_of(BookmarkKind.PARSE_ERROR)

    def attach_marker(self, bookmark: Bookmark, start_offset: int, length: int) -> TextMarker | None:
        """Give a stored line bookmark a styled marker over ``[start_offset, start_offset + length)``."""
        if bookmark not in self:
            return None
        if bookmark.marker is not None:
            bookmark.marker.delete()
        marker = self.markers.create(start_offset, length)
        marker.tag = bookmark
        bookmark.marker = marker
        self._watch_marker(bookmark, marker)
        self._style(marker, bookmark.kind)
        return marker

    # -- edit notifications ---------------------------------------------------

    def notify_lines_inserted(self, at_line: int, count: int) -> None:
        moved = self.tracker.lines_inserted(at_line, count)
        self._announce([], moved)

    def notify_lines_deleted(self, at_line: int, count: int) -> None:
        removed_anchors, moved = self.tracker.lines_deleted(at_line, count)
        removed = [b for b in self._bookmarks if any(b.anchor is a for a in removed_anchors)]
        for bookmark in removed:
            self._discard(bookmark)
        self._announce(removed, moved)

    def notify_characters_inserted(self, at_offset: int, length: int) -> None:
        moved = self.tracker.characters_inserted(at_offset, length)
        self._announce([], moved)

    def notify_characters_deleted(self, at_offset: int, length: int) -> None:
        moved = self.tracker.characters_deleted(at_offset, length)
        self._announce([], moved)

    # -- internals ------------------------------------------------------------

    def _accepts(self, bookmark: Bookmark) -> bool:
        if bookmark.kind in LINE_KINDS:
            line = bookmark.line_number
            if line is None or line < 1:
                return False
            if self._line_count is not None and line > self._line_count():
                return False
        if bookmark.kind == BookmarkKind.BREAKPOINT and self.find(BookmarkKind.BREAKPOINT, bookmark.line_number or 0):
            logger.debug("Breakpoint already set on line %s", bookmark.line_number)
            return False
        return True

    def _mark_parse_error(self, bookmark: Bookmark) -> TextMarker:
        marker = self.markers.create_for(bookmark.anchor)  # type: ignore[arg-type]
        marker.tooltip = bookmark.message
        marker.tag = bookmark
        bookmark.marker = marker
        self._style(marker, BookmarkKind.PARSE_ERROR)
        self._watch_marker(bookmark, marker)
        return marker

    def _discard(self, bookmark: Bookmark) -> None:
        self._bookmarks = [b for b in self._bookmarks if b is not bookmark]
        self.tracker.untrack(bookmark.anchor)
        marker, bookmark.marker = bookmark.marker, None
        if marker is not None:
            marker.delete()

    def _announce(self, removed: list[Bookmark], moved_anchors: list) -> None:
        moved = [b for b in self._bookmarks if any(b.anchor is a for a in moved_anchors)]
        for bookmark in removed:
            self.bookmark_changed.emit(bookmark, True)
        for bookmark in moved:
            self.bookmark_changed.emit(bookmark, False)
        if removed or moved:
            self.redraw_requested.emit()

    def _watch_marker(self, bookmark: Bookmark, marker: TextMarker) -> None:
        def _on_deleted(_: TextMarker) -> None:
            if bookmark.marker is marker:
                bookmark.marker = None
                # the marker shared its span with the bookmark; keep following edits
                if bookmark in self:
                    self.tracker.track(bookmark.anchor)

        marker.deleted.subscribe(_on_deleted)

    @staticmethod
    def _style(marker: TextMarker, kind: BookmarkKind) -> None:
        for name, value in _DEFAULT_STYLES[kind].items():
            setattr(marker, name, value)
