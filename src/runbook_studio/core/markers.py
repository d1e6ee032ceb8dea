from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Generic, TypeVar, overload

from runbook_studio.core.observable import Signal
from runbook_studio.core.positions import OffsetAnchor, PositionTracker

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _StyleAttribute(Generic[T]):
    """Marker attribute that requests a redraw only when its value changes."""

    def __set_name__(self, owner: type, name: str) -> None:
        self._slot = f"_{name}"

    @overload
    def __get__(self, instance: None, owner: type) -> _StyleAttribute[T]: ...

    @overload
    def __get__(self, instance: TextMarker, owner: type) -> T | None: ...

    def __get__(self, instance: TextMarker | None, owner: type) -> Any:
        if instance is None:
            return self
        return getattr(instance, self._slot, None)

    def __set__(self, instance: TextMarker, value: T | None) -> None:
        if getattr(instance, self._slot, None) == value:
            return
        setattr(instance, self._slot, value)
        instance._redraw()


class TextMarker:
    """Styled span over the buffer, consumed by the rendering surface.

    The span lives in the owning service's position tracker, so ``start_offset``
    and ``length`` follow character edits. Changing a styling attribute asks the
    service for exactly one redraw; ``tag`` and ``tooltip`` are plain data.
    """

    background_color: _StyleAttribute[str] = _StyleAttribute()
    foreground_color: _StyleAttribute[str] = _StyleAttribute()
    font_weight: _StyleAttribute[str] = _StyleAttribute()
    font_style: _StyleAttribute[str] = _StyleAttribute()
    marker_color: _StyleAttribute[str] = _StyleAttribute()

    def __init__(self, service: TextMarkerService, anchor: OffsetAnchor) -> None:
        self._service = service
        self.anchor = anchor
        self.tag: Any = None
        self.tooltip: Any = None
        self.deleted = Signal("marker-deleted")

    @property
    def start_offset(self) -> int:
        return self.anchor.offset

    @start_offset.setter
    def start_offset(self, value: int) -> None:
        self.anchor.offset = value

    @property
    def length(self) -> int:
        return self.anchor.length

    @length.setter
    def length(self, value: int) -> None:
        self.anchor.length = value

    @property
    def end_offset(self) -> int:
        return self.anchor.end

    @property
    def is_deleted(self) -> bool:
        return not self._service.contains(self)

    def delete(self) -> None:
        self._service.remove(self)

    def _redraw(self) -> None:
        self._service.redraw(self)

    def __repr__(self) -> str:
        return f"TextMarker(start_offset={self.start_offset}, length={self.length}, tag={self.tag!r})"


class TextMarkerService:
    """Owns span tracking for text markers and relays their redraw requests."""

    def __init__(self, tracker: PositionTracker | None = None) -> None:
        self.tracker = tracker or PositionTracker()
        self._markers: list[TextMarker] = []
        self.redraw_requested = Signal("marker-redraw")

    @property
    def markers(self) -> list[TextMarker]:
        return list(self._markers)

    def create(self, start_offset: int, length: int) -> TextMarker:
        return self.create_for(self.tracker.track_offset(start_offset, length))

    def create_for(self, anchor: OffsetAnchor) -> TextMarker:
        """Create a marker over an existing span; the span is tracked if it is not already."""
        self.tracker.track(anchor)
        marker = TextMarker(self, anchor)
        self._markers.append(marker)
        return marker

    def contains(self, marker: TextMarker) -> bool:
        return any(m is marker for m in self._markers)

    def remove(self, marker: TextMarker) -> bool:
        if not self.contains(marker):
            return False
        self._markers = [m for m in self._markers if m is not marker]
        self.tracker.untrack(marker.anchor)
        logger.debug("Removed marker at %d (+%d)", marker.start_offset, marker.length)
        self.redraw(marker)
        marker.deleted.emit(marker)
        return True

    def remove_all(self, predicate: Callable[[TextMarker], bool] | None = None) -> int:
        doomed = [m for m in self._markers if predicate is None or predicate(m)]
        for marker in doomed:
            self.remove(marker)
        return len(doomed)

    def markers_at(self, offset: int) -> list[TextMarker]:
        return [m for m in self._markers if m.start_offset <= offset <= m.end_offset]

    def redraw(self, marker: TextMarker) -> None:
        self.redraw_requested.emit(marker)
