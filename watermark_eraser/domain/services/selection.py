"""Selection model - user-drawn rectangles in image space."""

from __future__ import annotations

import logging

from ...config import MIN_SELECTION_SIZE
from ..value_objects.geometry import Point, Rect

logger = logging.getLogger(__name__)


class SelectionModel:
    """Ordered committed rectangles plus at most one in-progress drag.
    
    The committed list is owned here and only changes through
    ``end``/``undo``/``clear``; readers get tuple snapshots, so a snapshot
    taken before a submission is unaffected by later edits.
    """
    
    def __init__(self, min_size: float = MIN_SELECTION_SIZE):
        self._min_size = min_size
        self._rects: list[Rect] = []
        self._anchor: Point | None = None
        self._current: Rect | None = None
    
    @property
    def rects(self) -> tuple[Rect, ...]:
        """Committed rectangles in drawing order."""
        return tuple(self._rects)
    
    @property
    def in_progress(self) -> Rect | None:
        return self._current
    
    @property
    def is_dragging(self) -> bool:
        return self._anchor is not None
    
    @property
    def is_empty(self) -> bool:
        return not self._rects
    
    def __len__(self) -> int:
        return len(self._rects)
    
    def start(self, point: Point) -> None:
        """Begin a drag anchored at ``point``."""
        self._anchor = point
        self._current = Rect(point.x, point.y, 0, 0)
    
    def move(self, point: Point) -> None:
        """Stretch the in-progress rect to ``point``. Ignored when not dragging."""
        if self._anchor is None:
            return
        self._current = Rect.from_corners(self._anchor, point)
    
    def end(self) -> Rect | None:
        """Finish the drag, committing the rect if it is large enough.
        
        Returns:
            The committed rect, or None if nothing was committed
        """
        rect = self._current
        self._anchor = None
        self._current = None
        
        if rect is None:
            return None
        if not rect.exceeds(self._min_size):
            logger.debug(f"Discarded selection {rect.width:.1f}x{rect.height:.1f}")
            return None
        
        self._rects.append(rect)
        return rect
    
    def cancel(self) -> None:
        """Drop the in-progress drag without committing it."""
        self._anchor = None
        self._current = None
    
    def undo(self) -> Rect | None:
        """Remove the most recently committed rect, if any."""
        if not self._rects:
            return None
        return self._rects.pop()
    
    def clear(self) -> None:
        """Remove all committed rects and any in-progress drag."""
        self._rects.clear()
        self.cancel()
