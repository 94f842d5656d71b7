"""Geometry value objects.

Two coordinate spaces are in play: display space (pointer positions on the
rendered canvas) and image space (pixels of the image at native resolution).
``DisplayPoint`` and ``Point`` keep them apart; ``CoordinateMapper`` is the
only way to cross from one to the other.
"""

from __future__ import annotations

from dataclasses import dataclass

from ...exceptions import ValidationError


@dataclass(frozen=True, slots=True)
class Point:
    """2D point in image-pixel space (real-valued)."""
    x: float
    y: float
    
    def clamped(self, width: int, height: int) -> Point:
        """Return the point clamped to an image of the given size."""
        return Point(
            min(max(self.x, 0.0), float(width)),
            min(max(self.y, 0.0), float(height))
        )


@dataclass(frozen=True, slots=True)
class DisplayPoint:
    """2D point in display space (e.g. pointer client coordinates)."""
    x: float
    y: float


@dataclass(frozen=True, slots=True)
class DisplayBox:
    """On-screen bounding box of the rendered canvas, in display pixels."""
    left: float
    top: float
    width: float
    height: float


@dataclass(frozen=True, slots=True)
class Rect:
    """Axis-aligned rectangle in image-pixel space."""
    x: float
    y: float
    width: float
    height: float
    
    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValidationError(
                f"Rect size must be non-negative, got {self.width}x{self.height}",
                field="rect"
            )
    
    @property
    def right(self) -> float:
        return self.x + self.width
    
    @property
    def bottom(self) -> float:
        return self.y + self.height
    
    @property
    def area(self) -> float:
        return self.width * self.height
    
    def exceeds(self, min_size: float) -> bool:
        """Check that both sides are strictly larger than ``min_size``."""
        return self.width > min_size and self.height > min_size
    
    @classmethod
    def from_corners(cls, a: Point, b: Point) -> Rect:
        """Create the bounding box of two points."""
        return cls(
            min(a.x, b.x),
            min(a.y, b.y),
            abs(b.x - a.x),
            abs(b.y - a.y)
        )
    
    @classmethod
    def parse(cls, text: str) -> Rect:
        """Parse an ``X,Y,W,H`` string."""
        parts = [p.strip() for p in text.split(',')]
        if len(parts) != 4:
            raise ValidationError(f"Expected X,Y,W,H, got '{text}'", field="rect")
        try:
            x, y, w, h = (float(p) for p in parts)
        except ValueError as e:
            raise ValidationError(f"Invalid rect '{text}': {e}", field="rect") from e
        return cls(x, y, w, h)


@dataclass(frozen=True, slots=True)
class CoordinateMapper:
    """Map display-space pointer coordinates to image-pixel space.
    
    Only the native image size is held here; the display box is passed on
    every call because it changes whenever the canvas is resized.
    """
    native_width: int
    native_height: int
    
    def to_image_space(
        self,
        client_x: float,
        client_y: float,
        display_box: DisplayBox
    ) -> Point:
        """Convert pointer coordinates to image pixels.
        
        No clamping is applied; points outside the canvas map to coordinates
        outside the image.
        
        Raises:
            ValidationError: If the display box has zero width or height
        """
        if display_box.width <= 0 or display_box.height <= 0:
            raise ValidationError(
                f"Display box must have a positive size, got "
                f"{display_box.width}x{display_box.height}",
                field="display_box"
            )
        scale_x = self.native_width / display_box.width
        scale_y = self.native_height / display_box.height
        return Point(
            (client_x - display_box.left) * scale_x,
            (client_y - display_box.top) * scale_y
        )
    
    def map_point(self, point: DisplayPoint, display_box: DisplayBox) -> Point:
        """Convert a ``DisplayPoint`` to image pixels."""
        return self.to_image_space(point.x, point.y, display_box)
