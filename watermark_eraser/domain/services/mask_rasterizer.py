"""Mask rasterizer - render committed rectangles into a binary mask."""

from __future__ import annotations

import math
from typing import Iterable

import numpy as np

from ...exceptions import ValidationError
from ..entities.image import Mask
from ..value_objects.geometry import Rect


def _pixel_span(start: float, length: float, limit: int) -> tuple[int, int]:
    """Pixel indices [lo, hi) whose centres fall in [start, start + length)."""
    lo = math.ceil(start - 0.5)
    hi = math.ceil(start + length - 0.5)
    return max(0, lo), min(limit, hi)


def rect_pixel_bounds(rect: Rect, width: int, height: int) -> tuple[int, int, int, int]:
    """Integer pixel extent (x0, y0, x1, y1) covered by ``rect``, clipped.
    
    A pixel is covered when its centre lies inside the rect, so edges are
    hard and integer-aligned rects cover exactly width x height pixels.
    """
    x0, x1 = _pixel_span(rect.x, rect.width, width)
    y0, y1 = _pixel_span(rect.y, rect.height, height)
    return x0, y0, x1, y1


def rasterize(rects: Iterable[Rect], width: int, height: int) -> Mask:
    """Render rectangles into a mask of the given size.
    
    The raster starts all PRESERVE and every rect is filled with REPLACE.
    Fills only ever set REPLACE, so order does not matter and duplicate
    rects change nothing.
    
    Args:
        rects: Rectangles in image-pixel space
        width: Mask width (the original image's width)
        height: Mask height
        
    Returns:
        Hard-edged two-class mask
        
    Raises:
        ValidationError: If width or height is not positive
    """
    if width <= 0 or height <= 0:
        raise ValidationError(
            f"Mask size must be positive, got {width}x{height}",
            field="size"
        )
    
    data = np.full((height, width), Mask.PRESERVE, dtype=np.uint8)
    for rect in rects:
        x0, y0, x1, y1 = rect_pixel_bounds(rect, width, height)
        if x1 > x0 and y1 > y0:
            data[y0:y1, x0:x1] = Mask.REPLACE
    
    return Mask(data)
