"""Editor preview - render the selection overlay as a fresh raster."""

from __future__ import annotations

from typing import Iterable

from PIL import Image, ImageDraw

from ...config import PREVIEW_BORDER_COLOR, PREVIEW_BORDER_WIDTH, PREVIEW_DIM_ALPHA
from ..value_objects.config import ProcessMode
from ..value_objects.geometry import Rect
from .mask_rasterizer import rect_pixel_bounds


def render_preview(
    image: Image.Image,
    rects: Iterable[Rect],
    mode: ProcessMode,
    in_progress: Rect | None = None,
    display_scale: float = 1.0
) -> Image.Image:
    """Render what the editor canvas shows for the given state.
    
    Outside manual mode this is just a copy of the image. In manual mode the
    image is dimmed, every selection is shown undimmed and outlined.
    
    Args:
        image: Source image at native resolution
        rects: Committed selections
        mode: Active processing mode
        in_progress: Rect currently being dragged, if any
        display_scale: Display pixels per image pixel, keeps the outline
            the same on-screen width at any zoom
    """
    base = image.convert("RGB")
    if mode != ProcessMode.MANUAL:
        return base
    
    veil = Image.new("RGB", base.size, (0, 0, 0))
    canvas = Image.blend(base, veil, PREVIEW_DIM_ALPHA)
    
    shown = list(rects)
    if in_progress is not None:
        shown.append(in_progress)
    
    line_width = max(1, round(PREVIEW_BORDER_WIDTH / display_scale)) if display_scale > 0 else 1
    draw = ImageDraw.Draw(canvas)
    for rect in shown:
        x0, y0, x1, y1 = rect_pixel_bounds(rect, base.width, base.height)
        if x1 <= x0 or y1 <= y0:
            continue
        canvas.paste(base.crop((x0, y0, x1, y1)), (x0, y0))
        draw.rectangle(
            (x0, y0, x1 - 1, y1 - 1),
            outline=PREVIEW_BORDER_COLOR,
            width=line_width
        )
    
    return canvas
