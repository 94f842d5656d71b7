"""Domain services - selection, masking and compositing."""

from .selection import SelectionModel
from .mode_controller import ModeController
from .mask_rasterizer import rasterize, rect_pixel_bounds
from .compositor import composite, load_images, resample, blend_source_over
from .preview import render_preview

__all__ = [
    'SelectionModel',
    'ModeController',
    'rasterize',
    'rect_pixel_bounds',
    'composite',
    'load_images',
    'resample',
    'blend_source_over',
    'render_preview',
]
