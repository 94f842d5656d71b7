"""Domain layer - selection, mask and compositing logic."""

from .entities.image import Mask, ProcessingResult, decode_image, encode_png
from .value_objects.config import ProcessingConfig, ProcessMode, ProcessingStatus
from .value_objects.geometry import Point, DisplayPoint, DisplayBox, Rect, CoordinateMapper

__all__ = [
    # Entities
    'Mask',
    'ProcessingResult',
    'decode_image',
    'encode_png',
    # Value Objects
    'ProcessingConfig',
    'ProcessMode',
    'ProcessingStatus',
    'Point',
    'DisplayPoint',
    'DisplayBox',
    'Rect',
    'CoordinateMapper',
]
