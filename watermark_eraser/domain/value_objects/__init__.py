"""Value objects - immutable data with validation."""

from .geometry import Point, DisplayPoint, DisplayBox, Rect, CoordinateMapper
from .config import ProcessingConfig, ProcessMode, ProcessingStatus

__all__ = [
    'Point',
    'DisplayPoint',
    'DisplayBox',
    'Rect',
    'CoordinateMapper',
    'ProcessingConfig',
    'ProcessMode',
    'ProcessingStatus',
]
