"""Watermark Eraser - mask-guided watermark removal with lossless compositing."""

__version__ = "1.0.0"

from .application import EditingSession, WatermarkRemovalService
from .domain import (
    CoordinateMapper,
    DisplayBox,
    Mask,
    Point,
    ProcessingConfig,
    ProcessingResult,
    ProcessingStatus,
    ProcessMode,
    Rect,
)
from .domain.services import ModeController, SelectionModel, composite, rasterize
from .exceptions import (
    WatermarkEraserError,
    ConfigurationError,
    ValidationError,
    SubmissionInProgressError,
    ImageProcessingError,
    DecodeError,
    CompositingError,
    ExternalServiceError,
)
from .utils.env import setup_logging

__all__ = [
    '__version__',
    'EditingSession',
    'WatermarkRemovalService',
    'CoordinateMapper',
    'DisplayBox',
    'Mask',
    'Point',
    'ProcessingConfig',
    'ProcessingResult',
    'ProcessingStatus',
    'ProcessMode',
    'Rect',
    'ModeController',
    'SelectionModel',
    'composite',
    'rasterize',
    'setup_logging',
    # Exceptions
    'WatermarkEraserError',
    'ConfigurationError',
    'ValidationError',
    'SubmissionInProgressError',
    'ImageProcessingError',
    'DecodeError',
    'CompositingError',
    'ExternalServiceError',
]
