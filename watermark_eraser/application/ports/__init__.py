"""Ports - interfaces for external dependencies (Dependency Inversion)."""

from .image_model import ImageModel
from .event_publisher import EventPublisher, ProcessingEvent, SimpleEventPublisher

__all__ = [
    'ImageModel',
    'EventPublisher',
    'ProcessingEvent',
    'SimpleEventPublisher',
]
