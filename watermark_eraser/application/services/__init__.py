"""Application services - orchestrate use cases."""

from .watermark_removal import WatermarkRemovalService
from .editing_session import EditingSession

__all__ = ['WatermarkRemovalService', 'EditingSession']
