"""Application layer - use cases and orchestration."""

from .services.watermark_removal import WatermarkRemovalService
from .services.editing_session import EditingSession

__all__ = ['WatermarkRemovalService', 'EditingSession']
