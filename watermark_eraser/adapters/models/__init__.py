"""Image model adapters."""

from .gemini_adapter import GeminiImageModel

__all__ = ['GeminiImageModel']
