"""Image Model port - interface for the generative watermark-removal backend."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ...domain.value_objects.config import ProcessMode


@runtime_checkable
class ImageModel(Protocol):
    """Port for generative image backends.
    
    Implementations: Gemini, test doubles, third-party plugins.
    """
    
    @property
    def name(self) -> str:
        """Backend/model name."""
        ...
    
    def generate(
        self,
        image_png: bytes,
        mode: ProcessMode,
        mask_png: bytes | None = None
    ) -> bytes:
        """Produce a replacement image.
        
        Args:
            image_png: Original image, PNG encoded
            mode: Processing mode, selects the instruction sent
            mask_png: Two-tone PNG mask (white = remove), manual mode only
            
        Returns:
            Encoded replacement image; its resolution may differ from the input
            
        Raises:
            ExternalServiceError: If the call fails or returns no image
        """
        ...
