"""Domain entities."""

from .image import (
    ImageSource,
    Mask,
    ProcessingResult,
    decode_image,
    encode_png,
    strip_data_url,
)

__all__ = [
    'ImageSource',
    'Mask',
    'ProcessingResult',
    'decode_image',
    'encode_png',
    'strip_data_url',
]
