"""Image entities - masks, decoded inputs and processing results."""

from __future__ import annotations

import base64
import binascii
import io
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np
import numpy.typing as npt
from PIL import Image, UnidentifiedImageError

from ...config import OUTPUT_FORMAT
from ...exceptions import DecodeError, ValidationError
from ..value_objects.config import ProcessMode

# Anything the decoder accepts: encoded bytes, a data URL or file path, or a
# decoded PIL image
ImageSource = Union[bytes, str, Path, Image.Image, "Mask"]

_DATA_URL_RE = re.compile(r"^data:image/[\w.+-]+;base64,", re.IGNORECASE)


def strip_data_url(data: str) -> str:
    """Remove a ``data:image/...;base64,`` prefix if present."""
    return _DATA_URL_RE.sub("", data, count=1)


def decode_image(source: ImageSource, role: str | None = None) -> Image.Image:
    """Decode an image source into a fully loaded PIL image.
    
    Args:
        source: Encoded bytes, base64 data URL, file path or PIL image
        role: Name of the input, used in error messages
        
    Returns:
        Loaded PIL image (a copy when a PIL image was passed in)
        
    Raises:
        DecodeError: If the source cannot be read or decoded
    """
    if isinstance(source, Mask):
        return source.to_image()
    if isinstance(source, Image.Image):
        return source.copy()
    
    try:
        if isinstance(source, (bytes, bytearray)):
            img = Image.open(io.BytesIO(source))
        elif isinstance(source, str) and _DATA_URL_RE.match(source):
            raw = base64.b64decode(strip_data_url(source), validate=True)
            img = Image.open(io.BytesIO(raw))
        elif isinstance(source, (str, Path)):
            img = Image.open(Path(source))
        else:
            raise DecodeError(
                f"Unsupported image source type: {type(source).__name__}",
                image_role=role
            )
        img.load()
    except DecodeError:
        raise
    except (
        OSError,
        UnidentifiedImageError,
        Image.DecompressionBombError,
        binascii.Error,
        ValueError,
    ) as e:
        raise DecodeError(f"Failed to decode image: {e}", image_role=role) from e
    return img


def encode_png(image: Image.Image) -> bytes:
    """Encode an image losslessly as PNG bytes."""
    buf = io.BytesIO()
    image.save(buf, format=OUTPUT_FORMAT)
    return buf.getvalue()


@dataclass(frozen=True, slots=True)
class Mask:
    """Two-class raster marking pixels to preserve (0) or replace (255).
    
    ``data`` is a single-plane uint8 array of shape (height, width).
    Values other than PRESERVE/REPLACE are tolerated and act as partial
    opacity when compositing.
    """
    data: npt.NDArray[np.uint8]
    
    PRESERVE = 0
    REPLACE = 255
    
    def __post_init__(self) -> None:
        if self.data.ndim != 2 or self.data.dtype != np.uint8:
            raise ValidationError(
                f"Mask must be a 2D uint8 array, got {self.data.ndim}D {self.data.dtype}",
                field="mask"
            )
    
    @property
    def width(self) -> int:
        return self.data.shape[1]
    
    @property
    def height(self) -> int:
        return self.data.shape[0]
    
    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)
    
    @property
    def replace_count(self) -> int:
        """Number of pixels marked for replacement."""
        return int(np.count_nonzero(self.data == self.REPLACE))
    
    @property
    def is_empty(self) -> bool:
        return not self.data.any()
    
    @property
    def is_binary(self) -> bool:
        """Check that every pixel is either PRESERVE or REPLACE."""
        return bool(np.isin(self.data, (self.PRESERVE, self.REPLACE)).all())
    
    def to_image(self) -> Image.Image:
        """Black/white single-band ('L') image of the mask."""
        return Image.fromarray(self.data)
    
    def to_png(self) -> bytes:
        """Lossless wire encoding of the mask."""
        return encode_png(self.to_image())
    
    @classmethod
    def from_image(cls, image: Image.Image) -> Mask:
        """Build a mask from pixels.
        
        Single-band images are used as they are; for multi-band images the
        green band stands in for brightness. Transparency is ignored.
        """
        if len(image.getbands()) == 1 and image.mode != "P":
            plane = image.convert("L")
        else:
            plane = image.convert("RGB").getchannel("G")
        return cls(np.asarray(plane, dtype=np.uint8).copy())
    
    @classmethod
    def blank(cls, width: int, height: int) -> Mask:
        """All-preserve mask."""
        return cls(np.full((height, width), cls.PRESERVE, dtype=np.uint8))


@dataclass(frozen=True, slots=True)
class ProcessingResult:
    """Result of a watermark-removal submission.
    
    ``mask_image`` is only set for manual submissions. ``composited`` is
    False whenever the processed image is the backend's raw output, either
    because the mode does not composite or because compositing failed.
    """
    original_image: Image.Image
    processed_image: Image.Image
    mode: ProcessMode
    mask_image: Mask | None = None
    composited: bool = False
    processing_time_ms: float = 0.0
    
    @property
    def degraded(self) -> bool:
        """True when a manual submission fell back to the raw replacement."""
        return self.mask_image is not None and not self.composited
    
    def to_png(self) -> bytes:
        """Encode the processed image for display or export."""
        return encode_png(self.processed_image)
    
    def save(self, path: Path | str) -> None:
        """Save the processed image losslessly."""
        self.processed_image.save(Path(path), format=OUTPUT_FORMAT)
