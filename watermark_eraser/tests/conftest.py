"""Shared fixtures for Watermark Eraser tests."""

import io

import numpy as np
import pytest
from PIL import Image

from watermark_eraser.domain.value_objects.config import ProcessMode


def png_bytes(image: Image.Image) -> bytes:
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


def solid(size: tuple[int, int], color=(255, 0, 0), mode: str = "RGB") -> Image.Image:
    return Image.new(mode, size, color)


def noise(size: tuple[int, int], seed: int = 0, mode: str = "RGB") -> Image.Image:
    """Deterministic random image, so every pixel differs from its neighbours."""
    rng = np.random.default_rng(seed)
    channels = len(mode)
    data = rng.integers(0, 256, size=(size[1], size[0], channels), dtype=np.uint8)
    return Image.fromarray(data)


class FakeImageModel:
    """ImageModel double that records calls and returns a fixed image."""
    
    def __init__(self, result: Image.Image | bytes | None = None, error: Exception | None = None):
        self.result = result if result is not None else solid((100, 100))
        self.error = error
        self.calls: list[tuple[bytes, ProcessMode, bytes | None]] = []
    
    @property
    def name(self) -> str:
        return "fake"
    
    def generate(self, image_png, mode, mask_png=None):
        self.calls.append((image_png, mode, mask_png))
        if self.error is not None:
            raise self.error
        if isinstance(self.result, bytes):
            return self.result
        return png_bytes(self.result)


@pytest.fixture
def original_100():
    """100x100 noise image."""
    return noise((100, 100), seed=1)


@pytest.fixture
def red_100():
    return solid((100, 100), (255, 0, 0))


@pytest.fixture
def fake_model(red_100):
    return FakeImageModel(red_100)
