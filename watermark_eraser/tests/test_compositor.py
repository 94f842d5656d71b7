"""Tests for compositing the generated image back into the original."""

import base64

import numpy as np
import pytest
from PIL import Image

from watermark_eraser.domain.entities.image import Mask
from watermark_eraser.domain.services.compositor import (
    blend_source_over,
    composite,
    load_images,
    mask_alpha,
    resample,
)
from watermark_eraser.domain.services.mask_rasterizer import rasterize
from watermark_eraser.domain.value_objects.geometry import Rect
from watermark_eraser.exceptions import CompositingError, DecodeError

from .conftest import noise, png_bytes, solid


def as_array(image: Image.Image) -> np.ndarray:
    return np.asarray(image)


class TestComposite:
    """End-to-end compositing guarantees."""
    
    def test_red_block_over_noise(self, original_100, red_100):
        """Solid red inside (10,10)-(30,30), original everywhere else."""
        mask = rasterize([Rect(10, 10, 20, 20)], 100, 100)
        
        out = as_array(composite(original_100, mask, red_100))
        orig = as_array(original_100)
        
        assert out.shape == orig.shape
        assert (out[10:30, 10:30] == (255, 0, 0)).all()
        keep = mask.data == Mask.PRESERVE
        np.testing.assert_array_equal(out[keep], orig[keep])
    
    def test_preserve_exact_with_noisy_replacement(self):
        original = noise((64, 48), seed=2)
        replacement = noise((64, 48), seed=3)
        rects = [Rect(5, 5, 20, 10), Rect(30, 20, 25, 25)]
        mask = rasterize(rects, 64, 48)
        
        out = as_array(composite(original, mask, replacement))
        
        keep = mask.data == Mask.PRESERVE
        take = mask.data == Mask.REPLACE
        np.testing.assert_array_equal(out[keep], as_array(original)[keep])
        np.testing.assert_array_equal(out[take], as_array(replacement)[take])
    
    def test_mismatched_resolution(self):
        """50x50 original, 100x100 replacement: output is 50x50."""
        original = noise((50, 50), seed=4)
        replacement = noise((100, 100), seed=5)
        mask = rasterize([Rect(10, 10, 20, 20)], 50, 50)
        
        out = composite(original, mask, replacement)
        
        assert out.size == (50, 50)
        expected = as_array(resample(replacement, (50, 50)))
        arr = as_array(out)
        take = mask.data == Mask.REPLACE
        keep = ~take
        np.testing.assert_array_equal(arr[take], expected[take])
        np.testing.assert_array_equal(arr[keep], as_array(original)[keep])
    
    def test_mismatched_mask_resolution(self):
        """A half-size mask is stretched with nearest neighbour."""
        original = noise((40, 40), seed=6)
        small_mask = rasterize([Rect(0, 0, 10, 20)], 20, 20)
        
        out = as_array(composite(original, small_mask, solid((40, 40), (0, 0, 255))))
        
        assert (out[:, :20] == (0, 0, 255)).all()
        np.testing.assert_array_equal(out[:, 20:], as_array(original)[:, 20:])
    
    def test_empty_mask_returns_original(self, original_100, red_100):
        out = composite(original_100, Mask.blank(100, 100), red_100)
        np.testing.assert_array_equal(as_array(out), as_array(original_100))
    
    def test_encoded_inputs(self, original_100, red_100):
        """Bytes, data URLs and mask images decode like PIL inputs."""
        mask = rasterize([Rect(10, 10, 20, 20)], 100, 100)
        data_url = "data:image/png;base64," + base64.b64encode(png_bytes(red_100)).decode()
        
        out = composite(png_bytes(original_100), mask.to_png(), data_url)
        
        expected = composite(original_100, mask, red_100)
        np.testing.assert_array_equal(as_array(out), as_array(expected))
    
    def test_rgb_mask_image(self, original_100, red_100):
        """A black/white RGB mask behaves like the two-class mask."""
        mask = rasterize([Rect(10, 10, 20, 20)], 100, 100)
        rgb_mask = mask.to_image().convert("RGB")
        
        out = composite(original_100, rgb_mask, red_100)
        
        expected = composite(original_100, mask, red_100)
        np.testing.assert_array_equal(as_array(out), as_array(expected))
    
    def test_partial_mask_blends(self):
        original = solid((4, 4), (0, 0, 0))
        replacement = solid((4, 4), (200, 100, 50))
        mask = Mask(np.full((4, 4), 128, dtype=np.uint8))
        
        out = as_array(composite(original, mask, replacement))
        
        # 128/255 of the replacement over black
        assert tuple(out[0, 0]) == (100, 50, 25)
    
    def test_rgba_original_keeps_alpha(self):
        data = np.zeros((10, 10, 4), dtype=np.uint8)
        data[..., 0] = 7
        data[..., 3] = 0  # fully transparent, still preserved exactly
        original = Image.fromarray(data)
        mask = rasterize([Rect(0, 0, 5, 10)], 10, 10)
        
        out = composite(original, mask, solid((10, 10), (9, 9, 9)))
        
        assert out.mode == "RGBA"
        arr = as_array(out)
        np.testing.assert_array_equal(arr[:, 5:], data[:, 5:])
        assert (arr[:, :5] == (9, 9, 9, 255)).all()
    
    def test_inputs_not_mutated(self, original_100, red_100):
        before_orig = as_array(original_100).copy()
        before_red = as_array(red_100).copy()
        mask = rasterize([Rect(10, 10, 20, 20)], 100, 100)
        before_mask = mask.data.copy()
        
        composite(original_100, mask, red_100)
        
        np.testing.assert_array_equal(as_array(original_100), before_orig)
        np.testing.assert_array_equal(as_array(red_100), before_red)
        np.testing.assert_array_equal(mask.data, before_mask)
    
    def test_undecodable_replacement(self, original_100):
        mask = rasterize([Rect(10, 10, 20, 20)], 100, 100)
        with pytest.raises(DecodeError) as exc_info:
            composite(original_100, mask, b"not an image")
        assert exc_info.value.image_role == "replacement"
    
    def test_blend_failure_is_compositing_error(self, original_100, red_100, monkeypatch):
        def boom(*args, **kwargs):
            raise MemoryError("out of memory")
        
        monkeypatch.setattr(
            "watermark_eraser.domain.services.compositor.blend_source_over", boom
        )
        mask = rasterize([Rect(10, 10, 20, 20)], 100, 100)
        with pytest.raises(CompositingError):
            composite(original_100, mask, red_100)


class TestLoadImages:
    """Concurrent decoding of the three inputs."""
    
    def test_returns_in_order(self, original_100, red_100):
        mask_img = Mask.blank(100, 100).to_image()
        orig, mask, repl = load_images(png_bytes(original_100), mask_img, red_100)
        assert orig.size == (100, 100)
        assert mask.mode == "L"
        assert repl.getpixel((0, 0)) == (255, 0, 0)
    
    def test_missing_file(self, tmp_path, red_100):
        with pytest.raises(DecodeError) as exc_info:
            load_images(red_100, tmp_path / "missing_mask.png", red_100)
        assert exc_info.value.image_role == "mask"


class TestBlendSourceOver:
    """Pixel-level blending rules."""
    
    def test_zero_and_full_alpha_exact(self):
        base = np.array([[[10, 20, 30, 255], [40, 50, 60, 255]]], dtype=np.uint8)
        layer = np.array([[[1, 2, 3, 255], [4, 5, 6, 255]]], dtype=np.uint8)
        alpha = np.array([[0, 255]], dtype=np.uint8)
        
        out = blend_source_over(base, layer, alpha)
        
        assert tuple(out[0, 0]) == (10, 20, 30, 255)
        assert tuple(out[0, 1]) == (4, 5, 6, 255)
    
    def test_transparent_layer_pixel_keeps_base(self):
        base = np.array([[[10, 20, 30, 255]]], dtype=np.uint8)
        layer = np.array([[[1, 2, 3, 0]]], dtype=np.uint8)
        out = blend_source_over(base, layer, np.array([[255]], dtype=np.uint8))
        assert tuple(out[0, 0]) == (10, 20, 30, 255)


class TestMaskAlpha:
    
    def test_same_size_passthrough(self):
        mask = rasterize([Rect(0, 0, 2, 2)], 4, 4)
        assert mask_alpha(mask, (4, 4)) is mask.data
    
    def test_stretched_stays_binary(self):
        mask = rasterize([Rect(1, 1, 2, 2)], 4, 4)
        alpha = mask_alpha(mask, (13, 7))
        assert alpha.shape == (7, 13)
        assert set(np.unique(alpha)) <= {0, 255}
