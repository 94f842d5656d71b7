"""Tests for the watermark removal service."""

import io
import threading

import numpy as np
import pytest
from PIL import Image

from watermark_eraser.application.ports.event_publisher import SimpleEventPublisher
from watermark_eraser.application.services.watermark_removal import WatermarkRemovalService
from watermark_eraser.domain.entities.image import Mask
from watermark_eraser.domain.value_objects.config import ProcessingConfig, ProcessMode
from watermark_eraser.domain.value_objects.geometry import Rect
from watermark_eraser.exceptions import (
    CompositingError,
    DecodeError,
    ExternalServiceError,
    SubmissionInProgressError,
    ValidationError,
)

from .conftest import FakeImageModel, noise, png_bytes, solid


class TestManualSubmission:
    """Manual mode: mask is built, sent and used for compositing."""
    
    def test_composites_into_selection(self, original_100, fake_model):
        service = WatermarkRemovalService(fake_model)
        
        result = service.submit(original_100, [Rect(10, 10, 20, 20)], ProcessMode.MANUAL)
        
        assert result.composited
        assert not result.degraded
        assert result.mode == ProcessMode.MANUAL
        out = np.asarray(result.processed_image)
        orig = np.asarray(original_100)
        assert (out[10:30, 10:30] == (255, 0, 0)).all()
        keep = result.mask_image.data == Mask.PRESERVE
        np.testing.assert_array_equal(out[keep], orig[keep])
    
    def test_mask_sent_to_backend(self, original_100, fake_model):
        service = WatermarkRemovalService(fake_model)
        
        service.submit(original_100, [Rect(10, 10, 20, 20)], "manual")
        
        image_png, mode, mask_png = fake_model.calls[0]
        assert mode == ProcessMode.MANUAL
        sent_mask = Image.open(io.BytesIO(mask_png))
        assert sent_mask.size == (100, 100)
        assert np.count_nonzero(np.asarray(sent_mask)) == 400
        sent_image = np.asarray(Image.open(io.BytesIO(image_png)))
        np.testing.assert_array_equal(sent_image, np.asarray(original_100))
    
    def test_empty_selection_rejected_before_call(self, original_100, fake_model):
        service = WatermarkRemovalService(fake_model)
        
        with pytest.raises(ValidationError) as exc_info:
            service.submit(original_100, [], ProcessMode.MANUAL)
        
        assert exc_info.value.field == "selection"
        assert fake_model.calls == []
        assert not service.is_busy
    
    def test_mismatched_replacement_resampled(self):
        original = noise((50, 50), seed=7)
        model = FakeImageModel(solid((100, 100), (0, 255, 0)))
        service = WatermarkRemovalService(model)
        
        result = service.submit(original, [Rect(10, 10, 20, 20)], ProcessMode.MANUAL)
        
        assert result.processed_image.size == (50, 50)
        assert result.composited
    
    def test_compositing_failure_falls_back(self, original_100, red_100, fake_model, monkeypatch):
        def broken(*args, **kwargs):
            raise CompositingError("canvas exploded")
        
        monkeypatch.setattr(
            "watermark_eraser.application.services.watermark_removal.composite", broken
        )
        service = WatermarkRemovalService(fake_model)
        
        result = service.submit(original_100, [Rect(10, 10, 20, 20)], ProcessMode.MANUAL)
        
        assert not result.composited
        assert result.degraded
        np.testing.assert_array_equal(
            np.asarray(result.processed_image), np.asarray(red_100)
        )
    
    def test_decode_failure_falls_back(self, original_100, red_100, fake_model, monkeypatch):
        def broken(*args, **kwargs):
            raise DecodeError("bad pixels", image_role="mask")
        
        monkeypatch.setattr(
            "watermark_eraser.application.services.watermark_removal.composite", broken
        )
        service = WatermarkRemovalService(fake_model)
        
        result = service.submit(original_100, [Rect(10, 10, 20, 20)], ProcessMode.MANUAL)
        
        assert result.degraded
        assert result.processed_image.size == red_100.size


class TestWholeImageModes:
    """Auto and tiled modes never build a mask or composite."""
    
    @pytest.mark.parametrize("mode", [ProcessMode.AUTO, ProcessMode.TILED])
    def test_no_mask_raw_output(self, mode):
        replacement = noise((80, 60), seed=8)
        model = FakeImageModel(replacement)
        service = WatermarkRemovalService(model)
        
        result = service.submit(noise((100, 100), seed=9), [Rect(0, 0, 50, 50)], mode)
        
        assert model.calls[0][1] == mode
        assert model.calls[0][2] is None
        assert result.mask_image is None
        assert not result.composited
        assert not result.degraded
        np.testing.assert_array_equal(
            np.asarray(result.processed_image), np.asarray(replacement)
        )
    
    def test_auto_without_selection(self, original_100, fake_model):
        service = WatermarkRemovalService(fake_model)
        result = service.submit(original_100)
        assert result.mode == ProcessMode.AUTO
        assert len(fake_model.calls) == 1
    
    def test_mode_from_config(self, original_100, fake_model):
        service = WatermarkRemovalService(fake_model, ProcessingConfig(mode="tiled"))
        result = service.submit(original_100)
        assert result.mode == ProcessMode.TILED


class TestServiceErrors:
    """Backend failures propagate; nothing to fall back to."""
    
    def test_backend_error_propagates(self, original_100):
        error = ExternalServiceError("quota exceeded", model_id="fake")
        service = WatermarkRemovalService(FakeImageModel(error=error))
        
        with pytest.raises(ExternalServiceError) as exc_info:
            service.submit(original_100, [Rect(10, 10, 20, 20)], ProcessMode.MANUAL)
        
        assert exc_info.value is error
        assert not service.is_busy
    
    def test_empty_response(self, original_100):
        service = WatermarkRemovalService(FakeImageModel(b""))
        with pytest.raises(ExternalServiceError):
            service.submit(original_100)
    
    def test_unusable_response(self, original_100):
        service = WatermarkRemovalService(FakeImageModel(b"<html>oops</html>"))
        with pytest.raises(ExternalServiceError) as exc_info:
            service.submit(original_100)
        assert "unusable" in exc_info.value.message
    
    def test_undecodable_original(self, fake_model):
        service = WatermarkRemovalService(fake_model)
        with pytest.raises(DecodeError):
            service.submit(b"garbage")
        assert fake_model.calls == []


class TestSingleSubmission:
    """Only one submission may be in flight."""
    
    def test_concurrent_submit_rejected(self, original_100, red_100):
        entered = threading.Event()
        release = threading.Event()
        
        class SlowModel(FakeImageModel):
            def generate(self, image_png, mode, mask_png=None):
                entered.set()
                release.wait(timeout=5)
                return super().generate(image_png, mode, mask_png)
        
        model = SlowModel(red_100)
        service = WatermarkRemovalService(model)
        results = []
        worker = threading.Thread(target=lambda: results.append(service.submit(original_100)))
        worker.start()
        try:
            assert entered.wait(timeout=5)
            assert service.is_busy
            with pytest.raises(SubmissionInProgressError):
                service.submit(original_100)
        finally:
            release.set()
            worker.join(timeout=5)
        
        assert len(results) == 1
        assert len(model.calls) == 1
        assert not service.is_busy
    
    def test_lock_released_after_failure(self, original_100, red_100):
        model = FakeImageModel(error=ExternalServiceError("down"))
        service = WatermarkRemovalService(model)
        with pytest.raises(ExternalServiceError):
            service.submit(original_100)
        
        model.error = None
        model.result = red_100
        assert service.submit(original_100).processed_image.size == (100, 100)


class TestEvents:
    
    def test_stage_events(self, original_100, fake_model):
        service = WatermarkRemovalService(fake_model)
        seen = []
        service.subscribe_to_events(seen.append)
        
        service.submit(original_100, [Rect(10, 10, 20, 20)], ProcessMode.MANUAL)
        
        stages = [e.stage for e in seen]
        assert stages == ["start", "rasterize_mask", "generate", "composite", "complete"]
        assert {e.mode for e in seen} == {ProcessMode.MANUAL}
        assert seen[0].progress == 0.0
        assert seen[-1].progress == 1.0
    
    def test_custom_publisher(self, original_100, fake_model):
        events = SimpleEventPublisher()
        seen = []
        events.subscribe(seen.append)
        service = WatermarkRemovalService(fake_model, events=events)
        
        service.submit(original_100, mode=ProcessMode.TILED)
        
        assert seen[-1].stage == "complete"
        assert seen[-1].mode == ProcessMode.TILED
    
    def test_result_png(self, original_100, fake_model):
        service = WatermarkRemovalService(fake_model)
        result = service.submit(original_100, [Rect(10, 10, 20, 20)], ProcessMode.MANUAL)
        decoded = Image.open(io.BytesIO(result.to_png()))
        assert decoded.format == "PNG"
        assert decoded.size == (100, 100)
