"""Watermark removal service - orchestrates the submission pipeline."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Sequence

from PIL import Image

from ...domain.entities.image import (
    ImageSource,
    Mask,
    ProcessingResult,
    decode_image,
    encode_png,
)
from ...domain.services.compositor import composite
from ...domain.services.mask_rasterizer import rasterize
from ...domain.value_objects.config import ProcessingConfig, ProcessMode
from ...domain.value_objects.geometry import Rect
from ...exceptions import (
    DecodeError,
    ExternalServiceError,
    ImageProcessingError,
    SubmissionInProgressError,
    ValidationError,
)
from ..ports.event_publisher import EventPublisher, ProcessingEvent, SimpleEventPublisher
from ..ports.image_model import ImageModel

logger = logging.getLogger(__name__)


@dataclass
class PipelineContext:
    """Context passed through pipeline steps."""
    original: Image.Image
    mode: ProcessMode
    rects: tuple[Rect, ...]
    config: ProcessingConfig
    mask: Mask | None = None
    replacement: Image.Image | None = None
    processed: Image.Image | None = None
    composited: bool = False


class PipelineStep:
    """Base class for pipeline steps."""
    
    def __init__(self, name: str):
        self.name = name
    
    def execute(self, ctx: PipelineContext) -> PipelineContext:
        """Execute this step and return updated context."""
        raise NotImplementedError


class RasterizeMaskStep(PipelineStep):
    """Step 1: Snapshot the selection into a mask (manual mode only)."""
    
    def __init__(self):
        super().__init__("rasterize_mask")
    
    def execute(self, ctx: PipelineContext) -> PipelineContext:
        if ctx.mode != ProcessMode.MANUAL:
            return ctx
        
        ctx.mask = rasterize(ctx.rects, ctx.original.width, ctx.original.height)
        logger.info(
            f"Mask covers {ctx.mask.replace_count} px from {len(ctx.rects)} selection(s)"
        )
        return ctx


class GenerateStep(PipelineStep):
    """Step 2: Ask the generative backend for a replacement image."""
    
    def __init__(self, model: ImageModel):
        super().__init__("generate")
        self._model = model
    
    def execute(self, ctx: PipelineContext) -> PipelineContext:
        mask_png = ctx.mask.to_png() if ctx.mask is not None else None
        
        try:
            data = self._model.generate(encode_png(ctx.original), ctx.mode, mask_png)
        except ExternalServiceError:
            logger.error(f"{self._model.name} failed for {ctx.mode.value} submission")
            raise
        
        if not data:
            raise ExternalServiceError(
                "No image data received from the backend", model_id=self._model.name
            )
        try:
            ctx.replacement = decode_image(data, role="replacement")
        except DecodeError as e:
            raise ExternalServiceError(
                f"Backend returned an unusable image: {e.message}",
                model_id=self._model.name
            ) from e
        
        logger.info(f"Received {ctx.replacement.width}x{ctx.replacement.height} replacement")
        return ctx


class CompositeStep(PipelineStep):
    """Step 3: Merge the replacement into the original where masked.
    
    Without a mask the replacement is used unmodified. If compositing fails
    the raw replacement is used instead; the result is degraded, not lost.
    """
    
    def __init__(self):
        super().__init__("composite")
    
    def execute(self, ctx: PipelineContext) -> PipelineContext:
        if ctx.mask is None or ctx.mode != ProcessMode.MANUAL:
            ctx.processed = ctx.replacement
            return ctx
        
        try:
            ctx.processed = composite(
                ctx.original,
                ctx.mask,
                ctx.replacement,
                resample_method=ctx.config.replacement_resample
            )
            ctx.composited = True
        except ImageProcessingError as e:
            logger.warning(f"Compositing failed, returning raw replacement: {e}")
            ctx.processed = ctx.replacement
            ctx.composited = False
        return ctx


class WatermarkRemovalService:
    """Service for removing watermarks from images.
    
    Only one submission may run at a time; a concurrent ``submit`` raises
    SubmissionInProgressError instead of queueing.
    """
    
    def __init__(
        self,
        image_model: ImageModel,
        config: ProcessingConfig | None = None,
        events: EventPublisher | None = None
    ):
        self._image_model = image_model
        self._config = config or ProcessingConfig()
        self._events = events or SimpleEventPublisher()
        self._lock = threading.Lock()
        self._pipeline = self._build_pipeline()
    
    @property
    def config(self) -> ProcessingConfig:
        return self._config
    
    @property
    def is_busy(self) -> bool:
        """True while a submission is in flight."""
        return self._lock.locked()
    
    def _build_pipeline(self) -> list[PipelineStep]:
        """Build processing pipeline."""
        return [
            RasterizeMaskStep(),
            GenerateStep(self._image_model),
            CompositeStep(),
        ]
    
    def submit(
        self,
        image: ImageSource,
        rects: Sequence[Rect] = (),
        mode: ProcessMode | str | None = None
    ) -> ProcessingResult:
        """Remove watermarks from an image.
        
        Args:
            image: Original image
            rects: Committed selections in image space (manual mode)
            mode: Processing mode; defaults to the configured mode
            
        Returns:
            Processing result
            
        Raises:
            ValidationError: Manual mode with no selections
            SubmissionInProgressError: Another submission is running
            DecodeError: The original image cannot be decoded
            ExternalServiceError: The backend failed or returned nothing usable
        """
        mode = ProcessMode(mode) if mode is not None else self._config.mode
        rects = tuple(rects)
        
        if mode == ProcessMode.MANUAL and not rects:
            raise ValidationError(
                "Select at least one region to remove before processing",
                field="selection"
            )
        
        if not self._lock.acquire(blocking=False):
            raise SubmissionInProgressError()
        
        try:
            return self._run(image, rects, mode)
        finally:
            self._lock.release()
    
    def _run(
        self,
        image: ImageSource,
        rects: tuple[Rect, ...],
        mode: ProcessMode
    ) -> ProcessingResult:
        start_time = time.time()
        original = decode_image(image, role="original")
        
        self._events.publish(ProcessingEvent(
            stage="start",
            mode=mode,
            message=f"Starting {mode.value} removal",
            progress=0.0
        ))
        
        ctx = PipelineContext(
            original=original,
            mode=mode,
            rects=rects,
            config=self._config
        )
        
        total = len(self._pipeline)
        for i, step in enumerate(self._pipeline):
            self._events.publish(ProcessingEvent(
                stage=step.name,
                mode=mode,
                message=f"Executing {step.name}",
                progress=i / total
            ))
            ctx = step.execute(ctx)
        
        elapsed = (time.time() - start_time) * 1000
        result = ProcessingResult(
            original_image=original,
            processed_image=ctx.processed,
            mode=mode,
            mask_image=ctx.mask,
            composited=ctx.composited,
            processing_time_ms=elapsed
        )
        
        self._events.publish(ProcessingEvent(
            stage="complete",
            mode=mode,
            message="Processing complete",
            progress=1.0
        ))
        logger.info(f"{mode.value} submission finished in {elapsed:.0f} ms")
        return result
    
    def subscribe_to_events(self, callback: Callable[[ProcessingEvent], None]) -> None:
        """Subscribe to processing events."""
        self._events.subscribe(callback)
