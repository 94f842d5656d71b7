"""Editing session - pointer-driven selection state for one source image."""

from __future__ import annotations

import logging

from PIL import Image

from ...domain.entities.image import ImageSource, ProcessingResult, decode_image
from ...domain.services.mode_controller import ModeController
from ...domain.services.preview import render_preview
from ...domain.services.selection import SelectionModel
from ...domain.value_objects.config import ProcessMode, ProcessingStatus
from ...domain.value_objects.geometry import (
    CoordinateMapper,
    DisplayBox,
    DisplayPoint,
    Point,
    Rect,
)
from ...exceptions import (
    ImageProcessingError,
    SubmissionInProgressError,
    ValidationError,
    WatermarkEraserError,
)
from .watermark_removal import WatermarkRemovalService

logger = logging.getLogger(__name__)


class EditingSession:
    """Everything the editor needs between loading an image and exporting it.
    
    Pointer coordinates arrive in display space and are mapped with the
    display box from the latest ``resize``. Drawing is only accepted in
    manual mode while no submission is in flight.
    """
    
    def __init__(self, service: WatermarkRemovalService):
        self._service = service
        self._selection = SelectionModel(min_size=service.config.min_selection_size)
        self._modes = ModeController(self._selection, service.config.mode)
        self._image: Image.Image | None = None
        self._mapper: CoordinateMapper | None = None
        self._display_box: DisplayBox | None = None
        self.status = ProcessingStatus.IDLE
        self.result: ProcessingResult | None = None
        self.error_message: str | None = None
    
    @property
    def image(self) -> Image.Image | None:
        return self._image
    
    @property
    def mode(self) -> ProcessMode:
        return self._modes.mode
    
    @property
    def selections(self) -> tuple[Rect, ...]:
        return self._selection.rects
    
    @property
    def in_progress(self) -> Rect | None:
        return self._selection.in_progress
    
    @property
    def is_processing(self) -> bool:
        return self._service.is_busy
    
    def load_image(self, source: ImageSource) -> None:
        """Make ``source`` the image being edited, discarding prior state."""
        self.status = ProcessingStatus.UPLOADING
        try:
            image = decode_image(source, role="original")
        except ImageProcessingError as e:
            self.status = ProcessingStatus.ERROR
            self.error_message = str(e)
            raise
        
        self._image = image
        self._mapper = CoordinateMapper(image.width, image.height)
        self._display_box = DisplayBox(0, 0, image.width, image.height)
        self._selection.clear()
        self.result = None
        self.error_message = None
        self.status = ProcessingStatus.IDLE
        logger.info(f"Loaded {image.width}x{image.height} image")
    
    def resize(self, display_box: DisplayBox) -> None:
        """Record where the canvas is now drawn on screen."""
        self._display_box = display_box
    
    def _to_image_space(self, client_x: float, client_y: float) -> Point:
        if self._mapper is None or self._display_box is None:
            raise ValidationError("No image loaded", field="image")
        point = self._mapper.map_point(DisplayPoint(client_x, client_y), self._display_box)
        return point.clamped(self._image.width, self._image.height)
    
    def pointer_down(self, client_x: float, client_y: float) -> bool:
        """Start a drag. Returns False when drawing is not accepted."""
        if self._image is None or not self._modes.accepts_drawing(self.is_processing):
            return False
        self._selection.start(self._to_image_space(client_x, client_y))
        return True
    
    def pointer_move(self, client_x: float, client_y: float) -> None:
        if not self._selection.is_dragging:
            return
        if not self._modes.accepts_drawing(self.is_processing):
            return
        self._selection.move(self._to_image_space(client_x, client_y))
    
    def pointer_up(self) -> Rect | None:
        """Finish the drag; returns the committed rect, if any.
        
        A drag that ends while a submission is in flight is discarded.
        """
        if self.is_processing:
            self._selection.cancel()
            return None
        return self._selection.end()
    
    def set_mode(self, mode: ProcessMode | str) -> bool:
        return self._modes.set_mode(mode)
    
    def undo(self) -> Rect | None:
        return self._selection.undo()
    
    def clear(self) -> None:
        self._selection.clear()
    
    def preview(self) -> Image.Image:
        """Render the canvas overlay for the current state."""
        if self._image is None:
            raise ValidationError("No image loaded", field="image")
        scale = 1.0
        if self._display_box is not None and self._image.width > 0:
            scale = self._display_box.width / self._image.width
        return render_preview(
            self._image,
            self._selection.rects,
            self._modes.mode,
            in_progress=self._selection.in_progress,
            display_scale=scale
        )
    
    def submit(self) -> ProcessingResult:
        """Send the image, and the mask in manual mode, for processing.
        
        Validation failures leave the session untouched. Backend failures
        move the session to ERROR and propagate so a retry can be offered.
        """
        if self._image is None:
            raise ValidationError("No image loaded", field="image")
        if self._modes.requires_mask and self._selection.is_empty:
            raise ValidationError(
                "Select at least one region to remove before processing",
                field="selection"
            )
        if self.is_processing:
            raise SubmissionInProgressError()
        
        previous = self.status
        self.status = ProcessingStatus.PROCESSING
        self.error_message = None
        try:
            result = self._service.submit(
                self._image,
                self._selection.rects,
                self._modes.mode
            )
        except ValidationError:
            self.status = previous
            raise
        except WatermarkEraserError as e:
            self.status = ProcessingStatus.ERROR
            self.error_message = str(e)
            raise
        
        self.result = result
        self.status = ProcessingStatus.SUCCESS
        return result
    
    def reset(self) -> None:
        """Forget the image and every edit."""
        self._image = None
        self._mapper = None
        self._display_box = None
        self._selection.clear()
        self.result = None
        self.error_message = None
        self.status = ProcessingStatus.IDLE
