"""Mode controller - which processing mode is active."""

from __future__ import annotations

import logging

from ..value_objects.config import ProcessMode
from .selection import SelectionModel

logger = logging.getLogger(__name__)


class ModeController:
    """Finite-state controller over auto / manual / tiled.
    
    Any mode change clears the selection, so rectangles drawn for one
    manual session never leak into another.
    """
    
    def __init__(
        self,
        selection: SelectionModel,
        mode: ProcessMode = ProcessMode.AUTO
    ):
        self._selection = selection
        self._mode = ProcessMode(mode)
    
    @property
    def mode(self) -> ProcessMode:
        return self._mode
    
    @property
    def requires_mask(self) -> bool:
        """Only manual submissions carry a mask."""
        return self._mode == ProcessMode.MANUAL
    
    def accepts_drawing(self, busy: bool = False) -> bool:
        """Pointer drawing is live in manual mode while nothing is submitting."""
        return self._mode == ProcessMode.MANUAL and not busy
    
    def set_mode(self, mode: ProcessMode | str) -> bool:
        """Switch modes.
        
        Returns:
            True if the mode changed
        """
        mode = ProcessMode(mode)
        if mode == self._mode:
            return False
        
        logger.debug(f"Mode {self._mode.value} -> {mode.value}")
        self._mode = mode
        self._selection.clear()
        return True
