"""Configuration value objects with validation."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, field_validator

from ...config import (
    DEFAULT_MODEL_NAME,
    DEFAULT_TEMPERATURE,
    DEFAULT_TIMEOUT_S,
    MIN_SELECTION_SIZE,
)


class ProcessMode(str, Enum):
    """Processing modes offered to the user."""
    AUTO = "auto"
    MANUAL = "manual"
    TILED = "tiled"


class ProcessingStatus(str, Enum):
    """Lifecycle of an editing session."""
    IDLE = "IDLE"
    UPLOADING = "UPLOADING"
    PROCESSING = "PROCESSING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


RESAMPLE_METHODS: tuple[str, ...] = ("lanczos", "bicubic", "bilinear", "nearest")


class ProcessingConfig(BaseModel):
    """Processing configuration with validation."""
    
    model_config = {"validate_assignment": True, "protected_namespaces": ()}
    
    mode: ProcessMode = ProcessMode.AUTO
    
    # Generative backend
    model_name: str = DEFAULT_MODEL_NAME
    temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=0.0, le=2.0)
    timeout_s: float = Field(default=DEFAULT_TIMEOUT_S, gt=0)
    
    # Selection
    min_selection_size: int = Field(default=MIN_SELECTION_SIZE, ge=0)
    
    # Compositing
    replacement_resample: str = "lanczos"
    
    @field_validator('replacement_resample')
    @classmethod
    def validate_resample(cls, v: str) -> str:
        v = v.lower()
        if v not in RESAMPLE_METHODS:
            raise ValueError(
                f"replacement_resample must be one of {', '.join(RESAMPLE_METHODS)}"
            )
        return v
    
    @property
    def requires_mask(self) -> bool:
        return self.mode == ProcessMode.MANUAL


__all__ = [
    'ProcessMode',
    'ProcessingStatus',
    'ProcessingConfig',
    'RESAMPLE_METHODS',
]
