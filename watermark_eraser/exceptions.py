"""Custom exceptions for Watermark Eraser."""

from typing import Optional


class WatermarkEraserError(Exception):
    """Base exception for all application errors.
    
    Attributes:
        message: Human-readable error description
        error_code: Optional error code for programmatic handling
    """
    
    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
    
    def __str__(self) -> str:
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class ConfigurationError(WatermarkEraserError):
    """Error in configuration or settings.
    
    Attributes:
        config_key: The configuration key that caused the error (if applicable)
    """
    
    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(message, error_code="CONFIG_ERROR")
        self.config_key = config_key


class ValidationError(WatermarkEraserError):
    """Error validating inputs or parameters.
    
    Raised before any call to the generative backend, so it never has
    side effects.
    
    Attributes:
        field: The field that failed validation (if applicable)
    """
    
    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, error_code="VALIDATION_ERROR")
        self.field = field


class SubmissionInProgressError(ValidationError):
    """A submission was attempted while another one is still running."""
    
    def __init__(self, message: str = "A submission is already in progress"):
        super().__init__(message, field="submission")
        self.error_code = "BUSY"


class ImageProcessingError(WatermarkEraserError):
    """Error during image decoding or compositing.
    
    Attributes:
        image_role: Which input was being handled ('original', 'mask',
            'replacement') when the error occurred
    """
    
    def __init__(self, message: str, image_role: Optional[str] = None):
        super().__init__(message, error_code="IMAGE_ERROR")
        self.image_role = image_role
    
    def __str__(self) -> str:
        if self.image_role:
            return f"{super().__str__()} (image: {self.image_role})"
        return super().__str__()


class DecodeError(ImageProcessingError):
    """An input image could not be loaded or decoded."""


class CompositingError(ImageProcessingError):
    """Blending or encoding the composited image failed."""


class ExternalServiceError(WatermarkEraserError):
    """The generative backend failed or returned no usable image.
    
    Attributes:
        model_id: The model that was called (if applicable)
    """
    
    def __init__(self, message: str, model_id: Optional[str] = None):
        super().__init__(message, error_code="SERVICE_ERROR")
        self.model_id = model_id
