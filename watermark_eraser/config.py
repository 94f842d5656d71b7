"""Configuration and constants for the Watermark Eraser project."""

# Smallest committed selection, in image pixels (both axes must exceed it)
MIN_SELECTION_SIZE = 5

# Instruction sent to the generative backend for each processing mode
MODE_PROMPTS: dict[str, str] = {
    "auto": (
        "Detect and remove all watermarks, text overlays, and logos from this image. "
        "Output the clean image. STRICTLY preserve the quality, resolution, and details "
        "of the non-watermarked areas."
    ),
    "tiled": (
        "This image contains a repeating, tiled watermark pattern covering the entire "
        "image (e.g., text overlaid in a grid). Detect and remove ALL instances of this "
        "watermark text completely. Restore the underlying background seamlessly. "
        "Maintain the original image quality, colors, and non-watermark details. "
        "Output ONLY the clean image."
    ),
    "manual": (
        "The second image is a mask (white area represents the selection). Remove the "
        "content located within the white area of the mask from the first image. Inpaint "
        "the area to match the surrounding background seamlessly. Output the result "
        "image. Do not change any part of the image outside the mask."
    ),
}

# Generative backend
DEFAULT_MODEL_NAME = "gemini-2.5-flash-image"
DEFAULT_TEMPERATURE = 0.3
DEFAULT_TIMEOUT_S = 90.0

# Editor overlay
PREVIEW_DIM_ALPHA = 0.3  # Opacity of the black veil outside selections
PREVIEW_BORDER_COLOR = (239, 68, 68)
PREVIEW_BORDER_WIDTH = 4  # Display pixels, scaled to image space

# File handling
SUPPORTED_IMAGE_EXTENSIONS: tuple[str, ...] = (
    '.png',
    '.jpg', '.jpeg',
    '.webp',
    '.bmp',
    '.tiff', '.tif',
)
OUTPUT_FORMAT = "PNG"

# Environment
ENV_FILE = ".env"
API_KEY_ENV_VARS: tuple[str, ...] = ("GEMINI_API_KEY", "API_KEY")

# Logging
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"
