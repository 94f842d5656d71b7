"""Command-line interface for watermark removal."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import pydantic

from ...application.services.editing_session import EditingSession
from ...application.services.watermark_removal import WatermarkRemovalService
from ...config import (
    DEFAULT_MODEL_NAME,
    DEFAULT_TEMPERATURE,
    DEFAULT_TIMEOUT_S,
    SUPPORTED_IMAGE_EXTENSIONS,
)
from ...domain.value_objects.config import ProcessingConfig, ProcessMode
from ...domain.value_objects.geometry import DisplayBox, Rect
from ...exceptions import ConfigurationError, ValidationError, WatermarkEraserError
from ...infrastructure.plugin_registry import PluginRegistry
from ...utils.env import save_api_key, setup_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def parse_display_box(text: str) -> DisplayBox:
    """Parse a ``LEFT,TOP,WIDTH,HEIGHT`` string."""
    rect = Rect.parse(text)
    return DisplayBox(rect.x, rect.y, rect.width, rect.height)


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="watermark-eraser",
        description="Remove watermarks with a generative model, keeping untouched pixels exact"
    )
    
    parser.add_argument("input", nargs="?", help="Input image or folder")
    parser.add_argument("-o", "--output", help="Output folder")
    
    parser.add_argument(
        "-m", "--mode",
        choices=[m.value for m in ProcessMode],
        default=ProcessMode.AUTO.value,
        help="Processing mode (default: auto)"
    )
    
    # Selection
    parser.add_argument(
        "-r", "--rect",
        action="append",
        default=[],
        metavar="X,Y,W,H",
        help="Region to remove in manual mode; repeat for several regions"
    )
    parser.add_argument(
        "--display-box",
        metavar="L,T,W,H",
        help="Read --rect values as screen coordinates of a canvas drawn at this box"
    )
    parser.add_argument(
        "--save-mask",
        action="store_true",
        help="Also write the mask sent with manual submissions"
    )
    
    # Backend
    backend_group = parser.add_argument_group("Backend options")
    backend_group.add_argument(
        "--backend",
        default=PluginRegistry.DEFAULT_BACKEND,
        help=f"Image model backend (default: {PluginRegistry.DEFAULT_BACKEND})"
    )
    backend_group.add_argument(
        "--model",
        default=DEFAULT_MODEL_NAME,
        help=f"Model name (default: {DEFAULT_MODEL_NAME})"
    )
    backend_group.add_argument(
        "--temperature",
        type=float,
        default=DEFAULT_TEMPERATURE,
        help=f"Sampling temperature (default: {DEFAULT_TEMPERATURE})"
    )
    backend_group.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT_S,
        metavar="SECONDS",
        help=f"Request timeout (default: {DEFAULT_TIMEOUT_S:.0f})"
    )
    backend_group.add_argument(
        "--save-api-key",
        metavar="KEY",
        help="Store the API key in the system keyring and exit"
    )
    
    # Error handling
    parser.add_argument(
        "--continue-on-error",
        action="store_true",
        help="Continue processing remaining images if one fails"
    )
    parser.add_argument(
        "--log-file",
        help="Also write logs to this file"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )
    
    return parser


def collect_files(input_path: Path) -> list[Path]:
    """Image files to process, sorted."""
    if input_path.is_file():
        return [input_path]
    return sorted(
        f for f in input_path.iterdir()
        if f.suffix.lower() in SUPPORTED_IMAGE_EXTENSIONS
    )


def apply_selections(
    session: EditingSession,
    rects: list[Rect],
    display_box: DisplayBox | None
) -> int:
    """Replay each rect as a pointer drag; returns how many were committed."""
    if display_box is not None:
        session.resize(display_box)
    
    committed = 0
    for rect in rects:
        session.pointer_down(rect.x, rect.y)
        session.pointer_move(rect.right, rect.bottom)
        if session.pointer_up() is not None:
            committed += 1
        else:
            logger.warning(
                f"Ignored selection {rect.width:g}x{rect.height:g}: too small"
            )
    return committed


def process_image(
    session: EditingSession,
    input_path: Path,
    output_path: Path,
    mode: ProcessMode,
    rects: list[Rect],
    display_box: DisplayBox | None,
    save_mask: bool = False,
    prefix: str = "cleaned_"
) -> Path:
    """Process a single image and write the result.
    
    Returns:
        Path of the written image
    """
    logger.info(f"Processing {input_path.name}...")
    
    session.load_image(input_path)
    session.set_mode(mode)
    if mode == ProcessMode.MANUAL:
        apply_selections(session, rects, display_box)
    
    result = session.submit()
    
    output_file = output_path / f"{prefix}{input_path.stem}.png"
    result.save(output_file)
    if result.degraded:
        logger.warning(f"Saved {output_file.name} without compositing (raw model output)")
    else:
        logger.info(f"Saved: {output_file.name}")
    
    if save_mask and result.mask_image is not None:
        mask_file = output_path / f"{prefix}{input_path.stem}_mask.png"
        result.mask_image.to_image().save(mask_file)
        logger.info(f"Saved mask: {mask_file.name}")
    
    return output_file


def main(args: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    parsed = parser.parse_args(args)
    
    setup_logging(logging.DEBUG if parsed.verbose else logging.INFO, parsed.log_file)
    
    if parsed.save_api_key:
        try:
            in_keyring = save_api_key(parsed.save_api_key)
        except (ValueError, OSError) as e:
            logger.error(f"Could not save API key: {e}")
            return EXIT_FAILURE
        logger.info("API key saved to keyring" if in_keyring else "API key saved to .env")
        return EXIT_OK
    
    if not parsed.input or not parsed.output:
        parser.print_usage(sys.stderr)
        logger.error("input and --output are required")
        return EXIT_USAGE
    
    input_path = Path(parsed.input)
    output_path = Path(parsed.output)
    
    if not input_path.exists():
        logger.error(f"Input not found: {input_path}")
        return EXIT_FAILURE
    
    try:
        mode = ProcessMode(parsed.mode)
        rects = [Rect.parse(r) for r in parsed.rect]
        display_box = parse_display_box(parsed.display_box) if parsed.display_box else None
        config = ProcessingConfig(
            mode=mode,
            model_name=parsed.model,
            temperature=parsed.temperature,
            timeout_s=parsed.timeout
        )
        model = PluginRegistry.create_model(
            parsed.backend,
            model_name=config.model_name,
            temperature=config.temperature,
            timeout_s=config.timeout_s
        )
    except (ValidationError, ConfigurationError) as e:
        logger.error(str(e))
        return EXIT_USAGE
    except pydantic.ValidationError as e:
        logger.error(f"Invalid options: {e}")
        return EXIT_USAGE
    
    if mode == ProcessMode.MANUAL and not rects:
        logger.error("Manual mode needs at least one --rect")
        return EXIT_USAGE
    
    files = collect_files(input_path)
    if not files:
        logger.error("No image files found")
        return EXIT_FAILURE
    
    output_path.mkdir(parents=True, exist_ok=True)
    session = EditingSession(WatermarkRemovalService(model, config))
    
    logger.info(f"Processing {len(files)} image(s) in {mode.value} mode with {config.model_name}")
    
    success_count = 0
    failed: list[tuple[str, str]] = []
    exit_code = EXIT_OK
    
    try:
        for i, file_path in enumerate(files, 1):
            logger.info(f"[{i}/{len(files)}] {file_path.name}")
            try:
                process_image(
                    session, file_path, output_path, mode, rects, display_box,
                    save_mask=parsed.save_mask
                )
                success_count += 1
                continue
            except ValidationError as e:
                failed.append((file_path.name, str(e)))
                exit_code = EXIT_USAGE
            except (WatermarkEraserError, OSError) as e:
                failed.append((file_path.name, str(e)))
                exit_code = EXIT_FAILURE
            
            if not parsed.continue_on_error:
                if i < len(files):
                    logger.error("Use --continue-on-error to process remaining images")
                break
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return EXIT_FAILURE
    
    if failed:
        logger.warning(f"Completed: {success_count}/{len(files)} succeeded")
        for name, error in failed:
            logger.error(f"  - {name}: {error}")
        return exit_code
    
    logger.info(f"Completed: All {len(files)} images processed successfully")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
