"""Compositor - merge a generated replacement back into the original.

Pixels the mask marks PRESERVE come out exactly as they were in the
original; pixels marked REPLACE come out exactly as the (resampled)
replacement. Partial mask values blend with source-over.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import numpy.typing as npt
from PIL import Image

from ...exceptions import CompositingError, DecodeError
from ..entities.image import ImageSource, Mask, decode_image

logger = logging.getLogger(__name__)

RGBAArray = npt.NDArray[np.uint8]  # HxWx4

_RESAMPLE_FILTERS: dict[str, Image.Resampling] = {
    "lanczos": Image.Resampling.LANCZOS,
    "bicubic": Image.Resampling.BICUBIC,
    "bilinear": Image.Resampling.BILINEAR,
    "nearest": Image.Resampling.NEAREST,
}

_ALPHA_MODES = ("RGBA", "LA", "PA", "RGBa", "La")


def load_images(
    original: ImageSource,
    mask: ImageSource,
    replacement: ImageSource
) -> tuple[Image.Image, Image.Image, Image.Image]:
    """Decode the three compositing inputs concurrently.
    
    All three decodes are started together and awaited together; the
    first failure is re-raised once every decode has finished.
    
    Raises:
        DecodeError: If any input fails to decode
    """
    sources = (("original", original), ("mask", mask), ("replacement", replacement))
    with ThreadPoolExecutor(max_workers=len(sources)) as pool:
        futures = [pool.submit(decode_image, src, role) for role, src in sources]
    
    images = []
    for (role, _), future in zip(sources, futures):
        try:
            images.append(future.result())
        except DecodeError:
            raise
        except Exception as e:
            raise DecodeError(f"Failed to load image: {e}", image_role=role) from e
    return images[0], images[1], images[2]


def resample(
    image: Image.Image,
    size: tuple[int, int],
    method: str = "lanczos"
) -> Image.Image:
    """Stretch an image to ``size`` (width, height); no-op if already that size."""
    if image.size == size:
        return image
    logger.debug(f"Resampling {image.size} -> {size} ({method})")
    return image.resize(size, _RESAMPLE_FILTERS[method])


def replacement_layer(
    image: Image.Image,
    size: tuple[int, int],
    method: str = "lanczos"
) -> RGBAArray:
    """Stretch the replacement to ``size`` as an RGBA array.
    
    Colour and alpha are resampled separately; an image without
    transparency gets a fully opaque alpha plane.
    """
    rgb = np.asarray(resample(image.convert("RGB"), size, method), dtype=np.uint8)
    if image.mode in _ALPHA_MODES or "transparency" in image.info:
        band = image.convert("RGBA").getchannel("A")
        alpha = np.asarray(resample(band, size, method), dtype=np.uint8)
    else:
        alpha = np.full(rgb.shape[:2], 255, dtype=np.uint8)
    return np.dstack([rgb, alpha])


def mask_alpha(mask: Image.Image | Mask, size: tuple[int, int]) -> npt.NDArray[np.uint8]:
    """Alpha plane (HxW uint8) for the replacement layer.
    
    Nearest-neighbour resampling keeps a binary mask binary.
    """
    if not isinstance(mask, Mask):
        mask = Mask.from_image(mask)
    if not mask.is_binary:
        logger.debug("Mask has partial values; blending them as partial opacity")
    if mask.size == size:
        return mask.data
    stretched = mask.to_image().resize(size, Image.Resampling.NEAREST)
    return np.asarray(stretched, dtype=np.uint8)


def blend_source_over(
    base: RGBAArray,
    layer: RGBAArray,
    alpha: npt.NDArray[np.uint8]
) -> RGBAArray:
    """Draw ``layer``, with its alpha scaled by ``alpha``, over ``base``.
    
    Pixels whose effective layer alpha is 0 are copied from ``base`` and
    pixels whose effective alpha is 255 are copied from ``layer``, so both
    hold bit-for-bit. Everything in between uses straight-alpha source-over.
    """
    src_a = layer[..., 3].astype(np.float64) * alpha.astype(np.float64) / 255.0
    sa = (src_a / 255.0)[..., None]
    da = (base[..., 3].astype(np.float64) / 255.0)[..., None]
    
    out_a = sa + da * (1.0 - sa)
    premult = layer[..., :3] * sa + base[..., :3] * da * (1.0 - sa)
    with np.errstate(divide="ignore", invalid="ignore"):
        rgb = np.where(out_a > 0, premult / out_a, 0.0)
    
    blended = np.empty_like(base)
    blended[..., :3] = np.clip(np.rint(rgb), 0, 255).astype(np.uint8)
    blended[..., 3] = np.clip(np.rint(out_a[..., 0] * 255.0), 0, 255).astype(np.uint8)
    
    keep = (src_a == 0)[..., None]
    take = (src_a == 255)[..., None]
    return np.where(keep, base, np.where(take, layer, blended))


def composite(
    original: ImageSource,
    mask: ImageSource,
    replacement: ImageSource,
    resample_method: str = "lanczos"
) -> Image.Image:
    """Composite ``replacement`` onto ``original`` where ``mask`` says REPLACE.
    
    Mask and replacement are stretched to the original's size first. The
    inputs are never modified.
    
    Args:
        original: Source image
        mask: Mask entity or mask image (white = replace, black = preserve)
        replacement: Image returned by the generative backend
        resample_method: Filter used to stretch the replacement
        
    Returns:
        New image the size of ``original``; RGBA if the original carries
        transparency, RGB otherwise
        
    Raises:
        DecodeError: If any input fails to decode
        CompositingError: If blending fails
    """
    orig_img, mask_img, repl_img = load_images(original, mask, replacement)
    
    try:
        size = orig_img.size
        alpha = mask_alpha(mask_img, size)
        layer = replacement_layer(repl_img, size, resample_method)
        base = np.asarray(orig_img.convert("RGBA"), dtype=np.uint8)
        
        out = Image.fromarray(blend_source_over(base, layer, alpha))
        if orig_img.mode not in _ALPHA_MODES and "transparency" not in orig_img.info:
            out = out.convert("RGB")
    except Exception as e:
        raise CompositingError(f"Compositing failed: {e}") from e
    
    logger.debug(
        f"Composited {int(np.count_nonzero(alpha))} of {alpha.size} pixels "
        f"from replacement"
    )
    return out
