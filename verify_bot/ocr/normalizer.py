"""Bring arbitrary uploads into a single resolution and format envelope.

Phone screenshots arrive anywhere between tiny thumbnails and 50MP camera
shots. Crop ratios and preprocessing parameters are tuned against a reference
width, so every image is resized into ``[min_width, max_width]`` (bounded by
``max_pixels``) and re-encoded as PNG before any other stage sees it.
"""

from __future__ import annotations

import io
import logging
import math
from typing import Optional, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from verify_bot.ocr.errors import InvalidImageError
from verify_bot.ocr.models import NormalizedImage
from verify_bot.ocr.settings import DEFAULT_SETTINGS, ExtractionSettings

logger = logging.getLogger(__name__)

CANONICAL_FORMAT = "PNG"


def decode_image(data: bytes) -> Tuple[Image.Image, Optional[str]]:
    """Decode ``data`` into a fully loaded RGB image plus its source format.

    Raises:
        InvalidImageError: If the bytes are not a readable image or the
            decoded image has no usable dimensions.
    """
    if not data:
        raise InvalidImageError("Invalid image (empty upload).")
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        raise InvalidImageError(f"Invalid image ({exc}).") from exc

    width, height = image.size
    if not width or not height:
        raise InvalidImageError("Invalid image (missing dimensions).")

    source_format = image.format
    image = ImageOps.exif_transpose(image)
    if image.mode != "RGB":
        image = image.convert("RGB")
    return image, source_format


def target_scale(width: int, height: int, settings: ExtractionSettings = DEFAULT_SETTINGS) -> float:
    """Return the resize factor that puts ``width x height`` inside the envelope."""
    pixels = width * height
    if width > settings.max_width or pixels > settings.max_pixels:
        return min(
            settings.max_width / width,
            math.sqrt(settings.max_pixels / pixels),
            1.0,
        )
    if width < settings.min_width:
        # Narrow but very tall uploads stop growing at the pixel budget
        return min(settings.min_width / width, math.sqrt(settings.max_pixels / pixels))
    return 1.0


def encode_png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=CANONICAL_FORMAT)
    return buffer.getvalue()


def normalize_image(data: bytes, settings: ExtractionSettings = DEFAULT_SETTINGS) -> NormalizedImage:
    """Decode, resize into the envelope and re-encode ``data`` as PNG."""
    image, source_format = decode_image(data)
    original_size = image.size
    width, height = original_size

    scale = target_scale(width, height, settings)
    if scale < 1.0:
        # Floor so neither bound is crossed by rounding
        new_size = (max(1, int(width * scale)), max(1, int(height * scale)))
    elif scale > 1.0:
        new_width = settings.min_width if scale == settings.min_width / width else int(width * scale)
        new_size = (max(1, new_width), max(1, int(height * scale)))
    else:
        new_size = original_size

    if new_size != original_size:
        image = image.resize(new_size, Image.LANCZOS)
        logger.debug("Normalized image %sx%s -> %sx%s", width, height, *new_size)

    return NormalizedImage(
        data=encode_png(image),
        width=image.width,
        height=image.height,
        source_format=source_format,
        original_size=original_size,
        scale=scale,
    )


__all__ = ["CANONICAL_FORMAT", "decode_image", "encode_png", "normalize_image", "target_scale"]
