"""Per-region enhancement ahead of OCR.

Two tonal recipes are needed because the profile screen mixes two kinds of
text:

* the info card is dark label/value text on a light panel. Contrast plus
  sharpening is enough, and hard thresholding eats thin glyphs;
* the player name is light, stylized text on a coloured banner. Only a hard
  binarization separates it reliably from the background.

Target widths are clamped so already-large crops from modern phones are not
blown up into buffers that make Tesseract slow or memory hungry.
"""

from __future__ import annotations

import io
from typing import Dict, Optional

import cv2
import numpy as np
from PIL import Image, ImageFilter

from verify_bot.ocr.models import PixelRect, PreparationProfile, PreparedBuffer
from verify_bot.ocr.normalizer import decode_image, encode_png

CARD_PROFILE = PreparationProfile(
    name="card",
    scale_factor=2.0,
    min_width=700,
    max_width=1600,
    contrast=1.6,
    offset=-40.0,
)
NAME_PROFILE = PreparationProfile(
    name="name",
    scale_factor=3.0,
    min_width=900,
    max_width=2000,
    contrast=2.0,
    offset=-60.0,
    threshold=170,
)
# Same tonal handling as NAME_PROFILE, different geometry
WIDE_NAME_PROFILE = PreparationProfile(
    name="wide-name",
    scale_factor=2.5,
    min_width=900,
    max_width=2000,
    contrast=2.0,
    offset=-60.0,
    threshold=170,
)
TIGHT_NAME_PROFILE = PreparationProfile(
    name="tight-name",
    scale_factor=3.0,
    min_width=1000,
    max_width=2000,
    contrast=2.0,
    offset=-60.0,
    threshold=170,
)

PROFILES: Dict[str, PreparationProfile] = {
    profile.name: profile
    for profile in (CARD_PROFILE, NAME_PROFILE, WIDE_NAME_PROFILE, TIGHT_NAME_PROFILE)
}


def target_width(source_width: int, profile: PreparationProfile) -> int:
    scaled = int(round(source_width * profile.scale_factor))
    return max(profile.min_width, min(profile.max_width, scaled))


def _resize_to_width(image: Image.Image, width: int) -> Image.Image:
    if image.width == width:
        return image
    height = max(1, int(round(image.height * width / image.width)))
    return image.resize((width, height), Image.BICUBIC)


def _linear(gray: np.ndarray, contrast: float, offset: float) -> np.ndarray:
    adjusted = gray.astype(np.float32) * contrast + offset
    return np.clip(adjusted, 0, 255).astype(np.uint8)


def _binarize(gray: np.ndarray, threshold: int) -> np.ndarray:
    # cv2 keeps values strictly above the threshold; pixels equal to it count as foreground
    _, binary = cv2.threshold(gray, threshold - 1, 255, cv2.THRESH_BINARY)
    return binary


def enhance(image: Image.Image, profile: PreparationProfile) -> Image.Image:
    """Apply ``profile`` to an already cropped image."""
    gray = image.convert("L")
    gray = _resize_to_width(gray, target_width(gray.width, profile))

    pixels = _linear(np.asarray(gray), profile.contrast, profile.offset)
    if profile.threshold is not None:
        pixels = _binarize(pixels, profile.threshold)

    return Image.fromarray(pixels).filter(ImageFilter.SHARPEN)


def prepare(
    data: bytes,
    region: Optional[PixelRect],
    profile: PreparationProfile,
    *,
    region_name: str = "whole",
) -> PreparedBuffer:
    """Crop ``data`` to ``region`` (whole image when None) and enhance it.

    Raises:
        InvalidImageError: If ``data`` cannot be decoded.
    """
    image, _ = decode_image(data)
    if region is not None:
        image = image.crop(region.box)

    enhanced = enhance(image, profile)
    return PreparedBuffer(
        data=encode_png(enhanced),
        profile=profile.name,
        region=region_name,
        width=enhanced.width,
        height=enhanced.height,
    )


def load_prepared(buffer: PreparedBuffer) -> Image.Image:
    """Open a prepared buffer for inspection (tests, debug dumps)."""
    image = Image.open(io.BytesIO(buffer.data))
    image.load()
    return image


__all__ = [
    "CARD_PROFILE",
    "NAME_PROFILE",
    "PROFILES",
    "TIGHT_NAME_PROFILE",
    "WIDE_NAME_PROFILE",
    "enhance",
    "load_prepared",
    "prepare",
    "target_width",
]
