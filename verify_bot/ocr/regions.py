"""Ratio-based regions of the Governor Profile screen.

The ratios were measured on the stock profile layout. They describe where the
info card and the ``[TAG]Name`` line sit relative to the whole screenshot, so
they keep working across device resolutions once the image is normalized.
"""

from __future__ import annotations

import math
from typing import Tuple

from verify_bot.ocr.models import PixelRect, RegionSpec

# Bottom info panel: ID / Kingdom / Alliance label-value pairs
CARD_FULL = RegionSpec("card-full", left=0.02, top=0.56, width=0.96, height=0.40)
# Layout variant where the panel starts higher and spans the full width
CARD_COMPACT = RegionSpec("card-compact", left=0.00, top=0.45, width=1.00, height=0.50)

# Tight band around the "[TAG]Name" text, avoids the avatar and badges
NAME_TIGHT = RegionSpec("name-tight", left=0.42, top=0.62, width=0.54, height=0.06)
# Wider band that survives small UI shifts
NAME_WIDE = RegionSpec("name-wide", left=0.30, top=0.60, width=0.66, height=0.10)

CARD_REGIONS: Tuple[RegionSpec, ...] = (CARD_FULL, CARD_COMPACT)
NAME_REGIONS: Tuple[RegionSpec, ...] = (NAME_TIGHT, NAME_WIDE)


def resolve_region(image_width: int, image_height: int, spec: RegionSpec) -> PixelRect:
    """Resolve ``spec`` against an image size, clamped to the image bounds.

    The result always satisfies ``0 <= left < image_width``,
    ``left + width <= image_width`` (same for the vertical axis) and has a
    width and height of at least one pixel.
    """
    if image_width <= 0 or image_height <= 0:
        raise ValueError(f"Cannot resolve {spec.name!r} against {image_width}x{image_height}")

    left = min(max(0, math.floor(image_width * spec.left)), image_width - 1)
    top = min(max(0, math.floor(image_height * spec.top)), image_height - 1)
    width = min(image_width - left, max(1, math.floor(image_width * spec.width)))
    height = min(image_height - top, max(1, math.floor(image_height * spec.height)))
    return PixelRect(left=left, top=top, width=width, height=height)


__all__ = [
    "CARD_COMPACT",
    "CARD_FULL",
    "CARD_REGIONS",
    "NAME_REGIONS",
    "NAME_TIGHT",
    "NAME_WIDE",
    "resolve_region",
]
