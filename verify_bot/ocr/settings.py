"""Tunable constants for the profile extraction pipeline.

Every threshold used by the normalizer, the parser and the reconciler lives
here so a deployment can adjust them from the environment without touching
the pipeline code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Optional

DEFAULT_STOP_NAMES: FrozenSet[str] = frozenset(
    {
        "as",
        "an",
        "id",
        "kingdom",
        "alliance",
        "kills",
        "mood",
        # Localized label words that show up in the name slot
        "allianz",
        "alianza",
        "alleanza",
        "königreich",
        "konigreich",
        "reino",
        "royaume",
        "regno",
        "reich",
    }
)


@dataclass(frozen=True, slots=True)
class ExtractionSettings:
    # Normalizer envelope
    max_width: int = 2200
    max_pixels: int = 10_000_000
    min_width: int = 900

    # Field thresholds
    min_id_digits: int = 6
    max_kingdom_digits: int = 4
    max_clan_tag_length: int = 6
    max_name_length: int = 24
    min_name_length: int = 3
    stop_names: FrozenSet[str] = field(default_factory=lambda: DEFAULT_STOP_NAMES)

    # Recognition engine
    language: str = "eng"
    tesseract_cmd: Optional[str] = None


DEFAULT_SETTINGS = ExtractionSettings()


__all__ = ["DEFAULT_SETTINGS", "DEFAULT_STOP_NAMES", "ExtractionSettings"]
