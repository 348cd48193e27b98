"""Value objects passed between the extraction stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True, slots=True)
class NormalizedImage:
    """Decoded image re-encoded to PNG inside the operating envelope."""

    data: bytes
    width: int
    height: int
    source_format: Optional[str] = None
    original_size: Tuple[int, int] = (0, 0)
    scale: float = 1.0

    @property
    def pixels(self) -> int:
        return self.width * self.height


@dataclass(frozen=True, slots=True)
class RegionSpec:
    """Rectangle expressed as fractions of the image size."""

    name: str
    left: float
    top: float
    width: float
    height: float

    def __post_init__(self) -> None:
        for label in ("left", "top", "width", "height"):
            value = getattr(self, label)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"RegionSpec {self.name!r}: {label}={value} outside [0, 1]")


@dataclass(frozen=True, slots=True)
class PixelRect:
    left: int
    top: int
    width: int
    height: int

    @property
    def box(self) -> Tuple[int, int, int, int]:
        """Pillow crop box (left, upper, right, lower)."""
        return (self.left, self.top, self.left + self.width, self.top + self.height)


@dataclass(frozen=True, slots=True)
class PreparationProfile:
    """Enhancement recipe for one class of text."""

    name: str
    scale_factor: float
    min_width: int
    max_width: int
    contrast: float
    offset: float
    threshold: Optional[int] = None


@dataclass(frozen=True, slots=True)
class PreparedBuffer:
    data: bytes
    profile: str
    region: str
    width: int
    height: int


@dataclass(frozen=True, slots=True)
class RecognitionOptions:
    page_segmentation: int = 6
    whitelist: Optional[str] = None

    def to_tesseract_config(self) -> str:
        config = f"--psm {self.page_segmentation}"
        if self.whitelist:
            config += f" -c tessedit_char_whitelist={self.whitelist}"
        return config


@dataclass(frozen=True, slots=True)
class RecognitionResult:
    text: str
    profile: str
    region: str


@dataclass(frozen=True, slots=True)
class ParsedCandidate:
    """Fields read from one pass. Every field is independently optional."""

    id: Optional[str] = None
    kingdom: Optional[str] = None
    clan_tag: Optional[str] = None
    player_name: Optional[str] = None
    raw_text: str = ""

    @property
    def has_id_and_kingdom(self) -> bool:
        return bool(self.id and self.kingdom)


@dataclass(frozen=True, slots=True)
class ExtractionResult:
    id: str
    kingdom: str
    clan_tag: str
    player_name: Optional[str]
    diagnostics: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kingdom": self.kingdom,
            "clanTag": self.clan_tag,
            "playerName": self.player_name,
            "diagnostics": dict(self.diagnostics),
        }


__all__ = [
    "ExtractionResult",
    "NormalizedImage",
    "ParsedCandidate",
    "PixelRect",
    "PreparationProfile",
    "PreparedBuffer",
    "RecognitionOptions",
    "RecognitionResult",
    "RegionSpec",
]
