"""Screenshot → profile extraction pipeline.

One call runs a fixed plan of passes in sequence:

* card passes (whole image, full card crop, compact card crop) until one
  of them reads both the id and the kingdom;
* every name pass (tight band, wide band, whole-image name hunt).

Decoding, enhancement and OCR run in worker threads so concurrent
verifications do not block the event loop. Passes of one call run one after
another. The extractor keeps no per-call state, so one instance can serve
every request.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from verify_bot.core.logging_utils import get_logger, timed
from verify_bot.ocr.errors import ExtractionError, InvalidImageError
from verify_bot.ocr.field_parser import FieldParser
from verify_bot.ocr.models import (
    ExtractionResult,
    NormalizedImage,
    ParsedCandidate,
    PreparationProfile,
    RecognitionOptions,
    RegionSpec,
)
from verify_bot.ocr.normalizer import normalize_image
from verify_bot.ocr.preprocessor import CARD_PROFILE, NAME_PROFILE, TIGHT_NAME_PROFILE, WIDE_NAME_PROFILE, prepare
from verify_bot.ocr.reconciler import reconcile
from verify_bot.ocr.recognizer import CARD_OPTIONS, NAME_OPTIONS, TextRecognizer
from verify_bot.ocr.regions import CARD_COMPACT, CARD_FULL, NAME_TIGHT, NAME_WIDE, resolve_region
from verify_bot.ocr.settings import DEFAULT_SETTINGS, ExtractionSettings

logger = get_logger("ocr.pipeline")


@dataclass(frozen=True, slots=True)
class PassSpec:
    """One crop → enhance → recognize → parse cycle. ``region=None`` means the whole image."""

    name: str
    region: Optional[RegionSpec]
    profile: PreparationProfile
    options: RecognitionOptions


CARD_PASSES: Sequence[PassSpec] = (
    # Already-cropped uploads ("just the bottom panel") succeed here
    PassSpec("card-direct", None, CARD_PROFILE, CARD_OPTIONS),
    PassSpec("card-full", CARD_FULL, CARD_PROFILE, CARD_OPTIONS),
    PassSpec("card-compact", CARD_COMPACT, CARD_PROFILE, CARD_OPTIONS),
)

NAME_PASSES: Sequence[PassSpec] = (
    PassSpec("name-tight", NAME_TIGHT, TIGHT_NAME_PROFILE, NAME_OPTIONS),
    PassSpec("name-wide", NAME_WIDE, WIDE_NAME_PROFILE, NAME_OPTIONS),
    PassSpec("name-hunt", None, NAME_PROFILE, NAME_OPTIONS),
)


class ProfileExtractor:
    """Runs the pass plan against one screenshot."""

    def __init__(
        self,
        recognizer: Optional[TextRecognizer] = None,
        *,
        settings: ExtractionSettings = DEFAULT_SETTINGS,
        card_passes: Sequence[PassSpec] = CARD_PASSES,
        name_passes: Sequence[PassSpec] = NAME_PASSES,
    ) -> None:
        self.settings = settings
        self.recognizer = recognizer or TextRecognizer(settings=settings)
        self.parser = FieldParser(settings)
        self.card_passes = tuple(card_passes)
        self.name_passes = tuple(name_passes)

    async def run_pass(self, image: NormalizedImage, spec: PassSpec) -> ParsedCandidate:
        region = resolve_region(image.width, image.height, spec.region) if spec.region else None
        buffer = await asyncio.to_thread(prepare, image.data, region, spec.profile, region_name=spec.name)
        result = await self.recognizer.recognize(buffer, spec.options)
        candidate = self.parser.parse(result.text)
        logger.debug(
            "Pass %s: id=%s kingdom=%s clan=%s name=%s",
            spec.name,
            candidate.id,
            candidate.kingdom,
            candidate.clan_tag,
            candidate.player_name,
        )
        return candidate

    async def _card_candidates(self, image: NormalizedImage, diagnostics: Dict[str, str]) -> List[ParsedCandidate]:
        candidates: List[ParsedCandidate] = []
        for spec in self.card_passes:
            candidate = await self.run_pass(image, spec)
            diagnostics[spec.name] = candidate.raw_text
            candidates.append(candidate)
            if candidate.has_id_and_kingdom:
                break
        return candidates

    async def _name_candidates(self, image: NormalizedImage, diagnostics: Dict[str, str]) -> List[ParsedCandidate]:
        candidates: List[ParsedCandidate] = []
        for spec in self.name_passes:
            candidate = await self.run_pass(image, spec)
            diagnostics[spec.name] = candidate.raw_text
            candidates.append(candidate)
        return candidates

    async def extract(self, image_bytes: bytes) -> ExtractionResult:
        """Read id, kingdom, clan tag and player name from a profile screenshot.

        Raises:
            InvalidImageError: The bytes are not a decodable image.
            RecognitionError: The OCR engine failed on one of the passes.
            ExtractionError: A mandatory field could not be read by any pass.
        """
        data = bytes(image_bytes)
        with timed(logger, "profile extraction", expected=(ExtractionError, InvalidImageError)):
            image = await asyncio.to_thread(normalize_image, data, self.settings)
            diagnostics: Dict[str, str] = {}
            card_candidates = await self._card_candidates(image, diagnostics)
            name_candidates = await self._name_candidates(image, diagnostics)
            return reconcile(card_candidates, name_candidates, diagnostics, self.settings)


async def extract_profile(
    image_bytes: bytes,
    *,
    extractor: Optional[ProfileExtractor] = None,
) -> ExtractionResult:
    """Module-level entry point; builds a default extractor when none is given."""
    return await (extractor or ProfileExtractor()).extract(image_bytes)


__all__ = ["CARD_PASSES", "NAME_PASSES", "PassSpec", "ProfileExtractor", "extract_profile"]
