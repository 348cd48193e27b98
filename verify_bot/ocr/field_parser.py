"""Turn raw OCR text into profile fields.

Parsing never raises: a pattern that does not match leaves its field empty so
the other fields can still be read from the same text. Label words are kept
in ``LABEL_SYNONYMS`` so adding a client language only means adding words.

Precedence inside a single text:

1. ``ID`` label followed by 6+ digits.
2. ``Kingdom`` (or a localized label) followed by 1-4 digits.
3. ``Alliance`` (or a localized label) followed by a 2-6 character tag.
4. ``[TAG]Name``. The bracket tag overrides the Alliance label and is the
   only primary source of the player name.
5. ``[TAG]`` with no usable name after it: the rest of that line is
   sanitized and used as the name when it is still plausible.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Dict, Iterable, Optional, Pattern, Tuple

from verify_bot.ocr.models import ParsedCandidate
from verify_bot.ocr.settings import DEFAULT_SETTINGS, ExtractionSettings

LABEL_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    "id": ("ID",),
    "kingdom": ("Kingdom", "Königreich", "Konigreich", "Reino", "Royaume", "Regno", "Reich"),
    "alliance": ("Alliance", "Allianz", "Alianza", "Alleanza", "Aliança", "Alianca"),
}

_NON_TAG = re.compile(r"[^A-Za-z0-9]")
_NON_NAME = re.compile(r"[^A-Za-z0-9_]")
_NON_DIGIT = re.compile(r"\D")
_SPACE_RUNS = re.compile(r"[ \t]{2,}")
_ID_MARKER_TAIL = re.compile(r"\s*\bID\b\s*[:#]?.*$", re.IGNORECASE)


def clean_clan_tag(value: Optional[str], max_length: int = 6) -> str:
    return _NON_TAG.sub("", value or "").upper()[:max_length]


def clean_player_name(value: Optional[str], max_length: int = 24) -> str:
    return _NON_NAME.sub("", value or "")[:max_length]


def clean_id(value: Optional[str], min_digits: int = 6) -> Optional[str]:
    digits = _NON_DIGIT.sub("", value or "")
    return digits if len(digits) >= min_digits else None


def clean_kingdom(value: Optional[str], max_digits: int = 4) -> Optional[str]:
    digits = _NON_DIGIT.sub("", value or "")[:max_digits]
    return digits or None


def is_plausible_name(name: Optional[str], settings: ExtractionSettings = DEFAULT_SETTINGS) -> bool:
    """Reject names that are too short or are really UI label words."""
    cleaned = clean_player_name(name, settings.max_name_length)
    if len(cleaned) < settings.min_name_length:
        return False
    return cleaned.lower() not in settings.stop_names


def _alternation(labels: Iterable[str]) -> str:
    # Longest first so "Konigreich" is not shadowed by a shorter synonym
    return "|".join(re.escape(label) for label in sorted(labels, key=len, reverse=True))


class FieldParser:
    """Compiled patterns for one set of thresholds."""

    def __init__(self, settings: ExtractionSettings = DEFAULT_SETTINGS) -> None:
        self.settings = settings
        ids = _alternation(LABEL_SYNONYMS["id"])
        kingdoms = _alternation(LABEL_SYNONYMS["kingdom"])
        alliances = _alternation(LABEL_SYNONYMS["alliance"])

        self._id: Pattern[str] = re.compile(
            rf"(?:{ids})\s*[:#]?\s*([0-9]{{{settings.min_id_digits},}})", re.IGNORECASE
        )
        self._kingdom: Pattern[str] = re.compile(
            rf"(?:{kingdoms})\s*[:#]?\s*#?\s*([0-9]{{1,{settings.max_kingdom_digits}}})", re.IGNORECASE
        )
        self._alliance: Pattern[str] = re.compile(
            rf"(?:{alliances})\s*[:#]?\s*\[?\s*([A-Z0-9]{{2,{settings.max_clan_tag_length}}})", re.IGNORECASE
        )
        # "[SOB]Gashers95" or "[SOB] Gashers95"
        self._tag_and_name: Pattern[str] = re.compile(
            rf"\[\s*([A-Z0-9]{{2,{settings.max_clan_tag_length}}})\s*\]\s*([A-Z0-9_]{{2,{settings.max_name_length}}})",
            re.IGNORECASE,
        )
        self._tag_only: Pattern[str] = re.compile(
            rf"\[\s*([A-Z0-9]{{2,{settings.max_clan_tag_length}}})\s*\]([^\r\n]*)", re.IGNORECASE
        )

    def _name_after_tag(self, tail: str) -> Optional[str]:
        collapsed = _SPACE_RUNS.sub(" ", tail).strip()
        collapsed = _ID_MARKER_TAIL.sub("", collapsed)
        name = clean_player_name(collapsed, self.settings.max_name_length)
        if len(name) >= self.settings.min_name_length and is_plausible_name(name, self.settings):
            return name
        return None

    def _tag_and_player(self, text: str) -> Tuple[Optional[str], Optional[str]]:
        settings = self.settings
        strict = self._tag_and_name.search(text)
        if strict:
            name = clean_player_name(strict.group(2), settings.max_name_length)
            tag = clean_clan_tag(strict.group(1), settings.max_clan_tag_length) or None
            if is_plausible_name(name, settings):
                return tag, name

        loose = self._tag_only.search(text)
        if not loose:
            return None, None
        tag = clean_clan_tag(loose.group(1), settings.max_clan_tag_length) or None
        return tag, self._name_after_tag(loose.group(2))

    def parse(self, raw: Optional[str]) -> ParsedCandidate:
        text = str(raw or "")
        settings = self.settings

        id_match = self._id.search(text)
        kingdom_match = self._kingdom.search(text)
        alliance_match = self._alliance.search(text)

        bracket_tag, player_name = self._tag_and_player(text)
        label_tag = None
        if alliance_match:
            label_tag = clean_clan_tag(alliance_match.group(1), settings.max_clan_tag_length) or None

        return ParsedCandidate(
            id=clean_id(id_match.group(1), settings.min_id_digits) if id_match else None,
            kingdom=clean_kingdom(kingdom_match.group(1), settings.max_kingdom_digits) if kingdom_match else None,
            clan_tag=bracket_tag or label_tag,
            player_name=player_name,
            raw_text=text,
        )


@lru_cache(maxsize=8)
def _parser_for(settings: ExtractionSettings) -> FieldParser:
    return FieldParser(settings)


def parse_text(raw: Optional[str], settings: ExtractionSettings = DEFAULT_SETTINGS) -> ParsedCandidate:
    return _parser_for(settings).parse(raw)


__all__ = [
    "FieldParser",
    "LABEL_SYNONYMS",
    "clean_clan_tag",
    "clean_id",
    "clean_kingdom",
    "clean_player_name",
    "is_plausible_name",
    "parse_text",
]
