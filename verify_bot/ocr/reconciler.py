"""Merge per-pass candidates into the final profile.

Different crops succeed on different fields of the same screenshot, so the
merge is done field by field as a fold over the passes in priority order.
The fold is pure: each step returns a new ``MergeRecord`` and a field, once
filled, is never overwritten by a later pass.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from functools import reduce
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from verify_bot.ocr.errors import ExtractionError
from verify_bot.ocr.field_parser import clean_clan_tag, clean_player_name, is_plausible_name
from verify_bot.ocr.models import ExtractionResult, ParsedCandidate
from verify_bot.ocr.settings import DEFAULT_SETTINGS, ExtractionSettings

MANDATORY_FIELDS = (("id", "id"), ("kingdom", "kingdom"), ("clan_tag", "clanTag"))


@dataclass(frozen=True, slots=True)
class MergeRecord:
    id: Optional[str] = None
    kingdom: Optional[str] = None
    clan_tag: Optional[str] = None
    player_name: Optional[str] = None
    raw_text: Optional[str] = None


def merge_candidate(record: MergeRecord, candidate: ParsedCandidate) -> MergeRecord:
    """Fill the empty fields of ``record`` from ``candidate``."""
    return replace(
        record,
        id=record.id or candidate.id,
        kingdom=record.kingdom or candidate.kingdom,
        clan_tag=record.clan_tag or candidate.clan_tag,
        player_name=record.player_name or candidate.player_name,
        raw_text=record.raw_text or candidate.raw_text or None,
    )


def fold_candidates(candidates: Iterable[ParsedCandidate], initial: Optional[MergeRecord] = None) -> MergeRecord:
    return reduce(merge_candidate, candidates, initial or MergeRecord())


def pick_best_name(
    names: Iterable[Optional[str]],
    settings: ExtractionSettings = DEFAULT_SETTINGS,
) -> Optional[str]:
    """Longest plausible name; names containing a digit win ties."""
    cleaned = [clean_player_name(name, settings.max_name_length) for name in names if name]
    plausible = [name for name in cleaned if is_plausible_name(name, settings)]
    if not plausible:
        return None
    # sorted() is stable, so equal scores keep pass priority order
    ranked = sorted(
        plausible,
        key=lambda name: (len(name), any(ch.isdigit() for ch in name)),
        reverse=True,
    )
    return ranked[0]


def missing_fields(record: MergeRecord) -> List[str]:
    return [label for attr, label in MANDATORY_FIELDS if not getattr(record, attr)]


def reconcile(
    card_candidates: Sequence[ParsedCandidate],
    name_candidates: Sequence[ParsedCandidate] = (),
    diagnostics: Optional[Mapping[str, str]] = None,
    settings: ExtractionSettings = DEFAULT_SETTINGS,
) -> ExtractionResult:
    """Combine card and name-hunt passes into an ``ExtractionResult``.

    id and kingdom only ever come from card passes. Name-hunt passes take
    precedence for the clan tag and the player name; card passes fill in
    when no name-hunt pass produced them.

    Raises:
        ExtractionError: If id, kingdom or clan tag is still missing.
    """
    card = fold_candidates(card_candidates)
    name = fold_candidates(name_candidates)

    clan_tag = clean_clan_tag(name.clan_tag or card.clan_tag, settings.max_clan_tag_length) or None
    player_name = pick_best_name((c.player_name for c in name_candidates), settings)
    if player_name is None:
        player_name = pick_best_name((c.player_name for c in card_candidates), settings)

    merged = replace(card, clan_tag=clan_tag, player_name=player_name)
    missing = missing_fields(merged)
    if missing:
        raise ExtractionError(missing)

    diag: Dict[str, str] = dict(diagnostics or {})
    return ExtractionResult(
        id=merged.id,  # type: ignore[arg-type]
        kingdom=merged.kingdom,  # type: ignore[arg-type]
        clan_tag=merged.clan_tag,  # type: ignore[arg-type]
        player_name=merged.player_name,
        diagnostics=diag,
    )


__all__ = [
    "MANDATORY_FIELDS",
    "MergeRecord",
    "fold_candidates",
    "merge_candidate",
    "missing_fields",
    "pick_best_name",
    "reconcile",
]
