"""Environment-backed configuration helpers for VerifyBot."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Set

from verify_bot.ocr.settings import ExtractionSettings


def _split_ints(value: str) -> Set[int]:
    ints: Set[int] = set()
    for chunk in (value or "").replace(";", ",").split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        try:
            ints.add(int(chunk))
        except ValueError:
            continue
    return ints


def _split_role_map(value: str, *, upper_keys: bool = False) -> Dict[str, int]:
    """Parse ``KEY=role_id`` pairs separated by commas or semicolons."""

    mapping: Dict[str, int] = {}
    for chunk in (value or "").replace(";", ",").split(","):
        key, sep, raw_id = chunk.partition("=")
        key = key.strip().lstrip("#")
        if not sep or not key:
            continue
        try:
            role_id = int(raw_id.strip())
        except ValueError:
            continue
        mapping[key.upper() if upper_keys else key] = role_id
    return mapping


def _required_int(name: str) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        raise RuntimeError(f"{name} is required to run the bot")
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a numeric Discord id, got {raw!r}") from exc


def _optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _int_or_default(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _extraction_from_env() -> ExtractionSettings:
    defaults = ExtractionSettings()
    return ExtractionSettings(
        max_width=_int_or_default("OCR_MAX_WIDTH", defaults.max_width),
        max_pixels=_int_or_default("OCR_MAX_PIXELS", defaults.max_pixels),
        min_width=_int_or_default("OCR_MIN_WIDTH", defaults.min_width),
        min_id_digits=_int_or_default("OCR_MIN_ID_DIGITS", defaults.min_id_digits),
        min_name_length=_int_or_default("OCR_MIN_NAME_LENGTH", defaults.min_name_length),
        language=os.getenv("OCR_LANGUAGE", defaults.language).strip() or defaults.language,
        tesseract_cmd=os.getenv("TESSERACT_CMD", "").strip() or None,
    )


@dataclass(slots=True)
class VerifyBotConfig:
    discord_token: str
    guild_id: int
    verify_channel_id: int
    role_unverified_id: int
    role_verified_id: int
    verify_log_channel_id: Optional[int] = None
    # Clan tag -> role id, kingdom number -> role id
    clan_role_map: Dict[str, int] = field(default_factory=dict)
    kingdom_role_map: Dict[str, int] = field(default_factory=dict)
    storage_path: Path = Path("storage") / "verified.sqlite3"
    upload_timeout: int = 180
    test_guild_ids: Set[int] = field(default_factory=set)
    extraction: ExtractionSettings = field(default_factory=ExtractionSettings)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "VerifyBotConfig":
        token = os.getenv("DISCORD_TOKEN", "").strip()
        if not token:
            raise RuntimeError("DISCORD_TOKEN is required to run the bot")

        storage_dir = Path(os.getenv("STORAGE_DIR", "").strip() or Path.cwd() / "storage")

        return cls(
            discord_token=token,
            guild_id=_required_int("GUILD_ID"),
            verify_channel_id=_required_int("VERIFY_CHANNEL_ID"),
            role_unverified_id=_required_int("ROLE_UNVERIFIED_ID"),
            role_verified_id=_required_int("ROLE_VERIFIED_ID"),
            verify_log_channel_id=_optional_int("VERIFY_LOG_CHANNEL_ID"),
            clan_role_map=_split_role_map(os.getenv("CLAN_ROLE_MAP", ""), upper_keys=True),
            kingdom_role_map=_split_role_map(os.getenv("KINGDOM_ROLE_MAP", "")),
            storage_path=storage_dir / "verified.sqlite3",
            upload_timeout=_int_or_default("UPLOAD_TIMEOUT_SECONDS", 180),
            test_guild_ids=_split_ints(os.getenv("TEST_GUILDS", "")),
            extraction=_extraction_from_env(),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


__all__ = ["VerifyBotConfig"]
