from pathlib import Path

import pytest

from verify_bot.config import VerifyBotConfig, _split_ints, _split_role_map

REQUIRED_ENV = {
    "DISCORD_TOKEN": "abc",
    "GUILD_ID": "1",
    "VERIFY_CHANNEL_ID": "2",
    "ROLE_UNVERIFIED_ID": "3",
    "ROLE_VERIFIED_ID": "4",
}

OPTIONAL_KEYS = (
    "VERIFY_LOG_CHANNEL_ID",
    "CLAN_ROLE_MAP",
    "KINGDOM_ROLE_MAP",
    "STORAGE_DIR",
    "UPLOAD_TIMEOUT_SECONDS",
    "TEST_GUILDS",
    "OCR_MAX_WIDTH",
    "OCR_MAX_PIXELS",
    "OCR_MIN_WIDTH",
    "OCR_MIN_ID_DIGITS",
    "OCR_MIN_NAME_LENGTH",
    "OCR_LANGUAGE",
    "TESSERACT_CMD",
    "LOG_LEVEL",
)


@pytest.fixture()
def base_env(monkeypatch):
    for key in OPTIONAL_KEYS:
        monkeypatch.delenv(key, raising=False)
    for key, value in REQUIRED_ENV.items():
        monkeypatch.setenv(key, value)
    return monkeypatch


def test_split_ints_handles_mixed_delimiters_and_invalid():
    assert _split_ints("1, 2; 3,not-a-number,4 ") == {1, 2, 3, 4}


def test_split_role_map_parses_pairs_and_skips_garbage():
    assert _split_role_map("sob=123; THE = 456,broken,x=nope", upper_keys=True) == {"SOB": 123, "THE": 456}
    assert _split_role_map("#88=10,221=11") == {"88": 10, "221": 11}
    assert _split_role_map("") == {}


def test_from_env_parses_values(base_env, tmp_path):
    base_env.setenv("VERIFY_LOG_CHANNEL_ID", "5")
    base_env.setenv("CLAN_ROLE_MAP", "sob=100")
    base_env.setenv("KINGDOM_ROLE_MAP", "88=200")
    base_env.setenv("STORAGE_DIR", str(tmp_path))
    base_env.setenv("UPLOAD_TIMEOUT_SECONDS", "60")
    base_env.setenv("TEST_GUILDS", "7;8")
    base_env.setenv("OCR_MIN_ID_DIGITS", "7")
    base_env.setenv("OCR_LANGUAGE", "deu")
    base_env.setenv("TESSERACT_CMD", "/usr/local/bin/tesseract")

    config = VerifyBotConfig.from_env()

    assert config.discord_token == "abc"
    assert config.guild_id == 1
    assert config.verify_channel_id == 2
    assert config.role_unverified_id == 3
    assert config.role_verified_id == 4
    assert config.verify_log_channel_id == 5
    assert config.clan_role_map == {"SOB": 100}
    assert config.kingdom_role_map == {"88": 200}
    assert config.storage_path == Path(tmp_path) / "verified.sqlite3"
    assert config.upload_timeout == 60
    assert config.test_guild_ids == {7, 8}
    assert config.extraction.min_id_digits == 7
    assert config.extraction.language == "deu"
    assert config.extraction.tesseract_cmd == "/usr/local/bin/tesseract"


def test_from_env_defaults(base_env):
    config = VerifyBotConfig.from_env()

    assert config.verify_log_channel_id is None
    assert config.clan_role_map == {}
    assert config.upload_timeout == 180
    assert config.storage_path.name == "verified.sqlite3"
    assert config.extraction.max_width == 2200
    assert config.extraction.tesseract_cmd is None
    assert config.log_level == "INFO"


def test_bad_numeric_override_falls_back_to_default(base_env):
    base_env.setenv("UPLOAD_TIMEOUT_SECONDS", "soon")
    base_env.setenv("OCR_MAX_WIDTH", "wide")
    config = VerifyBotConfig.from_env()
    assert config.upload_timeout == 180
    assert config.extraction.max_width == 2200


def test_from_env_requires_token(base_env):
    base_env.delenv("DISCORD_TOKEN", raising=False)
    with pytest.raises(RuntimeError, match="DISCORD_TOKEN"):
        VerifyBotConfig.from_env()


@pytest.mark.parametrize("key", ["GUILD_ID", "VERIFY_CHANNEL_ID", "ROLE_UNVERIFIED_ID", "ROLE_VERIFIED_ID"])
def test_from_env_requires_discord_ids(base_env, key):
    base_env.delenv(key, raising=False)
    with pytest.raises(RuntimeError, match=key):
        VerifyBotConfig.from_env()


def test_from_env_rejects_non_numeric_ids(base_env):
    base_env.setenv("GUILD_ID", "my-guild")
    with pytest.raises(RuntimeError, match="numeric"):
        VerifyBotConfig.from_env()
