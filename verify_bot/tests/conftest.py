from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from verify_bot.config import VerifyBotConfig  # noqa: E402
from verify_bot.tests.helpers import make_image_bytes  # noqa: E402


@pytest.fixture()
def sample_config(tmp_path) -> VerifyBotConfig:
    return VerifyBotConfig(
        discord_token="testing-token",
        guild_id=10,
        verify_channel_id=20,
        role_unverified_id=30,
        role_verified_id=40,
        verify_log_channel_id=50,
        clan_role_map={"ABC": 60},
        kingdom_role_map={"88": 70},
        storage_path=tmp_path / "verified.sqlite3",
        upload_timeout=5,
        test_guild_ids={2},
    )


@pytest.fixture()
def profile_png() -> bytes:
    return make_image_bytes()


__all__ = ["sample_config", "profile_png"]
