from verify_bot.core.verified_store import VerifiedStore


def test_get_record_returns_none_for_unknown_user(tmp_path):
    store = VerifiedStore(tmp_path / "verified.sqlite3")
    assert store.get_record("42") is None


def test_upsert_creates_record(tmp_path):
    store = VerifiedStore(tmp_path / "nested" / "verified.sqlite3")

    record = store.upsert_record(
        "42", {"game_id": "847213", "clan_tag": "ABC", "kingdom": "88", "player_name": "Gasher99"}
    )

    assert record["user_id"] == "42"
    assert record["first_seen"] == record["updated_at"]
    stored = store.get_record("42")
    assert stored["game_id"] == "847213"
    assert stored["player_name"] == "Gasher99"


def test_upsert_merges_and_keeps_first_seen(tmp_path):
    store = VerifiedStore(tmp_path / "verified.sqlite3")
    first = store.upsert_record("42", {"game_id": "847213", "clan_tag": "ABC", "kingdom": "88", "player_name": "Old"})

    second = store.upsert_record("42", {"clan_tag": "XYZ", "player_name": None})

    assert second["game_id"] == "847213"
    assert second["clan_tag"] == "XYZ"
    assert second["player_name"] is None
    assert second["first_seen"] == first["first_seen"]
    assert store.get_record("42")["clan_tag"] == "XYZ"


def test_unknown_payload_keys_are_ignored(tmp_path):
    store = VerifiedStore(tmp_path / "verified.sqlite3")
    record = store.upsert_record("7", {"game_id": "123456", "favourite_colour": "red"})
    assert "favourite_colour" not in record
    assert store.get_record("7")["game_id"] == "123456"


def test_memory_store_keeps_data_between_calls():
    store = VerifiedStore(":memory:")
    store.upsert_record("1", {"game_id": "999999"})
    assert store.get_record("1")["game_id"] == "999999"
