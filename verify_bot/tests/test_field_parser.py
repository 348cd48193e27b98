import pytest

from verify_bot.ocr.field_parser import (
    FieldParser,
    clean_clan_tag,
    clean_id,
    clean_kingdom,
    clean_player_name,
    is_plausible_name,
    parse_text,
)
from verify_bot.ocr.settings import ExtractionSettings


def test_full_info_card():
    candidate = parse_text("ID:847213 Kingdom:#88 Alliance:ABC")
    assert candidate.id == "847213"
    assert candidate.kingdom == "88"
    assert candidate.clan_tag == "ABC"
    assert candidate.player_name is None
    assert candidate.has_id_and_kingdom


def test_multiline_card_with_noise():
    text = "Power 1,234,567\nID # 90817263\nKingdom  #221\nAlliance: [sob]\nKills 12345"
    candidate = parse_text(text)
    assert candidate.id == "90817263"
    assert candidate.kingdom == "221"
    assert candidate.clan_tag == "SOB"


@pytest.mark.parametrize(
    "text, kingdom, tag",
    [
        ("Königreich: 88 Allianz: XYZ", "88", "XYZ"),
        ("Reino #12 Alianza: ABC", "12", "ABC"),
        ("Royaume 7 Alliance AB12", "7", "AB12"),
    ],
)
def test_localized_labels(text, kingdom, tag):
    candidate = parse_text(text)
    assert candidate.kingdom == kingdom
    assert candidate.clan_tag == tag


def test_short_id_is_rejected():
    assert parse_text("ID: 12345").id is None


def test_kingdom_is_truncated_to_four_digits():
    assert parse_text("Kingdom 123456").kingdom == "1234"


def test_bracket_tag_wins_over_alliance_label():
    candidate = parse_text("Alliance: ABC\n[XYZ]Player1")
    assert candidate.clan_tag == "XYZ"
    assert candidate.player_name == "Player1"


def test_bracket_with_space_before_name():
    candidate = parse_text("[ABC] Gasher99")
    assert candidate.clan_tag == "ABC"
    assert candidate.player_name == "Gasher99"


def test_label_word_in_name_slot_is_dropped():
    candidate = parse_text("[ABC] Kingdom")
    assert candidate.clan_tag == "ABC"
    assert candidate.player_name is None


def test_tag_only_fallback_sanitizes_rest_of_line():
    candidate = parse_text("[ABC] $$Gasher ID:1234567")
    assert candidate.clan_tag == "ABC"
    assert candidate.player_name == "Gasher"
    assert candidate.id == "1234567"


def test_tag_only_fallback_needs_plausible_name():
    candidate = parse_text("[ABC] ~~x")
    assert candidate.clan_tag == "ABC"
    assert candidate.player_name is None


@pytest.mark.parametrize("raw", [None, "", "   \n\t", "random words only"])
def test_unparseable_text_yields_empty_candidate(raw):
    candidate = parse_text(raw)
    assert (candidate.id, candidate.kingdom, candidate.clan_tag, candidate.player_name) == (None, None, None, None)


def test_raw_text_is_kept():
    assert parse_text("Kingdom 5").raw_text == "Kingdom 5"


def test_thresholds_follow_settings():
    parser = FieldParser(ExtractionSettings(min_id_digits=4, min_name_length=5))
    candidate = parser.parse("ID 12345\n[AB]Gash")
    assert candidate.id == "12345"
    assert candidate.player_name is None


def test_clean_helpers():
    assert clean_clan_tag("a-b c!") == "ABC"
    assert clean_clan_tag("abcdefgh") == "ABCDEF"
    assert clean_clan_tag(None) == ""
    assert clean_player_name("Gas her!_9") == "Gasher_9"
    assert clean_player_name("x" * 40) == "x" * 24
    assert clean_id("12-34-56") == "123456"
    assert clean_id("12345") is None
    assert clean_kingdom("#88") == "88"
    assert clean_kingdom("no digits") is None


def test_is_plausible_name():
    assert is_plausible_name("Gasher")
    assert not is_plausible_name("ab")
    assert not is_plausible_name("Kills")
    assert not is_plausible_name("ALLIANZ")


def test_reference_card_layout():
    candidate = parse_text("ID: 123456\nKingdom: #247\nAlliance: SOB")
    assert (candidate.id, candidate.kingdom, candidate.clan_tag) == ("123456", "247", "SOB")


@pytest.mark.parametrize("value", ["[s-o-b]", "Gas her!_9", "#0088", "12 34 56 78"])
def test_sanitizers_are_idempotent(value):
    assert clean_clan_tag(clean_clan_tag(value)) == clean_clan_tag(value)
    assert clean_player_name(clean_player_name(value)) == clean_player_name(value)
    assert clean_kingdom(clean_kingdom(value)) == clean_kingdom(value)


@pytest.mark.parametrize(
    "text, tag, name",
    [
        ("[abc]Name123", "ABC", "Name123"),
        ("[ sob ] Gashers95", "SOB", "Gashers95"),
        ("[Ab1]player_one", "AB1", "player_one"),
    ],
)
def test_bracket_tag_is_uppercased(text, tag, name):
    candidate = parse_text(text)
    assert candidate.clan_tag == tag
    assert candidate.player_name == name
