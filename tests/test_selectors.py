import pytest

from osm_history.exceptions import ValidationError
from osm_history.merge.selectors import LATEST, WaySelector, parse_way_selector, parse_way_selectors


def test_parses_all_token_forms():
    selectors = parse_way_selectors("123, #456:3, 789:latest")
    assert selectors == [
        WaySelector("123", LATEST),
        WaySelector("456", 3),
        WaySelector("789", LATEST),
    ]


def test_missing_version_defaults_to_latest():
    assert parse_way_selector("42").is_latest


def test_duplicates_collapse_keeping_first():
    selectors = parse_way_selectors("1, 2:5, 1:latest, #1, 2:5, 2:6")
    assert selectors == [WaySelector("1", LATEST), WaySelector("2", 5), WaySelector("2", 6)]


def test_empty_tokens_ignored():
    assert parse_way_selectors(" , 7 ,, ") == [WaySelector("7", LATEST)]


@pytest.mark.parametrize("text", ["", " ", ",,", None, 123])
def test_no_entries_raises(text):
    with pytest.raises(ValidationError):
        parse_way_selectors(text)


@pytest.mark.parametrize("token", ["abc", "0", "12:0", "12:-1", "12:v2", "12:", "1:2:3", "1" * 20])
def test_malformed_token_raises(token):
    with pytest.raises(ValidationError):
        parse_way_selectors(f"5, {token}")


def test_str_form():
    assert str(WaySelector("9", 2)) == "9:2"
