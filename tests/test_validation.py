import pytest

from osm_history.api.validation import sanitize_url, validate_element_id
from osm_history.exceptions import ValidationError

ALLOWED = ["openstreetmap.org"]


@pytest.mark.parametrize("value, expected", [
    ("1", "1"),
    ("123456", "123456"),
    ("#123456", "123456"),
    ("###42", "42"),
    ("9" * 19, "9" * 19),
    (987, "987"),
])
def test_valid_ids_are_stripped(value, expected):
    assert validate_element_id(value, "way id") == expected


@pytest.mark.parametrize("value", [
    "",
    "#",
    "0",
    "0123",
    "-5",
    "12a",
    "1" * 20,
    "1.5",
    " 123",
    "#123 ",
    "123\n",
    "１２３",  # full-width digits
    None,
    True,
    12.0,
])
def test_invalid_ids_raise(value):
    with pytest.raises(ValidationError):
        validate_element_id(value, "node id")


def test_validation_error_is_a_value_error():
    with pytest.raises(ValueError):
        validate_element_id("abc")


def test_sanitize_url_accepts_osm_https():
    url = "https://api.openstreetmap.org/api/0.6/way/1/history"
    assert sanitize_url(url, ALLOWED) == url


def test_sanitize_url_normalizes_host_and_drops_fragment():
    url = "HTTPS://API.OpenStreetMap.org:443/api/0.6/node/5#frag"
    assert sanitize_url(url, ALLOWED) == "https://api.openstreetmap.org/api/0.6/node/5"


@pytest.mark.parametrize("url", [
    "http://api.openstreetmap.org/api/0.6/way/1/history",
    "https://example.com/api/0.6/way/1/history",
    "https://openstreetmap.org.evil.com/way/1",
    "https://evilopenstreetmap.org/way/1",
    "https://user:pw@api.openstreetmap.org/way/1",
    "ftp://api.openstreetmap.org/way/1",
    "not a url",
])
def test_sanitize_url_rejects_disallowed(url):
    with pytest.raises(ValidationError):
        sanitize_url(url, ALLOWED)
