from datetime import datetime, timezone

import pytest

from conftest import FakeClient, make_point
from osm_history.exceptions import ValidationError
from osm_history.history.resolver import HistoryResolver, select_version

T1 = "2019-01-01T00:00:00Z"
T2 = "2020-01-01T00:00:00Z"
T3 = "2021-01-01T00:00:00Z"


def three_versions(point_id="1"):
    # Listed out of order on purpose
    return [
        make_point(point_id, 3, T3, 3.0, 3.0),
        make_point(point_id, 1, T1, 1.0, 1.0),
        make_point(point_id, 2, T2, 2.0, 2.0),
    ]


def resolver_for(points):
    return HistoryResolver(FakeClient(points=points))


@pytest.mark.parametrize("reference", [
    "2020-01-01T00:00:00Z",  # exactly t2
    "2020-06-15T12:00:00Z",
    "2020-12-31T23:59:59Z",
])
def test_selects_version_live_at_reference(reference):
    coord = resolver_for({"1": three_versions()}).resolve_coordinate("1", reference)
    assert coord.version == 2
    assert (coord.lat, coord.lon) == (2.0, 2.0)
    assert coord.timestamp == datetime(2020, 1, 1, tzinfo=timezone.utc)


def test_reference_after_all_versions_selects_newest():
    coord = resolver_for({"1": three_versions()}).resolve_coordinate("1", "2030-01-01T00:00:00Z")
    assert coord.version == 3


def test_reference_before_creation_falls_back_to_oldest():
    coord = resolver_for({"1": three_versions()}).resolve_coordinate("1", "2000-01-01T00:00:00Z")
    assert coord.version == 1
    assert (coord.lat, coord.lon) == (1.0, 1.0)


def test_no_reference_selects_highest_version():
    points = [
        make_point("1", 5, T1, 5.0, 5.0),  # highest version with oldest timestamp
        make_point("1", 4, T3, 4.0, 4.0),
    ]
    coord = resolver_for({"1": points}).resolve_coordinate("1", None)
    assert coord.version == 5


def test_accepts_datetime_reference():
    reference = datetime(2020, 6, 1, tzinfo=timezone.utc)
    coord = resolver_for({"1": three_versions()}).resolve_coordinate("#1", reference)
    assert coord.version == 2
    assert coord.point_id == "1"


def test_versions_without_timestamp_sort_earliest():
    points = [
        make_point("1", 1, "", 1.0, 1.0),
        make_point("1", 2, T2, 2.0, 2.0),
    ]
    selected = select_version(points, datetime(2019, 1, 1, tzinfo=timezone.utc))
    assert selected.version == 1


def test_absent_or_empty_history_is_none():
    resolver = resolver_for({"1": None, "2": []})
    assert resolver.resolve_coordinate("1", T2) is None
    assert resolver.resolve_coordinate("2", T2) is None


def test_deleted_version_has_no_coordinates():
    points = [
        make_point("1", 1, T1, 1.0, 1.0),
        make_point("1", 2, T2),  # deleted
    ]
    assert resolver_for({"1": points}).resolve_coordinate("1", T3) is None


@pytest.mark.parametrize("lat, lon", [
    ("91", "0"),
    ("0", "-180.5"),
    ("abc", "1"),
    ("nan", "1"),
])
def test_invalid_coordinates_are_none(lat, lon):
    points = [make_point("1", 1, T1, lat, lon)]
    assert resolver_for({"1": points}).resolve_coordinate("1", T2) is None


def test_boundary_coordinates_are_valid():
    points = [make_point("1", 1, T1, "-90", "180")]
    coord = resolver_for({"1": points}).resolve_coordinate("1", T2)
    assert (coord.lat, coord.lon) == (-90.0, 180.0)


def test_invalid_point_id_raises():
    with pytest.raises(ValidationError):
        resolver_for({}).resolve_coordinate("x1", T2)
