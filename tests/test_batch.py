import pytest

from conftest import FakeClient, make_point
from osm_history.history.batch import BatchResolver, ProgressEvent
from osm_history.history.resolver import HistoryResolver

REFERENCE = "2020-06-01T00:00:00Z"


class SteppingClock:
    """Advances a fixed amount on every read"""

    def __init__(self, step=2.0):
        self.now = 0.0
        self.step = step

    def __call__(self):
        value = self.now
        self.now += self.step
        return value


def make_batch(points, clock=None):
    client = FakeClient(points=points)
    resolver = HistoryResolver(client)
    return BatchResolver(resolver, clock=clock or SteppingClock()), client


def simple_points(*ids):
    return {pid: [make_point(pid, 1, "2019-01-01T00:00:00Z", int(pid), int(pid))] for pid in ids}


def test_resolves_in_order_and_reports_each_point():
    batch, client = make_batch(simple_points("1", "2", "3"))
    events = []

    coords = batch.resolve_all(["1", "2", "3"], REFERENCE, events.append)

    assert [c.point_id for c in coords] == ["1", "2", "3"]
    assert client.point_requests == ["1", "2", "3"]
    assert [(e.current, e.total, e.point_id) for e in events] == [(0, 3, "1"), (1, 3, "2"), (2, 3, "3")]
    assert all(isinstance(e, ProgressEvent) for e in events)


def test_eta_undefined_until_first_point_completes():
    # Clock reads: start=0, then 2 (i=1), then 4 (i=2)
    batch, _ = make_batch(simple_points("1", "2", "3"), clock=SteppingClock(step=2.0))
    events = []
    batch.resolve_all(["1", "2", "3"], REFERENCE, events.append)

    assert events[0].eta is None
    assert events[1].eta == pytest.approx(2.0 / 1 * 2)
    assert events[2].eta == pytest.approx(4.0 / 2 * 1)


def test_failures_are_dropped_without_aborting():
    points = simple_points("1", "3")
    points["2"] = RuntimeError("boom")
    points["4"] = None  # deleted node
    batch, client = make_batch(points)

    coords = batch.resolve_all(["1", "2", "3", "4", "bad"], REFERENCE)

    assert [c.point_id for c in coords] == ["1", "3"]
    assert client.point_requests == ["1", "2", "3", "4"]


def test_iter_resolve_is_an_ordered_event_stream():
    batch, client = make_batch(simple_points("1", "2"))
    run = batch.iter_resolve(["1", "2"], REFERENCE)

    events = iter(run)
    first = next(events)
    assert first.point_id == "1"
    assert client.point_requests == []  # resolved only after the event is consumed

    second = next(events)
    assert second.point_id == "2"
    assert client.point_requests == ["1"]

    with pytest.raises(StopIteration):
        next(events)
    assert [c.point_id for c in run.coordinates] == ["1", "2"]


def test_run_cannot_be_iterated_twice():
    batch, _ = make_batch(simple_points("1"))
    run = batch.iter_resolve(["1"], REFERENCE)
    list(run)
    with pytest.raises(RuntimeError):
        list(run)


def test_empty_refs():
    batch, _ = make_batch({})
    events = []
    assert batch.resolve_all([], REFERENCE, events.append) == []
    assert events == []
