import sys
from pathlib import Path

import pytest
import requests

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from osm_history.api.models import PointVersion, WayVersion  # noqa: E402
from osm_history.api.parser import parse_timestamp  # noqa: E402
from osm_history.config import APIConfig, HistoryConfig  # noqa: E402
from osm_history.models import ResolvedCoordinate  # noqa: E402

API_BASE = "https://api.openstreetmap.org/api/0.6"


# ============================================================
# XML builders
# ============================================================

def node_xml(node_id, version, timestamp, lat=None, lon=None, visible=True):
    coords = f' lat="{lat}" lon="{lon}"' if lat is not None and lon is not None else ""
    return (
        f'<node id="{node_id}" visible="{str(visible).lower()}" version="{version}" '
        f'changeset="{100 + version}" timestamp="{timestamp}" user="mapper" uid="1"{coords}/>'
    )


def way_xml(way_id, version, timestamp, node_refs, user="mapper"):
    nds = "".join(f'<nd ref="{ref}"/>' for ref in node_refs)
    return (
        f'<way id="{way_id}" visible="true" version="{version}" changeset="{200 + version}" '
        f'timestamp="{timestamp}" user="{user}" uid="1">{nds}<tag k="highway" v="residential"/></way>'
    )


def osm_document(*elements):
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<osm version="0.6" generator="test">' + "".join(elements) + "</osm>"
    )


# ============================================================
# Fake HTTP
# ============================================================

class FakeResponse:
    def __init__(self, status_code=200, text="", content_type="application/xml; charset=utf-8"):
        self.status_code = status_code
        self.text = text
        self.reason = "OK" if status_code < 400 else "Error"
        self.headers = {"Content-Type": content_type} if content_type else {}


class FakeSession:
    """Serves queued responses per URL; the last response for a URL repeats"""

    def __init__(self, routes=None):
        self.routes = {url: list(responses) for url, responses in (routes or {}).items()}
        self.calls = []
        self.headers = {}

    def add(self, url, *responses):
        self.routes.setdefault(url, []).extend(responses)

    def get(self, url, timeout=None, **kwargs):
        self.calls.append(url)
        queue = self.routes.get(url)
        if not queue:
            return FakeResponse(404, "Not found", content_type="text/plain")
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, Exception):
            raise response
        return response


# ============================================================
# Fake gateway
# ============================================================

class FakeClient:
    """In-memory stand-in for HistoryAPIClient"""

    def __init__(self, ways=None, points=None):
        self.ways = ways or {}
        self.points = points or {}
        self.point_requests = []

    def fetch_way_history(self, way_id):
        if way_id not in self.ways:
            raise requests.ConnectionError(f"way {way_id} unavailable")
        return sorted(self.ways[way_id], key=lambda way: way.version)

    def fetch_point_history(self, point_id):
        self.point_requests.append(point_id)
        value = self.points.get(point_id)
        if isinstance(value, Exception):
            raise value
        return value


def make_way(way_id, version, timestamp, node_refs, user="mapper"):
    return WayVersion(
        way_id=str(way_id),
        version=version,
        timestamp=parse_timestamp(timestamp),
        changeset=str(200 + version),
        user=user,
        node_refs=tuple(str(ref) for ref in node_refs),
    )


def make_point(point_id, version, timestamp, lat=None, lon=None):
    return PointVersion(
        point_id=str(point_id),
        version=version,
        timestamp=parse_timestamp(timestamp),
        lat=None if lat is None else str(lat),
        lon=None if lon is None else str(lon),
        visible=lat is not None,
    )


def coord(lat, lon, point_id="1", version=1):
    return ResolvedCoordinate(lat=lat, lon=lon, point_id=point_id, version=version)


# ============================================================
# Fixtures
# ============================================================

@pytest.fixture
def api_config():
    return APIConfig(min_request_interval=0.0, retry_delay=0.0)


@pytest.fixture
def history_config(tmp_path, api_config):
    config = HistoryConfig(api=api_config)
    config.cache.cache_dir = str(tmp_path / "cache")
    config.output_dir = str(tmp_path / "output")
    return config


@pytest.fixture
def sleeps():
    return []
