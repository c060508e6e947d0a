"""
OSM history API client

Handles communication with the OSM API 0.6 history endpoints including:
- Input and URL validation
- Rate limiting (one shared marker for every endpoint)
- Retry logic with a fixed delay
- Response caching
"""

import time
from typing import Callable, List, Optional

import requests
from loguru import logger

from ..config import APIConfig
from ..exceptions import NetworkError, NotFoundError
from .cache import HistoryCache
from .models import PointVersion, WayVersion
from .parser import HistoryResponseParser, parse_document
from .validation import sanitize_url, validate_element_id

GONE_STATUS_CODES = (404, 410)


class RateLimiter:
    """Enforces a minimum interval between consecutive outgoing requests"""

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_request_time: Optional[float] = None

    def wait(self):
        """Block until the interval since the previous request has elapsed"""
        if self._last_request_time is not None:
            elapsed = self._clock() - self._last_request_time
            if elapsed < self.min_interval:
                self._sleep(self.min_interval - elapsed)
        self._last_request_time = self._clock()


def _build_session(user_agent: str) -> requests.Session:
    session = requests.Session()
    session.headers.update({
        "User-Agent": user_agent,
        "Accept": "application/xml, text/xml",
    })
    return session


class HistoryAPIClient:
    """Client for the OSM API version history endpoints"""

    def __init__(
        self,
        config: Optional[APIConfig] = None,
        cache: Optional[HistoryCache] = None,
        session: Optional[requests.Session] = None,
        rate_limiter: Optional[RateLimiter] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.config = config or APIConfig()
        self.base_url = self.config.base_url.rstrip("/")
        self.cache = cache
        self.session = session or _build_session(self.config.user_agent)
        self.rate_limiter = rate_limiter or RateLimiter(self.config.min_request_interval)
        self._sleep = sleep
        self.parser = HistoryResponseParser()

    # ============================================================
    # Raw requests
    # ============================================================

    def fetch_raw(self, url: str) -> str:
        """
        Fetch a raw XML document, consulting the cache first

        Args:
            url: Request URL (must be HTTPS to an allowed host)

        Returns:
            Response body text

        Raises:
            ValidationError: If the URL is not allowed
            NotFoundError: On a 404/410 response
            NetworkError: If the request fails after all retries
        """
        clean_url = sanitize_url(url, self.config.allowed_hosts)

        if self.cache is not None:
            cached = self.cache.get(clean_url)
            if cached:
                return cached

        data = self._request(clean_url)

        if self.cache is not None:
            self.cache.set(clean_url, data)

        return data

    def _request(self, url: str) -> str:
        max_retries = self.config.max_retries
        last_error: Optional[Exception] = None

        for attempt in range(max_retries):
            self.rate_limiter.wait()
            logger.debug(f"Making request to: {url}")
            try:
                response = self.session.get(url, timeout=self.config.request_timeout)
                if response.status_code in GONE_STATUS_CODES:
                    raise NotFoundError(f"HTTP {response.status_code} for {url}")
                return self._check_response(response)
            except (requests.exceptions.RequestException, NetworkError) as e:
                last_error = e
                if attempt < max_retries - 1:
                    logger.warning(f"Request failed (attempt {attempt + 1}/{max_retries}): {e}")
                    self._sleep(self.config.retry_delay)
                else:
                    logger.error(f"Request failed after {max_retries} attempts: {e}")

        raise NetworkError(f"Request to {url} failed after {max_retries} attempts: {last_error}") from last_error

    @staticmethod
    def _check_response(response: requests.Response) -> str:
        """Verify status, content type and XML shape; return the body"""
        if not 200 <= response.status_code < 300:
            raise NetworkError(f"HTTP {response.status_code}: {response.reason}")

        content_type = response.headers.get("Content-Type", "")
        if "xml" not in content_type.lower():
            raise NetworkError(f"Invalid response: expected XML content, got {content_type!r}")

        data = response.text
        stripped = data.lstrip()
        if not (stripped.startswith("<?xml") or stripped.startswith("<osm")):
            raise NetworkError("Invalid response: not valid XML")

        parse_document(data)
        return data

    # ============================================================
    # History endpoints
    # ============================================================

    def fetch_way_history(self, way_id) -> List[WayVersion]:
        """
        Fetch every version of a way

        Returns:
            WayVersion list sorted ascending by version number
        """
        clean_way_id = validate_element_id(way_id, "way id")
        url = f"{self.base_url}/way/{clean_way_id}/history"

        try:
            data = self.fetch_raw(url)
        except NotFoundError:
            logger.warning(f"Way {clean_way_id} not found")
            raise
        except NetworkError as e:
            logger.error(f"Failed to fetch way history for {clean_way_id}: {e}")
            raise

        ways = self.parser.parse_ways(data)
        return sorted(ways, key=lambda way: way.version)

    def fetch_point_history(self, point_id) -> Optional[List[PointVersion]]:
        """
        Fetch every version of a node

        Returns:
            PointVersion list in document order, or None if the node is gone (404/410)
        """
        clean_point_id = validate_element_id(point_id, "node id")
        url = f"{self.base_url}/node/{clean_point_id}/history"

        try:
            data = self.fetch_raw(url)
        except NotFoundError as e:
            logger.warning(f"Node {clean_point_id} has been deleted or does not exist ({e})")
            return None

        return self.parser.parse_points(data)

    def fetch_current_point(self, point_id) -> Optional[PointVersion]:
        """Fetch the current version of a node, or None if it cannot be fetched"""
        clean_point_id = validate_element_id(point_id, "node id")
        url = f"{self.base_url}/node/{clean_point_id}"

        try:
            points = self.parser.parse_points(self.fetch_raw(url))
        except (NotFoundError, NetworkError) as e:
            logger.warning(f"Failed to fetch current node {clean_point_id}: {e}")
            return None

        return points[0] if points else None
