"""
OSM API access

Components:
- Validation: element ids and request URLs
- Models: WayVersion, PointVersion
- Parser: XML history documents
- Cache: raw response caching
- Client: rate-limited, retrying gateway to the history endpoints
"""

from .models import WayVersion, PointVersion
from .cache import HistoryCache
from .client import HistoryAPIClient, RateLimiter
from .validation import validate_element_id, sanitize_url

__all__ = [
    "WayVersion",
    "PointVersion",
    "HistoryCache",
    "HistoryAPIClient",
    "RateLimiter",
    "validate_element_id",
    "sanitize_url",
]
