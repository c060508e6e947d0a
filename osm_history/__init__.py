"""
OSM Way History Extractor

Rebuilds the geometry of an OpenStreetMap way as it was at any of its
versions, and stitches several way versions into one continuous path.
"""

from .config import HistoryConfig, get_config
from .exceptions import OSMHistoryError, ValidationError, NetworkError, NotFoundError, MergeError
from .models import ResolvedCoordinate, MergeResult, ExtractionResult, WayMetadata
from .pipeline import HistoryExtractor

__all__ = [
    "HistoryConfig",
    "get_config",
    "OSMHistoryError",
    "ValidationError",
    "NetworkError",
    "NotFoundError",
    "MergeError",
    "ResolvedCoordinate",
    "MergeResult",
    "ExtractionResult",
    "WayMetadata",
    "HistoryExtractor",
]
