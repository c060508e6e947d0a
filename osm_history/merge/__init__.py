"""
Way merging

- Selectors: parsing of "wayId[:version]" lists
- Geometry: endpoint matching, reversal and deduplication helpers
- Merger: fetch, rebuild and splice additional ways onto a base path
"""

from .selectors import WaySelector, parse_way_selectors, LATEST
from .geometry import PathGeometry, Connection, TOLERANCE
from .merger import WayMerger, MergeProgress, select_way_version, validate_merge_result

__all__ = [
    "WaySelector",
    "parse_way_selectors",
    "LATEST",
    "PathGeometry",
    "Connection",
    "TOLERANCE",
    "WayMerger",
    "MergeProgress",
    "select_way_version",
    "validate_merge_result",
]
