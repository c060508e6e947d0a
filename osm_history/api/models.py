"""
OSM history records

Data classes for single versions of ways and nodes as returned by the history endpoints
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple


@dataclass(frozen=True)
class WayVersion:
    """One historical state of a way"""
    way_id: str
    version: int
    timestamp: Optional[datetime]
    changeset: Optional[str]
    user: Optional[str]
    node_refs: Tuple[str, ...]
    visible: bool = True


@dataclass(frozen=True)
class PointVersion:
    """One historical state of a node (lat/lon are None when deleted)"""
    point_id: str
    version: int
    timestamp: Optional[datetime]
    lat: Optional[str]
    lon: Optional[str]
    visible: bool = True

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lon is not None
