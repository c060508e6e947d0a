"""
Pydantic models for extraction and merge results
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


# ============================================================
# Coordinates
# ============================================================

class ResolvedCoordinate(BaseModel):
    """A node position as it existed at a specific moment"""
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)
    point_id: str
    version: int
    timestamp: Optional[datetime] = None


def is_valid_coordinate(lat, lon) -> bool:
    """Check that lat/lon are finite numbers inside the WGS84 ranges"""
    try:
        lat_num = float(lat)
        lon_num = float(lon)
    except (TypeError, ValueError):
        return False
    # NaN fails every comparison
    return -90 <= lat_num <= 90 and -180 <= lon_num <= 180


# ============================================================
# Way results
# ============================================================

class WayMetadata(BaseModel):
    way_id: str
    version: int
    timestamp: Optional[datetime] = None
    changeset: Optional[str] = None
    user: str = "Unknown"
    coordinate_count: int


class ExtractionResult(BaseModel):
    """Coordinates of a single way version"""
    way: WayMetadata
    coordinates: List[ResolvedCoordinate]
    node_count: int

    @property
    def valid_node_count(self) -> int:
        return len(self.coordinates)


class MergeResult(BaseModel):
    """Outcome of stitching additional ways onto a base path"""
    coordinates: List[ResolvedCoordinate]
    ways_processed: int
    connections: int
    duplicates_removed: int
    per_way_metadata: List[WayMetadata] = Field(default_factory=list)

    @property
    def total_coordinates(self) -> int:
        return len(self.coordinates)
