"""
Time-travel coordinate resolution

Each node of a way has its own edit history, so the shape of a way at
version V is rebuilt by picking, for every node, the version that was live
when way version V was saved.
"""

from datetime import datetime, timezone
from typing import List, Optional, Union

from loguru import logger

from ..api.client import HistoryAPIClient
from ..api.models import PointVersion
from ..api.parser import parse_timestamp
from ..api.validation import validate_element_id
from ..models import ResolvedCoordinate, is_valid_coordinate

# Versions without a timestamp sort as the oldest
_EARLIEST = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _timestamp_key(point: PointVersion) -> datetime:
    return point.timestamp or _EARLIEST


def select_version(
    versions: List[PointVersion],
    reference_timestamp: Optional[datetime]
) -> Optional[PointVersion]:
    """
    Pick the node version that was live at reference_timestamp

    With a reference, returns the newest version whose timestamp is at or
    before it, or the oldest version when the node was created later. Without
    a reference, returns the highest version number.
    """
    if not versions:
        return None

    if reference_timestamp is None:
        return max(versions, key=lambda point: point.version)

    ordered = sorted(versions, key=_timestamp_key)
    for point in reversed(ordered):
        if point.timestamp is not None and point.timestamp <= reference_timestamp:
            return point

    logger.warning(
        f"No version of node {ordered[0].point_id} found before {reference_timestamp.isoformat()}, "
        f"using oldest version"
    )
    return ordered[0]


class HistoryResolver:
    """Resolves node positions at a point in time"""

    def __init__(self, client: HistoryAPIClient):
        self.client = client

    def resolve_coordinate(
        self,
        point_id,
        reference_timestamp: Union[datetime, str, None] = None
    ) -> Optional[ResolvedCoordinate]:
        """
        Resolve a node's coordinate as it was at reference_timestamp

        Args:
            point_id: Node id
            reference_timestamp: Moment to travel to (datetime or ISO-8601 string);
                None selects the latest version

        Returns:
            ResolvedCoordinate, or None if the node is gone or has no usable coordinates
        """
        clean_point_id = validate_element_id(point_id, "node id")
        reference = parse_timestamp(reference_timestamp)

        history = self.client.fetch_point_history(clean_point_id)
        if not history:
            logger.warning(f"No history found for node {clean_point_id}")
            return None

        selected = select_version(history, reference)
        if selected is None:
            logger.error(f"No suitable node version found for node {clean_point_id}")
            return None

        if not selected.has_coordinates:
            logger.error(
                f"Node {clean_point_id} has no coordinates in selected version {selected.version}"
            )
            return None

        if not is_valid_coordinate(selected.lat, selected.lon):
            logger.error(
                f"Invalid coordinates for node {clean_point_id}: lat={selected.lat}, lon={selected.lon}"
            )
            return None

        logger.debug(
            f"Selected node {clean_point_id} version {selected.version} ({selected.timestamp}) "
            f"for reference {reference}"
        )

        return ResolvedCoordinate(
            lat=float(selected.lat),
            lon=float(selected.lon),
            point_id=clean_point_id,
            version=selected.version,
            timestamp=selected.timestamp,
        )
