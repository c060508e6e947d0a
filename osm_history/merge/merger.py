"""
Way merging

Fetches additional way versions, rebuilds each one's geometry at its own
timestamp, and splices them onto a base path by nearest-endpoint matching.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Union

from loguru import logger

from ..api.client import HistoryAPIClient
from ..api.models import WayVersion
from ..exceptions import MergeError, NotFoundError
from ..history.batch import BatchResolver, ProgressEvent
from ..models import (
    ExtractionResult, MergeResult, ResolvedCoordinate, WayMetadata, is_valid_coordinate
)
from .geometry import END, START, TOLERANCE, PathGeometry
from .selectors import LATEST, WaySelector

PHASE_FETCHING = "fetching"
PHASE_PROCESSING_NODES = "processing_nodes"
PHASE_MERGING = "merging"


@dataclass(frozen=True)
class MergeProgress:
    """Progress of a merge, one stream across all selectors"""
    phase: str
    way_index: int
    total_ways: int
    way_id: str
    version: Union[int, str]
    node_progress: Optional[ProgressEvent] = None
    connection_distance: Optional[float] = None


def select_way_version(versions: Sequence[WayVersion], version: Union[int, str]) -> WayVersion:
    """
    Pick a way version from its history

    Raises:
        NotFoundError: If the history is empty or the requested version does not exist
    """
    if not versions:
        raise NotFoundError("No versions found for way")

    if version == LATEST:
        return max(versions, key=lambda way: way.version)

    for way in versions:
        if way.version == version:
            return way

    raise NotFoundError(f"Version {version} not found for way {versions[0].way_id}")


def validate_merge_result(result: MergeResult) -> bool:
    """
    Check a merge result is usable

    Raises:
        MergeError: If there are no coordinates or any coordinate is out of range
    """
    if not result.coordinates:
        raise MergeError("Merge resulted in no coordinates")

    invalid = [coord for coord in result.coordinates if not is_valid_coordinate(coord.lat, coord.lon)]
    if invalid:
        raise MergeError(f"Found {len(invalid)} invalid coordinates after merge")

    logger.info(f"Merge validation passed: {len(result.coordinates)} valid coordinates")
    return True


class WayMerger:
    """Stitches way versions into one continuous path"""

    tolerance = TOLERANCE

    def __init__(self, client: HistoryAPIClient, batch_resolver: BatchResolver):
        self.client = client
        self.batch_resolver = batch_resolver

    def fetch_way_coordinates(
        self,
        selector: WaySelector,
        progress_callback: Optional[Callable[[ProgressEvent], None]] = None
    ) -> ExtractionResult:
        """
        Rebuild the geometry of one way version

        Every node is resolved at the way version's own timestamp, so the
        result is the shape the way had when that version was saved.

        Raises:
            NotFoundError: If the version is missing, has no nodes, or no node resolves
            ValidationError, NetworkError: From the API client
        """
        way_id, version = selector.way_id, selector.version
        logger.info(f"Fetching coordinates for way {way_id}, version {version}")

        versions = self.client.fetch_way_history(way_id)
        if not versions:
            raise NotFoundError(f"No versions found for way {way_id}")
        way = select_way_version(versions, version)

        if not way.node_refs:
            raise NotFoundError(f"No nodes found in way {way_id} version {way.version}")

        logger.info(
            f"Way {way_id} v{way.version} from {way.timestamp} has {len(way.node_refs)} node references"
        )

        coordinates = self.batch_resolver.resolve_all(way.node_refs, way.timestamp, progress_callback)
        if not coordinates:
            raise NotFoundError(f"No valid coordinates found for way {way_id} version {way.version}")

        if len(coordinates) != len(way.node_refs):
            logger.warning(
                f"Retrieved {len(coordinates)} valid coordinates out of {len(way.node_refs)} nodes "
                f"for way {way_id} v{way.version}"
            )

        logger.info(f"Successfully retrieved {len(coordinates)} coordinates for way {way_id} version {way.version}")

        return ExtractionResult(
            way=WayMetadata(
                way_id=way_id,
                version=way.version,
                timestamp=way.timestamp,
                changeset=way.changeset,
                user=way.user or "Unknown",
                coordinate_count=len(coordinates),
            ),
            coordinates=coordinates,
            node_count=len(way.node_refs),
        )

    def merge(
        self,
        base_coordinates: Sequence[ResolvedCoordinate],
        selectors: Sequence[WaySelector],
        auto_reverse: bool = True,
        remove_duplicates: bool = True,
        progress_callback: Optional[Callable[[MergeProgress], None]] = None
    ) -> MergeResult:
        """
        Merge additional way versions onto a base path

        A selector that cannot be fetched or resolved is logged and skipped.

        Args:
            base_coordinates: Path to extend
            selectors: Ways to add, merged in order
            auto_reverse: Flip segments so their matched endpoint touches the path
            remove_duplicates: Collapse consecutive points within tolerance at the end

        Returns:
            MergeResult (already validated)

        Raises:
            MergeError: If the merged path is empty or invalid
        """
        merged = list(base_coordinates)
        connections = 0
        duplicates_removed = 0
        ways_processed = 1  # Base way counts as 1
        processed_ways: List[WayMetadata] = []
        total_ways = len(selectors)

        def notify(**kwargs):
            if progress_callback:
                progress_callback(MergeProgress(total_ways=total_ways, **kwargs))

        logger.info(f"Starting merge process with {total_ways} additional ways")

        for i, selector in enumerate(selectors):
            way_id, version = selector.way_id, selector.version
            notify(phase=PHASE_FETCHING, way_index=i, way_id=way_id, version=version)

            try:
                segment = self.fetch_way_coordinates(
                    selector,
                    lambda event: notify(
                        phase=PHASE_PROCESSING_NODES, way_index=i, way_id=way_id,
                        version=version, node_progress=event
                    )
                )
            except Exception as e:
                logger.error(f"Failed to merge way {way_id} version {version}: {e}")
                continue

            actual_version = segment.way.version
            ways_processed += 1
            processed_ways.append(segment.way)

            if not merged:
                merged = list(segment.coordinates)
                logger.info(f"Base path empty, starting from way {way_id} v{actual_version}")
                continue

            connection = PathGeometry.find_best_connection(merged, segment.coordinates)
            notify(
                phase=PHASE_MERGING, way_index=i, way_id=way_id, version=actual_version,
                connection_distance=connection.distance
            )
            logger.debug(
                f"Best connection for way {way_id} v{actual_version}: {connection.path_end} to "
                f"{connection.segment_end}, distance: {connection.distance:.6f}"
            )

            coords_to_add = list(segment.coordinates)

            # Appending wants the matched endpoint first, prepending wants it last
            if auto_reverse:
                matched_first = connection.segment_end == START
                if matched_first != (connection.path_end == END):
                    coords_to_add = PathGeometry.reverse(coords_to_add)
                    logger.debug(f"Reversed coordinates for way {way_id} v{actual_version} for better connection")

            if connection.path_end == END:
                if coords_to_add and PathGeometry.are_equal(merged[-1], coords_to_add[0], self.tolerance):
                    coords_to_add = coords_to_add[1:]
                    duplicates_removed += 1
                merged = merged + coords_to_add
            else:
                if coords_to_add and PathGeometry.are_equal(coords_to_add[-1], merged[0], self.tolerance):
                    coords_to_add = coords_to_add[:-1]
                    duplicates_removed += 1
                merged = coords_to_add + merged

            connections += 1
            logger.info(f"Successfully merged way {way_id} v{actual_version} ({len(segment.coordinates)} coordinates)")

        if remove_duplicates and len(merged) > 1:
            merged, removed = PathGeometry.remove_duplicates(merged, self.tolerance)
            duplicates_removed += removed
            logger.debug(f"Removed {removed} duplicate coordinates")

        result = MergeResult(
            coordinates=merged,
            ways_processed=ways_processed,
            connections=connections,
            duplicates_removed=duplicates_removed,
            per_way_metadata=processed_ways,
        )

        logger.info(
            f"Merge completed: {ways_processed} ways, {len(merged)} total coordinates, "
            f"{connections} connections, {duplicates_removed} duplicates removed"
        )

        validate_merge_result(result)
        return result
