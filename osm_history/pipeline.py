"""
Extraction orchestrator

Wires the cache, API client, resolvers, merger and exporter together from a
single configuration and exposes the user-facing operations:

  1. List the versions of a way
  2. Extract the geometry of one way version
  3. Merge further way versions onto it
  4. Export the result

Usage:
    extractor = HistoryExtractor()
    extraction = extractor.extract("123456", version=3)
    result = extractor.merge(extraction, "234567, 345678:2")
    extractor.export("gpx", result.coordinates, "123456", 3)
"""

from datetime import datetime, timezone
from typing import Callable, List, Optional, Union

import requests
from loguru import logger

from .api.cache import HistoryCache
from .api.client import HistoryAPIClient
from .api.models import WayVersion
from .config import HistoryConfig, get_config, validate_config
from .exceptions import NotFoundError
from .exporters import Exporter
from .history.batch import BatchResolver, ProgressEvent
from .history.resolver import HistoryResolver
from .merge.merger import MergeProgress, WayMerger, select_way_version
from .merge.selectors import LATEST, WaySelector, parse_way_selectors
from .models import ExtractionResult, MergeResult, ResolvedCoordinate

_EARLIEST = datetime(1970, 1, 1, tzinfo=timezone.utc)


class HistoryExtractor:
    """
    Rebuilds historical way geometry from the OSM API

    All components share one API client, hence one rate limiter and one cache.
    """

    def __init__(self, config: Optional[HistoryConfig] = None, session: Optional[requests.Session] = None):
        self.config = config or get_config()
        validate_config(self.config)

        self.cache = HistoryCache(
            cache_dir=self.config.cache.cache_dir,
            expiry_days=self.config.cache.expiry_days
        )
        self.client = HistoryAPIClient(self.config.api, cache=self.cache, session=session)
        self.resolver = HistoryResolver(self.client)
        self.batch_resolver = BatchResolver(self.resolver)
        self.merger = WayMerger(self.client, self.batch_resolver)
        self.exporter = Exporter(self.config.exports)

    def list_versions(self, way_id) -> List[WayVersion]:
        """
        Fetch every version of a way, most recent first

        Versions are ordered by timestamp, falling back to version number.
        """
        logger.info(f"Fetching way history for ID: {way_id}")
        versions = self.client.fetch_way_history(way_id)
        if not versions:
            raise NotFoundError(f"No way versions found for way {way_id}")

        ordered = sorted(
            versions,
            key=lambda way: (way.timestamp or _EARLIEST, way.version),
            reverse=True
        )
        logger.info(f"Found {len(ordered)} versions of way {way_id} (sorted by most recent)")
        return ordered

    def extract(
        self,
        way_id,
        version: Union[int, str] = LATEST,
        progress_callback: Optional[Callable[[ProgressEvent], None]] = None
    ) -> ExtractionResult:
        """
        Rebuild the geometry of a way as it was at the given version

        Raises:
            NotFoundError: If the version does not exist or no coordinate resolves
        """
        selector = WaySelector(way_id=str(way_id).lstrip("#"), version=version)
        result = self.merger.fetch_way_coordinates(selector, progress_callback)

        coords_info = ""
        if result.valid_node_count != result.node_count:
            coords_info = f" ({result.valid_node_count} valid out of {result.node_count} nodes)"
        logger.info(
            f"Successfully extracted {result.valid_node_count} coordinates for way "
            f"{result.way.way_id} v{result.way.version}{coords_info}"
        )
        return result

    def merge(
        self,
        base: Union[ExtractionResult, List[ResolvedCoordinate]],
        selectors: Union[str, List[WaySelector]],
        auto_reverse: bool = True,
        remove_duplicates: bool = True,
        progress_callback: Optional[Callable[[MergeProgress], None]] = None
    ) -> MergeResult:
        """Merge additional ways (selector text or parsed selectors) onto a base path"""
        if isinstance(selectors, str):
            selectors = parse_way_selectors(selectors)
        base_coordinates = base.coordinates if isinstance(base, ExtractionResult) else base

        logger.info(f"Starting merge process with {len(selectors)} additional way versions")
        return self.merger.merge(
            base_coordinates,
            selectors,
            auto_reverse=auto_reverse,
            remove_duplicates=remove_duplicates,
            progress_callback=progress_callback,
        )

    def export(
        self,
        fmt: str,
        coordinates: List[ResolvedCoordinate],
        identifier: str,
        version,
        output_dir: Optional[str] = None
    ) -> str:
        return self.exporter.export(fmt, coordinates, identifier, version, output_dir or self.config.output_dir)

    def clear_cache(self) -> int:
        return self.cache.clear()

    @staticmethod
    def select_version(versions: List[WayVersion], version: Union[int, str]) -> WayVersion:
        return select_way_version(versions, version)
