#!/usr/bin/env python
"""
Command-line interface for the OSM Way History Extractor

Usage:
    python cli.py versions 123456
    python cli.py extract 123456 --version 3 --format gpx --output ./exports/
    python cli.py merge 123456 --version 3 --with "234567, 345678:2" --format geojson
    python cli.py clear-cache --cache-dir .cache
"""

import os
import sys
import argparse

from loguru import logger

from osm_history.config import get_config
from osm_history.exceptions import OSMHistoryError
from osm_history.exporters import FORMATS
from osm_history.logging_setup import setup_logging
from osm_history.merge.selectors import LATEST
from osm_history.pipeline import HistoryExtractor


def version_arg(value: str):
    """argparse type for a way version: positive integer or 'latest'"""
    if value == LATEST:
        return LATEST
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid version: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"version must be positive, got {number}")
    return number


def build_extractor(args) -> HistoryExtractor:
    config = get_config()
    if args.cache_dir:
        config.cache.cache_dir = args.cache_dir
    if getattr(args, "output", None):
        config.output_dir = args.output
    return HistoryExtractor(config)


def log_progress(event):
    """Log batch progress every 10 nodes"""
    if event.current % 10 != 0:
        return
    eta = f", ETA: {int(event.eta // 60)}m {int(event.eta % 60)}s" if event.eta else ""
    logger.info(f"  Processing node {event.current + 1} of {event.total}{eta}")


def log_merge_progress(progress):
    if progress.phase == "processing_nodes":
        log_progress(progress.node_progress)
    elif progress.phase == "fetching":
        logger.info(f"Fetching way {progress.way_id} ({progress.way_index + 1}/{progress.total_ways})")


def cmd_versions(args):
    """List the versions of a way"""
    extractor = build_extractor(args)
    try:
        versions = extractor.list_versions(args.way_id)
    except OSMHistoryError as e:
        logger.debug(f"list_versions failed: {e!r}")
        logger.error("Failed to fetch way history")
        return 1

    for index, way in enumerate(versions):
        latest = " (latest)" if index == 0 else ""
        timestamp = way.timestamp.isoformat() if way.timestamp else "Unknown"
        print(
            f"v{way.version}{latest}\t{timestamp}\tchangeset {way.changeset}\t"
            f"{way.user or 'Unknown'}\t{len(way.node_refs)} nodes"
        )
    return 0


def cmd_extract(args):
    """Extract the coordinates of one way version"""
    extractor = build_extractor(args)
    try:
        extraction = extractor.extract(args.way_id, args.version, progress_callback=log_progress)
        path = extractor.export(args.format, extraction.coordinates, extraction.way.way_id, extraction.way.version)
    except OSMHistoryError as e:
        logger.debug(f"extract failed: {e!r}")
        logger.error("Failed to extract coordinates")
        return 1

    logger.info(f"✓ Extracted {len(extraction.coordinates)} coordinates: {path}")
    return 0


def cmd_merge(args):
    """Extract a way version and merge further ways onto it"""
    extractor = build_extractor(args)
    try:
        extraction = extractor.extract(args.way_id, args.version, progress_callback=log_progress)
        result = extractor.merge(
            extraction,
            args.with_ways,
            auto_reverse=not args.no_auto_reverse,
            remove_duplicates=not args.keep_duplicates,
            progress_callback=log_merge_progress,
        )
        merged_ids = [extraction.way.way_id] + [meta.way_id for meta in result.per_way_metadata]
        identifier = "_".join(merged_ids)
        path = extractor.export(args.format, result.coordinates, identifier, extraction.way.version)
    except OSMHistoryError as e:
        logger.debug(f"merge failed: {e!r}")
        logger.error("Failed to merge ways")
        return 1

    logger.info(f"✓ Merged {result.ways_processed} ways: {path}")
    logger.info(f"  Coordinates: {result.total_coordinates}")
    logger.info(f"  Connections: {result.connections}")
    logger.info(f"  Duplicates removed: {result.duplicates_removed}")
    for meta in result.per_way_metadata:
        logger.info(f"  Way {meta.way_id} v{meta.version}: {meta.coordinate_count} coordinates")
    return 0


def cmd_clear_cache(args):
    """Delete all cached API responses"""
    if not args.cache_dir:
        logger.error("--cache-dir is required to clear the cache")
        return 1
    removed = build_extractor(args).clear_cache()
    logger.info(f"Removed {removed} cached responses from {os.path.abspath(args.cache_dir)}")
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="OSM Way History Extractor CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  List versions of a way:
    python cli.py versions 123456

  Extract a historical version as GPX:
    python cli.py extract 123456 --version 3 --format gpx

  Merge adjacent ways onto it:
    python cli.py merge 123456 --version 3 --with "234567, 345678:2"
        """
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--cache-dir", help="Directory for cached API responses")
    parser.add_argument("--log-file", help="Also write logs to this file")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Versions command
    versions_parser = subparsers.add_parser("versions", help="List the versions of a way")
    versions_parser.add_argument("way_id", help="Way ID")
    versions_parser.set_defaults(func=cmd_versions)

    # Extract command
    extract_parser = subparsers.add_parser("extract", help="Extract coordinates of a way version")
    extract_parser.add_argument("way_id", help="Way ID")
    extract_parser.add_argument("--version", type=version_arg, default=LATEST, help="Way version (default: latest)")
    extract_parser.add_argument("--format", "-f", choices=sorted(FORMATS), default="geojson", help="Export format")
    extract_parser.add_argument("--output", "-o", help="Output directory")
    extract_parser.set_defaults(func=cmd_extract)

    # Merge command
    merge_parser = subparsers.add_parser("merge", help="Merge additional ways onto a way version")
    merge_parser.add_argument("way_id", help="Base way ID")
    merge_parser.add_argument("--version", type=version_arg, default=LATEST, help="Base way version (default: latest)")
    merge_parser.add_argument("--with", dest="with_ways", required=True,
                              help="Comma-separated ways to merge: wayId, wayId:version or wayId:latest")
    merge_parser.add_argument("--no-auto-reverse", action="store_true", help="Do not reverse ways to fit")
    merge_parser.add_argument("--keep-duplicates", action="store_true", help="Keep consecutive duplicate points")
    merge_parser.add_argument("--format", "-f", choices=sorted(FORMATS), default="geojson", help="Export format")
    merge_parser.add_argument("--output", "-o", help="Output directory")
    merge_parser.set_defaults(func=cmd_merge)

    # Clear cache command
    clear_parser = subparsers.add_parser("clear-cache", help="Delete cached API responses")
    clear_parser.set_defaults(func=cmd_clear_cache)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.verbose, args.log_file)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
