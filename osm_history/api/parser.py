"""
OSM history response parser

Parses OSM API 0.6 XML documents into WayVersion and PointVersion records
"""

from datetime import datetime, timezone
from typing import List, Optional, Union

from loguru import logger
from lxml import etree

from ..exceptions import NetworkError
from .models import PointVersion, WayVersion

# No entity expansion or network access while parsing remote documents
_XML_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=False)


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp into a timezone-aware UTC datetime

    Accepts a trailing 'Z'. Naive values are taken as UTC. Returns None for
    empty or unparseable input.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = f"{text[:-1]}+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.debug(f"Unparseable timestamp: {value!r}")
            return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_document(data: Union[str, bytes]) -> etree._Element:
    """
    Parse a raw XML document

    Raises:
        NetworkError: If the document is not well-formed XML
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    try:
        return etree.fromstring(data, parser=_XML_PARSER)
    except (etree.XMLSyntaxError, ValueError) as e:
        raise NetworkError(f"XML parsing error: invalid response format ({e})") from e


def _parse_version(element: etree._Element) -> int:
    try:
        return int(element.get("version") or 0)
    except ValueError:
        return 0


def _parse_visible(element: etree._Element) -> bool:
    return element.get("visible", "true").lower() != "false"


class HistoryResponseParser:
    """Parses OSM API history responses"""

    @staticmethod
    def parse_ways(data: Union[str, bytes]) -> List[WayVersion]:
        """
        Parse a way history document

        Args:
            data: Raw XML from /way/{id}/history

        Returns:
            List of WayVersion in document order
        """
        root = parse_document(data)
        ways = []
        for element in root.iter("way"):
            ways.append(WayVersion(
                way_id=element.get("id", ""),
                version=_parse_version(element),
                timestamp=parse_timestamp(element.get("timestamp")),
                changeset=element.get("changeset"),
                user=element.get("user"),
                node_refs=tuple(nd.get("ref") for nd in element.iter("nd") if nd.get("ref")),
                visible=_parse_visible(element),
            ))
        return ways

    @staticmethod
    def parse_points(data: Union[str, bytes]) -> List[PointVersion]:
        """
        Parse a node history (or current node) document

        Args:
            data: Raw XML from /node/{id}/history or /node/{id}

        Returns:
            List of PointVersion in document order
        """
        root = parse_document(data)
        points = []
        for element in root.iter("node"):
            points.append(PointVersion(
                point_id=element.get("id", ""),
                version=_parse_version(element),
                timestamp=parse_timestamp(element.get("timestamp")),
                lat=element.get("lat"),
                lon=element.get("lon"),
                visible=_parse_visible(element),
            ))
        return points
