"""
Coordinate exporters

Writes resolved way geometry as GPX 1.1, KML 2.2, GeoJSON or plain JSON.
"""

import json
import os
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

from loguru import logger
from lxml import etree

from .config import ExportConfig
from .exceptions import ValidationError
from .models import is_valid_coordinate

GPX_NAMESPACE = "http://www.topografix.com/GPX/1/1"
KML_NAMESPACE = "http://www.opengis.net/kml/2.2"

DEFAULT_NAME = "OSM Way"
MAX_FILE_SIZE = 50 * 1024 * 1024
MAX_FILENAME_LENGTH = 100

FORMATS = {
    "gpx": ("gpx", "application/gpx+xml"),
    "kml": ("kml", "application/vnd.google-earth.kml+xml"),
    "geojson": ("geojson", "application/geo+json"),
    "json": ("json", "application/json"),
}


def _lat_lon(coord) -> Tuple[Any, Any]:
    if isinstance(coord, dict):
        return coord.get("lat"), coord.get("lon")
    return getattr(coord, "lat", None), getattr(coord, "lon", None)


class Exporter:
    """Formats coordinate sequences into export files"""

    def __init__(self, config: Optional[ExportConfig] = None):
        self.config = config or ExportConfig()

    # ============================================================
    # Validation helpers
    # ============================================================

    @staticmethod
    def validate_coordinates(coords: Sequence) -> List[Tuple[float, float]]:
        """
        Check every coordinate and return (lat, lon) float pairs

        Raises:
            ValidationError: If coords is empty or any coordinate is out of range
        """
        if coords is None or isinstance(coords, (str, bytes)):
            raise ValidationError("Invalid coordinates: must be a sequence")
        if len(coords) == 0:
            raise ValidationError("No valid coordinates to export")

        pairs = []
        for index, coord in enumerate(coords):
            lat, lon = _lat_lon(coord)
            if not is_valid_coordinate(lat, lon):
                raise ValidationError(f"Invalid coordinate at index {index}: lat={lat}, lon={lon}")
            pairs.append((float(lat), float(lon)))
        return pairs

    @staticmethod
    def sanitize_name(name: Optional[str]) -> str:
        """Strip markup characters and limit length"""
        if not name or not isinstance(name, str):
            return DEFAULT_NAME
        return re.sub(r"[<>&\"']", "", name)[:100].strip() or DEFAULT_NAME

    @staticmethod
    def validate_filename(filename: str) -> str:
        """Remove path separators and other unsafe characters, keeping the extension"""
        cleaned = re.sub(r"[<>:\"/\\|?*\x00-\x1f]", "", filename).strip()
        stem, extension = os.path.splitext(cleaned)
        stem = stem[:MAX_FILENAME_LENGTH - len(extension)].strip()
        return f"{stem}{extension}" if stem else ""

    # ============================================================
    # Formats
    # ============================================================

    def to_gpx(self, coords: Sequence, name: str = DEFAULT_NAME) -> str:
        pairs = self.validate_coordinates(coords)

        gpx = etree.Element(
            f"{{{GPX_NAMESPACE}}}gpx",
            nsmap={None: GPX_NAMESPACE},
            version=self.config.gpx_version,
            creator=self.config.gpx_creator,
        )
        trk = etree.SubElement(gpx, f"{{{GPX_NAMESPACE}}}trk")
        etree.SubElement(trk, f"{{{GPX_NAMESPACE}}}name").text = self.sanitize_name(name)
        trkseg = etree.SubElement(trk, f"{{{GPX_NAMESPACE}}}trkseg")
        for lat, lon in pairs:
            etree.SubElement(trkseg, f"{{{GPX_NAMESPACE}}}trkpt", lat=f"{lat:.7f}", lon=f"{lon:.7f}")

        return etree.tostring(gpx, xml_declaration=True, encoding="UTF-8", pretty_print=True).decode("utf-8")

    def to_kml(self, coords: Sequence, name: str = DEFAULT_NAME) -> str:
        pairs = self.validate_coordinates(coords)

        kml = etree.Element(f"{{{KML_NAMESPACE}}}kml", nsmap={None: KML_NAMESPACE})
        document = etree.SubElement(kml, f"{{{KML_NAMESPACE}}}Document")
        etree.SubElement(document, f"{{{KML_NAMESPACE}}}name").text = self.sanitize_name(name)
        placemark = etree.SubElement(document, f"{{{KML_NAMESPACE}}}Placemark")
        line = etree.SubElement(placemark, f"{{{KML_NAMESPACE}}}LineString")
        # KML wants lon,lat order
        etree.SubElement(line, f"{{{KML_NAMESPACE}}}coordinates").text = "\n".join(
            f"{lon:.7f},{lat:.7f}" for lat, lon in pairs
        )

        return etree.tostring(kml, xml_declaration=True, encoding="UTF-8", pretty_print=True).decode("utf-8")

    def to_geojson(self, coords: Sequence, name: str = DEFAULT_NAME) -> str:
        pairs = self.validate_coordinates(coords)
        geojson = {
            "type": "FeatureCollection",
            "features": [{
                "type": "Feature",
                "properties": {"name": self.sanitize_name(name)},
                "geometry": {
                    "type": "LineString",
                    "coordinates": [[lon, lat] for lat, lon in pairs],
                },
            }],
        }
        return json.dumps(geojson, indent=2)

    def to_json(self, coords: Sequence, name: str = DEFAULT_NAME) -> str:
        self.validate_coordinates(coords)
        records: List[Dict[str, Any]] = [
            coord if isinstance(coord, dict) else coord.model_dump(mode="json")
            for coord in coords
        ]
        return json.dumps(records, indent=2, ensure_ascii=False)

    # ============================================================
    # Files
    # ============================================================

    def render(self, fmt: str, coords: Sequence, name: str = DEFAULT_NAME) -> str:
        renderers = {
            "gpx": self.to_gpx,
            "kml": self.to_kml,
            "geojson": self.to_geojson,
            "json": self.to_json,
        }
        if fmt not in renderers:
            raise ValidationError(f"Unknown format: {fmt}")
        return renderers[fmt](coords, name)

    def export(self, fmt: str, coords: Sequence, identifier: str, version, output_dir: str = ".") -> str:
        """
        Write coordinates to way_{identifier}_v{version}.{ext} in output_dir

        Returns:
            Path of the written file
        """
        content = self.render(fmt, coords, f"Way {identifier} v{version}")

        extension, _ = FORMATS[fmt]
        filename = self.validate_filename(f"way_{identifier}_v{version}.{extension}")
        if not filename:
            raise ValidationError("Invalid filename")

        encoded = content.encode("utf-8")
        if len(encoded) > MAX_FILE_SIZE:
            raise ValidationError("File too large (max 50MB)")

        os.makedirs(output_dir or ".", exist_ok=True)
        output_path = os.path.join(output_dir or ".", filename)
        with open(output_path, "wb") as f:
            f.write(encoded)

        logger.info(f"Exported {fmt.upper()} to {output_path}")
        return output_path

    def export_gpx(self, coords: Sequence, identifier: str, version, output_dir: str = ".") -> str:
        return self.export("gpx", coords, identifier, version, output_dir)

    def export_kml(self, coords: Sequence, identifier: str, version, output_dir: str = ".") -> str:
        return self.export("kml", coords, identifier, version, output_dir)

    def export_geojson(self, coords: Sequence, identifier: str, version, output_dir: str = ".") -> str:
        return self.export("geojson", coords, identifier, version, output_dir)

    def export_json(self, coords: Sequence, identifier: str, version, output_dir: str = ".") -> str:
        return self.export("json", coords, identifier, version, output_dir)
