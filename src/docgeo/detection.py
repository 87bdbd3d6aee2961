from __future__ import annotations

from enum import Enum
from pathlib import Path

from .errors import unsupported_format


class GeoFormat(str, Enum):
    GEOJSON = "geojson"
    SHAPEFILE = "shapefile"
    KML = "kml"
    GML = "gml"
    TOPOJSON = "topojson"
    WKT = "wkt"
    CSV = "csv"
    GEOPARQUET = "geoparquet"


EXTENSION_MAP: dict[str, GeoFormat] = {
    ".json": GeoFormat.GEOJSON,
    ".geojson": GeoFormat.GEOJSON,
    ".shp": GeoFormat.SHAPEFILE,
    ".kml": GeoFormat.KML,
    ".gml": GeoFormat.GML,
    ".topojson": GeoFormat.TOPOJSON,
    ".wkt": GeoFormat.WKT,
    ".csv": GeoFormat.CSV,
    ".parquet": GeoFormat.GEOPARQUET,
    ".geoparquet": GeoFormat.GEOPARQUET,
}


def get_format_from_extension(extension: str) -> GeoFormat:
    normalized = extension.strip().lower()
    geo_format = EXTENSION_MAP.get(normalized)
    if geo_format is None:
        raise unsupported_format(f"Unsupported file extension: {extension or '<none>'}")
    return geo_format


def detect_format(path: Path) -> GeoFormat:
    return get_format_from_extension(path.suffix)


def parse_format(value: str | GeoFormat) -> GeoFormat:
    if isinstance(value, GeoFormat):
        return value
    try:
        return GeoFormat(str(value).strip().lower())
    except ValueError:
        raise unsupported_format(f"Unsupported format: {value}") from None


__all__ = [
    "EXTENSION_MAP",
    "GeoFormat",
    "detect_format",
    "get_format_from_extension",
    "parse_format",
]
