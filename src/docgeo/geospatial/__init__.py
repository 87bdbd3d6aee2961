"""Geospatial format conversion backed by DuckDB spatial."""

from .converter import GeoConverter, convert, convert_file, get_geometry_info
from .engine import GeoEngine, close_default_engine, get_default_engine

__all__ = [
    "GeoConverter",
    "GeoEngine",
    "close_default_engine",
    "convert",
    "convert_file",
    "get_default_engine",
    "get_geometry_info",
]
