"""SQL dispatch tables for loading and exporting each supported format."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from ..detection import GeoFormat
from ..errors import unsupported_format

GEOMETRY_COLUMN = "geometry"

READ_DRIVERS: dict[GeoFormat, tuple[str, ...]] = {
    GeoFormat.GEOJSON: ("GeoJSON", "GeoJSONSeq"),
    GeoFormat.SHAPEFILE: ("ESRI Shapefile",),
    GeoFormat.KML: ("KML", "LIBKML"),
    GeoFormat.GML: ("GML",),
    GeoFormat.TOPOJSON: ("TopoJSON",),
}

WRITE_DRIVERS: dict[GeoFormat, str] = {
    GeoFormat.GEOJSON: "GeoJSON",
    GeoFormat.SHAPEFILE: "ESRI Shapefile",
    GeoFormat.KML: "KML",
    GeoFormat.GML: "GML",
}

# Columns promoted to geometry when a source has no geometry-typed column.
TEXT_GEOMETRY_COLUMNS = ("wkt_geometry", "wkt", "geometry", "geom")
COORDINATE_COLUMNS = (
    ("longitude", "latitude"),
    ("lon", "lat"),
    ("lng", "lat"),
    ("x", "y"),
)

COUNT_QUERY = "SELECT COUNT(*) FROM {table}"
TYPES_QUERY = (
    "SELECT DISTINCT CAST(ST_GeometryType(geometry) AS VARCHAR) AS geom_type "
    "FROM {table} WHERE geometry IS NOT NULL ORDER BY geom_type"
)
BOUNDS_QUERY = (
    "SELECT "
    "MIN(ST_XMin(ST_Envelope(geometry))), "
    "MIN(ST_YMin(ST_Envelope(geometry))), "
    "MAX(ST_XMax(ST_Envelope(geometry))), "
    "MAX(ST_YMax(ST_Envelope(geometry))) "
    "FROM {table} WHERE geometry IS NOT NULL"
)


@dataclass(slots=True)
class ExportPlan:
    statements: list[str] = field(default_factory=list)
    # Rows of a single text column written one per line.
    rows_query: str | None = None
    # GeoJSON written by the statements and converted to a topology afterwards.
    topology_source: Path | None = None


def quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def quote_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def load_statements(geo_format: GeoFormat, path: Path, table: str) -> list[str]:
    target = quote_identifier(table)
    source = quote_literal(str(path))
    if geo_format in READ_DRIVERS:
        drivers = ", ".join(quote_literal(driver) for driver in READ_DRIVERS[geo_format])
        return [f"CREATE TEMP TABLE {target} AS SELECT * FROM ST_Read({source}, allowed_drivers=[{drivers}])"]
    if geo_format is GeoFormat.CSV:
        return [f"CREATE TEMP TABLE {target} AS SELECT * FROM read_csv({source}, auto_detect=true, header=true)"]
    if geo_format is GeoFormat.GEOPARQUET:
        return [f"CREATE TEMP TABLE {target} AS SELECT * FROM read_parquet({source})"]
    if geo_format is GeoFormat.WKT:
        raw = quote_identifier(f"{table}_raw")
        return [
            f"CREATE TEMP TABLE {raw} AS "
            "SELECT trim(line) AS wkt_text FROM ("
            "SELECT unnest(string_split(replace(content, chr(13), ''), chr(10))) AS line "
            f"FROM read_text({source}))",
            f"CREATE TEMP TABLE {target} AS "
            f"SELECT ST_GeomFromText(wkt_text) AS geometry FROM {raw} WHERE wkt_text <> ''",
            f"DROP TABLE {raw}",
        ]
    raise unsupported_format(f"Unsupported input format: {geo_format.value}")


def export_plan(
    geo_format: GeoFormat,
    table: str,
    path: Path,
    columns: tuple[str, ...] = (),
) -> ExportPlan:
    """Build the statements writing *table* to *path*.

    *columns* names the attribute columns carried next to the geometry in
    tabular outputs.
    """

    source = quote_identifier(table)
    target = quote_literal(str(path))
    if geo_format in WRITE_DRIVERS:
        driver = quote_literal(WRITE_DRIVERS[geo_format])
        return ExportPlan(statements=[f"COPY {source} TO {target} WITH (FORMAT GDAL, DRIVER {driver})"])
    if geo_format is GeoFormat.CSV:
        selected = ", ".join(["ST_AsText(geometry) AS wkt_geometry", *(quote_identifier(name) for name in columns)])
        return ExportPlan(
            statements=[f"COPY (SELECT {selected} FROM {source}) TO {target} (FORMAT CSV, HEADER, DELIMITER ',')"]
        )
    if geo_format is GeoFormat.TOPOJSON:
        features = path.with_name(f".{path.stem}-features.geojson")
        driver = quote_literal(WRITE_DRIVERS[GeoFormat.GEOJSON])
        return ExportPlan(
            statements=[f"COPY {source} TO {quote_literal(str(features))} WITH (FORMAT GDAL, DRIVER {driver})"],
            topology_source=features,
        )
    if geo_format is GeoFormat.GEOPARQUET:
        return ExportPlan(statements=[f"COPY {source} TO {target} (FORMAT PARQUET)"])
    if geo_format is GeoFormat.WKT:
        return ExportPlan(rows_query=f"SELECT ST_AsText(geometry) FROM {source} WHERE geometry IS NOT NULL")
    raise unsupported_format(f"Unsupported output format: {geo_format.value}")


__all__ = [
    "BOUNDS_QUERY",
    "COORDINATE_COLUMNS",
    "COUNT_QUERY",
    "ExportPlan",
    "GEOMETRY_COLUMN",
    "READ_DRIVERS",
    "TEXT_GEOMETRY_COLUMNS",
    "TYPES_QUERY",
    "WRITE_DRIVERS",
    "export_plan",
    "load_statements",
    "quote_identifier",
    "quote_literal",
]
