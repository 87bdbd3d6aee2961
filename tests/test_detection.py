from pathlib import Path

import pytest

from docgeo.detection import GeoFormat, detect_format, get_format_from_extension, parse_format
from docgeo.errors import ConversionError, ErrorKind


@pytest.mark.parametrize(
    ("extension", "expected"),
    [
        (".json", GeoFormat.GEOJSON),
        (".geojson", GeoFormat.GEOJSON),
        (".shp", GeoFormat.SHAPEFILE),
        (".kml", GeoFormat.KML),
        (".gml", GeoFormat.GML),
        (".topojson", GeoFormat.TOPOJSON),
        (".wkt", GeoFormat.WKT),
        (".csv", GeoFormat.CSV),
        (".parquet", GeoFormat.GEOPARQUET),
        (".geoparquet", GeoFormat.GEOPARQUET),
    ],
)
def test_extension_map(extension: str, expected: GeoFormat) -> None:
    assert get_format_from_extension(extension) is expected


def test_extension_requires_dot_and_ignores_case() -> None:
    assert get_format_from_extension(".GeoJSON") is GeoFormat.GEOJSON
    with pytest.raises(ConversionError) as exc:
        get_format_from_extension("json")
    assert exc.value.kind is ErrorKind.UNSUPPORTED_FORMAT
    assert str(exc.value) == "Unsupported file extension: json"
    assert detect_format(Path("roads.SHP")) is GeoFormat.SHAPEFILE


def test_unknown_extension(tmp_path) -> None:
    with pytest.raises(ConversionError) as exc:
        detect_format(tmp_path / "sample.xyz")
    assert exc.value.kind is ErrorKind.UNSUPPORTED_FORMAT
    assert "Unsupported file extension" in str(exc.value)


def test_parse_format() -> None:
    assert parse_format("CSV") is GeoFormat.CSV
    assert parse_format(GeoFormat.KML) is GeoFormat.KML
    with pytest.raises(ConversionError) as exc:
        parse_format("dxf")
    assert str(exc.value) == "Unsupported format: dxf"
