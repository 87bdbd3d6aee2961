import json
from pathlib import Path

import duckdb
import pytest

from docgeo.errors import ConversionError, ErrorKind
from docgeo.geospatial import GeoConverter, GeoEngine, close_default_engine, get_default_engine
from docgeo.geospatial.statements import export_plan, load_statements
from docgeo.detection import GeoFormat

FEATURES = {
    "type": "FeatureCollection",
    "features": [
        {
            "type": "Feature",
            "properties": {"name": "origin"},
            "geometry": {"type": "Point", "coordinates": [0.0, 0.0]},
        },
        {
            "type": "Feature",
            "properties": {"name": "diagonal"},
            "geometry": {"type": "LineString", "coordinates": [[0.0, 0.0], [1.0, 1.0]]},
        },
    ],
}


@pytest.fixture(scope="module")
def engine():
    engine = GeoEngine()
    try:
        engine.open()
    except duckdb.Error as exc:
        pytest.skip(f"DuckDB spatial extension unavailable: {exc}")
    yield engine
    engine.close()


@pytest.fixture
def converter(engine: GeoEngine) -> GeoConverter:
    return GeoConverter(engine)


@pytest.fixture
def features_path(tmp_path: Path) -> Path:
    path = tmp_path / "features.geojson"
    path.write_text(json.dumps(FEATURES), encoding="utf-8")
    return path


def test_geojson_geometry_info(converter: GeoConverter, features_path: Path) -> None:
    info = converter.get_geometry_info(features_path, "geojson")
    assert info.count == 2
    assert set(info.types) == {"POINT", "LINESTRING"}
    assert info.bounds == (0.0, 0.0, 1.0, 1.0)


def test_empty_source_has_no_bounds(converter: GeoConverter, tmp_path: Path) -> None:
    source = tmp_path / "empty.wkt"
    source.write_text("", encoding="utf-8")
    info = converter.get_geometry_info(source, GeoFormat.WKT)
    assert info.count == 0
    assert info.types == []
    assert info.bounds is None


def test_wkt_round_trip(converter: GeoConverter, tmp_path: Path) -> None:
    source = tmp_path / "shapes.wkt"
    source.write_text("POINT (1 2)\r\nLINESTRING (0 0, 3 4)\n\n", encoding="utf-8")
    target = tmp_path / "copy.wkt"
    result = converter.convert(source, target, "wkt", "wkt")
    assert result.output_format is GeoFormat.WKT
    lines = target.read_text(encoding="utf-8").splitlines()
    assert sorted(lines) == ["LINESTRING (0 0, 3 4)", "POINT (1 2)"]


def test_geojson_through_wkt_and_back(converter: GeoConverter, features_path: Path, tmp_path: Path) -> None:
    wkt_path = tmp_path / "features.wkt"
    converter.convert_file(features_path, wkt_path)
    assert len(wkt_path.read_text(encoding="utf-8").splitlines()) == 2

    back = tmp_path / "restored.geojson"
    converter.convert_file(wkt_path, back)
    info = converter.get_geometry_info(back, "geojson")
    assert info.count == 2
    assert set(info.types) == {"POINT", "LINESTRING"}


def test_geojson_to_topojson(converter: GeoConverter, features_path: Path, tmp_path: Path) -> None:
    target = tmp_path / "features.topojson"
    converter.convert_file(features_path, target)
    assert json.loads(target.read_text(encoding="utf-8"))["type"] == "Topology"
    assert sorted(path.name for path in tmp_path.iterdir()) == ["features.geojson", "features.topojson"]
    info = converter.get_geometry_info(target, "topojson")
    assert info.count == 2
    assert set(info.types) == {"POINT", "LINESTRING"}


def test_geojson_to_csv(converter: GeoConverter, features_path: Path, tmp_path: Path) -> None:
    target = tmp_path / "features.csv"
    converter.convert_file(features_path, target)
    lines = target.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "wkt_geometry,name"
    body = "\n".join(lines[1:])
    assert "POINT (0 0)" in body
    assert "LINESTRING (0 0, 1 1)" in body
    assert "origin" in body
    assert "diagonal" in body


def test_csv_with_coordinates(converter: GeoConverter, tmp_path: Path) -> None:
    source = tmp_path / "points.csv"
    source.write_text("name,lon,lat\na,1,2\nb,3,4\n", encoding="utf-8")
    info = converter.get_geometry_info(source, "csv")
    assert info.count == 2
    assert info.types == ["POINT"]
    assert info.bounds == (1.0, 2.0, 3.0, 4.0)


def test_csv_round_trip_through_wkt_column(converter: GeoConverter, features_path: Path, tmp_path: Path) -> None:
    csv_path = tmp_path / "features.csv"
    converter.convert_file(features_path, csv_path)
    info = converter.get_geometry_info(csv_path, "csv")
    assert info.count == 2
    assert set(info.types) == {"POINT", "LINESTRING"}


def test_geojson_to_geoparquet(converter: GeoConverter, features_path: Path, tmp_path: Path) -> None:
    target = tmp_path / "features.parquet"
    converter.convert(features_path, target, "geojson", "geoparquet")
    assert target.exists()
    assert converter.get_geometry_info(target, "geoparquet").count == 2


def test_wkt_to_geojson(converter: GeoConverter, tmp_path: Path) -> None:
    source = tmp_path / "shapes.wkt"
    source.write_text("POINT (5 6)\n", encoding="utf-8")
    target = tmp_path / "shapes.geojson"
    converter.convert_file(source, target)
    payload = json.loads(target.read_text(encoding="utf-8"))
    assert payload["type"] == "FeatureCollection"
    assert payload["features"][0]["geometry"]["coordinates"] == [5.0, 6.0]


def test_staging_table_dropped_on_exit(engine: GeoEngine) -> None:
    query = "SELECT count(*) FROM duckdb_tables() WHERE table_name LIKE 'docgeo_stage_%'"
    with engine.cursor() as cursor:
        with engine.staging_table(cursor) as first, engine.staging_table(cursor) as second:
            assert first != second
            cursor.execute(f'CREATE TEMP TABLE "{first}" AS SELECT 1 AS value')
            assert cursor.execute(query).fetchone()[0] == 1
        assert cursor.execute(query).fetchone()[0] == 0


def test_unreadable_source_is_downstream_failure(converter: GeoConverter, tmp_path: Path) -> None:
    source = tmp_path / "broken.geojson"
    source.write_text("{not json", encoding="utf-8")
    target = tmp_path / "out.csv"
    with pytest.raises(ConversionError) as exc:
        converter.convert(source, target, "geojson", "csv")
    assert exc.value.kind is ErrorKind.DOWNSTREAM_FAILURE
    assert str(exc.value).startswith("Conversion failed: ")
    assert exc.value.cause is not None
    assert not target.exists()


def test_missing_input_checked_first(tmp_path: Path) -> None:
    target = tmp_path / "out.csv"
    with pytest.raises(ConversionError) as exc:
        GeoConverter().convert(tmp_path / "missing.geojson", target, "geojson", "csv")
    assert exc.value.kind is ErrorKind.INPUT_NOT_FOUND
    assert str(exc.value).startswith("Conversion failed: Input file not found")
    assert not target.exists()


def test_unsupported_output_format(tmp_path: Path, features_path: Path) -> None:
    target = tmp_path / "out.dxf"
    with pytest.raises(ConversionError) as exc:
        GeoConverter().convert(features_path, target, "geojson", "dxf")
    assert exc.value.kind is ErrorKind.UNSUPPORTED_FORMAT
    assert str(exc.value) == "Conversion failed: Unsupported format: dxf"
    assert not target.exists()


def test_convert_file_unknown_extension(tmp_path: Path, features_path: Path) -> None:
    with pytest.raises(ConversionError) as exc:
        GeoConverter().convert_file(features_path, tmp_path / "out.xyz")
    assert exc.value.kind is ErrorKind.UNSUPPORTED_FORMAT
    assert str(exc.value) == "Conversion failed: Unsupported file extension: .xyz"


def test_geometry_info_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConversionError) as exc:
        GeoConverter().get_geometry_info(tmp_path / "missing.shp", "shapefile")
    assert exc.value.kind is ErrorKind.INPUT_NOT_FOUND
    assert str(exc.value).startswith("Failed to get geometry info: ")


def test_format_from_extension_on_converter() -> None:
    assert GeoConverter.get_format_from_extension(".parquet") is GeoFormat.GEOPARQUET


def test_default_engine_is_shared_until_closed() -> None:
    first = get_default_engine()
    assert get_default_engine() is first
    assert not first.is_open
    close_default_engine()
    assert get_default_engine() is not first
    close_default_engine()


def test_statements_use_given_table_name(tmp_path: Path) -> None:
    statements = load_statements(GeoFormat.GEOJSON, tmp_path / "a.geojson", "stage_one")
    assert statements[0].startswith('CREATE TEMP TABLE "stage_one"')
    plan = export_plan(GeoFormat.CSV, "stage_one", tmp_path / "a.csv", ("name",))
    assert 'ST_AsText(geometry) AS wkt_geometry, "name"' in plan.statements[0]
    assert export_plan(GeoFormat.WKT, "stage_one", tmp_path / "a.wkt").rows_query is not None
    topology = export_plan(GeoFormat.TOPOJSON, "stage_one", tmp_path / "a.topojson")
    assert topology.topology_source == tmp_path / ".a-features.geojson"
    assert "DRIVER 'GeoJSON'" in topology.statements[0]
