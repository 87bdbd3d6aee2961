from __future__ import annotations

import time
from pathlib import Path

import duckdb

from ..config import AppConfig
from ..detection import GeoFormat, detect_format, get_format_from_extension, parse_format
from ..errors import ConversionError, wrap_failure
from ..logging import RunLogEntry, StageTimings, build_run_logger
from ..models import GeoConversionResult, GeometryInfo
from ..utils import elapsed_ms, generate_run_id, require_file, staged_output
from .engine import GeoEngine, get_default_engine
from .statements import (
    BOUNDS_QUERY,
    COORDINATE_COLUMNS,
    COUNT_QUERY,
    GEOMETRY_COLUMN,
    TEXT_GEOMETRY_COLUMNS,
    TYPES_QUERY,
    export_plan,
    load_statements,
    quote_identifier,
)
from .topology import write_topology

CONVERT_PREFIX = "Conversion failed"
INFO_PREFIX = "Failed to get geometry info"
DISPLACED_GEOMETRY_COLUMN = "geometry_source"


class GeoConverter:
    name = "geo"

    def __init__(self, engine: GeoEngine | None = None, *, config: AppConfig | None = None) -> None:
        self._config = config or AppConfig()
        self._engine = engine
        self._logger = build_run_logger(self._config.runtime.log_file)

    @property
    def engine(self) -> GeoEngine:
        return self._engine or get_default_engine(self._config.geo)

    @staticmethod
    def get_format_from_extension(extension: str) -> GeoFormat:
        return get_format_from_extension(extension)

    def convert(
        self,
        input_path: Path,
        output_path: Path,
        input_format: GeoFormat | str,
        output_format: GeoFormat | str,
    ) -> GeoConversionResult:
        source = Path(input_path)
        destination = Path(output_path)
        run_id = generate_run_id("geo")
        timings = StageTimings()
        try:
            source_format = parse_format(input_format)
            target_format = parse_format(output_format)
            require_file(source)
            with self.engine.cursor() as cursor, self.engine.staging_table(cursor) as table:
                start = time.perf_counter()
                self._load(cursor, table, source, source_format)
                timings.record("load", elapsed_ms(start))

                start = time.perf_counter()
                self._export(cursor, table, destination, target_format)
                timings.record("export", elapsed_ms(start))
        except Exception as exc:
            error = wrap_failure(CONVERT_PREFIX, exc)
            self._log(run_id, source, destination, "failure", error.code, timings)
            raise error from exc

        self._log(run_id, source, destination, "success", None, timings)
        return GeoConversionResult(
            run_id=run_id,
            input_path=source,
            output_path=destination,
            input_format=source_format,
            output_format=target_format,
            summary=(
                f"Converted {source.name} ({source_format.value}) -> "
                f"{destination.name} ({target_format.value}) in {timings.total_ms / 1000:.2f}s"
            ),
        )

    def convert_file(
        self,
        input_file: Path,
        output_file: Path,
        output_format: GeoFormat | str | None = None,
    ) -> GeoConversionResult:
        try:
            source_format = detect_format(Path(input_file))
            if output_format is None:
                target_format = detect_format(Path(output_file))
            else:
                target_format = parse_format(output_format)
        except ConversionError as exc:
            raise wrap_failure(CONVERT_PREFIX, exc) from exc
        return self.convert(input_file, output_file, source_format, target_format)

    def get_geometry_info(self, path: Path, geo_format: GeoFormat | str) -> GeometryInfo:
        source = Path(path)
        try:
            source_format = parse_format(geo_format)
            require_file(source)
            with self.engine.cursor() as cursor, self.engine.staging_table(cursor) as table:
                self._load(cursor, table, source, source_format)
                return self._summarize(cursor, table)
        except Exception as exc:
            raise wrap_failure(INFO_PREFIX, exc) from exc

    def _load(
        self,
        cursor: duckdb.DuckDBPyConnection,
        table: str,
        source: Path,
        geo_format: GeoFormat,
    ) -> None:
        for statement in load_statements(geo_format, source, table):
            cursor.execute(statement)
        self._normalize_geometry(cursor, table)

    def _normalize_geometry(self, cursor: duckdb.DuckDBPyConnection, table: str) -> None:
        """Leave exactly one GEOMETRY column in *table*, named ``geometry``."""

        target = quote_identifier(table)
        described = cursor.execute(f"DESCRIBE {target}").fetchall()
        column_types = {str(row[0]): str(row[1]).upper() for row in described}
        by_lower_name = {name.lower(): name for name in column_types}

        geometry_columns = [name for name, kind in column_types.items() if kind.startswith("GEOMETRY")]
        if geometry_columns:
            column = geometry_columns[0]
            if column != GEOMETRY_COLUMN:
                if GEOMETRY_COLUMN in column_types:
                    self._rename(cursor, table, GEOMETRY_COLUMN, DISPLACED_GEOMETRY_COLUMN)
                self._rename(cursor, table, column, GEOMETRY_COLUMN)
            return

        for candidate in TEXT_GEOMETRY_COLUMNS:
            column = by_lower_name.get(candidate)
            if column is None:
                continue
            parser = "ST_GeomFromWKB" if column_types[column] == "BLOB" else "ST_GeomFromText"
            self._promote(cursor, table, column, parser)
            return

        for x_name, y_name in COORDINATE_COLUMNS:
            x_column = by_lower_name.get(x_name)
            y_column = by_lower_name.get(y_name)
            if x_column is None or y_column is None:
                continue
            cursor.execute(f"ALTER TABLE {target} ADD COLUMN {GEOMETRY_COLUMN} GEOMETRY")
            cursor.execute(
                f"UPDATE {target} SET {GEOMETRY_COLUMN} = ST_Point("
                f"CAST({quote_identifier(x_column)} AS DOUBLE), CAST({quote_identifier(y_column)} AS DOUBLE))"
            )
            return

        raise ValueError("No geometry column found in source data")

    def _promote(self, cursor: duckdb.DuckDBPyConnection, table: str, column: str, parser: str) -> None:
        target = quote_identifier(table)
        if column == GEOMETRY_COLUMN:
            self._rename(cursor, table, column, DISPLACED_GEOMETRY_COLUMN)
            column = DISPLACED_GEOMETRY_COLUMN
        source = quote_identifier(column)
        cursor.execute(f"ALTER TABLE {target} ADD COLUMN {GEOMETRY_COLUMN} GEOMETRY")
        cursor.execute(f"UPDATE {target} SET {GEOMETRY_COLUMN} = {parser}({source})")
        cursor.execute(f"ALTER TABLE {target} DROP COLUMN {source}")

    def _rename(self, cursor: duckdb.DuckDBPyConnection, table: str, old: str, new: str) -> None:
        cursor.execute(
            f"ALTER TABLE {quote_identifier(table)} RENAME COLUMN {quote_identifier(old)} TO {quote_identifier(new)}"
        )

    def _export(
        self,
        cursor: duckdb.DuckDBPyConnection,
        table: str,
        destination: Path,
        geo_format: GeoFormat,
    ) -> None:
        described = cursor.execute(f"DESCRIBE {quote_identifier(table)}").fetchall()
        columns = tuple(str(row[0]) for row in described if str(row[0]) != GEOMETRY_COLUMN)
        with staged_output(destination) as scratch:
            plan = export_plan(geo_format, table, scratch, columns)
            for statement in plan.statements:
                cursor.execute(statement)
            if plan.rows_query is not None:
                rows = cursor.execute(plan.rows_query).fetchall()
                lines = [str(row[0]) for row in rows]
                scratch.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
            if plan.topology_source is not None:
                write_topology(plan.topology_source, scratch)

    def _summarize(self, cursor: duckdb.DuckDBPyConnection, table: str) -> GeometryInfo:
        target = quote_identifier(table)
        count_row = cursor.execute(COUNT_QUERY.format(table=target)).fetchone()
        type_rows = cursor.execute(TYPES_QUERY.format(table=target)).fetchall()
        bounds_row = cursor.execute(BOUNDS_QUERY.format(table=target)).fetchone()
        bounds: tuple[float, float, float, float] | None = None
        if bounds_row is not None and all(value is not None for value in bounds_row):
            min_x, min_y, max_x, max_y = (float(value) for value in bounds_row)
            bounds = (min_x, min_y, max_x, max_y)
        return GeometryInfo(
            count=int(count_row[0]) if count_row else 0,
            types=[str(row[0]) for row in type_rows],
            bounds=bounds,
        )

    def _log(
        self,
        run_id: str,
        source: Path,
        destination: Path,
        status: str,
        error_code: str | None,
        timings: StageTimings,
    ) -> None:
        self._logger.append(
            RunLogEntry(
                run_id=run_id,
                converter=self.name,
                source=str(source),
                status=status,
                warnings=[],
                error_code=error_code,
                timings=timings,
                output_path=str(destination),
            )
        )


def convert(
    input_path: Path,
    output_path: Path,
    input_format: GeoFormat | str,
    output_format: GeoFormat | str,
) -> GeoConversionResult:
    return GeoConverter().convert(input_path, output_path, input_format, output_format)


def convert_file(
    input_file: Path,
    output_file: Path,
    output_format: GeoFormat | str | None = None,
) -> GeoConversionResult:
    return GeoConverter().convert_file(input_file, output_file, output_format)


def get_geometry_info(path: Path, geo_format: GeoFormat | str) -> GeometryInfo:
    return GeoConverter().get_geometry_info(path, geo_format)


__all__ = [
    "GeoConverter",
    "convert",
    "convert_file",
    "get_geometry_info",
]
