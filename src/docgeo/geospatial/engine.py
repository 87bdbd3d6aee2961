from __future__ import annotations

import threading
import uuid
from contextlib import contextmanager
from typing import Iterator

import duckdb

from ..config import GeoConfig
from .statements import quote_identifier


class GeoEngine:
    """Handle on an embedded DuckDB database with the spatial extension loaded.

    The database is opened on first use and stays open until :meth:`close`.
    Each conversion runs on its own cursor with its own staging table, so
    calls from separate threads do not share intermediate state.
    """

    def __init__(self, config: GeoConfig | None = None) -> None:
        self._config = config or GeoConfig()
        self._connection: duckdb.DuckDBPyConnection | None = None
        self._lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    def open(self) -> duckdb.DuckDBPyConnection:
        with self._lock:
            if self._connection is None:
                self._connection = self._connect()
            return self._connection

    def _connect(self) -> duckdb.DuckDBPyConnection:
        connection = duckdb.connect(self._config.database)
        try:
            for extension in self._config.extensions:
                if self._config.install_extensions:
                    connection.install_extension(extension)
                connection.load_extension(extension)
        except Exception:
            connection.close()
            raise
        return connection

    def close(self) -> None:
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None

    def __enter__(self) -> GeoEngine:
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @contextmanager
    def cursor(self) -> Iterator[duckdb.DuckDBPyConnection]:
        cursor = self.open().cursor()
        try:
            yield cursor
        finally:
            cursor.close()

    @contextmanager
    def staging_table(self, cursor: duckdb.DuckDBPyConnection) -> Iterator[str]:
        name = f"docgeo_stage_{uuid.uuid4().hex}"
        try:
            yield name
        finally:
            cursor.execute(f"DROP TABLE IF EXISTS {quote_identifier(name)}")


_default_engine: GeoEngine | None = None
_default_lock = threading.Lock()


def get_default_engine(config: GeoConfig | None = None) -> GeoEngine:
    global _default_engine
    with _default_lock:
        if _default_engine is None:
            _default_engine = GeoEngine(config)
        return _default_engine


def close_default_engine() -> None:
    global _default_engine
    with _default_lock:
        engine, _default_engine = _default_engine, None
    if engine is not None:
        engine.close()


__all__ = ["GeoEngine", "close_default_engine", "get_default_engine"]
