from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping

from .settings import get_settings


DEFAULT_TITLE = "Document Title"
DEFAULT_AUTHOR_LINE = "Author Name <author@example.com>"


@dataclass(slots=True)
class RuntimeConfig:
    log_file: Path | None = None


@dataclass(slots=True)
class DocumentsConfig:
    asciidoctor_path: str = "asciidoctor"
    default_title: str = DEFAULT_TITLE
    author_line: str = DEFAULT_AUTHOR_LINE


@dataclass(slots=True)
class GeoConfig:
    database: str = ":memory:"
    extensions: tuple[str, ...] = ("spatial",)
    install_extensions: bool = True


@dataclass(slots=True)
class AppConfig:
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    documents: DocumentsConfig = field(default_factory=DocumentsConfig)
    geo: GeoConfig = field(default_factory=GeoConfig)


def _read_toml(path: Path) -> Mapping[str, object]:
    if not path.exists():
        return {}
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _section(raw: Mapping[str, object], name: str) -> Mapping[str, object] | None:
    data = raw.get(name)
    return data if isinstance(data, Mapping) else None


def _build_runtime(data: Mapping[str, object] | None) -> RuntimeConfig:
    if not data:
        return RuntimeConfig()
    log_file = data.get("log_file")
    return RuntimeConfig(log_file=Path(str(log_file)) if log_file else None)


def _build_documents(data: Mapping[str, object] | None) -> DocumentsConfig:
    if not data:
        return DocumentsConfig()
    return DocumentsConfig(
        asciidoctor_path=str(data.get("asciidoctor_path", "asciidoctor")),
        default_title=str(data.get("default_title", DEFAULT_TITLE)),
        author_line=str(data.get("author_line", DEFAULT_AUTHOR_LINE)),
    )


def _tuple_of_strings(value: object | None, default: Iterable[str]) -> tuple[str, ...]:
    if value is None:
        return tuple(default)
    if isinstance(value, str):
        return (value,)
    if isinstance(value, Iterable):
        return tuple(str(item) for item in value)
    raise TypeError(f"Unsupported extensions configuration: {value!r}")


def _build_geo(data: Mapping[str, object] | None) -> GeoConfig:
    if not data:
        return GeoConfig()
    return GeoConfig(
        database=str(data.get("database", ":memory:")),
        extensions=_tuple_of_strings(data.get("extensions"), GeoConfig().extensions),
        install_extensions=bool(data.get("install_extensions", True)),
    )


def load_config(path: Path | None = None) -> AppConfig:
    path = path or get_settings().config_path
    raw = _read_toml(path)
    return AppConfig(
        runtime=_build_runtime(_section(raw, "runtime")),
        documents=_build_documents(_section(raw, "documents")),
        geo=_build_geo(_section(raw, "geo")),
    )


def dump_config(config: AppConfig) -> str:
    payload = {
        "runtime": {
            "log_file": str(config.runtime.log_file) if config.runtime.log_file else None,
        },
        "documents": {
            "asciidoctor_path": config.documents.asciidoctor_path,
            "default_title": config.documents.default_title,
            "author_line": config.documents.author_line,
        },
        "geo": {
            "database": config.geo.database,
            "extensions": list(config.geo.extensions),
            "install_extensions": config.geo.install_extensions,
        },
    }
    return json.dumps(payload, indent=2)


__all__ = [
    "AppConfig",
    "DocumentsConfig",
    "GeoConfig",
    "RuntimeConfig",
    "dump_config",
    "load_config",
]
