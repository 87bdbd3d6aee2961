"""Option and result records shared by the converters."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from .detection import GeoFormat


@dataclass(slots=True)
class DocxToAsciidocOptions:
    """Configuration for one DOCX to AsciiDoc conversion."""

    heading_level: int = 0
    include_attributes: bool = False
    attributes: dict[str, str] = field(default_factory=dict)
    preserve_line_breaks: bool = False
    code_block_style: Literal["fenced", "indented"] = "fenced"
    include_toc: bool = False
    default_title: str | None = None
    author_line: str | None = None


@dataclass(slots=True)
class PageMargins:
    """Page margins in twentieths of a point (twips)."""

    top: int = 1440
    right: int = 1440
    bottom: int = 1440
    left: int = 1440


@dataclass(slots=True)
class AsciidocToDocxOptions:
    """Configuration for one AsciiDoc to DOCX conversion."""

    title: str = "Converted Document"
    margins: PageMargins = field(default_factory=PageMargins)
    header: str | None = None
    footer: str | None = None
    orientation: Literal["portrait", "landscape"] = "portrait"
    author: str | None = None
    font_size: float | None = None
    template_path: Path | None = None


@dataclass(slots=True)
class DocumentConversionResult:
    run_id: str
    content: str | None
    output_path: Path | None
    warnings: list[str]
    summary: str


@dataclass(slots=True)
class GeometryInfo:
    """Summary of the geometries held in one source file.

    ``bounds`` is ``(min_x, min_y, max_x, max_y)`` or ``None`` when the
    source holds no non-null geometry.
    """

    count: int
    types: list[str]
    bounds: tuple[float, float, float, float] | None


@dataclass(slots=True)
class GeoConversionResult:
    run_id: str
    input_path: Path
    output_path: Path
    input_format: GeoFormat
    output_format: GeoFormat
    summary: str


__all__ = [
    "AsciidocToDocxOptions",
    "DocumentConversionResult",
    "DocxToAsciidocOptions",
    "GeoConversionResult",
    "GeometryInfo",
    "PageMargins",
]
