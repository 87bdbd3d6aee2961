"""Document (DOCX/AsciiDoc) and geospatial format conversion toolkit."""

from .config import AppConfig, load_config
from .detection import GeoFormat, get_format_from_extension
from .documents import (
    AsciidocToDocxConverter,
    DocxToAsciidocConverter,
    convert_asciidoc_to_docx,
    convert_docx_to_asciidoc,
)
from .errors import ConversionError, ErrorKind
from .geospatial import GeoConverter, GeoEngine
from .models import (
    AsciidocToDocxOptions,
    DocxToAsciidocOptions,
    GeoConversionResult,
    GeometryInfo,
    PageMargins,
)

__all__ = [
    "AppConfig",
    "load_config",
    "AsciidocToDocxConverter",
    "AsciidocToDocxOptions",
    "ConversionError",
    "DocxToAsciidocConverter",
    "DocxToAsciidocOptions",
    "ErrorKind",
    "GeoConversionResult",
    "GeoConverter",
    "GeoEngine",
    "GeoFormat",
    "GeometryInfo",
    "PageMargins",
    "convert_asciidoc_to_docx",
    "convert_docx_to_asciidoc",
    "get_format_from_extension",
]
