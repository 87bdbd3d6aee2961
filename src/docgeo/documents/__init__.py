"""DOCX and AsciiDoc conversion pipelines."""

from .asciidoc_to_docx import AsciidocToDocxConverter, convert_asciidoc_to_docx, convert_file, read_asciidoc_file
from .docx_to_asciidoc import DocxToAsciidocConverter, convert_docx_to_asciidoc, validate_docx_file
from .markdown import markdown_to_asciidoc
from .postprocess import post_process_asciidoc

__all__ = [
    "AsciidocToDocxConverter",
    "DocxToAsciidocConverter",
    "convert_asciidoc_to_docx",
    "convert_docx_to_asciidoc",
    "convert_file",
    "markdown_to_asciidoc",
    "post_process_asciidoc",
    "read_asciidoc_file",
    "validate_docx_file",
]
