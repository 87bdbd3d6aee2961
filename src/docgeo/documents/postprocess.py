from __future__ import annotations

import re

from ..config import DEFAULT_AUTHOR_LINE, DEFAULT_TITLE
from ..models import DocxToAsciidocOptions

FIXED_ATTRIBUTES = (
    ":icons: font",
    ":source-highlighter: highlight.js",
)
TOC_ATTRIBUTES = (
    ":toc: left",
    ":toclevels: 3",
)
FIRST_HEADING_RE = re.compile(r"^=+\s+\S")
DELIMITER_RE = re.compile(r"^(?:-{4,}|\.{4,}|_{4,}|={4,}|\*{4,}|\+{4,}|/{4,}|\|===)\s*$")
BLOCK_MARKERS = ("=", "-", "*", ".", ":", "|", "[", "/", "+", "'")


def build_attribute_lines(options: DocxToAsciidocOptions) -> list[str]:
    lines = [options.author_line or DEFAULT_AUTHOR_LINE, *FIXED_ATTRIBUTES]
    lines.extend(f":{key}: {value}" for key, value in options.attributes.items())
    if options.include_toc:
        lines.extend(TOC_ATTRIBUTES)
    return lines


def ensure_title(asciidoc: str, title: str) -> str:
    body = asciidoc.lstrip("\n")
    if body.startswith("="):
        return body
    return f"= {title}\n\n{body}"


def insert_attributes(asciidoc: str, attributes: list[str]) -> str:
    lines = asciidoc.split("\n")
    for index, line in enumerate(lines):
        if FIRST_HEADING_RE.match(line):
            lines[index + 1:index + 1] = attributes
            break
    return "\n".join(lines)


def _is_joinable(line: str) -> bool:
    stripped = line.strip()
    if not stripped or stripped.endswith(" +"):
        return False
    return not line.startswith(BLOCK_MARKERS)


def collapse_line_breaks(asciidoc: str) -> str:
    """Join each run of consecutive plain text lines into one line.

    Lines inside delimited blocks are left as they are.
    """

    output: list[str] = []
    open_delimiter: str | None = None
    previous_joinable = False
    for line in asciidoc.split("\n"):
        if DELIMITER_RE.match(line):
            marker = line.strip()
            if open_delimiter is None:
                open_delimiter = marker
            elif marker == open_delimiter:
                open_delimiter = None
            output.append(line)
            previous_joinable = False
            continue
        if open_delimiter is not None:
            output.append(line)
            previous_joinable = False
            continue
        joinable = _is_joinable(line)
        if joinable and previous_joinable:
            output[-1] = f"{output[-1].rstrip()} {line.strip()}"
        else:
            output.append(line)
        previous_joinable = joinable
    return "\n".join(output)


def normalize_table_cells(asciidoc: str) -> str:
    """Remove blank lines between adjacent cell lines of a table body.

    The blank line after a table's first row is kept since it marks the
    implicit header row.
    """

    output: list[str] = []
    open_delimiter: str | None = None
    in_table = False
    row_index = 0
    pending_blank = False
    for line in asciidoc.split("\n"):
        stripped = line.strip()
        if not in_table and stripped != "|===" and DELIMITER_RE.match(line):
            if open_delimiter is None:
                open_delimiter = stripped
            elif stripped == open_delimiter:
                open_delimiter = None
            output.append(line)
            continue
        if open_delimiter is not None:
            output.append(line)
            continue
        if stripped == "|===":
            in_table = not in_table
            row_index = 0
            pending_blank = False
            output.append(stripped)
            continue
        if not in_table:
            output.append(line)
            continue
        if not stripped:
            pending_blank = True
            continue
        if pending_blank and row_index == 1:
            output.append("")
        pending_blank = False
        row_index += 1
        output.append(line.rstrip())
    return "\n".join(output)


def post_process_asciidoc(asciidoc: str, options: DocxToAsciidocOptions | None = None) -> str:
    opts = options or DocxToAsciidocOptions()
    result = ensure_title(asciidoc, opts.default_title or DEFAULT_TITLE)
    if opts.include_attributes:
        result = insert_attributes(result, build_attribute_lines(opts))
    if not opts.preserve_line_breaks:
        result = collapse_line_breaks(result)
    return normalize_table_cells(result)


__all__ = [
    "build_attribute_lines",
    "collapse_line_breaks",
    "ensure_title",
    "insert_attributes",
    "normalize_table_cells",
    "post_process_asciidoc",
]
