"""Markdown to AsciiDoc rewriting.

The Markdown text is parsed once into a flat sequence of blocks, then each
block is emitted as AsciiDoc. Inline markup inside a block is tokenized in a
single left-to-right scan, so text produced for one construct is never
re-read as the source of another.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator, Union

from ..models import DocxToAsciidocOptions

FENCE_RE = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})[ \t]*(?P<lang>[\w+#.-]*)[ \t]*$")
HEADING_RE = re.compile(r"^ {0,3}(?P<hashes>#{1,6})[ \t]+(?P<text>.+?)(?:[ \t]+#+)?[ \t]*$")
QUOTE_RE = re.compile(r"^ {0,3}>[ \t]?(?P<text>.*)$")
RULE_RE = re.compile(r"^ {0,3}([-*_])(?:[ \t]*\1){2,}[ \t]*$")
ORDERED_RE = re.compile(r"^(?P<indent>[ \t]*)\d{1,9}[.)][ \t]+(?P<text>.+)$")
UNORDERED_RE = re.compile(r"^(?P<indent>[ \t]*)[*+-][ \t]+(?P<text>.+)$")
TABLE_ROW_RE = re.compile(r"^[ \t]*\|.*\|[ \t]*$")
TABLE_SEPARATOR_RE = re.compile(r"^[ \t]*\|?(?:[ \t]*:?-{3,}:?[ \t]*\|)+(?:[ \t]*:?-{3,}:?[ \t]*)?[ \t]*$")
INDENTED_CODE_RE = re.compile(r"^(?: {4}|\t)(?P<text>.*)$")
IMAGE_ONLY_RE = re.compile(r"^!\[(?P<alt>[^\]]*)\]\((?P<url>[^)\s]+)(?:[ \t]+\"[^\"]*\")?\)$")
CELL_SPLIT_RE = re.compile(r"(?<!\\)\|")

INLINE_RE = re.compile(
    r"(?P<code>`+)(?P<code_text>.+?)(?P=code)"
    r"|\\(?P<escaped>[\\`*_{}\[\]()#+\-.!|<>~])"
    r"|!\[(?P<img_alt>[^\]]*)\]\((?P<img_url>[^)\s]+)(?:\s+\"[^\"]*\")?\)"
    r"|\[(?P<link_text>[^\]]+)\]\((?P<link_url>[^)\s]+)(?:\s+\"[^\"]*\")?\)"
    r"|<(?P<autolink>(?:https?|mailto|ftp):[^>\s]+)>"
    r"|(?P<strong>\*\*|__)(?P<strong_text>\S(?:.*?\S)?)(?P=strong)"
    r"|(?<![\w\\])(?P<em>[*_])(?P<em_text>[^\s*_](?:[^*_]*?[^\s*_])?)(?P=em)(?!\w)"
)
MONOSPACE_SPECIALS = set("*_`#+{^~")
ESCAPE_REPLACEMENTS = {"*": "{asterisk}", "`": "{backtick}", "|": "\\|"}


@dataclass(slots=True)
class Heading:
    level: int
    text: str


@dataclass(slots=True)
class CodeBlock:
    language: str
    lines: list[str] = field(default_factory=list)


@dataclass(slots=True)
class Quote:
    lines: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ListItem:
    ordered: bool
    depth: int
    text: str


@dataclass(slots=True)
class Table:
    header: list[str] | None
    rows: list[list[str]] = field(default_factory=list)


@dataclass(slots=True)
class Rule:
    pass


@dataclass(slots=True)
class Paragraph:
    lines: list[str] = field(default_factory=list)


@dataclass(slots=True)
class Blank:
    pass


Block = Union[Heading, CodeBlock, Quote, ListItem, Table, Rule, Paragraph, Blank]


class _ListDepthTracker:
    def __init__(self) -> None:
        self._indents: list[int] = []

    def depth_for(self, indent: str) -> int:
        width = len(indent.expandtabs(4))
        while self._indents and self._indents[-1] > width:
            self._indents.pop()
        if not self._indents or self._indents[-1] < width:
            self._indents.append(width)
        return len(self._indents)

    def reset(self) -> None:
        self._indents.clear()


def parse_blocks(markdown: str) -> list[Block]:
    lines = markdown.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    blocks: list[Block] = []
    lists = _ListDepthTracker()
    index = 0
    while index < len(lines):
        line = lines[index]

        if not line.strip():
            blocks.append(Blank())
            index += 1
            continue

        fence = FENCE_RE.match(line)
        if fence:
            block, index = _read_fenced_code(lines, index, fence)
            blocks.append(block)
            lists.reset()
            continue

        if RULE_RE.match(line):
            blocks.append(Rule())
            lists.reset()
            index += 1
            continue

        heading = HEADING_RE.match(line)
        if heading:
            blocks.append(Heading(level=len(heading.group("hashes")), text=heading.group("text")))
            lists.reset()
            index += 1
            continue

        if QUOTE_RE.match(line):
            quote = Quote()
            while index < len(lines) and (match := QUOTE_RE.match(lines[index])):
                quote.lines.append(match.group("text"))
                index += 1
            blocks.append(quote)
            lists.reset()
            continue

        if TABLE_ROW_RE.match(line):
            table, index = _read_table(lines, index)
            blocks.append(table)
            lists.reset()
            continue

        item = ORDERED_RE.match(line) or UNORDERED_RE.match(line)
        if item:
            ordered = item.re is ORDERED_RE
            blocks.append(ListItem(ordered=ordered, depth=lists.depth_for(item.group("indent")), text=item.group("text")))
            index += 1
            continue

        if INDENTED_CODE_RE.match(line) and _starts_block(blocks):
            block, index = _read_indented_code(lines, index)
            blocks.append(block)
            continue

        paragraph = Paragraph()
        while index < len(lines) and _continues_paragraph(lines[index]):
            paragraph.lines.append(lines[index].lstrip())
            index += 1
        blocks.append(paragraph)
        lists.reset()
    return blocks


def _starts_block(blocks: list[Block]) -> bool:
    return not blocks or isinstance(blocks[-1], Blank) and not _inside_list(blocks)


def _inside_list(blocks: list[Block]) -> bool:
    for block in reversed(blocks):
        if isinstance(block, Blank):
            continue
        return isinstance(block, ListItem)
    return False


def _continues_paragraph(line: str) -> bool:
    if not line.strip():
        return False
    for pattern in (FENCE_RE, RULE_RE, HEADING_RE, QUOTE_RE, TABLE_ROW_RE, ORDERED_RE, UNORDERED_RE):
        if pattern.match(line):
            return False
    return True


def _read_fenced_code(lines: list[str], index: int, fence: re.Match[str]) -> tuple[CodeBlock, int]:
    marker = fence.group("fence")
    block = CodeBlock(language=fence.group("lang"))
    index += 1
    while index < len(lines):
        line = lines[index]
        if line.strip().startswith(marker[0] * len(marker)) and not line.strip().strip(marker[0]):
            return block, index + 1
        block.lines.append(line)
        index += 1
    return block, index


def _read_indented_code(lines: list[str], index: int) -> tuple[CodeBlock, int]:
    block = CodeBlock(language="")
    while index < len(lines):
        match = INDENTED_CODE_RE.match(lines[index])
        if match:
            block.lines.append(match.group("text"))
        elif not lines[index].strip():
            block.lines.append("")
        else:
            break
        index += 1
    trailing = 0
    while block.lines and not block.lines[-1]:
        block.lines.pop()
        trailing += 1
    return block, index - trailing


def _read_table(lines: list[str], index: int) -> tuple[Table, int]:
    rows: list[list[str]] = []
    header: list[str] | None = None
    while index < len(lines) and TABLE_ROW_RE.match(lines[index]):
        line = lines[index]
        if TABLE_SEPARATOR_RE.match(line):
            if rows and header is None and len(rows) == 1:
                header = rows.pop()
        else:
            rows.append(_split_cells(line))
        index += 1
    return Table(header=header, rows=rows), index


def _split_cells(line: str) -> list[str]:
    body = line.strip()
    if body.startswith("|"):
        body = body[1:]
    if body.endswith("|") and not body.endswith("\\|"):
        body = body[:-1]
    return [cell.strip() for cell in CELL_SPLIT_RE.split(body)]


def convert_inline(text: str) -> str:
    return "".join(_iter_inline(text))


def _iter_inline(text: str) -> Iterator[str]:
    position = 0
    for match in INLINE_RE.finditer(text):
        yield text[position:match.start()]
        yield _emit_inline(match)
        position = match.end()
    yield text[position:]


def _emit_inline(match: re.Match[str]) -> str:
    if match.group("code"):
        code_text = match.group("code_text")
        if MONOSPACE_SPECIALS.intersection(code_text):
            return f"`+{code_text}+`"
        return f"`{code_text}`"
    if match.group("escaped"):
        char = match.group("escaped")
        return ESCAPE_REPLACEMENTS.get(char, char)
    if match.group("img_url"):
        return f"image:{match.group('img_url')}[{_macro_text(match.group('img_alt'))}]"
    if match.group("link_url"):
        label = _macro_text(convert_inline(match.group("link_text")))
        return f"link:{match.group('link_url')}[{label}]"
    if match.group("autolink"):
        return match.group("autolink")
    if match.group("strong"):
        return f"*{convert_inline(match.group('strong_text'))}*"
    return f"_{convert_inline(match.group('em_text'))}_"


def _macro_text(text: str) -> str:
    return text.replace("]", "\\]")


def _convert_line(line: str) -> str:
    if re.search(r"\S {2,}$", line):
        return convert_inline(line.rstrip()) + " +"
    return convert_inline(line.rstrip())


def emit_block(block: Block, options: DocxToAsciidocOptions) -> list[str]:
    if isinstance(block, Blank):
        return [""]
    if isinstance(block, Heading):
        level = block.level + max(options.heading_level, 0)
        return [f"{'=' * level} {convert_inline(block.text)}"]
    if isinstance(block, CodeBlock):
        prefix = [f"[source,{block.language}]"] if block.language else []
        return [*prefix, "----", *block.lines, "----"]
    if isinstance(block, Quote):
        return ["[quote]", "____", *(_convert_line(line) for line in block.lines), "____"]
    if isinstance(block, ListItem):
        marker = ("." if block.ordered else "*") * block.depth
        return [f"{marker} {convert_inline(block.text)}"]
    if isinstance(block, Table):
        return _emit_table(block)
    if isinstance(block, Rule):
        return ["'''"]
    if len(block.lines) == 1 and (image := IMAGE_ONLY_RE.match(block.lines[0].strip())):
        return [f"image::{image.group('url')}[{_macro_text(image.group('alt'))}]"]
    return [_convert_line(line) for line in block.lines]


def _emit_table(table: Table) -> list[str]:
    lines: list[str] = []
    if table.header is not None:
        lines.append('[options="header"]')
    lines.append("|===")
    if table.header is not None:
        lines.append(_emit_row(table.header))
        lines.append("")
    lines.extend(_emit_row(row) for row in table.rows)
    lines.append("|===")
    return lines


def _emit_row(cells: list[str]) -> str:
    return " ".join(f"|{convert_inline(cell)}" for cell in cells)


def markdown_to_asciidoc(markdown: str, options: DocxToAsciidocOptions | None = None) -> str:
    opts = options or DocxToAsciidocOptions()
    output: list[str] = []
    for block in parse_blocks(markdown):
        output.extend(emit_block(block, opts))
    return "\n".join(output)


__all__ = [
    "Block",
    "convert_inline",
    "markdown_to_asciidoc",
    "parse_blocks",
]
