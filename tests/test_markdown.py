import pytest

from docgeo.documents.markdown import convert_inline, markdown_to_asciidoc, parse_blocks
from docgeo.models import DocxToAsciidocOptions


@pytest.mark.parametrize("level", range(1, 7))
@pytest.mark.parametrize("offset", range(0, 6))
def test_heading_level_offset(level: int, offset: int) -> None:
    markdown = f"{'#' * level} Section name"
    result = markdown_to_asciidoc(markdown, DocxToAsciidocOptions(heading_level=offset))
    assert result == f"{'=' * (level + offset)} Section name"


def test_fenced_code_with_language() -> None:
    markdown = "```python\nprint(\"**not bold**\")\n    indented = True\n```"
    result = markdown_to_asciidoc(markdown)
    assert result == '[source,python]\n----\nprint("**not bold**")\n    indented = True\n----'


def test_fenced_code_without_language() -> None:
    result = markdown_to_asciidoc("```\nx = 1\n```")
    assert result == "----\nx = 1\n----"


def test_indented_code_block() -> None:
    result = markdown_to_asciidoc("Intro\n\n    line one\n    line two\n")
    assert "----\nline one\nline two\n----" in result


def test_blockquote() -> None:
    result = markdown_to_asciidoc("> quoted text\n> more")
    assert result == "[quote]\n____\nquoted text\nmore\n____"


def test_bold_and_italic() -> None:
    assert convert_inline("**bold** and *italic* and _also_") == "*bold* and _italic_ and _also_"


def test_link_macro() -> None:
    assert convert_inline("see [the site](https://example.com)") == "see link:https://example.com[the site]"


def test_link_text_is_not_rewritten_twice() -> None:
    assert convert_inline("[**x**](http://a.b)") == "link:http://a.b[*x*]"


def test_inline_code_passthrough() -> None:
    assert convert_inline("call `run()` now") == "call `run()` now"
    assert convert_inline("use `a*b`") == "use `+a*b+`"


def test_escaped_asterisk() -> None:
    assert convert_inline(r"5 \* 3") == "5 {asterisk} 3"


def test_unordered_nested_list() -> None:
    result = markdown_to_asciidoc("* one\n* two\n    * nested")
    assert result == "* one\n* two\n** nested"


def test_ordered_list() -> None:
    result = markdown_to_asciidoc("1. first\n2. second")
    assert result == ". first\n. second"


def test_pipe_table_with_header() -> None:
    markdown = "| A | B |\n| --- | --- |\n| 1 | 2 |"
    result = markdown_to_asciidoc(markdown)
    assert result == '[options="header"]\n|===\n|A |B\n\n|1 |2\n|==='


def test_block_image() -> None:
    assert markdown_to_asciidoc("![Logo](img/logo.png)") == "image::img/logo.png[Logo]"


def test_hard_line_break() -> None:
    assert markdown_to_asciidoc("first  \nsecond") == "first +\nsecond"


def test_horizontal_rule() -> None:
    assert markdown_to_asciidoc("before\n\n---\n\nafter") == "before\n\n'''\n\nafter"


def test_parse_blocks_keeps_code_verbatim() -> None:
    blocks = parse_blocks("```\n# not a heading\n```")
    assert len(blocks) == 1
    assert blocks[0].lines == ["# not a heading"]
