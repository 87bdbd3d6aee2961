from docgeo.documents.postprocess import (
    collapse_line_breaks,
    ensure_title,
    normalize_table_cells,
    post_process_asciidoc,
)
from docgeo.models import DocxToAsciidocOptions


def test_custom_attributes_follow_first_heading() -> None:
    options = DocxToAsciidocOptions(
        include_attributes=True,
        attributes={"author": "A", "email": "b@x.com"},
    )
    result = post_process_asciidoc("= Report\n\nBody text", options)
    lines = result.split("\n")
    heading = lines.index("= Report")
    assert lines.index(":author: A") > heading
    assert lines.index(":email: b@x.com") > heading
    assert ":icons: font" in lines
    assert ":toc: left" not in lines


def test_toc_attributes_only_when_requested() -> None:
    options = DocxToAsciidocOptions(include_attributes=True, include_toc=True)
    lines = post_process_asciidoc("= Report\n\nBody", options).split("\n")
    assert ":toc: left" in lines
    assert ":toclevels: 3" in lines


def test_attributes_skipped_by_default() -> None:
    result = post_process_asciidoc("= Report\n\nBody")
    assert ":icons: font" not in result


def test_default_title_added_when_missing() -> None:
    assert ensure_title("\n\nBody text", "Document Title") == "= Document Title\n\nBody text"
    assert ensure_title("== Section\n", "Ignored") == "== Section\n"


def test_configured_title_used() -> None:
    result = post_process_asciidoc("Plain body", DocxToAsciidocOptions(default_title="My Doc"))
    assert result.startswith("= My Doc\n")


def test_consecutive_lines_joined() -> None:
    result = post_process_asciidoc("= T\n\nline one\nline two\n\n* item")
    assert "line one line two" in result.split("\n")
    assert "* item" in result.split("\n")


def test_line_breaks_preserved_when_requested() -> None:
    options = DocxToAsciidocOptions(preserve_line_breaks=True)
    result = post_process_asciidoc("= T\n\nline one\nline two", options)
    assert "line one\nline two" in result


def test_delimited_block_lines_not_joined() -> None:
    source = "= T\n\n----\nfirst\nsecond\n----"
    assert collapse_line_breaks(source) == source


def test_hard_breaks_not_joined() -> None:
    assert collapse_line_breaks("one +\ntwo") == "one +\ntwo"


def test_table_cells_compacted() -> None:
    source = "|===\n|A |B\n\n|1 |2\n\n|3 |4\n|==="
    assert normalize_table_cells(source) == "|===\n|A |B\n\n|1 |2\n|3 |4\n|==="


def test_table_marker_inside_listing_left_alone() -> None:
    source = "----\n|===\n\nkeep the blank above\n|===\n----"
    assert normalize_table_cells(source) == source
