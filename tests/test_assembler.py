"""Tests for combined document export."""

from pagetidy.assembler import (
    ExportSettings,
    FlowStyle,
    SeparatorStyle,
    assemble,
    build_combined_text,
    export_entries,
)
from pagetidy.cache import CacheService
from pagetidy.document import Document, Page
from pagetidy.rich_text import BOLD, RichText, Run


def _setup() -> tuple[Document, CacheService]:
    document = Document(
        "book",
        [
            Page(1, RichText([Run("Title", frozenset({BOLD})), Run("\nfirst page")]), "scan_001.jpg"),
            Page(2, RichText.from_plain("second page"), "scan_002.jpg"),
        ],
    )
    service = CacheService()
    service.build(document)
    return document, service


def test_line_break_flow_is_default():
    document, service = _setup()
    combined = build_combined_text(export_entries(document, service))
    assert combined.plain_text == "Title\nfirst page\n\nsecond page"
    assert combined.styles_at(0) == frozenset({BOLD})


def test_inline_flow():
    document, service = _setup()
    combined = build_combined_text(export_entries(document, service), ExportSettings(flow_style=FlowStyle.INLINE))
    assert combined.plain_text == "Title\nfirst page second page"


def test_visual_separation_single_line():
    document, service = _setup()
    settings = ExportSettings(
        flow_style=FlowStyle.VISUAL_SEPARATION, include_display_name=True, include_statistics=True
    )
    combined = build_combined_text(export_entries(document, service), settings)
    assert combined.plain_text == (
        "[Page 1 of 2 | scan_001.jpg | 3 words, 16 characters]\n\nTitle\nfirst page"
        "\n\n[Page 2 of 2 | scan_002.jpg | 2 words, 11 characters]\n\nsecond page"
    )


def test_visual_separation_multiple_lines_and_hyphens():
    document, service = _setup()
    entries = export_entries(document, service)

    multiple = ExportSettings(
        flow_style=FlowStyle.VISUAL_SEPARATION,
        separator_style=SeparatorStyle.MULTIPLE_LINES,
        include_display_name=True,
    )
    assert build_combined_text(entries, multiple).plain_text.startswith("Page 1 of 2\nscan_001.jpg\n\nTitle")

    hyphens = ExportSettings(flow_style=FlowStyle.VISUAL_SEPARATION, separator_style=SeparatorStyle.HYPHEN_LINE)
    text = build_combined_text(entries, hyphens).plain_text
    assert text.startswith("-" * 40 + "\nPage 1 of 2\n\nTitle")
    assert "first page\n\n" + "-" * 40 + "\nPage 2 of 2\n\nsecond page" in text


def test_export_falls_back_to_pages_without_cache():
    document, service = _setup()
    from_cache = build_combined_text(export_entries(document, service))
    document.text_cache = b"\xff\xfe"
    assert build_combined_text(export_entries(document, service)) == from_cache


def test_export_ignores_out_of_sync_cache():
    document, service = _setup()
    document.pages.append(Page(3, RichText.from_plain("third page")))
    assert [e.ordinal for e in export_entries(document, service)] == [1, 2, 3]


def test_assemble_writes_markdown_with_markers(tmp_path):
    document, service = _setup()
    output = tmp_path / "out" / "book.md"

    assemble(document, output, service)

    assert output.read_text(encoding="utf-8") == (
        "<!-- page 1 / scan_001.jpg -->\n**Title**\nfirst page\n\n"
        "<!-- page 2 / scan_002.jpg -->\nsecond page\n"
    )
