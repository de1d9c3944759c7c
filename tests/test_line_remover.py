"""Tests for formatting-preserving line removal."""

from pagetidy.analysis import analyze
from pagetidy.cache import CacheService, PageTextEntry
from pagetidy.cleanup_options import CleanupKind
from pagetidy.document import Document, Page
from pagetidy.line_remover import apply_option, remove_line, remove_number_token
from pagetidy.rich_text import BOLD, RichText, Run


def test_removes_matching_line_with_its_break():
    text = RichText.from_plain("Header\nBody one.\nBody two.")
    assert remove_line(text, "header").plain_text == "Body one.\nBody two."


def test_removes_last_line_with_preceding_break():
    text = RichText.from_plain("Body one.\nBody two.\n42")
    result = remove_line(text, "42")
    assert result.plain_text == "Body one.\nBody two."
    assert len(result.plain_text.split("\n")) == 2


def test_removal_preserves_bold_formatting():
    text = RichText([Run("42\n"), Run("Bold heading", frozenset({BOLD})), Run("\nplain body")])
    result = remove_line(text, "42")
    assert result.plain_text == "Bold heading\nplain body"
    assert result.runs == (Run("Bold heading", frozenset({BOLD})), Run("\nplain body"))
    assert len(result.plain_text.split("\n")) == len(text.plain_text.split("\n")) - 1


def test_removal_inside_styled_run():
    text = RichText([Run("Intro\n", frozenset({BOLD})), Run("Page 3\nBody")])
    result = remove_line(text, "page 3")
    assert result.runs == (Run("Intro\n", frozenset({BOLD})), Run("Body"))


def test_missing_target_is_a_no_op():
    text = RichText.from_plain("Body.\n12")
    assert remove_line(text, "13") is text
    assert remove_line(text, "") is text


def test_strip_numbers_matches_header_with_page_number():
    text = RichText.from_plain("Chapter Two 41\nBody.")
    assert remove_line(text, "chapter two").plain_text == text.plain_text
    assert remove_line(text, "chapter two", strip_numbers=True).plain_text == "Body."


def test_last_scans_from_bottom():
    text = RichText.from_plain("12\nBody.\n12")
    assert remove_line(text, "12", last=True).plain_text == "12\nBody."


def test_remove_number_token_keeps_header_text():
    text = RichText([Run("Chapter 1  42", frozenset({BOLD})), Run("\nBody.")])
    result = remove_number_token(text, "chapter 1 42", "42")
    assert result.plain_text == "Chapter 1\nBody."
    assert result.styles_at(0) == frozenset({BOLD})


def test_remove_leading_number_token():
    text = RichText.from_plain("Body.\n42 Chapter One")
    assert remove_number_token(text, "42 chapter one", "42").plain_text == "Body.\nChapter One"


def test_remove_number_token_skips_longer_numbers():
    text = RichText.from_plain("Volume 142 42\nBody.")
    assert remove_number_token(text, "volume 142 42", "42").plain_text == "Volume 142\nBody."


def _document(texts: list[str]) -> tuple[Document, CacheService]:
    document = Document("book", [Page(i, RichText.from_plain(t)) for i, t in enumerate(texts, start=1)])
    service = CacheService()
    service.build(document)
    return document, service


def test_batch_header_removal_updates_pages_and_cache():
    document, service = _document([
        "Running Title 1\nBody one.",
        "Running Title 2\nBody two words.",
        "Running Title 3\nBody three.",
        "Running Title 4\nBody four.",
        "Epilogue\nThe end.",
    ])
    untouched = document.page(5).rich_text
    result = analyze(document, service)
    option = next(o for o in result.options_for(1) if o.kind is CleanupKind.REMOVE_ALL_HEADERS)

    changed = apply_option(document, option, service)

    assert changed == [1, 2, 3, 4]
    assert document.page(2).plain_text == "Body two words."
    assert document.page(5).rich_text is untouched
    cache = service.load(document)
    for page in document.pages:
        entry = cache.entry(page.ordinal)
        assert entry.rich_text == page.rich_text
        assert entry == PageTextEntry.from_text(page.ordinal, page.rich_text)


def test_batch_page_number_removal():
    document, service = _document(["Body one.\n1", "Body two.\n2", "Body three.\n3"])
    option = analyze(document, service).options_for(2)[-1]
    assert option.id == "all-pn"

    assert apply_option(document, option, service) == [1, 2, 3]
    assert [p.plain_text for p in document.sorted_pages()] == ["Body one.", "Body two.", "Body three."]
    assert analyze(document, service).is_empty


def test_batch_without_cache_edits_pages_and_rebuilds():
    document, service = _document(["Body one.\n1", "Body two.\n2"])
    option = analyze(document, service).options_for(1)[0]
    document.text_cache = b"not json"

    assert apply_option(document, option, service) == [1]
    assert document.page(1).plain_text == "Body one."
    assert service.load(document).entry(1).plain_text == "Body one."


def test_stale_option_is_a_no_op():
    document, service = _document(["Body one.\n1", "Body two.\n2"])
    option = analyze(document, service).options_for(1)[0]
    apply_option(document, option, service)
    assert apply_option(document, option, service) == []


def test_removes_lines_after_form_feed_and_line_separator():
    assert remove_line(RichText.from_plain("Body.\x0c42"), "42", last=True).plain_text == "Body."
    assert remove_line(RichText.from_plain("Title\u2028Body."), "title").plain_text == "Body."
    assert remove_line(RichText.from_plain("Title\r\nBody."), "title").plain_text == "Body."


def test_batch_removal_with_form_feed_page_breaks():
    document, service = _document([f"Body {i} text.\x0c{i}" for i in range(1, 4)])
    option = analyze(document, service).options_for(1)[-1]
    assert option.id == "all-pn"

    assert apply_option(document, option, service) == [1, 2, 3]
    assert document.page(1).plain_text == "Body 1 text."
    assert analyze(document, service).is_empty


def test_mixed_line_after_line_separator():
    text = RichText.from_plain("Body.\u2028Chapter One 42")
    assert remove_number_token(text, "chapter one 42", "42").plain_text == "Body.\u2028Chapter One"
