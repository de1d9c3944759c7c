"""Tests for running section header detection."""

import pytest

from pagetidy.cache import AnalysisCache, PageTextEntry
from pagetidy.rich_text import RichText
from pagetidy.section_headers import SectionHeaderDetection, detect_section_headers


def _cache(pages: dict[int, str]) -> AnalysisCache:
    return AnalysisCache([PageTextEntry.from_text(o, RichText.from_plain(t)) for o, t in pages.items()])


def test_groups_header_with_varying_page_numbers():
    pages = {9: "Prologue\nBody text for page 9."}
    for ordinal in range(10, 16):
        pages[ordinal] = f"Chapter Two {ordinal + 30}\nBody text for page {ordinal}."
    pages[16] = "Chapter Three\nBody text for page 16."
    detections = detect_section_headers(_cache(pages))

    assert len(detections) == 1
    [header] = detections
    assert header.header_text == "chapter two"
    assert header.page_range == (10, 15)
    assert header.affected_pages == (10, 11, 12, 13, 14, 15)
    assert header.display_text == "Chapter Two 40"
    assert header.label_text == "Chapter Two"


def test_alternating_headers_form_separate_detections():
    pages = {}
    for ordinal in range(20, 27):
        header = "Chapter 3" if ordinal % 2 == 0 else "The Long Road"
        pages[ordinal] = f"{header}\nBody text for page {ordinal}."
    detections = detect_section_headers(_cache(pages))

    assert len(detections) == 2
    chapter, title = detections
    assert chapter.display_text == "Chapter 3"
    assert chapter.page_range == (20, 26)
    assert chapter.affected_pages == (20, 22, 24, 26)
    assert title.display_text == "The Long Road"
    assert title.page_range == (21, 25)
    assert title.affected_pages == (21, 23, 25)
    assert not set(chapter.affected_pages) & set(title.affected_pages)


def test_two_pages_are_not_a_section():
    pages = {1: "Running Title\nOne.", 2: "Running Title\nTwo.", 3: "Other\nThree."}
    assert detect_section_headers(_cache(pages)) == []


def test_large_gap_splits_runs():
    pages = {ordinal: f"Running Title\nBody {ordinal} text." for ordinal in (1, 2, 3, 7, 8, 9)}
    detections = detect_section_headers(_cache(pages))
    assert [d.page_range for d in detections] == [(1, 3), (7, 9)]


def test_gap_tolerance_is_configurable():
    pages = {ordinal: f"Running Title\nBody {ordinal} text." for ordinal in (1, 4, 7)}
    assert detect_section_headers(_cache(pages)) == []
    [header] = detect_section_headers(_cache(pages), gap_tolerance=3)
    assert header.affected_pages == (1, 4, 7)


def test_two_header_lines_on_one_page_evaluated_independently():
    pages = {ordinal: f"Book Title\nPart One\nBody {ordinal} text." for ordinal in range(1, 5)}
    detections = detect_section_headers(_cache(pages))
    assert sorted(d.header_text for d in detections) == ["book title", "part one"]


def test_only_leading_lines_are_candidates():
    pages = {ordinal: f"Intro {ordinal} a.\nLine {ordinal} b.\nLine {ordinal} c.\nFooter Text" for ordinal in range(1, 6)}
    assert detect_section_headers(_cache(pages)) == []
    [header] = detect_section_headers(_cache(pages), header_lines=4)
    assert header.header_text == "footer text"


def test_page_number_lines_are_not_headers():
    pages = {ordinal: f"{ordinal}\nBody {ordinal} text." for ordinal in range(1, 6)}
    assert detect_section_headers(_cache(pages)) == []


def test_rejects_invalid_thresholds():
    with pytest.raises(ValueError):
        detect_section_headers(_cache({}), gap_tolerance=0)


def test_label_text_strips_edge_numeral_only():
    def label(display):
        return SectionHeaderDetection("x", display, (1, 3), (1, 2, 3)).label_text

    assert label("Chapter Two 40") == "Chapter Two"
    assert label("41  Chapter Two") == "Chapter Two"
    assert label("Chapter 1 of 3 42") == "Chapter 1 of 3"
    assert label("The Long Road") == "The Long Road"
