"""Combined document export with configurable page separators."""

import enum
import logging
from dataclasses import dataclass
from pathlib import Path

from .cache import CacheService, PageTextEntry
from .document import Document
from .rich_text import RichText

logger = logging.getLogger(__name__)

HYPHEN_RULE = "-" * 40


class FlowStyle(enum.Enum):
    INLINE = "inline"  # pages run together with a single space
    LINE_BREAK = "line_break"  # blank line between pages
    VISUAL_SEPARATION = "visual_separation"  # metadata separator before every page


class SeparatorStyle(enum.Enum):
    SINGLE_LINE = "single_line"  # [Page 1 of 5 | scan_001.jpg | 245 words, 1200 characters]
    MULTIPLE_LINES = "multiple_lines"
    HYPHEN_LINE = "hyphen_line"


@dataclass(frozen=True)
class ExportSettings:
    flow_style: FlowStyle = FlowStyle.LINE_BREAK
    separator_style: SeparatorStyle = SeparatorStyle.SINGLE_LINE
    include_page_number: bool = True
    include_display_name: bool = False
    include_statistics: bool = False


def export_entries(document: Document, service: CacheService) -> list[PageTextEntry]:
    """Page entries in reading order, from the cache when it is usable.

    Without a cache that matches the pages, each page is read directly.
    """
    cache = service.load(document)
    if cache is not None and cache.ordinals == document.ordinals:
        return list(cache.entries)
    logger.warning("Exporting %r from individual pages, text cache unavailable", document.name)
    return [PageTextEntry.from_page(page) for page in document.sorted_pages()]


def build_combined_text(entries: list[PageTextEntry], settings: ExportSettings | None = None) -> RichText:
    """Join page texts into one rich text according to ``settings``."""
    settings = settings or ExportSettings()
    combined = RichText()
    for index, entry in enumerate(entries):
        if settings.flow_style is FlowStyle.VISUAL_SEPARATION:
            combined += RichText.from_plain(_visual_separator(entry, index, len(entries), settings))
        elif index > 0:
            combined += RichText.from_plain(" " if settings.flow_style is FlowStyle.INLINE else "\n\n")
        combined += entry.rich_text
    return combined


def _visual_separator(entry: PageTextEntry, index: int, total: int, settings: ExportSettings) -> str:
    components = []
    if settings.include_page_number:
        components.append(f"Page {entry.ordinal} of {total}")
    if settings.include_display_name and entry.display_name:
        components.append(entry.display_name)
    if settings.include_statistics:
        components.append(f"{entry.word_count} words, {entry.char_count} characters")

    if settings.separator_style is SeparatorStyle.SINGLE_LINE:
        body = f"[{' | '.join(components)}]" if components else ""
    elif settings.separator_style is SeparatorStyle.MULTIPLE_LINES:
        body = "\n".join(components)
    else:
        body = "\n".join([HYPHEN_RULE, *components])

    leading = "" if index == 0 else "\n\n"
    return f"{leading}{body}\n\n"


def assemble(document: Document, output_path: Path, service: CacheService) -> None:
    """Write the document as a single Markdown file with page markers.

    Args:
        document: Document to export.
        output_path: Path for the output .md file.
        service: Cache service used to read page texts.
    """
    parts = []
    for entry in export_entries(document, service):
        label = entry.display_name or "none"
        parts.append(f"<!-- page {entry.ordinal} / {label} -->")
        parts.append(entry.rich_text.to_markdown().strip())
        parts.append("")  # blank line after each page

    content = "\n".join(parts)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(content, encoding="utf-8")
