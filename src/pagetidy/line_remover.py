"""Formatting-preserving removal of detected artifact lines."""

import logging

from .cache import CacheService
from .cleanup_options import CleanupOption, Detection
from .document import Document
from .normalizer import decompose, line_spans, normalize
from .page_numbers import LinePosition, PageNumberDetection
from .rich_text import RichText

logger = logging.getLogger(__name__)


def remove_line(rich_text: RichText, target: str, strip_numbers: bool = False, last: bool = False) -> RichText:
    """Delete the first line whose normalized form equals ``target``.

    The line goes together with its trailing line break (or the preceding
    one, for the last line), so the line count drops by exactly one. With
    ``strip_numbers`` an edge page number is ignored when comparing, which is
    how header lines like "Chapter 1 42" are matched. Returns ``rich_text``
    unchanged when no line matches.

    Args:
        rich_text: Page text to edit.
        target: Normalized line (or header core text) to look for.
        strip_numbers: Compare lines with their edge numeral removed.
        last: Scan from the bottom of the page instead, for footer lines.
    """
    if not target:
        return rich_text

    plain = rich_text.plain_text
    spans = line_spans(plain)
    order = range(len(spans) - 1, -1, -1) if last else range(len(spans))
    for index in order:
        line = plain[spans[index][0] : spans[index][1]]
        if strip_numbers:
            components = decompose(line)
            compare = components.core or components.normalized
        else:
            compare = normalize(line)
        if compare == target:
            start, end = _line_span(spans, index)
            return rich_text.delete(start, end)

    return rich_text


def remove_number_token(rich_text: RichText, normalized_line: str, number_text: str) -> RichText:
    """Delete a page numeral from its line, keeping the rest of the line.

    Used for mixed lines such as "Chapter 1 42". Adjacent spaces go with the
    numeral; if nothing else is left the whole line is removed.
    """
    if not normalized_line or not number_text:
        return rich_text

    plain = rich_text.plain_text
    spans = line_spans(plain)
    for index, (line_start, line_end) in enumerate(spans):
        line = plain[line_start:line_end]
        if normalize(line) != normalized_line:
            continue

        trailing = normalized_line.endswith(" " + number_text) or normalized_line == number_text
        token = _find_standalone(line, number_text, last=trailing)
        if token is None:
            return rich_text
        token_start, token_end = token

        if not (line[:token_start] + line[token_end:]).strip():
            start, end = _line_span(spans, index)
            return rich_text.delete(start, end)

        # Take the spaces on one side only
        start, end = token_start, token_end
        while start > 0 and line[start - 1] in " \t":
            start -= 1
        if start == token_start:
            while end < len(line) and line[end] in " \t":
                end += 1
        return rich_text.delete(line_start + start, line_start + end)

    return rich_text


def remove_detection(rich_text: RichText, detection: Detection) -> RichText:
    """Remove one detected artifact from a page's text."""
    if isinstance(detection, PageNumberDetection):
        if detection.is_mixed:
            return remove_number_token(rich_text, detection.normalized_line, detection.number_text)
        return remove_line(
            rich_text, detection.normalized_line, last=detection.position is LinePosition.LAST_LINE
        )
    return remove_line(rich_text, detection.header_text, strip_numbers=True)


def apply_option(document: Document, option: CleanupOption, service: CacheService) -> list[int]:
    """Carry out a cleanup option on every page it targets.

    The cache is loaded once, each affected page and its cache entry are
    updated in memory, and the cache is stored once at the end. Without a
    usable cache the pages are edited directly and the cache is rebuilt.

    Returns:
        Ordinals of the pages whose text changed.
    """
    by_page: dict[int, list[Detection]] = {}
    for target in option.targets:
        by_page.setdefault(target.ordinal, []).append(target.detection)

    pages = {page.ordinal: page for page in document.pages}
    updates = {}
    with service.editing(document) as cache:
        entries = {entry.ordinal: entry for entry in cache.entries} if cache is not None else {}
        for ordinal, detections in by_page.items():
            page = pages.get(ordinal)
            if page is None:
                logger.debug("Skipping page %d, no longer in %r", ordinal, document.name)
                continue
            entry = entries.get(ordinal)
            original = entry.rich_text if entry is not None else page.rich_text

            updated = original
            for detection in detections:
                updated = remove_detection(updated, detection)
            if updated == original:
                continue

            page.set_text(updated)
            updates[ordinal] = updated
        if cache is not None:
            cache.update_many(updates)
        missing_cache = cache is None

    changed = list(updates)

    if missing_cache and changed:
        service.rebuild(document)

    logger.info("Applied %s to %d of %d pages", option.id, len(changed), len(by_page))
    return changed


def _line_span(spans: list[tuple[int, int]], index: int) -> tuple[int, int]:
    """Character span of a line plus one adjacent line break."""
    start, end = spans[index]
    if index < len(spans) - 1:
        end = spans[index + 1][0]
    elif index > 0:
        start = spans[index - 1][1]
    return start, end


def _find_standalone(line: str, token: str, last: bool = False) -> tuple[int, int] | None:
    """Locate ``token`` where it is not part of a longer number."""
    found = None
    pos = line.find(token)
    while pos != -1:
        end = pos + len(token)
        before_ok = pos == 0 or not (line[pos - 1].isdecimal() or line[pos - 1] == ",")
        after_ok = end == len(line) or not (line[end].isdecimal() or line[end] == ",")
        if before_ok and after_ok:
            found = (pos, end)
            if not last:
                return found
        pos = line.find(token, pos + 1)
    return found
