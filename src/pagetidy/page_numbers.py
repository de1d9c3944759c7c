"""Page number detection on the first and last lines of each page."""

import enum
from dataclasses import dataclass

from .cache import AnalysisCache
from .normalizer import decompose, extract_page_number, non_empty_lines, normalize


class LinePosition(enum.Enum):
    FIRST_LINE = "first"
    LAST_LINE = "last"


@dataclass(frozen=True)
class PageNumberDetection:
    """A page-number line found at the top or bottom of a page."""

    ordinal: int
    number: int
    number_text: str
    line_text: str
    normalized_line: str
    position: LinePosition

    @property
    def is_mixed(self) -> bool:
        """True when the numeral shares its line with other text."""
        return extract_page_number(self.line_text) is None


def detect_page_numbers(cache: AnalysisCache) -> list[PageNumberDetection]:
    """Scan every page's first and last non-empty line for page numbers.

    A line qualifies when it is a bare numeral, one of the "page 42",
    "p. 42" or "- 42 -" wrappers, or text with a numeral at one edge
    ("Chapter 1 42"). Numerals are not checked for sequence across pages.
    """
    detections = []
    for entry in cache.entries:
        lines = non_empty_lines(entry.plain_text)
        if not lines:
            continue

        candidates = [(lines[0], LinePosition.FIRST_LINE)]
        # A single-line page is only checked once
        if len(lines) > 1:
            candidates.append((lines[-1], LinePosition.LAST_LINE))

        for line, position in candidates:
            detection = _match_line(entry.ordinal, line, position)
            if detection is not None:
                detections.append(detection)

    return detections


def _match_line(ordinal: int, line: str, position: LinePosition) -> PageNumberDetection | None:
    normalized = normalize(line)

    found = extract_page_number(line)
    if found is not None:
        number, number_text = found
        return PageNumberDetection(ordinal, number, number_text, line, normalized, position)

    components = decompose(line)
    if components.numeral is not None and components.core:
        return PageNumberDetection(
            ordinal, components.numeral, components.numeral_text, line, normalized, position
        )

    return None
