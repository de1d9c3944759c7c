"""Running section header detection across contiguous page runs."""

from dataclasses import dataclass

from .cache import AnalysisCache
from .normalizer import decompose, extract_page_number, non_empty_lines, normalize, parse_numeric_token

DEFAULT_GAP_TOLERANCE = 2
DEFAULT_MIN_RUN = 3
DEFAULT_HEADER_LINES = 3
MIN_HEADER_LENGTH = 3


@dataclass(frozen=True)
class SectionHeaderDetection:
    """A header repeated over a run of pages.

    ``affected_pages`` lists the pages that carry the header; with alternating
    left/right headers it is a strict subset of ``page_range``.
    """

    header_text: str
    display_text: str
    page_range: tuple[int, int]
    affected_pages: tuple[int, ...]

    def spans(self, ordinal: int) -> bool:
        return self.page_range[0] <= ordinal <= self.page_range[1]

    @property
    def label_text(self) -> str:
        """``display_text`` without its edge page number, as shown in option labels."""
        tokens = self.display_text.split()
        if len(tokens) > 1:
            for index in (-1, 0):
                if parse_numeric_token(normalize(tokens[index])) is not None:
                    return " ".join(tokens[:-1] if index == -1 else tokens[1:])
        return self.display_text


def detect_section_headers(
    cache: AnalysisCache,
    gap_tolerance: int = DEFAULT_GAP_TOLERANCE,
    min_run: int = DEFAULT_MIN_RUN,
    header_lines: int = DEFAULT_HEADER_LINES,
) -> list[SectionHeaderDetection]:
    """Group repeated header lines into runs of nearby pages.

    The first ``header_lines`` non-empty lines of each page are candidates.
    An edge page number is stripped before comparing, so "Chapter 1 42" and
    "Chapter 1 43" are the same header. Pages carrying the same header form a
    run while consecutive ones are at most ``gap_tolerance`` apart; runs with
    fewer than ``min_run`` pages are dropped.

    Args:
        cache: Page texts to scan.
        gap_tolerance: Largest ordinal step allowed inside a run.
        min_run: Minimum number of pages carrying the header.
        header_lines: Number of leading non-empty lines checked per page.

    Returns:
        Detections ordered by first page, then header text.
    """
    if gap_tolerance < 1:
        raise ValueError(f"gap_tolerance must be at least 1, got {gap_tolerance}")
    if min_run < 1:
        raise ValueError(f"min_run must be at least 1, got {min_run}")

    # header text -> [(ordinal, original line)] in page order
    occurrences: dict[str, list[tuple[int, str]]] = {}

    for entry in cache.entries:
        seen: set[str] = set()
        for line in non_empty_lines(entry.plain_text)[:header_lines]:
            if extract_page_number(line) is not None:
                continue
            components = decompose(line)
            core = components.core or components.normalized
            if len(core) < MIN_HEADER_LENGTH or core in seen:
                continue
            seen.add(core)
            occurrences.setdefault(core, []).append((entry.ordinal, line))

    detections = []
    for header_text, found in occurrences.items():
        for run in _contiguous_runs(found, gap_tolerance):
            if len(run) < min_run:
                continue
            detections.append(
                SectionHeaderDetection(
                    header_text=header_text,
                    display_text=run[0][1],
                    page_range=(run[0][0], run[-1][0]),
                    affected_pages=tuple(ordinal for ordinal, _ in run),
                )
            )

    detections.sort(key=lambda d: (d.page_range[0], d.header_text))
    return detections


def _contiguous_runs(found: list[tuple[int, str]], gap_tolerance: int) -> list[list[tuple[int, str]]]:
    """Split page-ordered occurrences wherever the ordinal step exceeds the tolerance."""
    runs: list[list[tuple[int, str]]] = []
    for item in sorted(found, key=lambda pair: pair[0]):
        if runs and item[0] - runs[-1][-1][0] <= gap_tolerance:
            runs[-1].append(item)
        else:
            runs.append([item])
    return runs
