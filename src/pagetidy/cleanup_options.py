"""Ranked cleanup actions offered for the page being viewed."""

import enum
from dataclasses import dataclass

from .page_numbers import PageNumberDetection
from .section_headers import SectionHeaderDetection

Detection = PageNumberDetection | SectionHeaderDetection


class CleanupKind(enum.Enum):
    REMOVE_PAGE_NUMBER = "remove-page-number"
    REMOVE_HEADER_FROM_PAGE = "remove-header-from-page"
    REMOVE_HEADER_FROM_RANGE = "remove-header-from-range"
    REMOVE_ALL_PAGE_NUMBERS = "remove-all-page-numbers"
    REMOVE_ALL_HEADERS = "remove-all-headers"


@dataclass(frozen=True)
class CleanupTarget:
    ordinal: int
    detection: Detection


@dataclass(frozen=True)
class CleanupOption:
    """One removal the user can invoke, with every page it will touch."""

    kind: CleanupKind
    label: str
    targets: tuple[CleanupTarget, ...]
    id: str

    @property
    def ordinals(self) -> list[int]:
        return sorted({target.ordinal for target in self.targets})


def build_options(
    page_numbers: list[PageNumberDetection],
    section_headers: list[SectionHeaderDetection],
    current_ordinal: int,
) -> list[CleanupOption]:
    """Build the options relevant to ``current_ordinal``, most specific first.

    Order: this page's page numbers, this page's headers, header ranges
    spanning this page, then the document-wide page number and header
    options. Options with nothing to act on are left out.
    """
    options = []

    for detection in page_numbers:
        if detection.ordinal == current_ordinal:
            options.append(
                CleanupOption(
                    CleanupKind.REMOVE_PAGE_NUMBER,
                    f"Remove page number ({detection.number}) from this page",
                    (CleanupTarget(current_ordinal, detection),),
                    f"pn-{current_ordinal}-{detection.position.value}-{detection.number}",
                )
            )

    for header in section_headers:
        if current_ordinal in header.affected_pages:
            options.append(
                CleanupOption(
                    CleanupKind.REMOVE_HEADER_FROM_PAGE,
                    f'Remove "{header.label_text}" from this page',
                    (CleanupTarget(current_ordinal, header),),
                    f"sh-page-{current_ordinal}-{header.header_text}",
                )
            )

    for header in section_headers:
        start, end = header.page_range
        if header.spans(current_ordinal) and len(header.affected_pages) > 1:
            options.append(
                CleanupOption(
                    CleanupKind.REMOVE_HEADER_FROM_RANGE,
                    f'Remove "{header.label_text}" from pages {start}-{end}',
                    tuple(CleanupTarget(ordinal, header) for ordinal in header.affected_pages),
                    f"sh-range-{start}-{end}-{header.header_text}",
                )
            )

    if page_numbers:
        options.append(
            CleanupOption(
                CleanupKind.REMOVE_ALL_PAGE_NUMBERS,
                "Remove detected page numbers from the entire document",
                tuple(CleanupTarget(d.ordinal, d) for d in page_numbers),
                "all-pn",
            )
        )

    if section_headers:
        options.append(
            CleanupOption(
                CleanupKind.REMOVE_ALL_HEADERS,
                "Remove detected section headers from the entire document",
                tuple(CleanupTarget(ordinal, h) for h in section_headers for ordinal in h.affected_pages),
                "all-sh",
            )
        )

    return options
