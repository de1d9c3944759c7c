"""Whole-document artifact analysis over the text cache."""

import logging
from dataclasses import dataclass

from .cache import AnalysisCache, CacheService
from .cleanup_options import CleanupOption, build_options
from .config import Settings
from .document import Document
from .page_numbers import PageNumberDetection, detect_page_numbers
from .section_headers import SectionHeaderDetection, detect_section_headers

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SmartCleanupResult:
    page_numbers: list[PageNumberDetection]
    section_headers: list[SectionHeaderDetection]
    total_pages: int

    @property
    def is_empty(self) -> bool:
        return not self.page_numbers and not self.section_headers

    def options_for(self, ordinal: int) -> list[CleanupOption]:
        return build_options(self.page_numbers, self.section_headers, ordinal)


def analyze_cache(cache: AnalysisCache, settings: Settings | None = None) -> SmartCleanupResult:
    settings = settings or Settings()
    return SmartCleanupResult(
        page_numbers=detect_page_numbers(cache),
        section_headers=detect_section_headers(
            cache,
            gap_tolerance=settings.gap_tolerance,
            min_run=settings.min_run,
            header_lines=settings.header_lines,
        ),
        total_pages=len(cache.entries),
    )


def analyze(document: Document, service: CacheService, settings: Settings | None = None) -> SmartCleanupResult:
    """Detect page numbers and section headers in a document.

    Reads the document's text cache; a missing, unreadable or out-of-sync
    cache is rebuilt from the pages first.
    """
    cache = load_snapshot(document, service)
    result = analyze_cache(cache, settings)
    logger.debug(
        "Analyzed %r: %d page numbers, %d section headers",
        document.name,
        len(result.page_numbers),
        len(result.section_headers),
    )
    return result


def load_snapshot(document: Document, service: CacheService) -> AnalysisCache:
    """Return a cache snapshot that matches the document's pages."""
    with service.lock(document):
        cache = service.load(document)
        if cache is not None and cache.ordinals != document.ordinals:
            logger.warning("Text cache for %r is out of sync with its pages", document.name)
            cache = None
        if cache is None:
            cache = service.rebuild(document)
        return cache
