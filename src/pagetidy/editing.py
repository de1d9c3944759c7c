"""Page edits that keep the document and its text cache in step."""

import logging

from .cache import CacheService
from .document import Document, Page
from .rich_text import RichText

logger = logging.getLogger(__name__)


def edit_page(document: Document, ordinal: int, rich_text: RichText, service: CacheService) -> None:
    """Save new text for one page and refresh its cache entry."""
    page = document.page(ordinal)
    if page is None:
        raise KeyError(f"no page {ordinal} in {document.name!r}")
    with service.lock(document):
        page.set_text(rich_text)
        service.update_one(document, ordinal, rich_text)


def append_pages(
    document: Document, texts: list[RichText], service: CacheService, names: list[str | None] | None = None
) -> list[Page]:
    """Add pages after the current last page.

    Raises:
        ValueError: If ``names`` is given with a different length than ``texts``.
    """
    if names is None:
        names = [None] * len(texts)
    elif len(names) != len(texts):
        raise ValueError(f"got {len(texts)} texts but {len(names)} names")
    with service.lock(document):
        next_ordinal = max(document.ordinals, default=0) + 1
        added = [Page(next_ordinal + i, text, name) for i, (text, name) in enumerate(zip(texts, names))]
        document.pages.extend(added)
        service.add_entries(document, added)
    logger.debug("Appended %d pages to %r", len(added), document.name)
    return added


def delete_page(document: Document, ordinal: int, service: CacheService) -> None:
    """Remove a page and close the ordinal gap in both pages and cache."""
    page = document.page(ordinal)
    if page is None:
        raise KeyError(f"no page {ordinal} in {document.name!r}")
    with service.editing(document) as cache:
        document.pages.remove(page)
        for other in document.pages:
            if other.ordinal > ordinal:
                other.ordinal -= 1
        if cache is not None:
            cache.remove_entry(ordinal)
            cache.renumber_after(ordinal)


def move_page_up(document: Document, ordinal: int, service: CacheService) -> bool:
    return _swap_with(document, ordinal, ordinal - 1, service)


def move_page_down(document: Document, ordinal: int, service: CacheService) -> bool:
    return _swap_with(document, ordinal, ordinal + 1, service)


def _swap_with(document: Document, ordinal: int, adjacent_ordinal: int, service: CacheService) -> bool:
    page = document.page(ordinal)
    adjacent = document.page(adjacent_ordinal)
    if page is None or adjacent is None:
        return False
    with service.lock(document):
        page.ordinal, adjacent.ordinal = adjacent.ordinal, page.ordinal
        service.swap_ordinals(document, ordinal, adjacent_ordinal)
    return True
