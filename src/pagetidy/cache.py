"""Consolidated page text cache shared by analysis and export.

Every page's rich text lives in its own storage record on the host, so reading
a whole document means one load per page. The cache keeps a single blob on the
document holding all pages' text plus precomputed word and character counts,
and is kept in sync as pages are edited, added, removed and reordered.

Sync points:
    - document creation: ``CacheService.build`` from the pages still in memory
    - page text saved: ``update_one``
    - pages appended: ``add_entries``
    - page deleted: ``remove_entry`` then ``AnalysisCache.renumber_after``
    - page moved up/down: ``swap_ordinals``

If the blob is missing, corrupt or from a format version this code does not
know, ``load`` returns None and callers fall back to per-page reads through
``rebuild``.
"""

import logging
import threading
import weakref
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Iterable, Iterator

from pydantic import BaseModel, Field, ValidationError

from .document import Document, Page
from .rich_text import RichText, RunRecord

logger = logging.getLogger(__name__)

CACHE_VERSION = 1


class CacheFormatError(ValueError):
    """The stored cache blob could not be decoded."""


class PageRecord(BaseModel):
    ordinal: int
    display_name: str | None = None
    rich_text: list[RunRecord]
    word_count: int = Field(..., ge=0)
    char_count: int = Field(..., ge=0)


class CacheBlob(BaseModel):
    """Stored layout of the whole cache."""

    version: int
    pages: list[PageRecord]


@dataclass(frozen=True)
class PageTextEntry:
    """Cached text of one page with its precomputed statistics."""

    ordinal: int
    rich_text: RichText
    display_name: str | None = None
    word_count: int = 0
    char_count: int = 0

    @classmethod
    def from_text(cls, ordinal: int, rich_text: RichText, display_name: str | None = None) -> "PageTextEntry":
        plain = rich_text.plain_text
        return cls(ordinal, rich_text, display_name, len(plain.split()), len(plain))

    @classmethod
    def from_page(cls, page: Page) -> "PageTextEntry":
        return cls.from_text(page.ordinal, page.rich_text, page.display_name)

    def with_ordinal(self, ordinal: int) -> "PageTextEntry":
        return replace(self, ordinal=ordinal)

    @property
    def plain_text(self) -> str:
        return self.rich_text.plain_text


@dataclass
class AnalysisCache:
    """Ordered page entries keyed by ordinal, plus the format version."""

    entries: list[PageTextEntry] = field(default_factory=list)
    version: int = CACHE_VERSION

    def __post_init__(self) -> None:
        self._sort()

    @classmethod
    def from_pages(cls, pages: Iterable[Page]) -> "AnalysisCache":
        return cls([PageTextEntry.from_page(page) for page in pages])

    @property
    def ordinals(self) -> set[int]:
        return {entry.ordinal for entry in self.entries}

    def entry(self, ordinal: int) -> PageTextEntry | None:
        for entry in self.entries:
            if entry.ordinal == ordinal:
                return entry
        return None

    def update_one(self, ordinal: int, rich_text: RichText) -> bool:
        """Replace one entry's text and statistics, keeping its display name.

        Returns False if no entry has that ordinal.
        """
        for i, entry in enumerate(self.entries):
            if entry.ordinal == ordinal:
                self.entries[i] = PageTextEntry.from_text(ordinal, rich_text, entry.display_name)
                return True
        return False

    def update_many(self, texts: dict[int, RichText]) -> None:
        """Replace several entries' texts in one pass over the cache."""
        self.entries = [
            PageTextEntry.from_text(entry.ordinal, texts[entry.ordinal], entry.display_name)
            if entry.ordinal in texts
            else entry
            for entry in self.entries
        ]

    def add_entries(self, entries: Iterable[PageTextEntry]) -> None:
        self.entries.extend(entries)
        self._sort()

    def remove_entry(self, ordinal: int) -> bool:
        """Drop one entry. Other ordinals are left as they are."""
        before = len(self.entries)
        self.entries = [entry for entry in self.entries if entry.ordinal != ordinal]
        return len(self.entries) != before

    def renumber_after(self, ordinal: int) -> None:
        """Close the gap left by a deleted ordinal."""
        self.entries = [
            entry.with_ordinal(entry.ordinal - 1) if entry.ordinal > ordinal else entry for entry in self.entries
        ]

    def swap_ordinals(self, a: int, b: int) -> bool:
        first = self.entry(a)
        second = self.entry(b)
        if first is None or second is None:
            return False
        self.entries = [
            entry.with_ordinal(b) if entry is first else entry.with_ordinal(a) if entry is second else entry
            for entry in self.entries
        ]
        self._sort()
        return True

    def _sort(self) -> None:
        self.entries.sort(key=lambda entry: entry.ordinal)

    def to_bytes(self) -> bytes:
        blob = CacheBlob(
            version=self.version,
            pages=[
                PageRecord(
                    ordinal=entry.ordinal,
                    display_name=entry.display_name,
                    rich_text=entry.rich_text.to_records(),
                    word_count=entry.word_count,
                    char_count=entry.char_count,
                )
                for entry in self.entries
            ],
        )
        return blob.model_dump_json().encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> "AnalysisCache":
        """Decode a stored blob.

        Raises:
            CacheFormatError: If the blob is not a well-formed cache.
        """
        try:
            blob = CacheBlob.model_validate_json(data)
        except ValidationError as e:
            raise CacheFormatError(f"undecodable text cache: {e}") from e
        entries = [
            PageTextEntry(
                ordinal=record.ordinal,
                rich_text=RichText.from_records(record.rich_text),
                display_name=record.display_name,
                word_count=record.word_count,
                char_count=record.char_count,
            )
            for record in blob.pages
        ]
        return cls(entries, version=blob.version)


class CacheService:
    """Loads, persists and incrementally updates a document's text cache.

    Mutations on one document are serialized through a per-document lock,
    since each one reads, modifies and rewrites the whole blob.
    """

    def __init__(self) -> None:
        self._locks: "weakref.WeakKeyDictionary[Document, threading.RLock]" = weakref.WeakKeyDictionary()
        self._locks_guard = threading.Lock()

    def lock(self, document: Document) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(document)
            if lock is None:
                lock = self._locks[document] = threading.RLock()
            return lock

    def load(self, document: Document) -> AnalysisCache | None:
        """Decode the stored cache, or None if it is absent or unusable."""
        if document.text_cache is None:
            return None
        try:
            cache = AnalysisCache.from_bytes(document.text_cache)
        except CacheFormatError as e:
            logger.warning("Ignoring text cache for %r: %s", document.name, e)
            return None
        if cache.version != CACHE_VERSION:
            logger.warning(
                "Ignoring text cache for %r: version %d, expected %d", document.name, cache.version, CACHE_VERSION
            )
            return None
        return cache

    def save(self, document: Document, cache: AnalysisCache) -> None:
        document.text_cache = cache.to_bytes()

    def has_valid_cache(self, document: Document) -> bool:
        cache = self.load(document)
        return cache is not None and cache.ordinals == document.ordinals

    def is_current(self, document: Document) -> bool:
        """True when every cache entry matches its page's name and text.

        Stricter than ``has_valid_cache``: a blob stored outside the document
        can go stale while its ordinal set still lines up, e.g. after page
        files are renamed.
        """
        cache = self.load(document)
        if cache is None or cache.ordinals != document.ordinals:
            return False
        for page in document.pages:
            entry = cache.entry(page.ordinal)
            if entry.display_name != page.display_name or entry.rich_text != page.rich_text:
                return False
        return True

    def build(self, document: Document, pages: Iterable[Page] | None = None) -> AnalysisCache:
        """Build and store the cache from pages whose text is already in memory."""
        cache = AnalysisCache.from_pages(document.pages if pages is None else pages)
        with self.lock(document):
            self.save(document, cache)
        logger.debug("Built text cache for %r with %d pages", document.name, len(cache.entries))
        return cache

    def rebuild(self, document: Document) -> AnalysisCache:
        """Regenerate the cache by reading every page. Recovery path only."""
        logger.info("Rebuilding text cache for %r from %d pages", document.name, len(document.pages))
        return self.build(document)

    @contextmanager
    def editing(self, document: Document) -> Iterator[AnalysisCache | None]:
        """Load the cache once, let the caller mutate it, then store it once.

        Yields None when there is no usable cache; nothing is stored then.
        """
        with self.lock(document):
            cache = self.load(document)
            yield cache
            if cache is not None:
                self.save(document, cache)

    def update_one(self, document: Document, ordinal: int, rich_text: RichText) -> None:
        with self.lock(document):
            cache = self.load(document)
            if cache is None:
                self.rebuild(document)
                return
            if not cache.update_one(ordinal, rich_text):
                logger.debug("No cache entry for page %d of %r", ordinal, document.name)
                return
            self.save(document, cache)

    def add_entries(self, document: Document, pages: Iterable[Page]) -> None:
        with self.lock(document):
            cache = self.load(document)
            if cache is None:
                self.rebuild(document)
                return
            cache.add_entries(PageTextEntry.from_page(page) for page in pages)
            self.save(document, cache)

    def remove_entry(self, document: Document, ordinal: int) -> None:
        with self.editing(document) as cache:
            if cache is not None:
                cache.remove_entry(ordinal)

    def swap_ordinals(self, document: Document, a: int, b: int) -> None:
        with self.editing(document) as cache:
            if cache is not None:
                cache.swap_ordinals(a, b)
