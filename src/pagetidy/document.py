"""Host-side document and page records the engine reads and writes back to."""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from .rich_text import RichText


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(eq=False)
class Page:
    """One page of a document, ordered by its 1-based ordinal."""

    ordinal: int
    rich_text: RichText = field(default_factory=RichText)
    display_name: str | None = None
    last_modified: datetime = field(default_factory=_now)

    def set_text(self, rich_text: RichText) -> None:
        self.rich_text = rich_text
        self.last_modified = _now()

    @property
    def plain_text(self) -> str:
        return self.rich_text.plain_text


@dataclass(eq=False)
class Document:
    """A document record owning its pages and the opaque text cache blob."""

    name: str
    pages: list[Page] = field(default_factory=list)
    text_cache: bytes | None = None

    def sorted_pages(self) -> list[Page]:
        return sorted(self.pages, key=lambda page: page.ordinal)

    def page(self, ordinal: int) -> Page | None:
        for page in self.pages:
            if page.ordinal == ordinal:
                return page
        return None

    @property
    def ordinals(self) -> set[int]:
        return {page.ordinal for page in self.pages}
