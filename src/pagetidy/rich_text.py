"""Rich text value type: styled runs with a plain-text projection."""

import re
from dataclasses import dataclass, field
from typing import Any, Iterable

from pydantic import BaseModel, Field, TypeAdapter

BOLD = "bold"
ITALIC = "italic"
UNDERLINE = "underline"
STRIKETHROUGH = "strikethrough"

# ***both***, **bold**, *italic*, the way OCR output marks emphasis
_MARKUP_PATTERN = re.compile(
    r"\*\*\*(?P<both>[^*\n]+?)\*\*\*"
    r"|\*\*(?P<bold>[^*\n]+?)\*\*"
    r"|\*(?P<italic>[^*\s](?:[^*\n]*?[^*\s])?)\*"
)


@dataclass(frozen=True)
class Run:
    """A stretch of text sharing one set of style flags."""

    text: str
    styles: frozenset[str] = field(default_factory=frozenset)


class RunRecord(BaseModel):
    """Stored form of a ``Run``."""

    text: str
    styles: list[str] = Field(default_factory=list)


_RUNS_ADAPTER = TypeAdapter(list[RunRecord])


class RichText:
    """Immutable sequence of styled runs.

    Offsets used by every method are offsets into ``plain_text``, so a span
    found in the plain-text projection maps directly onto the runs.
    """

    __slots__ = ("_runs", "_plain")

    def __init__(self, runs: Iterable[Run] = ()):
        merged: list[Run] = []
        for run in runs:
            if not run.text:
                continue
            if merged and merged[-1].styles == run.styles:
                merged[-1] = Run(merged[-1].text + run.text, run.styles)
            else:
                merged.append(run)
        self._runs = tuple(merged)
        self._plain = "".join(run.text for run in merged)

    @classmethod
    def from_plain(cls, text: str, styles: Iterable[str] = ()) -> "RichText":
        return cls([Run(text, frozenset(styles))])

    @classmethod
    def from_markdown(cls, text: str) -> "RichText":
        """Decode ``**bold**`` and ``*italic*`` markers into styled runs."""
        runs = []
        pos = 0
        for match in _MARKUP_PATTERN.finditer(text):
            runs.append(Run(text[pos : match.start()]))
            if match.group("both") is not None:
                runs.append(Run(match.group("both"), frozenset({BOLD, ITALIC})))
            elif match.group("bold") is not None:
                runs.append(Run(match.group("bold"), frozenset({BOLD})))
            else:
                runs.append(Run(match.group("italic"), frozenset({ITALIC})))
            pos = match.end()
        runs.append(Run(text[pos:]))
        return cls(runs)

    @property
    def runs(self) -> tuple[Run, ...]:
        return self._runs

    @property
    def plain_text(self) -> str:
        return self._plain

    def __len__(self) -> int:
        return len(self._plain)

    def __bool__(self) -> bool:
        return bool(self._plain)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RichText):
            return NotImplemented
        return self._runs == other._runs

    def __hash__(self) -> int:
        return hash(self._runs)

    def __add__(self, other: "RichText") -> "RichText":
        return RichText(self._runs + other._runs)

    def __repr__(self) -> str:
        return f"RichText({list(self._runs)!r})"

    def styles_at(self, offset: int) -> frozenset[str]:
        """Return the style flags of the character at ``offset``."""
        if not 0 <= offset < len(self._plain):
            raise IndexError(offset)
        pos = 0
        for run in self._runs:
            pos += len(run.text)
            if offset < pos:
                return run.styles
        raise IndexError(offset)

    def delete(self, start: int, end: int) -> "RichText":
        """Return a copy with the plain-text span [start, end) removed.

        Styles on all remaining characters are unchanged.
        """
        if not 0 <= start <= end <= len(self._plain):
            raise IndexError(f"span {start}:{end} outside 0:{len(self._plain)}")
        if start == end:
            return self

        kept = []
        pos = 0
        for run in self._runs:
            length = len(run.text)
            left = run.text[: max(0, min(length, start - pos))]
            right = run.text[max(0, min(length, end - pos)) :]
            kept.append(Run(left + right, run.styles))
            pos += length
        return RichText(kept)

    def to_markdown(self) -> str:
        """Encode as Markdown emphasis, the inverse of ``from_markdown``."""
        parts = []
        for run in self._runs:
            if BOLD in run.styles and ITALIC in run.styles:
                marker = "***"
            elif BOLD in run.styles:
                marker = "**"
            elif ITALIC in run.styles:
                marker = "*"
            else:
                parts.append(run.text)
                continue
            # Markers cannot span line breaks
            parts.append("\n".join(f"{marker}{seg}{marker}" if seg.strip() else seg for seg in run.text.split("\n")))
        return "".join(parts)

    def to_records(self) -> list[RunRecord]:
        return [RunRecord(text=run.text, styles=sorted(run.styles)) for run in self._runs]

    @classmethod
    def from_records(cls, records: Iterable[RunRecord]) -> "RichText":
        return cls(Run(record.text, frozenset(record.styles)) for record in records)

    def to_json(self) -> list[dict[str, Any]]:
        return [record.model_dump() for record in self.to_records()]

    @classmethod
    def from_json(cls, data: Any) -> "RichText":
        """Decode the list form produced by ``to_json``.

        Raises:
            pydantic.ValidationError: If ``data`` is not a list of run objects
                (a ``ValueError`` subclass).
        """
        return cls.from_records(_RUNS_ADAPTER.validate_python(data))
