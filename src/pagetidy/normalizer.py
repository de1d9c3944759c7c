"""Line normalization and page-number token handling for artifact matching."""

import re
from dataclasses import dataclass

# OCR output mixes typographic dash and quote glyphs with their ASCII forms
_GLYPH_MAP = str.maketrans(
    {
        "—": "-",  # em dash
        "–": "-",  # en dash
        "‒": "-",  # figure dash
        "−": "-",  # minus sign
        "“": '"',
        "”": '"',
        "‘": "'",
        "’": "'",
    }
)

MAX_NUMERIC_TOKEN = 5

# Wrapper patterns, matched against an already normalized line
PAGE_PREFIX_PATTERN = re.compile(r"^page (\S+?)\.?$")
P_ABBREV_PATTERN = re.compile(r"^p[.\s]*([^.\s]+)[.\s]*$")
DASHED_PATTERN = re.compile(r"^-\s*(\S+)\s*-$")

# The same breaks str.splitlines() honours, \r\n counted as one
LINE_BREAK_PATTERN = re.compile(r"\r\n|[\n\r\x0b\x0c\x1c-\x1e\x85\u2028\u2029]")


@dataclass(frozen=True)
class LineComponents:
    """A line split into its header text and an optional edge numeral."""

    core: str
    numeral: int | None
    numeral_text: str | None
    normalized: str


def normalize(line: str) -> str:
    """Canonicalize a line for comparison across pages.

    Case-folds, maps dash and curly-quote variants to ASCII, and collapses
    whitespace runs to single spaces. Idempotent.
    """
    return " ".join(line.casefold().translate(_GLYPH_MAP).split())


def parse_numeric_token(token: str) -> int | None:
    """Parse a page-number sized token such as "42" or "1,234".

    Returns None for anything longer than five characters, anything other than
    digits and commas, or misplaced commas.
    """
    if not token or len(token) > MAX_NUMERIC_TOKEN:
        return None
    if not all(ch.isdecimal() or ch == "," for ch in token):
        return None
    if token.startswith(",") or token.endswith(",") or ",," in token:
        return None
    digits = token.replace(",", "")
    if not digits:
        return None
    return int(digits)


def decompose(line: str) -> LineComponents:
    """Split a line into core text and at most one edge numeral.

    The trailing token is checked before the leading one, so interior numerals
    stay in the core: "chapter 1 of 3 42" -> core "chapter 1 of 3", numeral 42.
    """
    normalized = normalize(line)
    tokens = normalized.split(" ") if normalized else []

    if len(tokens) > 1:
        for index in (-1, 0):
            value = parse_numeric_token(tokens[index])
            if value is not None:
                rest = tokens[:-1] if index == -1 else tokens[1:]
                return LineComponents(" ".join(rest), value, tokens[index], normalized)
    elif len(tokens) == 1:
        value = parse_numeric_token(tokens[0])
        if value is not None:
            return LineComponents("", value, tokens[0], normalized)

    return LineComponents(normalized, None, None, normalized)


def extract_page_number(line: str) -> tuple[int, str] | None:
    """Match a standalone page-number line.

    Recognizes bare numerals plus "page 42", "p. 42" and "- 42 -" wrappers.
    Returns the numeral value and its text, or None.
    """
    normalized = normalize(line)
    if not normalized:
        return None

    value = parse_numeric_token(normalized)
    if value is not None:
        return value, normalized

    for pattern in (PAGE_PREFIX_PATTERN, P_ABBREV_PATTERN, DASHED_PATTERN):
        match = pattern.match(normalized)
        if match:
            text = match.group(1)
            value = parse_numeric_token(text)
            if value is not None:
                return value, text

    return None


def line_spans(text: str) -> list[tuple[int, int]]:
    """Return the [start, end) offsets of every line in ``text``.

    Lines are separated by any ``LINE_BREAK_PATTERN`` break, which is excluded
    from the spans. Text ending in a break yields a final empty line.
    """
    spans = []
    pos = 0
    for match in LINE_BREAK_PATTERN.finditer(text):
        spans.append((pos, match.start()))
        pos = match.end()
    spans.append((pos, len(text)))
    return spans


def split_lines(text: str) -> list[str]:
    return [text[start:end] for start, end in line_spans(text)]


def non_empty_lines(text: str) -> list[str]:
    """Return the stripped, non-blank lines of a plain-text page."""
    return [line.strip() for line in split_lines(text) if line.strip()]
