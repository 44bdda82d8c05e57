"""
bdf.py - Glyph Bitmap Distribution Format (BDF) model and codec.

A Font keeps its header lines, every glyph block and the ENDFONT trailer as
raw text, so serializing an unmodified font reproduces the input exactly.
Only the CHARS count and the glyph set are ever rewritten.

    font = parse(text)          # blank glyphs are pruned here
    font.glyphs[98] = donor     # transplant a glyph block verbatim
    text = font.to_text()       # CHARS follows len(font.glyphs)
"""

import logging
import re
from collections.abc import MutableMapping
from dataclasses import dataclass
from pathlib import Path

log = logging.getLogger(__name__)

# BDF is ASCII in practice; latin-1 maps every byte so files round-trip.
TEXT_ENCODING = "latin-1"

COUNT_PROPERTY = "CHARS"

# space and no-break space are meaningful even when their bitmaps are blank
PROTECTED_CODEPOINTS = frozenset({32, 160})

_GLYPH_START_RE = re.compile(r"^STARTCHAR\b", re.M)
_FONT_END_RE = re.compile(r"^ENDFONT\b", re.M)
_STARTCHAR_RE = re.compile(r"^STARTCHAR[ \t]*([^\r\n]*)", re.M)
_ENCODING_RE = re.compile(r"^ENCODING[ \t]+(-?\d+)", re.M)
_BBX_RE = re.compile(r"^BBX[ \t]+(-?\d+)[ \t]+(-?\d+)", re.M)
_BITMAP_RE = re.compile(r"^BITMAP[ \t]*\r?$", re.M)
_ENDCHAR_RE = re.compile(r"^ENDCHAR\b", re.M)
_ZERO_ROW_RE = re.compile(r"0+")
_PROPERTY_LINE_RE = re.compile(r"([ \t]*)(\S+)([ \t]*)([^\r\n]*)(\r\n|\n|\r)?")


class BDFError(ValueError):
    """Raised when text is not a well-formed BDF font."""


@dataclass(frozen=True)
class Glyph:
    """
    One STARTCHAR block, kept as raw text.

    The block runs from its STARTCHAR line up to (not including) the next
    STARTCHAR or ENDFONT line, so it always ends with its own line break.
    """

    text: str
    codepoint: int

    @classmethod
    def from_text(cls, text: str) -> "Glyph":
        name = _glyph_name(text)
        match = _ENCODING_RE.search(text)
        if match is None:
            raise BDFError(f"glyph {name!r} has no ENCODING line")
        codepoint = int(match.group(1))
        if codepoint < 0:
            raise BDFError(f"glyph {name!r} is unencoded (ENCODING {codepoint})")
        if _ENDCHAR_RE.search(text) is None:
            raise BDFError(f"glyph {name!r} ({codepoint}) has no ENDCHAR line")
        return cls(text, codepoint)

    @property
    def name(self) -> str:
        return _glyph_name(self.text)

    def bitmap(self) -> list[str]:
        """
        Return the hex rows of the bitmap section.

        The number of rows is the height declared by BBX; without a BBX line
        every row up to ENDCHAR is returned.
        """
        start = _BITMAP_RE.search(self.text)
        if start is None:
            return []
        end = _ENDCHAR_RE.search(self.text, start.end())
        section = self.text[start.end():end.start() if end else len(self.text)]
        rows = [row.strip() for row in section.splitlines() if row.strip()]

        bbx = _BBX_RE.search(self.text)
        if bbx is not None:
            rows = rows[:max(int(bbx.group(2)), 0)]
        return rows

    @property
    def blank(self) -> bool:
        """True when the bitmap has rows and every one of them is zero."""
        rows = self.bitmap()
        return bool(rows) and all(_ZERO_ROW_RE.fullmatch(row) for row in rows)


def _glyph_name(text: str) -> str:
    match = _STARTCHAR_RE.search(text)
    return match.group(1).strip() if match else ""


@dataclass
class HeaderLine:
    """A header line; `key` is None for blank lines."""

    key: str | None
    value: str
    text: str


class Properties(MutableMapping):
    """
    Ordered `key value` header properties backed by the header's own lines.

    Lines that repeat a key (COMMENT, typically) and blank lines stay where
    they are so the header serializes back unchanged. Lookups and updates
    address the first line carrying a key; new keys are appended.
    """

    def __init__(self, lines: list[HeaderLine] | None = None):
        self._lines = list(lines or [])

    @classmethod
    def from_text(cls, text: str) -> "Properties":
        lines = []
        for raw in text.splitlines(keepends=True):
            match = _PROPERTY_LINE_RE.fullmatch(raw)
            if match is None:
                lines.append(HeaderLine(None, "", raw))
            else:
                lines.append(HeaderLine(match.group(2), match.group(4), raw))
        return cls(lines)

    def to_text(self) -> str:
        return "".join(line.text for line in self._lines)

    def _first(self, key: str) -> HeaderLine | None:
        for line in self._lines:
            if line.key == key:
                return line
        return None

    def __getitem__(self, key: str) -> str:
        line = self._first(key)
        if line is None:
            raise KeyError(key)
        return line.value

    def __setitem__(self, key: str, value) -> None:
        value = str(value)
        line = self._first(key)
        if line is None:
            eol = "\n"
            if self._lines:
                last = self._lines[-1]
                eol = _line_break(last.text) or eol
                if not _line_break(last.text):
                    last.text += eol
            self._lines.append(HeaderLine(key, value, f"{key} {value}{eol}"))
        elif line.value != value:
            lead, key, sep, _, eol = _PROPERTY_LINE_RE.fullmatch(line.text).groups()
            line.value = value
            line.text = f"{lead}{key}{sep or ' '}{value}{eol or ''}"

    def __delitem__(self, key: str) -> None:
        if self._first(key) is None:
            raise KeyError(key)
        self._lines = [line for line in self._lines if line.key != key]

    def __iter__(self):
        return iter(dict.fromkeys(line.key for line in self._lines if line.key is not None))

    def __len__(self) -> int:
        return len({line.key for line in self._lines if line.key is not None})

    def __repr__(self) -> str:
        return f"Properties({dict(self)!r})"


def _line_break(text: str) -> str:
    return text[len(text.rstrip("\r\n")):]


class Font:
    """
    A parsed BDF font: header properties, glyphs by codepoint, trailer.

    `glyphs` iterates in the order glyphs were first seen in the source text;
    transplanted glyphs are appended after them.
    """

    def __init__(self, properties: Properties, glyphs: dict[int, Glyph], trailer: str):
        self.properties = properties
        self.glyphs = glyphs
        self.trailer = trailer

    def to_text(self) -> str:
        self.properties[COUNT_PROPERTY] = len(self.glyphs)
        return "".join([
            self.properties.to_text(),
            *(glyph.text for glyph in self.glyphs.values()),
            self.trailer,
        ])

    __str__ = to_text

    def __repr__(self) -> str:
        return f"<Font {self.properties.get('FONT', '?')} ({len(self.glyphs)} glyphs)>"


def is_prunable(glyph: Glyph) -> bool:
    return glyph.blank and glyph.codepoint not in PROTECTED_CODEPOINTS


def prune(font: Font) -> list[int]:
    """Delete blank glyphs, except space and no-break space. Returns their codepoints."""
    pruned = [codepoint for codepoint, glyph in font.glyphs.items() if is_prunable(glyph)]
    for codepoint in pruned:
        del font.glyphs[codepoint]
    return pruned


def parse(text: str) -> Font:
    """
    Parse BDF text into a Font and prune its blank glyphs.

    Raises BDFError when the ENDFONT marker is missing or a glyph block has
    no usable ENCODING or no ENDCHAR. A font without glyphs is valid.
    """
    end = _FONT_END_RE.search(text)
    if end is None:
        raise BDFError("no ENDFONT line")

    bounds = [m.start() for m in _GLYPH_START_RE.finditer(text, 0, end.start())]
    bounds.append(end.start())

    glyphs: dict[int, Glyph] = {}
    for start, stop in zip(bounds, bounds[1:]):
        glyph = Glyph.from_text(text[start:stop])
        if glyph.codepoint in glyphs:
            log.warning(
                f"Duplicate ENCODING {glyph.codepoint}: "
                f"{glyph.name!r} replaces {glyphs[glyph.codepoint].name!r}"
            )
        glyphs[glyph.codepoint] = glyph

    font = Font(Properties.from_text(text[:bounds[0]]), glyphs, text[end.start():])
    prune(font)
    return font


def read_font(path) -> Font:
    return parse(read_text(path))


def read_text(path) -> str:
    return Path(path).read_bytes().decode(TEXT_ENCODING)


def write_text(path, text: str) -> None:
    Path(path).write_bytes(text.encode(TEXT_ENCODING))
