"""
backport.py - Back-fills glyphs of a target font from older releases.

Donor fonts are looked up by (revision, filename). Revisions are searched in
configured priority order and, within a revision, the target filename first
and then its configured name substitutions. The first donor that has the
glyph wins; its STARTCHAR block is transplanted verbatim, metrics included.

The selector performs no I/O and does not log: missing donors end up in the
report and the caller decides how loudly to complain. The registry logs a
donor file that fails to parse once and then treats it as absent.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, NamedTuple

from .bdf import BDFError, Font, Glyph, parse
from .config import DEFAULT_CONFIG, BackportConfig

log = logging.getLogger(__name__)

# (revision, filename) -> raw BDF text, or None when the file is absent
Lookup = Callable[[str, str], str | None]
# (revision, filename) -> parsed Font, or None when the file is absent
Resolver = Callable[[str, str], Font | None]


class BackportPlan(NamedTuple):
    filenames: list[str]
    glyphs: list[str]


@dataclass
class BackportReport:
    resolved: list[str] = field(default_factory=list)
    unresolved: list[str] = field(default_factory=list)
    present: list[str] = field(default_factory=list)
    donors: dict[str, tuple[str, str]] = field(default_factory=dict)

    @property
    def complete(self) -> bool:
        return not self.unresolved


class FontRegistry:
    """
    Read-through cache of parsed donor fonts keyed by (revision, filename).

    Absent and unparsable files are cached as None, so `lookup` runs at most
    once per key. Fonts handed out are shared; callers must treat them as read-only.
    """

    def __init__(self, lookup: Lookup):
        self._lookup = lookup
        self._fonts: dict[tuple[str, str], Font | None] = {}

    def __call__(self, revision: str, filename: str) -> Font | None:
        key = (revision, filename)
        if key not in self._fonts:
            self._fonts[key] = self._load(revision, filename)
        return self._fonts[key]

    def _load(self, revision: str, filename: str) -> Font | None:
        text = self._lookup(revision, filename)
        if text is None:
            return None
        try:
            return parse(text)
        except BDFError as e:
            log.error(f"{revision}:{filename}: {e}; ignoring this donor")
            return None

    def __len__(self) -> int:
        return len(self._fonts)


def plan(filename: str, config: BackportConfig = DEFAULT_CONFIG) -> BackportPlan:
    """
    Compute candidate donor filenames and required glyphs for a target file.

    Every move contributes one candidate (its first match substituted);
    every specs entry whose pattern matches the filename contributes its glyphs.
    """
    filenames = [filename]
    for pattern, replacement in config.moves:
        filenames.append(pattern.sub(replacement, filename, count=1))

    glyphs = set()
    for pattern, chars in config.specs:
        if pattern.search(filename):
            glyphs.update(chars)

    return BackportPlan(list(dict.fromkeys(filenames)), sorted(glyphs))


def find_donor(
    codepoint: int,
    revisions,
    filenames,
    resolve: Resolver,
) -> tuple[tuple[str, str], Glyph] | None:
    """Return ((revision, filename), glyph) of the first source having codepoint."""
    for revision in revisions:
        for filename in filenames:
            source = resolve(revision, filename)
            if source is not None and codepoint in source.glyphs:
                return (revision, filename), source.glyphs[codepoint]
    return None


def backport(
    font: Font,
    filename: str,
    resolve: Resolver,
    config: BackportConfig = DEFAULT_CONFIG,
    overwrite: bool = False,
) -> BackportReport:
    """
    Transplant the glyphs planned for `filename` into `font`, in place.

    Glyphs the target already has are left alone and reported as present,
    unless `overwrite` is set, in which case a donor glyph replaces them
    (a glyph with no donor then stays as it was). Glyphs with no donor are
    reported as unresolved; that never stops the remaining glyphs.
    """
    backport_plan = plan(filename, config)
    report = BackportReport()

    for char in backport_plan.glyphs:
        codepoint = ord(char)
        if codepoint in font.glyphs and not overwrite:
            report.present.append(char)
            continue

        donor = find_donor(codepoint, config.revisions, backport_plan.filenames, resolve)
        if donor is not None:
            source, glyph = donor
            font.glyphs[codepoint] = glyph
            report.resolved.append(char)
            report.donors[char] = source
        elif codepoint in font.glyphs:
            report.present.append(char)
        else:
            report.unresolved.append(char)

    return report
