"""
config.py - Backport tables for the Tamzen build.

Three tables drive the backport:

  revisions  git trees searched for donor glyphs, in priority order
  moves      (filename regexp, replacement) pairs; each yields one extra
             candidate filename for the same revision, e.g. a glyph that
             lived in 8x17 before the font was resized to 8x16
  specs      (filename regexp, glyphs) pairs; every spec whose regexp
             matches a target filename contributes its glyphs

plus the family rename applied to output filenames and contents.

The defaults can be overridden by a JSON file (see load_config):

    {
      "revisions": ["v1.6", "v1.9"],
      "moves": [["8x16", "8x17"]],
      "specs": [["", "b h l"], ["10x20", ["O", "braceleft"]]],
      "rename": ["Tamsyn", "Tamzen"]
    }
"""

import json
import re
from dataclasses import dataclass
from pathlib import Path

from fontTools import agl


class ConfigError(ValueError):
    """Raised for malformed backport configuration."""


@dataclass(frozen=True)
class BackportConfig:
    revisions: tuple[str, ...]
    moves: tuple[tuple[re.Pattern, str], ...]
    specs: tuple[tuple[re.Pattern, frozenset[str]], ...]
    rename: tuple[str, str]


# Font files are looked up in these git trees, first match wins.
BACKPORT_REVISIONS = ["v1.6", "v1.6-derived", "v1.9"]

# For each font filename regexp, the replacement is substituted.
BACKPORT_MOVES = [
    ("8x16", "8x17"),
    ("7x13", "7x12"),
]

# For each font filename regexp, the listed glyphs are backported.
#
#   A B C D E F G H I J K L M N O P Q R S T U V W X Y Z   1 2 3 4 5
#   a b c d e f g h i j k l m n o p q r s t u v w x y z   6 7 8 9 0
#   { } [ ] ( ) < > $ * - + = / # _ % ^ @ \ & | ~ ? ' " ` ! , . ; :
BACKPORT_SPECS = [
    ("", """
      b           h       l m n   p q               y
    """),
    ("10x20", """
                                O   Q
    a b c d e   g h   j   l m n o p q r     u   w   y
    """),
    ("8x16", """
                                O   Q
    a b   d     g h       l m n   p q r     u   w   y
    """),
    ("8x15", """
      b   d       h       l m n   p q r     u   w   y
    """),
    ("7x14", """
      b           h     k l m n   p q   s           y
    """),
    ("7x13", """
      b           h       l m n   p q           w   y
    """),
]

FAMILY_RENAME = ("Tamsyn", "Tamzen")


def glyph_char(token: str) -> str:
    """
    Resolve a glyph token from the specs table to a single character.

    One-character tokens stand for themselves; longer tokens are Adobe
    Glyph List names such as 'braceleft' or 'uni00E9'.
    """
    if len(token) == 1:
        return token
    char = agl.toUnicode(token)
    if len(char) != 1:
        raise ConfigError(f"glyph {token!r} does not name a single character")
    return char


def _glyph_set(glyphs) -> frozenset[str]:
    tokens = glyphs.split() if isinstance(glyphs, str) else glyphs
    if not isinstance(tokens, (list, tuple)) or not all(isinstance(t, str) for t in tokens):
        raise ConfigError(f"glyph list must contain strings: {glyphs!r}")
    return frozenset(glyph_char(token) for token in tokens)


def _compile(pattern: str) -> re.Pattern:
    try:
        return re.compile(pattern)
    except (re.error, TypeError) as e:
        raise ConfigError(f"bad filename pattern {pattern!r}: {e}") from e


def _replacement(replacement) -> str:
    if not isinstance(replacement, str):
        raise ConfigError(f"move replacement must be a string: {replacement!r}")
    return replacement


def _pairs(name: str, value) -> list:
    if not isinstance(value, (list, tuple)) or not all(
        isinstance(pair, (list, tuple)) and len(pair) == 2 for pair in value
    ):
        raise ConfigError(f"{name} must be a list of [pattern, value] pairs")
    return list(value)


def make_config(
    revisions=BACKPORT_REVISIONS,
    moves=BACKPORT_MOVES,
    specs=BACKPORT_SPECS,
    rename=FAMILY_RENAME,
) -> BackportConfig:
    """Build a BackportConfig from plain lists, compiling patterns and glyph names."""
    if not isinstance(revisions, (list, tuple)) or not all(isinstance(r, str) for r in revisions):
        raise ConfigError(f"revisions must be a list of strings: {revisions!r}")
    if not isinstance(rename, (list, tuple)) or len(rename) != 2 or not all(
        isinstance(s, str) and s for s in rename
    ):
        raise ConfigError(f"rename must be a [match, replacement] pair: {rename!r}")

    return BackportConfig(
        revisions=tuple(revisions),
        moves=tuple(
            (_compile(pattern), _replacement(replacement))
            for pattern, replacement in _pairs("moves", moves)
        ),
        specs=tuple(
            (_compile(pattern), _glyph_set(glyphs))
            for pattern, glyphs in _pairs("specs", specs)
        ),
        rename=(rename[0], rename[1]),
    )


DEFAULT_CONFIG = make_config()


def load_config(path) -> BackportConfig:
    """
    Load backport tables from a JSON file.
    Keys that are absent fall back to the built-in Tamzen tables.
    """
    path = Path(path)
    try:
        with open(path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"{path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a JSON object")
    unknown = set(data) - {"revisions", "moves", "specs", "rename"}
    if unknown:
        raise ConfigError(f"{path}: unknown keys {sorted(unknown)}")

    return make_config(
        revisions=data.get("revisions", BACKPORT_REVISIONS),
        moves=data.get("moves", BACKPORT_MOVES),
        specs=data.get("specs", BACKPORT_SPECS),
        rename=data.get("rename", FAMILY_RENAME),
    )
