"""
powerline.py - Derives Powerline variants of built fonts.

Each font is renamed (Tamzen -> TamzenForPowerline), switched to the
ISO10646 charset so the Powerline symbols have codepoints, and piped through
an external bitmap font patcher, which reads BDF on stdin and writes the
patched BDF to stdout. The patched font goes through parse() again, so its
blank glyphs are pruned and CHARS is recounted.
"""

import logging
import re
import subprocess
import sys
from pathlib import Path

from .bdf import TEXT_ENCODING, parse, read_text, write_text

log = logging.getLogger(__name__)

SUFFIX = "ForPowerline"
DEFAULT_PATCHER = (sys.executable, "bitmap-font-patcher/fontpatcher.py")


class PatcherError(RuntimeError):
    """Raised when the patcher command fails."""


def patch(text: str, command=DEFAULT_PATCHER) -> str:
    """Run `command` with `text` on stdin and return its stdout."""
    try:
        result = subprocess.run(
            list(command),
            input=text.encode(TEXT_ENCODING),
            capture_output=True,
        )
    except OSError as e:
        raise PatcherError(f"Could not run {' '.join(command)}: {e}") from e
    if result.returncode != 0:
        stderr = result.stderr.decode(errors="replace").strip()
        raise PatcherError(f"{' '.join(command)} exited with {result.returncode}: {stderr}")
    return result.stdout.decode(TEXT_ENCODING)


def derive(source, family: str, command=DEFAULT_PATCHER) -> Path:
    """Write the Powerline variant of `source` next to it and return its path."""
    source = Path(source)
    pattern = re.compile(re.escape(family))
    replacement = rf"\g<0>{SUFFIX}"

    target = source.with_name(pattern.sub(replacement, source.name, count=1))
    text = pattern.sub(replacement, read_text(source)).replace("ISO8859", "ISO10646")

    font = parse(patch(text, command))
    write_text(target, font.to_text())
    log.info(f"  {source.name} -> {target.name} ({len(font.glyphs)} glyphs)")
    return target


def derive_all(directory, family: str, command=DEFAULT_PATCHER) -> list[Path]:
    sources = sorted(
        path for path in Path(directory).glob("*.bdf")
        if SUFFIX not in path.name and family in path.name
    )
    return [derive(source, family, command) for source in sources]
