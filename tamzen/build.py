"""
build.py - Builds Tamzen from Tamsyn releases by backporting glyphs.

Build strategy:
  Target: the newest Tamsyn release tag (or --target); every *.bdf file in it
  Donors: older releases listed in the backport tables, searched in order;
          the first one that has a wanted glyph supplies it verbatim

Each target is saved under the Tamzen name with every "Tamsyn" in its
contents renamed. Glyphs that no donor has are reported and skipped; the
partially backported font is still written.

Usage:
    python -m tamzen.build \\
        --repo        path/to/tamsyn-font \\
        --output-dir  dist \\
        --powerline   --patcher "python bitmap-font-patcher/fontpatcher.py"

    python -m tamzen.build --github owner/tamsyn-font --github-token $GITHUB_TOKEN

Exit codes:
  0  All fonts written
  1  --strict and at least one font is missing backported glyphs
  2  Error (bad config, unreadable history, patcher failure)
"""

import argparse
import logging
import os
import shlex
import sys
from pathlib import Path

import requests

from .backport import BackportReport, FontRegistry, backport
from .bdf import BDFError, parse, write_text
from .config import DEFAULT_CONFIG, BackportConfig, ConfigError, load_config
from .history import GitHistory, GitHubHistory, HistoryError, newest_tag
from .powerline import DEFAULT_PATCHER, PatcherError, derive_all

log = logging.getLogger(__name__)


def rename(text: str, rule: tuple[str, str]) -> str:
    """Replace every occurrence of the family name."""
    match, replacement = rule
    return text.replace(match, replacement)


def rename_file(filename: str, rule: tuple[str, str]) -> str:
    """Replace the first occurrence of the family name."""
    match, replacement = rule
    return filename.replace(match, replacement, 1)


def build_font(
    target_file: str,
    target_text: str,
    resolve,
    output_dir,
    config: BackportConfig = DEFAULT_CONFIG,
    overwrite: bool = False,
) -> tuple[Path, BackportReport]:
    """
    Backport glyphs into one target font and save it under the new name.

    The target is parsed on its own rather than through `resolve`, so the
    shared donor fonts are never mutated.
    """
    font = parse(target_text)
    report = backport(font, target_file, resolve, config, overwrite)

    output = Path(output_dir) / rename_file(target_file, config.rename)
    output.parent.mkdir(parents=True, exist_ok=True)
    write_text(output, rename(font.to_text(), config.rename))
    return output, report


def build(
    history,
    output_dir,
    config: BackportConfig = DEFAULT_CONFIG,
    target: str | None = None,
    overwrite: bool = False,
) -> dict[str, BackportReport]:
    """
    Build every BDF font of the target revision.

    A font that fails to parse is logged and skipped; the rest are built.
    Returns the backport report of each font written, keyed by target file.
    """
    if target is None:
        target = newest_tag(history.tags())
    log.info(f"Target revision: {target}")

    registry = FontRegistry(history.lookup)
    reports = {}

    for target_file in history.files(target):
        if not target_file.endswith(".bdf"):
            continue
        target_text = history.lookup(target, target_file)
        if target_text is None:
            log.warning(f"{target_file}: vanished from {target}, skipping")
            continue

        try:
            output, report = build_font(
                target_file, target_text, registry, output_dir, config, overwrite
            )
        except BDFError as e:
            log.error(f"{target_file}: {e}")
            continue

        for char in report.unresolved:
            log.warning(f"{target_file}: glyph {char!r} ({ord(char)}) not found")
        if report.unresolved:
            log.warning(f"{target_file}: not all glyphs were backported; see errors above")

        log.info(
            f"  {target_file} -> {output.name}: "
            f"{len(report.resolved)} backported, {len(report.present)} already present"
        )
        reports[target_file] = report

    log.info(f"  {len(registry)} donor files looked up")
    return reports


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Build Tamzen fonts by backporting glyphs from older Tamsyn releases"
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--repo", default=".", help="Git checkout of the Tamsyn releases (default: .)"
    )
    source.add_argument(
        "--github", metavar="OWNER/REPO", help="Read the Tamsyn releases from GitHub instead"
    )
    parser.add_argument(
        "--github-token",
        default=os.environ.get("GITHUB_TOKEN", ""),
        help="GitHub personal access token (or set GITHUB_TOKEN env var)",
    )
    parser.add_argument("--target", help="Revision to build from (default: newest tag)")
    parser.add_argument(
        "--output-dir", default=".", help="Directory for the built fonts (default: .)"
    )
    parser.add_argument("--config", help="JSON file overriding the backport tables")
    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Replace glyphs the target already has with the donor's",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with 1 if any font is missing backported glyphs",
    )
    parser.add_argument(
        "--powerline", action="store_true", help="Also derive the Powerline variants"
    )
    parser.add_argument(
        "--patcher",
        default=shlex.join(DEFAULT_PATCHER),
        help="Bitmap font patcher command, reading BDF on stdin",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    try:
        config = load_config(args.config) if args.config else DEFAULT_CONFIG
    except (OSError, ConfigError) as e:
        log.error(f"Could not load config: {e}")
        return 2

    if args.github:
        history = GitHubHistory(args.github, args.github_token)
    else:
        history = GitHistory(args.repo)

    log.info("=== Tamzen Build ===")
    try:
        reports = build(history, args.output_dir, config, args.target, args.overwrite)
        if args.powerline:
            log.info("Deriving Powerline variants...")
            derive_all(args.output_dir, config.rename[1], shlex.split(args.patcher))
    except (HistoryError, PatcherError, requests.RequestException) as e:
        log.error(str(e))
        return 2

    partial = sorted(f for f, report in reports.items() if not report.complete)
    log.info(f"=== Done: {len(reports)} fonts written to {args.output_dir} ===")
    if partial:
        log.warning(f"{len(partial)} fonts partially backported: {', '.join(partial)}")
        if args.strict:
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
