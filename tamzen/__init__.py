"""Tamzen: Tamsyn bitmap fonts with glyphs backported from older releases."""

__version__ = "1.0.0"
