"""Shared pytest fixtures."""

from pathlib import Path

import pytest
from fontTools.fontBuilder import FontBuilder
from fontTools.pens.t2CharStringPen import T2CharStringPen
from fontTools.pens.ttGlyphPen import TTGlyphPen

from purge_glyphs.config.options import resolve_options

ADVANCE = 600
LSB = 100


def _draw_box(pen):
    pen.moveTo((LSB, 0))
    pen.lineTo((LSB, 700))
    pen.lineTo((500, 700))
    pen.lineTo((500, 0))
    pen.closePath()


def build_font(path: Path, chars: str, *, cff: bool = False, family: str = "Test Sans") -> Path:
    """Write a small font with one box glyph per character."""
    glyph_order = [".notdef"] + [f"uni{ord(c):04X}" for c in chars]
    cmap = {ord(c): f"uni{ord(c):04X}" for c in chars}

    fb = FontBuilder(1000, isTTF=not cff)
    fb.setupGlyphOrder(glyph_order)
    fb.setupCharacterMap(cmap)

    if cff:
        charstrings = {}
        for name in glyph_order:
            pen = T2CharStringPen(ADVANCE, None)
            _draw_box(pen)
            charstrings[name] = pen.getCharString()
        fb.setupCFF(family.replace(" ", ""), {"FullName": family}, charstrings, {})
    else:
        glyphs = {}
        for name in glyph_order:
            pen = TTGlyphPen(None)
            _draw_box(pen)
            glyphs[name] = pen.glyph()
        fb.setupGlyf(glyphs)

    fb.setupHorizontalMetrics({name: (ADVANCE, LSB) for name in glyph_order})
    fb.setupHorizontalHeader(ascent=800, descent=-200)
    fb.setupNameTable({"familyName": family, "styleName": "Regular"})
    fb.setupOS2(sTypoAscender=800, sTypoDescender=-200, usWinAscent=800, usWinDescent=200)
    fb.setupPost()

    path.parent.mkdir(parents=True, exist_ok=True)
    fb.save(str(path))
    return path


@pytest.fixture
def temp_font_dir(tmp_path):
    """Create a temporary directory for font testing."""
    font_dir = tmp_path / "src-fonts"
    font_dir.mkdir()
    return font_dir


@pytest.fixture
def make_font(temp_font_dir):
    """Factory writing a test font into temp_font_dir."""

    def _make(name: str, chars: str = "ABCDEFGHIJ", **kwargs) -> Path:
        return build_font(temp_font_dir / name, chars, **kwargs)

    return _make


@pytest.fixture
def stylesheet_path(tmp_path):
    """Path of the stylesheet under test; fonts resolve relative to it."""
    return tmp_path / "styles.css"


@pytest.fixture
def resolved(stylesheet_path):
    """Factory for options resolved against the test stylesheet."""

    def _resolve(**options):
        return resolve_options(options, from_path=stylesheet_path)

    return _resolve


@pytest.fixture
def font_at():
    """Factory writing a test font at an arbitrary path."""
    return build_font
