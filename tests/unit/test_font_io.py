"""Tests for the font engine adapters."""

import struct

import pytest
from fontTools.ttLib import TTFont

from purge_glyphs.config.formats import FontFormat
from purge_glyphs.core.eot import EOT_MAGIC, EOT_VERSION, FIXED_HEADER
from purge_glyphs.core.errors import FontEngineError
from purge_glyphs.core.font_io import (
    convert_from_truetype,
    convert_to_truetype,
    get_code_points,
    subset_truetype,
)


def test_get_code_points(make_font):
    """Test inventory of a TrueType font, sorted and without .notdef."""
    font = make_font("inv.ttf", "CAB")
    assert get_code_points(font) == [ord("A"), ord("B"), ord("C")]


def test_get_code_points_invalid_file(tmp_path):
    """Test that unreadable fonts raise FontEngineError."""
    bogus = tmp_path / "bogus.ttf"
    bogus.write_bytes(b"not a font")
    with pytest.raises(FontEngineError):
        get_code_points(bogus)


def test_subset_truetype(make_font, tmp_path):
    """Test that subsetting keeps only the requested glyphs."""
    src = make_font("full.ttf", "ABCDEF")
    dest = tmp_path / "out.ttf"

    subset_truetype(src, dest, ["B", "D"])

    assert get_code_points(dest) == [ord("B"), ord("D")]


def test_subset_is_deterministic(make_font, tmp_path):
    """Test that subsetting the same input twice gives identical bytes."""
    src = make_font("full.ttf", "ABCDEF")
    first, second = tmp_path / "one.ttf", tmp_path / "two.ttf"

    subset_truetype(src, first, ["A"])
    subset_truetype(src, second, ["A"])

    assert first.read_bytes() == second.read_bytes()


def test_subset_failure_removes_output(tmp_path):
    """Test that a failed subset leaves no output behind."""
    src = tmp_path / "broken.ttf"
    src.write_bytes(b"\x00\x01\x00\x00garbage")
    dest = tmp_path / "out.ttf"

    with pytest.raises(FontEngineError):
        subset_truetype(src, dest, ["A"])
    assert not dest.exists()


def test_otf_to_truetype(make_font, tmp_path):
    """Test converting CFF outlines to TrueType."""
    src = make_font("cff.otf", "XYZ", cff=True)
    dest = tmp_path / "cff.otf.ttf"

    convert_to_truetype(src, dest, FontFormat.OPENTYPE)

    font = TTFont(dest)
    assert "glyf" in font
    assert "CFF " not in font
    font.close()
    assert get_code_points(dest) == [ord("X"), ord("Y"), ord("Z")]


@pytest.mark.parametrize("font_format,flavor", [(FontFormat.WOFF, "woff"), (FontFormat.WOFF2, "woff2")])
def test_web_flavors(make_font, tmp_path, font_format, flavor):
    """Test WOFF and WOFF2 output."""
    src = make_font("web.ttf", "AB")
    dest = tmp_path / f"web.{flavor}"

    convert_from_truetype(src, dest, font_format)

    font = TTFont(dest)
    assert font.flavor == flavor
    font.close()


def test_eot_header(make_font, tmp_path):
    """Test the fixed EOT header fields."""
    src = make_font("legacy.ttf", "AB")
    dest = tmp_path / "legacy.eot"

    convert_from_truetype(src, dest, FontFormat.EMBEDDED_OPENTYPE)

    data = dest.read_bytes()
    ttf_data = src.read_bytes()
    fields = FIXED_HEADER.unpack_from(data)
    assert fields[0] == len(data)
    assert fields[1] == len(ttf_data)
    assert fields[2] == EOT_VERSION
    assert fields[9] == EOT_MAGIC
    assert data.endswith(ttf_data)

    family_size = struct.unpack_from("<H", data, FIXED_HEADER.size)[0]
    family = data[FIXED_HEADER.size + 2 : FIXED_HEADER.size + 2 + family_size].decode("utf-16-le")
    assert family == "Test Sans"


def test_svg_round_trip_keeps_code_points(make_font, tmp_path):
    """Test TTF to SVG and back preserves the character map."""
    src = make_font("vector.ttf", "PQR")
    svg = tmp_path / "vector.svg"
    back = tmp_path / "vector.svg.ttf"

    convert_from_truetype(src, svg, FontFormat.SVG)
    assert "<glyph" in svg.read_text(encoding="utf-8")

    convert_to_truetype(svg, back, FontFormat.SVG)
    assert get_code_points(back) == [ord("P"), ord("Q"), ord("R")]


def test_cannot_load_woff_as_source(make_font, tmp_path):
    """Test that only truetype, opentype and svg sources are converted."""
    src = make_font("a.ttf", "A")
    with pytest.raises(FontEngineError):
        convert_to_truetype(src, tmp_path / "a.woff.ttf", FontFormat.WOFF)
