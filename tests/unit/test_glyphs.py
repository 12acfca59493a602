"""Tests for glyph discovery."""

from purge_glyphs.config.options import ContentSource
from purge_glyphs.core.glyphs import (
    collect_glyphs,
    find_css_glyphs,
    glyphs_from_content_source,
    glyphs_from_content_value,
)
from purge_glyphs.core.state import FailureEvent, FailureLog


def test_content_value_literal_glyphs():
    """Test that quoted literal characters become glyphs."""
    assert glyphs_from_content_value('"ab"') == ["a", "b"]


def test_content_value_escapes_and_literals():
    """Test that escapes are decoded and merged with literal characters."""
    glyphs = glyphs_from_content_value('"\\f101x\\41"')
    assert set(glyphs) == {"\uf101", "x", "A"}


def test_content_value_duplicates_removed():
    """Test that repeated characters are reported once."""
    assert glyphs_from_content_value("'aaa'") == ["a"]


def test_content_value_keeps_whitespace():
    """Test that whitespace inside the quotes counts as a glyph."""
    assert " " in glyphs_from_content_value('"a b"')


def test_content_value_out_of_range_escape_dropped():
    """Test that escapes beyond U+10FFFF are skipped."""
    assert glyphs_from_content_value('"\\ffffff"') == []


def test_content_value_astral_character():
    """Test that a character outside the BMP is one glyph."""
    assert glyphs_from_content_value('"\U0001F600"') == ["\U0001F600"]


def test_find_css_glyphs_union():
    """Test that glyphs of several content values are merged."""
    assert set(find_css_glyphs(['"ab"', '"bc"'])) == {"a", "b", "c"}


def test_unescaped_scan_bounds(tmp_path):
    """Test unescaped scan with character bounds."""
    page = tmp_path / "index.html"
    page.write_text("Hello World!", encoding="utf-8")

    source = ContentSource([str(page)], min="a", max="z")
    assert glyphs_from_content_source(source) == set("elord")

    page.write_text("<p>hello world</p>", encoding="utf-8")
    assert glyphs_from_content_source(source) == set("helowrdp")


def test_unescaped_scan_skips_control_characters(tmp_path):
    """Test that code points below 0x20 are never returned."""
    page = tmp_path / "page.txt"
    page.write_text("a\tb\nc", encoding="utf-8")

    source = ContentSource([str(page)], min=0, max=0x7F)
    glyphs = glyphs_from_content_source(source)
    assert glyphs == {"a", "b", "c"}
    assert all(ord(glyph) >= 0x20 for glyph in glyphs)


def test_html_escaped_scan(tmp_path):
    """Test hexadecimal and decimal character references."""
    page = tmp_path / "icons.html"
    page.write_text("<i>&#xf101;</i><b>&#65;</b> plain text", encoding="utf-8")

    source = ContentSource([str(page)], scan_type="html_escaped")
    assert glyphs_from_content_source(source) == {"\uf101", "A"}


def test_html_escaped_scan_respects_bounds(tmp_path):
    """Test that references outside the bounds are dropped."""
    page = tmp_path / "icons.html"
    page.write_text("&#xf101; &#65;", encoding="utf-8")

    source = ContentSource([str(page)], min=0xF000, max=0xF1FF, scan_type="html_escaped")
    assert glyphs_from_content_source(source) == {"\uf101"}


def test_unknown_scan_type_is_unescaped(tmp_path):
    """Test that an unknown scan type falls back to plain scanning."""
    page = tmp_path / "page.txt"
    page.write_text("xy", encoding="utf-8")

    source = ContentSource([str(page)], min="a", scan_type="bogus")
    assert glyphs_from_content_source(source) == {"x", "y"}


def test_recursive_glob(tmp_path):
    """Test that ** patterns match nested files."""
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    (nested / "deep.html").write_text("q", encoding="utf-8")
    (tmp_path / "top.html").write_text("r", encoding="utf-8")

    source = ContentSource([str(tmp_path / "**" / "*.html")], min="a", max="z")
    assert glyphs_from_content_source(source) == {"q", "r"}


def test_unreadable_file_is_recorded(tmp_path, monkeypatch):
    """Test that read failures are recorded and scanning continues."""
    good = tmp_path / "good.txt"
    bad = tmp_path / "bad.txt"
    good.write_text("g", encoding="utf-8")
    bad.write_text("b", encoding="utf-8")

    original = type(bad).read_text

    def read_text(self, *args, **kwargs):
        if self.name == "bad.txt":
            raise PermissionError("denied")
        return original(self, *args, **kwargs)

    monkeypatch.setattr(type(bad), "read_text", read_text)

    failures = FailureLog()
    source = ContentSource([str(tmp_path / "*.txt")], min="a", max="z")
    assert glyphs_from_content_source(source, failures) == {"g"}
    assert failures.count(FailureEvent.CONTENT_READ_FAILED) == 1


def test_collect_glyphs_merges_sources(tmp_path):
    """Test that CSS and content glyphs form one set."""
    page = tmp_path / "page.txt"
    page.write_text("xyz", encoding="utf-8")

    glyphs = collect_glyphs(['"\\41"'], [ContentSource([str(page)], min="a", max="z")])
    assert glyphs == frozenset({"A", "x", "y", "z"})
