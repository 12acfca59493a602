"""Tests for option handling."""

import json
from pathlib import Path

import pytest

from purge_glyphs.config.formats import FORMAT_LOAD_ORDER, FORMAT_OUTPUT_ORDER, FontFormat
from purge_glyphs.config.options import (
    CacheBusting,
    ContentSource,
    PurgeOptions,
    ScanType,
    ZeroMatchPolicy,
    load_config_file,
    resolve_options,
)
from purge_glyphs.core.errors import ConfigError


def test_defaults():
    """Test default option values."""
    options = resolve_options(None, from_path="site/css/main.css")
    assert options.ignore_urls is True
    assert options.zero_match_policy is ZeroMatchPolicy.PRESERVE
    assert options.cache_busting is CacheBusting.FILE
    assert options.relative_to == "fonts"
    assert options.absolute_to == Path("site/css/fonts")


def test_output_dir_relative_to_output_css():
    """Test that the output stylesheet anchors the font directory."""
    options = resolve_options({"to": "assets/fonts"}, from_path="src/main.css", to_path="dist/main.css")
    assert options.relative_to == "assets/fonts"
    assert options.absolute_to == Path("dist/assets/fonts")


def test_absolute_output_dir(tmp_path):
    """Test that an absolute output directory is used as-is."""
    options = resolve_options({"to": str(tmp_path)}, from_path="main.css")
    assert options.absolute_to == tmp_path


def test_cache_busting_parse():
    """Test that unknown cache-busting values disable busting."""
    assert CacheBusting.parse(None) is CacheBusting.FILE
    assert CacheBusting.parse("QUERY") is CacheBusting.QUERY
    assert CacheBusting.parse("hash") is CacheBusting.NONE
    assert CacheBusting.parse(False) is CacheBusting.NONE


def test_ignore_on_zero_match_turns_preserve_off():
    """Test that the ignore flag wins over the preserve flag."""
    options = PurgeOptions(
        ignore_all_on_zero_matching_glyphs=True,
        preserve_all_on_zero_matching_glyphs=True,
    )
    assert options.preserve_all_on_zero_matching_glyphs is False
    assert options.zero_match_policy is ZeroMatchPolicy.IGNORE


def test_no_zero_match_flags_processes():
    """Test that with both flags off zero-match fonts are processed."""
    options = PurgeOptions(preserve_all_on_zero_matching_glyphs=False)
    assert options.zero_match_policy is ZeroMatchPolicy.PROCESS


def test_from_mapping_skips_none_and_unknown():
    """Test that None values keep defaults and unknown keys are dropped."""
    options = PurgeOptions.from_mapping({"ignore_urls": None, "bogus": 1, "ignore_fonts": "Icons"})
    assert options.ignore_urls is True
    assert options.ignore_fonts == ["Icons"]


def test_content_sources_from_mapping():
    """Test that content mappings become ContentSource objects."""
    options = PurgeOptions.from_mapping(
        {"content": [{"files": "**/*.html", "min": "a", "max": 0x7A, "scan_type": "html_escaped"}]}
    )
    source = options.content[0]
    assert isinstance(source, ContentSource)
    assert source.files == ["**/*.html"]
    assert source.min_code_point == ord("a")
    assert source.max_code_point == 0x7A
    assert source.scan_type is ScanType.HTML_ESCAPED


def test_content_source_defaults():
    """Test default scan bounds, including the decimal lower bound."""
    source = ContentSource(["*.html"], min=0)
    assert source.min_code_point == 20
    assert source.max_code_point == 0xFFFFFFFF
    assert source.scan_type is ScanType.UNESCAPED


def test_content_source_without_files_rejected():
    """Test that a content source must name its files."""
    with pytest.raises(ConfigError):
        PurgeOptions.from_mapping({"content": [{"min": "a"}]})


def test_invalid_scan_bound_rejected():
    """Test that a bad min or max fails when options are built."""
    with pytest.raises(ConfigError):
        PurgeOptions.from_mapping({"content": [{"files": "*.html", "min": 1.5}]})
    with pytest.raises(ConfigError):
        ContentSource(["*.html"], max=["z"])


def test_invalid_list_option_rejected():
    """Test that non-list values for list options are rejected."""
    with pytest.raises(ConfigError):
        PurgeOptions(ignore_fonts=3.5)


def test_unknown_hash_algorithm_rejected():
    """Test that an unsupported hash algorithm is a config error."""
    with pytest.raises(ConfigError):
        resolve_options({"hash_algorithm": "nope"}, from_path="a.css")


def test_format_tables():
    """Test the load and output order tables."""
    options = resolve_options(None, from_path="a.css")
    assert [e.format for e in options.format_load_order] == [
        FontFormat.TRUETYPE,
        FontFormat.OPENTYPE,
        FontFormat.SVG,
    ]
    assert [e.extension for e in options.format_output_order] == ["eot", "woff2", "woff", "ttf", "svg"]
    assert options.format_load_order is FORMAT_LOAD_ORDER
    assert options.format_output_order is FORMAT_OUTPUT_ORDER


def test_load_config_file(tmp_path):
    """Test reading options from JSON."""
    config = tmp_path / "purge.json"
    config.write_text(json.dumps({"preserve_ascii": True}), encoding="utf-8")
    assert load_config_file(config) == {"preserve_ascii": True}


def test_load_config_file_errors(tmp_path):
    """Test that malformed or non-object config files are rejected."""
    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config_file(broken)

    array = tmp_path / "array.json"
    array.write_text("[]", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config_file(array)

    with pytest.raises(ConfigError):
        load_config_file(tmp_path / "missing.json")
