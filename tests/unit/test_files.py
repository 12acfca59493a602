"""Tests for output file helpers."""

from purge_glyphs.core.hashing import file_digest, file_hash
from purge_glyphs.utils.files import clean_similar_files, force_remove, same_file


def test_clean_similar_files(tmp_path):
    """Test that only earlier outputs of the same font are removed."""
    keep = tmp_path / "roboto-0123abcd.ttf"
    stale_plain = tmp_path / "roboto.ttf"
    stale_hashed = tmp_path / "roboto-deadbeef.ttf"
    other_font = tmp_path / "roboto-bold.ttf"
    other_ext = tmp_path / "roboto.woff"
    for path in (keep, stale_plain, stale_hashed, other_font, other_ext):
        path.write_bytes(b"x")

    removed = clean_similar_files(keep, "roboto", ".ttf")

    assert sorted(p.name for p in removed) == ["roboto-deadbeef.ttf", "roboto.ttf"]
    assert keep.exists()
    assert other_font.exists()
    assert other_ext.exists()


def test_clean_similar_files_spares_protected(tmp_path):
    """Test that source fonts in the output directory survive cleanup."""
    keep = tmp_path / "icons-0123abcd.ttf"
    source = tmp_path / "icons.ttf"
    keep.write_bytes(b"new")
    source.write_bytes(b"source")

    assert clean_similar_files(keep, "icons", ".ttf", protected=[source]) == []
    assert source.exists()


def test_force_remove_missing_file(tmp_path):
    """Test that removing a missing file is a no-op."""
    force_remove(tmp_path / "missing.ttf")


def test_same_file(tmp_path):
    """Test path identity through different spellings."""
    path = tmp_path / "a.ttf"
    path.write_bytes(b"a")
    assert same_file(path, tmp_path / "." / "a.ttf")
    assert not same_file(path, tmp_path / "b.ttf")


def test_file_hash_is_digest_suffix(tmp_path):
    """Test that the short hash is the last 8 hex characters."""
    path = tmp_path / "a.bin"
    path.write_bytes(b"hello")
    digest = file_digest(path)
    assert digest == "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"
    assert file_hash(path) == "938b9824"
