"""
Glyph discovery.

Collects the characters a site needs from CSS ``content`` values and from
external content files (HTML templates, text, ...).
"""

import glob
import re
from collections.abc import Iterable
from pathlib import Path

from purge_glyphs.config.options import ContentSource, ScanType
from purge_glyphs.core.state import FailureEvent, FailureLog
from purge_glyphs.utils.logging import logger

MAX_UNICODE = 0x10FFFF

CSS_ESCAPE_RE = re.compile(r"\\[0-9A-Fa-f]{2,6}")
TRAILING_QUOTE_RE = re.compile(r"[\"'][ ]*$")
LEADING_QUOTE_RE = re.compile(r"^[ ]*[\"']")

HTML_HEX_REF_RE = re.compile(r"&#[Xx]([0-9A-Fa-f]{2,6});")
HTML_DEC_REF_RE = re.compile(r"&#([0-9]{2,8});")


def _glyph(code_point: int) -> str | None:
    if 0 <= code_point <= MAX_UNICODE:
        return chr(code_point)
    return None


def glyphs_from_content_value(value: str) -> list[str]:
    """
    Extract the glyphs referenced by a CSS ``content`` value.

    Escapes such as ``\\f101`` are decoded first, then every remaining
    character counts as a glyph, whitespace included.

    Args:
        value: Raw declaration value, e.g. ``"\\f101"`` or ``'>> '``

    Returns:
        Glyphs in order of first appearance, without duplicates
    """
    remainder = value
    if TRAILING_QUOTE_RE.search(remainder):
        remainder = TRAILING_QUOTE_RE.sub("", LEADING_QUOTE_RE.sub("", remainder, count=1), count=1)

    glyphs: dict[str, None] = {}
    for escape in CSS_ESCAPE_RE.findall(remainder):
        glyph = _glyph(int(escape[1:], 16))
        if glyph is None:
            logger.debug(f"Skipping out of range escape {escape}")
        else:
            glyphs[glyph] = None
        remainder = remainder.replace(escape, "", 1)

    # str iterates by code point, so astral characters stay whole
    for char in remainder:
        glyphs[char] = None

    return list(glyphs)


def find_css_glyphs(values: Iterable[str]) -> list[str]:
    """Union of the glyphs of many ``content`` values."""
    glyphs: dict[str, None] = {}
    for value in values:
        glyphs.update(dict.fromkeys(glyphs_from_content_value(value)))
    logger.debug(f"Found {len(glyphs)} glyphs in CSS content declarations")
    return list(glyphs)


def _scan_html_escaped(text: str, low: int, high: int) -> Iterable[str]:
    references = [(m, 16) for m in HTML_HEX_REF_RE.findall(text)]
    references += [(m, 10) for m in HTML_DEC_REF_RE.findall(text)]
    for digits, base in references:
        code_point = int(digits, base)
        if low <= code_point <= high:
            glyph = _glyph(code_point)
            if glyph is not None:
                yield glyph


def _scan_unescaped(text: str, low: int, high: int) -> Iterable[str]:
    for char in text:
        code_point = ord(char)
        if low <= code_point <= high and code_point >= 0x20:
            yield char


def glyphs_from_content_source(
    source: ContentSource,
    failures: FailureLog | None = None,
) -> set[str]:
    """
    Scan the files matched by one content source.

    Unreadable files are skipped; each one is recorded in ``failures``.

    Args:
        source: Glob patterns, bounds and scan type
        failures: Where skipped files are recorded

    Returns:
        Set of glyphs found within the source's bounds
    """
    low, high = source.min_code_point, source.max_code_point
    scan = _scan_html_escaped if source.scan_type is ScanType.HTML_ESCAPED else _scan_unescaped

    glyphs: set[str] = set()
    for pattern in source.files:
        for file_name in sorted(glob.glob(pattern, recursive=True)):
            path = Path(file_name)
            if path.is_dir():
                continue
            try:
                text = path.read_text(encoding="utf-8", errors="replace")
            except OSError as e:
                if failures is not None:
                    failures.record(FailureEvent.CONTENT_READ_FAILED, file_name, str(e))
                continue
            glyphs.update(scan(text, low, high))

    logger.debug(f"Found {len(glyphs)} glyphs in content matching {source.files}")
    return glyphs


def collect_glyphs(
    css_values: Iterable[str],
    sources: Iterable[ContentSource] = (),
    failures: FailureLog | None = None,
) -> frozenset[str]:
    """
    Build the global glyph set for a run.

    Args:
        css_values: Every CSS ``content`` declaration value
        sources: External content sources to scan
        failures: Where skipped content files are recorded

    Returns:
        The required glyphs
    """
    glyphs = set(find_css_glyphs(css_values))
    for source in sources:
        glyphs |= glyphs_from_content_source(source, failures)
    logger.info(f"Collected {len(glyphs)} required glyphs")
    return frozenset(glyphs)
