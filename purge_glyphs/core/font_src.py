"""
Parsing of @font-face ``src`` declarations into font file references.
"""

import posixpath
import re
from collections.abc import Iterator
from dataclasses import dataclass

from purge_glyphs.config.formats import FontFormat, FormatEntry

URL_SPLIT_RE = re.compile(r"url[ ]*\([ ]*", re.IGNORECASE)
QUOTED_URL_RE = re.compile(r"""\s*(["'])(?P<path>.*?)\1\s*\)""")
UNQUOTED_URL_RE = re.compile(r"\s*(?P<path>[^)]*?)\s*\)")
FORMAT_RE = re.compile(r"""^\s*format\s*\(\s*["']*(?P<format>[^"')]*?)["']*\s*\)""", re.IGNORECASE)
REMOTE_RE = re.compile(r"^https?://", re.IGNORECASE)


def is_remote(path: str) -> bool:
    return bool(REMOTE_RE.match(path))


def file_extension(path: str) -> str:
    """Lowercased text after the last dot of the file name."""
    name = path.rsplit("/", 1)[-1]
    return name.rsplit(".", 1)[-1].lower() if "." in name else ""


@dataclass
class FontFileRef:
    """One font file referenced from a ``src`` declaration."""

    path: str  # resolved local path or absolute URL
    extension: str
    format: str | None = None  # value of the format() hint, if any

    @property
    def is_remote(self) -> bool:
        return is_remote(self.path)

    @property
    def font_format(self) -> FontFormat | None:
        return FontFormat.from_hint(self.format)


class FontFileMap:
    """Font file references of one @font-face rule, keyed by resolved path."""

    def __init__(self) -> None:
        self._refs: dict[str, FontFileRef] = {}

    def add(self, path: str, extension: str, format_hint: str | None = None) -> FontFileRef:
        """Register a reference; a later format hint replaces an earlier one."""
        ref = self._refs.get(path)
        if ref is None:
            ref = self._refs[path] = FontFileRef(path, extension)
        if format_hint is not None:
            ref.format = format_hint
        return ref

    def find(self, entry: FormatEntry) -> FontFileRef | None:
        """
        Find the reference for a format.

        A declared ``format()`` hint wins over the file extension. When
        several references match, the last one declared is used.
        """
        by_format = by_extension = None
        for ref in self._refs.values():
            if ref.font_format is entry.format:
                by_format = ref
            if ref.extension == entry.extension:
                by_extension = ref
        return by_format or by_extension

    def get(self, path: str) -> FontFileRef | None:
        return self._refs.get(path)

    def local_paths(self) -> list[str]:
        return [ref.path for ref in self._refs.values() if not ref.is_remote]

    def __iter__(self) -> Iterator[FontFileRef]:
        return iter(self._refs.values())

    def __len__(self) -> int:
        return len(self._refs)

    def __contains__(self, path: object) -> bool:
        return path in self._refs


def resolve_font_path(path: str, src_root: str) -> str:
    if is_remote(path):
        return path
    return posixpath.normpath(f"{src_root or '.'}/{path}")


def parse_font_src(
    src_value: str,
    src_root: str,
    font_files: FontFileMap | None = None,
) -> FontFileMap:
    """
    Add the files referenced by a ``src`` value to a file map.

    Args:
        src_value: Raw declaration value, e.g.
            ``url("a.woff2") format("woff2"), url(a.ttf)``
        src_root: Directory of the stylesheet, used for relative URLs
        font_files: Map to extend; a new one is created if omitted

    Returns:
        The file map, with one entry per distinct resolved path
    """
    if font_files is None:
        font_files = FontFileMap()

    value = re.sub(r"[\r\n\t]+", " ", src_value)
    # The text before the first url( can only hold local() sources
    for segment in URL_SPLIT_RE.split(value)[1:]:
        match = QUOTED_URL_RE.match(segment) or UNQUOTED_URL_RE.match(segment)
        if match is None:
            continue

        path = match.group("path").split("#", 1)[0].split("?", 1)[0]
        if not path or path.lower().startswith("data:"):
            continue

        format_match = FORMAT_RE.match(segment[match.end():])
        format_hint = format_match.group("format") if format_match else None

        font_files.add(resolve_font_path(path, src_root), file_extension(path), format_hint)

    return font_files
