"""
Web font format definitions.

The load and output order tables drive every format loop in the pipeline.
"""

from dataclasses import dataclass
from enum import Enum


class FontFormat(Enum):
    """Font formats as named by the CSS ``format()`` hint."""

    TRUETYPE = "truetype"
    OPENTYPE = "opentype"
    SVG = "svg"
    EMBEDDED_OPENTYPE = "embedded-opentype"
    WOFF = "woff"
    WOFF2 = "woff2"

    @classmethod
    def from_hint(cls, hint: str | None) -> "FontFormat | None":
        """Map a ``format("...")`` value to a known format, if any."""
        if not hint:
            return None
        try:
            return cls(hint.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class FormatEntry:
    """A font format paired with the file extension it is written with."""

    format: FontFormat
    extension: str

    @property
    def hint(self) -> str:
        """Value used inside ``format("...")``."""
        return self.format.value


# Priority for locating a source font the pipeline can work from
FORMAT_LOAD_ORDER: tuple[FormatEntry, ...] = (
    FormatEntry(FontFormat.TRUETYPE, "ttf"),
    FormatEntry(FontFormat.OPENTYPE, "otf"),
    FormatEntry(FontFormat.SVG, "svg"),
)

# Formats emitted for every preserved or processed font, in src order
FORMAT_OUTPUT_ORDER: tuple[FormatEntry, ...] = (
    FormatEntry(FontFormat.EMBEDDED_OPENTYPE, "eot"),
    FormatEntry(FontFormat.WOFF2, "woff2"),
    FormatEntry(FontFormat.WOFF, "woff"),
    FormatEntry(FontFormat.TRUETYPE, "ttf"),
    FormatEntry(FontFormat.SVG, "svg"),
)

# Placeholder glyphs that never count as part of a font's inventory
IGNORED_GLYPH_NAMES = frozenset({".notdef", ".null", "nonmarkingreturn"})
