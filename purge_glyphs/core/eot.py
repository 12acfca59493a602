"""
Embedded OpenType (EOT) writer.

Writes uncompressed, unobfuscated EOT version 0x00020001 files: a header
derived from the TrueType tables followed by the TrueType data unchanged.
"""

import struct
from io import BytesIO

from fontTools.ttLib import TTFont

EOT_VERSION = 0x00020001
EOT_MAGIC = 0x504C
DEFAULT_CHARSET = 1

# EOTSize .. Padding1, little endian, no alignment
FIXED_HEADER = struct.Struct("<IIII10sBBIHH4I2II4IH")

PANOSE_FIELDS = (
    "bFamilyType",
    "bSerifStyle",
    "bWeight",
    "bProportion",
    "bContrast",
    "bStrokeVariation",
    "bArmStyle",
    "bLetterForm",
    "bMidline",
    "bXHeight",
)


def _name_field(font: TTFont, name_id: int) -> bytes:
    """Size-prefixed UTF-16LE name string."""
    name = font["name"].getDebugName(name_id) or ""
    encoded = name.encode("utf-16-le")
    return struct.pack("<H", len(encoded)) + encoded


def build_eot(ttf_data: bytes) -> bytes:
    """
    Wrap TrueType font data in an EOT header.

    Args:
        ttf_data: Complete TrueType font file

    Returns:
        EOT file contents
    """
    font = TTFont(BytesIO(ttf_data))
    os2 = font["OS/2"]
    head = font["head"]

    panose = bytes(getattr(os2.panose, field, 0) for field in PANOSE_FIELDS)
    unicode_ranges = (os2.ulUnicodeRange1, os2.ulUnicodeRange2, os2.ulUnicodeRange3, os2.ulUnicodeRange4)
    code_page_ranges = (
        getattr(os2, "ulCodePageRange1", 0),
        getattr(os2, "ulCodePageRange2", 0),
    )

    names = b"".join(
        [
            _name_field(font, 1),  # family
            b"\x00\x00",
            _name_field(font, 2),  # style
            b"\x00\x00",
            _name_field(font, 5),  # version
            b"\x00\x00",
            _name_field(font, 4),  # full name
            b"\x00\x00",
            struct.pack("<H", 0),  # empty root string
        ]
    )
    font.close()

    eot_size = FIXED_HEADER.size + len(names) + len(ttf_data)
    header = FIXED_HEADER.pack(
        eot_size,
        len(ttf_data),
        EOT_VERSION,
        0,  # flags: no subsetting, compression or XOR
        panose,
        DEFAULT_CHARSET,
        1 if os2.fsSelection & 1 else 0,
        os2.usWeightClass,
        os2.fsType,
        EOT_MAGIC,
        *unicode_ranges,
        *code_page_ranges,
        head.checkSumAdjustment,
        0,
        0,
        0,
        0,
        0,  # padding1
    )
    return header + names + ttf_data
