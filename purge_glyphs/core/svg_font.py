"""
SVG font conversion.

SVG fonts are only read and written for legacy ``format("svg")`` sources;
outlines go through fontTools pens in both directions.
"""

import re
import xml.etree.ElementTree as ET

from fontTools.fontBuilder import FontBuilder
from fontTools.pens.cu2quPen import Cu2QuPen
from fontTools.pens.svgPathPen import SVGPathPen
from fontTools.pens.ttGlyphPen import TTGlyphPen
from fontTools.svgLib.path import parse_path
from fontTools.ttLib import TTFont
from fontTools.ttLib.tables._g_l_y_f import Glyph

SVG_NS = "http://www.w3.org/2000/svg"
SVG_HEADER = '<?xml version="1.0" standalone="no"?>\n'

# Maximum error, in font units, when approximating cubic curves
MAX_CURVE_ERROR = 1.0


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _is_xml_char(code_point: int) -> bool:
    return 0x20 <= code_point <= 0xD7FF or 0xE000 <= code_point <= 0xFFFD or code_point >= 0x10000


def ttf_to_svg(font: TTFont) -> str:
    """
    Render a TrueType font as an SVG font document.

    Args:
        font: Font to render; one <glyph> is written per mapped code point

    Returns:
        SVG document text
    """
    glyph_set = font.getGlyphSet()
    hmtx = font["hmtx"]
    hhea = font["hhea"]
    cmap = font.getBestCmap() or {}

    family = font["name"].getDebugName(1) or "font"
    font_id = re.sub(r"\W+", "", family) or "font"

    svg = ET.Element("svg", {"xmlns": SVG_NS})
    defs = ET.SubElement(svg, "defs")
    font_el = ET.SubElement(
        defs,
        "font",
        {"id": font_id, "horiz-adv-x": str(hmtx[".notdef"][0] if ".notdef" in hmtx.metrics else 0)},
    )
    ET.SubElement(
        font_el,
        "font-face",
        {
            "font-family": family,
            "units-per-em": str(font["head"].unitsPerEm),
            "ascent": str(hhea.ascent),
            "descent": str(hhea.descent),
        },
    )

    def outline(glyph_name: str) -> dict[str, str]:
        pen = SVGPathPen(glyph_set)
        glyph_set[glyph_name].draw(pen)
        attrs = {"horiz-adv-x": str(hmtx[glyph_name][0])}
        commands = pen.getCommands()
        if commands:
            attrs["d"] = commands
        return attrs

    if ".notdef" in glyph_set:
        ET.SubElement(font_el, "missing-glyph", outline(".notdef"))

    for code_point, glyph_name in sorted(cmap.items()):
        if not _is_xml_char(code_point):
            continue
        attrs = {"glyph-name": glyph_name, "unicode": chr(code_point)}
        attrs.update(outline(glyph_name))
        ET.SubElement(font_el, "glyph", attrs)

    return SVG_HEADER + ET.tostring(svg, encoding="unicode")


def _draw_path(path_data: str | None) -> Glyph:
    pen = TTGlyphPen(None)
    if path_data:
        parse_path(path_data, Cu2QuPen(pen, MAX_CURVE_ERROR, reverse_direction=False))
    return pen.glyph()


def svg_to_ttf(svg_text: str) -> TTFont:
    """
    Build a TrueType font from an SVG font document.

    Only single-character glyphs are kept; ligature glyphs have no cmap
    entry to carry them.

    Args:
        svg_text: SVG document containing a <font> element

    Returns:
        New TTFont

    Raises:
        ValueError: If the document holds no <font> element
    """
    root = ET.fromstring(svg_text)
    font_el = next((el for el in root.iter() if _local_name(el.tag) == "font"), None)
    if font_el is None:
        raise ValueError("SVG document has no <font> element")

    face = next((el for el in font_el if _local_name(el.tag) == "font-face"), None)
    face_attrs = face.attrib if face is not None else {}
    units_per_em = int(float(face_attrs.get("units-per-em", 1000)))
    ascent = int(float(face_attrs.get("ascent", units_per_em * 0.8)))
    descent = int(float(face_attrs.get("descent", -units_per_em * 0.2)))
    default_advance = int(float(font_el.get("horiz-adv-x", units_per_em // 2)))
    family = face_attrs.get("font-family") or font_el.get("id") or "Converted"

    glyphs = {".notdef": _draw_path(None)}
    advances = {".notdef": default_advance}
    cmap: dict[int, str] = {}

    for el in font_el:
        tag = _local_name(el.tag)
        advance = int(float(el.get("horiz-adv-x", default_advance)))
        if tag == "missing-glyph":
            glyphs[".notdef"] = _draw_path(el.get("d"))
            advances[".notdef"] = advance
            continue
        if tag != "glyph":
            continue

        text = el.get("unicode")
        if not text or len(text) != 1 or ord(text) in cmap:
            continue

        code_point = ord(text)
        glyph_name = el.get("glyph-name") or f"uni{code_point:04X}"
        if glyph_name in glyphs:
            glyph_name = f"uni{code_point:04X}"
        glyphs[glyph_name] = _draw_path(el.get("d"))
        advances[glyph_name] = advance
        cmap[code_point] = glyph_name

    builder = FontBuilder(units_per_em, isTTF=True)
    builder.setupGlyphOrder(list(glyphs))
    builder.setupCharacterMap(cmap)
    builder.setupGlyf(glyphs)
    glyf = builder.font["glyf"]
    builder.setupHorizontalMetrics(
        {name: (advances[name], getattr(glyf[name], "xMin", 0)) for name in glyphs}
    )
    builder.setupHorizontalHeader(ascent=ascent, descent=descent)
    builder.setupNameTable({"familyName": family, "styleName": "Regular"})
    builder.setupOS2(
        sTypoAscender=ascent,
        sTypoDescender=descent,
        usWinAscent=ascent,
        usWinDescent=abs(descent),
    )
    builder.setupPost()
    return builder.font
