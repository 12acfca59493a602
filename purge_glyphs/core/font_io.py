"""
Font I/O utilities: loading, inventory, subsetting and format conversion.

Every failure surfaces as ``FontEngineError``; a partially written output
file is removed before the error propagates.
"""

import shutil
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from io import BytesIO
from pathlib import Path

from fontTools import subset
from fontTools.pens.cu2quPen import Cu2QuPen
from fontTools.pens.ttGlyphPen import TTGlyphPen
from fontTools.ttLib import TTFont, newTable

from purge_glyphs.config.formats import IGNORED_GLYPH_NAMES, FontFormat
from purge_glyphs.core.eot import build_eot
from purge_glyphs.core.errors import FontEngineError
from purge_glyphs.core.svg_font import svg_to_ttf, ttf_to_svg
from purge_glyphs.utils.files import force_remove
from purge_glyphs.utils.logging import logger

# Maximum error, in font units, when converting cubic outlines to quadratic
MAX_CURVE_ERROR = 1.0

WEB_FLAVORS = {FontFormat.WOFF: "woff", FontFormat.WOFF2: "woff2"}


def load_font(path: Path) -> TTFont:
    """
    Load a font fully into memory.

    The file is read up front so the same path can be overwritten by the
    save that follows. Timestamps are left alone on save, which keeps
    outputs byte-identical across runs.
    """
    return TTFont(BytesIO(Path(path).read_bytes()), recalcTimestamp=False)


@contextmanager
def open_font(path: Path) -> Iterator[TTFont]:
    """
    Context manager for read-only font access.

    Args:
        path: Path to font file

    Yields:
        TTFont instance
    """
    font = load_font(path)
    try:
        yield font
    finally:
        font.close()


@contextmanager
def engine_errors(action: str, path: Path, dest: Path | None = None) -> Iterator[None]:
    """Turn any failure inside the block into a FontEngineError."""
    try:
        yield
    except FontEngineError:
        if dest is not None:
            force_remove(dest)
        raise
    except Exception as e:
        if dest is not None:
            force_remove(dest)
        raise FontEngineError(f"Failed to {action} {path}: {e}") from e


def get_code_points(path: Path) -> list[int]:
    """
    List the code points a TrueType font has real glyphs for.

    Placeholder glyphs (.notdef, .null, nonmarkingreturn) are skipped.

    Returns:
        Code points in ascending order
    """
    with engine_errors("read code points from", path):
        with open_font(path) as font:
            cmap = font.getBestCmap() or {}
            return sorted(cp for cp, name in cmap.items() if name not in IGNORED_GLYPH_NAMES)


def subset_truetype(
    src: Path,
    dest: Path,
    glyphs: Iterable[str],
    *,
    keep_hinting: bool = True,
) -> None:
    """
    Write a copy of a TrueType font holding only the given glyphs.

    Args:
        src: Canonical TrueType source
        dest: Output path
        glyphs: Characters to keep
        keep_hinting: Whether to keep hinting instructions
    """
    options = subset.Options()
    options.hinting = keep_hinting
    options.layout_features = ["*"]
    options.name_IDs = ["*"]
    options.name_languages = ["*"]
    options.glyph_names = True
    options.notdef_outline = True
    options.recalc_timestamp = False

    unicodes = [ord(glyph) for glyph in glyphs]
    logger.debug(f"Subsetting {src.name} to {len(unicodes)} glyphs")

    with engine_errors("subset", src, dest):
        font = load_font(src)
        subsetter = subset.Subsetter(options=options)
        subsetter.populate(unicodes=unicodes)
        subsetter.subset(font)
        font.save(dest)
        font.close()


def _glyphs_to_quadratic(font: TTFont) -> dict:
    glyph_set = font.getGlyphSet()
    quadratic = {}
    for glyph_name in font.getGlyphOrder():
        tt_pen = TTGlyphPen(glyph_set)
        glyph_set[glyph_name].draw(Cu2QuPen(tt_pen, MAX_CURVE_ERROR, reverse_direction=True))
        quadratic[glyph_name] = tt_pen.glyph()
    return quadratic


def otf_to_ttf(font: TTFont) -> None:
    """Replace the CFF outlines of a font with TrueType outlines, in place."""
    glyph_order = font.getGlyphOrder()
    # Drawn before glyf exists, while the glyph set still reads from CFF
    quadratic = _glyphs_to_quadratic(font)

    font["loca"] = newTable("loca")
    font["glyf"] = glyf = newTable("glyf")
    glyf.glyphOrder = glyph_order
    glyf.glyphs = quadratic
    del font["CFF "]
    if "VORG" in font:
        del font["VORG"]
    glyf.compile(font)

    hmtx = font["hmtx"]
    for glyph_name, glyph in glyf.glyphs.items():
        if hasattr(glyph, "xMin"):
            hmtx[glyph_name] = (hmtx[glyph_name][0], glyph.xMin)

    font["maxp"] = maxp = newTable("maxp")
    maxp.tableVersion = 0x00010000
    maxp.maxZones = 1
    maxp.maxTwilightPoints = 0
    maxp.maxStorage = 0
    maxp.maxFunctionDefs = 0
    maxp.maxInstructionDefs = 0
    maxp.maxStackElements = 0
    maxp.maxSizeOfInstructions = 0
    maxp.maxComponentElements = 0
    maxp.compile(font)

    post = font["post"]
    post.formatType = 2.0
    post.extraNames = []
    post.mapping = {}
    post.glyphOrder = glyph_order
    try:
        post.compile(font)
    except OverflowError:
        post.formatType = 3.0

    font.sfntVersion = "\000\001\000\000"


def convert_to_truetype(src: Path, dest: Path, font_format: FontFormat) -> None:
    """
    Convert an OpenType (CFF) or SVG font to TrueType.

    Args:
        src: Source font
        dest: TrueType output path
        font_format: Format of the source
    """
    logger.debug(f"Converting {src.name} ({font_format.value}) to truetype")

    with engine_errors(f"convert {font_format.value} to truetype", src, dest):
        if font_format is FontFormat.TRUETYPE:
            shutil.copyfile(src, dest)
        elif font_format is FontFormat.OPENTYPE:
            font = load_font(src)
            if "CFF " in font:
                otf_to_ttf(font)
            elif "glyf" not in font:
                raise FontEngineError(f"No convertible outlines in {src}")
            font.save(dest)
            font.close()
        elif font_format is FontFormat.SVG:
            font = svg_to_ttf(Path(src).read_text(encoding="utf-8"))
            font.save(dest)
            font.close()
        else:
            raise FontEngineError(f"Cannot load {font_format.value} sources")


def convert_from_truetype(src: Path, dest: Path, font_format: FontFormat) -> None:
    """
    Write a TrueType font out in another web font format.

    Args:
        src: TrueType source
        dest: Output path
        font_format: Target format
    """
    logger.debug(f"Converting {src.name} to {font_format.value}")

    with engine_errors(f"convert truetype to {font_format.value}", src, dest):
        if font_format is FontFormat.TRUETYPE:
            shutil.copyfile(src, dest)
        elif font_format in WEB_FLAVORS:
            font = load_font(src)
            font.flavor = WEB_FLAVORS[font_format]
            font.save(dest)
            font.close()
        elif font_format is FontFormat.EMBEDDED_OPENTYPE:
            dest.write_bytes(build_eot(Path(src).read_bytes()))
        elif font_format is FontFormat.SVG:
            with open_font(src) as font:
                dest.write_text(ttf_to_svg(font), encoding="utf-8")
        else:
            raise FontEngineError(f"Cannot write {font_format.value} fonts")
