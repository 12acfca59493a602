"""
Font analysis: decide what to do with one @font-face rule.

A rule's font is ignored (left alone), preserved (copied as-is) or
processed (subset to the glyphs the site uses). The decision needs a
TrueType copy of the font, so this module also locates or builds that
canonical source.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from purge_glyphs.config.formats import FontFormat
from purge_glyphs.config.options import ResolvedOptions, ZeroMatchPolicy
from purge_glyphs.core.errors import FontEngineError
from purge_glyphs.core.font_io import convert_to_truetype, get_code_points
from purge_glyphs.core.font_src import FontFileMap
from purge_glyphs.core.state import FailureEvent, FailureLog, FontAction, transition
from purge_glyphs.operations.download import download_file_name, download_url
from purge_glyphs.utils.files import force_remove
from purge_glyphs.utils.logging import logger

# Code points kept by preserve_ascii
ASCII_RANGE = range(255)

Fetcher = Callable[[str, Path, float], bool]


@dataclass
class FontAnalysis:
    """Outcome of analyzing one font family."""

    action: FontAction = FontAction.PROCESS
    final_glyph_set: list[str] = field(default_factory=list)
    ttf_src_path: Path | None = None
    ttf_src_is_temporary: bool = False

    def downgrade(self, event: FailureEvent) -> FontAction:
        self.action = transition(self.action, event)
        return self.action


def locate_truetype_source(
    options: ResolvedOptions,
    font_files: FontFileMap,
    failures: FailureLog,
    fetch: Fetcher = download_url,
) -> tuple[Path | None, bool]:
    """
    Find or build the TrueType file a font is analyzed and subset from.

    Formats are tried in load order. Remote files are downloaded into the
    output directory when URL following is on; anything that is not
    TrueType is converted into ``<output dir>/<file name>.ttf``.

    Returns:
        Tuple of (canonical TrueType path or None, whether it is temporary)
    """
    for entry in options.format_load_order:
        ref = font_files.find(entry)
        if ref is None:
            continue

        path = Path(ref.path)
        downloaded = False

        if ref.is_remote:
            if not options.follow_urls:
                continue
            target = options.absolute_to / download_file_name(ref.path, entry.extension)
            if fetch(ref.path, target, options.download_timeout) and target.exists():
                path, downloaded = target, True
            else:
                failures.record(FailureEvent.DOWNLOAD_FAILED, ref.path)
                continue

        if not path.is_file():
            continue

        if entry.format is FontFormat.TRUETYPE:
            if not downloaded:
                return path, False
            renamed = Path(f"{path}.ttf")
            force_remove(renamed)
            path.rename(renamed)
            return renamed, True

        converted = options.absolute_to / f"{path.name}.ttf"
        options.absolute_to.mkdir(parents=True, exist_ok=True)
        try:
            convert_to_truetype(path, converted, entry.format)
        except FontEngineError as e:
            failures.record(FailureEvent.CONVERSION_FAILED, str(path), str(e))
        finally:
            if downloaded:
                force_remove(path)

        if converted.exists():
            return converted, True

    return None, False


def _preserved_code_points(preserve_glyphs: Iterable[str | int]) -> list[int]:
    code_points = []
    for glyph in preserve_glyphs:
        if isinstance(glyph, str):
            if glyph:
                code_points.append(ord(glyph[0]))
        else:
            code_points.append(int(glyph))
    return code_points


def select_glyphs(
    options: ResolvedOptions,
    glyphs: Iterable[str],
    inventory: Iterable[int],
) -> tuple[set[str], set[str]]:
    """
    Match required glyphs against a font's inventory.

    Returns:
        Tuple of (glyphs the site uses, glyphs kept if the font is subset)
    """
    available = set(inventory)
    to_keep = {glyph for glyph in glyphs if ord(glyph) in available}
    if_processed = set(to_keep)

    for code_point in _preserved_code_points(options.preserve_glyphs):
        if code_point in available:
            if_processed.add(chr(code_point))

    if options.preserve_ascii:
        if_processed.update(chr(cp) for cp in ASCII_RANGE if cp in available)

    return to_keep, if_processed


def resolve_action(options: ResolvedOptions, font_family: str, glyphs_to_keep: set[str]) -> FontAction:
    """Apply the zero-match and per-family policies, in priority order."""
    no_match = not glyphs_to_keep

    if no_match and options.zero_match_policy is ZeroMatchPolicy.IGNORE:
        return FontAction.IGNORE

    if (
        (no_match and options.zero_match_policy is ZeroMatchPolicy.PRESERVE)
        or font_family in options.preserve_fonts
        or (options.purge_only_fonts and font_family not in options.purge_only_fonts)
    ):
        return FontAction.PRESERVE

    return FontAction.PROCESS


def analyze_font(
    options: ResolvedOptions,
    glyphs: Iterable[str],
    font_files: FontFileMap,
    font_family: str,
    failures: FailureLog | None = None,
    fetch: Fetcher = download_url,
) -> FontAnalysis:
    """
    Decide whether a font is ignored, preserved or processed.

    Args:
        options: Resolved run options
        glyphs: Glyphs required anywhere on the site
        font_files: Files referenced by the rule's ``src`` declarations
        font_family: Unquoted ``font-family`` of the rule
        failures: Where recoverable failures are recorded
        fetch: Downloader for remote sources

    Returns:
        FontAnalysis; ``ttf_src_path`` is set whenever a source was found
    """
    if failures is None:
        failures = FailureLog()

    analysis = FontAnalysis()
    analysis.ttf_src_path, analysis.ttf_src_is_temporary = locate_truetype_source(
        options, font_files, failures, fetch
    )

    if analysis.ttf_src_path is None:
        failures.record(FailureEvent.SOURCE_NOT_FOUND, font_family or "<unnamed>")
        analysis.action = FontAction.IGNORE
        return analysis

    if font_family in options.ignore_fonts:
        logger.debug(f"{font_family}: ignored by configuration")
        analysis.action = FontAction.IGNORE
        return analysis

    try:
        inventory = get_code_points(analysis.ttf_src_path)
    except FontEngineError as e:
        failures.record(FailureEvent.INVENTORY_FAILED, str(analysis.ttf_src_path), str(e))
        inventory = []

    glyphs_to_keep, glyphs_if_processed = select_glyphs(options, glyphs, inventory)
    analysis.action = resolve_action(options, font_family, glyphs_to_keep)

    if analysis.action is FontAction.PROCESS:
        analysis.final_glyph_set = sorted(glyphs_if_processed)
        if not analysis.final_glyph_set and inventory:
            analysis.final_glyph_set = [chr(inventory[0])]

    logger.debug(
        f"{font_family}: {analysis.action.value}, "
        f"{len(glyphs_to_keep)} of {len(inventory)} glyphs used"
    )
    return analysis
