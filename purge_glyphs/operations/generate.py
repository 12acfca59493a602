"""
Font generation: turn an analysis into output files and new ``src`` values.

The canonical TrueType source is subset (or copied) to
``<output dir>/<base>.ttf``; every other output format is converted from
that file. Outputs are cache-busted and earlier outputs of the same font
are cleaned up.
"""

import shutil
from pathlib import Path

from purge_glyphs.config.formats import FontFormat, FormatEntry
from purge_glyphs.config.options import CacheBusting, ResolvedOptions
from purge_glyphs.core.errors import FontEngineError
from purge_glyphs.core.font_io import convert_from_truetype, subset_truetype
from purge_glyphs.core.font_src import FontFileMap
from purge_glyphs.core.hashing import file_hash
from purge_glyphs.core.state import FailureEvent, FailureLog, FontAction
from purge_glyphs.operations.analyze import FontAnalysis
from purge_glyphs.utils.files import clean_similar_files, force_remove, same_file
from purge_glyphs.utils.logging import logger

TRUETYPE_ENTRY = FormatEntry(FontFormat.TRUETYPE, "ttf")


def _strip_extension(name: str) -> str:
    return name.rsplit(".", 1)[0] if "." in name else name


def truetype_destination(options: ResolvedOptions, analysis: FontAnalysis) -> Path:
    """
    Deterministic path of the generated TrueType file.

    Temporary sources carry a second ``.ttf`` suffix (``roboto.otf.ttf``),
    so two extensions are dropped for them.
    """
    base = _strip_extension(analysis.ttf_src_path.name)
    if analysis.ttf_src_is_temporary:
        base = _strip_extension(base)
    return options.absolute_to / f"{base}.ttf"


def source_url(
    options: ResolvedOptions,
    path: Path,
    font_format: FontFormat,
    *,
    bare: bool = False,
    failures: FailureLog | None = None,
) -> str:
    """
    Build one ``url(...)`` clause for a generated file.

    Args:
        options: Resolved run options
        path: Generated file
        font_format: Format written to ``format("...")``
        bare: Emit the lone EOT clause, without ``format()``
        failures: Where a failed hash is recorded

    Returns:
        CSS clause, e.g. ``url("fonts/roboto.woff2?fonthash=1a2b3c4d") format("woff2")``
    """
    buster = ""
    if options.cache_busting is CacheBusting.QUERY:
        try:
            buster = f"?fonthash={file_hash(path, options.hash_algorithm)}"
        except OSError as e:
            if failures is not None:
                failures.record(FailureEvent.HASH_FAILED, str(path), str(e))

    url = f"{options.relative_to}/{path.name}"
    is_eot = font_format is FontFormat.EMBEDDED_OPENTYPE

    if is_eot and bare:
        return f'url("{url}{buster}")'
    if is_eot and not buster:
        buster = "?#iefix"
    return f'url("{url}{buster}") format("{font_format.value}")'


def finalize_output(
    dest: Path,
    base: str,
    entry: FormatEntry,
    options: ResolvedOptions,
    protected: list[Path],
) -> Path:
    """
    Remove stale outputs next to ``dest`` and apply file-name cache busting.

    Returns:
        Final path of the output
    """
    clean_similar_files(dest, base, f".{entry.extension}", protected)

    if options.cache_busting is not CacheBusting.FILE:
        return dest

    busted = dest.with_name(f"{base}-{file_hash(dest, options.hash_algorithm)}.{entry.extension}")
    if busted == dest:
        return dest

    force_remove(busted)
    if _is_source(dest, protected):
        shutil.copyfile(dest, busted)
    else:
        dest.rename(busted)
    return busted


def _is_source(path: Path, protected: list[Path]) -> bool:
    return any(same_file(path, source) for source in protected)


def _writable_path(analysis: FontAnalysis, dest: Path, protected: list[Path]) -> Path:
    """Where a generated file is written before it is finalized; never a source font."""
    if analysis.action is FontAction.PROCESS and _is_source(dest, protected):
        return dest.with_name(f"{dest.stem}.partial{dest.suffix}")
    return dest


def _guard_sources(
    options: ResolvedOptions,
    analysis: FontAnalysis,
    destinations: list[Path],
    protected: list[Path],
    failures: FailureLog,
) -> None:
    """
    Fall back to Preserve when a subset would have to replace a source font.

    Outputs whose final name is not hashed keep the name of the file they
    replace, so a source font living in the output directory would be lost.
    """
    if analysis.action is not FontAction.PROCESS or options.cache_busting is CacheBusting.FILE:
        return

    for dest in destinations:
        if _is_source(dest, protected):
            logger.warning(f"{dest} is a source font and would be overwritten; keeping the font unchanged")
            failures.record(FailureEvent.SOURCE_COLLISION, str(dest))
            analysis.downgrade(FailureEvent.SOURCE_COLLISION)
            return


def _write_truetype(analysis: FontAnalysis, dest: Path, failures: FailureLog) -> None:
    src = analysis.ttf_src_path

    if analysis.action is FontAction.PROCESS:
        try:
            subset_truetype(
                src,
                dest,
                analysis.final_glyph_set,
                keep_hinting=not analysis.ttf_src_is_temporary,
            )
        except FontEngineError as e:
            logger.warning(f"Failed to purge glyphs from {src.name}: {e}")
        if not dest.exists():
            failures.record(FailureEvent.SUBSET_FAILED, str(src))
            analysis.downgrade(FailureEvent.SUBSET_FAILED)

    if analysis.action is FontAction.PRESERVE and not same_file(src, dest):
        try:
            shutil.copyfile(src, dest)
        except OSError as e:
            logger.warning(f"Failed to copy {src} to {dest}: {e}")


def _write_format(
    entry: FormatEntry,
    analysis: FontAnalysis,
    font_files: FontFileMap,
    ttf_path: Path,
    dest: Path,
    failures: FailureLog,
) -> bool:
    """Produce one non-TrueType output; returns whether it exists."""
    existing = font_files.find(entry)
    try:
        if (
            analysis.action is FontAction.PRESERVE
            and existing is not None
            and not existing.is_remote
            and Path(existing.path).is_file()
        ):
            if not same_file(existing.path, dest):
                shutil.copyfile(existing.path, dest)
        else:
            convert_from_truetype(ttf_path, dest, entry.format)
    except (FontEngineError, OSError) as e:
        failures.record(FailureEvent.FORMAT_OUTPUT_FAILED, str(dest), str(e))
        return False
    return dest.exists()


def generate_srcs(
    options: ResolvedOptions,
    font_files: FontFileMap,
    analysis: FontAnalysis,
    old_srcs: list[str],
    failures: FailureLog | None = None,
) -> list[str]:
    """
    Carry out an analysis and return the rule's new ``src`` values.

    Args:
        options: Resolved run options
        font_files: Files referenced by the rule
        analysis: Result of analyze_font; its action may be downgraded
        old_srcs: Original ``src`` values, returned when the font is ignored
        failures: Where recoverable failures are recorded

    Returns:
        New ``src`` values, in the order they are appended to the rule
    """
    if failures is None:
        failures = FailureLog()

    try:
        if analysis.action is FontAction.IGNORE:
            return list(old_srcs)

        options.absolute_to.mkdir(parents=True, exist_ok=True)
        protected = [Path(path) for path in font_files.local_paths() if Path(path).is_file()]

        ttf_dest = truetype_destination(options, analysis)
        base = _strip_extension(ttf_dest.name)
        destinations = [ttf_dest] + [
            options.absolute_to / f"{base}.{entry.extension}" for entry in options.format_output_order
        ]
        _guard_sources(options, analysis, destinations, protected, failures)
        logger.debug(f"{analysis.action.value}: writing {ttf_dest}")

        written = _writable_path(analysis, ttf_dest, protected)
        _write_truetype(analysis, written, failures)

        ttf_dest = written
        if written.exists():
            ttf_dest = finalize_output(written, base, TRUETYPE_ENTRY, options, protected)

        if not ttf_dest.exists():
            failures.record(FailureEvent.OUTPUT_MISSING, str(ttf_dest))
            analysis.downgrade(FailureEvent.OUTPUT_MISSING)
            return list(old_srcs)

        new_srcs = []
        clauses = []
        for entry in options.format_output_order:
            if entry.format is FontFormat.TRUETYPE:
                dest = ttf_dest
            else:
                written = _writable_path(analysis, options.absolute_to / f"{base}.{entry.extension}", protected)
                if not _write_format(entry, analysis, font_files, ttf_dest, written, failures):
                    continue
                dest = finalize_output(written, base, entry, options, protected)

            if not dest.exists():
                continue
            clauses.append(source_url(options, dest, entry.format, failures=failures))
            if entry.format is FontFormat.EMBEDDED_OPENTYPE:
                new_srcs.append(source_url(options, dest, entry.format, bare=True, failures=failures))

        new_srcs.append(", ".join(clauses))
        return new_srcs
    finally:
        if analysis.ttf_src_is_temporary and analysis.ttf_src_path is not None:
            force_remove(analysis.ttf_src_path)
