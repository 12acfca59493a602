"""
Main CLI entry point for purge-glyphs.
"""

from pathlib import Path

import click

from purge_glyphs import __version__
from purge_glyphs.config.options import CacheBusting, ScanType


def _glyph_option(value: str) -> str | int:
    """A single character stays a glyph; anything longer is a code point."""
    if len(value) == 1:
        return value
    try:
        return int(value[2:], 16) if value[:2].upper() == "U+" else int(value, 0)
    except ValueError:
        raise click.BadParameter(f"{value!r} is neither a character nor a code point") from None


def _describe(code_point: int) -> str:
    char = chr(code_point)
    return f"U+{code_point:04X}  {char if char.isprintable() else ''}".rstrip()


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging.")
def cli(verbose):
    """Subset web fonts to the glyphs a stylesheet uses."""
    from purge_glyphs.utils.logging import set_verbose

    set_verbose(verbose)


@cli.command()
@click.argument("stylesheet", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path), help="Write CSS here instead of stdout.")
@click.option("--to", "to", type=str, default=None, help="Font output directory, relative to the output CSS.")
@click.option(
    "--cache-busting",
    type=click.Choice([mode.value for mode in CacheBusting]),
    default=None,
    help="Cache-busting mode (default: file).",
)
@click.option("--ignore-font", multiple=True, help="Font family left untouched.")
@click.option("--preserve-font", multiple=True, help="Font family copied without subsetting.")
@click.option("--purge-only-font", multiple=True, help="Only subset these font families.")
@click.option("--preserve-glyph", multiple=True, help="Glyph always kept: a character, U+XXXX or a number.")
@click.option("--preserve-ascii", is_flag=True, help="Always keep code points 0-254.")
@click.option("--follow-urls", is_flag=True, help="Download fonts referenced by http(s) URLs.")
@click.option("--ignore-on-zero-match", is_flag=True, help="Leave fonts with no used glyphs untouched.")
@click.option("--content", "content_globs", multiple=True, help="Glob of content files scanned for glyphs.")
@click.option(
    "--scan-type",
    type=click.Choice([scan.value for scan in ScanType]),
    default=ScanType.UNESCAPED.value,
    help="How content files are scanned.",
)
@click.option("--config", "config_file", type=click.Path(exists=True, dir_okay=False, path_type=Path), help="JSON options file.")
def run(
    stylesheet,
    output,
    to,
    cache_busting,
    ignore_font,
    preserve_font,
    purge_only_font,
    preserve_glyph,
    preserve_ascii,
    follow_urls,
    ignore_on_zero_match,
    content_globs,
    scan_type,
    config_file,
):
    """Subset the fonts of STYLESHEET and rewrite its @font-face rules."""
    from purge_glyphs.config.options import load_config_file
    from purge_glyphs.core.errors import ConfigError
    from purge_glyphs.pipeline.runner import purge_file

    try:
        options = load_config_file(config_file) if config_file else {}
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    overrides = {
        "to": to,
        "cache_busting": cache_busting,
        "ignore_fonts": list(ignore_font) or None,
        "preserve_fonts": list(preserve_font) or None,
        "purge_only_fonts": list(purge_only_font) or None,
        "preserve_glyphs": [_glyph_option(g) for g in preserve_glyph] or None,
        "preserve_ascii": True if preserve_ascii else None,
        "ignore_urls": False if follow_urls else None,
        "ignore_all_on_zero_matching_glyphs": True if ignore_on_zero_match else None,
    }
    if content_globs:
        overrides["content"] = list(options.get("content") or []) + [
            {"files": list(content_globs), "scan_type": scan_type}
        ]
    options.update({key: value for key, value in overrides.items() if value is not None})

    try:
        result = purge_file(stylesheet, output, options)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    if output is None:
        click.echo(result.css, nl=False)

    for outcome in result.outcomes:
        click.echo(f"{outcome.font_family or '<unnamed>'}: {outcome.action.value}", err=True)
    if result.failures:
        click.echo(f"{len(result.failures)} recovered failures", err=True)


@cli.command()
@click.argument("stylesheet", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--content", "content_globs", multiple=True, help="Glob of content files scanned for glyphs.")
@click.option(
    "--scan-type",
    type=click.Choice([scan.value for scan in ScanType]),
    default=ScanType.UNESCAPED.value,
)
def glyphs(stylesheet, content_globs, scan_type):
    """List the glyphs STYLESHEET and content files require."""
    from purge_glyphs.config.options import ContentSource
    from purge_glyphs.core.css import Stylesheet
    from purge_glyphs.core.glyphs import collect_glyphs

    sources = [ContentSource(list(content_globs), scan_type=scan_type)] if content_globs else []
    sheet = Stylesheet.from_file(stylesheet)
    found = collect_glyphs(sheet.declaration_values("content"), sources)

    for code_point in sorted(ord(glyph) for glyph in found):
        click.echo(_describe(code_point))


@cli.command()
@click.argument("font", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def inspect(font):
    """List the code points FONT has glyphs for."""
    from purge_glyphs.core.errors import FontEngineError
    from purge_glyphs.core.font_io import get_code_points

    try:
        code_points = get_code_points(font)
    except FontEngineError as e:
        raise click.ClickException(str(e)) from e

    for code_point in code_points:
        click.echo(_describe(code_point))
    click.echo(f"{len(code_points)} glyphs", err=True)


if __name__ == "__main__":
    cli()
