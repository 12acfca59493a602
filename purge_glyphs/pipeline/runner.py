"""
Purge pipeline orchestration.

Builds the glyph set once, then analyzes and rewrites every @font-face rule
in document order. A rule that fails keeps its original ``src`` values and
the run moves on to the next one.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from purge_glyphs.config.options import PurgeOptions, ResolvedOptions, resolve_options
from purge_glyphs.core.css import Stylesheet
from purge_glyphs.core.glyphs import collect_glyphs
from purge_glyphs.core.state import FailureEvent, FailureLog, FontAction, transition
from purge_glyphs.operations.analyze import Fetcher, analyze_font
from purge_glyphs.operations.download import download_url
from purge_glyphs.operations.generate import generate_srcs
from purge_glyphs.operations.rewrite import collect_font_face, rewrite_rule
from purge_glyphs.utils.logging import logger

OptionsLike = PurgeOptions | Mapping[str, Any] | None


@dataclass
class RuleOutcome:
    """What happened to one @font-face rule."""

    font_family: str
    action: FontAction
    src_values: list[str]


@dataclass
class PurgeResult:
    """Output of a purge run."""

    css: str
    outcomes: list[RuleOutcome] = field(default_factory=list)
    glyphs: frozenset[str] = frozenset()
    failures: FailureLog = field(default_factory=FailureLog)

    def actions(self) -> dict[str, FontAction]:
        """Final action per font family; later rules win on duplicates."""
        return {outcome.font_family: outcome.action for outcome in self.outcomes}


def purge_stylesheet(
    stylesheet: Stylesheet,
    options: ResolvedOptions,
    failures: FailureLog | None = None,
    fetch: Fetcher = download_url,
) -> PurgeResult:
    """
    Rewrite every @font-face rule of a parsed stylesheet in place.

    Args:
        stylesheet: Parsed stylesheet; its font-face rules are modified
        options: Resolved run options
        failures: Where recoverable failures are recorded
        fetch: Downloader for remote font sources

    Returns:
        PurgeResult with the serialized stylesheet
    """
    if failures is None:
        failures = FailureLog()

    options.absolute_to.mkdir(parents=True, exist_ok=True)

    glyphs = collect_glyphs(stylesheet.declaration_values("content"), options.content, failures)
    src_root = stylesheet.source_dir
    outcomes = []

    logger.info(f"Processing {len(stylesheet.font_face_rules)} @font-face rules")

    for rule in stylesheet.font_face_rules:
        record = collect_font_face(rule, src_root)
        name = record.font_family or "<unnamed>"
        action = FontAction.PROCESS

        try:
            analysis = analyze_font(options, glyphs, record.font_files, record.font_family, failures, fetch)
            action = analysis.action
            new_srcs = generate_srcs(options, record.font_files, analysis, record.old_src_values, failures)
            action = analysis.action
        except Exception as e:
            logger.error(f"{name} failed: {e}")
            failures.record(FailureEvent.RULE_FAILED, name, str(e))
            action = transition(action, FailureEvent.RULE_FAILED)
            new_srcs = list(record.old_src_values)

        rewrite_rule(rule, new_srcs, important=record.src_important)
        outcomes.append(RuleOutcome(record.font_family, action, new_srcs))
        logger.info(f"{name}: {action.value}")

    if failures.count():
        counts = ", ".join(f"{event.value}={n}" for event, n in failures.summary().items())
        logger.warning(f"Completed with {failures.count()} recovered failures ({counts})")

    return PurgeResult(stylesheet.serialize(), outcomes, glyphs, failures)


def purge_css(
    css_text: str,
    *,
    from_path: str | Path | None,
    to_path: str | Path | None = None,
    options: OptionsLike = None,
) -> PurgeResult:
    """
    Purge the fonts of a stylesheet given as text.

    Args:
        css_text: Stylesheet source
        from_path: Where the stylesheet was read from; relative font URLs
            resolve against its directory
        to_path: Where the result will be written, if known
        options: PurgeOptions or an option mapping

    Returns:
        PurgeResult holding the rewritten CSS

    Raises:
        ConfigError: If the options are invalid
    """
    resolved = resolve_options(options, from_path=from_path, to_path=to_path)
    stylesheet = Stylesheet(css_text, from_path)
    return purge_stylesheet(stylesheet, resolved)


def purge_file(
    css_path: str | Path,
    output_path: str | Path | None = None,
    options: OptionsLike = None,
) -> PurgeResult:
    """
    Purge the fonts of a stylesheet file.

    The rewritten CSS is written to ``output_path`` when one is given.
    """
    css_path = Path(css_path)
    result = purge_css(
        css_path.read_text(encoding="utf-8"),
        from_path=css_path,
        to_path=output_path,
        options=options,
    )

    if output_path is not None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(result.css, encoding="utf-8")
        logger.info(f"Wrote {output_path}")

    return result
