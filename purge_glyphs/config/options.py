"""
Option handling for a purge run.

``PurgeOptions`` mirrors the user-facing option surface; ``resolve_options``
turns it into the read-only ``ResolvedOptions`` bundle the pipeline consumes,
with output paths anchored to the stylesheet being processed.
"""

import hashlib
import json
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any

from purge_glyphs.config.formats import (
    FORMAT_LOAD_ORDER,
    FORMAT_OUTPUT_ORDER,
    FormatEntry,
)
from purge_glyphs.core.errors import ConfigError
from purge_glyphs.utils.logging import logger

DEFAULT_OUTPUT_DIR = "fonts"

# Content scan bounds. The lower bound is decimal 20, not 0x20.
DEFAULT_MIN_CODE_POINT = 20
DEFAULT_MAX_CODE_POINT = 0xFFFFFFFF


class CacheBusting(str, Enum):
    """How emitted font URLs are made unique per content."""

    FILE = "file"  # base-<hash8>.ext
    QUERY = "query"  # base.ext?fonthash=<hash8>
    NONE = "none"

    @classmethod
    def parse(cls, value: Any) -> "CacheBusting":
        """Normalize a user value; anything unrecognized disables busting."""
        if value is None:
            return cls.FILE
        normalized = str(value).lower()
        if normalized in (cls.FILE.value, cls.QUERY.value):
            return cls(normalized)
        return cls.NONE


class ZeroMatchPolicy(Enum):
    """What to do with a font none of whose glyphs are required."""

    IGNORE = "ignore"
    PRESERVE = "preserve"
    PROCESS = "process"


class ScanType(str, Enum):
    """How external content files are read for glyphs."""

    UNESCAPED = "unescaped"
    HTML_ESCAPED = "html_escaped"

    @classmethod
    def parse(cls, value: Any) -> "ScanType":
        if value == cls.HTML_ESCAPED.value:
            return cls.HTML_ESCAPED
        return cls.UNESCAPED


def _code_point(value: int | str | None, default: int) -> int:
    """Resolve a bound given either as a code point or as a character."""
    if not value:
        return default
    if isinstance(value, str):
        return ord(value[0])
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    raise ConfigError(f"Invalid code point bound: {value!r}")


def _as_list(name: str, value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, (str, int)):
        return [value]
    if isinstance(value, Iterable):
        return list(value)
    raise ConfigError(f"Option {name!r} must be a list, got {type(value).__name__}")


@dataclass
class ContentSource:
    """A set of files scanned for required glyphs."""

    files: list[str]
    min: int | str | None = None
    max: int | str | None = None
    scan_type: ScanType = ScanType.UNESCAPED

    def __post_init__(self) -> None:
        self.files = [str(pattern) for pattern in _as_list("files", self.files)]
        self.scan_type = ScanType.parse(self.scan_type)
        _code_point(self.min, DEFAULT_MIN_CODE_POINT)
        _code_point(self.max, DEFAULT_MAX_CODE_POINT)

    @property
    def min_code_point(self) -> int:
        return _code_point(self.min, DEFAULT_MIN_CODE_POINT)

    @property
    def max_code_point(self) -> int:
        return _code_point(self.max, DEFAULT_MAX_CODE_POINT)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "ContentSource":
        if not isinstance(raw, Mapping):
            raise ConfigError(f"Content source must be a mapping, got {raw!r}")
        if "files" not in raw:
            raise ConfigError(f"Content source is missing 'files': {dict(raw)!r}")
        return cls(
            files=raw["files"],
            min=raw.get("min"),
            max=raw.get("max"),
            scan_type=raw.get("scan_type"),
        )


@dataclass
class PurgeOptions:
    """User options for a purge run. ``None`` never overrides a default."""

    purge_only_fonts: list[str] = field(default_factory=list)
    ignore_fonts: list[str] = field(default_factory=list)
    preserve_fonts: list[str] = field(default_factory=list)
    preserve_glyphs: list[str | int] = field(default_factory=list)
    content: list[ContentSource] = field(default_factory=list)
    ignore_urls: bool = True
    preserve_all_on_zero_matching_glyphs: bool = True
    ignore_all_on_zero_matching_glyphs: bool = False
    preserve_ascii: bool = False
    cache_busting: str = CacheBusting.FILE.value
    to: str | None = None
    download_timeout: float = 90.0
    hash_algorithm: str = "sha256"

    def __post_init__(self) -> None:
        self.purge_only_fonts = _as_list("purge_only_fonts", self.purge_only_fonts)
        self.ignore_fonts = _as_list("ignore_fonts", self.ignore_fonts)
        self.preserve_fonts = _as_list("preserve_fonts", self.preserve_fonts)
        self.preserve_glyphs = _as_list("preserve_glyphs", self.preserve_glyphs)
        self.content = [
            source if isinstance(source, ContentSource) else ContentSource.from_mapping(source)
            for source in _as_list("content", self.content)
        ]
        # Ignoring on zero matches switches preserving off, never the reverse
        if self.ignore_all_on_zero_matching_glyphs:
            self.preserve_all_on_zero_matching_glyphs = False

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "PurgeOptions":
        """Build options from a plain dictionary, e.g. a parsed config file."""
        if raw is None:
            return cls()
        if not isinstance(raw, Mapping):
            raise ConfigError(f"Options must be a mapping, got {type(raw).__name__}")

        known = {f.name for f in fields(cls)}
        for key in raw:
            if key not in known:
                logger.warning(f"Unknown option ignored: {key}")

        return cls(**{key: value for key, value in raw.items() if key in known and value is not None})

    @property
    def zero_match_policy(self) -> ZeroMatchPolicy:
        if self.ignore_all_on_zero_matching_glyphs:
            return ZeroMatchPolicy.IGNORE
        if self.preserve_all_on_zero_matching_glyphs:
            return ZeroMatchPolicy.PRESERVE
        return ZeroMatchPolicy.PROCESS


@dataclass(frozen=True)
class ResolvedOptions:
    """Options bound to a stylesheet; read-only for the rest of the run."""

    purge_only_fonts: frozenset[str]
    ignore_fonts: frozenset[str]
    preserve_fonts: frozenset[str]
    preserve_glyphs: tuple[str | int, ...]
    content: tuple[ContentSource, ...]
    ignore_urls: bool
    zero_match_policy: ZeroMatchPolicy
    preserve_ascii: bool
    cache_busting: CacheBusting
    relative_to: str
    absolute_to: Path
    download_timeout: float = 90.0
    hash_algorithm: str = "sha256"
    format_load_order: tuple[FormatEntry, ...] = FORMAT_LOAD_ORDER
    format_output_order: tuple[FormatEntry, ...] = FORMAT_OUTPUT_ORDER

    @property
    def follow_urls(self) -> bool:
        return not self.ignore_urls


def resolve_options(
    options: PurgeOptions | Mapping[str, Any] | None,
    *,
    from_path: str | Path | None,
    to_path: str | Path | None = None,
) -> ResolvedOptions:
    """
    Resolve user options against the stylesheet being processed.

    The output directory (``to``) is relative to the directory of the output
    stylesheet, falling back to the input stylesheet, unless it is absolute.

    Args:
        options: User options, as dataclass or plain mapping
        from_path: Path of the input stylesheet
        to_path: Path the rewritten stylesheet will be written to

    Returns:
        ResolvedOptions for the run

    Raises:
        ConfigError: If an option cannot be resolved
    """
    if not isinstance(options, PurgeOptions):
        options = PurgeOptions.from_mapping(options)

    if options.hash_algorithm not in hashlib.algorithms_available:
        raise ConfigError(f"Unknown hash algorithm: {options.hash_algorithm}")

    anchor = to_path or from_path
    base_dir = os.path.dirname(os.fspath(anchor)) if anchor else ""
    base_dir = (base_dir or ".").replace(os.sep, "/")

    relative_to = options.to.replace(os.sep, "/") if options.to else DEFAULT_OUTPUT_DIR
    if relative_to.startswith("/") or os.path.isabs(relative_to):
        absolute_to = relative_to
    else:
        absolute_to = f"{base_dir}/{relative_to}"

    return ResolvedOptions(
        purge_only_fonts=frozenset(options.purge_only_fonts),
        ignore_fonts=frozenset(options.ignore_fonts),
        preserve_fonts=frozenset(options.preserve_fonts),
        preserve_glyphs=tuple(options.preserve_glyphs),
        content=tuple(options.content),
        ignore_urls=bool(options.ignore_urls),
        zero_match_policy=options.zero_match_policy,
        preserve_ascii=bool(options.preserve_ascii),
        cache_busting=CacheBusting.parse(options.cache_busting),
        relative_to=relative_to,
        absolute_to=Path(absolute_to),
        download_timeout=float(options.download_timeout),
        hash_algorithm=options.hash_algorithm,
    )


def load_config_file(path: Path) -> dict[str, Any]:
    """
    Read options from a JSON file.

    Raises:
        ConfigError: If the file is unreadable or not a JSON object
    """
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")
    return raw
