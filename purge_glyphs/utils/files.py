"""
Filesystem helpers for generated font files.
"""

import re
from collections.abc import Iterable
from pathlib import Path

from purge_glyphs.utils.logging import logger


def force_remove(path: Path) -> None:
    """Delete a file if it exists; a failed delete is only logged."""
    path = Path(path)
    if path.is_file():
        try:
            path.unlink()
        except OSError as e:
            logger.warning(f"Failed to remove {path}: {e}")


def same_file(a: Path, b: Path) -> bool:
    a, b = Path(a), Path(b)
    return a.exists() and b.exists() and a.resolve() == b.resolve()


def clean_similar_files(
    keep: Path,
    root: str,
    extension: str,
    protected: Iterable[Path] = (),
) -> list[Path]:
    """
    Delete earlier outputs of the same font next to ``keep``.

    Matches ``<root><extension>`` and ``<root>-<8 hex><extension>`` in the
    directory of ``keep``; ``keep`` itself and protected files survive.

    Args:
        keep: File just written
        root: Base name shared by the outputs, e.g. ``roboto``
        extension: Extension with its dot, e.g. ``.woff2``
        protected: Files never deleted (source fonts)

    Returns:
        Paths removed
    """
    keep = Path(keep)
    directory = keep.parent
    pattern = re.compile(rf"{re.escape(root)}(-[0-9a-f]{{8}})?{re.escape(extension)}")
    spared = {Path(p).resolve() for p in protected} | {keep.resolve()}

    removed = []
    for candidate in sorted(directory.iterdir()):
        if not pattern.fullmatch(candidate.name) or candidate.resolve() in spared:
            continue
        force_remove(candidate)
        removed.append(candidate)

    if removed:
        logger.debug(f"Removed {len(removed)} stale {extension} files for {root}")
    return removed
