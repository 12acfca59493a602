"""
Shared logging configuration for purge-glyphs.
"""

import logging

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[logging.StreamHandler()],
)

logger = logging.getLogger("purge_glyphs")


def set_verbose(verbose: bool) -> None:
    """Switch purge-glyphs logging between INFO and DEBUG."""
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
