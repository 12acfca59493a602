"""
purge-glyphs: subset web fonts down to the glyphs a stylesheet actually uses.
"""

__version__ = "0.3.0"

from purge_glyphs.pipeline.runner import PurgeResult, RuleOutcome, purge_css, purge_file  # noqa: E402

__all__ = ["PurgeResult", "RuleOutcome", "__version__", "purge_css", "purge_file"]
