"""
Exception types raised by purge-glyphs.
"""


class PurgeGlyphsError(Exception):
    """Base class for all purge-glyphs errors."""


class ConfigError(PurgeGlyphsError):
    """Raised when options or a config file cannot be resolved."""


class FontEngineError(PurgeGlyphsError):
    """Raised when a font cannot be read, converted or subsetted."""


class DownloadError(PurgeGlyphsError):
    """Raised when a remote font cannot be fetched."""
