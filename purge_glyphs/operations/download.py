"""
Remote font download.

Fetches fonts referenced by absolute URLs in @font-face rules.
"""

from pathlib import Path
from urllib.parse import urlsplit

import requests

from purge_glyphs.core.errors import DownloadError
from purge_glyphs.utils.files import force_remove
from purge_glyphs.utils.logging import logger

DEFAULT_TIMEOUT = 90


def fetch_url(url: str, timeout: float = DEFAULT_TIMEOUT) -> bytes:
    """
    GET a URL and return the raw response body.

    Raises:
        DownloadError: On any request failure or non-2xx status
    """
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise DownloadError(f"Failed to download {url}: {e}") from e
    return response.content


def download_url(url: str, target: Path, timeout: float = DEFAULT_TIMEOUT) -> bool:
    """
    Download a file.

    Args:
        url: Absolute http(s) URL
        target: Where to write the body
        timeout: Request timeout in seconds

    Returns:
        True if successful, False if failed
    """
    logger.info(f"Downloading {url}")

    try:
        content = fetch_url(url, timeout)
    except DownloadError as e:
        logger.warning(str(e))
        return False

    force_remove(target)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(content)

    size = len(content) / 1024
    logger.info(f"Downloaded {target.name} ({size:.1f} KB)")
    return target.exists()


def download_file_name(url: str, extension: str) -> str:
    """
    Local file name for a downloaded font.

    The query and fragment are dropped, and ``.<extension>`` is appended
    unless the name already ends with it.
    """
    name = urlsplit(url).path.rsplit("/", 1)[-1] or "font"
    if not name.lower().endswith(f".{extension}"):
        name = f"{name}.{extension}"
    return name
