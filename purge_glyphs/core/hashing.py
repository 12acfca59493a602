"""
Content hashing for cache-busted font names and URLs.
"""

import hashlib
from pathlib import Path

HASH_LENGTH = 8
CHUNK_SIZE = 1 << 16


def file_digest(path: Path, algorithm: str = "sha256") -> str:
    """Hex digest of a file's contents."""
    digest = hashlib.new(algorithm)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def file_hash(path: Path, algorithm: str = "sha256") -> str:
    """Last eight hex characters of the file's digest."""
    return file_digest(path, algorithm)[-HASH_LENGTH:]
