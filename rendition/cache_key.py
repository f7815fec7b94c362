"""
Content-addressed cache keys.

A key is a digest of the source file's bytes and one artifact's encoding
parameters. Paths, album names, titles and image numbers are deliberately not
part of it, so renaming or renumbering never invalidates cached work.
"""

import hashlib
import logging
import threading
from typing import Dict, Optional

from .encoding_spec import EncodingSpec
from .errors import SourceUnreadable


CHUNK_SIZE = 1024 * 1024


def hash_bytes(data: bytes) -> str:
    """SHA-256 hex digest of in-memory bytes."""
    return hashlib.sha256(data).hexdigest()


def hash_file(path: str) -> str:
    """SHA-256 hex digest of a file's contents."""
    sha256_hash = hashlib.sha256()
    try:
        with open(path, 'rb') as f:
            for block in iter(lambda: f.read(CHUNK_SIZE), b''):
                sha256_hash.update(block)
    except OSError as e:
        raise SourceUnreadable(f"Cannot read source ({e.strerror or e})", path) from e
    return sha256_hash.hexdigest()


def derive_key(source_hash: str, spec: EncodingSpec) -> str:
    """Cache key for one artifact of one source."""
    hasher = hashlib.sha256()
    hasher.update(source_hash.encode('ascii'))
    hasher.update(b'\x00')
    hasher.update(spec.canonical())
    return hasher.hexdigest()


class SourceHasher:
    """
    Per-run memo of source content hashes.

    Each source is hashed at most once even when several workers ask for it
    at the same time (one job per responsive size plus the thumbnail).
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self._hashes: Dict[str, str] = {}
        self._path_locks: Dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    def hash(self, path: str) -> str:
        """Content hash for path, computed on first request."""
        with self._lock:
            cached = self._hashes.get(path)
            if cached is not None:
                return cached
            path_lock = self._path_locks.setdefault(path, threading.Lock())

        with path_lock:
            with self._lock:
                cached = self._hashes.get(path)
            if cached is not None:
                return cached

            self.logger.debug(f"Hashing source: {path}")
            digest = hash_file(path)

            with self._lock:
                self._hashes[path] = digest
            return digest

    def __len__(self) -> int:
        with self._lock:
            return len(self._hashes)
