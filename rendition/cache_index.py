"""
CacheIndex - Persisted map from cache key to produced output files.

The index lives in `<output_dir>/.cache-manifest.json` so it travels with the
processed directory. Losing or corrupting it only costs re-encoding: a missing
file, unparseable JSON or a version mismatch all load as an empty index.

An entry is valid only while its output file exists. Each output path belongs
to at most one key, so re-encoding a path under new parameters evicts the old
key's claim on it.
"""

import json
import logging
import os
import tempfile
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Collection, Dict, List, Optional

from .errors import CacheCorruption


INDEX_FILENAME = '.cache-manifest.json'

# Bump to invalidate every existing index when the file format changes.
INDEX_VERSION = 2


@dataclass
class CacheEntry:
    """
    Outputs produced for one cache key.

    Attributes:
        key: Cache key (hex digest)
        outputs: Output path (relative to output_dir) -> ISO timestamp recorded
    """
    key: str
    outputs: Dict[str, str] = field(default_factory=dict)

    @property
    def paths(self) -> List[str]:
        return sorted(self.outputs)

    def to_dict(self) -> dict:
        return {'outputs': dict(self.outputs)}

    @classmethod
    def from_dict(cls, key: str, data: dict) -> 'CacheEntry':
        outputs = data['outputs']
        if not isinstance(outputs, dict):
            raise ValueError("outputs must be an object")
        return cls(key=key, outputs={str(p): str(t) for p, t in outputs.items()})


class CacheIndex:
    """
    Thread-safe cache index bound to one output directory.

    All access goes through a single lock; it is held only for dictionary
    updates and existence checks, never while encoding.
    """

    def __init__(
        self,
        output_dir: str,
        entries: Optional[Dict[str, CacheEntry]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize cache index.

        Args:
            output_dir: Directory that recorded output paths are relative to
            entries: Initial entries (normally from load())
            logger: Optional logger instance
        """
        self.output_dir = str(output_dir)
        self.logger = logger or logging.getLogger(__name__)
        self._entries: Dict[str, CacheEntry] = {}
        self._key_by_path: Dict[str, str] = {}
        self._lock = threading.Lock()
        self.dirty = False

        for entry in (entries or {}).values():
            for path in entry.paths:
                self._claim(entry.key, path, entry.outputs[path])

    @property
    def index_path(self) -> Path:
        return Path(self.output_dir) / INDEX_FILENAME

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def _exists(self, path: str) -> bool:
        return os.path.isfile(os.path.join(self.output_dir, path))

    def _claim(self, key: str, path: str, recorded_at: str) -> None:
        """Point path at key, removing it from whichever key held it before."""
        previous = self._key_by_path.get(path)
        if previous is not None and previous != key:
            self._release(previous, path)

        entry = self._entries.setdefault(key, CacheEntry(key=key))
        entry.outputs[path] = recorded_at
        self._key_by_path[path] = key

    def _release(self, key: str, path: str) -> None:
        entry = self._entries.get(key)
        if entry is None:
            return
        entry.outputs.pop(path, None)
        if self._key_by_path.get(path) == key:
            del self._key_by_path[path]
        if not entry.outputs:
            del self._entries[key]

    def lookup(self, key: str) -> Optional[CacheEntry]:
        """
        Get the entry for key with only outputs that still exist.

        Outputs deleted from disk are dropped from the index; if none remain,
        the whole entry is dropped and this is a miss.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            for path in entry.paths:
                if not self._exists(path):
                    self.logger.debug(f"Dropping stale cache record: {path}")
                    self._release(key, path)
                    self.dirty = True

            entry = self._entries.get(key)
            if entry is None:
                return None
            return CacheEntry(key=key, outputs=dict(entry.outputs))

    def record(self, key: str, path: str) -> None:
        """Record that path now holds the output for key."""
        with self._lock:
            self._claim(key, path, datetime.now().isoformat())
            self.dirty = True

    def find_any_existing_output_for(
        self,
        key: str,
        exclude: Collection[str] = ()
    ) -> Optional[str]:
        """
        Any existing output already produced for key, at whatever path.

        Args:
            key: Cache key
            exclude: Paths not to return (e.g. ones about to be rewritten)
        """
        entry = self.lookup(key)
        if entry is None:
            return None
        for path in entry.paths:
            if path not in exclude:
                return path
        return None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        with self._lock:
            return {
                'version': INDEX_VERSION,
                'entries': {
                    key: entry.to_dict()
                    for key, entry in sorted(self._entries.items())
                },
            }

    def save(self) -> None:
        """Write the index atomically (temp file + rename)."""
        data = self.to_dict()
        directory = Path(self.output_dir)
        directory.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(prefix=INDEX_FILENAME, suffix='.tmp', dir=str(directory))
        try:
            with os.fdopen(fd, 'w') as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.index_path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

        with self._lock:
            self.dirty = False
        self.logger.debug(f"Cache index saved: {len(data['entries'])} entries")

    @classmethod
    def empty(cls, output_dir: str, logger: Optional[logging.Logger] = None) -> 'CacheIndex':
        """Create an index with no entries."""
        return cls(output_dir, logger=logger)

    @classmethod
    def load(cls, output_dir: str, logger: Optional[logging.Logger] = None) -> 'CacheIndex':
        """
        Load the index for output_dir.

        Never raises for a bad index file: corruption is logged as a warning
        and treated as a full cache miss.
        """
        logger = logger or logging.getLogger(__name__)
        path = Path(output_dir) / INDEX_FILENAME

        if not path.exists():
            logger.debug(f"No cache index at {path}, starting empty")
            return cls.empty(output_dir, logger)

        try:
            entries = cls._parse(path, logger)
        except CacheCorruption as e:
            logger.warning(f"Ignoring cache index ({e}); all images will be re-encoded")
            return cls.empty(output_dir, logger)

        logger.debug(f"Loaded cache index: {len(entries)} entries")
        return cls(output_dir, entries=entries, logger=logger)

    @staticmethod
    def _parse(path: Path, logger: logging.Logger) -> Dict[str, CacheEntry]:
        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, ValueError) as e:
            raise CacheCorruption(f"unreadable ({e})", str(path)) from e

        if not isinstance(data, dict) or not isinstance(data.get('entries'), dict):
            raise CacheCorruption("unexpected structure", str(path))

        version = data.get('version')
        if version != INDEX_VERSION:
            raise CacheCorruption(f"version {version!r}, expected {INDEX_VERSION}", str(path))

        entries = {}
        skipped = 0
        for key, entry_data in data['entries'].items():
            try:
                entries[key] = CacheEntry.from_dict(key, entry_data)
            except (KeyError, TypeError, ValueError, AttributeError):
                skipped += 1

        if skipped:
            logger.warning(f"Skipped {skipped} malformed cache entries in {path}")

        return entries
