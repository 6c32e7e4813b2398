"""
Local Cache - fast key-value store in front of the remote store.

Values are JSON documents. With a path the cache is mirrored to a JSON file
after every write, without one it lives in memory only. Reads and writes
always copy, so callers never share objects with the cache.

The file write is synchronous and blocks the event loop for its duration.
That is acceptable for the single operator session this cache serves, and
it is what makes a save visible to the next load before any remote call.
"""
import copy
import json
import logging
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


class LocalCache:
    """Key-value cache keyed by deterministic strings."""

    def __init__(self, path: Optional[Path] = None):
        self.path = path
        self._data: dict[str, Any] = {}
        if self.path and self.path.exists():
            self._load()

    def _load(self):
        """Load cache entries from the JSON file."""
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable cache file %s: %s", self.path, e)
            return
        if isinstance(data, dict):
            self._data = data

    def _flush(self):
        """Write all entries back to the JSON file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + '.tmp')
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(self._data, f, ensure_ascii=False, indent=2)
        tmp_path.replace(self.path)

    def get(self, key: str) -> Optional[Any]:
        """Cached value for key, or None on a miss."""
        if key not in self._data:
            return None
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        """Store a value. Raises OSError if the backing file cannot be written."""
        # Serialise first so unserialisable values never reach the cache
        encoded = json.loads(json.dumps(value))
        previous = self._data.get(key)
        had_key = key in self._data
        self._data[key] = encoded
        if self.path:
            try:
                self._flush()
            except OSError:
                if had_key:
                    self._data[key] = previous
                else:
                    del self._data[key]
                raise

    def keys(self, prefix: str = '') -> list[str]:
        return sorted(k for k in self._data if k.startswith(prefix))

    def __contains__(self, key: str) -> bool:
        return key in self._data
