"""
Expiring key-value cache with pluggable storage backends.

``MemoryStore`` keeps entries for the process lifetime (the proxy server
uses it). ``JsonFileStore`` persists entries in a single JSON file, the
command-line counterpart of browser local storage. Caching is best-effort:
storage failures are logged and never propagated.
"""

import json
import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Protocol

from headoffice.core.models import CacheEntry


logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 30 * 60


class StorageBackend(Protocol):
    """Raw storage for serialized cache entries."""

    def read(self, key: str) -> Optional[Dict[str, Any]]:
        ...

    def write(self, key: str, entry: Dict[str, Any]) -> None:
        ...

    def delete(self, key: str) -> None:
        ...

    def clear(self) -> None:
        ...


class MemoryStore:
    """In-process dictionary backend."""

    def __init__(self):
        self._entries: Dict[str, Dict[str, Any]] = {}

    def read(self, key: str) -> Optional[Dict[str, Any]]:
        return self._entries.get(key)

    def write(self, key: str, entry: Dict[str, Any]) -> None:
        self._entries[key] = entry

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class JsonFileStore:
    """
    JSON file backend.

    The whole file is read on every access and rewritten on every change,
    which is fine for the handful of entries a lookup session produces.
    """

    def __init__(self, path: str):
        """
        Initialize the file store.

        Args:
            path: Location of the JSON file; parent directories are created
                on first write
        """
        self.path = Path(path)

    def _load(self) -> Dict[str, Dict[str, Any]]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as file:
            data = json.load(file)
        if not isinstance(data, dict):
            raise ValueError(f"Cache file {self.path} does not contain a JSON object")
        return data

    def _save(self, data: Dict[str, Dict[str, Any]]) -> None:
        text = json.dumps(data)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as file:
            file.write(text)

    def read(self, key: str) -> Optional[Dict[str, Any]]:
        return self._load().get(key)

    def write(self, key: str, entry: Dict[str, Any]) -> None:
        try:
            data = self._load()
        except ValueError as e:
            logger.warning(f"Replacing unreadable cache file {self.path}: {e}")
            data = {}
        data[key] = entry
        self._save(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._save(data)

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()


class ExpiringCache:
    """
    Key-value cache whose entries expire after a time-to-live.

    A read past expiry evicts the entry and reports it as absent.
    """

    def __init__(self, backend: Optional[StorageBackend] = None,
                 ttl: float = DEFAULT_TTL_SECONDS,
                 clock: Callable[[], float] = time.time):
        """
        Initialize the cache.

        Args:
            backend: Storage backend (defaults to MemoryStore)
            ttl: Default time-to-live in seconds
            clock: Source of the current epoch time
        """
        self.backend = backend if backend is not None else MemoryStore()
        self.ttl = ttl
        self._clock = clock

    def get(self, key: str) -> Optional[Any]:
        """
        Look up a cached value.

        Args:
            key: Cache key

        Returns:
            The stored value, or None if absent, expired or unreadable
        """
        try:
            raw = self.backend.read(key)
            if raw is None:
                return None
            entry = CacheEntry.from_dict(raw)
            if entry.is_expired(self._clock()):
                self.backend.delete(key)
                return None
            return entry.value
        except (OSError, ValueError, TypeError, KeyError) as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """
        Store a value.

        Args:
            key: Cache key
            value: JSON-serializable value
            ttl: Time-to-live in seconds (defaults to the cache TTL)
        """
        expires_at = self._clock() + (self.ttl if ttl is None else ttl)
        try:
            self.backend.write(key, CacheEntry(value=value, expires_at=expires_at).to_dict())
        except (OSError, ValueError, TypeError) as e:
            logger.warning(f"Cache write failed for {key}: {e}")

    def clear(self) -> None:
        """Remove every entry."""
        try:
            self.backend.clear()
        except OSError as e:
            logger.warning(f"Cache clear failed: {e}")


def cache_key(prefix: str, lookup: str) -> str:
    """Build a provider-prefixed, lower-cased cache key."""
    return f"{prefix}:{lookup.lower()}"
