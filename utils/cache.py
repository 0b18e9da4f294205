"""In-memory caches for dataset files and external feeds.

``TTLCache`` holds values for a fixed number of seconds (news feed,
reference lists).  ``FileCache`` keys parsed dataset files on their
modification time so an admin upload is visible on the next request
without a restart.
"""

import threading
import time
from pathlib import Path
from typing import Any, Callable


class TTLCache:
    """Thread-safe in-memory cache with time-to-live expiry.

    When the cache is full the entry closest to expiry is evicted.

    Usage::

        cache = TTLCache(maxsize=16, ttl_seconds=3600)
        cache.set("news", articles)
        cache.get("news")  # articles, or None once expired
    """

    def __init__(self, maxsize: int = 128, ttl_seconds: float = 300.0) -> None:
        self._maxsize = maxsize
        self._ttl = ttl_seconds
        # key -> (value, expires_at)
        self._store: dict[Any, tuple[Any, float]] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: Any) -> Any | None:
        """Return the cached value for *key*, or ``None`` if absent or expired."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self._misses += 1
                return None
            value, expires_at = entry
            if time.monotonic() > expires_at:
                del self._store[key]
                self._misses += 1
                return None
            self._hits += 1
            return value

    def set(self, key: Any, value: Any) -> None:
        """Store *value* under *key* for the configured TTL."""
        expires_at = time.monotonic() + self._ttl
        with self._lock:
            if key not in self._store and len(self._store) >= self._maxsize:
                soonest = min(self._store, key=lambda k: self._store[k][1])
                del self._store[soonest]
            self._store[key] = (value, expires_at)

    def delete(self, key: Any) -> None:
        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
            self._hits = 0
            self._misses = 0

    def stats(self) -> dict[str, int]:
        """Return ``hits``, ``misses`` and live ``size``."""
        with self._lock:
            now = time.monotonic()
            for k in [k for k, (_, exp) in self._store.items() if now > exp]:
                del self._store[k]
            return {
                "hits": self._hits,
                "misses": self._misses,
                "size": len(self._store),
            }


class FileCache:
    """Cache the parsed contents of files, invalidated on mtime or size change.

    Usage::

        cache = FileCache()
        records = cache.get_or_load(path, parse_json_file)
    """

    def __init__(self) -> None:
        # path -> ((mtime_ns, size), value)
        self._store: dict[Path, tuple[tuple[int, int], Any]] = {}
        self._lock = threading.Lock()

    def get_or_load(self, path: Path, loader: Callable[[Path], Any]) -> Any:
        """Return the cached value for *path*, calling *loader* when stale.

        Raises whatever *loader* or ``Path.stat`` raise; nothing is cached
        on failure.
        """
        st = path.stat()
        signature = (st.st_mtime_ns, st.st_size)
        with self._lock:
            entry = self._store.get(path)
            if entry is not None and entry[0] == signature:
                return entry[1]
        value = loader(path)
        with self._lock:
            self._store[path] = (signature, value)
        return value

    def invalidate(self, path: Path | None = None) -> None:
        """Drop one path, or everything when *path* is None."""
        with self._lock:
            if path is None:
                self._store.clear()
            else:
                self._store.pop(path, None)
