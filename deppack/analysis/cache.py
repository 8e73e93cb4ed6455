"""In-memory TTL cache of completed dependency maps."""

from __future__ import annotations

import hashlib
import json
import logging
import time
from dataclasses import replace
from typing import Callable

from deppack.errors import CacheError
from deppack.models import CacheEntry, CacheStats, DependencyMap

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5 * 60.0


def compute_hash(dependencies: DependencyMap) -> str:
    payload = json.dumps(dependencies, sort_keys=True)
    return hashlib.sha256(payload.encode()).hexdigest()


class DependencyCache:
    """Process-scoped cache of dependency maps.

    Entries are written only when the key is absent unless ``force`` is
    passed, so repeated writes never refresh a live entry; it lives until
    it expires, is deleted, or the cache is cleared.

    Args:
        timeout: Default TTL in seconds.
        clock: Time source returning seconds; ``time.time`` by default.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        debug: bool = False,
        clock: Callable[[], float] = time.time,
    ):
        self.timeout = timeout
        self.debug = debug
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._stats = CacheStats()
        self._entry_timeout = timeout
        self.is_initialized = False

    def _log(self, message: str, *args) -> None:
        if self.debug:
            logger.debug(message, *args)

    def _require_initialized(self, operation: str) -> None:
        if not self.is_initialized:
            raise CacheError("Cache not initialized", operation)

    def _fail(self, operation: str, error: Exception, key: str | None = None) -> CacheError:
        self._stats.errors += 1
        err = CacheError(f"Cache {operation} failed: {error}", operation, key)
        logger.error(err.message)
        return err

    def _expired(self, entry: CacheEntry, timeout: float | None) -> bool:
        limit = timeout if timeout is not None else self.timeout
        return self._clock() - entry.timestamp > limit

    # ── Lifecycle ────────────────────────────────────────────

    def initialize(self, force: bool = False, timeout: float | None = None) -> None:
        if self.is_initialized and not force:
            self._log("DependencyCache already initialized")
            return
        if timeout is not None:
            self._entry_timeout = timeout
        self._entries.clear()
        self._stats = CacheStats()
        self.is_initialized = True
        self._log("DependencyCache initialization complete")

    def cleanup(self) -> None:
        self._entries.clear()
        self._stats = CacheStats()
        self.is_initialized = False

    # ── Operations ───────────────────────────────────────────

    def get(self, key: str, timeout: float | None = None) -> DependencyMap | None:
        self._require_initialized("read")
        try:
            entry = self._entries.get(key)
            if entry is None:
                self._stats.misses += 1
                self._log("Cache miss for key: %s", key)
                return None

            if self._expired(entry, timeout):
                del self._entries[key]
                self._stats.invalidations += 1
                self._stats.misses += 1
                self._log("Cache entry expired for key: %s", key)
                return None

            self._stats.hits += 1
            self._log("Cache hit for key: %s", key)
            return {k: list(v) for k, v in entry.dependencies.items()}
        except (KeyError, TypeError) as e:
            raise self._fail("read", e, key) from e

    def set(
        self,
        key: str,
        dependencies: DependencyMap,
        force: bool = False,
        timeout: float | None = None,
    ) -> None:
        self._require_initialized("write")
        try:
            entry = CacheEntry(
                dependencies={k: list(v) for k, v in dependencies.items()},
                timestamp=self._clock(),
                hash=compute_hash(dependencies),
                timeout=timeout if timeout is not None else self._entry_timeout,
            )
            if force:
                self._log("Force writing cache entry for %s", key)
                self._entries[key] = entry
            elif key not in self._entries:
                self._entries[key] = entry
            self._update_stats()
        except (TypeError, ValueError) as e:
            raise self._fail("write", e, key) from e

    def has(self, key: str, timeout: float | None = None) -> bool:
        self._require_initialized("read")
        entry = self._entries.get(key)
        if entry is None:
            return False
        if self._expired(entry, timeout):
            del self._entries[key]
            self._stats.invalidations += 1
            return False
        return True

    def entry(self, key: str) -> CacheEntry | None:
        """Raw entry lookup without TTL checks or stat updates."""
        self._require_initialized("read")
        return self._entries.get(key)

    def delete(self, key: str) -> None:
        self._require_initialized("delete")
        if self._entries.pop(key, None) is not None:
            self._update_stats()
            self._log("Cache entry deleted for key: %s", key)

    def clear(self) -> None:
        self._require_initialized("clear")
        self._entries.clear()
        self._stats = CacheStats()
        self._log("Cache cleared")

    # ── Stats ────────────────────────────────────────────────

    def _update_stats(self) -> None:
        now = self._clock()
        entries = list(self._entries.values())
        self._stats.size = len(entries)
        if entries:
            self._stats.oldest_entry = min(e.timestamp for e in entries)
            self._stats.average_age = sum(now - e.timestamp for e in entries) / len(entries)
        else:
            self._stats.oldest_entry = None
            self._stats.average_age = 0.0

    def get_stats(self) -> CacheStats:
        self._update_stats()
        return replace(self._stats)

    def __len__(self) -> int:
        return len(self._entries)
