"""
Query Cache.

In-process TTL cache for remote reads.  Repositories key entries as
``"{table}-{json(options)}"`` via :func:`make_key`; concurrent loads of
the same key share one in-flight request instead of hitting Supabase
twice.  Writes call :meth:`QueryCache.invalidate` with the table name.

Thread-safe: a single lock guards the entry map and the pending map, and
loaders run outside the lock.
"""

from __future__ import annotations

import json
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Optional

from commission_engine.logger import StructuredLogger

__all__ = ["QueryCache", "make_key"]

DEFAULT_TTL_S: float = 60.0


def make_key(table: str, options: Optional[dict[str, Any]] = None) -> str:
    """Build the cache key of a table read with its query options."""
    return f"{table}-{json.dumps(options or {}, sort_keys=True, default=str)}"


@dataclass
class _Entry:
    value: Any
    expires_at: float


class QueryCache:
    """TTL cache with pending-request de-duplication.

    Args:
        default_ttl: Seconds an entry lives when ``set`` gets no ``ttl``.
        clock: Monotonic time source in seconds; injectable for tests.
        logger: Optional logger for hit/miss/invalidation debug lines.
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_S,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[StructuredLogger] = None,
    ) -> None:
        self._default_ttl = default_ttl
        self._clock = clock
        self._logger = logger
        self._lock = threading.Lock()
        self._entries: dict[str, _Entry] = {}
        self._pending: dict[str, Future[Any]] = {}

    def get(self, key: str) -> Optional[Any]:
        """Return the live value for *key*, or ``None`` when absent or expired."""
        with self._lock:
            return self._get_locked(key)

    def _get_locked(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """Store *value* under *key* for *ttl* seconds."""
        lifetime = self._default_ttl if ttl is None else ttl
        with self._lock:
            self._entries[key] = _Entry(value=value, expires_at=self._clock() + lifetime)

    def invalidate(self, pattern: Optional[str] = None) -> int:
        """Drop entries whose key contains *pattern*; all entries when omitted.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            if pattern is None:
                removed = len(self._entries)
                self._entries.clear()
            else:
                doomed = [k for k in self._entries if pattern in k]
                for key in doomed:
                    del self._entries[key]
                removed = len(doomed)

        if self._logger is not None and removed:
            self._logger.debug("Cache invalidated %d entries (pattern=%s)", removed, pattern)
        return removed

    def get_or_load(
        self,
        key: str,
        loader: Callable[[], Any],
        ttl: Optional[float] = None,
    ) -> Any:
        """Return the cached value or run *loader* once for all waiting callers.

        A caller arriving while another thread is loading the same key
        waits on that load's result.  A failed load is not cached; its
        exception propagates to every waiter.
        """
        with self._lock:
            cached = self._get_locked(key)
            if cached is not None:
                return cached
            pending = self._pending.get(key)
            if pending is None:
                future: Future[Any] = Future()
                self._pending[key] = future
                owner = True
            else:
                future = pending
                owner = False

        if not owner:
            return future.result()

        if self._logger is not None:
            self._logger.debug("Cache miss: %s", key)
        try:
            value = loader()
        except BaseException as exc:
            with self._lock:
                self._pending.pop(key, None)
            future.set_exception(exc)
            raise

        self.set(key, value, ttl)
        with self._lock:
            self._pending.pop(key, None)
        future.set_result(value)
        return value
