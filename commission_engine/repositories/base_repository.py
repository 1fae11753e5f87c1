"""
Base Repository.

Provides shared infrastructure for all repositories:
- DatabaseManager reference (Supabase + SQLite)
- Logger reference
- Cached, offline-tolerant Supabase reads
- Batch-aware SQLite commits
"""

from __future__ import annotations

import sqlite3
from typing import Any, Optional

from supabase import Client as SupabaseClient

from commission_engine.cache import QueryCache, make_key
from commission_engine.database import DatabaseManager
from commission_engine.logger import StructuredLogger

Row = dict[str, Any]


class BaseRepository:
    """Base class for all repositories. Receives dependencies via __init__."""

    TABLE: str = ""

    def __init__(
        self,
        db: DatabaseManager,
        logger: StructuredLogger,
        cache: Optional[QueryCache] = None,
    ) -> None:
        self._db = db
        self._logger = logger
        self._cache = cache

    @property
    def supabase(self) -> SupabaseClient:
        """Returns the Supabase client for cloud operations."""
        return self._db.supabase

    @property
    def sqlite(self) -> sqlite3.Connection:
        """Returns the SQLite connection for the local ledger."""
        return self._db.sqlite

    def _select(
        self,
        options: Optional[dict[str, Any]] = None,
        *,
        table: Optional[str] = None,
        operation_name: str,
    ) -> list[Row]:
        """Read rows from a Supabase table through the query cache.

        ``options`` supports ``eq`` (column -> value), ``in`` (column ->
        list), ``order`` (column) and ``desc`` (bool).  An unreachable or
        unconfigured store yields ``[]`` and a warning; failed reads are
        never cached.

        Parameters
        ----------
        options:
            Query options; also part of the cache key.
        table:
            Table to read; defaults to :attr:`TABLE`.
        operation_name:
            Human-readable label for log messages.
        """
        target = table or self.TABLE
        opts = options or {}

        def load() -> list[Row]:
            query = self.supabase.table(target).select("*")
            for column, value in opts.get("eq", {}).items():
                query = query.eq(column, value)
            for column, values in opts.get("in", {}).items():
                query = query.in_(column, list(values))
            if "order" in opts:
                query = query.order(opts["order"], desc=bool(opts.get("desc", False)))
            response = query.execute()
            return list(response.data or [])

        try:
            if self._cache is None:
                return load()
            return self._cache.get_or_load(make_key(target, opts), load)
        except Exception as exc:
            self._logger.warning(
                "Supabase unavailable for %s: %s", operation_name, exc
            )
            return []

    def _invalidate(self, table: Optional[str] = None) -> None:
        """Drop cached reads of *table* (defaults to :attr:`TABLE`) after a write."""
        if self._cache is not None:
            self._cache.invalidate(f"{table or self.TABLE}-")

    def _commit(self) -> None:
        """Commit the SQLite transaction unless a batch is active.

        When :meth:`DatabaseManager.batch_write` is active, this is a
        no-op; the batch context manager issues a single commit (or
        rollback) when the ``with`` block exits.

        All repository code should call ``self._commit()`` instead of
        ``self.sqlite.commit()`` so that batch writes work transparently.
        """
        if not self._db.in_batch:
            self.sqlite.commit()
