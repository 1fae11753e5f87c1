"""
Database Abstraction Layer.

Two stores back the commission engine:

- **Supabase (cloud PostgreSQL)**: the dashboard's source of truth for
  proposals, employees, budget catalogs and system configuration.  Only
  read by this package, always through a repository and the query cache.

- **SQLite (local)**: the bonus-fund ledger.  Holds the processed
  contract set and the append-only bonus transaction history, plus the
  audit log.  Payments write here inside :meth:`batch_write` while
  holding :attr:`write_lock`, which makes a payment atomic and
  serialized.

This module only manages the raw connections; it contains no query logic.

Usage (dependency injection at startup)::

    db = DatabaseManager(
        supabase_url=config.SUPABASE_URL,
        supabase_key=config.SUPABASE_ANON_KEY.get_secret_value(),
        sqlite_path=Path(config.SQLITE_PATH),
        logger=StructuredLogger(name="database"),
    )
"""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional, Union

from supabase import Client as SupabaseClient
from supabase import create_client

from commission_engine.logger import StructuredLogger


class DatabaseManager:
    """Manages the Supabase client and the local SQLite connection.

    When ``supabase_url`` or ``supabase_key`` is empty the Supabase client
    is not created.  Repositories catch the ``RuntimeError`` raised by
    :attr:`supabase` and fall back to an empty result.

    Parameters
    ----------
    supabase_url:
        The Supabase project URL.  May be empty (offline).
    supabase_key:
        The Supabase anonymous key.  May be empty (offline).
    sqlite_path:
        Filesystem path for the local SQLite file, or ``":memory:"``.
    logger:
        A ``StructuredLogger`` instance.
    """

    def __init__(
        self,
        supabase_url: str,
        supabase_key: str,
        sqlite_path: Union[Path, str],
        logger: StructuredLogger,
    ) -> None:
        self._logger: StructuredLogger = logger
        self._write_lock: threading.RLock = threading.RLock()
        self._in_batch: bool = False

        self._supabase: Optional[SupabaseClient] = None
        if supabase_url and supabase_key:
            try:
                self._supabase = create_client(supabase_url, supabase_key)
                self._logger.info("Supabase client initialized.")
            except (ValueError, TypeError) as exc:
                self._logger.warning(
                    "Supabase credential format error: %s. Running in offline mode.",
                    exc,
                )
            except Exception as exc:
                self._logger.error(
                    "Unexpected Supabase initialization failure: %s. "
                    "Running in offline mode.",
                    exc,
                    exc_info=True,
                )
        else:
            self._logger.warning(
                "Supabase credentials not configured; running in offline mode."
            )

        self._sqlite_conn: sqlite3.Connection = self._connect_sqlite(sqlite_path)

    # ------------------------------------------------------------------
    # Public properties
    # ------------------------------------------------------------------

    @property
    def supabase(self) -> SupabaseClient:
        """Return the initialised Supabase client.

        Raises
        ------
        RuntimeError
            If the client was not initialised (offline mode).
        """
        if self._supabase is None:
            raise RuntimeError(
                "Supabase client is not initialised. "
                "The engine is running in offline mode."
            )
        return self._supabase

    @property
    def is_online(self) -> bool:
        """``True`` when the Supabase client is available."""
        return self._supabase is not None

    @property
    def sqlite(self) -> sqlite3.Connection:
        """Return the SQLite connection."""
        return self._sqlite_conn

    @property
    def write_lock(self) -> threading.RLock:
        """Lock serializing every SQLite write.

        A bonus payment holds it for the whole read-check-write sequence
        so two operators can never drain the same pool twice.
        """
        return self._write_lock

    @property
    def in_batch(self) -> bool:
        """``True`` while a :meth:`batch_write` context is active."""
        return self._in_batch

    @contextmanager
    def batch_write(self) -> Generator[None, None, None]:
        """Defer SQLite commits to a single commit at the end of the block.

        Repository ``_commit()`` calls are no-ops while the context is
        active.  On exception the transaction is rolled back and the
        error re-raised, so either every write in the block lands or
        none does.

        Example::

            with db.write_lock, db.batch_write():
                repo.mark_processed(ids)
                repo.append_transactions(entries)
        """
        if self._in_batch:
            yield
            return

        self._in_batch = True
        try:
            yield
            self._sqlite_conn.commit()
            self._logger.debug("Batch write committed.")
        except Exception:
            self._sqlite_conn.rollback()
            self._logger.error(
                "Batch write rolled back due to exception.", exc_info=True,
            )
            raise
        finally:
            self._in_batch = False

    # ------------------------------------------------------------------
    # Lifecycle helpers
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the local SQLite connection.

        Safe to call multiple times.
        """
        with self._write_lock:
            try:
                self._sqlite_conn.close()
                self._logger.info("SQLite connection closed.")
            except sqlite3.ProgrammingError:
                pass

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _connect_sqlite(self, path: Union[Path, str]) -> sqlite3.Connection:
        """Open (or create) the SQLite database.

        Raises
        ------
        PermissionError
            If the OS denies access to the database file or its directory.
        """
        try:
            conn = sqlite3.connect(str(path), check_same_thread=False)
            conn.row_factory = sqlite3.Row
            if str(path) != ":memory:":
                conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA foreign_keys = ON;")
            self._logger.info("SQLite database opened at %s", path)
            return conn
        except PermissionError as exc:
            msg = (
                f"Cannot open the local database at '{path}'. "
                "The file or its directory may be read-only or locked by "
                "another process."
            )
            self._logger.error(msg)
            raise PermissionError(msg) from exc
