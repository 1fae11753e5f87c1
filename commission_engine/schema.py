"""
Centralized SQLite Schema Initialization.

Defines the local bonus-fund ledger and provides a single entry point,
:func:`initialize_schema`, that creates all tables idempotently.  A
``schema_version`` table tracks the applied version so later changes can
be rolled forward.

Usage::

    from commission_engine.schema import initialize_schema

    initialize_schema(db.sqlite, StructuredLogger(name="schema"))
"""

from __future__ import annotations

import sqlite3

from commission_engine.logger import StructuredLogger

__all__ = ["CURRENT_SCHEMA_VERSION", "initialize_schema"]

CURRENT_SCHEMA_VERSION: int = 1

_TABLE_DEFINITIONS: list[str] = [
    # -- single-row version tracker -------------------------------------------
    """
    CREATE TABLE IF NOT EXISTS schema_version (
        id INTEGER PRIMARY KEY CHECK (id = 1),
        version INTEGER NOT NULL,
        applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    # -- persistent structured audit trail ------------------------------------
    """
    CREATE TABLE IF NOT EXISTS audit_log (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        timestamp TEXT NOT NULL,
        action TEXT NOT NULL,
        entity_type TEXT NOT NULL,
        entity_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        details TEXT DEFAULT '{}',
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    # -- contracts whose bonus contribution was already paid out --------------
    """
    CREATE TABLE IF NOT EXISTS bonus_processed_contracts (
        contract_id TEXT PRIMARY KEY,
        cycle_id TEXT NOT NULL,
        processed_at TEXT NOT NULL
    )
    """,
    # -- append-only bonus fund history ---------------------------------------
    """
    CREATE TABLE IF NOT EXISTS bonus_transactions (
        id TEXT PRIMARY KEY,
        cycle_id TEXT,
        type TEXT NOT NULL
             CHECK (type IN ('contribution', 'payment', 'cycle_end')),
        date TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        amount TEXT NOT NULL,
        employee_name TEXT,
        contract_origin TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_bonus_transactions_date ON bonus_transactions(date)",
    "CREATE INDEX IF NOT EXISTS idx_bonus_processed_cycle ON bonus_processed_contracts(cycle_id)",
]


def _ensure_version_table(conn: sqlite3.Connection) -> None:
    """Create the ``schema_version`` table if it does not yet exist."""
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_version (
            id INTEGER PRIMARY KEY CHECK (id = 1),
            version INTEGER NOT NULL,
            applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
        """
    )
    conn.commit()


def _get_schema_version(conn: sqlite3.Connection) -> int:
    """Return the current schema version, or ``0`` if unset."""
    cursor: sqlite3.Cursor = conn.execute(
        "SELECT version FROM schema_version WHERE id = 1"
    )
    row = cursor.fetchone()
    return row[0] if row is not None else 0


def _set_schema_version(conn: sqlite3.Connection, version: int) -> None:
    """Upsert the version tracker.  Does not commit."""
    conn.execute(
        """
        INSERT INTO schema_version (id, version) VALUES (1, ?)
        ON CONFLICT(id) DO UPDATE SET version = excluded.version,
                                      applied_at = CURRENT_TIMESTAMP
        """,
        (version,),
    )


def _create_all_tables(conn: sqlite3.Connection, logger: StructuredLogger) -> None:
    """Execute every DDL statement in :data:`_TABLE_DEFINITIONS`.  Does not commit."""
    for ddl in _TABLE_DEFINITIONS:
        conn.execute(ddl)
    logger.info(
        f"All {len(_TABLE_DEFINITIONS)} schema statements applied successfully."
    )


def initialize_schema(conn: sqlite3.Connection, logger: StructuredLogger) -> None:
    """Ensure the local SQLite database matches the current schema version.

    Called on every startup; idempotent.  The upgrade and the version
    bump share one transaction, so a failure leaves the previous version
    in place and the next startup retries.

    Args:
        conn: An open SQLite connection.
        logger: Structured logger for progress messages.
    """
    _ensure_version_table(conn)
    current: int = _get_schema_version(conn)

    if current >= CURRENT_SCHEMA_VERSION:
        logger.info(f"Schema is up to date (version {current}).")
        return

    logger.info(
        f"Upgrading schema from version {current} to {CURRENT_SCHEMA_VERSION}."
    )

    try:
        _create_all_tables(conn, logger)
        _set_schema_version(conn, CURRENT_SCHEMA_VERSION)
        conn.commit()
    except Exception:
        conn.rollback()
        logger.error(
            f"Schema migration failed; rolled back to version {current}."
        )
        raise

    logger.info(f"Schema initialised at version {CURRENT_SCHEMA_VERSION}.")
