"""
Structured Audit Logging Utility.

Every state change of the bonus ledger is logged as a structured JSON
object and, when a connection is supplied, persisted to ``audit_log``.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from typing import Optional, Union

from pydantic import BaseModel, Field

from commission_engine.logger import StructuredLogger

__all__ = ["AuditEvent", "DetailValue", "log_audit_event", "persist_audit_event"]

# Flat scalars only; nested structures get their own model.
DetailValue = Union[str, int, float, bool, None]


class AuditEvent(BaseModel):
    """Schema-validated representation of a single audit trail entry."""

    timestamp: str
    action: str
    entity_type: str
    entity_id: str
    user_id: str
    details: dict[str, DetailValue] = Field(default_factory=dict)


def log_audit_event(
    logger: StructuredLogger,
    action: str,
    entity_type: str,
    entity_id: str,
    user_id: str,
    details: Optional[dict[str, DetailValue]] = None,
    conn: Optional[sqlite3.Connection] = None,
    *,
    commit: bool = True,
) -> AuditEvent:
    """Log a structured JSON audit event, with optional SQLite persistence.

    Args:
        logger: The logger instance to write to.
        action: What happened (e.g. ``"BONUS_PAYMENT"``).
        entity_type: Type of entity affected (e.g. ``"BonusCycle"``).
        entity_id: Primary key of the affected entity.
        user_id: Who performed the action (``"system"`` when unattended).
        details: Optional additional context.
        conn: When provided, the event is also written to ``audit_log``
            through :func:`persist_audit_event`.
        commit: Forwarded to :func:`persist_audit_event`.

    Returns:
        The validated event.
    """
    event = AuditEvent(
        timestamp=datetime.now(timezone.utc).isoformat(),
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        user_id=user_id,
        details=details or {},
    )
    logger.info("AUDIT: %s", json.dumps(event.model_dump(), default=str))

    # Persistence failures are logged, never propagated.
    if conn is not None:
        try:
            persist_audit_event(conn, event, commit=commit)
        except sqlite3.Error as db_err:
            logger.warning("Failed to persist audit event to SQLite: %s", db_err)
    return event


def persist_audit_event(
    conn: sqlite3.Connection,
    event: AuditEvent,
    *,
    commit: bool = True,
) -> None:
    """Write *event* to ``audit_log``.

    Args:
        conn: An open SQLite connection with write access.
        event: The validated event.
        commit: Commit after the insert.  Pass ``False`` inside a
            :meth:`DatabaseManager.batch_write` block so the event lands
            in the same transaction as the change it records.

    Raises:
        sqlite3.Error: If the insert fails.
    """
    conn.execute(
        """
        INSERT INTO audit_log (timestamp, action, entity_type, entity_id, user_id, details)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (
            event.timestamp,
            event.action,
            event.entity_type,
            event.entity_id,
            event.user_id,
            json.dumps(event.details, default=str),
        ),
    )
    if commit:
        conn.commit()
