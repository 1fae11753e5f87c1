"""
Bonus Fund Repository.

Local SQLite ledger of the bonus fund: the set of contracts already paid
out and the append-only transaction history.  Amounts are stored as
``TEXT`` so ``Decimal`` values round-trip exactly.

Writes go through :meth:`BaseRepository._commit`, so a caller wrapping
several calls in :meth:`DatabaseManager.batch_write` gets one atomic
transaction.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal

from commission_engine.models.service_models import BonusTransaction
from commission_engine.repositories.base_repository import BaseRepository
from commission_engine.utils.dates import parse_datetime


class BonusFundRepository(BaseRepository):
    """Data access layer for the processed set and bonus history."""

    TABLE = "bonus_transactions"
    PROCESSED_TABLE = "bonus_processed_contracts"

    def get_processed_ids(self) -> frozenset[str]:
        """Ids of every contract whose contribution was already paid out."""
        rows = self.sqlite.execute(
            f"SELECT contract_id FROM {self.PROCESSED_TABLE}"
        ).fetchall()
        return frozenset(row["contract_id"] for row in rows)

    def mark_processed(
        self,
        contract_ids: Iterable[str],
        cycle_id: str,
        processed_at: datetime,
    ) -> int:
        """Add *contract_ids* to the processed set.

        The set only grows: ids already present keep their original cycle.

        Returns:
            Number of ids newly added.
        """
        cursor = self.sqlite.executemany(
            f"""
            INSERT OR IGNORE INTO {self.PROCESSED_TABLE} (contract_id, cycle_id, processed_at)
            VALUES (?, ?, ?)
            """,
            [(cid, cycle_id, processed_at.isoformat()) for cid in contract_ids],
        )
        self._commit()
        return cursor.rowcount

    def append_transactions(self, transactions: Iterable[BonusTransaction]) -> int:
        """Append entries to the history.

        Raises:
            sqlite3.IntegrityError: If an entry id already exists; the
                history is never rewritten.
        """
        rows = [
            (
                t.id,
                t.cycle_id,
                str(t.type),
                t.date.isoformat(),
                t.description,
                str(t.amount),
                t.employee_name,
                t.contract_origin,
            )
            for t in transactions
        ]
        self.sqlite.executemany(
            f"""
            INSERT INTO {self.TABLE}
                (id, cycle_id, type, date, description, amount, employee_name, contract_origin)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            rows,
        )
        self._commit()
        return len(rows)

    def list_transactions(self, limit: int = 200) -> list[BonusTransaction]:
        """Stored history entries, most recent first."""
        rows = self.sqlite.execute(
            f"""
            SELECT id, cycle_id, type, date, description, amount, employee_name, contract_origin
            FROM {self.TABLE}
            ORDER BY date DESC, rowid ASC
            LIMIT ?
            """,
            (limit,),
        ).fetchall()
        return [
            BonusTransaction(
                id=row["id"],
                cycle_id=row["cycle_id"],
                type=row["type"],
                date=parse_datetime(row["date"]),
                description=row["description"],
                amount=Decimal(row["amount"]),
                employee_name=row["employee_name"],
                contract_origin=row["contract_origin"],
            )
            for row in rows
        ]

    def count_processed(self) -> int:
        row = self.sqlite.execute(
            f"SELECT COUNT(*) AS n FROM {self.PROCESSED_TABLE}"
        ).fetchone()
        return int(row["n"])
