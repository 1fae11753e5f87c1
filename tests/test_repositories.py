"""Tests for the repositories against an offline store and the local ledger."""

import sqlite3
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from commission_engine.cache import QueryCache, make_key
from commission_engine.models.enums import BonusTransactionType
from commission_engine.models.service_models import BonusTransaction
from commission_engine.repositories import BonusFundRepository, ProposalRepository


class TestProposalRepository:
    def test_offline_store_yields_nothing(self, db, logger) -> None:
        assert not db.is_online
        assert ProposalRepository(db, logger).get_all() == []

    def test_invalid_rows_are_rejected_at_ingestion(self, db, logger) -> None:
        cache = QueryCache()
        cache.set(
            make_key("proposals", {"order": "created_at", "desc": True}),
            [
                {"id": "ok", "total_value": 1000, "status": "Fechado", "created_at": "2025-01-01T00:00:00Z"},
                {"id": "neg", "total_value": -5, "status": "Fechado", "created_at": "2025-01-01T00:00:00Z"},
                {"id": "null", "total_value": None, "status": "Proposta", "created_at": "2025-01-02"},
            ],
        )
        contracts = ProposalRepository(db, logger, cache).get_all()

        assert [c.id for c in contracts] == ["ok", "null"]
        assert contracts[1].total_value == 0


class TestBonusFundRepository:
    WHEN = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)

    @pytest.fixture
    def repo(self, db, logger) -> BonusFundRepository:
        return BonusFundRepository(db, logger)

    def _entry(self, entry_id: str, amount: str) -> BonusTransaction:
        return BonusTransaction(
            id=entry_id,
            type=BonusTransactionType.CONTRIBUTION,
            date=self.WHEN,
            amount=Decimal(amount),
            cycle_id="c1",
        )

    def test_processed_set_only_grows(self, repo) -> None:
        assert repo.mark_processed(["a", "b"], "c1", self.WHEN) == 2
        assert repo.mark_processed(["b", "c"], "c2", self.WHEN) == 1
        assert repo.get_processed_ids() == frozenset({"a", "b", "c"})
        assert repo.count_processed() == 3

    def test_amounts_round_trip_exactly(self, repo) -> None:
        repo.append_transactions([self._entry("x", "0.1"), self._entry("y", "1234.005")])
        stored = {t.id: t.amount for t in repo.list_transactions()}
        assert stored == {"x": Decimal("0.1"), "y": Decimal("1234.005")}

    def test_history_is_append_only(self, repo) -> None:
        repo.append_transactions([self._entry("x", "1")])
        with pytest.raises(sqlite3.IntegrityError):
            repo.append_transactions([self._entry("x", "2")])
