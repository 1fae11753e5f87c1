"""Tests for the date helpers and the audit trail."""

import sqlite3
from datetime import date, datetime, timedelta, timezone

import pytest

from commission_engine.utils.audit import log_audit_event
from commission_engine.utils.dates import parse_date, parse_datetime


class TestParseDatetime:
    @pytest.mark.parametrize(
        "raw",
        [
            "2025-06-15T12:00:00Z",
            "2025-06-15T12:00:00+00:00",
            "2025-06-15T12:00:00",
            datetime(2025, 6, 15, 12, 0),
        ],
    )
    def test_always_timezone_aware(self, raw) -> None:
        assert parse_datetime(raw) == datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)
        assert parse_datetime(raw).tzinfo is not None

    def test_explicit_offset_is_kept(self) -> None:
        moment = parse_datetime("2025-06-15T09:00:00-03:00")
        assert moment.utcoffset() == timedelta(hours=-3)
        assert moment == datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)

    def test_naive_and_aware_values_compare(self) -> None:
        values = [parse_datetime("2025-05-01T12:00:00Z"), parse_datetime("2025-05-02T12:00:00")]
        assert sorted(values, reverse=True)[0].day == 2

    def test_empty_and_unsupported(self) -> None:
        assert parse_datetime(None) is None
        assert parse_datetime("") is None
        with pytest.raises(TypeError):
            parse_datetime(12)
        with pytest.raises(ValueError):
            parse_datetime("15/06/2025")

    def test_parse_date(self) -> None:
        assert parse_date("2025-03-01") == date(2025, 3, 1)
        assert parse_date("2025-03-01T23:30:00Z") == date(2025, 3, 1)
        assert parse_date(date(2025, 3, 1)) == date(2025, 3, 1)


class TestAuditEvent:
    def _rows(self, conn: sqlite3.Connection) -> list[tuple]:
        return [
            tuple(r)
            for r in conn.execute("SELECT action, entity_type, entity_id, user_id FROM audit_log")
        ]

    def test_log_only_without_connection(self, logger, db) -> None:
        event = log_audit_event(logger, "BONUS_PAYMENT", "BonusCycle", "c1", "admin")
        assert event.details == {}
        assert self._rows(db.sqlite) == []

    def test_persisted_with_connection(self, logger, db) -> None:
        event = log_audit_event(
            logger, "BONUS_PAYMENT", "BonusCycle", "c1", "admin",
            details={"beneficiaries": 2}, conn=db.sqlite,
        )
        assert self._rows(db.sqlite) == [("BONUS_PAYMENT", "BonusCycle", "c1", "admin")]
        assert event.details == {"beneficiaries": 2}

    def test_uncommitted_event_rolls_back_with_its_batch(self, logger, db) -> None:
        with pytest.raises(RuntimeError):
            with db.batch_write():
                log_audit_event(
                    logger, "BONUS_PAYMENT", "BonusCycle", "c1", "admin",
                    conn=db.sqlite, commit=False,
                )
                raise RuntimeError("payout failed")
        assert self._rows(db.sqlite) == []

    def test_storage_failure_is_logged_not_raised(self, logger, caplog) -> None:
        conn = sqlite3.connect(":memory:")
        try:
            event = log_audit_event(
                logger, "BONUS_PAYMENT", "BonusCycle", "c1", "admin", conn=conn
            )
        finally:
            conn.close()
        assert event.action == "BONUS_PAYMENT"
        assert any("Failed to persist audit event" in r.getMessage() for r in caplog.records)
