"""Shared fixtures: in-memory ledger, fake repositories, fixed clocks."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

import pytest

from commission_engine.config import AppConfig
from commission_engine.database import DatabaseManager
from commission_engine.logger import StructuredLogger
from commission_engine.models.contract import Contract
from commission_engine.models.employee import Employee
from commission_engine.models.enums import EmployeeRole, ProposalStatus
from commission_engine.schema import initialize_schema


class FakeClock:
    """Monotonic clock the test advances by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeProposalRepository:
    def __init__(self, contracts: Optional[list[Contract]] = None) -> None:
        self.contracts: list[Contract] = list(contracts or [])

    def get_all(self, status: Optional[ProposalStatus] = None) -> list[Contract]:
        if status is None:
            return list(self.contracts)
        return [c for c in self.contracts if c.status == status]

    def get_closed(self) -> list[Contract]:
        return self.get_all(ProposalStatus.FECHADO)


class FakeEmployeeRepository:
    def __init__(self, employees: Optional[list[Employee]] = None) -> None:
        self.employees: list[Employee] = list(employees or [])

    def get_all(self) -> list[Employee]:
        return list(self.employees)


class FakeConfigurationRepository:
    def __init__(self, entries: Optional[dict[str, Any]] = None) -> None:
        self.entries: dict[str, Any] = dict(entries or {})

    def get(self, config_type: str) -> Optional[Any]:
        return self.entries.get(config_type)


def make_contract(
    contract_id: str,
    value: str | int,
    status: ProposalStatus = ProposalStatus.FECHADO,
    *,
    closer_id: str = "closer-1",
    sdr_id: Optional[str] = "sdr-1",
    closing_date: Optional[date] = None,
    created_at: str = "2025-01-10T12:00:00Z",
    updated_at: Optional[str] = None,
    client: Optional[str] = None,
) -> Contract:
    return Contract(
        id=contract_id,
        client=client or f"Cliente {contract_id}",
        total_value=Decimal(str(value)),
        status=status,
        closer_id=closer_id,
        sdr_id=sdr_id,
        closing_date=closing_date,
        created_at=created_at,
        updated_at=updated_at,
    )


def make_employee(
    employee_id: str,
    role: EmployeeRole = EmployeeRole.CLOSER,
    admission_date: Optional[str] = "2023-03-01",
    name: Optional[str] = None,
) -> Employee:
    return Employee(
        id=employee_id,
        name=name or employee_id.title(),
        role=role,
        admission_date=admission_date,
    )


@pytest.fixture
def logger(tmp_path: Path) -> StructuredLogger:
    return StructuredLogger(name="tests", log_file=str(tmp_path / "tests.log"))


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(SUPABASE_URL="", SQLITE_PATH=":memory:")


@pytest.fixture
def db(logger: StructuredLogger) -> Iterator[DatabaseManager]:
    manager = DatabaseManager(
        supabase_url="",
        supabase_key="",
        sqlite_path=":memory:",
        logger=logger,
    )
    initialize_schema(manager.sqlite, logger)
    yield manager
    manager.close()


@pytest.fixture
def paid_at() -> datetime:
    return datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)
