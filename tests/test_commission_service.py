"""Tests for the commission service: tier configuration, goals and summaries."""

from datetime import date
from decimal import Decimal

import pytest

from commission_engine.models.enums import CommissionRole, EmployeeRole, ProposalStatus
from commission_engine.services.commission_rules import COMMISSION_TIERS
from commission_engine.services.commission_service import CommissionService
from conftest import (
    FakeConfigurationRepository,
    FakeEmployeeRepository,
    FakeProposalRepository,
    make_contract,
    make_employee,
)

AS_OF = date(2025, 6, 15)


@pytest.fixture
def proposals() -> FakeProposalRepository:
    return FakeProposalRepository(
        [
            make_contract("jan", 400000, closing_date=date(2025, 1, 10)),
            make_contract("jun", 300000, closing_date=date(2025, 6, 2)),
            make_contract("sdr", 100000, closer_id="closer-2", sdr_id="sdr-1", closing_date=date(2025, 6, 3)),
            make_contract("open", 100000, ProposalStatus.NEGOCIACAO),
        ]
    )


def _service(proposals, config, logger, entries=None) -> CommissionService:
    employees = FakeEmployeeRepository(
        [
            make_employee("closer-1"),
            make_employee("sdr-1", EmployeeRole.SDR),
            make_employee("boss", EmployeeRole.ADMIN),
        ]
    )
    return CommissionService(
        proposal_repo=proposals,
        employee_repo=employees,
        config_repo=FakeConfigurationRepository(entries),
        config=config,
        logger=logger,
    )


class TestTiers:
    def test_defaults_without_configuration(self, proposals, config, logger) -> None:
        assert _service(proposals, config, logger).get_tiers() == COMMISSION_TIERS

    def test_stored_tiers_are_used(self, proposals, config, logger) -> None:
        stored = [
            {"percentage": "1", "minValue": 0, "maxValue": 100000, "label": "Bronze"},
            {"percentage": "2", "minValue": 100000, "maxValue": None, "label": "Ouro"},
        ]
        tiers = _service(proposals, config, logger, {"commission_tiers": stored}).get_tiers()
        assert [t.label for t in tiers] == ["Bronze", "Ouro"]

    @pytest.mark.parametrize(
        "stored",
        [
            [{"percentage": "1", "minValue": 0, "maxValue": 100, "label": "closed"}],
            [{"percentage": "-1", "minValue": 0, "label": "negative"}],
            [{"minValue": 0, "label": "no rate"}],
        ],
    )
    def test_invalid_configuration_falls_back(self, proposals, config, logger, stored) -> None:
        tiers = _service(proposals, config, logger, {"commission_tiers": stored}).get_tiers()
        assert tiers == COMMISSION_TIERS


class TestGoals:
    def test_default_goal(self, proposals, config, logger) -> None:
        service = _service(proposals, config, logger)
        assert service.monthly_goal(3, 2025) == Decimal("300000")
        assert service.annual_goal(2025) == Decimal("3600000")

    def test_stored_goals_override_positive_months_only(self, proposals, config, logger) -> None:
        entries = {
            "monthly_goals_2025": [
                {"month": 1, "targetValue": 500000},
                {"month": 2, "targetValue": 0},
                {"month": 13, "targetValue": 900000},
                "garbage",
            ]
        }
        service = _service(proposals, config, logger, entries)
        assert service.monthly_goal(1, 2025) == Decimal("500000")
        assert service.monthly_goal(2, 2025) == Decimal("300000")
        assert service.annual_goal(2025) == Decimal("3800000")
        assert service.annual_goal(2024) == Decimal("3600000")


class TestSummaries:
    def test_closer_summary(self, proposals, config, logger) -> None:
        result = _service(proposals, config, logger).get_employee_summary(
            "closer-1", CommissionRole.CLOSER, 2025, AS_OF
        )

        assert result.success
        summary = result.data
        assert summary.monthly["2025-01"].commission == Decimal("1600")
        assert summary.monthly["2025-06"].commission == Decimal("1200")
        assert summary.annual_commission == Decimal("2800")
        assert summary.current_month_total == Decimal("300000")
        assert summary.progress.progress_percentage == Decimal("50")
        assert [s.contract.id for s in summary.open_scenarios] == ["open"]
        assert summary.open_totals["Supermeta"] == Decimal("800")

    def test_team_skips_admins(self, proposals, config, logger) -> None:
        result = _service(proposals, config, logger).get_team_summaries(2025, AS_OF)

        assert result.success
        assert [(s.employee_id, s.role) for s in result.data] == [
            ("closer-1", "closer"),
            ("sdr-1", "sdr"),
        ]
        sdr = result.data[1]
        assert sdr.monthly["2025-06"].total_value == Decimal("400000")

    def test_repository_failure_is_reported(self, config, logger) -> None:
        class Broken(FakeProposalRepository):
            def get_all(self, status=None):
                raise ConnectionError("offline")

        result = _service(Broken(), config, logger).get_employee_summary(
            "closer-1", CommissionRole.CLOSER, 2025, AS_OF
        )
        assert not result.success
        assert result.status_code == 500
