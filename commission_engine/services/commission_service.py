"""
Commission Service.

Loads proposals, employees and the commission configuration through the
repositories and runs the commission rules over them: per-employee
monthly breakdowns, open-pipeline projections, goal progress and the
commercial goals of the year.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Optional

from pydantic import ValidationError

from commission_engine.config import AppConfig
from commission_engine.logger import StructuredLogger
from commission_engine.models.enums import CommissionRole, EmployeeRole
from commission_engine.models.service_models import (
    CommissionSummary,
    CommissionTier,
    ServiceResult,
)
from commission_engine.repositories.configuration_repository import ConfigurationRepository
from commission_engine.repositories.employee_repository import EmployeeRepository
from commission_engine.repositories.proposal_repository import ProposalRepository
from commission_engine.services.base_service import BaseService
from commission_engine.services.commission_rules import (
    COMMISSION_TIERS,
    current_month_total,
    monthly_commission_breakdown,
    open_contract_scenarios,
    open_pipeline_totals,
    progress_info,
    validate_tiers,
)
from commission_engine.utils.math_utils import coerce_amount

TIERS_CONFIG_KEY = "commission_tiers"


def _goals_config_key(year: int) -> str:
    return f"monthly_goals_{year}"


class CommissionService(BaseService):
    """
    Service layer for commissions and commercial goals.

    The tier ladder comes from ``system_configurations`` when a valid
    table is stored there, otherwise from :data:`COMMISSION_TIERS`.
    """

    def __init__(
        self,
        proposal_repo: ProposalRepository,
        employee_repo: EmployeeRepository,
        config_repo: ConfigurationRepository,
        config: AppConfig,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._proposals = proposal_repo
        self._employees = employee_repo
        self._config_repo = config_repo
        self._config = config

    # ------------------------------------------------------------------
    # Tier configuration
    # ------------------------------------------------------------------

    def get_tiers(self) -> tuple[CommissionTier, ...]:
        """Configured tier ladder, or the defaults when absent or invalid."""
        raw = self._config_repo.get(TIERS_CONFIG_KEY)
        if not raw:
            return COMMISSION_TIERS
        try:
            tiers = [CommissionTier.model_validate(item) for item in raw]
            return validate_tiers(tiers)
        except (ValidationError, ValueError, TypeError) as exc:
            self._logger.warning(
                "Invalid commission tier configuration, using defaults: %s", exc
            )
            return COMMISSION_TIERS

    # ------------------------------------------------------------------
    # Commission summaries
    # ------------------------------------------------------------------

    def get_employee_summary(
        self,
        employee_id: str,
        role: CommissionRole,
        year: int,
        as_of: date,
    ) -> ServiceResult[CommissionSummary]:
        """
        Monthly commissions, current-month progress and open pipeline of one employee.

        Args:
            employee_id: Employee to report on.
            role: Whether to credit the employee as closer or SDR.
            year: Year of the monthly breakdown.
            as_of: Date whose month is the "current month".

        Returns:
            ServiceResult wrapping a :class:`CommissionSummary`.
        """
        try:
            contracts = self._proposals.get_all()
            tiers = self.get_tiers()

            monthly = monthly_commission_breakdown(
                contracts, employee_id, role, year, tiers, logger=self._logger
            )
            month_total = current_month_total(contracts, employee_id, role, as_of)
            scenarios = open_contract_scenarios(contracts, employee_id, role, tiers)

            return ServiceResult(
                success=True,
                data=CommissionSummary(
                    employee_id=employee_id,
                    role=str(role),
                    year=year,
                    monthly=monthly,
                    annual_commission=sum(
                        (m.commission for m in monthly.values()), Decimal("0")
                    ),
                    current_month_total=month_total,
                    progress=progress_info(month_total, tiers),
                    open_scenarios=scenarios,
                    open_totals=open_pipeline_totals(scenarios, tiers),
                ),
            )
        except Exception as exc:
            self._logger.error(
                "Failed to compute commission summary for %s: %s",
                employee_id,
                exc,
                exc_info=True,
            )
            return ServiceResult(
                success=False,
                error=f"Database error computing commissions: {exc}",
                status_code=500,
            )

    def get_team_summaries(
        self,
        year: int,
        as_of: date,
    ) -> ServiceResult[list[CommissionSummary]]:
        """Summaries for every closer and SDR, each credited on their own role."""
        summaries: list[CommissionSummary] = []
        for employee in self._employees.get_all():
            if employee.role == EmployeeRole.CLOSER:
                role = CommissionRole.CLOSER
            elif employee.role == EmployeeRole.SDR:
                role = CommissionRole.SDR
            else:
                continue
            result = self.get_employee_summary(employee.id, role, year, as_of)
            if not result.success or result.data is None:
                return ServiceResult(
                    success=False, error=result.error, status_code=result.status_code
                )
            summaries.append(result.data)
        return ServiceResult(success=True, data=summaries)

    # ------------------------------------------------------------------
    # Commercial goals
    # ------------------------------------------------------------------

    def monthly_goals(self, year: int) -> dict[int, Decimal]:
        """Target of every month of *year*; unset or zero targets use the default."""
        default = self._config.DEFAULT_MONTHLY_GOAL
        goals: dict[int, Decimal] = {month: default for month in range(1, 13)}

        raw: Optional[Any] = self._config_repo.get(_goals_config_key(year))
        for entry in raw or []:
            if not isinstance(entry, dict):
                continue
            month = entry.get("month")
            if not isinstance(month, int) or month not in goals:
                continue
            target = coerce_amount(entry.get("targetValue", entry.get("target_value")))
            if target > 0:
                goals[month] = target
        return goals

    def monthly_goal(self, month: int, year: int) -> Decimal:
        """Target of one month (default R$ 300.000,00)."""
        return self.monthly_goals(year)[month]

    def annual_goal(self, year: int) -> Decimal:
        """Sum of the twelve monthly targets."""
        return sum(self.monthly_goals(year).values(), Decimal("0"))
