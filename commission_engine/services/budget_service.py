"""
Budget Service.

Assembles position inputs from the budget catalogs and runs the position
cost chain; also totals a budget over its stored positions.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from typing import Optional, Protocol, TypeVar

from commission_engine.config import AppConfig
from commission_engine.logger import StructuredLogger
from commission_engine.models.budget_models import (
    BdiParameters,
    BenefitRates,
    BudgetCatalogs,
    BudgetPost,
    MaterialItem,
    PositionCalculation,
    PositionInput,
    UniformItem,
)
from commission_engine.models.service_models import ServiceResult
from commission_engine.repositories.budget_catalog_repository import BudgetCatalogRepository
from commission_engine.services.base_service import BaseService
from commission_engine.services.position_cost import budget_total, calculate_position

# A new position starts with the first catalog materials, one unit each.
INITIAL_MATERIAL_ROWS = 5


class _HasId(Protocol):
    id: Optional[str]


C = TypeVar("C", bound=_HasId)


def _find(items: Sequence[C], item_id: Optional[str]) -> Optional[C]:
    if item_id is None:
        return None
    return next((item for item in items if item.id == item_id), None)


class BudgetService(BaseService):
    """Service layer for staffing-position costs."""

    def __init__(
        self,
        catalog_repo: BudgetCatalogRepository,
        config: AppConfig,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._catalogs = catalog_repo
        self._config = config

    def load_catalogs(self) -> BudgetCatalogs:
        return BudgetCatalogs(
            job_roles=self._catalogs.job_roles(),
            work_scales=self._catalogs.work_scales(),
            cities=self._catalogs.cities(),
            social_charges=self._catalogs.social_charges(),
            materials=self._catalogs.materials(),
            uniforms=self._catalogs.uniforms(),
        )

    def default_benefits(self) -> BenefitRates:
        return BenefitRates(
            vt=self._config.DEFAULT_VT_DAILY,
            vr=self._config.DEFAULT_VR_DAILY,
            va=self._config.DEFAULT_VA_DAILY,
        )

    def default_bdi(self, profit_margin: Optional[Decimal] = None) -> BdiParameters:
        return BdiParameters(
            profit_margin=(
                self._config.DEFAULT_PROFIT_MARGIN if profit_margin is None else profit_margin
            ),
            admin_margin=self._config.ADMIN_MARGIN,
            pis=self._config.PIS_RATE,
            cofins=self._config.COFINS_RATE,
        )

    def build_position_input(
        self,
        post: BudgetPost,
        catalogs: BudgetCatalogs,
        *,
        has_intrajornada: bool = False,
        profit_margin: Optional[Decimal] = None,
        benefits: Optional[BenefitRates] = None,
        materials: Optional[list[MaterialItem]] = None,
        uniforms: Optional[list[UniformItem]] = None,
    ) -> PositionInput:
        """
        Resolve a stored position against the catalogs.

        Ids that match no active catalog row leave the selection empty,
        which makes the calculation incomplete rather than wrong.

        Args:
            post: The stored position.
            catalogs: Catalogs from :meth:`load_catalogs`.
            has_intrajornada: Whether the in-shift break is paid.
            profit_margin: BDI profit margin; config default when omitted.
            benefits: Daily benefit rates; config defaults when omitted.
            materials: Material rows; the first catalog materials when omitted.
            uniforms: Uniform rows; every catalog uniform when omitted.
        """
        if materials is None:
            materials = [
                item.model_copy(update={"quantity": Decimal("1")})
                for item in catalogs.materials[:INITIAL_MATERIAL_ROWS]
            ]
        return PositionInput(
            job_role=_find(catalogs.job_roles, post.role_id),
            work_scale=_find(catalogs.work_scales, post.scale_id),
            shift=post.turn,
            city=_find(catalogs.cities, post.city_id),
            salary_additions=post.salary_additions,
            social_charges=catalogs.social_charges,
            benefits=benefits or self.default_benefits(),
            materials=materials,
            uniforms=list(catalogs.uniforms) if uniforms is None else uniforms,
            has_intrajornada=has_intrajornada,
            bdi=self.default_bdi(profit_margin),
            minimum_wage=self._config.MINIMUM_WAGE,
        )

    def calculate(self, inputs: PositionInput) -> ServiceResult[PositionCalculation]:
        """
        Run the eight-block chain.

        With ``STRICT_NUMERIC_INPUT`` on, a negative edited rate is a 422
        instead of being treated as zero.
        """
        try:
            result = calculate_position(inputs, strict=self._config.STRICT_NUMERIC_INPUT)
        except ValueError as exc:
            self._logger.warning("Rejected position input: %s", exc)
            return ServiceResult(success=False, error=str(exc), status_code=422)

        if not result.is_complete:
            self._logger.debug("Position incomplete, missing: %s", ", ".join(result.missing))
        return ServiceResult(success=True, data=result)

    def get_budget_total(self, budget_id: str) -> ServiceResult[Decimal]:
        """Sum of the final totals of the complete positions of *budget_id*."""
        try:
            catalogs = self.load_catalogs()
            calculations: list[PositionCalculation] = []
            for post in self._catalogs.posts(budget_id):
                result = self.calculate(self.build_position_input(post, catalogs))
                if result.success and result.data is not None:
                    calculations.append(result.data)
            return ServiceResult(success=True, data=budget_total(calculations))
        except Exception as exc:
            self._logger.error(
                "Failed to total budget %s: %s", budget_id, exc, exc_info=True
            )
            return ServiceResult(
                success=False,
                error=f"Database error totalling budget: {exc}",
                status_code=500,
            )
