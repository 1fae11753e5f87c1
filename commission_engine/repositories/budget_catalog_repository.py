"""
Budget Catalog Repository.

Read access to the catalogs a position is assembled from (job roles,
work scales, cities, social charges, materials, uniforms) and to the
positions stored in ``budget_posts``.
"""

from __future__ import annotations

from typing import Optional, TypeVar

from pydantic import BaseModel, ValidationError

from commission_engine.models.budget_models import (
    BudgetPost,
    City,
    JobRole,
    MaterialItem,
    SocialCharge,
    UniformItem,
    WorkScale,
)
from commission_engine.repositories.base_repository import BaseRepository, Row

M = TypeVar("M", bound=BaseModel)


class BudgetCatalogRepository(BaseRepository):
    """Data access layer for the ``budget_*`` tables."""

    TABLE = "budget_posts"

    # Catalog reads only return active rows.

    def job_roles(self) -> list[JobRole]:
        return self._load("budget_job_roles", JobRole, order="role_name", active_only=True)

    def work_scales(self) -> list[WorkScale]:
        return self._load("budget_work_scales", WorkScale, order="scale_name", active_only=True)

    def cities(self) -> list[City]:
        return self._load("budget_cities", City, order="city_name", active_only=True)

    def social_charges(self) -> list[SocialCharge]:
        return self._load(
            "budget_social_charges", SocialCharge, order="charge_name", active_only=True
        )

    def materials(self) -> list[MaterialItem]:
        return self._load("budget_materials", MaterialItem, order="name", active_only=True)

    def uniforms(self) -> list[UniformItem]:
        return self._load("budget_uniforms", UniformItem, order="item_name", active_only=True)

    def posts(self, budget_id: Optional[str] = None) -> list[BudgetPost]:
        """Positions of *budget_id*, or of every budget when omitted."""
        options: dict[str, object] = {"order": "created_at"}
        if budget_id is not None:
            options["eq"] = {"budget_id": budget_id}
        return self._load(self.TABLE, BudgetPost, options=options)

    def _load(
        self,
        table: str,
        model: type[M],
        *,
        order: Optional[str] = None,
        options: Optional[dict[str, object]] = None,
        active_only: bool = False,
    ) -> list[M]:
        opts = dict(options or {})
        if order is not None:
            opts["order"] = order
        if active_only:
            opts["eq"] = {"is_active": True}
        rows: list[Row] = self._select(opts, table=table, operation_name=f"load ({table})")
        items: list[M] = []
        for row in rows:
            try:
                items.append(model.model_validate(row))
            except ValidationError as exc:
                self._logger.warning(
                    "Skipping invalid %s row %s: %s", table, row.get("id", "<unknown>"), exc
                )
        return items
