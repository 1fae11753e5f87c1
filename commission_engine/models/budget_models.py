"""
Budget Catalog and Position Calculation Models.

Catalog rows (job roles, work scales, cities, social charges, materials,
uniforms) come from the ``budget_*`` tables.  ``PositionInput`` gathers
everything the position cost chain needs, and ``PositionCalculation`` is
its eight-block result.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from commission_engine.models.enums import SalaryAdditionBase, Shift

__all__ = [
    "BdiBlock",
    "BdiParameters",
    "BenefitRates",
    "BenefitsBlock",
    "BudgetCatalogs",
    "BudgetPost",
    "City",
    "IntrajornadaBlock",
    "JobRole",
    "MaterialItem",
    "MaterialsBlock",
    "PositionCalculation",
    "PositionInput",
    "SalaryAddition",
    "SalaryBlock",
    "SocialCharge",
    "SocialChargesBlock",
    "UniformItem",
    "UniformsBlock",
    "WorkScale",
]

_CATALOG_CONFIG = ConfigDict(from_attributes=True, populate_by_name=True, extra="ignore")


# ---------------------------------------------------------------------------
# Catalog rows
# ---------------------------------------------------------------------------

class JobRole(BaseModel):
    """A job role with its monthly base salary."""

    model_config = _CATALOG_CONFIG

    id: Optional[str] = None
    name: str = Field(default="", validation_alias=AliasChoices("role_name", "name"))
    salary_base: Decimal = Field(default=Decimal("0"), ge=0)


class WorkScale(BaseModel):
    """A work scale: how many people fill the post and on how many days."""

    model_config = _CATALOG_CONFIG

    id: Optional[str] = None
    name: str = Field(default="", validation_alias=AliasChoices("scale_name", "name"))
    people_quantity: int = Field(default=1, ge=0)
    working_days: int = Field(default=21, ge=0)


class City(BaseModel):
    """A city and its ISS rate, expressed in percent (5 means 5%)."""

    model_config = _CATALOG_CONFIG

    id: Optional[str] = None
    name: str = Field(default="", validation_alias=AliasChoices("city_name", "name"))
    iss_percent: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        validation_alias=AliasChoices("iss_percent", "iss_rate"),
    )


class SocialCharge(BaseModel):
    """A payroll charge; ``percentage`` is a fraction of the salary block."""

    model_config = _CATALOG_CONFIG

    id: Optional[str] = None
    name: str = Field(default="", validation_alias=AliasChoices("charge_name", "name"))
    percentage: Decimal = Decimal("0")


class SalaryAddition(BaseModel):
    """An optional salary addition chosen for a position."""

    model_config = _CATALOG_CONFIG

    addition_id: Optional[str] = None
    name: str = ""
    calculation_base: SalaryAdditionBase = Field(
        default=SalaryAdditionBase.SALARIO_BASE,
        validation_alias=AliasChoices("calculation_base", "calculationBase"),
    )
    percentage: Decimal = Decimal("0")
    fixed_value: Decimal = Field(
        default=Decimal("0"),
        validation_alias=AliasChoices("fixed_value", "fixedValue"),
    )


class MaterialItem(BaseModel):
    """A material line: ``unit_value × quantity``."""

    model_config = _CATALOG_CONFIG

    name: str = ""
    unit_value: Decimal = Decimal("0")
    quantity: Decimal = Decimal("1")


class UniformItem(BaseModel):
    """A uniform item amortized over its useful life in months."""

    model_config = _CATALOG_CONFIG

    name: str = Field(default="", validation_alias=AliasChoices("item_name", "name"))
    unit_value: Decimal = Decimal("0")
    qty_per_employee: Decimal = Field(
        default=Decimal("1"),
        validation_alias=AliasChoices("qty_per_collaborator", "qty_per_employee"),
    )
    useful_life: Decimal = Field(
        default=Decimal("12"),
        validation_alias=AliasChoices("life_time_months", "useful_life"),
    )


class BudgetPost(BaseModel):
    """A staffing position stored in ``budget_posts``."""

    model_config = _CATALOG_CONFIG

    id: str
    budget_id: str
    post_name: str = ""
    role_id: Optional[str] = None
    scale_id: Optional[str] = None
    turn: Optional[Shift] = None
    city_id: Optional[str] = None
    salary_additions: list[SalaryAddition] = Field(default_factory=list)


class BudgetCatalogs(BaseModel):
    """Every catalog a position is assembled from, loaded once per budget."""

    job_roles: list[JobRole] = Field(default_factory=list)
    work_scales: list[WorkScale] = Field(default_factory=list)
    cities: list[City] = Field(default_factory=list)
    social_charges: list[SocialCharge] = Field(default_factory=list)
    materials: list[MaterialItem] = Field(default_factory=list)
    uniforms: list[UniformItem] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Position input
# ---------------------------------------------------------------------------

class BenefitRates(BaseModel):
    """Daily benefit rates: transport (VT), meal (VR) and food (VA)."""

    vt: Decimal = Decimal("6.80")
    vr: Decimal = Decimal("25.00")
    va: Decimal = Decimal("35.00")


class BdiParameters(BaseModel):
    """BDI percentages.  Only ``profit_margin`` is meant to be edited."""

    profit_margin: Decimal = Decimal("15.0")
    admin_margin: Decimal = Decimal("4.25")
    pis: Decimal = Decimal("0.65")
    cofins: Decimal = Decimal("3.00")


class PositionInput(BaseModel):
    """Everything the position chain reads.

    The four foundational selections are optional so an incomplete form
    can be represented; the calculator reports it as not computable.
    """

    job_role: Optional[JobRole] = None
    work_scale: Optional[WorkScale] = None
    shift: Optional[Shift] = None
    city: Optional[City] = None
    salary_additions: list[SalaryAddition] = Field(default_factory=list)
    social_charges: list[SocialCharge] = Field(default_factory=list)
    benefits: BenefitRates = Field(default_factory=BenefitRates)
    materials: list[MaterialItem] = Field(default_factory=list)
    uniforms: list[UniformItem] = Field(default_factory=list)
    has_intrajornada: bool = False
    bdi: BdiParameters = Field(default_factory=BdiParameters)
    minimum_wage: Decimal = Decimal("1412.00")


# ---------------------------------------------------------------------------
# Block results
# ---------------------------------------------------------------------------

class SalaryBlock(BaseModel):
    """Block 1: salary composition."""

    base_salary_total: Decimal
    night_differential: Decimal
    night_hour_premium: Decimal
    salary_additions_total: Decimal
    total: Decimal


class SocialChargesBlock(BaseModel):
    """Block 2: social charges, one amount per charge."""

    charges: dict[str, Decimal]
    total: Decimal


class BenefitsBlock(BaseModel):
    """Block 3: monthly benefits."""

    vt_total: Decimal
    vr_total: Decimal
    va_total: Decimal
    total: Decimal


class MaterialsBlock(BaseModel):
    """Block 4: materials with their line totals."""

    line_totals: list[Decimal]
    total: Decimal


class UniformsBlock(BaseModel):
    """Block 5: uniforms with their monthly amortized totals."""

    line_totals: list[Decimal]
    total: Decimal


class IntrajornadaBlock(BaseModel):
    """Block 6: paid in-shift break."""

    enabled: bool
    total: Decimal


class BdiBlock(BaseModel):
    """Block 7: overhead markup over the blocks 1-6 subtotal."""

    profit_value: Decimal
    admin_value: Decimal
    pis_value: Decimal
    cofins_value: Decimal
    iss_value: Decimal
    rate_total: Decimal
    total: Decimal


class PositionCalculation(BaseModel):
    """Result of the eight-block chain.

    ``is_complete`` is ``False`` (and every block ``None``) when a
    foundational selection is missing; ``missing`` names which ones.
    """

    is_complete: bool
    missing: list[str] = Field(default_factory=list)
    salary: Optional[SalaryBlock] = None
    social_charges: Optional[SocialChargesBlock] = None
    benefits: Optional[BenefitsBlock] = None
    materials: Optional[MaterialsBlock] = None
    uniforms: Optional[UniformsBlock] = None
    intrajornada: Optional[IntrajornadaBlock] = None
    bdi: Optional[BdiBlock] = None
    subtotal_without_bdi: Optional[Decimal] = None
    final_total: Optional[Decimal] = None
