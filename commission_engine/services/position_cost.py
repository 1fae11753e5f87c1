"""
Position Cost Calculator.

Eight-block cost build-up for one staffing position of a service budget:

    1. Salary            5. Uniforms
    2. Social charges    6. Intrajornada (paid in-shift break)
    3. Benefits          7. BDI (overhead markup over blocks 1-6)
    4. Materials         8. Final total

Every call recomputes the whole chain from its inputs.  Values are kept
at full ``Decimal`` precision; round only for display.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import Decimal
from typing import Optional, TypeVar

from pydantic import BaseModel

from commission_engine.models.budget_models import (
    BdiBlock,
    BdiParameters,
    BenefitRates,
    BenefitsBlock,
    IntrajornadaBlock,
    MaterialItem,
    MaterialsBlock,
    PositionCalculation,
    PositionInput,
    SalaryAddition,
    SalaryBlock,
    SocialCharge,
    SocialChargesBlock,
    UniformItem,
    UniformsBlock,
)
from commission_engine.models.enums import SalaryAdditionBase, Shift
from commission_engine.utils.math_utils import NumberLike, coerce_amount, safe_divide

__all__ = [
    "MONTHLY_HOURS",
    "add_material",
    "budget_total",
    "calculate_benefits_block",
    "calculate_bdi_block",
    "calculate_intrajornada_block",
    "calculate_materials_block",
    "calculate_position",
    "calculate_salary_block",
    "calculate_social_charges_block",
    "calculate_uniforms_block",
    "remove_material",
    "update_material",
]

# Monthly hour divisor of the CLT hourly wage.
MONTHLY_HOURS: Decimal = Decimal("220")

_NIGHT_HOURS_PER_DAY = Decimal("8")
_NIGHT_DIFFERENTIAL_RATE = Decimal("0.2")
_NIGHT_HOUR_FACTOR = Decimal("1.2")
_INTRAJORNADA_FACTOR = Decimal("1.5")
_HUNDRED = Decimal("100")
_ZERO = Decimal("0")

M = TypeVar("M", bound=BaseModel)


# --- 1. Salary ---

def _addition_amount(
    addition: SalaryAddition,
    salary_base: Decimal,
    minimum_wage: Decimal,
    headcount: Decimal,
) -> Decimal:
    if addition.calculation_base == SalaryAdditionBase.SALARIO_MINIMO:
        return minimum_wage * addition.percentage / _HUNDRED * headcount
    if addition.calculation_base == SalaryAdditionBase.SALARIO_BASE:
        return salary_base * addition.percentage / _HUNDRED * headcount
    return addition.fixed_value * headcount


def calculate_salary_block(
    salary_base: Decimal,
    headcount: Decimal,
    working_days: Decimal,
    shift: Shift,
    additions: Sequence[SalaryAddition] = (),
    minimum_wage: Decimal = Decimal("1412.00"),
) -> SalaryBlock:
    """Block 1: base salary, night premiums and salary additions.

    A night shift adds the night differential
    (``days × 8 × salary / 220 × 0.2``) and the reduced night-hour premium
    (``days × salary / 220 × 1.2``), both per head.
    """
    base_total = salary_base * headcount

    night_differential = _ZERO
    night_hour_premium = _ZERO
    if shift == Shift.NOTURNO:
        hourly = salary_base / MONTHLY_HOURS
        night_differential = (
            working_days * _NIGHT_HOURS_PER_DAY * hourly * _NIGHT_DIFFERENTIAL_RATE * headcount
        )
        night_hour_premium = working_days * hourly * _NIGHT_HOUR_FACTOR * headcount

    additions_total = sum(
        (_addition_amount(a, salary_base, minimum_wage, headcount) for a in additions),
        _ZERO,
    )

    return SalaryBlock(
        base_salary_total=base_total,
        night_differential=night_differential,
        night_hour_premium=night_hour_premium,
        salary_additions_total=additions_total,
        total=base_total + night_differential + night_hour_premium + additions_total,
    )


# --- 2. Social charges ---

def calculate_social_charges_block(
    salary_total: Decimal,
    charges: Iterable[SocialCharge],
) -> SocialChargesBlock:
    """Block 2: each charge is a fraction applied to the block 1 total."""
    amounts: dict[str, Decimal] = {}
    for charge in charges:
        amounts[charge.name] = amounts.get(charge.name, _ZERO) + salary_total * charge.percentage
    return SocialChargesBlock(charges=amounts, total=sum(amounts.values(), _ZERO))


# --- 3. Benefits ---

def calculate_benefits_block(
    rates: BenefitRates,
    working_days: Decimal,
    headcount: Decimal,
) -> BenefitsBlock:
    """Block 3: daily VT, VR and VA times working days and headcount."""
    factor = working_days * headcount
    vt_total = rates.vt * factor
    vr_total = rates.vr * factor
    va_total = rates.va * factor
    return BenefitsBlock(
        vt_total=vt_total,
        vr_total=vr_total,
        va_total=va_total,
        total=vt_total + vr_total + va_total,
    )


# --- 4. Materials ---

def calculate_materials_block(materials: Iterable[MaterialItem]) -> MaterialsBlock:
    """Block 4: ``unit_value × quantity`` per row."""
    lines = [item.unit_value * item.quantity for item in materials]
    return MaterialsBlock(line_totals=lines, total=sum(lines, _ZERO))


def add_material(
    materials: Sequence[MaterialItem],
    name: str = "",
    unit_value: NumberLike = 0,
    quantity: NumberLike = 1,
    *,
    strict: bool = False,
) -> list[MaterialItem]:
    """Return a new list with one more material row."""
    item = MaterialItem(
        name=name,
        unit_value=coerce_amount(unit_value, strict=strict, name="unit_value"),
        quantity=coerce_amount(quantity, strict=strict, name="quantity"),
    )
    return [*materials, item]


def remove_material(materials: Sequence[MaterialItem], index: int) -> list[MaterialItem]:
    """Return a new list without the row at *index*.

    Raises:
        IndexError: If *index* is out of range.
    """
    if not 0 <= index < len(materials):
        raise IndexError(f"No material at index {index}")
    return [item for i, item in enumerate(materials) if i != index]


def update_material(
    materials: Sequence[MaterialItem],
    index: int,
    *,
    name: Optional[str] = None,
    unit_value: NumberLike = None,
    quantity: NumberLike = None,
    strict: bool = False,
) -> list[MaterialItem]:
    """Return a new list with the row at *index* edited.

    Only the fields passed are changed.

    Raises:
        IndexError: If *index* is out of range.
    """
    if not 0 <= index < len(materials):
        raise IndexError(f"No material at index {index}")

    changes: dict[str, object] = {}
    if name is not None:
        changes["name"] = name
    if unit_value is not None:
        changes["unit_value"] = coerce_amount(unit_value, strict=strict, name="unit_value")
    if quantity is not None:
        changes["quantity"] = coerce_amount(quantity, strict=strict, name="quantity")

    updated = list(materials)
    updated[index] = materials[index].model_copy(update=changes)
    return updated


# --- 5. Uniforms ---

def calculate_uniforms_block(
    uniforms: Iterable[UniformItem],
    headcount: Decimal,
) -> UniformsBlock:
    """Block 5: uniform cost spread over its useful life, per head.

    An item with a useful life of zero months contributes nothing.
    """
    lines = [
        safe_divide(item.unit_value * item.qty_per_employee, item.useful_life) * headcount
        for item in uniforms
    ]
    return UniformsBlock(line_totals=lines, total=sum(lines, _ZERO))


# --- 6. Intrajornada ---

def calculate_intrajornada_block(
    enabled: bool,
    salary_base: Decimal,
    headcount: Decimal,
) -> IntrajornadaBlock:
    """Block 6: ``headcount × salary / 220 × 1.5`` when the break is paid."""
    if not enabled:
        return IntrajornadaBlock(enabled=False, total=_ZERO)
    return IntrajornadaBlock(
        enabled=True,
        total=headcount * (salary_base / MONTHLY_HOURS * _INTRAJORNADA_FACTOR),
    )


# --- 7. BDI ---

def calculate_bdi_block(
    subtotal: Decimal,
    params: BdiParameters,
    iss_percent: Decimal,
) -> BdiBlock:
    """Block 7: profit, admin, PIS, COFINS and ISS percentages over *subtotal*.

    Args:
        subtotal: Sum of blocks 1-6.
        params: BDI percentages (15 means 15%).
        iss_percent: The city's ISS, also in percent.
    """
    profit_value = subtotal * params.profit_margin / _HUNDRED
    admin_value = subtotal * params.admin_margin / _HUNDRED
    pis_value = subtotal * params.pis / _HUNDRED
    cofins_value = subtotal * params.cofins / _HUNDRED
    iss_value = subtotal * iss_percent / _HUNDRED
    rate_total = (
        params.profit_margin + params.admin_margin + params.pis + params.cofins + iss_percent
    )
    return BdiBlock(
        profit_value=profit_value,
        admin_value=admin_value,
        pis_value=pis_value,
        cofins_value=cofins_value,
        iss_value=iss_value,
        rate_total=rate_total,
        total=profit_value + admin_value + pis_value + cofins_value + iss_value,
    )


# --- 8. Full chain ---

def _missing_selections(inputs: PositionInput) -> list[str]:
    required = {
        "job_role": inputs.job_role,
        "work_scale": inputs.work_scale,
        "shift": inputs.shift,
        "city": inputs.city,
    }
    return [name for name, value in required.items() if value is None]


def _coerce_rows(rows: Iterable[M], fields: tuple[str, ...], strict: bool) -> list[M]:
    """Copy each row with *fields* passed through :func:`coerce_amount`."""
    return [
        row.model_copy(
            update={
                field: coerce_amount(getattr(row, field), strict=strict, name=field)
                for field in fields
            }
        )
        for row in rows
    ]


def calculate_position(inputs: PositionInput, *, strict: bool = False) -> PositionCalculation:
    """Run the eight blocks for one position.

    The result is incomplete (no blocks, ``final_total`` of ``None``) until
    a job role, a work scale, a shift and a city are all selected.  A scale
    with zero people or zero working days falls back to 1 person and 21
    days, the form defaults.

    Args:
        inputs: Selections and parameters of the position.
        strict: Raise on a negative or non-numeric user-edited value
            (addition, charge, material and uniform rows, benefit rates,
            profit margin) instead of zeroing it.
    """
    missing = _missing_selections(inputs)
    if missing:
        return PositionCalculation(is_complete=False, missing=missing)

    # _missing_selections guarantees these are set
    assert inputs.job_role is not None and inputs.work_scale is not None
    assert inputs.shift is not None and inputs.city is not None

    salary_base = inputs.job_role.salary_base
    headcount = Decimal(inputs.work_scale.people_quantity or 1)
    working_days = Decimal(inputs.work_scale.working_days or 21)

    additions = _coerce_rows(inputs.salary_additions, ("percentage", "fixed_value"), strict)
    social_charges = _coerce_rows(inputs.social_charges, ("percentage",), strict)
    material_rows = _coerce_rows(inputs.materials, ("unit_value", "quantity"), strict)
    uniform_rows = _coerce_rows(
        inputs.uniforms, ("unit_value", "qty_per_employee", "useful_life"), strict
    )
    (rates,) = _coerce_rows([inputs.benefits], ("vt", "vr", "va"), strict)
    (bdi_params,) = _coerce_rows([inputs.bdi], ("profit_margin",), strict)

    salary = calculate_salary_block(
        salary_base,
        headcount,
        working_days,
        inputs.shift,
        additions,
        inputs.minimum_wage,
    )
    charges = calculate_social_charges_block(salary.total, social_charges)
    benefits = calculate_benefits_block(rates, working_days, headcount)
    materials = calculate_materials_block(material_rows)
    uniforms = calculate_uniforms_block(uniform_rows, headcount)
    intrajornada = calculate_intrajornada_block(
        inputs.has_intrajornada, salary_base, headcount
    )

    subtotal = (
        salary.total
        + charges.total
        + benefits.total
        + materials.total
        + uniforms.total
        + intrajornada.total
    )
    bdi = calculate_bdi_block(subtotal, bdi_params, inputs.city.iss_percent)

    return PositionCalculation(
        is_complete=True,
        salary=salary,
        social_charges=charges,
        benefits=benefits,
        materials=materials,
        uniforms=uniforms,
        intrajornada=intrajornada,
        bdi=bdi,
        subtotal_without_bdi=subtotal,
        final_total=subtotal + bdi.total,
    )


def budget_total(positions: Iterable[PositionCalculation]) -> Decimal:
    """Sum of the final totals of the complete positions of a budget."""
    return sum(
        (p.final_total for p in positions if p.is_complete and p.final_total is not None),
        _ZERO,
    )
