"""
Commission Rules Engine.

Pure-function module holding the commission tier ladder and every
calculation built on it: rate lookup, per-contract commission, monthly
breakdown per employee, open-pipeline scenarios and goal progress.

All monetary values are ``Decimal`` at full precision; rates are in
percent (``Decimal("0.4")`` means 0.4%).  Functions are stateless: input
data -> output result, no side effects.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date
from decimal import Decimal
from typing import Optional

from commission_engine.logger import StructuredLogger
from commission_engine.models.contract import Contract
from commission_engine.models.enums import OPEN_STATUSES, CommissionRole
from commission_engine.models.service_models import (
    CommissionTier,
    MonthlyCommission,
    OpenContractScenario,
    ProgressInfo,
)
from commission_engine.utils.math_utils import safe_divide

__all__ = [
    "COMMISSION_TIERS",
    "commission_for_contract",
    "current_month_total",
    "monthly_commission_breakdown",
    "open_contract_scenarios",
    "open_pipeline_totals",
    "progress_info",
    "rate_for_volume",
    "tier_for_volume",
    "validate_tiers",
]

# Single source of truth for the tier ladder.  Every caller that needs a
# rate goes through ``tier_for_volume`` with this table (or a validated
# replacement loaded from configuration).
COMMISSION_TIERS: tuple[CommissionTier, ...] = (
    CommissionTier(
        rate=Decimal("0.4"),
        min_value=Decimal("0"),
        max_value=Decimal("600000"),
        label="Meta Base",
    ),
    CommissionTier(
        rate=Decimal("0.8"),
        min_value=Decimal("600000"),
        max_value=Decimal("1200000"),
        label="Supermeta",
    ),
    CommissionTier(
        rate=Decimal("1.2"),
        min_value=Decimal("1200000"),
        max_value=None,
        label="Megameta",
    ),
)


def validate_tiers(tiers: Sequence[CommissionTier]) -> tuple[CommissionTier, ...]:
    """Check that *tiers* partition ``[0, inf)`` and return them sorted.

    Raises:
        ValueError: On an empty table, a first band not starting at zero,
            a gap or overlap between bands, or a bounded last band.
    """
    if not tiers:
        raise ValueError("Commission tier table is empty")

    ordered = tuple(sorted(tiers, key=lambda t: t.min_value))
    if ordered[0].min_value != 0:
        raise ValueError(
            f"First tier must start at 0, got {ordered[0].min_value}"
        )
    for previous, current in zip(ordered, ordered[1:]):
        if previous.max_value is None or previous.max_value != current.min_value:
            raise ValueError(
                f"Tiers '{previous.label}' and '{current.label}' leave a gap "
                f"or overlap ({previous.max_value} vs {current.min_value})"
            )
    if ordered[-1].max_value is not None:
        raise ValueError(
            f"Last tier '{ordered[-1].label}' must be unbounded"
        )
    return ordered


def tier_for_volume(
    volume: Decimal,
    tiers: Sequence[CommissionTier] = COMMISSION_TIERS,
) -> CommissionTier:
    """Return the tier containing *volume*.

    Boundaries belong to the lower tier: exactly 600,000 is ``Meta Base``
    and exactly 1,200,000 is ``Supermeta``.  Volumes below zero fall into
    the lowest tier.
    """
    for tier in tiers:
        if tier.contains(volume):
            return tier
    return tiers[0]


def rate_for_volume(
    volume: Decimal,
    tiers: Sequence[CommissionTier] = COMMISSION_TIERS,
) -> Decimal:
    """Commission rate (percent) for a sales volume."""
    return tier_for_volume(volume, tiers).rate


def commission_for_contract(contract_value: Decimal, rate: Decimal) -> Decimal:
    """``contract_value × rate / 100``, unrounded."""
    return contract_value * rate / Decimal("100")


def _credited_to(contract: Contract, employee_id: str, role: CommissionRole) -> bool:
    if role == CommissionRole.CLOSER:
        return contract.closer_id == employee_id
    return contract.sdr_id == employee_id


def _month_key(year: int, month: int) -> str:
    return f"{year}-{month:02d}"


def monthly_commission_breakdown(
    contracts: Iterable[Contract],
    employee_id: str,
    role: CommissionRole,
    year: int,
    tiers: Sequence[CommissionTier] = COMMISSION_TIERS,
    logger: Optional[StructuredLogger] = None,
) -> dict[str, MonthlyCommission]:
    """Group an employee's closed contracts of *year* by month.

    Every month ``"YYYY-01"`` .. ``"YYYY-12"`` is present.  A contract is
    placed by its closing date, or its creation date when it has none.
    Each contract's own value picks its rate; the monthly aggregate does
    not.

    Args:
        contracts: All proposals; non-closed ones are ignored.
        employee_id: Employee to credit.
        role: Match on ``closer_id`` or ``sdr_id``.
        year: Calendar year to report.
        tiers: Tier ladder (defaults to :data:`COMMISSION_TIERS`).
        logger: When provided, logs how many contracts were bucketed.

    Returns:
        Mapping of month key to :class:`MonthlyCommission`.
    """
    monthly: dict[str, MonthlyCommission] = {
        _month_key(year, month): MonthlyCommission() for month in range(1, 13)
    }

    counted = 0
    for contract in contracts:
        if not contract.is_closed or not _credited_to(contract, employee_id, role):
            continue
        reference = contract.reference_date
        if reference.year != year:
            continue

        bucket = monthly[_month_key(year, reference.month)]
        rate = rate_for_volume(contract.total_value, tiers)
        bucket.contracts.append(contract)
        bucket.total_value += contract.total_value
        bucket.commission += commission_for_contract(contract.total_value, rate)
        counted += 1

    if logger is not None:
        logger.debug(
            "Monthly breakdown for %s (%s, %d): %d closed contracts",
            employee_id,
            role,
            year,
            counted,
        )
    return monthly


def current_month_total(
    contracts: Iterable[Contract],
    employee_id: str,
    role: CommissionRole,
    as_of: date,
) -> Decimal:
    """Closed volume credited to the employee in the month of *as_of*."""
    total = Decimal("0")
    for contract in contracts:
        if not contract.is_closed or not _credited_to(contract, employee_id, role):
            continue
        reference = contract.reference_date
        if reference.year == as_of.year and reference.month == as_of.month:
            total += contract.total_value
    return total


def open_contract_scenarios(
    contracts: Iterable[Contract],
    employee_id: str,
    role: CommissionRole,
    tiers: Sequence[CommissionTier] = COMMISSION_TIERS,
) -> list[OpenContractScenario]:
    """Open proposals of the employee with their commission at every tier.

    A what-if projection for contracts still in ``Proposta`` or
    ``Negociação``; nothing is mutated.
    """
    scenarios: list[OpenContractScenario] = []
    for contract in contracts:
        if contract.status not in OPEN_STATUSES:
            continue
        if not _credited_to(contract, employee_id, role):
            continue
        scenarios.append(
            OpenContractScenario(
                contract=contract,
                commission_by_tier={
                    tier.label: commission_for_contract(contract.total_value, tier.rate)
                    for tier in tiers
                },
            )
        )
    return scenarios


def open_pipeline_totals(
    scenarios: Iterable[OpenContractScenario],
    tiers: Sequence[CommissionTier] = COMMISSION_TIERS,
) -> dict[str, Decimal]:
    """Sum the what-if commissions of every scenario, per tier label."""
    totals: dict[str, Decimal] = {tier.label: Decimal("0") for tier in tiers}
    for scenario in scenarios:
        for label, amount in scenario.commission_by_tier.items():
            totals[label] = totals.get(label, Decimal("0")) + amount
    return totals


def progress_info(
    current_value: Decimal,
    tiers: Sequence[CommissionTier] = COMMISSION_TIERS,
) -> ProgressInfo:
    """Progress of a monthly volume along the tier ladder.

    ``progress_percentage`` is the share of the current tier's ceiling
    already reached (capped at 100; the open-ended tier is always 100).
    ``next_milestone`` is the first tier ceiling above the volume.
    """
    tier = tier_for_volume(current_value, tiers)

    if tier.max_value is None:
        progress = Decimal("100")
    else:
        progress = min(
            safe_divide(current_value, tier.max_value) * Decimal("100"),
            Decimal("100"),
        )

    next_milestone: Optional[Decimal] = None
    for candidate in tiers:
        if candidate.max_value is not None and current_value < candidate.max_value:
            next_milestone = candidate.max_value
            break

    first_ceiling = tiers[0].max_value
    return ProgressInfo(
        current_rate=tier.rate,
        current_tier=tier,
        progress_percentage=progress,
        next_milestone=next_milestone,
        remaining_to_next=(next_milestone - current_value) if next_milestone is not None else Decimal("0"),
        has_achievement=first_ceiling is not None and current_value >= first_ceiling,
    )
