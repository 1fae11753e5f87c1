"""
Bonus Pool Allocator.

Pure functions for the bonus fund cycle.  Every closed contract not yet
paid out feeds the pool with a fixed amount plus a percentage of its
value; a payout splits the pool among non-admin employees in proportion
to the months they worked in the current year, then marks the feeding
contracts as processed so they never count again.

The pool is never stored: it is recomputed from the contracts and the
processed set on every call, which keeps it idempotent.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from commission_engine.models.contract import Contract
from commission_engine.models.employee import Employee
from commission_engine.models.enums import BonusTransactionType
from commission_engine.models.service_models import (
    BonusContribution,
    BonusPoolSnapshot,
    BonusTransaction,
    EmployeeAllocation,
    PaymentResult,
)

__all__ = [
    "DEFAULT_ADMISSION_DATE",
    "DEFAULT_FIXED_AMOUNT",
    "DEFAULT_PERCENTAGE_RATE",
    "SYSTEM_EMPLOYEE_NAME",
    "allocate_proportionally",
    "build_payment",
    "compute_pool_contributions",
    "contribution_transactions",
    "months_worked_this_year",
]

DEFAULT_FIXED_AMOUNT: Decimal = Decimal("50.00")
DEFAULT_PERCENTAGE_RATE: Decimal = Decimal("0.001")
DEFAULT_ADMISSION_DATE: date = date(2024, 1, 1)
SYSTEM_EMPLOYEE_NAME: str = "Sistema"

_ZERO = Decimal("0")


# --- 1. Pool contributions ---

def compute_pool_contributions(
    contracts: Iterable[Contract],
    processed: set[str] | frozenset[str],
    fixed_amount: Decimal = DEFAULT_FIXED_AMOUNT,
    percentage_rate: Decimal = DEFAULT_PERCENTAGE_RATE,
) -> BonusPoolSnapshot:
    """Recompute the pool from closed contracts outside the processed set.

    Args:
        contracts: All proposals; only ``Fechado`` ones count.
        processed: Ids of contracts already paid out.
        fixed_amount: Flat amount per contract (R$ 50.00).
        percentage_rate: Fraction of the contract value (0.001 = 0.1%).

    Returns:
        Snapshot with the total and one contribution per qualifying contract.
    """
    contributions: list[BonusContribution] = []
    total = _ZERO
    for contract in contracts:
        if not contract.is_closed or contract.id in processed:
            continue
        percentage_amount = contract.total_value * percentage_rate
        contribution = fixed_amount + percentage_amount
        contributions.append(
            BonusContribution(
                contract_id=contract.id,
                client_name=contract.client,
                contract_value=contract.total_value,
                fixed_amount=fixed_amount,
                percentage_amount=percentage_amount,
                total_contribution=contribution,
                date=contract.last_activity,
            )
        )
        total += contribution
    return BonusPoolSnapshot(total_amount=total, contributions=contributions)


def contribution_transactions(snapshot: BonusPoolSnapshot) -> list[BonusTransaction]:
    """History entries of the open cycle, most recent first.

    Each qualifying contract yields a fixed entry and a percentage entry.
    """
    entries: list[BonusTransaction] = []
    for item in snapshot.contributions:
        entries.append(
            BonusTransaction(
                id=f"fixed-{item.contract_id}",
                type=BonusTransactionType.CONTRIBUTION,
                date=item.date,
                description="Valor fixo por contrato fechado",
                amount=item.fixed_amount,
                contract_origin=item.client_name,
            )
        )
        entries.append(
            BonusTransaction(
                id=f"percentage-{item.contract_id}",
                type=BonusTransactionType.CONTRIBUTION,
                date=item.date,
                description="0,1% do valor global do contrato",
                amount=item.percentage_amount,
                contract_origin=item.client_name,
            )
        )
    # Stable sort keeps the fixed entry ahead of its percentage entry.
    entries.sort(key=lambda t: t.date, reverse=True)
    return entries


# --- 2. Proportional allocation ---

def months_worked_this_year(
    admission_date: Optional[date],
    as_of: date,
    default_admission: date = DEFAULT_ADMISSION_DATE,
) -> int:
    """Months of the ``as_of`` year the employee counts for.

    An admission in an earlier year starts the count on January 1st.  A
    start after *as_of* counts 0; otherwise the month difference plus one,
    less one when the day of month has not been reached yet, never below 1.
    A missing admission date falls back to *default_admission*.
    """
    admission = admission_date or default_admission
    start = date(as_of.year, 1, 1) if admission.year < as_of.year else admission
    if start > as_of:
        return 0

    months = (as_of.month - start.month) + 1
    if as_of.day < start.day:
        months -= 1
    return max(1, months)


def allocate_proportionally(
    total_amount: Decimal,
    employees: Iterable[Employee],
    as_of: date,
    default_admission: date = DEFAULT_ADMISSION_DATE,
) -> list[EmployeeAllocation]:
    """Split *total_amount* among non-admin employees by months worked.

    Every share is zero when nobody has worked a month this year, so the
    division never runs on a zero denominator.
    """
    allocations = [
        EmployeeAllocation(
            employee_id=employee.id,
            name=employee.name,
            admission_date=employee.admission_date or default_admission,
            months_worked=months_worked_this_year(
                employee.admission_date, as_of, default_admission
            ),
        )
        for employee in employees
        if employee.receives_bonus
    ]

    total_months = sum(a.months_worked for a in allocations)
    if total_months == 0:
        return allocations

    for allocation in allocations:
        allocation.projected_bonus = (
            Decimal(allocation.months_worked) / Decimal(total_months) * total_amount
        )
    return allocations


# --- 3. Payment ---

def build_payment(
    snapshot: BonusPoolSnapshot,
    allocations: Sequence[EmployeeAllocation],
    paid_at: datetime,
    cycle_id: str,
) -> Optional[PaymentResult]:
    """Build the history entries that pay out and close the current cycle.

    Returns ``None`` when the pool is empty (``total_amount <= 0``); the
    caller turns that into a rejection.  Otherwise the result carries one
    negative ``payment`` entry per allocation with a positive share, a
    ``cycle_end`` entry with the cleared total, and every qualifying
    contract id to mark processed.
    """
    if snapshot.total_amount <= 0:
        return None

    payments = [
        BonusTransaction(
            id=f"payment-{allocation.employee_id}-{cycle_id}",
            type=BonusTransactionType.PAYMENT,
            date=paid_at,
            description=(
                "Pagamento de bonificação proporcional "
                f"({allocation.months_worked} meses em {paid_at.year})"
            ),
            amount=-allocation.projected_bonus,
            employee_name=allocation.name,
            cycle_id=cycle_id,
        )
        for allocation in allocations
        if allocation.projected_bonus > 0
    ]

    contract_ids = snapshot.qualifying_contract_ids
    cycle_end = BonusTransaction(
        id=f"cycle-end-{cycle_id}",
        type=BonusTransactionType.CYCLE_END,
        date=paid_at,
        description=(
            "FUNDO ZERADO - Fim do ciclo de bonificação. "
            f"Contratos processados: {len(contract_ids)}. Novo ciclo iniciado."
        ),
        amount=-snapshot.total_amount,
        employee_name=SYSTEM_EMPLOYEE_NAME,
        cycle_id=cycle_id,
    )

    return PaymentResult(
        cycle_id=cycle_id,
        total_paid=snapshot.total_amount,
        transactions=[cycle_end, *payments],
        processed_contract_ids=contract_ids,
        beneficiaries=len(payments),
    )
