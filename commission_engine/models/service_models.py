"""
Service Layer Data Transfer Objects.

Pydantic models crossing the boundary between calculators, services and
the presentation layer.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Generic, Optional, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from commission_engine.models.contract import Contract
from commission_engine.models.enums import BonusTransactionType

T = TypeVar("T")

__all__ = [
    "BonusContribution",
    "BonusPoolSnapshot",
    "BonusFundOverview",
    "BonusTransaction",
    "CommissionSummary",
    "CommissionTier",
    "EmployeeAllocation",
    "MonthlyCommission",
    "OpenContractScenario",
    "PaymentResult",
    "ProgressInfo",
    "ServiceResult",
]


# ---------------------------------------------------------------------------
# Commission models
# ---------------------------------------------------------------------------

class CommissionTier(BaseModel):
    """A commission band.  ``max_value`` of ``None`` means unbounded.

    Also accepts the camelCase keys stored in ``system_configurations``
    (``percentage``, ``minValue``, ``maxValue``).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    rate: Decimal = Field(ge=0, validation_alias=AliasChoices("rate", "percentage"))
    min_value: Decimal = Field(ge=0, validation_alias=AliasChoices("min_value", "minValue"))
    max_value: Optional[Decimal] = Field(
        default=None, validation_alias=AliasChoices("max_value", "maxValue")
    )
    label: str

    @model_validator(mode="after")
    def _check_bounds(self) -> "CommissionTier":
        if self.max_value is not None and self.max_value <= self.min_value:
            raise ValueError(
                f"Tier '{self.label}': max_value {self.max_value} must exceed "
                f"min_value {self.min_value}"
            )
        return self

    def contains(self, volume: Decimal) -> bool:
        """Lower bound exclusive except for the first band, upper bound inclusive."""
        above_min = volume > self.min_value or (self.min_value == 0 and volume == 0)
        below_max = self.max_value is None or volume <= self.max_value
        return above_min and below_max


class MonthlyCommission(BaseModel):
    """Closed contracts of one month and what they paid."""

    contracts: list[Contract] = Field(default_factory=list)
    total_value: Decimal = Decimal("0")
    commission: Decimal = Decimal("0")


class OpenContractScenario(BaseModel):
    """An open proposal with its commission at every tier rate."""

    contract: Contract
    commission_by_tier: dict[str, Decimal]


class ProgressInfo(BaseModel):
    """Where a volume stands against the tier ladder."""

    current_rate: Decimal
    current_tier: CommissionTier
    progress_percentage: Decimal
    next_milestone: Optional[Decimal] = None
    remaining_to_next: Decimal = Decimal("0")
    has_achievement: bool = False


class CommissionSummary(BaseModel):
    """Everything the commission view shows for one employee."""

    employee_id: str
    role: str
    year: int
    monthly: dict[str, MonthlyCommission]
    annual_commission: Decimal = Decimal("0")
    current_month_total: Decimal = Decimal("0")
    progress: ProgressInfo
    open_scenarios: list[OpenContractScenario] = Field(default_factory=list)
    open_totals: dict[str, Decimal] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Bonus fund models
# ---------------------------------------------------------------------------

class BonusContribution(BaseModel):
    """What one closed, unprocessed contract adds to the pool."""

    contract_id: str
    client_name: str
    contract_value: Decimal
    fixed_amount: Decimal
    percentage_amount: Decimal
    total_contribution: Decimal
    date: datetime


class BonusPoolSnapshot(BaseModel):
    """The pool as recomputed from the current contracts and processed set."""

    total_amount: Decimal = Decimal("0")
    contributions: list[BonusContribution] = Field(default_factory=list)

    @property
    def qualifying_contract_ids(self) -> list[str]:
        return [c.contract_id for c in self.contributions]


class EmployeeAllocation(BaseModel):
    """An employee's projected share of the pool."""

    employee_id: str
    name: str = ""
    admission_date: Optional[date] = None
    months_worked: int = 0
    projected_bonus: Decimal = Decimal("0")


class BonusTransaction(BaseModel):
    """An entry of the append-only bonus history."""

    id: str
    type: BonusTransactionType
    date: datetime
    description: str = ""
    amount: Decimal
    employee_name: Optional[str] = None
    contract_origin: Optional[str] = None
    cycle_id: Optional[str] = None

    model_config = {"from_attributes": True}


class PaymentResult(BaseModel):
    """Outcome of a payout: the history entries and the contracts consumed."""

    cycle_id: str
    total_paid: Decimal
    transactions: list[BonusTransaction] = Field(default_factory=list)
    processed_contract_ids: list[str] = Field(default_factory=list)
    beneficiaries: int = 0


class BonusFundOverview(BaseModel):
    """The fund view: open pool, projected shares and full history."""

    snapshot: BonusPoolSnapshot
    allocations: list[EmployeeAllocation] = Field(default_factory=list)
    history: list[BonusTransaction] = Field(default_factory=list)
    processed_count: int = 0


# ---------------------------------------------------------------------------
# Generic service models
# ---------------------------------------------------------------------------

class ServiceResult(BaseModel, Generic[T]):
    """
    Standard service return envelope.

    Service methods never raise for expected failures (nothing to pay,
    unknown confirmation token, unreachable store); they return
    ``success=False`` with a user-facing ``error`` and an HTTP-like
    ``status_code``.
    """

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    status_code: int = 200
