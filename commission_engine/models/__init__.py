"""
Pydantic data models for the commission engine.

Usage:
    from commission_engine.models import Contract, Employee, ServiceResult
"""

from commission_engine.models.budget_models import (
    BdiParameters,
    BenefitRates,
    BudgetCatalogs,
    BudgetPost,
    City,
    JobRole,
    MaterialItem,
    PositionCalculation,
    PositionInput,
    SalaryAddition,
    SocialCharge,
    UniformItem,
    WorkScale,
)
from commission_engine.models.contract import Contract
from commission_engine.models.employee import Employee
from commission_engine.models.enums import (
    OPEN_STATUSES,
    BonusTransactionType,
    CommissionRole,
    EmployeeRole,
    ProposalStatus,
    SalaryAdditionBase,
    Shift,
)
from commission_engine.models.service_models import (
    BonusContribution,
    BonusFundOverview,
    BonusPoolSnapshot,
    BonusTransaction,
    CommissionSummary,
    CommissionTier,
    EmployeeAllocation,
    MonthlyCommission,
    OpenContractScenario,
    PaymentResult,
    ProgressInfo,
    ServiceResult,
)

__all__ = [
    "OPEN_STATUSES",
    "BdiParameters",
    "BenefitRates",
    "BonusContribution",
    "BonusFundOverview",
    "BonusPoolSnapshot",
    "BonusTransaction",
    "BonusTransactionType",
    "BudgetCatalogs",
    "BudgetPost",
    "City",
    "CommissionRole",
    "CommissionSummary",
    "CommissionTier",
    "Contract",
    "Employee",
    "EmployeeAllocation",
    "EmployeeRole",
    "JobRole",
    "MaterialItem",
    "MonthlyCommission",
    "OpenContractScenario",
    "PaymentResult",
    "PositionCalculation",
    "PositionInput",
    "ProgressInfo",
    "ProposalStatus",
    "SalaryAddition",
    "SalaryAdditionBase",
    "ServiceResult",
    "Shift",
    "SocialCharge",
    "UniformItem",
    "WorkScale",
]
