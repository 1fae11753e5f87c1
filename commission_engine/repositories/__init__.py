"""
Repository Layer Package.

Data-access abstractions over Supabase (remote reads, through the query
cache) and SQLite (local bonus ledger).  Services never touch
``db.supabase`` or ``db.sqlite`` directly.

Usage:
    from commission_engine.repositories.proposal_repository import ProposalRepository
    from commission_engine.repositories.bonus_fund_repository import BonusFundRepository
"""

from commission_engine.repositories.base_repository import BaseRepository
from commission_engine.repositories.bonus_fund_repository import BonusFundRepository
from commission_engine.repositories.budget_catalog_repository import BudgetCatalogRepository
from commission_engine.repositories.configuration_repository import ConfigurationRepository
from commission_engine.repositories.employee_repository import EmployeeRepository
from commission_engine.repositories.proposal_repository import ProposalRepository

__all__ = [
    "BaseRepository",
    "BonusFundRepository",
    "BudgetCatalogRepository",
    "ConfigurationRepository",
    "EmployeeRepository",
    "ProposalRepository",
]
