"""
Business Logic Services Package.

Pure calculators (``commission_rules``, ``bonus_pool``, ``position_cost``)
plus the application services that feed them from the repositories.

The ``create_services()`` factory wires every repository and service together,
returning a typed dict that the entry point can consume without knowing
the internal dependency graph.
"""

from __future__ import annotations

from typing import Optional, TypedDict

from commission_engine.cache import QueryCache
from commission_engine.config import AppConfig
from commission_engine.database import DatabaseManager
from commission_engine.logger import StructuredLogger, get_logger
from commission_engine.repositories.bonus_fund_repository import BonusFundRepository
from commission_engine.repositories.budget_catalog_repository import BudgetCatalogRepository
from commission_engine.repositories.configuration_repository import ConfigurationRepository
from commission_engine.repositories.employee_repository import EmployeeRepository
from commission_engine.repositories.proposal_repository import ProposalRepository
from commission_engine.services.bonus_fund_service import BonusFundService
from commission_engine.services.budget_service import BudgetService
from commission_engine.services.commission_service import CommissionService
from commission_engine.services.confirmation import ConfirmationService


class ServiceContainer(TypedDict):
    """Typed container for all application services."""

    commission_service: CommissionService
    bonus_fund_service: BonusFundService
    budget_service: BudgetService
    confirmation_service: ConfirmationService
    query_cache: QueryCache


def create_services(
    db: DatabaseManager,
    config: AppConfig,
    cache: Optional[QueryCache] = None,
    logger: Optional[StructuredLogger] = None,
) -> ServiceContainer:
    """
    Wire all repositories and services together.

    This is the single composition root for the service layer.  The
    entry point calls it once at startup.

    Args:
        db: Initialised DatabaseManager with the schema applied.
        config: Application configuration.
        cache: Shared query cache; one is created from config when omitted.
        logger: Logger shared by repositories and services.

    Returns:
        ServiceContainer mapping service names to fully-wired instances.
    """
    logger = logger or get_logger("services")
    cache = cache or QueryCache(default_ttl=config.QUERY_CACHE_TTL_S, logger=logger)

    # ------------------------------------------------------------------
    # 1. Repositories (data-access layer)
    # ------------------------------------------------------------------
    proposal_repo = ProposalRepository(db=db, logger=logger, cache=cache)
    employee_repo = EmployeeRepository(db=db, logger=logger, cache=cache)
    config_repo = ConfigurationRepository(db=db, logger=logger, cache=cache)
    catalog_repo = BudgetCatalogRepository(db=db, logger=logger, cache=cache)
    bonus_repo = BonusFundRepository(db=db, logger=logger)

    # ------------------------------------------------------------------
    # 2. Services
    # ------------------------------------------------------------------
    confirmation_service = ConfirmationService(
        ttl_seconds=config.CONFIRMATION_TTL_S,
        logger=logger,
    )
    commission_service = CommissionService(
        proposal_repo=proposal_repo,
        employee_repo=employee_repo,
        config_repo=config_repo,
        config=config,
        logger=logger,
    )
    bonus_fund_service = BonusFundService(
        proposal_repo=proposal_repo,
        employee_repo=employee_repo,
        bonus_repo=bonus_repo,
        db=db,
        confirmation=confirmation_service,
        config=config,
        logger=logger,
    )
    budget_service = BudgetService(
        catalog_repo=catalog_repo,
        config=config,
        logger=logger,
    )

    return ServiceContainer(
        commission_service=commission_service,
        bonus_fund_service=bonus_fund_service,
        budget_service=budget_service,
        confirmation_service=confirmation_service,
        query_cache=cache,
    )
