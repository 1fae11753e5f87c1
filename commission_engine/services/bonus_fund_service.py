"""
Bonus Fund Service.

Orchestrates the bonus fund cycle: recomputes the open pool from closed
contracts, projects each employee's share, and performs the payout.

The payout is two-phase.  :meth:`BonusFundService.request_payment`
returns a confirmation token; :meth:`BonusFundService.pay` redeems it and,
under the database write lock and inside one SQLite transaction,
recomputes the pool, marks the qualifying contracts processed and appends
the history entries.  Either everything lands or nothing does.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from commission_engine.config import AppConfig
from commission_engine.database import DatabaseManager
from commission_engine.logger import StructuredLogger
from commission_engine.models.contract import Contract
from commission_engine.models.employee import Employee
from commission_engine.models.service_models import (
    BonusFundOverview,
    BonusPoolSnapshot,
    EmployeeAllocation,
    PaymentResult,
    ServiceResult,
)
from commission_engine.repositories.bonus_fund_repository import BonusFundRepository
from commission_engine.repositories.employee_repository import EmployeeRepository
from commission_engine.repositories.proposal_repository import ProposalRepository
from commission_engine.services.base_service import BaseService
from commission_engine.services.bonus_pool import (
    allocate_proportionally,
    build_payment,
    compute_pool_contributions,
    contribution_transactions,
)
from commission_engine.services.confirmation import ConfirmationService
from commission_engine.utils.audit import log_audit_event
from commission_engine.utils.math_utils import format_currency

PAY_ACTION = "bonus_fund.pay"
FUND_SUBJECT_ID = "bonus_fund"

EMPTY_FUND_MESSAGE = "Não há valor no fundo para distribuir."
INVALID_TOKEN_MESSAGE = "Confirmação inválida ou expirada."


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BonusFundService(BaseService):
    """
    Service layer for the bonus fund.

    Dependencies are injected via __init__; ``clock`` supplies the
    payment timestamp and the reference date for months worked.
    """

    def __init__(
        self,
        proposal_repo: ProposalRepository,
        employee_repo: EmployeeRepository,
        bonus_repo: BonusFundRepository,
        db: DatabaseManager,
        confirmation: ConfirmationService,
        config: AppConfig,
        logger: StructuredLogger,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        super().__init__(logger)
        self._proposals = proposal_repo
        self._employees = employee_repo
        self._bonus_repo = bonus_repo
        self._db = db
        self._confirmation = confirmation
        self._config = config
        self._clock = clock

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def _snapshot(self, contracts: list[Contract]) -> BonusPoolSnapshot:
        return compute_pool_contributions(
            contracts,
            self._bonus_repo.get_processed_ids(),
            fixed_amount=self._config.BONUS_FIXED_AMOUNT,
            percentage_rate=self._config.BONUS_PERCENTAGE_RATE,
        )

    def _allocate(
        self, total: Decimal, employees: list[Employee], as_of: date
    ) -> list[EmployeeAllocation]:
        return allocate_proportionally(
            total,
            employees,
            as_of,
            default_admission=self._config.BONUS_DEFAULT_ADMISSION_DATE,
        )

    def get_snapshot(self) -> ServiceResult[BonusPoolSnapshot]:
        """Current open pool."""
        try:
            return ServiceResult(
                success=True, data=self._snapshot(self._proposals.get_closed())
            )
        except Exception as exc:
            self._logger.error("Failed to compute bonus pool: %s", exc, exc_info=True)
            return ServiceResult(
                success=False,
                error=f"Database error computing bonus pool: {exc}",
                status_code=500,
            )

    def get_overview(self, as_of: Optional[date] = None) -> ServiceResult[BonusFundOverview]:
        """
        Open pool, projected shares and history (open contributions plus
        stored entries), most recent first.

        Args:
            as_of: Reference date for months worked; defaults to today.
        """
        reference = as_of or self._clock().date()
        try:
            snapshot = self._snapshot(self._proposals.get_closed())
            allocations = self._allocate(
                snapshot.total_amount, self._employees.get_all(), reference
            )
            history = contribution_transactions(snapshot) + self._bonus_repo.list_transactions()
            history.sort(key=lambda t: t.date, reverse=True)

            return ServiceResult(
                success=True,
                data=BonusFundOverview(
                    snapshot=snapshot,
                    allocations=allocations,
                    history=history,
                    processed_count=self._bonus_repo.count_processed(),
                ),
            )
        except Exception as exc:
            self._logger.error("Failed to build bonus overview: %s", exc, exc_info=True)
            return ServiceResult(
                success=False,
                error=f"Database error building bonus overview: {exc}",
                status_code=500,
            )

    # ------------------------------------------------------------------
    # Payment (two-phase)
    # ------------------------------------------------------------------

    def request_payment(self) -> ServiceResult[dict[str, str]]:
        """
        First phase: check there is something to pay and issue a token.

        Returns:
            ServiceResult with ``token``, the formatted ``total`` and the
            number of ``beneficiaries``, or a 400 when the pool is empty.
        """
        overview = self.get_overview()
        if not overview.success or overview.data is None:
            return ServiceResult(
                success=False, error=overview.error, status_code=overview.status_code
            )

        snapshot = overview.data.snapshot
        if snapshot.total_amount <= 0:
            return ServiceResult(success=False, error=EMPTY_FUND_MESSAGE, status_code=400)

        token = self._confirmation.request_confirmation(PAY_ACTION, FUND_SUBJECT_ID)
        beneficiaries = sum(1 for a in overview.data.allocations if a.projected_bonus > 0)
        return ServiceResult(
            success=True,
            data={
                "token": token,
                "total": format_currency(snapshot.total_amount),
                "beneficiaries": str(beneficiaries),
            },
        )

    def pay(self, token: str, user_id: str = "system") -> ServiceResult[PaymentResult]:
        """
        Second phase: distribute the pool and start a new cycle.

        The pool is recomputed under the write lock, so a concurrent or
        repeated payout sees the contracts already processed and is
        rejected with the empty-fund error.

        Args:
            token: Token returned by :meth:`request_payment`.
            user_id: Operator recorded in the audit trail.
        """
        if not self._confirmation.confirm(token, PAY_ACTION, FUND_SUBJECT_ID):
            return ServiceResult(success=False, error=INVALID_TOKEN_MESSAGE, status_code=403)

        try:
            contracts = self._proposals.get_closed()
            employees = self._employees.get_all()

            with self._db.write_lock, self._db.batch_write():
                snapshot = self._snapshot(contracts)
                paid_at = self._clock()
                cycle_id = uuid.uuid4().hex[:12]
                cycle_log = self._logger.bind(cycle_id=cycle_id, user_id=user_id)
                allocations = self._allocate(snapshot.total_amount, employees, paid_at.date())

                payment = build_payment(snapshot, allocations, paid_at, cycle_id)
                if payment is None:
                    return ServiceResult(
                        success=False, error=EMPTY_FUND_MESSAGE, status_code=400
                    )

                contributions = [
                    entry.model_copy(update={"cycle_id": cycle_id})
                    for entry in contribution_transactions(snapshot)
                ]
                self._bonus_repo.mark_processed(
                    payment.processed_contract_ids, cycle_id, paid_at
                )
                self._bonus_repo.append_transactions(contributions + payment.transactions)

                log_audit_event(
                    logger=cycle_log,
                    action="BONUS_PAYMENT",
                    entity_type="BonusCycle",
                    entity_id=cycle_id,
                    user_id=user_id,
                    details={
                        "total_paid": str(payment.total_paid),
                        "beneficiaries": payment.beneficiaries,
                        "contracts_processed": len(payment.processed_contract_ids),
                    },
                    conn=self._db.sqlite,
                    commit=False,
                )
        except Exception as exc:
            self._logger.error("Bonus payment failed: %s", exc, exc_info=True)
            return ServiceResult(
                success=False,
                error=f"Database error processing bonus payment: {exc}",
                status_code=500,
            )

        cycle_log.info(
            "Bonus cycle paid: %s to %d employees",
            format_currency(payment.total_paid),
            payment.beneficiaries,
            extra={"contracts_processed": len(payment.processed_contract_ids)},
        )
        return ServiceResult(success=True, data=payment)
