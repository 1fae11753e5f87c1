"""
Proposal Repository.

Read access to the ``proposals`` table.  Rows that fail validation (a
negative ``total_value``, a missing ``created_at``) are rejected here,
logged and skipped, so the calculators only ever see valid contracts.
"""

from __future__ import annotations

from typing import Optional

from pydantic import ValidationError

from commission_engine.models.contract import Contract
from commission_engine.models.enums import ProposalStatus
from commission_engine.repositories.base_repository import BaseRepository, Row


class ProposalRepository(BaseRepository):
    """Data access layer for proposals / contracts."""

    TABLE = "proposals"

    def get_all(self, status: Optional[ProposalStatus] = None) -> list[Contract]:
        """Fetch every proposal, newest first, optionally filtered by status."""
        options: dict[str, object] = {"order": "created_at", "desc": True}
        if status is not None:
            options["eq"] = {"status": str(status)}
        rows = self._select(options, operation_name="get_all (proposals)")
        return self._to_contracts(rows)

    def get_closed(self) -> list[Contract]:
        """Fetch the contracts with status ``Fechado``."""
        return self.get_all(ProposalStatus.FECHADO)

    def _to_contracts(self, rows: list[Row]) -> list[Contract]:
        contracts: list[Contract] = []
        for row in rows:
            try:
                contracts.append(Contract.model_validate(row))
            except ValidationError as exc:
                self._logger.warning(
                    "Rejected proposal %s at ingestion: %s",
                    row.get("id", "<unknown>"),
                    exc,
                )
        return contracts
