"""
Contract Model.

Pydantic model for a row of the ``proposals`` table.  A proposal becomes
a contract once its status is ``Fechado``; the same record is used for
the whole pipeline.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from commission_engine.models.enums import ProposalStatus
from commission_engine.utils.dates import parse_date, parse_datetime


class Contract(BaseModel):
    """A proposal or closed contract.

    ``total_value`` is validated as non-negative here, at ingestion, so
    the calculators never have to guard against negative volumes.
    """

    id: str
    client: str = ""
    total_value: Decimal = Field(default=Decimal("0"), ge=0)
    status: ProposalStatus = ProposalStatus.PROPOSTA
    closer_id: Optional[str] = None
    sdr_id: Optional[str] = None
    closing_date: Optional[date] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @field_validator("total_value", mode="before")
    @classmethod
    def _null_value_is_zero(cls: type[Contract], v: object) -> object:
        return Decimal("0") if v is None else v

    @field_validator("closing_date", mode="before")
    @classmethod
    def _parse_closing_date(cls: type[Contract], v: object) -> Optional[date]:
        return parse_date(v)

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _parse_timestamps(cls: type[Contract], v: object) -> Optional[datetime]:
        return parse_datetime(v)

    @property
    def is_closed(self) -> bool:
        return self.status == ProposalStatus.FECHADO

    @property
    def reference_date(self) -> date:
        """Date that places the contract in a month: closing date, else creation."""
        if self.closing_date is not None:
            return self.closing_date
        return self.created_at.date()

    @property
    def last_activity(self) -> datetime:
        return self.updated_at or self.created_at
