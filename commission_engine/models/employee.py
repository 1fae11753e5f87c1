"""
Employee Model.

Pydantic model for a row of the ``employees`` table.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, field_validator

from commission_engine.models.enums import EmployeeRole
from commission_engine.utils.dates import parse_date


class Employee(BaseModel):
    """A member of the commercial team."""

    id: str
    name: str = ""
    email: Optional[str] = None
    avatar: Optional[str] = None
    role: EmployeeRole = EmployeeRole.CLOSER
    admission_date: Optional[date] = None

    model_config = {"from_attributes": True}

    @field_validator("admission_date", mode="before")
    @classmethod
    def _parse_admission(cls: type[Employee], v: object) -> Optional[date]:
        return parse_date(v)

    @property
    def receives_bonus(self) -> bool:
        return self.role != EmployeeRole.ADMIN
