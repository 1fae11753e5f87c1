"""
Employee Repository.

Read access to the ``employees`` table.
"""

from __future__ import annotations

from pydantic import ValidationError

from commission_engine.models.employee import Employee
from commission_engine.models.enums import EmployeeRole
from commission_engine.repositories.base_repository import BaseRepository


class EmployeeRepository(BaseRepository):
    """Data access layer for Employee entities."""

    TABLE = "employees"

    def get_all(self) -> list[Employee]:
        """Fetch every employee ordered by name."""
        rows = self._select({"order": "name"}, operation_name="get_all (employees)")
        employees: list[Employee] = []
        for row in rows:
            try:
                employees.append(Employee.model_validate(row))
            except ValidationError as exc:
                self._logger.warning(
                    "Skipping invalid employee row %s: %s", row.get("id", "<unknown>"), exc
                )
        return employees

    def get_by_role(self, role: EmployeeRole) -> list[Employee]:
        return [e for e in self.get_all() if e.role == role]
