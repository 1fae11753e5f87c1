"""
Shared Enumerations for commission engine models.

Values mirror the strings stored in the dashboard's Supabase tables, so
``status == "Fechado"`` keeps working against raw rows.
"""

from __future__ import annotations

from enum import StrEnum


class ProposalStatus(StrEnum):
    """Sales pipeline stages of a proposal / contract."""

    PROPOSTA = "Proposta"
    NEGOCIACAO = "Negociação"
    FECHADO = "Fechado"
    PERDIDO = "Perdido"


OPEN_STATUSES: frozenset[ProposalStatus] = frozenset(
    {ProposalStatus.PROPOSTA, ProposalStatus.NEGOCIACAO}
)


class EmployeeRole(StrEnum):
    """Roles of the commercial team.  ``ADMIN`` takes no bonus share."""

    SDR = "SDR"
    CLOSER = "Closer"
    ADMIN = "Admin"


class CommissionRole(StrEnum):
    """Which side of a contract an employee is credited on."""

    CLOSER = "closer"
    SDR = "sdr"


class BonusTransactionType(StrEnum):
    """Entries of the bonus fund history."""

    CONTRIBUTION = "contribution"
    PAYMENT = "payment"
    CYCLE_END = "cycle_end"


class Shift(StrEnum):
    """Work turn of a staffing position."""

    DIURNO = "Diurno"
    NOTURNO = "Noturno"


class SalaryAdditionBase(StrEnum):
    """What a salary addition is computed from."""

    SALARIO_MINIMO = "salario_minimo"
    SALARIO_BASE = "salario_base"
    VALOR_FIXO = "valor_fixo"
