"""Shared utility functions and models for the commission engine.

Convenience re-exports so consumers can import directly from
``commission_engine.utils`` (e.g. ``from commission_engine.utils import
format_currency``) while full absolute imports remain supported.
"""

from commission_engine.utils.audit import AuditEvent, log_audit_event
from commission_engine.utils.dates import parse_date, parse_datetime
from commission_engine.utils.math_utils import (
    coerce_amount,
    format_currency,
    round_currency,
    safe_divide,
    to_decimal,
)

__all__ = [
    "AuditEvent",
    "coerce_amount",
    "format_currency",
    "log_audit_event",
    "parse_date",
    "parse_datetime",
    "round_currency",
    "safe_divide",
    "to_decimal",
]
