"""
Date helpers.

Supabase returns ``date`` columns as ``YYYY-MM-DD`` and ``timestamptz``
columns as ISO-8601 strings, with a trailing ``Z``, an explicit offset,
or no offset at all.  Every timestamp leaving this module is timezone
aware; one without an offset is taken as UTC, so timestamps from the
remote store and from the local ledger always compare.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

__all__ = ["parse_date", "parse_datetime"]


def parse_datetime(value: object) -> Optional[datetime]:
    """Coerce ``None``, ``date``, ``datetime`` or an ISO string to an aware ``datetime``.

    Naive values are assumed to be UTC.

    Raises:
        ValueError: If *value* is a string that is not ISO-8601.
        TypeError: If *value* is of an unsupported type.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        moment = datetime.fromisoformat(text)
    else:
        raise TypeError(f"Unsupported date value: {value!r}")

    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def parse_date(value: object) -> Optional[date]:
    """Like :func:`parse_datetime` but keeps only the calendar date."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    moment = parse_datetime(value)
    return moment.date() if moment is not None else None
