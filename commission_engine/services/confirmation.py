"""
Two-Phase Confirmation.

Destructive actions (the bonus payout first of all) are split into a
request that issues a token and a confirm call that redeems it.  Tokens
are single-use, expire after a TTL, and only confirm the action they were
issued for.
"""

from __future__ import annotations

import secrets
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional

from commission_engine.logger import StructuredLogger

__all__ = ["ConfirmationService", "PendingConfirmation"]


@dataclass(frozen=True)
class PendingConfirmation:
    action: str
    subject_id: str
    expires_at: float


class ConfirmationService:
    """Issues and redeems confirmation tokens."""

    def __init__(
        self,
        ttl_seconds: float = 120.0,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[StructuredLogger] = None,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._logger = logger
        self._lock = threading.Lock()
        self._pending: dict[str, PendingConfirmation] = {}

    def request_confirmation(self, action: str, subject_id: str) -> str:
        """Register an intent to run *action* on *subject_id* and return its token."""
        token = secrets.token_urlsafe(24)
        with self._lock:
            self._purge_expired()
            self._pending[token] = PendingConfirmation(
                action=action,
                subject_id=subject_id,
                expires_at=self._clock() + self._ttl,
            )
        if self._logger is not None:
            self._logger.info("Confirmation requested for %s on %s", action, subject_id)
        return token

    def confirm(self, token: str, action: str, subject_id: Optional[str] = None) -> bool:
        """Redeem *token* for *action* and, when given, *subject_id*.

        The token is consumed whatever the outcome, so a token presented
        for the wrong action or subject cannot be retried.
        """
        with self._lock:
            pending = self._pending.pop(token, None)

        if pending is None:
            return False
        if self._clock() >= pending.expires_at:
            if self._logger is not None:
                self._logger.warning("Expired confirmation token for %s", pending.action)
            return False
        if pending.action != action:
            if self._logger is not None:
                self._logger.warning(
                    "Confirmation token for %s presented for %s", pending.action, action
                )
            return False
        if subject_id is not None and pending.subject_id != subject_id:
            if self._logger is not None:
                self._logger.warning(
                    "Confirmation token for %s presented for %s",
                    pending.subject_id,
                    subject_id,
                )
            return False
        return True

    def _purge_expired(self) -> None:
        now = self._clock()
        for token in [t for t, p in self._pending.items() if now >= p.expires_at]:
            del self._pending[token]
