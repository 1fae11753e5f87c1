"""
Application Configuration.

Pydantic Settings model for the commission engine.
All configuration is loaded from environment variables and .env files.
Inject an AppConfig instance via dependency injection where needed.
"""

from __future__ import annotations

import logging
import threading
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Optional

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings


class AppConfig(BaseSettings):
    """Central configuration loaded from environment variables and defaults."""

    # --- Supabase ---
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: SecretStr = SecretStr("")

    # --- Local store (processed contracts, bonus history, audit log) ---
    SQLITE_PATH: str = "commission_local.db"

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "commission_engine.log"
    LOG_MAX_BYTES: int = 5_242_880  # 5 MB
    LOG_BACKUP_COUNT: int = 3

    # --- Query cache ---
    QUERY_CACHE_TTL_S: float = 60.0

    # --- Two-phase confirmation ---
    CONFIRMATION_TTL_S: float = 120.0

    # When True, non-numeric or negative user input raises instead of
    # being coerced to zero.
    STRICT_NUMERIC_INPUT: bool = False

    # --- Bonus fund ---
    BONUS_FIXED_AMOUNT: Decimal = Decimal("50.00")
    BONUS_PERCENTAGE_RATE: Decimal = Decimal("0.001")
    # Admission date assumed for employees without one.
    BONUS_DEFAULT_ADMISSION_DATE: date = date(2024, 1, 1)

    # --- Commercial goals ---
    DEFAULT_MONTHLY_GOAL: Decimal = Decimal("300000")

    # --- Budget defaults ---
    MINIMUM_WAGE: Decimal = Decimal("1412.00")
    DEFAULT_VT_DAILY: Decimal = Decimal("6.80")
    DEFAULT_VR_DAILY: Decimal = Decimal("25.00")
    DEFAULT_VA_DAILY: Decimal = Decimal("35.00")
    DEFAULT_PROFIT_MARGIN: Decimal = Decimal("15.0")
    ADMIN_MARGIN: Decimal = Decimal("4.25")
    PIS_RATE: Decimal = Decimal("0.65")
    COFINS_RATE: Decimal = Decimal("3.00")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @model_validator(mode="after")
    def _warn_missing_env(self) -> "AppConfig":
        """Emit a startup warning when critical configuration is empty.

        Pydantic silently falls back to defaults when ``.env`` is missing,
        so operators get a hint that the engine is running without a
        remote data store.
        """
        _log = logging.getLogger("commission_engine.config")

        if not Path(".env").exists():
            _log.warning(
                "No .env file found; configuration loaded from "
                "environment variables or defaults."
            )

        if not self.SUPABASE_URL:
            _log.warning(
                "SUPABASE_URL is empty. Remote reads are disabled and "
                "repositories will return empty collections."
            )

        return self


# ---------------------------------------------------------------------------
# Module-level singleton factory
# ---------------------------------------------------------------------------

_config_instance: Optional[AppConfig] = None
_config_lock: threading.Lock = threading.Lock()


def get_config() -> AppConfig:
    """Return a cached ``AppConfig`` singleton.

    On first call, creates an ``AppConfig`` instance (reading from ``.env``).
    Subsequent calls return the same instance.  Uses a check-lock-check
    pattern so the fast path never touches the lock.

    Prefer direct constructor injection of ``AppConfig`` in new code.
    """
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = AppConfig()
    return _config_instance
