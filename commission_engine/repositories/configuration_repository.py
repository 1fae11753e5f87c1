"""
Configuration Repository.

Key/value access to ``system_configurations``: each row holds a
``config_type`` key (``commission_tiers``, ``monthly_goals_2025``, ...)
and a JSON ``config_data`` payload.
"""

from __future__ import annotations

from typing import Any, Optional

from commission_engine.repositories.base_repository import BaseRepository


class ConfigurationRepository(BaseRepository):
    """Data access layer for system configuration entries."""

    TABLE = "system_configurations"

    def get(self, config_type: str) -> Optional[Any]:
        """Return the ``config_data`` stored under *config_type*, or ``None``."""
        rows = self._select(
            {"eq": {"config_type": config_type}},
            operation_name=f"get ({self.TABLE}/{config_type})",
        )
        if not rows:
            return None
        return rows[0].get("config_data")

    def upsert(self, config_type: str, config_data: Any) -> None:
        """Store *config_data* under *config_type*, replacing any previous value.

        Raises:
            RuntimeError: When running offline.
            Exception: Whatever the Supabase client raises on failure.
        """
        (
            self.supabase.table(self.TABLE)
            .upsert(
                {"config_type": config_type, "config_data": config_data},
                on_conflict="config_type",
            )
            .execute()
        )
        self._invalidate()
        self._logger.info("Configuration %s updated", config_type)
