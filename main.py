"""
Commission Engine Entry Point.

Bootstraps the dependency graph via constructor injection, initialises
the local SQLite schema, and prints a JSON snapshot of the dashboard:
team commissions for the year and the state of the bonus fund.
Every subsystem is wired here; no module-level globals.

Usage::

    python main.py [--year 2025] [--budget <budget_id>]
"""

from __future__ import annotations

import argparse
import atexit
import json
import sys
from datetime import date
from typing import Any, Optional

from commission_engine.cache import QueryCache
from commission_engine.config import get_config
from commission_engine.database import DatabaseManager
from commission_engine.logger import StructuredLogger, get_logger
from commission_engine.schema import initialize_schema
from commission_engine.services import create_services


def _parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Commission dashboard snapshot")
    parser.add_argument("--year", type=int, default=date.today().year)
    parser.add_argument("--budget", help="Also total the positions of this budget id")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    """Wire dependencies and print the dashboard snapshot."""
    args = _parse_args(argv)
    logger: StructuredLogger = get_logger("main")
    logger.info("Starting commission engine...")

    # ------------------------------------------------------------------
    # 1. Configuration (from .env / environment variables)
    # ------------------------------------------------------------------
    config = get_config()

    # ------------------------------------------------------------------
    # 2. Database Manager (Supabase optional, SQLite always)
    # ------------------------------------------------------------------
    db = DatabaseManager(
        supabase_url=config.SUPABASE_URL,
        supabase_key=config.SUPABASE_ANON_KEY.get_secret_value(),
        sqlite_path=config.SQLITE_PATH,
        logger=StructuredLogger(name="database"),
    )
    # close() is idempotent; atexit covers unclean exits.
    atexit.register(db.close)

    # ------------------------------------------------------------------
    # 3. SQLite schema (idempotent)
    # ------------------------------------------------------------------
    initialize_schema(db.sqlite, StructuredLogger(name="schema"))

    # ------------------------------------------------------------------
    # 4. Query cache + service container
    # ------------------------------------------------------------------
    cache = QueryCache(
        default_ttl=config.QUERY_CACHE_TTL_S,
        logger=StructuredLogger(name="cache"),
    )
    services = create_services(db=db, config=config, cache=cache)

    # ------------------------------------------------------------------
    # 5. Snapshot
    # ------------------------------------------------------------------
    try:
        today = date.today()
        commissions = services["commission_service"].get_team_summaries(args.year, today)
        bonus = services["bonus_fund_service"].get_overview(today)

        snapshot: dict[str, Any] = {
            "year": args.year,
            "annual_goal": str(services["commission_service"].annual_goal(args.year)),
            "commissions": commissions.model_dump(mode="json"),
            "bonus_fund": bonus.model_dump(mode="json"),
        }
        if args.budget:
            total = services["budget_service"].get_budget_total(args.budget)
            snapshot["budget"] = total.model_dump(mode="json")

        json.dump(snapshot, sys.stdout, ensure_ascii=False, indent=2)
        sys.stdout.write("\n")
    finally:
        db.close()
        logger.info("Commission engine shut down.")

    return 0 if commissions.success and bonus.success else 1


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        pass
