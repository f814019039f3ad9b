"""Operations commands.

Usage:
    python scripts/manage.py create-tables
    python scripts/manage.py seed-administrators
    python scripts/manage.py recalculate-rates [--dry-run]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from consorcio_market.config import Settings, settings
from consorcio_market.db.engine import Database
from consorcio_market.logging_config import configure_logging
from consorcio_market.quotas.administrators import seed_administrators
from consorcio_market.rates.recalculation import RateRecalculator

logger = logging.getLogger(__name__)


async def create_tables(database: Database, app_settings: Settings, args: argparse.Namespace) -> None:
    await database.create_all()


async def seed(database: Database, app_settings: Settings, args: argparse.Namespace) -> None:
    async with database.transaction() as db:
        created = await seed_administrators(db)
    for name in created:
        print(f"  + {name}")
    print(f"{len(created)} administradora(s) criada(s)")


async def recalculate(database: Database, app_settings: Settings, args: argparse.Namespace) -> None:
    result = await RateRecalculator(database, app_settings.rates).run(dry_run=args.dry_run)
    prefix = "[dry-run] " if result.dry_run else ""
    print(
        f"{prefix}total={result.total} updated={result.updated} "
        f"corrected={result.corrected_installments} unchanged={result.unchanged} "
        f"unsolved={result.unsolved} failed={result.failed}"
    )


COMMANDS = {
    "create-tables": create_tables,
    "seed-administrators": seed,
    "recalculate-rates": recalculate,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="manage", description="Consórcio Market operations")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("create-tables", help="Create all tables from the ORM metadata")
    sub.add_parser("seed-administrators", help="Insert the known consortium administrators")
    recalc = sub.add_parser("recalculate-rates", help="Re-solve the monthly rate of every quota")
    recalc.add_argument("--dry-run", action="store_true", help="Log decisions without writing")
    return parser


async def run(args: argparse.Namespace, app_settings: Settings, database: Database | None = None) -> None:
    """Execute one command against a Database (built from settings when not given)."""
    owned = database is None
    database = database or Database.from_settings(app_settings.db)
    try:
        await COMMANDS[args.command](database, app_settings, args)
    finally:
        if owned:
            await database.dispose()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(settings.log_level)
    try:
        asyncio.run(run(args, settings))
    except Exception:
        logger.exception("Command %s failed", args.command)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
