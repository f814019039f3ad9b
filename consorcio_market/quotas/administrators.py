"""Registry of consortium administrators offered when publishing a quota."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from consorcio_market.models import Administrator

logger = logging.getLogger(__name__)

DEFAULT_ADMINISTRATORS: tuple[str, ...] = (
    "Bradesco Consórcios",
    "Itaú Consórcios",
    "Caixa Consórcios",
    "Santander Consórcios",
    "BB Consórcios",
    "Porto Seguro Consórcios",
    "Rodobens Consórcios",
    "Embracon",
    "Magalu Consórcios",
    "Consórcio Nacional Honda",
    "Consórcio Volkswagen",
    "Consórcio Fiat",
    "Consórcio GM (Chevrolet)",
)


async def seed_administrators(
    db: AsyncSession, names: tuple[str, ...] = DEFAULT_ADMINISTRATORS
) -> list[str]:
    """Insert the names that are missing. Returns the names created."""
    existing = set((await db.execute(select(Administrator.name))).scalars().all())
    created: list[str] = []
    for name in names:
        if name in existing:
            logger.debug("Administrator already exists: %s", name)
            continue
        db.add(Administrator(name=name))
        existing.add(name)
        created.append(name)
    await db.flush()
    logger.info("Seeded %d administrator(s), %d already present", len(created), len(names) - len(created))
    return created


async def list_administrators(db: AsyncSession, *, active_only: bool = True) -> list[Administrator]:
    """Registered administrators, alphabetical."""
    stmt = select(Administrator).order_by(Administrator.name)
    if active_only:
        stmt = stmt.where(Administrator.is_active.is_(True))
    return list((await db.execute(stmt)).scalars().all())
