"""Public quota listing — filtered, sorted, paginated.

Only AVAILABLE and RESERVED quotas are listed.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Literal

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from consorcio_market.errors import ValidationError
from consorcio_market.models import Cota, CotaStatus

LISTED_STATUSES = (CotaStatus.AVAILABLE.value, CotaStatus.RESERVED.value)

SORT_COLUMNS = {
    "administrator": Cota.administrator,
    "credit_amount": Cota.credit_amount,
    "outstanding_balance": Cota.outstanding_balance,
    "n_installments": Cota.n_installments,
    "installment_value": Cota.installment_value,
    "entry_amount": Cota.entry_amount,
    "entry_percentage": Cota.entry_percentage,
    "monthly_rate": Cota.monthly_rate,
}

# filter attribute prefix -> column
_RANGE_COLUMNS = {
    "credit": Cota.credit_amount,
    "balance": Cota.outstanding_balance,
    "entry": Cota.entry_amount,
    "entry_percent": Cota.entry_percentage,
    "installments": Cota.n_installments,
    "rate": Cota.monthly_rate,
}

SortDirection = Literal["asc", "desc"]


@dataclass
class ListingFilters:
    """Equality filter on administrator plus inclusive min/max ranges."""

    administrator: str | None = None
    credit_min: Decimal | None = None
    credit_max: Decimal | None = None
    balance_min: Decimal | None = None
    balance_max: Decimal | None = None
    entry_min: Decimal | None = None
    entry_max: Decimal | None = None
    entry_percent_min: Decimal | None = None
    entry_percent_max: Decimal | None = None
    installments_min: int | None = None
    installments_max: int | None = None
    rate_min: Decimal | None = None
    rate_max: Decimal | None = None


@dataclass
class ListingPage:
    items: list[Cota] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 20

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(self.total / self.page_size))


def _apply_filters(stmt: Select, filters: ListingFilters) -> Select:
    stmt = stmt.where(Cota.status.in_(LISTED_STATUSES))
    if filters.administrator:
        stmt = stmt.where(Cota.administrator == filters.administrator)
    for prefix, column in _RANGE_COLUMNS.items():
        low = getattr(filters, f"{prefix}_min")
        high = getattr(filters, f"{prefix}_max")
        if low is not None:
            stmt = stmt.where(column >= low)
        if high is not None:
            stmt = stmt.where(column <= high)
    return stmt


async def search_cotas(
    db: AsyncSession,
    filters: ListingFilters | None = None,
    sort: str = "credit_amount",
    direction: SortDirection = "desc",
    page: int = 1,
    page_size: int = 20,
) -> ListingPage:
    """One page of listed quotas plus the total matching count.

    Raises:
        ValidationError: Unknown sort field, direction or page number.
    """
    filters = filters or ListingFilters()
    column = SORT_COLUMNS.get(sort)
    if column is None:
        raise ValidationError(f"Campo de ordenação inválido: {sort}", field="sort")
    if direction not in ("asc", "desc"):
        raise ValidationError(f"Direção de ordenação inválida: {direction}", field="direction")
    if page < 1:
        raise ValidationError("Página deve ser maior que zero", field="page")

    count_stmt = _apply_filters(select(func.count()).select_from(Cota), filters)
    total = (await db.execute(count_stmt)).scalar_one()

    order = column.asc() if direction == "asc" else column.desc()
    stmt = (
        _apply_filters(select(Cota), filters)
        .order_by(order, Cota.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    items = list((await db.execute(stmt)).scalars().all())
    return ListingPage(items=items, total=total, page=page, page_size=page_size)


async def list_listed_administrators(db: AsyncSession) -> list[str]:
    """Distinct administrators among listed quotas, alphabetical."""
    stmt = (
        select(Cota.administrator)
        .where(Cota.status.in_(LISTED_STATUSES))
        .distinct()
        .order_by(Cota.administrator)
    )
    return list((await db.execute(stmt)).scalars().all())
