"""Quota endpoints — public listing, seller publish, admin edit."""
# ruff: noqa: B008  — Depends() in function defaults is standard FastAPI

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Literal

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from consorcio_market.api.deps import get_cota_editor
from consorcio_market.db.engine import commit_or_fail, get_session
from consorcio_market.quotas.editing import CotaEditor
from consorcio_market.quotas.listings import ListingFilters, list_listed_administrators, search_cotas
from consorcio_market.schemas.cotas import (
    CotaPublish,
    CotaRead,
    CotaUpdate,
    CotaUpdateResult,
    ListingPageRead,
)
from consorcio_market.security.authorization import Actor
from consorcio_market.security.identity import get_actor

router = APIRouter(prefix="/cotas", tags=["cotas"])


@router.get("")
async def list_cotas(
    request: Request,
    administrator: str | None = None,
    credit_min: Decimal | None = None,
    credit_max: Decimal | None = None,
    balance_min: Decimal | None = None,
    balance_max: Decimal | None = None,
    entry_min: Decimal | None = None,
    entry_max: Decimal | None = None,
    entry_percent_min: Decimal | None = None,
    entry_percent_max: Decimal | None = None,
    installments_min: int | None = None,
    installments_max: int | None = None,
    rate_min: Decimal | None = None,
    rate_max: Decimal | None = None,
    sort: str = "credit_amount",
    direction: Literal["asc", "desc"] = "desc",
    page: int = Query(default=1, ge=1),
    db: AsyncSession = Depends(get_session),
) -> ListingPageRead:
    """Listed quotas (AVAILABLE/RESERVED), filtered and paginated."""
    filters = ListingFilters(
        administrator=administrator,
        credit_min=credit_min,
        credit_max=credit_max,
        balance_min=balance_min,
        balance_max=balance_max,
        entry_min=entry_min,
        entry_max=entry_max,
        entry_percent_min=entry_percent_min,
        entry_percent_max=entry_percent_max,
        installments_min=installments_min,
        installments_max=installments_max,
        rate_min=rate_min,
        rate_max=rate_max,
    )
    page_size = request.app.state.settings.marketplace.listing_page_size
    result = await search_cotas(db, filters, sort, direction, page, page_size)
    return ListingPageRead(
        items=[CotaRead.model_validate(c) for c in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )


@router.get("/administrators")
async def listed_administrators(db: AsyncSession = Depends(get_session)) -> list[str]:
    return await list_listed_administrators(db)


@router.get("/mine")
async def my_cotas(
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_session),
    editor: CotaEditor = Depends(get_cota_editor),
) -> list[CotaRead]:
    return [CotaRead.model_validate(c) for c in await editor.list_seller_cotas(db, actor)]


@router.get("/{cota_id}")
async def get_cota(
    cota_id: uuid.UUID,
    db: AsyncSession = Depends(get_session),
    editor: CotaEditor = Depends(get_cota_editor),
) -> CotaRead:
    return CotaRead.model_validate(await editor.get_cota(db, cota_id))


@router.post("", status_code=status.HTTP_201_CREATED)
async def publish_cota(
    body: CotaPublish,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_session),
    editor: CotaEditor = Depends(get_cota_editor),
) -> CotaRead:
    cota = await editor.publish_cota(db, actor, body)
    await commit_or_fail(db)
    return CotaRead.model_validate(cota)


@router.patch("/{cota_id}")
async def update_cota(
    cota_id: uuid.UUID,
    body: CotaUpdate,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_session),
    editor: CotaEditor = Depends(get_cota_editor),
) -> CotaUpdateResult:
    """Admin edit; an unchanged request is reported, not rejected."""
    changes = await editor.update_cota(db, actor, cota_id, body)
    if not changes:
        return CotaUpdateResult(message="Nenhuma alteração detectada")
    await commit_or_fail(db)
    return CotaUpdateResult(message=f"{len(changes)} campo(s) atualizado(s)", changes=changes)


@router.delete("/{cota_id}")
async def remove_cota(
    cota_id: uuid.UUID,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_session),
    editor: CotaEditor = Depends(get_cota_editor),
) -> CotaRead:
    """Soft delete: the quota moves to REMOVED."""
    cota = await editor.remove_cota(db, actor, cota_id)
    await commit_or_fail(db)
    return CotaRead.model_validate(cota)
