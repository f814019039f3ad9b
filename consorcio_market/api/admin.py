"""Admin-only endpoints — bulk import, profile review, registry, rate sweep."""
# ruff: noqa: B008  — Depends() in function defaults is standard FastAPI

from __future__ import annotations

import dataclasses
import uuid
from typing import Any

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from consorcio_market.api.deps import get_cota_editor, get_profile_service, get_recalculator
from consorcio_market.db.engine import commit_or_fail, get_session
from consorcio_market.models import BuyerType
from consorcio_market.profiles.service import ProfileService
from consorcio_market.quotas.administrators import list_administrators
from consorcio_market.quotas.editing import CotaEditor
from consorcio_market.rates.recalculation import RateRecalculator
from consorcio_market.schemas.cotas import AdministratorRead, CotaImportRequest, CotaImportResult, CotaRead
from consorcio_market.schemas.profiles import ProfilePFRead, ProfilePJRead, ProfileReview
from consorcio_market.security.authorization import Actor
from consorcio_market.security.identity import get_actor

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/upload-cotas", status_code=status.HTTP_201_CREATED)
async def upload_cotas(
    body: CotaImportRequest,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_session),
    editor: CotaEditor = Depends(get_cota_editor),
) -> CotaImportResult:
    cotas = await editor.import_cotas(db, actor, body.cotas)
    await commit_or_fail(db)
    return CotaImportResult(count=len(cotas), cotas=[CotaRead.model_validate(c) for c in cotas])


@router.get("/administrators")
async def administrators(
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_session),
) -> list[AdministratorRead]:
    """Registered administrators (any authenticated actor may read them)."""
    return [AdministratorRead.model_validate(a) for a in await list_administrators(db)]


@router.patch("/profiles/{profile_type}/{profile_id}")
async def review_profile(
    profile_type: BuyerType,
    profile_id: uuid.UUID,
    body: ProfileReview,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_session),
    service: ProfileService = Depends(get_profile_service),
) -> ProfilePFRead | ProfilePJRead:
    profile = await service.review_profile(db, actor, profile_type, profile_id, body.status)
    await commit_or_fail(db)
    if profile_type is BuyerType.PJ:
        return ProfilePJRead.model_validate(profile)
    return ProfilePFRead.model_validate(profile)


@router.post("/recalculate-rates")
async def recalculate_rates(
    request: Request,
    dry_run: bool = False,
    actor: Actor = Depends(get_actor),
    recalculator: RateRecalculator = Depends(get_recalculator),
) -> dict[str, Any]:
    """Run the monthly-rate sweep; each quota commits in its own transaction."""
    request.app.state.authorizer.require_admin(actor, "rates.recalculate")
    result = await recalculator.run(dry_run=dry_run)
    return dataclasses.asdict(result)
