"""Profile endpoints — registration, duplicate check, companies."""
# ruff: noqa: B008  — Depends() in function defaults is standard FastAPI

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from consorcio_market.api.deps import get_profile_service
from consorcio_market.db.engine import commit_or_fail, get_session
from consorcio_market.models import ProfilePF
from consorcio_market.profiles.service import ProfileService
from consorcio_market.schemas.profiles import (
    CompanyRegister,
    DuplicateCheckRequest,
    ProfilePFRead,
    ProfilePJRead,
    ProfileRegister,
)
from consorcio_market.security.authorization import Actor
from consorcio_market.security.identity import get_actor

router = APIRouter(tags=["profiles"])


@router.post("/auth/check-duplicate", response_model=None)
async def check_duplicate(
    body: DuplicateCheckRequest,
    db: AsyncSession = Depends(get_session),
    service: ProfileService = Depends(get_profile_service),
) -> JSONResponse | dict[str, bool]:
    """409 with per-field messages when the CPF or phone is taken."""
    errors = await service.check_duplicates(db, cpf=body.cpf, phone=body.phone)
    if errors:
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"errors": errors})
    return {"ok": True}


@router.post("/profiles", status_code=status.HTTP_201_CREATED)
async def register_profile(
    request: Request,
    body: ProfileRegister,
    db: AsyncSession = Depends(get_session),
    service: ProfileService = Depends(get_profile_service),
) -> ProfilePFRead:
    """Create the PF profile for the id forwarded by the identity provider."""
    raw = request.headers.get(request.app.state.settings.auth.actor_header)
    try:
        profile_id = uuid.UUID(raw or "")
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Não autenticado") from None

    profile = await service.register_pf(
        db, profile_id, email=body.email, full_name=body.full_name, cpf=body.cpf, phone=body.phone
    )
    await commit_or_fail(db)
    return ProfilePFRead.model_validate(profile)


@router.get("/profiles/me")
async def my_profile(
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_session),
) -> ProfilePFRead:
    return ProfilePFRead.model_validate(await db.get(ProfilePF, actor.id))


@router.post("/profiles/companies", status_code=status.HTTP_201_CREATED)
async def register_company(
    body: CompanyRegister,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_session),
    service: ProfileService = Depends(get_profile_service),
) -> ProfilePJRead:
    company = await service.register_pj(
        db,
        actor,
        legal_name=body.legal_name,
        cnpj=body.cnpj,
        company_email=body.company_email,
        company_phone=body.company_phone,
    )
    await commit_or_fail(db)
    return ProfilePJRead.model_validate(company)


@router.get("/profiles/companies")
async def my_companies(
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_session),
    service: ProfileService = Depends(get_profile_service),
) -> list[ProfilePJRead]:
    return [ProfilePJRead.model_validate(c) for c in await service.list_companies(db, actor)]
