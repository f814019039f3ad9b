"""PF/PJ profile registration, duplicate checks and admin review."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from consorcio_market.db.engine import flush_or_fail
from consorcio_market.decoders import clean_digits, validate_cnpj, validate_cpf
from consorcio_market.errors import NotFound, ValidationError
from consorcio_market.models import BuyerType, ProfilePF, ProfilePJ, ProfileStatus
from consorcio_market.security.authorization import Actor, Authorizer

logger = logging.getLogger(__name__)


class ProfileService:
    """Registration and compliance review of buyer/seller profiles."""

    def __init__(self, authorizer: Authorizer) -> None:
        self._authorizer = authorizer

    async def check_duplicates(
        self, db: AsyncSession, cpf: str | None = None, phone: str | None = None
    ) -> dict[str, str]:
        """Per-field Portuguese errors for a CPF or phone already in use.

        An empty dict means both values are free.
        """
        errors: dict[str, str] = {}

        if cpf:
            digits = clean_digits(cpf)
            if not validate_cpf(digits):
                errors["cpf"] = "CPF inválido."
            else:
                found = await db.execute(select(ProfilePF.id).where(ProfilePF.cpf == digits))
                if found.first() is not None:
                    errors["cpf"] = "Este CPF já está cadastrado."

        if phone:
            digits = clean_digits(phone)
            found = await db.execute(select(ProfilePF.id).where(ProfilePF.phone == digits))
            if found.first() is not None:
                errors["phone"] = "Este telefone já está cadastrado."

        return errors

    async def register_pf(
        self,
        db: AsyncSession,
        profile_id: uuid.UUID,
        *,
        email: str,
        full_name: str,
        cpf: str,
        phone: str,
    ) -> ProfilePF:
        """Create the PF profile of a newly authenticated user, pending review."""
        if await db.get(ProfilePF, profile_id) is not None:
            raise ValidationError("Perfil já cadastrado.", profile_id=str(profile_id))
        errors = await self.check_duplicates(db, cpf=cpf, phone=phone)
        if errors:
            raise ValidationError("Dados de cadastro inválidos.", errors=errors)

        profile = ProfilePF(
            id=profile_id,
            email=email.strip().lower(),
            full_name=full_name.strip(),
            cpf=clean_digits(cpf),
            phone=clean_digits(phone),
            status=ProfileStatus.PENDING_REVIEW.value,
        )
        db.add(profile)
        await flush_or_fail(db)
        logger.info("PF profile registered: %s", profile.id)
        return profile

    async def register_pj(
        self,
        db: AsyncSession,
        actor: Actor,
        *,
        legal_name: str,
        cnpj: str,
        company_email: str | None = None,
        company_phone: str | None = None,
    ) -> ProfilePJ:
        """Register a company owned by the actor, pending review."""
        digits = clean_digits(cnpj)
        if not validate_cnpj(digits):
            raise ValidationError("CNPJ inválido.", field="cnpj")
        found = await db.execute(select(ProfilePJ.id).where(ProfilePJ.cnpj == digits))
        if found.first() is not None:
            raise ValidationError("Este CNPJ já está cadastrado.", field="cnpj")

        company = ProfilePJ(
            pf_id=actor.id,
            legal_name=legal_name.strip(),
            cnpj=digits,
            company_email=company_email,
            company_phone=clean_digits(company_phone) if company_phone else None,
            status=ProfileStatus.PENDING_REVIEW.value,
        )
        db.add(company)
        await flush_or_fail(db)
        logger.info("PJ profile registered: %s (owner=%s)", company.id, actor.id)
        return company

    async def list_companies(self, db: AsyncSession, actor: Actor) -> list[ProfilePJ]:
        """Companies registered by the actor."""
        stmt = select(ProfilePJ).where(ProfilePJ.pf_id == actor.id).order_by(ProfilePJ.legal_name)
        return list((await db.execute(stmt)).scalars().all())

    async def review_profile(
        self,
        db: AsyncSession,
        actor: Actor,
        profile_type: BuyerType,
        profile_id: uuid.UUID,
        status: ProfileStatus,
    ) -> ProfilePF | ProfilePJ:
        """Set the review status of a PF or PJ profile (admin only)."""
        self._authorizer.require_admin(actor, "profile.review")

        model = ProfilePJ if profile_type is BuyerType.PJ else ProfilePF
        profile = await db.get(model, profile_id)
        if profile is None:
            raise NotFound("Perfil não encontrado", profile_id=str(profile_id))

        old_status = profile.status
        profile.status = status.value
        await flush_or_fail(db)
        logger.info(
            "%s profile %s: %s -> %s (by=%s)", profile_type.value, profile_id, old_status, status.value, actor.id
        )
        return profile
