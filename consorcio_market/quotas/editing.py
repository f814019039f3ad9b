"""Quota writes — seller publish, admin edit and admin bulk import.

Every writer keeps entry_percentage consistent with entry/credit and fills in
the monthly rate from the installment schedule when it is not given.
"""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from consorcio_market.db.engine import flush_or_fail
from consorcio_market.errors import InvalidTransition, NotFound, ValidationError
from consorcio_market.models import Cota, CotaHistory, CotaStatus
from consorcio_market.rates.solver import entry_percentage, solve_installment_rate
from consorcio_market.schemas.cotas import CotaChange, CotaImportRow, CotaPublish, CotaUpdate
from consorcio_market.security.authorization import Actor, Authorizer

logger = logging.getLogger(__name__)

NUMERIC_FIELDS: tuple[str, ...] = (
    "credit_amount",
    "outstanding_balance",
    "n_installments",
    "installment_value",
    "entry_amount",
    "entry_percentage",
    "monthly_rate",
)

IMPORT_GROUP_SIZE = 10


def _as_text(value: object) -> str | None:
    return None if value is None else str(value)


class CotaEditor:
    """Writes quotas on behalf of sellers and administrators."""

    def __init__(
        self,
        authorizer: Authorizer,
        *,
        default_administrator: str = "Caixa Consórcios",
        initial_guess: float = 0.01,
    ) -> None:
        self._authorizer = authorizer
        self._default_administrator = default_administrator
        self._initial_guess = initial_guess

    def _rate_for(self, n_installments: int, installment_value: Decimal, balance: Decimal) -> Decimal | None:
        return solve_installment_rate(
            n_installments, installment_value, balance, initial_guess=self._initial_guess
        )

    async def get_cota(self, db: AsyncSession, cota_id: uuid.UUID) -> Cota:
        cota = await db.get(Cota, cota_id)
        if cota is None:
            raise NotFound("Cota não encontrada", cota_id=str(cota_id))
        return cota

    async def list_seller_cotas(self, db: AsyncSession, actor: Actor) -> list[Cota]:
        """Quotas published by the actor, newest first (REMOVED included)."""
        stmt = select(Cota).where(Cota.seller_id == actor.id).order_by(Cota.created_at.desc())
        return list((await db.execute(stmt)).scalars().all())

    async def publish_cota(self, db: AsyncSession, actor: Actor, data: CotaPublish) -> Cota:
        """Publish a quota for sale by the actor."""
        monthly_rate = data.monthly_rate
        if monthly_rate is None:
            monthly_rate = self._rate_for(data.n_installments, data.installment_value, data.outstanding_balance)

        cota = Cota(
            seller_id=actor.id,
            administrator=data.administrator.strip(),
            credit_amount=data.credit_amount,
            outstanding_balance=data.outstanding_balance,
            n_installments=data.n_installments,
            installment_value=data.installment_value,
            entry_amount=data.entry_amount,
            entry_percentage=entry_percentage(data.entry_amount, data.credit_amount),
            monthly_rate=monthly_rate,
            status=CotaStatus.AVAILABLE.value,
        )
        db.add(cota)
        await flush_or_fail(db)
        logger.info("Cota %s published by %s (%s)", cota.id, actor.id, cota.administrator)
        return cota

    async def update_cota(
        self, db: AsyncSession, actor: Actor, cota_id: uuid.UUID, changes: CotaUpdate
    ) -> list[CotaChange]:
        """Admin edit. Writes one history row per changed field.

        Returns:
            The changes applied; empty when nothing differed.

        Raises:
            PermissionDenied, NotFound, InvalidTransition (REMOVED is final),
            ValidationError (entry above credit).
        """
        self._authorizer.require_admin(actor, "cota.update")
        cota = await self.get_cota(db, cota_id)
        requested = changes.model_fields_set
        applied: list[CotaChange] = []

        if changes.status is not None and changes.status.value != cota.status:
            if cota.status == CotaStatus.REMOVED.value:
                raise InvalidTransition(cota.status, changes.status.value)
            applied.append(CotaChange(field="status", old_value=cota.status, new_value=changes.status.value))
            cota.status = changes.status.value

        for name in NUMERIC_FIELDS:
            new_value = getattr(changes, name)
            if name not in requested or new_value is None:
                continue
            old_value = getattr(cota, name)
            if old_value is not None and old_value == new_value:
                continue
            applied.append(CotaChange(field=name, old_value=_as_text(old_value), new_value=_as_text(new_value)))
            setattr(cota, name, new_value)

        if changes.administrator and changes.administrator != cota.administrator:
            applied.append(
                CotaChange(field="administrator", old_value=cota.administrator, new_value=changes.administrator)
            )
            cota.administrator = changes.administrator

        if cota.entry_amount > cota.credit_amount:
            raise ValidationError("O valor de entrada não pode ser maior que o crédito.", field="entry_amount")

        touched = {c.field for c in applied}
        if touched & {"credit_amount", "entry_amount"} and "entry_percentage" not in requested:
            recomputed = entry_percentage(cota.entry_amount, cota.credit_amount)
            if recomputed != cota.entry_percentage:
                applied.append(CotaChange(
                    field="entry_percentage",
                    old_value=_as_text(cota.entry_percentage),
                    new_value=_as_text(recomputed),
                ))
                cota.entry_percentage = recomputed

        if not applied:
            return applied

        for change in applied:
            db.add(CotaHistory(
                cota_id=cota.id,
                field_changed=change.field,
                old_value=change.old_value,
                new_value=change.new_value,
                changed_by=actor.audit_id,
            ))
        await flush_or_fail(db)
        logger.info("Cota %s updated: %s (by=%s)", cota.id, ", ".join(c.field for c in applied), actor.id)
        return applied

    async def remove_cota(self, db: AsyncSession, actor: Actor, cota_id: uuid.UUID) -> Cota:
        """Soft delete by the seller or an admin."""
        cota = await self.get_cota(db, cota_id)
        self._authorizer.require_owner_or_admin(actor, cota.seller_id, "cota.remove")
        if cota.status == CotaStatus.REMOVED.value:
            return cota
        db.add(CotaHistory(
            cota_id=cota.id,
            field_changed="status",
            old_value=cota.status,
            new_value=CotaStatus.REMOVED.value,
            changed_by=actor.audit_id,
        ))
        cota.status = CotaStatus.REMOVED.value
        await flush_or_fail(db)
        logger.info("Cota %s removed (by=%s)", cota.id, actor.id)
        return cota

    async def import_cotas(self, db: AsyncSession, actor: Actor, rows: list[CotaImportRow]) -> list[Cota]:
        """Admin bulk import, numbered after the existing quotas.

        Numbers are COTA-0001, COTA-0002, ...; every ten consecutive numbers
        share a group GRP-001, GRP-002, ...
        """
        self._authorizer.require_admin(actor, "cota.import")
        if not rows:
            raise ValidationError("Nenhuma cota fornecida", field="cotas")

        existing = (await db.execute(select(func.count()).select_from(Cota))).scalar_one()
        start = existing + 1

        cotas: list[Cota] = []
        for index, row in enumerate(rows):
            number = start + index
            monthly_rate = row.monthly_rate
            if monthly_rate is None:
                monthly_rate = self._rate_for(row.n_installments, row.installment_value, row.outstanding_balance)
            cotas.append(Cota(
                seller_id=actor.id,
                administrator=row.administrator or self._default_administrator,
                cota_number=f"COTA-{number:04d}",
                cota_group=f"GRP-{(number - 1) // IMPORT_GROUP_SIZE + 1:03d}",
                credit_amount=row.credit_amount,
                outstanding_balance=row.outstanding_balance,
                n_installments=row.n_installments,
                installment_value=row.installment_value,
                entry_amount=row.entry_amount,
                entry_percentage=entry_percentage(row.entry_amount, row.credit_amount),
                monthly_rate=monthly_rate,
                status=CotaStatus.AVAILABLE.value,
            ))

        db.add_all(cotas)
        await flush_or_fail(db)
        logger.info("Imported %d cota(s) starting at COTA-%04d (by=%s)", len(cotas), start, actor.id)
        return cotas
