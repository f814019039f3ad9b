"""Proposal workflow — status transitions, approval gate and quota side effects.

The engine validates every status change against the transition graph and
writes the proposal, its history row and any quota change in the caller's
session. The caller owns the unit of work: one commit covers everything a
request changed, a rollback discards all of it.

Check order for an admin transition request:
    authorize -> load (row lock) -> edge -> rejection reason, fee -> approval gate
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from consorcio_market.db.engine import flush_or_fail
from consorcio_market.errors import NotFound, PermissionDenied, PreconditionNotMet, ValidationError
from consorcio_market.models import (
    BuyerType,
    CascadePolicy,
    Cota,
    CotaHistory,
    CotaStatus,
    Document,
    DocumentStatus,
    DocumentType,
    OwnerType,
    ProfilePF,
    ProfilePJ,
    ProfileStatus,
    Proposal,
    ProposalHistory,
    ProposalStatus,
)
from consorcio_market.quotas.composition import CreditComposition
from consorcio_market.security.authorization import Actor, Authorizer
from consorcio_market.workflow.transitions import (
    INACTIVE_STATUSES,
    SETTLED_COTA_STATUSES,
    check_transition,
)

logger = logging.getLogger(__name__)

# Proposals past the approval gate hold the quota
COMMITTED_STATUSES: frozenset[ProposalStatus] = frozenset({
    ProposalStatus.APPROVED,
    ProposalStatus.TRANSFER_STARTED,
    ProposalStatus.COMPLETED,
})

_INACTIVE_VALUES = [s.value for s in INACTIVE_STATUSES]


def _parse_status(value: ProposalStatus | str) -> ProposalStatus:
    if isinstance(value, ProposalStatus):
        return value
    try:
        return ProposalStatus(value)
    except ValueError:
        raise ValidationError(f"Status inválido: {value}", field="status") from None


class ProposalWorkflow:
    """Drives proposals through the status graph."""

    def __init__(self, authorizer: Authorizer) -> None:
        self._authorizer = authorizer

    # ── Reads ────────────────────────────────────────────────────────

    async def _load_for_update(self, db: AsyncSession, proposal_id: uuid.UUID) -> Proposal:
        """Re-read the proposal from the store, locking the row."""
        stmt = (
            select(Proposal)
            .where(Proposal.id == proposal_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        proposal = (await db.execute(stmt)).scalar_one_or_none()
        if proposal is None:
            raise NotFound("Proposta não encontrada", proposal_id=str(proposal_id))
        return proposal

    async def get_proposal(self, db: AsyncSession, actor: Actor, proposal_id: uuid.UUID) -> Proposal:
        """Fetch one proposal visible to the actor (admin or the buyer)."""
        proposal = await db.get(Proposal, proposal_id)
        if proposal is None:
            raise NotFound("Proposta não encontrada", proposal_id=str(proposal_id))
        self._authorizer.require_owner_or_admin(actor, proposal.buyer_pf_id, "proposal.read")
        return proposal

    async def list_proposals(
        self,
        db: AsyncSession,
        actor: Actor,
        status: ProposalStatus | None = None,
    ) -> list[Proposal]:
        """Admins see every proposal; other actors see their own."""
        stmt = select(Proposal).order_by(Proposal.created_at.desc())
        if not actor.is_admin:
            stmt = stmt.where(Proposal.buyer_pf_id == actor.id)
        if status is not None:
            stmt = stmt.where(Proposal.status == status.value)
        return list((await db.execute(stmt)).scalars().all())

    async def proposal_history(
        self, db: AsyncSession, actor: Actor, proposal_id: uuid.UUID
    ) -> list[ProposalHistory]:
        """Audit trail of a proposal, oldest first."""
        await self.get_proposal(db, actor, proposal_id)
        stmt = (
            select(ProposalHistory)
            .where(ProposalHistory.proposal_id == proposal_id)
            .order_by(ProposalHistory.changed_at, ProposalHistory.id)
        )
        return list((await db.execute(stmt)).scalars().all())

    # ── Creation ─────────────────────────────────────────────────────

    async def create_proposals(
        self,
        db: AsyncSession,
        actor: Actor,
        cota_ids: Sequence[uuid.UUID],
        buyer_type: BuyerType,
        buyer_entity_id: uuid.UUID | None = None,
    ) -> list[Proposal]:
        """Create one UNDER_REVIEW proposal per quota of a credit composition.

        Proposals submitted together share a group_id.

        Raises:
            ValidationError: Empty selection, own quota, unavailable quota,
                mixed administrators or a live proposal already exists.
            NotFound: A quota or the buying company does not exist.
            PermissionDenied: The buying company belongs to someone else.
        """
        unique_ids = list(dict.fromkeys(cota_ids))
        if not unique_ids:
            raise ValidationError("Selecione ao menos uma cota.", field="cota_ids")

        rows = (await db.execute(select(Cota).where(Cota.id.in_(unique_ids)))).scalars().all()
        by_id = {c.id: c for c in rows}
        missing = [str(i) for i in unique_ids if i not in by_id]
        if missing:
            raise NotFound("Cota não encontrada", cota_ids=missing)
        cotas = [by_id[i] for i in unique_ids]

        if any(c.seller_id == actor.id for c in cotas):
            raise ValidationError("Você não pode comprar sua própria cota.")
        if any(c.status != CotaStatus.AVAILABLE.value for c in cotas):
            raise ValidationError("Uma ou mais cotas não estão mais disponíveis para propostas.")

        composition = CreditComposition()
        for cota in cotas:
            composition.add(cota)

        entity_id = await self._resolve_buyer_entity(db, actor, buyer_type, buyer_entity_id)

        live = await db.execute(
            select(func.count())
            .select_from(Proposal)
            .where(
                Proposal.cota_id.in_(unique_ids),
                Proposal.buyer_pf_id == actor.id,
                Proposal.status.not_in(_INACTIVE_VALUES),
            )
        )
        if live.scalar_one() > 0:
            raise ValidationError("Você já possui uma proposta para uma ou mais destas cotas.")

        group_id = uuid.uuid4() if len(cotas) > 1 else None
        proposals = [
            Proposal(
                cota_id=cota.id,
                buyer_pf_id=actor.id,
                buyer_type=buyer_type.value,
                buyer_entity_id=entity_id,
                group_id=group_id,
                status=ProposalStatus.UNDER_REVIEW.value,
            )
            for cota in cotas
        ]
        db.add_all(proposals)
        await flush_or_fail(db)

        for proposal in proposals:
            db.add(ProposalHistory(
                proposal_id=proposal.id,
                old_status=None,
                new_status=ProposalStatus.UNDER_REVIEW.value,
                changed_by=actor.audit_id,
                notes="Proposta criada",
            ))
        await flush_or_fail(db)

        logger.info(
            "Created %d proposal(s) for buyer=%s (group=%s)", len(proposals), actor.id, group_id
        )
        return proposals

    async def _resolve_buyer_entity(
        self,
        db: AsyncSession,
        actor: Actor,
        buyer_type: BuyerType,
        buyer_entity_id: uuid.UUID | None,
    ) -> uuid.UUID:
        if buyer_type is BuyerType.PF:
            if buyer_entity_id is not None and buyer_entity_id != actor.id:
                raise PermissionDenied("Você só pode comprar em seu próprio nome.")
            return actor.id

        if buyer_entity_id is None:
            raise ValidationError("Por favor, selecione uma empresa para continuar.", field="buyer_entity_id")
        company = await db.get(ProfilePJ, buyer_entity_id)
        if company is None:
            raise NotFound("Empresa não encontrada", buyer_entity_id=str(buyer_entity_id))
        if company.pf_id != actor.id:
            raise PermissionDenied("Esta empresa não pertence ao seu cadastro.")
        return company.id

    # ── Transitions ──────────────────────────────────────────────────

    async def transition(
        self,
        db: AsyncSession,
        actor: Actor,
        proposal_id: uuid.UUID,
        target: ProposalStatus | str,
        rejection_reason: str | None = None,
        transfer_fee: Decimal | None = None,
    ) -> Proposal:
        """Move a proposal to a new status (admin only).

        Args:
            db: Session of the caller's unit of work.
            actor: The requesting profile.
            proposal_id: Proposal to move.
            target: Requested status.
            rejection_reason: Required when target is REJECTED.
            transfer_fee: Optional fee charged by the administrator for the
                ownership transfer; stored when given, kept otherwise.

        Returns:
            The updated proposal (flushed, not committed).

        Raises:
            PermissionDenied, NotFound, InvalidTransition, ValidationError,
            PreconditionNotMet, PersistenceError.
        """
        self._authorizer.require_admin(actor, "proposal.transition")

        proposal = await self._load_for_update(db, proposal_id)
        target_status = _parse_status(target)
        current = ProposalStatus(proposal.status)
        check_transition(current, target_status)

        reason = (rejection_reason or "").strip() or None
        if target_status is ProposalStatus.REJECTED and reason is None:
            raise ValidationError("Motivo da rejeição é obrigatório", field="rejection_reason")
        if transfer_fee is not None and transfer_fee < 0:
            raise ValidationError("Taxa de transferência não pode ser negativa", field="transfer_fee")

        if current is ProposalStatus.PRE_APPROVED and target_status is ProposalStatus.APPROVED:
            await self._check_approval_gate(db, proposal)

        if transfer_fee is not None:
            proposal.transfer_fee = transfer_fee

        await self._apply(
            db,
            proposal,
            target_status,
            changed_by=actor.audit_id,
            rejection_reason=reason,
            notes=reason,
        )
        await flush_or_fail(db)
        return proposal

    async def _check_approval_gate(self, db: AsyncSession, proposal: Proposal) -> None:
        """Quota still on sale, statement approved, buyer approved, quota not held elsewhere."""
        cota = await db.get(Cota, proposal.cota_id)
        cota_status = cota.status if cota is not None else None
        if cota_status is None or CotaStatus(cota_status) in SETTLED_COTA_STATUSES:
            raise PreconditionNotMet(
                "Esta cota não está mais disponível para venda.",
                check="cota_available",
                current_status=cota_status,
            )

        statement_statuses = (
            await db.execute(
                select(Document.status).where(
                    Document.owner_id == proposal.cota_id,
                    Document.owner_type == OwnerType.COTA.value,
                    Document.document_type == DocumentType.COTA_STATEMENT.value,
                )
            )
        ).scalars().all()
        if DocumentStatus.APPROVED.value not in statement_statuses:
            raise PreconditionNotMet(
                "Para aprovar esta proposta, o extrato da cota deve estar aprovado. "
                "Por favor, solicite ao vendedor que envie o extrato da cota e aprove-o "
                "antes de continuar.",
                check="cota_statement_approved",
                current_status=statement_statuses[0] if statement_statuses else None,
            )

        if proposal.buyer_type == BuyerType.PJ.value:
            buyer = await db.get(ProfilePJ, proposal.buyer_entity_id)
            label = "o cadastro da empresa compradora (Pessoa Jurídica)"
            check = "buyer_pj_approved"
        else:
            buyer = await db.get(ProfilePF, proposal.buyer_entity_id)
            label = "o cadastro do comprador (Pessoa Física)"
            check = "buyer_pf_approved"
        buyer_status = buyer.status if buyer is not None else None
        if buyer_status != ProfileStatus.APPROVED.value:
            raise PreconditionNotMet(
                f"Para aprovar esta proposta, {label} deve estar aprovado. "
                f"Status atual: {buyer_status or 'não encontrado'}",
                check=check,
                current_status=buyer_status,
            )

        holders = await db.execute(
            select(func.count())
            .select_from(Proposal)
            .where(
                Proposal.cota_id == proposal.cota_id,
                Proposal.id != proposal.id,
                Proposal.status.in_([s.value for s in COMMITTED_STATUSES]),
            )
        )
        if holders.scalar_one() > 0:
            raise PreconditionNotMet(
                "Esta cota já possui outra proposta aprovada.",
                check="cota_not_committed",
            )

    async def _apply(
        self,
        db: AsyncSession,
        proposal: Proposal,
        target: ProposalStatus,
        *,
        changed_by: str,
        rejection_reason: str | None,
        notes: str | None,
    ) -> None:
        """Write the new status, one history row and the quota side effect."""
        old_status = proposal.status
        proposal.status = target.value
        proposal.rejection_reason = rejection_reason if target is ProposalStatus.REJECTED else None

        db.add(ProposalHistory(
            proposal_id=proposal.id,
            old_status=old_status,
            new_status=target.value,
            changed_by=changed_by,
            notes=notes,
        ))

        if target is ProposalStatus.APPROVED:
            await self._set_cota_status(db, proposal.cota_id, CotaStatus.RESERVED, changed_by)
        elif target is ProposalStatus.REJECTED:
            await self._release_cota_if_idle(db, proposal, changed_by)

        logger.info(
            "Proposal %s: %s -> %s (by=%s)", proposal.id, old_status, target.value, changed_by
        )

    async def _release_cota_if_idle(self, db: AsyncSession, proposal: Proposal, changed_by: str) -> None:
        others = await db.execute(
            select(func.count())
            .select_from(Proposal)
            .where(
                Proposal.cota_id == proposal.cota_id,
                Proposal.id != proposal.id,
                Proposal.status.not_in(_INACTIVE_VALUES),
            )
        )
        if others.scalar_one() == 0:
            await self._set_cota_status(db, proposal.cota_id, CotaStatus.AVAILABLE, changed_by)

    async def _set_cota_status(
        self, db: AsyncSession, cota_id: uuid.UUID, status: CotaStatus, changed_by: str
    ) -> None:
        cota = await db.get(Cota, cota_id, with_for_update=True)
        # SOLD and REMOVED are final for the workflow
        if cota is None or cota.status == status.value or CotaStatus(cota.status) in SETTLED_COTA_STATUSES:
            return
        db.add(CotaHistory(
            cota_id=cota.id,
            field_changed="status",
            old_value=cota.status,
            new_value=status.value,
            changed_by=changed_by,
        ))
        logger.info("Cota %s: %s -> %s", cota.id, cota.status, status.value)
        cota.status = status.value

    # ── Document-rejection cascade ───────────────────────────────────

    async def cascade_statement_rejection(
        self,
        db: AsyncSession,
        actor: Actor,
        cota_id: uuid.UUID,
        reason: str,
        policy: CascadePolicy = CascadePolicy.RETURN_TO_REVIEW,
    ) -> list[Proposal]:
        """Move every PRE_APPROVED proposal of a quota after its statement was rejected.

        Each move goes through the transition graph and writes its own
        history row with a generated note.

        Returns:
            The proposals that were moved.
        """
        self._authorizer.require_admin(actor, "proposal.cascade")

        stmt = (
            select(Proposal)
            .where(
                Proposal.cota_id == cota_id,
                Proposal.status == ProposalStatus.PRE_APPROVED.value,
            )
            .order_by(Proposal.created_at)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        affected = list((await db.execute(stmt)).scalars().all())

        detail = f"Extrato da cota rejeitado: {reason}"
        for proposal in affected:
            if policy is CascadePolicy.REJECT:
                target = ProposalStatus.REJECTED
                notes = f"Proposta rejeitada automaticamente - {detail}"
            else:
                target = ProposalStatus.UNDER_REVIEW
                notes = f"Proposta retornada para análise - {detail}"
            check_transition(ProposalStatus(proposal.status), target)
            await self._apply(
                db,
                proposal,
                target,
                changed_by=actor.audit_id,
                rejection_reason=detail,
                notes=notes,
            )

        if affected:
            await flush_or_fail(db)
            logger.info(
                "Statement rejection for cota %s moved %d proposal(s) (policy=%s)",
                cota_id,
                len(affected),
                policy.value,
            )
        return affected
