"""Document uploads and admin review.

Files live in external object storage; this module records the reference
and drives the review status. Rejecting a quota statement cascades to the
quota's PRE_APPROVED proposals through the proposal workflow.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from consorcio_market.db.engine import flush_or_fail
from consorcio_market.errors import NotFound, ValidationError
from consorcio_market.models import (
    CascadePolicy,
    Cota,
    Document,
    DocumentStatus,
    DocumentType,
    OwnerType,
    ProfilePJ,
)
from consorcio_market.models.base import utcnow
from consorcio_market.security.authorization import Actor, Authorizer
from consorcio_market.workflow.engine import ProposalWorkflow

logger = logging.getLogger(__name__)

REVIEW_STATUSES = frozenset({DocumentStatus.APPROVED, DocumentStatus.REJECTED})

PROPOSAL_ACTIONS: dict[CascadePolicy, str] = {
    CascadePolicy.REJECT: "rejected",
    CascadePolicy.RETURN_TO_REVIEW: "returned_to_review",
}


@dataclass
class ReviewOutcome:
    """Result of a document review, including the proposal cascade."""

    document: Document
    affected_proposals: int = 0
    proposal_action: str | None = None


class DocumentReviewService:
    """Registers uploads and applies admin review decisions."""

    def __init__(self, authorizer: Authorizer, workflow: ProposalWorkflow) -> None:
        self._authorizer = authorizer
        self._workflow = workflow

    async def _owner_profile_id(self, db: AsyncSession, owner_type: OwnerType, owner_id: uuid.UUID) -> uuid.UUID:
        """PF profile that owns the document owner."""
        if owner_type is OwnerType.PF:
            return owner_id
        if owner_type is OwnerType.PJ:
            company = await db.get(ProfilePJ, owner_id)
            if company is None:
                raise NotFound("Empresa não encontrada", owner_id=str(owner_id))
            return company.pf_id
        cota = await db.get(Cota, owner_id)
        if cota is None:
            raise NotFound("Cota não encontrada", owner_id=str(owner_id))
        return cota.seller_id

    async def register_upload(
        self,
        db: AsyncSession,
        actor: Actor,
        owner_type: OwnerType,
        owner_id: uuid.UUID,
        document_type: DocumentType,
        file_url: str,
        file_name: str,
    ) -> Document:
        """Record an uploaded file; a re-upload replaces the file and restarts review."""
        if document_type.owner_type is not owner_type:
            raise ValidationError(
                f"Tipo de documento {document_type.value} não pode ser enviado para {owner_type.value}",
                field="document_type",
            )
        if not file_url.strip() or not file_name.strip():
            raise ValidationError("Arquivo é obrigatório", field="file_url")

        owner_profile_id = await self._owner_profile_id(db, owner_type, owner_id)
        self._authorizer.require_owner_or_admin(actor, owner_profile_id, "document.upload")

        existing = (
            await db.execute(
                select(Document).where(
                    Document.owner_id == owner_id,
                    Document.owner_type == owner_type.value,
                    Document.document_type == document_type.value,
                )
            )
        ).scalar_one_or_none()

        if existing is None:
            document = Document(
                owner_id=owner_id,
                owner_type=owner_type.value,
                document_type=document_type.value,
                file_url=file_url,
                file_name=file_name,
                status=DocumentStatus.UNDER_REVIEW.value,
            )
            db.add(document)
        else:
            document = existing
            document.file_url = file_url
            document.file_name = file_name
            document.status = DocumentStatus.UNDER_REVIEW.value
            document.reviewed_by = None
            document.reviewed_at = None
            document.rejection_reason = None

        await flush_or_fail(db)
        logger.info(
            "Document %s uploaded: %s for %s %s", document.id, document_type.value, owner_type.value, owner_id
        )
        return document

    async def list_documents(
        self, db: AsyncSession, actor: Actor, owner_type: OwnerType, owner_id: uuid.UUID
    ) -> list[Document]:
        """All documents of one owner."""
        owner_profile_id = await self._owner_profile_id(db, owner_type, owner_id)
        self._authorizer.require_owner_or_admin(actor, owner_profile_id, "document.list")
        stmt = (
            select(Document)
            .where(Document.owner_id == owner_id, Document.owner_type == owner_type.value)
            .order_by(Document.document_type)
        )
        return list((await db.execute(stmt)).scalars().all())

    async def list_pending(self, db: AsyncSession, actor: Actor) -> list[Document]:
        """Documents waiting for review, oldest first (admin only)."""
        self._authorizer.require_admin(actor, "document.list_pending")
        stmt = (
            select(Document)
            .where(Document.status == DocumentStatus.UNDER_REVIEW.value)
            .order_by(Document.updated_at)
        )
        return list((await db.execute(stmt)).scalars().all())

    async def review(
        self,
        db: AsyncSession,
        actor: Actor,
        document_id: uuid.UUID,
        status: DocumentStatus | str,
        rejection_reason: str | None = None,
        policy: CascadePolicy = CascadePolicy.RETURN_TO_REVIEW,
    ) -> ReviewOutcome:
        """Approve or reject a document (admin only).

        Rejecting a COTA_STATEMENT moves the quota's PRE_APPROVED proposals
        according to policy.

        Raises:
            PermissionDenied, ValidationError, NotFound, PersistenceError.
        """
        self._authorizer.require_admin(actor, "document.review")

        try:
            new_status = DocumentStatus(status)
        except ValueError:
            new_status = None
        if new_status not in REVIEW_STATUSES:
            raise ValidationError("Status inválido. Use APPROVED ou REJECTED", field="status")

        document = await db.get(Document, document_id)
        if document is None:
            raise NotFound("Documento não encontrado", document_id=str(document_id))

        reason = (rejection_reason or "").strip() or None
        if new_status is DocumentStatus.REJECTED and reason is None:
            raise ValidationError("Motivo da rejeição é obrigatório", field="rejection_reason")

        document.status = new_status.value
        document.reviewed_by = actor.audit_id
        document.reviewed_at = utcnow()
        document.rejection_reason = reason if new_status is DocumentStatus.REJECTED else None
        await flush_or_fail(db)
        logger.info("Document %s reviewed: %s (by=%s)", document.id, new_status.value, actor.id)

        outcome = ReviewOutcome(document=document)
        if (
            new_status is DocumentStatus.REJECTED
            and document.document_type == DocumentType.COTA_STATEMENT.value
            and document.owner_type == OwnerType.COTA.value
        ):
            moved = await self._workflow.cascade_statement_rejection(
                db, actor, document.owner_id, reason, policy
            )
            if moved:
                outcome.affected_proposals = len(moved)
                outcome.proposal_action = PROPOSAL_ACTIONS[policy]
        return outcome
