"""Document endpoints — upload registration and admin review."""
# ruff: noqa: B008  — Depends() in function defaults is standard FastAPI

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from consorcio_market.api.deps import get_document_service
from consorcio_market.db.engine import commit_or_fail, get_session
from consorcio_market.documents.review import DocumentReviewService
from consorcio_market.models import OwnerType
from consorcio_market.schemas.documents import (
    DocumentRead,
    DocumentReview,
    DocumentUpload,
    ReviewOutcomeRead,
)
from consorcio_market.security.authorization import Actor
from consorcio_market.security.identity import get_actor

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def register_upload(
    body: DocumentUpload,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_session),
    service: DocumentReviewService = Depends(get_document_service),
) -> DocumentRead:
    document = await service.register_upload(
        db,
        actor,
        body.owner_type,
        body.owner_id,
        body.document_type,
        body.file_url,
        body.file_name,
    )
    await commit_or_fail(db)
    return DocumentRead.model_validate(document)


@router.get("")
async def list_documents(
    owner_type: OwnerType,
    owner_id: uuid.UUID,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_session),
    service: DocumentReviewService = Depends(get_document_service),
) -> list[DocumentRead]:
    documents = await service.list_documents(db, actor, owner_type, owner_id)
    return [DocumentRead.model_validate(d) for d in documents]


@router.get("/pending")
async def list_pending(
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_session),
    service: DocumentReviewService = Depends(get_document_service),
) -> list[DocumentRead]:
    return [DocumentRead.model_validate(d) for d in await service.list_pending(db, actor)]


@router.patch("/{document_id}")
async def review_document(
    document_id: uuid.UUID,
    body: DocumentReview,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_session),
    service: DocumentReviewService = Depends(get_document_service),
) -> ReviewOutcomeRead:
    """Approve or reject; a rejected quota statement cascades to its proposals."""
    outcome = await service.review(
        db, actor, document_id, body.status, body.rejection_reason, body.handle_proposals
    )
    await commit_or_fail(db)
    return ReviewOutcomeRead(
        document=DocumentRead.model_validate(outcome.document),
        affected_proposals=outcome.affected_proposals,
        proposal_action=outcome.proposal_action,
    )
