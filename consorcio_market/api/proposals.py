"""Proposal endpoints — submission, admin status changes, audit trail."""
# ruff: noqa: B008  — Depends() in function defaults is standard FastAPI

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from consorcio_market.api.deps import get_workflow
from consorcio_market.db.engine import commit_or_fail, get_session
from consorcio_market.models import ProposalStatus
from consorcio_market.schemas.proposals import (
    ProposalCreate,
    ProposalHistoryRead,
    ProposalRead,
    ProposalTransition,
)
from consorcio_market.security.authorization import Actor
from consorcio_market.security.identity import get_actor
from consorcio_market.workflow.engine import ProposalWorkflow

router = APIRouter(prefix="/proposals", tags=["proposals"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_proposals(
    body: ProposalCreate,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_session),
    workflow: ProposalWorkflow = Depends(get_workflow),
) -> list[ProposalRead]:
    """Submit one proposal per quota of a credit composition."""
    proposals = await workflow.create_proposals(
        db, actor, body.cota_ids, body.buyer_type, body.buyer_entity_id
    )
    await commit_or_fail(db)
    return [ProposalRead.model_validate(p) for p in proposals]


@router.get("")
async def list_proposals(
    status_filter: ProposalStatus | None = Query(default=None, alias="status"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_session),
    workflow: ProposalWorkflow = Depends(get_workflow),
) -> list[ProposalRead]:
    proposals = await workflow.list_proposals(db, actor, status_filter)
    return [ProposalRead.model_validate(p) for p in proposals]


@router.get("/{proposal_id}")
async def get_proposal(
    proposal_id: uuid.UUID,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_session),
    workflow: ProposalWorkflow = Depends(get_workflow),
) -> ProposalRead:
    return ProposalRead.model_validate(await workflow.get_proposal(db, actor, proposal_id))


@router.patch("/{proposal_id}")
async def transition_proposal(
    proposal_id: uuid.UUID,
    body: ProposalTransition,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_session),
    workflow: ProposalWorkflow = Depends(get_workflow),
) -> ProposalRead:
    """Admin status change; proposal, history and quota commit together."""
    proposal = await workflow.transition(
        db, actor, proposal_id, body.status, body.rejection_reason, body.transfer_fee
    )
    await commit_or_fail(db)
    return ProposalRead.model_validate(proposal)


@router.get("/{proposal_id}/history")
async def proposal_history(
    proposal_id: uuid.UUID,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_session),
    workflow: ProposalWorkflow = Depends(get_workflow),
) -> list[ProposalHistoryRead]:
    rows = await workflow.proposal_history(db, actor, proposal_id)
    return [ProposalHistoryRead.model_validate(r) for r in rows]
