"""Pydantic schemas for proposals and their audit trail."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, computed_field

from consorcio_market.admin.formatters import PROPOSAL_STATUS_LABELS, label_for
from consorcio_market.models.enums import BuyerType, ProposalStatus


class ProposalCreate(BaseModel):
    """Submit a credit composition: one proposal per quota."""

    cota_ids: list[uuid.UUID] = Field(min_length=1)
    buyer_type: BuyerType = BuyerType.PF
    buyer_entity_id: uuid.UUID | None = None


class ProposalTransition(BaseModel):
    """Admin status change. `status` stays a plain string so unknown values reach the workflow."""

    status: str = Field(min_length=1)
    rejection_reason: str | None = None
    transfer_fee: Decimal | None = None


class ProposalRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    cota_id: uuid.UUID
    buyer_pf_id: uuid.UUID
    buyer_type: BuyerType
    buyer_entity_id: uuid.UUID
    group_id: uuid.UUID | None = None
    status: ProposalStatus
    rejection_reason: str | None = None
    transfer_fee: Decimal | None = None
    created_at: datetime
    updated_at: datetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status_label(self) -> str:
        return label_for(PROPOSAL_STATUS_LABELS, self.status.value)


class ProposalHistoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    proposal_id: uuid.UUID
    old_status: ProposalStatus | None = None
    new_status: ProposalStatus
    changed_by: str | None = None
    notes: str | None = None
    changed_at: datetime
