"""Pydantic schemas for document uploads and review."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field

from consorcio_market.admin.formatters import (
    DOCUMENT_STATUS_LABELS,
    DOCUMENT_TYPE_LABELS,
    label_for,
)
from consorcio_market.models.enums import CascadePolicy, DocumentStatus, DocumentType, OwnerType


class DocumentUpload(BaseModel):
    """Reference to a file already stored in object storage."""

    owner_type: OwnerType
    owner_id: uuid.UUID
    document_type: DocumentType
    file_url: str = Field(min_length=1)
    file_name: str = Field(min_length=1, max_length=255)


class DocumentReview(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str = Field(min_length=1)
    rejection_reason: str | None = None
    handle_proposals: CascadePolicy = Field(
        default=CascadePolicy.RETURN_TO_REVIEW, alias="handleProposals"
    )


class DocumentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    owner_id: uuid.UUID
    owner_type: OwnerType
    document_type: DocumentType
    file_url: str
    file_name: str
    status: DocumentStatus
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
    rejection_reason: str | None = None
    created_at: datetime
    updated_at: datetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status_label(self) -> str:
        return label_for(DOCUMENT_STATUS_LABELS, self.status.value)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def document_type_label(self) -> str:
        return label_for(DOCUMENT_TYPE_LABELS, self.document_type.value)


class ReviewOutcomeRead(BaseModel):
    document: DocumentRead
    affected_proposals: int = 0
    proposal_action: str | None = None
