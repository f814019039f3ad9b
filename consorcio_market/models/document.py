"""Document model — compliance files submitted for admin review.

The file itself lives in external object storage; only its reference is kept.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from consorcio_market.models.base import Base, TimestampMixin
from consorcio_market.models.enums import DocumentStatus


class Document(TimestampMixin, Base):
    """One document slot per (owner, document type); re-uploads replace the file."""

    __tablename__ = "documents"
    __table_args__ = (
        UniqueConstraint("owner_id", "owner_type", "document_type", name="uq_documents_owner_type"),
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    owner_type: Mapped[str] = mapped_column(String(10), nullable=False)
    document_type: Mapped[str] = mapped_column(String(50), nullable=False)

    file_url: Mapped[str] = mapped_column(Text, nullable=False, comment="Opaque object storage reference")
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), default=DocumentStatus.UNDER_REVIEW.value, nullable=False, index=True
    )
    reviewed_by: Mapped[str | None] = mapped_column(String(100))
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    rejection_reason: Mapped[str | None] = mapped_column(Text)

    def __repr__(self) -> str:
        return f"<Document id={self.id} type={self.document_type} status={self.status}>"
