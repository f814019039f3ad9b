"""Append-only audit trails for proposals and quotas.

Rows are written in the same transaction as the change they describe and are
never updated or deleted.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from consorcio_market.models.base import Base, utcnow


class ProposalHistory(Base):
    """One row per proposal status change (old_status is empty on creation)."""

    __tablename__ = "proposal_history"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    proposal_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("proposals.id"), nullable=False, index=True
    )
    old_status: Mapped[str | None] = mapped_column(String(20))
    new_status: Mapped[str] = mapped_column(String(20), nullable=False)
    changed_by: Mapped[str | None] = mapped_column(String(100), comment="Profile id or 'system'")
    notes: Mapped[str | None] = mapped_column(Text)
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<ProposalHistory proposal={self.proposal_id} {self.old_status}->{self.new_status}>"


class CotaHistory(Base):
    """One row per changed quota field."""

    __tablename__ = "cota_history"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    cota_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("cotas.id"), nullable=False, index=True)
    field_changed: Mapped[str] = mapped_column(String(50), nullable=False)
    old_value: Mapped[str | None] = mapped_column(Text)
    new_value: Mapped[str | None] = mapped_column(Text)
    changed_by: Mapped[str | None] = mapped_column(String(100), comment="Profile id or 'system'")
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<CotaHistory cota={self.cota_id} field={self.field_changed}>"
