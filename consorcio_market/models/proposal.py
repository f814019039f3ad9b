"""Proposal model — a buyer's offer to acquire one quota."""

from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from consorcio_market.models.base import Base, TimestampMixin
from consorcio_market.models.enums import ProposalStatus


class Proposal(TimestampMixin, Base):
    """A purchase proposal. Status changes only through the workflow."""

    __tablename__ = "proposals"

    cota_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("cotas.id"), nullable=False, index=True)
    buyer_pf_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles_pf.id"), nullable=False, index=True
    )
    buyer_type: Mapped[str] = mapped_column(String(2), nullable=False)
    buyer_entity_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, nullable=False, comment="profiles_pf.id or profiles_pj.id depending on buyer_type"
    )
    group_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, index=True, comment="Shared by proposals submitted as one credit composition"
    )

    status: Mapped[str] = mapped_column(
        String(20), default=ProposalStatus.UNDER_REVIEW.value, nullable=False, index=True
    )
    rejection_reason: Mapped[str | None] = mapped_column(Text)
    transfer_fee: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))

    def __repr__(self) -> str:
        return f"<Proposal id={self.id} cota={self.cota_id} status={self.status}>"
