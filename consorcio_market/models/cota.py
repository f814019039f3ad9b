"""Cota model — a contemplated consortium quota offered for sale."""

from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import ForeignKey, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from consorcio_market.models.base import Base, TimestampMixin
from consorcio_market.models.enums import CotaStatus


class Cota(TimestampMixin, Base):
    """A consortium credit position held by a seller.

    Never deleted: REMOVED is the soft-delete state. Whoever writes the row
    keeps entry_percentage == entry_amount / credit_amount * 100.
    """

    __tablename__ = "cotas"

    seller_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles_pf.id"), nullable=False, index=True
    )
    administrator: Mapped[str] = mapped_column(
        String(200), nullable=False, index=True, comment="Consortium management company"
    )
    cota_number: Mapped[str | None] = mapped_column(String(20), comment="COTA-0001 style import number")
    cota_group: Mapped[str | None] = mapped_column(String(20), comment="GRP-001 style import group")

    # Financials (BRL)
    credit_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    outstanding_balance: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    n_installments: Mapped[int] = mapped_column(nullable=False)
    installment_value: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    entry_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    entry_percentage: Mapped[Decimal] = mapped_column(Numeric(7, 2), nullable=False)
    monthly_rate: Mapped[Decimal | None] = mapped_column(
        Numeric(10, 6), comment="Monthly rate in percent, e.g. 0.85"
    )

    status: Mapped[str] = mapped_column(
        String(20), default=CotaStatus.AVAILABLE.value, nullable=False, index=True
    )

    def __repr__(self) -> str:
        return f"<Cota id={self.id} administrator={self.administrator} status={self.status}>"
