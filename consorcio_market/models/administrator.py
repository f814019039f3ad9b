"""Administrator model — registry of consortium management companies."""

from __future__ import annotations

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from consorcio_market.models.base import Base, TimestampMixin


class Administrator(TimestampMixin, Base):
    """A consortium administrator offered as a choice when publishing quotas."""

    __tablename__ = "administrators"

    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Administrator name={self.name} active={self.is_active}>"
