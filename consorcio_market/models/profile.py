"""Profile models — individual (PF) and company (PJ) registrations.

The PF profile id is the id issued by the identity provider, so it is set
explicitly on insert instead of generated.
"""

from __future__ import annotations

import uuid

from sqlalchemy import ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from consorcio_market.models.base import Base, TimestampMixin
from consorcio_market.models.enums import ProfileStatus, UserRole


class ProfilePF(TimestampMixin, Base):
    """A person registered on the marketplace (buyer, seller or admin)."""

    __tablename__ = "profiles_pf"

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    cpf: Mapped[str | None] = mapped_column(String(11), unique=True, index=True, comment="Digits only")
    phone: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    role: Mapped[str] = mapped_column(String(10), default=UserRole.USER.value, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=ProfileStatus.INCOMPLETE.value, nullable=False, index=True
    )

    # Address
    address_street: Mapped[str | None] = mapped_column(String(200))
    address_number: Mapped[str | None] = mapped_column(String(20))
    address_complement: Mapped[str | None] = mapped_column(String(100))
    address_neighborhood: Mapped[str | None] = mapped_column(String(100))
    address_city: Mapped[str | None] = mapped_column(String(100))
    address_state: Mapped[str | None] = mapped_column(String(2))
    address_zip: Mapped[str | None] = mapped_column(String(8))

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def __repr__(self) -> str:
        return f"<ProfilePF id={self.id} role={self.role} status={self.status}>"


class ProfilePJ(TimestampMixin, Base):
    """A company registered by a PF profile, able to buy quotas in its own name."""

    __tablename__ = "profiles_pj"

    pf_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles_pf.id"), nullable=False, index=True
    )
    legal_name: Mapped[str] = mapped_column(String(200), nullable=False)
    cnpj: Mapped[str] = mapped_column(String(14), nullable=False, unique=True, comment="Digits only")
    company_email: Mapped[str | None] = mapped_column(String(255))
    company_phone: Mapped[str | None] = mapped_column(String(20))

    # Address
    address_street: Mapped[str | None] = mapped_column(String(200))
    address_number: Mapped[str | None] = mapped_column(String(20))
    address_complement: Mapped[str | None] = mapped_column(String(100))
    address_neighborhood: Mapped[str | None] = mapped_column(String(100))
    address_city: Mapped[str | None] = mapped_column(String(100))
    address_state: Mapped[str | None] = mapped_column(String(2))
    address_zip: Mapped[str | None] = mapped_column(String(8))

    status: Mapped[str] = mapped_column(
        String(20), default=ProfileStatus.INCOMPLETE.value, nullable=False, index=True
    )

    def __repr__(self) -> str:
        return f"<ProfilePJ id={self.id} cnpj={self.cnpj} status={self.status}>"
