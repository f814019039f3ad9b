"""SQLAlchemy ORM models for the marketplace.

Import all models here so Base.metadata.create_all() discovers them.
"""

from __future__ import annotations

from consorcio_market.models.administrator import Administrator
from consorcio_market.models.base import Base
from consorcio_market.models.cota import Cota
from consorcio_market.models.document import Document
from consorcio_market.models.enums import (
    BuyerType,
    CascadePolicy,
    CotaStatus,
    DocumentStatus,
    DocumentType,
    OwnerType,
    ProfileStatus,
    ProposalStatus,
    UserRole,
)
from consorcio_market.models.history import CotaHistory, ProposalHistory
from consorcio_market.models.profile import ProfilePF, ProfilePJ
from consorcio_market.models.proposal import Proposal

__all__ = [
    # Base
    "Base",
    # Models
    "Administrator",
    "ProfilePF",
    "ProfilePJ",
    "Cota",
    "Proposal",
    "Document",
    "ProposalHistory",
    "CotaHistory",
    # Enums
    "UserRole",
    "ProfileStatus",
    "CotaStatus",
    "ProposalStatus",
    "DocumentStatus",
    "OwnerType",
    "BuyerType",
    "DocumentType",
    "CascadePolicy",
]
