"""Domain enums used across SQLAlchemy models and Pydantic schemas.

All enums use str mixin for JSON serialization; columns store the `.value`.
"""

from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    """Platform role of a PF profile."""

    USER = "USER"
    ADMIN = "ADMIN"


class ProfileStatus(str, Enum):
    """Registration review state shared by PF and PJ profiles."""

    INCOMPLETE = "INCOMPLETE"
    PENDING_REVIEW = "PENDING_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class CotaStatus(str, Enum):
    """Quota lifecycle. REMOVED is a terminal soft delete."""

    AVAILABLE = "AVAILABLE"
    RESERVED = "RESERVED"
    SOLD = "SOLD"
    REMOVED = "REMOVED"


class ProposalStatus(str, Enum):
    """Proposal lifecycle states — edges live in workflow.transitions."""

    UNDER_REVIEW = "UNDER_REVIEW"
    PRE_APPROVED = "PRE_APPROVED"
    APPROVED = "APPROVED"
    TRANSFER_STARTED = "TRANSFER_STARTED"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"


class DocumentStatus(str, Enum):
    """Compliance review state of an uploaded document."""

    PENDING_UPLOAD = "PENDING_UPLOAD"
    UNDER_REVIEW = "UNDER_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class OwnerType(str, Enum):
    """Entity a document belongs to."""

    PF = "PF"
    PJ = "PJ"
    COTA = "COTA"


class BuyerType(str, Enum):
    """Who is buying: an individual (pessoa física) or a company (pessoa jurídica)."""

    PF = "PF"
    PJ = "PJ"


class DocumentType(str, Enum):
    """Recognized document types. The prefix names the owner type."""

    PF_RG = "PF_RG"
    PF_CPF = "PF_CPF"
    PF_BIRTH_CERTIFICATE = "PF_BIRTH_CERTIFICATE"
    PF_INCOME_TAX = "PF_INCOME_TAX"
    PF_EXTRA = "PF_EXTRA"
    PJ_ARTICLES_OF_INCORPORATION = "PJ_ARTICLES_OF_INCORPORATION"
    PJ_PROOF_OF_ADDRESS = "PJ_PROOF_OF_ADDRESS"
    PJ_DRE = "PJ_DRE"
    PJ_STATEMENT = "PJ_STATEMENT"
    PJ_EXTRA = "PJ_EXTRA"
    COTA_STATEMENT = "COTA_STATEMENT"

    @property
    def owner_type(self) -> OwnerType:
        """Owner type this document type may be attached to."""
        if self is DocumentType.COTA_STATEMENT:
            return OwnerType.COTA
        return OwnerType(self.value.split("_", 1)[0])


class CascadePolicy(str, Enum):
    """What happens to PRE_APPROVED proposals when their quota statement is rejected."""

    REJECT = "reject"
    RETURN_TO_REVIEW = "return_to_review"
