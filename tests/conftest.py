"""Shared fixtures: in-memory SQLite database and row factories."""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.pool import StaticPool

from consorcio_market.db.engine import Database
from consorcio_market.models import (
    BuyerType,
    Cota,
    CotaStatus,
    Document,
    DocumentStatus,
    DocumentType,
    ProfilePF,
    ProfilePJ,
    ProfileStatus,
    Proposal,
    ProposalStatus,
    UserRole,
)
from consorcio_market.security.authorization import Actor, Authorizer
from consorcio_market.workflow.engine import ProposalWorkflow


@pytest_asyncio.fixture()
async def database():
    """Fresh in-memory database with all tables."""
    db = Database("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture()
async def session(database):
    async with database.session_factory() as s:
        yield s


@pytest.fixture()
def authorizer() -> Authorizer:
    return Authorizer()


@pytest.fixture()
def workflow(authorizer) -> ProposalWorkflow:
    return ProposalWorkflow(authorizer)


@pytest.fixture()
def as_actor():
    """Map a profile row to the Actor the API would resolve."""

    def _as_actor(profile: ProfilePF) -> Actor:
        return Actor(id=profile.id, is_admin=profile.is_admin)

    return _as_actor


# ── Row factories ────────────────────────────────────────────────────


@pytest.fixture()
def make_pf(session):
    """Factory to insert a PF profile."""
    counter = iter(range(1, 10_000))

    async def _make(
        role: UserRole = UserRole.USER,
        status: ProfileStatus = ProfileStatus.APPROVED,
    ) -> ProfilePF:
        n = next(counter)
        profile = ProfilePF(
            id=uuid.uuid4(),
            email=f"user{n}@example.com",
            full_name=f"Usuário {n}",
            cpf=None,
            phone=f"1199999{n:04d}",
            role=role.value,
            status=status.value,
        )
        session.add(profile)
        await session.flush()
        return profile

    return _make


@pytest.fixture()
def make_pj(session):
    """Factory to insert a PJ profile owned by a PF."""
    counter = iter(range(1, 10_000))

    async def _make(owner: ProfilePF, status: ProfileStatus = ProfileStatus.APPROVED) -> ProfilePJ:
        n = next(counter)
        company = ProfilePJ(
            pf_id=owner.id,
            legal_name=f"Empresa {n} Ltda",
            cnpj=f"{n:014d}",
            status=status.value,
        )
        session.add(company)
        await session.flush()
        return company

    return _make


@pytest.fixture()
def make_cota(session):
    """Factory to insert a quota (100k credit, 120 x 1434.71, 20% entry by default)."""

    async def _make(
        seller: ProfilePF,
        *,
        administrator: str = "Itaú Consórcios",
        status: CotaStatus = CotaStatus.AVAILABLE,
        credit_amount: Decimal = Decimal("100000.00"),
        outstanding_balance: Decimal = Decimal("100000.00"),
        n_installments: int = 120,
        installment_value: Decimal = Decimal("1434.71"),
        entry_amount: Decimal = Decimal("20000.00"),
        monthly_rate: Decimal | None = None,
    ) -> Cota:
        cota = Cota(
            seller_id=seller.id,
            administrator=administrator,
            credit_amount=credit_amount,
            outstanding_balance=outstanding_balance,
            n_installments=n_installments,
            installment_value=installment_value,
            entry_amount=entry_amount,
            entry_percentage=(entry_amount / credit_amount * 100).quantize(Decimal("0.01")),
            monthly_rate=monthly_rate,
            status=status.value,
        )
        session.add(cota)
        await session.flush()
        return cota

    return _make


@pytest.fixture()
def make_proposal(session):
    """Factory to insert a proposal directly in a given status."""

    async def _make(
        cota: Cota,
        buyer: ProfilePF,
        status: ProposalStatus = ProposalStatus.UNDER_REVIEW,
        *,
        buyer_type: BuyerType = BuyerType.PF,
        buyer_entity_id: uuid.UUID | None = None,
    ) -> Proposal:
        proposal = Proposal(
            cota_id=cota.id,
            buyer_pf_id=buyer.id,
            buyer_type=buyer_type.value,
            buyer_entity_id=buyer_entity_id or buyer.id,
            status=status.value,
        )
        session.add(proposal)
        await session.flush()
        return proposal

    return _make


@pytest.fixture()
def make_statement(session):
    """Factory to insert a COTA_STATEMENT document for a quota."""

    async def _make(cota: Cota, status: DocumentStatus = DocumentStatus.APPROVED) -> Document:
        document = Document(
            owner_id=cota.id,
            owner_type="COTA",
            document_type=DocumentType.COTA_STATEMENT.value,
            file_url=f"cota-documents/{cota.id}/COTA_STATEMENT/extrato.pdf",
            file_name="extrato.pdf",
            status=status.value,
        )
        session.add(document)
        await session.flush()
        return document

    return _make
