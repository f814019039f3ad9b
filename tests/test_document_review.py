"""Tests for document upload registration, admin review and the statement cascade."""

from __future__ import annotations

import uuid

import pytest
import pytest_asyncio

from consorcio_market.documents.review import DocumentReviewService
from consorcio_market.errors import NotFound, PermissionDenied, ValidationError
from consorcio_market.models import (
    CascadePolicy,
    DocumentStatus,
    DocumentType,
    OwnerType,
    ProposalStatus,
    UserRole,
)


@pytest.fixture()
def service(authorizer, workflow) -> DocumentReviewService:
    return DocumentReviewService(authorizer, workflow)


@pytest_asyncio.fixture()
async def admin(make_pf):
    return await make_pf(role=UserRole.ADMIN)


@pytest_asyncio.fixture()
async def seller(make_pf):
    return await make_pf()


@pytest_asyncio.fixture()
async def cota(make_cota, seller):
    return await make_cota(seller)


async def _upload_statement(service, session, actor, cota, name="extrato.pdf"):
    return await service.register_upload(
        session,
        actor,
        OwnerType.COTA,
        cota.id,
        DocumentType.COTA_STATEMENT,
        f"cota-documents/{cota.id}/COTA_STATEMENT/{name}",
        name,
    )


class TestRegisterUpload:
    @pytest.mark.asyncio
    async def test_seller_uploads_statement(self, session, service, as_actor, seller, cota):
        document = await _upload_statement(service, session, as_actor(seller), cota)
        assert document.status == DocumentStatus.UNDER_REVIEW.value
        assert document.owner_type == "COTA"
        assert document.owner_id == cota.id

    @pytest.mark.asyncio
    async def test_other_user_cannot_upload(self, session, service, as_actor, make_pf, cota):
        stranger = await make_pf()
        with pytest.raises(PermissionDenied):
            await _upload_statement(service, session, as_actor(stranger), cota)

    @pytest.mark.asyncio
    async def test_type_must_match_owner(self, session, service, as_actor, seller):
        with pytest.raises(ValidationError) as exc_info:
            await service.register_upload(
                session, as_actor(seller), OwnerType.PF, seller.id, DocumentType.PJ_DRE, "x/dre.pdf", "dre.pdf"
            )
        assert exc_info.value.context["field"] == "document_type"

    @pytest.mark.asyncio
    async def test_company_documents_owned_by_pf(self, session, service, as_actor, seller, make_pj):
        company = await make_pj(seller)
        document = await service.register_upload(
            session,
            as_actor(seller),
            OwnerType.PJ,
            company.id,
            DocumentType.PJ_ARTICLES_OF_INCORPORATION,
            "pj/contrato.pdf",
            "contrato.pdf",
        )
        assert document.owner_id == company.id

    @pytest.mark.asyncio
    async def test_unknown_quota(self, session, service, as_actor, seller):
        with pytest.raises(NotFound):
            await service.register_upload(
                session,
                as_actor(seller),
                OwnerType.COTA,
                uuid.uuid4(),
                DocumentType.COTA_STATEMENT,
                "x/extrato.pdf",
                "extrato.pdf",
            )

    @pytest.mark.asyncio
    async def test_reupload_restarts_review(self, session, service, as_actor, admin, seller, cota):
        first = await _upload_statement(service, session, as_actor(seller), cota)
        await service.review(session, as_actor(admin), first.id, DocumentStatus.REJECTED, "Ilegível")

        again = await _upload_statement(service, session, as_actor(seller), cota, name="extrato-v2.pdf")

        assert again.id == first.id
        assert again.status == DocumentStatus.UNDER_REVIEW.value
        assert again.file_name == "extrato-v2.pdf"
        assert again.rejection_reason is None
        assert again.reviewed_by is None


class TestReview:
    @pytest.mark.asyncio
    async def test_approve(self, session, service, as_actor, admin, cota, make_statement):
        document = await make_statement(cota, DocumentStatus.UNDER_REVIEW)

        outcome = await service.review(session, as_actor(admin), document.id, "APPROVED")

        assert outcome.document.status == DocumentStatus.APPROVED.value
        assert outcome.document.reviewed_by == str(admin.id)
        assert outcome.document.reviewed_at is not None
        assert outcome.affected_proposals == 0
        assert outcome.proposal_action is None

    @pytest.mark.asyncio
    async def test_admin_only(self, session, service, as_actor, seller, cota, make_statement):
        document = await make_statement(cota, DocumentStatus.UNDER_REVIEW)
        with pytest.raises(PermissionDenied):
            await service.review(session, as_actor(seller), document.id, "APPROVED")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", ["UNDER_REVIEW", "PENDING_UPLOAD", "OK"])
    async def test_only_final_statuses(self, session, service, as_actor, admin, cota, make_statement, status):
        document = await make_statement(cota, DocumentStatus.UNDER_REVIEW)
        with pytest.raises(ValidationError, match="Use APPROVED ou REJECTED"):
            await service.review(session, as_actor(admin), document.id, status)

    @pytest.mark.asyncio
    async def test_unknown_document(self, session, service, as_actor, admin):
        with pytest.raises(NotFound):
            await service.review(session, as_actor(admin), uuid.uuid4(), "APPROVED")

    @pytest.mark.asyncio
    async def test_reject_requires_reason(self, session, service, as_actor, admin, cota, make_statement):
        document = await make_statement(cota, DocumentStatus.UNDER_REVIEW)
        with pytest.raises(ValidationError, match="Motivo da rejeição"):
            await service.review(session, as_actor(admin), document.id, "REJECTED", "  ")
        assert document.status == DocumentStatus.UNDER_REVIEW.value

    @pytest.mark.asyncio
    async def test_pending_queue(self, session, service, as_actor, admin, seller, cota, make_cota, make_statement):
        waiting = await make_statement(cota, DocumentStatus.UNDER_REVIEW)
        await make_statement(await make_cota(seller), DocumentStatus.APPROVED)

        pending = await service.list_pending(session, as_actor(admin))
        assert [d.id for d in pending] == [waiting.id]

        with pytest.raises(PermissionDenied):
            await service.list_pending(session, as_actor(seller))

    @pytest.mark.asyncio
    async def test_owner_lists_documents(self, session, service, as_actor, seller, cota, make_statement):
        document = await make_statement(cota)
        listed = await service.list_documents(session, as_actor(seller), OwnerType.COTA, cota.id)
        assert [d.id for d in listed] == [document.id]


class TestStatementCascade:
    @pytest.mark.asyncio
    async def test_rejection_returns_proposals_to_review(
        self, session, service, as_actor, admin, make_pf, cota, make_statement, make_proposal
    ):
        document = await make_statement(cota)
        pre_approved = await make_proposal(cota, await make_pf(), ProposalStatus.PRE_APPROVED)
        untouched = await make_proposal(cota, await make_pf(), ProposalStatus.UNDER_REVIEW)

        outcome = await service.review(session, as_actor(admin), document.id, "REJECTED", "Extrato vencido")

        assert outcome.affected_proposals == 1
        assert outcome.proposal_action == "returned_to_review"
        assert pre_approved.status == ProposalStatus.UNDER_REVIEW.value
        assert untouched.status == ProposalStatus.UNDER_REVIEW.value

    @pytest.mark.asyncio
    async def test_rejection_with_reject_policy(
        self, session, service, as_actor, admin, make_pf, cota, make_statement, make_proposal
    ):
        document = await make_statement(cota)
        proposal = await make_proposal(cota, await make_pf(), ProposalStatus.PRE_APPROVED)

        outcome = await service.review(
            session, as_actor(admin), document.id, "REJECTED", "Extrato vencido", CascadePolicy.REJECT
        )

        assert outcome.affected_proposals == 1
        assert outcome.proposal_action == "rejected"
        assert proposal.status == ProposalStatus.REJECTED.value
        assert proposal.rejection_reason == "Extrato da cota rejeitado: Extrato vencido"

    @pytest.mark.asyncio
    async def test_no_pre_approved_proposals(
        self, session, service, as_actor, admin, make_pf, cota, make_statement, make_proposal
    ):
        document = await make_statement(cota)
        await make_proposal(cota, await make_pf(), ProposalStatus.UNDER_REVIEW)

        outcome = await service.review(session, as_actor(admin), document.id, "REJECTED", "Ilegível")

        assert outcome.affected_proposals == 0
        assert outcome.proposal_action is None

    @pytest.mark.asyncio
    async def test_other_document_types_do_not_cascade(
        self, session, service, as_actor, admin, seller, make_pf, cota, make_proposal
    ):
        proposal = await make_proposal(cota, await make_pf(), ProposalStatus.PRE_APPROVED)
        rg = await service.register_upload(
            session, as_actor(seller), OwnerType.PF, seller.id, DocumentType.PF_RG, "pf/rg.pdf", "rg.pdf"
        )

        outcome = await service.review(session, as_actor(admin), rg.id, "REJECTED", "Foto ilegível")

        assert outcome.affected_proposals == 0
        assert proposal.status == ProposalStatus.PRE_APPROVED.value
