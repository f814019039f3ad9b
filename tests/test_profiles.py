"""Tests for profile registration, duplicate checks and admin review."""

from __future__ import annotations

import uuid

import pytest
import pytest_asyncio

from consorcio_market.errors import NotFound, PermissionDenied, ValidationError
from consorcio_market.models import BuyerType, ProfileStatus, UserRole
from consorcio_market.profiles.service import ProfileService
from consorcio_market.schemas.profiles import ProfilePFRead, ProfilePJRead

VALID_CPF = "529.982.247-25"
VALID_CNPJ = "11.222.333/0001-81"


@pytest.fixture()
def profiles(authorizer) -> ProfileService:
    return ProfileService(authorizer)


@pytest_asyncio.fixture()
async def admin(make_pf):
    return await make_pf(role=UserRole.ADMIN)


class TestCheckDuplicates:
    @pytest.mark.asyncio
    async def test_free_values(self, session, profiles):
        assert await profiles.check_duplicates(session, cpf=VALID_CPF, phone="(11) 98888-7777") == {}

    @pytest.mark.asyncio
    async def test_invalid_cpf(self, session, profiles):
        errors = await profiles.check_duplicates(session, cpf="123.456.789-00")
        assert errors == {"cpf": "CPF inválido."}

    @pytest.mark.asyncio
    async def test_taken_cpf_and_phone(self, session, profiles):
        await profiles.register_pf(
            session, uuid.uuid4(), email="ana@example.com", full_name="Ana", cpf=VALID_CPF, phone="11988887777"
        )
        errors = await profiles.check_duplicates(session, cpf="52998224725", phone="(11) 98888-7777")
        assert errors == {
            "cpf": "Este CPF já está cadastrado.",
            "phone": "Este telefone já está cadastrado.",
        }

    @pytest.mark.asyncio
    async def test_nothing_to_check(self, session, profiles):
        assert await profiles.check_duplicates(session) == {}


class TestRegisterPF:
    @pytest.mark.asyncio
    async def test_pending_review_with_clean_digits(self, session, profiles):
        profile_id = uuid.uuid4()
        profile = await profiles.register_pf(
            session,
            profile_id,
            email=" Ana@Example.com ",
            full_name=" Ana Souza ",
            cpf=VALID_CPF,
            phone="(11) 98888-7777",
        )
        assert profile.id == profile_id
        assert profile.email == "ana@example.com"
        assert profile.cpf == "52998224725"
        assert profile.phone == "11988887777"
        assert profile.status == ProfileStatus.PENDING_REVIEW.value
        assert profile.is_admin is False

    @pytest.mark.asyncio
    async def test_existing_profile(self, session, profiles, make_pf):
        existing = await make_pf()
        with pytest.raises(ValidationError, match="já cadastrado"):
            await profiles.register_pf(
                session, existing.id, email="x@example.com", full_name="X", cpf=VALID_CPF, phone="11911112222"
            )

    @pytest.mark.asyncio
    async def test_duplicate_errors_in_context(self, session, profiles):
        with pytest.raises(ValidationError) as exc_info:
            await profiles.register_pf(
                session, uuid.uuid4(), email="x@example.com", full_name="X", cpf="111.111.111-11", phone="1191"
            )
        assert exc_info.value.context["errors"] == {"cpf": "CPF inválido."}


class TestRegisterPJ:
    @pytest.mark.asyncio
    async def test_company_owned_by_actor(self, session, profiles, as_actor, make_pf):
        owner = await make_pf()
        company = await profiles.register_pj(
            session, as_actor(owner), legal_name="Souza Ltda", cnpj=VALID_CNPJ, company_phone="(11) 3333-4444"
        )
        assert company.pf_id == owner.id
        assert company.cnpj == "11222333000181"
        assert company.company_phone == "1133334444"
        assert company.status == ProfileStatus.PENDING_REVIEW.value
        assert [c.id for c in await profiles.list_companies(session, as_actor(owner))] == [company.id]

    @pytest.mark.asyncio
    async def test_invalid_cnpj(self, session, profiles, as_actor, make_pf):
        with pytest.raises(ValidationError, match="CNPJ inválido"):
            await profiles.register_pj(session, as_actor(await make_pf()), legal_name="X", cnpj="11.222.333/0001-00")

    @pytest.mark.asyncio
    async def test_duplicate_cnpj(self, session, profiles, as_actor, make_pf):
        await profiles.register_pj(session, as_actor(await make_pf()), legal_name="A", cnpj=VALID_CNPJ)
        with pytest.raises(ValidationError, match="já está cadastrado"):
            await profiles.register_pj(session, as_actor(await make_pf()), legal_name="B", cnpj="11222333000181")


class TestReviewProfile:
    @pytest.mark.asyncio
    async def test_approve_pf(self, session, profiles, as_actor, admin, make_pf):
        pending = await make_pf(status=ProfileStatus.PENDING_REVIEW)
        await profiles.review_profile(session, as_actor(admin), BuyerType.PF, pending.id, ProfileStatus.APPROVED)
        assert pending.status == ProfileStatus.APPROVED.value

    @pytest.mark.asyncio
    async def test_reject_pj(self, session, profiles, as_actor, admin, make_pf, make_pj):
        company = await make_pj(await make_pf(), status=ProfileStatus.PENDING_REVIEW)
        await profiles.review_profile(session, as_actor(admin), BuyerType.PJ, company.id, ProfileStatus.REJECTED)
        assert company.status == ProfileStatus.REJECTED.value

    @pytest.mark.asyncio
    async def test_admin_only(self, session, profiles, as_actor, make_pf):
        user = await make_pf()
        with pytest.raises(PermissionDenied):
            await profiles.review_profile(session, as_actor(user), BuyerType.PF, user.id, ProfileStatus.APPROVED)

    @pytest.mark.asyncio
    async def test_unknown_profile(self, session, profiles, as_actor, admin):
        with pytest.raises(NotFound):
            await profiles.review_profile(
                session, as_actor(admin), BuyerType.PJ, uuid.uuid4(), ProfileStatus.APPROVED
            )


class TestReadSchemas:
    @pytest.mark.asyncio
    async def test_pf_contact_formatted(self, session, profiles):
        profile = await profiles.register_pf(
            session, uuid.uuid4(), email="Ana@Example.com", full_name="Ana", cpf=VALID_CPF, phone="11 98888 7777"
        )
        profile.address_zip = "01310100"

        body = ProfilePFRead.model_validate(profile).model_dump()

        assert body["cpf_formatted"] == VALID_CPF
        assert body["phone_formatted"] == "(11) 98888-7777"
        assert body["zip_formatted"] == "01310-100"

    @pytest.mark.asyncio
    async def test_pj_optional_contact(self, session, profiles, as_actor, make_pf):
        owner = await make_pf()
        with_phone = await profiles.register_pj(
            session, as_actor(owner), legal_name="Souza Ltda", cnpj=VALID_CNPJ, company_phone="1133334444"
        )
        without_phone = await profiles.register_pj(
            session, as_actor(owner), legal_name="Lima Ltda", cnpj="11.444.777/0001-61"
        )

        assert ProfilePJRead.model_validate(with_phone).company_phone_formatted == "(11) 3333-4444"
        bare = ProfilePJRead.model_validate(without_phone)
        assert bare.company_phone_formatted is None
        assert bare.zip_formatted is None
