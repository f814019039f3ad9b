"""Pydantic schemas for PF/PJ profiles."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field

from consorcio_market.admin.formatters import (
    PROFILE_STATUS_LABELS,
    format_cep,
    format_cnpj,
    format_cpf,
    format_phone,
    label_for,
)
from consorcio_market.models.enums import ProfileStatus, UserRole


class DuplicateCheckRequest(BaseModel):
    cpf: str | None = None
    phone: str | None = None


class ProfileRegister(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    full_name: str = Field(min_length=1, max_length=200)
    cpf: str = Field(min_length=11, max_length=14)
    phone: str = Field(min_length=10, max_length=20)


class CompanyRegister(BaseModel):
    legal_name: str = Field(min_length=1, max_length=200)
    cnpj: str = Field(min_length=14, max_length=18)
    company_email: str | None = None
    company_phone: str | None = None


class ProfileReview(BaseModel):
    status: ProfileStatus


class ProfilePFRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    full_name: str
    cpf: str | None = None
    phone: str
    role: UserRole
    status: ProfileStatus
    address_city: str | None = None
    address_state: str | None = None
    address_zip: str | None = None
    created_at: datetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status_label(self) -> str:
        return label_for(PROFILE_STATUS_LABELS, self.status.value)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cpf_formatted(self) -> str | None:
        return format_cpf(self.cpf) if self.cpf else None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def phone_formatted(self) -> str:
        return format_phone(self.phone)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def zip_formatted(self) -> str | None:
        return format_cep(self.address_zip) if self.address_zip else None


class ProfilePJRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    pf_id: uuid.UUID
    legal_name: str
    cnpj: str
    company_email: str | None = None
    company_phone: str | None = None
    address_zip: str | None = None
    status: ProfileStatus
    created_at: datetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status_label(self) -> str:
        return label_for(PROFILE_STATUS_LABELS, self.status.value)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cnpj_formatted(self) -> str:
        return format_cnpj(self.cnpj)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def company_phone_formatted(self) -> str | None:
        return format_phone(self.company_phone) if self.company_phone else None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def zip_formatted(self) -> str | None:
        return format_cep(self.address_zip) if self.address_zip else None
