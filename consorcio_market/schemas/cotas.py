"""Pydantic schemas for quotas — publish/edit/import requests and read models."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from consorcio_market.admin.formatters import COTA_STATUS_LABELS, label_for
from consorcio_market.models.enums import CotaStatus


class CotaPublish(BaseModel):
    """A seller publishing a quota."""

    administrator: str = Field(min_length=1, max_length=200)
    credit_amount: Decimal = Field(gt=0)
    outstanding_balance: Decimal = Field(gt=0)
    n_installments: int = Field(gt=0)
    installment_value: Decimal = Field(gt=0)
    entry_amount: Decimal = Field(ge=0)
    monthly_rate: Decimal | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def entry_within_credit(self) -> CotaPublish:
        if self.entry_amount > self.credit_amount:
            msg = "entry_amount cannot exceed credit_amount"
            raise ValueError(msg)
        return self


class CotaUpdate(BaseModel):
    """Admin edit — only the fields present in the request are compared."""

    status: CotaStatus | None = None
    administrator: str | None = Field(default=None, min_length=1, max_length=200)
    credit_amount: Decimal | None = Field(default=None, gt=0)
    outstanding_balance: Decimal | None = Field(default=None, ge=0)
    n_installments: int | None = Field(default=None, gt=0)
    installment_value: Decimal | None = Field(default=None, ge=0)
    entry_amount: Decimal | None = Field(default=None, ge=0)
    entry_percentage: Decimal | None = Field(default=None, ge=0)
    monthly_rate: Decimal | None = Field(default=None, ge=0)


class CotaImportRow(BaseModel):
    """One row of an admin bulk import (camelCase as exported by the spreadsheet tool)."""

    model_config = ConfigDict(populate_by_name=True)

    credit_amount: Decimal = Field(alias="creditAmount", gt=0)
    entry_amount: Decimal = Field(alias="entryAmount", ge=0)
    administrator: str | None = None
    n_installments: int = Field(alias="nInstallments", gt=0)
    installment_value: Decimal = Field(alias="installmentValue", gt=0)
    outstanding_balance: Decimal = Field(alias="outstandingBalance", gt=0)
    monthly_rate: Decimal | None = Field(default=None, alias="monthlyRate", ge=0)
    entry_percentage: Decimal | None = Field(default=None, alias="entryPercentage", ge=0)


class CotaImportRequest(BaseModel):
    cotas: list[CotaImportRow]


class CotaRead(BaseModel):
    """Quota as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    seller_id: uuid.UUID
    administrator: str
    cota_number: str | None = None
    cota_group: str | None = None
    credit_amount: Decimal
    outstanding_balance: Decimal
    n_installments: int
    installment_value: Decimal
    entry_amount: Decimal
    entry_percentage: Decimal
    monthly_rate: Decimal | None = None
    status: CotaStatus
    created_at: datetime
    updated_at: datetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status_label(self) -> str:
        return label_for(COTA_STATUS_LABELS, self.status.value)


class CotaChange(BaseModel):
    field: str
    old_value: str | None
    new_value: str | None


class CotaUpdateResult(BaseModel):
    message: str
    changes: list[CotaChange] = Field(default_factory=list)


class ListingPageRead(BaseModel):
    items: list[CotaRead]
    total: int
    page: int
    page_size: int
    total_pages: int


class CotaImportResult(BaseModel):
    count: int
    cotas: list[CotaRead]


class AdministratorRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    is_active: bool
