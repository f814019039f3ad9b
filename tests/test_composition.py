"""Tests for the credit composition rules."""

import uuid
from decimal import Decimal

import pytest

from consorcio_market.errors import ValidationError
from consorcio_market.models import Cota, CotaStatus
from consorcio_market.quotas.composition import CreditComposition


def _cota(administrator="Itaú Consórcios", status=CotaStatus.AVAILABLE, credit="100000", entry="20000"):
    return Cota(
        id=uuid.uuid4(),
        seller_id=uuid.uuid4(),
        administrator=administrator,
        credit_amount=Decimal(credit),
        outstanding_balance=Decimal(credit),
        n_installments=120,
        installment_value=Decimal("1000"),
        entry_amount=Decimal(entry),
        entry_percentage=Decimal("20.00"),
        status=status.value,
    )


class TestCreditComposition:
    def test_empty(self):
        composition = CreditComposition()
        assert composition.administrator is None
        assert composition.totals().count == 0
        assert composition.totals().entry_percentage == Decimal("0.00")

    def test_same_administrator(self):
        composition = CreditComposition()
        first, second = _cota(), _cota()
        composition.add(first)
        composition.add(second)
        assert composition.cota_ids == [first.id, second.id]
        assert composition.administrator == "Itaú Consórcios"

    def test_mixed_administrators(self):
        composition = CreditComposition()
        composition.add(_cota())
        reason = composition.check_can_add(_cota(administrator="Embracon"))
        assert reason is not None
        assert '"Itaú Consórcios"' in reason
        with pytest.raises(ValidationError):
            composition.add(_cota(administrator="Embracon"))

    def test_duplicate(self):
        composition = CreditComposition()
        cota = _cota()
        composition.add(cota)
        assert composition.check_can_add(cota) == "Esta cota já está na sua composição."

    def test_unavailable(self):
        composition = CreditComposition()
        assert composition.check_can_add(_cota(status=CotaStatus.RESERVED)) == "Esta cota não está disponível."

    def test_remove_resets_administrator(self):
        composition = CreditComposition()
        cota = _cota()
        composition.add(cota)
        composition.remove(cota.id)
        assert composition.administrator is None
        composition.add(_cota(administrator="Embracon"))

    def test_totals(self):
        composition = CreditComposition()
        composition.add(_cota(credit="100000", entry="20000"))
        composition.add(_cota(credit="50000", entry="25000"))
        totals = composition.totals()
        assert totals.credit_amount == Decimal("150000")
        assert totals.entry_amount == Decimal("45000")
        assert totals.entry_percentage == Decimal("30.00")
        assert totals.count == 2
