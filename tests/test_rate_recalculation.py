"""Tests for the batch monthly-rate recalculation sweep."""

from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from consorcio_market.config import RateSettings
from consorcio_market.models import Cota, CotaHistory
from consorcio_market.rates.recalculation import (
    RateRecalculator,
    SweepResult,
    corrected_installment,
    is_implausible,
    plan_rate_update,
)


@pytest.fixture()
def rate_settings() -> RateSettings:
    return RateSettings()


def _plan(rate_settings, **overrides):
    params = {
        "outstanding_balance": Decimal("100000.00"),
        "n_installments": 120,
        "installment_value": Decimal("1434.71"),
        "stored_rate": None,
        "present_value": Decimal("100000.00"),
        "rate_settings": rate_settings,
    }
    params.update(overrides)
    return plan_rate_update(**params)


# ── Pure decision ────────────────────────────────────────────────────


class TestPlausibility:
    def test_normal_schedule_is_plausible(self, rate_settings):
        assert not is_implausible(Decimal("100000"), 120, Decimal("1434.71"), None, rate_settings)

    def test_payments_equal_to_balance(self, rate_settings):
        assert is_implausible(Decimal("120000"), 120, Decimal("1000"), None, rate_settings)

    def test_payments_within_ratio(self, rate_settings):
        # 120 x 1000.99 = 120118.80 <= 120000 * 1.001
        assert is_implausible(Decimal("120000"), 120, Decimal("1000.99"), None, rate_settings)

    def test_low_stored_rate(self, rate_settings):
        assert is_implausible(Decimal("100000"), 120, Decimal("1434.71"), Decimal("0.05"), rate_settings)

    def test_corrected_installment(self, rate_settings):
        assert corrected_installment(Decimal("120000"), 120, rate_settings) == Decimal("1120.00")
        assert corrected_installment(Decimal("100000"), 120, rate_settings) == Decimal("933.33")

    def test_correction_factor_is_configurable(self):
        tuned = RateSettings(correction_factor=Decimal("1.20"))
        assert corrected_installment(Decimal("120000"), 120, tuned) == Decimal("1200.00")


class TestPlanRateUpdate:
    def test_new_rate_is_written(self, rate_settings):
        decision = _plan(rate_settings)
        assert decision.should_write is True
        assert decision.installment_corrected is False
        assert decision.monthly_rate == pytest.approx(Decimal("1.0"), abs=Decimal("0.001"))

    def test_implausible_installment_is_rebuilt(self, rate_settings):
        decision = _plan(
            rate_settings,
            outstanding_balance=Decimal("120000.00"),
            installment_value=Decimal("1000.00"),
            present_value=Decimal("120000.00"),
        )
        assert decision.installment_corrected is True
        assert decision.installment_value == Decimal("1120.00")
        assert decision.should_write is True
        assert Decimal("0.1") < decision.monthly_rate < Decimal("0.3")

    def test_low_stored_rate_is_rebuilt(self, rate_settings):
        decision = _plan(rate_settings, stored_rate=Decimal("0.05"))
        assert decision.installment_corrected is True
        assert decision.installment_value == Decimal("933.33")
        assert decision.should_write is True

    def test_within_tolerance_is_skipped(self, rate_settings):
        first = _plan(rate_settings)
        again = _plan(rate_settings, stored_rate=first.monthly_rate)
        assert again.should_write is False

    def test_drift_above_tolerance_is_written(self, rate_settings):
        first = _plan(rate_settings)
        again = _plan(rate_settings, stored_rate=first.monthly_rate + Decimal("0.01"))
        assert again.should_write is True

    def test_unsolvable(self, rate_settings):
        decision = _plan(rate_settings, n_installments=0)
        assert decision.monthly_rate is None
        assert decision.should_write is False
        assert decision.installment_value == Decimal("1434.71")

    def test_present_value_basis(self, rate_settings):
        balance = _plan(rate_settings)
        net_credit = _plan(rate_settings, present_value=Decimal("80000.00"))
        assert net_credit.monthly_rate > balance.monthly_rate


# ── Sweep over the store ─────────────────────────────────────────────


async def _seed(session, make_pf, make_cota) -> dict[str, Cota]:
    seller = await make_pf()
    cotas = {
        "normal": await make_cota(seller),
        "implausible": await make_cota(
            seller,
            outstanding_balance=Decimal("120000.00"),
            credit_amount=Decimal("150000.00"),
            installment_value=Decimal("1000.00"),
        ),
        "settled": await make_cota(seller, monthly_rate=Decimal("1.000000")),
        "unsolvable": await make_cota(seller, n_installments=0),
    }
    await session.commit()
    return cotas


async def _reload(database, cota_id):
    async with database.session_factory() as db:
        return await db.get(Cota, cota_id)


async def _history(database, cota_id) -> list[CotaHistory]:
    async with database.session_factory() as db:
        rows = await db.execute(
            select(CotaHistory).where(CotaHistory.cota_id == cota_id).order_by(CotaHistory.field_changed)
        )
        return list(rows.scalars().all())


class TestRateRecalculator:
    @pytest.mark.asyncio
    async def test_sweep_counts_and_writes(self, database, session, make_pf, make_cota, rate_settings):
        cotas = await _seed(session, make_pf, make_cota)

        result = await RateRecalculator(database, rate_settings).run()

        assert result == SweepResult(
            total=4, updated=2, corrected_installments=1, unchanged=1, unsolved=1, failed=0, dry_run=False
        )

        normal = await _reload(database, cotas["normal"].id)
        assert abs(normal.monthly_rate - Decimal("1")) < Decimal("0.001")

        implausible = await _reload(database, cotas["implausible"].id)
        assert implausible.installment_value == Decimal("1120.00")
        assert implausible.monthly_rate > Decimal("0.1")

        unsolvable = await _reload(database, cotas["unsolvable"].id)
        assert unsolvable.monthly_rate is None

    @pytest.mark.asyncio
    async def test_history_rows_written_by_system(self, database, session, make_pf, make_cota, rate_settings):
        cotas = await _seed(session, make_pf, make_cota)
        await RateRecalculator(database, rate_settings).run()

        normal = await _history(database, cotas["normal"].id)
        assert [h.field_changed for h in normal] == ["monthly_rate"]
        assert normal[0].old_value is None
        assert normal[0].changed_by == "system"

        implausible = await _history(database, cotas["implausible"].id)
        assert [h.field_changed for h in implausible] == ["installment_value", "monthly_rate"]
        assert implausible[0].old_value == "1000.00"
        assert implausible[0].new_value == "1120.00"

        assert await _history(database, cotas["settled"].id) == []

    @pytest.mark.asyncio
    async def test_second_run_is_idempotent(self, database, session, make_pf, make_cota, rate_settings):
        await _seed(session, make_pf, make_cota)
        recalculator = RateRecalculator(database, rate_settings)
        await recalculator.run()

        again = await recalculator.run()

        assert again.updated == 0
        assert again.corrected_installments == 0
        assert again.unchanged == 3
        assert again.unsolved == 1

    @pytest.mark.asyncio
    async def test_dry_run_writes_nothing(self, database, session, make_pf, make_cota, rate_settings):
        cotas = await _seed(session, make_pf, make_cota)

        result = await RateRecalculator(database, rate_settings).run(dry_run=True)

        assert result.dry_run is True
        assert result.updated == 2
        normal = await _reload(database, cotas["normal"].id)
        assert normal.monthly_rate is None
        implausible = await _reload(database, cotas["implausible"].id)
        assert implausible.installment_value == Decimal("1000.00")
        assert await _history(database, cotas["normal"].id) == []

    @pytest.mark.asyncio
    async def test_failed_row_does_not_halt_sweep(self, database, session, make_pf, make_cota, rate_settings):
        cotas = await _seed(session, make_pf, make_cota)
        failing_id = cotas["normal"].id

        class FlakyRecalculator(RateRecalculator):
            async def _process(self, cota_id, *, dry_run, log):
                if cota_id == failing_id:
                    raise OperationalError("UPDATE cotas", {}, Exception("disk I/O error"))
                return await super()._process(cota_id, dry_run=dry_run, log=log)

        result = await FlakyRecalculator(database, rate_settings).run()

        assert result.failed == 1
        assert result.updated == 1
        assert result.total == 4
        normal = await _reload(database, failing_id)
        assert normal.monthly_rate is None

    @pytest.mark.asyncio
    async def test_net_credit_basis(self, database, session, make_pf, make_cota):
        seller = await make_pf()
        cota = await make_cota(seller)
        await session.commit()

        await RateRecalculator(database, RateSettings(present_value_basis="net_credit")).run()

        # PV = 100000 - 20000 with the same installments implies roughly 1.49%
        reloaded = await _reload(database, cota.id)
        assert Decimal("1.4") < reloaded.monthly_rate < Decimal("1.6")
