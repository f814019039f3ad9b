"""Batch monthly-rate recalculation over every stored quota.

Source data sometimes carries an installment that implies a zero or
near-zero rate (total payments barely above the balance). Such quotas get a
rebuilt installment before the rate is solved again.

Each quota is processed in its own transaction: an unsolvable schedule or a
failed write is logged and counted, and the sweep moves on. Running the sweep
twice in a row writes nothing the second time.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from consorcio_market.admin.formatters import format_currency, format_percentage
from consorcio_market.config import RateSettings
from consorcio_market.db.engine import Database
from consorcio_market.models import Cota, CotaHistory
from consorcio_market.rates.solver import RATE_QUANTUM, solve_monthly_rate

logger = structlog.get_logger(__name__)

SYSTEM_ACTOR = "system"
CENT = Decimal("0.01")


@dataclass(frozen=True)
class RateDecision:
    """What the sweep would do to one quota."""

    monthly_rate: Decimal | None
    installment_value: Decimal
    installment_corrected: bool
    should_write: bool


@dataclass
class SweepResult:
    """Counters for one sweep run."""

    total: int = 0
    updated: int = 0
    corrected_installments: int = 0
    unchanged: int = 0
    unsolved: int = 0
    failed: int = 0
    dry_run: bool = False


def is_implausible(
    outstanding_balance: Decimal,
    n_installments: int,
    installment_value: Decimal,
    stored_rate: Decimal | None,
    rate_settings: RateSettings,
) -> bool:
    """True when the schedule implies a zero/near-zero rate or the stored rate is too low."""
    total_payments = installment_value * n_installments
    if total_payments <= outstanding_balance * rate_settings.plausibility_ratio:
        return True
    return stored_rate is not None and float(stored_rate) < rate_settings.min_plausible_rate


def corrected_installment(
    outstanding_balance: Decimal,
    n_installments: int,
    rate_settings: RateSettings,
) -> Decimal:
    """round(balance * correction_factor / n, 2)."""
    return (outstanding_balance * rate_settings.correction_factor / n_installments).quantize(
        CENT, rounding=ROUND_HALF_UP
    )


def plan_rate_update(
    *,
    outstanding_balance: Decimal,
    n_installments: int,
    installment_value: Decimal,
    stored_rate: Decimal | None,
    present_value: Decimal,
    rate_settings: RateSettings,
) -> RateDecision:
    """Decide the new installment and rate of one quota. Pure, no I/O.

    Args:
        outstanding_balance: Balance used for the plausibility check and correction.
        n_installments: Remaining installments.
        installment_value: Stored installment (positive).
        stored_rate: Stored monthly rate in percent, or None.
        present_value: Present value handed to the solver.
        rate_settings: Tuning knobs.

    Returns:
        RateDecision; should_write is False when the rate is unsolvable or
        within tolerance of the stored one.
    """
    installment = installment_value
    if n_installments > 0 and is_implausible(
        outstanding_balance, n_installments, installment_value, stored_rate, rate_settings
    ):
        installment = corrected_installment(outstanding_balance, n_installments, rate_settings)

    rate = solve_monthly_rate(
        n_installments,
        -float(installment),
        float(present_value),
        initial_guess=rate_settings.initial_guess,
    )
    if rate is None:
        return RateDecision(
            monthly_rate=None,
            installment_value=installment_value,
            installment_corrected=False,
            should_write=False,
        )

    new_rate = Decimal(str(rate)).quantize(RATE_QUANTUM, rounding=ROUND_HALF_UP)
    should_write = stored_rate is None or abs(rate - float(stored_rate)) > rate_settings.change_tolerance
    return RateDecision(
        monthly_rate=new_rate,
        installment_value=installment,
        installment_corrected=installment != installment_value,
        should_write=should_write,
    )


class RateRecalculator:
    """Sequential sweep that re-solves and persists every quota's monthly rate."""

    def __init__(self, database: Database, rate_settings: RateSettings) -> None:
        self._database = database
        self._settings = rate_settings

    def _present_value(self, cota: Cota) -> Decimal:
        if self._settings.present_value_basis == "net_credit":
            return cota.credit_amount - cota.entry_amount
        return cota.outstanding_balance

    async def _cota_ids(self) -> list[uuid.UUID]:
        async with self._database.session_factory() as db:
            result = await db.execute(select(Cota.id).order_by(Cota.created_at, Cota.id))
            return list(result.scalars().all())

    async def run(self, *, dry_run: bool = False) -> SweepResult:
        """Process every quota once.

        Args:
            dry_run: Compute and log decisions without writing anything.
        """
        result = SweepResult(dry_run=dry_run)
        cota_ids = await self._cota_ids()
        logger.info("rate_sweep_started", quotas=len(cota_ids), dry_run=dry_run)

        for cota_id in cota_ids:
            result.total += 1
            log = logger.bind(cota_id=str(cota_id))
            try:
                outcome = await self._process(cota_id, dry_run=dry_run, log=log)
            except SQLAlchemyError:
                result.failed += 1
                log.exception("rate_update_failed")
                continue

            if outcome is None:
                result.unsolved += 1
            elif outcome.should_write:
                result.updated += 1
                if outcome.installment_corrected:
                    result.corrected_installments += 1
            else:
                result.unchanged += 1

        logger.info(
            "rate_sweep_finished",
            total=result.total,
            updated=result.updated,
            corrected_installments=result.corrected_installments,
            unchanged=result.unchanged,
            unsolved=result.unsolved,
            failed=result.failed,
            dry_run=dry_run,
        )
        return result

    async def _process(
        self, cota_id: uuid.UUID, *, dry_run: bool, log: structlog.stdlib.BoundLogger
    ) -> RateDecision | None:
        async with self._database.transaction() as db:
            cota = await db.get(Cota, cota_id)
            if cota is None:
                return None

            decision = plan_rate_update(
                outstanding_balance=cota.outstanding_balance,
                n_installments=cota.n_installments,
                installment_value=cota.installment_value,
                stored_rate=cota.monthly_rate,
                present_value=self._present_value(cota),
                rate_settings=self._settings,
            )
            if decision.monthly_rate is None:
                log.warning(
                    "rate_unsolvable",
                    n_installments=cota.n_installments,
                    installment=format_currency(cota.installment_value),
                    balance=format_currency(cota.outstanding_balance),
                )
                return None
            if not decision.should_write:
                return decision

            log.info(
                "rate_updated" if not dry_run else "rate_would_update",
                old_rate=format_percentage(cota.monthly_rate, 4),
                new_rate=format_percentage(decision.monthly_rate, 4),
                installment_corrected=decision.installment_corrected,
                installment=format_currency(decision.installment_value),
            )
            if dry_run:
                return decision

            if decision.installment_corrected:
                db.add(CotaHistory(
                    cota_id=cota.id,
                    field_changed="installment_value",
                    old_value=str(cota.installment_value),
                    new_value=str(decision.installment_value),
                    changed_by=SYSTEM_ACTOR,
                ))
                cota.installment_value = decision.installment_value

            db.add(CotaHistory(
                cota_id=cota.id,
                field_changed="monthly_rate",
                old_value=str(cota.monthly_rate) if cota.monthly_rate is not None else None,
                new_value=str(decision.monthly_rate),
                changed_by=SYSTEM_ACTOR,
            ))
            cota.monthly_rate = decision.monthly_rate
            await db.flush()
            return decision
