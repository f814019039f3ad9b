"""Rate solver and batch recalculation for quota installment schedules."""

from consorcio_market.rates.recalculation import (
    RateDecision,
    RateRecalculator,
    SweepResult,
    plan_rate_update,
)
from consorcio_market.rates.solver import (
    annuity_payment,
    entry_percentage,
    solve_installment_rate,
    solve_monthly_rate,
)

__all__ = [
    "RateDecision",
    "RateRecalculator",
    "SweepResult",
    "annuity_payment",
    "entry_percentage",
    "plan_rate_update",
    "solve_installment_rate",
    "solve_monthly_rate",
]
