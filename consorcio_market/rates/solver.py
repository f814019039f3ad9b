"""Monthly rate solver for consortium installment schedules.

Pure Python, float arithmetic, no I/O. Implements:
- Implicit periodic rate of an annuity (spreadsheet RATE equivalent)
- Annuity payment for a known rate (the forward direction)
- Entry percentage of a quota

The rate is the root of

    PV * (1+r)^n + PMT * (1 + r*type) * ((1+r)^n - 1) / r + FV = 0

found by Newton-Raphson with the analytic derivative. Cash-flow sign
convention follows spreadsheets: the payment is an outflow (negative), the
present value an inflow (positive).

An unsolvable schedule is an expected outcome (e.g. zero-interest source
data), so the solver returns None instead of raising.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal

MAX_ITERATIONS = 100
TOLERANCE = 1e-7
# Iterates outside (RATE_FLOOR, RATE_CEILING) are treated as divergence
RATE_FLOOR = -0.99
RATE_CEILING = 1.0
# Stored rates keep 6 decimal places (percent)
RATE_QUANTUM = Decimal("0.000001")


def _annuity_equation(
    rate: float,
    n_periods: int,
    payment: float,
    present_value: float,
    future_value: float,
    payment_timing: int,
) -> tuple[float, float]:
    """Return (f(rate), f'(rate)) for the annuity equation."""
    growth = (1 + rate) ** n_periods
    growth_prev = (1 + rate) ** (n_periods - 1)
    annuity_factor = (growth - 1) / rate

    f = present_value * growth + payment * (1 + rate * payment_timing) * annuity_factor + future_value

    d_annuity_factor = (n_periods * growth_prev * rate - growth + 1) / (rate * rate)
    f_prime = (
        present_value * n_periods * growth_prev
        + payment * (1 + rate * payment_timing) * d_annuity_factor
        + payment_timing * payment * annuity_factor
    )
    return f, f_prime


def solve_monthly_rate(
    n_periods: int,
    payment: float,
    present_value: float,
    future_value: float = 0.0,
    payment_timing: int = 0,
    initial_guess: float = 0.01,
) -> float | None:
    """Solve the periodic interest rate of an annuity.

    Args:
        n_periods: Number of installments, must be > 0.
        payment: Installment value as a negative outflow.
        present_value: Financed amount, must be > 0.
        future_value: Residual value after the last installment.
        payment_timing: 0 = end of period (ordinary annuity), 1 = start (annuity-due).
        initial_guess: Starting rate as a fraction (0.01 = 1%).

    Returns:
        The rate in percent (0.85 means 0.85% per period), or None when the
        inputs are invalid, the iteration diverges, or the root is not a
        positive finite rate.
    """
    if n_periods <= 0 or payment >= 0 or present_value <= 0:
        return None

    rate = float(initial_guess)
    for _ in range(MAX_ITERATIONS):
        try:
            f, f_prime = _annuity_equation(
                rate, n_periods, payment, present_value, future_value, payment_timing
            )
        except (OverflowError, ZeroDivisionError):
            return None

        if f_prime == 0 or not math.isfinite(f_prime) or not math.isfinite(f):
            return None

        new_rate = rate - f / f_prime

        if abs(new_rate - rate) < TOLERANCE:
            if new_rate > 0 and math.isfinite(new_rate):
                return new_rate * 100
            return None

        rate = new_rate
        if not RATE_FLOOR < rate < RATE_CEILING:
            return None

    return None


def annuity_payment(
    rate: float,
    n_periods: int,
    present_value: float,
    future_value: float = 0.0,
    payment_timing: int = 0,
) -> float:
    """Installment (as a negative outflow) that amortizes present_value at rate.

    Args:
        rate: Periodic rate as a fraction (0.0085 = 0.85%).
        n_periods: Number of installments, must be > 0.
        present_value: Financed amount.
        future_value: Residual value after the last installment.
        payment_timing: 0 = end of period, 1 = start of period.

    Raises:
        ValueError: If n_periods is not positive.
    """
    if n_periods <= 0:
        msg = f"n_periods must be > 0, got {n_periods}"
        raise ValueError(msg)
    if rate == 0:
        return -(present_value + future_value) / n_periods
    growth = (1 + rate) ** n_periods
    return -(rate * (present_value * growth + future_value)) / ((1 + rate * payment_timing) * (growth - 1))


def entry_percentage(entry_amount: Decimal, credit_amount: Decimal) -> Decimal:
    """Entry as a percentage of the credit, rounded to 2 places (0 for zero credit)."""
    if credit_amount == 0:
        return Decimal("0.00")
    return (entry_amount / credit_amount * 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def solve_installment_rate(
    n_installments: int,
    installment_value: Decimal,
    present_value: Decimal,
    initial_guess: float = 0.01,
) -> Decimal | None:
    """Monthly rate (percent, 6 places) implied by a quota's installment schedule.

    Convenience wrapper for stored quotas: the installment is a positive
    amount, the sign convention is applied here.
    """
    rate = solve_monthly_rate(
        n_installments,
        -float(installment_value),
        float(present_value),
        initial_guess=initial_guess,
    )
    if rate is None:
        return None
    return Decimal(str(rate)).quantize(RATE_QUANTUM, rounding=ROUND_HALF_UP)
