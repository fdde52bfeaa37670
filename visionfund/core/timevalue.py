"""Time-value-of-money primitives with monthly compounding.

Every function takes a *monthly* rate (see ``monthly_rate``) and treats a
zero rate as its own branch, so interest-free goals never hit a division by
zero or produce NaN.
"""

from __future__ import annotations

import math

# Binary floats turn 100.00 into 100.00000000000001 often enough that a plain
# ceil would add a cent; anything closer than this to a cent boundary snaps.
_CENT_EPSILON = 1e-6


def monthly_rate(annual_rate_percent: float) -> float:
    """Nominal annual percentage (e.g. 5 for 5%) to a monthly decimal rate."""
    return annual_rate_percent / 100 / 12


def _growth(rate: float, periods: float) -> float:
    """(1 + r)^n, or ``math.inf`` once that no longer fits in a float."""
    try:
        return (1 + rate) ** periods
    except OverflowError:
        return math.inf


def future_value(present_value: float, rate: float, periods: float) -> float:
    """FV = PV * (1 + r)^n"""
    if rate == 0 or present_value == 0:
        return present_value
    return present_value * _growth(rate, periods)


def annuity_future_value(payment: float, rate: float, periods: float) -> float:
    """Future value of an ordinary annuity of ``periods`` equal payments."""
    if rate == 0:
        return payment * periods
    if payment == 0:
        return 0.0
    return payment * (_growth(rate, periods) - 1) / rate


def payment(
    future_value_target: float,
    present_value: float,
    rate: float,
    periods: float,
) -> float:
    """
    Level payment per period so that ``present_value`` grown for ``periods``
    plus the annuity of those payments reaches ``future_value_target``.

    Returns 0 when the present value alone already gets there, and when the
    growth factor overflows (the payment's limit as ``periods`` grows).
    """
    remaining = future_value_target - future_value(present_value, rate, periods)
    if remaining <= 0:
        return 0.0
    if rate == 0:
        return remaining / periods
    growth = _growth(rate, periods)
    if math.isinf(growth):
        return 0.0
    return remaining / ((growth - 1) / rate)


def periods_needed(
    rate: float,
    payment: float,
    present_value: float,
    future_value_target: float,
) -> float:
    """
    NPER: number of periods until ``present_value`` plus ``payment`` per
    period reaches ``future_value_target``.

    Unreachable combinations return ``math.inf`` instead of raising.
    """
    if payment <= 0:
        if rate == 0 or present_value <= 0:
            return math.inf
        return math.log(future_value_target / present_value) / math.log(1 + rate)

    if rate == 0:
        return (future_value_target - present_value) / payment

    arg = (payment + future_value_target * rate) / (payment + present_value * rate)
    if arg <= 0:
        return math.inf
    return math.log(arg) / math.log(1 + rate)


def round_up_to_cents(amount: float) -> float:
    cents = amount * 100
    nearest = round(cents)
    if abs(cents - nearest) < _CENT_EPSILON:
        return nearest / 100
    return math.ceil(cents) / 100


__all__ = [
    "monthly_rate",
    "future_value",
    "annuity_future_value",
    "payment",
    "periods_needed",
    "round_up_to_cents",
]
