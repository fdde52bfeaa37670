from __future__ import annotations

import math
import sys
from datetime import date, datetime
from typing import Iterable, Optional, Union

from visionfund.core.periods import (
    UNREACHABLE_HORIZON_MONTHS,
    add_months,
    contribution_periods,
    contribution_start_date,
    far_future,
    months_between,
    to_date,
)
from visionfund.core.timevalue import (
    annuity_future_value,
    future_value,
    monthly_rate,
    payment,
    periods_needed,
    round_up_to_cents,
)
from visionfund.logs import get_logger
from visionfund.models import Contribution, Goal

logger = get_logger(__name__)

# cent increments tried when a rounded payment still finishes late
MAX_PAYMENT_ADJUSTMENTS = 100

# NPER results within this of a whole number are float noise, not an extra month
_PERIOD_EPSILON = 1e-9

# balances past this are reported as the largest float instead of inf
_MAX_BALANCE = sys.float_info.max


def _whole_periods(periods: float) -> int:
    return max(1, math.ceil(periods - _PERIOD_EPSILON))


def _periods_to_target(goal: Goal, monthly_contribution: float) -> float:
    rate = monthly_rate(goal.expected_annual_rate_percent)
    if monthly_contribution <= 0 and rate == 0:
        return math.inf
    periods = periods_needed(rate, monthly_contribution, goal.initial_amount, goal.target_amount)
    if not math.isfinite(periods) or periods > UNREACHABLE_HORIZON_MONTHS:
        return math.inf
    return periods


def is_reachable(goal: Goal, monthly_contribution: float) -> bool:
    """True if the goal completes within the 100 year horizon."""
    if goal.initial_amount >= goal.target_amount:
        return True
    return math.isfinite(_periods_to_target(goal, monthly_contribution))


def _completion_date(goal: Goal, monthly_contribution: float, today: date) -> date:
    if goal.initial_amount >= goal.target_amount:
        return today

    periods = _periods_to_target(goal, monthly_contribution)
    if math.isinf(periods):
        logger.debug(
            "goal unreachable target=%s initial=%s contribution=%s rate=%s",
            goal.target_amount,
            goal.initial_amount,
            monthly_contribution,
            goal.expected_annual_rate_percent,
        )
        return far_future(today)

    start = contribution_start_date(goal.created_at)
    if monthly_contribution <= 0:
        # growth only: n whole months of interest after the start date
        return add_months(start, _whole_periods(periods))
    # The start month is the first contribution period, so the n-th
    # contribution falls n - 1 months after the start date.
    return add_months(start, _whole_periods(periods) - 1)


def projected_completion_date(
    goal: Goal,
    monthly_contribution: float,
    *,
    today: Optional[date] = None,
) -> date:
    """
    Date of the contribution that brings the goal to its target.

    Already funded goals complete ``today``; goals that can never get there
    (or would take more than 100 years) get the ``far_future`` sentinel.
    """
    return _completion_date(goal, monthly_contribution, today or date.today())


def required_monthly_payment(goal: Goal, *, today: Optional[date] = None) -> float:
    """
    Monthly payment, rounded up to the cent, needed to hit the target by the
    target date with contributions starting the month after creation.

    The rounded payment is checked against ``projected_completion_date`` and
    nudged up a cent at a time if float error would make it finish late.
    """
    today = today or date.today()
    if goal.initial_amount >= goal.target_amount:
        return 0.0

    start = contribution_start_date(goal.created_at)
    periods = contribution_periods(start, goal.target_date)
    rate = monthly_rate(goal.expected_annual_rate_percent)

    candidate = max(0.0, round_up_to_cents(payment(goal.target_amount, goal.initial_amount, rate, periods)))
    if candidate == 0:
        if future_value(goal.initial_amount, rate, periods) >= goal.target_amount:
            return 0.0
        # exact payment is a sliver of a cent, e.g. after the growth factor overflowed
        candidate = 0.01

    amount = candidate
    for _ in range(MAX_PAYMENT_ADJUSTMENTS):
        if _completion_date(goal, amount, today) <= goal.target_date:
            if amount != candidate:
                logger.debug("payment adjusted from %.2f to %.2f", candidate, amount)
            return amount
        amount = round(amount + 0.01, 2)

    # target date falls before the first contribution could land
    logger.debug(
        "payment %.2f cannot complete by %s (first contribution %s)",
        candidate,
        goal.target_date,
        start,
    )
    return candidate


def elapsed_contribution_periods(goal: Goal, as_of: Union[date, datetime]) -> int:
    """Contribution periods that have come due on or before ``as_of``."""
    start = contribution_start_date(goal.created_at)
    as_of = to_date(as_of)
    if as_of < start:
        return 0
    return contribution_periods(start, as_of)


def projected_total(
    goal: Goal,
    monthly_contribution: float,
    as_of: Union[date, datetime],
    *,
    cap_multiple: Optional[float] = None,
) -> float:
    """
    Projected balance on ``as_of``.

    The initial amount grows on its own from creation until the contribution
    start date, then keeps growing alongside the stream of monthly
    contributions. ``cap_multiple`` limits the result to that multiple of the
    target amount for charting; calculations should leave it unset.
    """
    rate = monthly_rate(goal.expected_annual_rate_percent)
    start = contribution_start_date(goal.created_at)
    as_of = to_date(as_of)

    balance = future_value(goal.initial_amount, rate, months_between(goal.created_on, min(as_of, start)))
    if as_of > start:
        balance = future_value(balance, rate, months_between(start, as_of))

    elapsed = elapsed_contribution_periods(goal, as_of)
    balance += annuity_future_value(monthly_contribution, rate, elapsed)

    if cap_multiple is not None:
        balance = min(balance, goal.target_amount * cap_multiple)
    return min(balance, _MAX_BALANCE)


def projected_interest(
    goal: Goal,
    monthly_contribution: float,
    as_of: Union[date, datetime],
) -> float:
    elapsed = elapsed_contribution_periods(goal, as_of)
    total = projected_total(goal, monthly_contribution, as_of)
    return max(0.0, total - goal.initial_amount - monthly_contribution * elapsed)


def interest_to_completion(goal: Goal, monthly_contribution: float) -> float:
    """Interest earned by the month the goal is reached (0 if never, or already)."""
    if goal.initial_amount >= goal.target_amount:
        return 0.0
    periods = _periods_to_target(goal, monthly_contribution)
    if math.isinf(periods):
        return 0.0

    rate = monthly_rate(goal.expected_annual_rate_percent)
    n = _whole_periods(periods)
    balance = future_value(goal.initial_amount, rate, n) + annuity_future_value(monthly_contribution, rate, n)
    return max(0.0, round(balance - goal.initial_amount - monthly_contribution * n, 2))


def confirmed_contributions(contributions: Iterable[Contribution]) -> list[Contribution]:
    return [c for c in contributions if c.confirmed]


def current_total(goal: Goal, contributions: Iterable[Contribution]) -> float:
    """Initial amount plus every confirmed contribution, no interest."""
    return goal.initial_amount + sum(c.amount for c in confirmed_contributions(contributions))


def current_total_with_interest(
    initial_amount: float,
    contributions: Iterable[Contribution],
    annual_rate_percent: float,
    created_at: Union[date, datetime],
    as_of: Union[date, datetime],
) -> float:
    """
    Historically accurate balance on ``as_of``.

    Walks confirmed contributions in date order: the running balance grows
    across each gap between events, and each contribution joins the balance
    on its own date (it earns nothing for the time before it landed).
    """
    rate = monthly_rate(annual_rate_percent)
    as_of = to_date(as_of)
    cursor = to_date(created_at)
    balance = initial_amount

    events = sorted(
        (c for c in confirmed_contributions(contributions) if c.contribution_date <= as_of),
        key=lambda c: c.contribution_date,
    )
    for event in events:
        if event.contribution_date > cursor:
            balance = future_value(balance, rate, months_between(cursor, event.contribution_date))
            cursor = event.contribution_date
        balance += event.amount

    if as_of > cursor:
        balance = future_value(balance, rate, months_between(cursor, as_of))
    return min(balance, _MAX_BALANCE)


__all__ = [
    "MAX_PAYMENT_ADJUSTMENTS",
    "is_reachable",
    "projected_completion_date",
    "required_monthly_payment",
    "elapsed_contribution_periods",
    "projected_total",
    "projected_interest",
    "interest_to_completion",
    "confirmed_contributions",
    "current_total",
    "current_total_with_interest",
]
