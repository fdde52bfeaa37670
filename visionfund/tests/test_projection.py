from __future__ import annotations

from datetime import date, datetime
import math
from math import isclose

import pytest

from visionfund.core.periods import far_future
from visionfund.core.projection import (
    current_total,
    current_total_with_interest,
    elapsed_contribution_periods,
    interest_to_completion,
    is_reachable,
    projected_completion_date,
    projected_interest,
    projected_total,
    required_monthly_payment,
)
from visionfund.core.timevalue import monthly_rate, payment, round_up_to_cents
from visionfund.models import Contribution, Goal

TODAY = date(2024, 3, 1)


def make_goal(**overrides) -> Goal:
    """Goal created 2024-01-15 aiming for 10k by 2025-01-01 at 5%."""
    fields = {
        "target_amount": 10000.0,
        "target_date": date(2025, 1, 1),
        "initial_amount": 1000.0,
        "monthly_pledge": 500.0,
        "expected_annual_rate_percent": 5.0,
        "created_at": datetime(2024, 1, 15, 9, 30),
    }
    fields.update(overrides)
    return Goal(**fields)


def test_required_payment_matches_rounded_pmt_and_finishes_on_time():
    goal = make_goal()

    required = required_monthly_payment(goal, today=TODAY)

    expected = round_up_to_cents(payment(10000.0, 1000.0, monthly_rate(5), 12))
    assert required == expected
    assert 728 < required < 730
    assert projected_completion_date(goal, required, today=TODAY) <= goal.target_date


def test_required_payment_without_interest_is_linear():
    goal = make_goal(expected_annual_rate_percent=0.0, initial_amount=0.0, target_amount=1200.0)

    assert required_monthly_payment(goal, today=TODAY) == 100.0
    assert projected_completion_date(goal, 100.0, today=TODAY) == date(2025, 1, 1)


@pytest.mark.parametrize("rate", [0.0, 5.0, 12.0, 100.0])
def test_already_funded_goal(rate):
    goal = make_goal(initial_amount=12000.0, expected_annual_rate_percent=rate)

    assert required_monthly_payment(goal, today=TODAY) == 0
    assert projected_completion_date(goal, 0.0, today=TODAY) == TODAY
    assert projected_completion_date(goal, 500.0, today=TODAY) == TODAY
    assert interest_to_completion(goal, 500.0) == 0


def test_initial_growth_covering_target_needs_no_payment():
    goal = make_goal(initial_amount=9500.0, expected_annual_rate_percent=12.0, target_date=date(2030, 1, 1))

    assert required_monthly_payment(goal, today=TODAY) == 0.0


def test_zero_pledge_zero_rate_is_unreachable():
    goal = make_goal(monthly_pledge=0.0, expected_annual_rate_percent=0.0, initial_amount=100.0)

    assert projected_completion_date(goal, goal.monthly_pledge, today=TODAY) == far_future(TODAY)
    assert not is_reachable(goal, 0.0)
    assert interest_to_completion(goal, 0.0) == 0


def test_growth_slower_than_a_century_is_unreachable():
    goal = make_goal(initial_amount=100.0, expected_annual_rate_percent=1.0)

    assert projected_completion_date(goal, 0.0, today=TODAY) == far_future(TODAY)


def test_growth_only_completion_is_a_real_date():
    goal = make_goal(initial_amount=5000.0, expected_annual_rate_percent=12.0)

    completion = projected_completion_date(goal, 0.0, today=TODAY)

    # ln(2) / ln(1.01) is just under 70 months of growth after the start
    assert completion == date(2029, 12, 1)
    assert is_reachable(goal, 0.0)


def test_required_payment_when_growth_overflows_a_float():
    goal = make_goal(initial_amount=0.0, target_date=date(2900, 1, 1), expected_annual_rate_percent=100.0)

    amount = required_monthly_payment(goal, today=TODAY)

    assert amount == 0.01
    assert projected_completion_date(goal, amount, today=TODAY) <= goal.target_date
    # the initial amount alone grows past the target
    funded = make_goal(target_date=date(2900, 1, 1), expected_annual_rate_percent=100.0)
    assert required_monthly_payment(funded, today=TODAY) == 0


def test_projected_total_stays_finite_when_growth_overflows():
    goal = make_goal(target_date=date(2900, 1, 1), expected_annual_rate_percent=100.0)

    total = projected_total(goal, 500.0, goal.target_date)

    assert math.isfinite(total)
    assert total > goal.target_amount
    assert math.isfinite(projected_interest(goal, 500.0, goal.target_date))
    assert math.isfinite(current_total_with_interest(1000.0, [], 100.0, goal.created_at, date(2900, 1, 1)))


def test_completion_date_is_anchored_to_contribution_start():
    goal = make_goal(expected_annual_rate_percent=0.0, initial_amount=0.0, target_amount=1000.0)

    # ten contributions: Feb 2024 through Nov 2024
    assert projected_completion_date(goal, 100.0, today=TODAY) == date(2024, 11, 1)
    assert projected_completion_date(goal, 1000.0, today=TODAY) == date(2024, 2, 1)


def test_larger_pledge_never_delays_completion_or_lowers_total():
    goal = make_goal()
    pledges = [0.0, 50.0, 100.0, 500.0, 1000.0, 5000.0]

    dates = [projected_completion_date(goal, p, today=TODAY) for p in pledges]
    totals = [projected_total(goal, p, date(2024, 9, 15)) for p in pledges]

    assert dates == sorted(dates, reverse=True)
    assert totals == sorted(totals)


@pytest.mark.parametrize(
    "created_at,target_date,initial,rate",
    [
        (datetime(2024, 1, 15), date(2025, 1, 1), 1000.0, 5.0),
        (datetime(2024, 1, 15), date(2026, 6, 15), 0.0, 0.0),
        (datetime(2023, 12, 31), date(2030, 1, 1), 250.0, 7.0),
        (datetime(2024, 5, 2), date(2024, 9, 30), 0.0, 12.0),
        (datetime(2024, 5, 2), date(2044, 5, 1), 5000.0, 3.5),
        (datetime(2024, 2, 29), date(2025, 3, 1), 333.33, 99.0),
    ],
)
def test_required_payment_round_trips_to_target(created_at, target_date, initial, rate):
    goal = make_goal(
        created_at=created_at,
        target_date=target_date,
        initial_amount=initial,
        expected_annual_rate_percent=rate,
        target_amount=25000.0,
    )

    required = required_monthly_payment(goal, today=TODAY)

    assert required > 0
    assert projected_completion_date(goal, required, today=TODAY) <= target_date


def test_calculations_are_idempotent():
    goal = make_goal()

    assert required_monthly_payment(goal, today=TODAY) == required_monthly_payment(goal, today=TODAY)
    assert projected_total(goal, 500.0, date(2024, 8, 1)) == projected_total(goal, 500.0, date(2024, 8, 1))
    assert projected_completion_date(goal, 500.0, today=TODAY) == projected_completion_date(
        goal, 500.0, today=TODAY
    )


def test_elapsed_periods():
    goal = make_goal()

    assert elapsed_contribution_periods(goal, date(2024, 1, 20)) == 0
    assert elapsed_contribution_periods(goal, date(2024, 2, 1)) == 1
    assert elapsed_contribution_periods(goal, date(2024, 6, 15)) == 5


def test_zero_rate_projected_total_is_linear():
    goal = make_goal(expected_annual_rate_percent=0.0)

    assert projected_total(goal, 500.0, date(2024, 1, 20)) == 1000.0
    assert projected_total(goal, 500.0, date(2024, 6, 15)) == 3500.0
    assert projected_total(goal, 500.0, date(2025, 1, 1)) == 1000.0 + 500.0 * 12
    assert projected_interest(goal, 500.0, date(2025, 1, 1)) == 0


def test_projected_total_grows_initial_through_dead_period():
    goal = make_goal()
    rate = monthly_rate(5)

    total = projected_total(goal, 500.0, date(2024, 2, 1))

    # Jan 15 -> Feb 1 is 1 - 14/29 of a month; one contribution has landed
    assert isclose(total, 1000.0 * (1 + rate) ** (1 - 14 / 29) + 500.0)


def test_projected_total_cap_is_opt_in():
    goal = make_goal()

    uncapped = projected_total(goal, 5000.0, date(2025, 1, 1))
    capped = projected_total(goal, 5000.0, date(2025, 1, 1), cap_multiple=1.5)

    assert uncapped > 15000.0
    assert capped == 15000.0


def test_projected_interest_positive_with_rate():
    goal = make_goal()

    interest = projected_interest(goal, 500.0, date(2025, 1, 1))
    total = projected_total(goal, 500.0, date(2025, 1, 1))

    assert interest > 0
    assert isclose(interest, total - 1000.0 - 500.0 * 12)


def test_interest_to_completion():
    assert interest_to_completion(make_goal(expected_annual_rate_percent=0.0), 500.0) == 0
    assert interest_to_completion(make_goal(), 500.0) > 0


def test_current_total_counts_confirmed_only():
    goal = make_goal()
    contributions = [
        Contribution(amount=500.0, date=date(2024, 2, 3), confirmed=True),
        Contribution(amount=250.0, date=date(2024, 3, 3), confirmed=False),
        Contribution(amount=125.5, date=date(2024, 3, 20), confirmed=True),
    ]

    assert current_total(goal, contributions) == 1625.5


def test_current_total_with_interest_compounds_between_events():
    contributions = [
        Contribution(amount=500.0, date=date(2024, 2, 1), confirmed=True),
        Contribution(amount=999.0, date=date(2024, 2, 10), confirmed=False),
        Contribution(amount=700.0, date=date(2024, 4, 1), confirmed=True),
    ]

    total = current_total_with_interest(1000.0, contributions, 12.0, date(2024, 1, 1), date(2024, 3, 1))

    # 1000 grows a month, 500 lands, both grow a month; the April deposit is after as_of
    assert isclose(total, (1000.0 * 1.01 + 500.0) * 1.01)


def test_current_total_with_interest_ignores_input_order():
    early = Contribution(amount=300.0, date=date(2024, 2, 1), confirmed=True)
    late = Contribution(amount=300.0, date=date(2024, 5, 1), confirmed=True)

    forward = current_total_with_interest(0.0, [early, late], 6.0, datetime(2024, 1, 10), date(2024, 8, 1))
    backward = current_total_with_interest(0.0, [late, early], 6.0, datetime(2024, 1, 10), date(2024, 8, 1))

    assert forward == backward
    assert forward > 600.0


def test_current_total_with_interest_zero_rate_is_plain_sum():
    contributions = [
        Contribution(amount=500.0, date=date(2024, 2, 1), confirmed=True),
        Contribution(amount=200.0, date=date(2024, 3, 15), confirmed=True),
    ]

    total = current_total_with_interest(1000.0, contributions, 0.0, date(2024, 1, 1), date(2024, 6, 1))

    assert total == 1700.0
