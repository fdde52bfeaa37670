from __future__ import annotations

from datetime import date
from enum import Enum

from visionfund.core.periods import contribution_start_date, whole_months_between
from visionfund.models import Goal

DEFAULT_TOLERANCE_RATIO = 0.10


class GoalStatus(str, Enum):
    ON_TRACK = "on-track"
    AHEAD = "ahead"
    BEHIND = "behind"
    COMPLETED = "completed"


def expected_total_by(goal: Goal, today: date) -> float:
    """
    What the saver should have by ``today`` had every pledge landed: the
    initial amount plus one pledge per month since the contribution start,
    the current month included. Before the start date that is just the
    initial amount.
    """
    start = contribution_start_date(goal.created_at)
    if today < start:
        return goal.initial_amount
    months_since_start = whole_months_between(start, today) + 1
    return goal.initial_amount + goal.monthly_pledge * months_since_start


def classify_status(
    current_total: float,
    goal: Goal,
    *,
    today: date,
    tolerance_ratio: float = DEFAULT_TOLERANCE_RATIO,
) -> GoalStatus:
    """
    Compare the actual total with the expected-by-now total.

    A band of ``tolerance_ratio * monthly_pledge`` either side of the
    expected total counts as on track, so a contribution landing a day late
    doesn't flip the goal between ahead and behind.
    """
    if current_total >= goal.target_amount:
        return GoalStatus.COMPLETED

    # nothing was expected yet
    if today < contribution_start_date(goal.created_at):
        return GoalStatus.ON_TRACK

    expected = expected_total_by(goal, today)
    tolerance = goal.monthly_pledge * tolerance_ratio

    if current_total > expected + tolerance:
        return GoalStatus.AHEAD
    if current_total < expected - tolerance:
        return GoalStatus.BEHIND
    return GoalStatus.ON_TRACK


__all__ = [
    "DEFAULT_TOLERANCE_RATIO",
    "GoalStatus",
    "expected_total_by",
    "classify_status",
]
