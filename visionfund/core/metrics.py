from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from visionfund.core.periods import (
    contribution_periods,
    contribution_start_date,
    first_of_month,
    month_starts,
)
from visionfund.core.projection import (
    current_total,
    current_total_with_interest,
    interest_to_completion,
    is_reachable,
    projected_completion_date,
    projected_interest,
    projected_total,
    required_monthly_payment,
)
from visionfund.core.status import (
    DEFAULT_TOLERANCE_RATIO,
    GoalStatus,
    classify_status,
    expected_total_by,
)
from visionfund.models import Contribution, Goal

DEFAULT_CHART_CAP_MULTIPLE = 1.5


class GoalWithCalculations(Goal):
    """A goal together with every figure derived from it and its contributions."""

    contribution_start_date: date
    contribution_periods: int
    current_total: float
    progress_percentage: float
    expected_total: float
    required_monthly_payment: float
    projected_completion_date: date
    is_reachable: bool
    # at the target date, assuming the pledge is kept
    projected_total: float
    projected_interest: float
    interest_to_completion: float
    on_track_status: GoalStatus


class HistoryStatus(str, Enum):
    CONFIRMED = "confirmed"
    PENDING = "pending"
    MISSED = "missed"
    FUTURE = "future"
    INITIAL = "initial"


class _Row(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MonthlyHistoryRow(_Row):
    month: str  # YYYY-MM
    month_start: date
    pledged_amount: float
    actual_amount: float
    status: HistoryStatus
    contributions: List[Contribution] = Field(default_factory=list)


class ProjectionPoint(_Row):
    month: str
    month_start: date
    projected: float
    # None for months that haven't started yet
    actual_saved: Optional[float]
    monthly_contribution: float
    has_contribution: bool
    is_current_month: bool


class PortfolioSummary(_Row):
    goal_count: int
    total_current: float
    total_target: float
    overall_progress: float
    status_counts: Dict[str, int]


def progress_percentage(current: float, target: float) -> float:
    if target <= 0:
        return 0.0
    return min(100.0, max(0.0, current / target * 100))


def evaluate_goal(
    goal: Goal,
    contributions: Iterable[Contribution] = (),
    *,
    today: Optional[date] = None,
    compound: bool = False,
    tolerance_ratio: float = DEFAULT_TOLERANCE_RATIO,
) -> GoalWithCalculations:
    """
    Build the full ``GoalWithCalculations`` view of a goal.

    ``compound=True`` counts interest on the money already saved when
    working out the current total; otherwise it is the plain sum.
    """
    today = today or date.today()
    contributions = list(contributions)

    if compound:
        total = current_total_with_interest(
            goal.initial_amount,
            contributions,
            goal.expected_annual_rate_percent,
            goal.created_at,
            today,
        )
    else:
        total = current_total(goal, contributions)

    start = contribution_start_date(goal.created_at)
    pledge = goal.monthly_pledge

    return GoalWithCalculations(
        **goal.model_dump(),
        contribution_start_date=start,
        contribution_periods=contribution_periods(start, goal.target_date),
        current_total=total,
        progress_percentage=progress_percentage(total, goal.target_amount),
        expected_total=expected_total_by(goal, today),
        required_monthly_payment=required_monthly_payment(goal, today=today),
        projected_completion_date=projected_completion_date(goal, pledge, today=today),
        is_reachable=is_reachable(goal, pledge),
        projected_total=projected_total(goal, pledge, goal.target_date),
        projected_interest=projected_interest(goal, pledge, goal.target_date),
        interest_to_completion=interest_to_completion(goal, pledge),
        on_track_status=classify_status(total, goal, today=today, tolerance_ratio=tolerance_ratio),
    )


def _month_key(day: date) -> str:
    return day.strftime("%Y-%m")


def _group_by_month(contributions: Iterable[Contribution]) -> Dict[str, List[Contribution]]:
    grouped: Dict[str, List[Contribution]] = {}
    for contribution in contributions:
        grouped.setdefault(_month_key(contribution.contribution_date), []).append(contribution)
    return grouped


def monthly_history(
    goal: Goal,
    contributions: Iterable[Contribution],
    *,
    today: Optional[date] = None,
) -> List[MonthlyHistoryRow]:
    """
    One row per contribution month, from the contribution start through the
    target month, oldest first.

    A non-zero initial amount gets its own ``initial`` row for the creation
    month ahead of the monthly rows, with the deposit as both the pledged and
    the actual amount.
    """
    today = today or date.today()
    by_month = _group_by_month(contributions)

    rows: List[MonthlyHistoryRow] = []
    if goal.initial_amount > 0:
        created = first_of_month(goal.created_on)
        rows.append(
            MonthlyHistoryRow(
                month=_month_key(created),
                month_start=created,
                pledged_amount=goal.initial_amount,
                actual_amount=goal.initial_amount,
                status=HistoryStatus.INITIAL,
            )
        )

    start = contribution_start_date(goal.created_at)
    for month_start in month_starts(start, goal.target_date):
        key = _month_key(month_start)
        entries = by_month.get(key, [])
        actual = sum(c.amount for c in entries if c.confirmed)
        has_unconfirmed = any(not c.confirmed for c in entries)

        if month_start > today:
            status = HistoryStatus.FUTURE
        elif actual > 0:
            status = HistoryStatus.PENDING if has_unconfirmed else HistoryStatus.CONFIRMED
        else:
            status = HistoryStatus.MISSED

        rows.append(
            MonthlyHistoryRow(
                month=key,
                month_start=month_start,
                pledged_amount=goal.monthly_pledge,
                actual_amount=actual,
                status=status,
                contributions=entries,
            )
        )
    return rows


def projection_series(
    goal: Goal,
    contributions: Iterable[Contribution],
    *,
    today: Optional[date] = None,
    cap_multiple: Optional[float] = DEFAULT_CHART_CAP_MULTIPLE,
) -> List[ProjectionPoint]:
    """
    Month-by-month projected vs actual balance for charting.

    Projections are capped at ``cap_multiple`` times the target so a fast
    growing goal doesn't flatten the rest of the chart; pass ``None`` to
    disable.
    """
    today = today or date.today()
    by_month = _group_by_month(c for c in contributions if c.confirmed)
    running = goal.initial_amount

    points: List[ProjectionPoint] = []
    for month_start in month_starts(goal.created_on, goal.target_date):
        key = _month_key(month_start)
        month_amount = sum(c.amount for c in by_month.get(key, []))
        started = month_start <= today
        if started:
            running += month_amount

        points.append(
            ProjectionPoint(
                month=key,
                month_start=month_start,
                projected=projected_total(goal, goal.monthly_pledge, month_start, cap_multiple=cap_multiple),
                actual_saved=running if started else None,
                monthly_contribution=month_amount,
                has_contribution=key in by_month,
                is_current_month=(month_start.year, month_start.month) == (today.year, today.month),
            )
        )
    return points


def portfolio_summary(goals: Sequence[GoalWithCalculations]) -> PortfolioSummary:
    """Totals across a user's goals (the overall progress card)."""
    total_current = sum(g.current_total for g in goals)
    total_target = sum(g.target_amount for g in goals)

    counts = {status.value: 0 for status in GoalStatus}
    for g in goals:
        counts[g.on_track_status.value] += 1

    return PortfolioSummary(
        goal_count=len(goals),
        total_current=total_current,
        total_target=total_target,
        overall_progress=progress_percentage(total_current, total_target),
        status_counts=counts,
    )


__all__ = [
    "DEFAULT_CHART_CAP_MULTIPLE",
    "GoalWithCalculations",
    "HistoryStatus",
    "MonthlyHistoryRow",
    "ProjectionPoint",
    "PortfolioSummary",
    "progress_percentage",
    "evaluate_goal",
    "monthly_history",
    "projection_series",
    "portfolio_summary",
]
