"""Data contracts for the goal endpoints."""

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from visionfund.core.metrics import (
    GoalWithCalculations,
    MonthlyHistoryRow,
    PortfolioSummary,
    ProjectionPoint,
)
from visionfund.models import Contribution, Goal


class _Contract(BaseModel):
    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)


class GoalRequest(_Contract):
    """A goal, its contributions, and optionally the date to evaluate on."""

    goal: Goal
    contributions: List[Contribution] = Field(default_factory=list)
    today: Optional[date] = Field(
        default=None,
        description="Evaluation date; defaults to the server's current date.",
    )


class EvaluateRequest(GoalRequest):
    compound: bool = Field(
        False,
        description="Accrue interest on confirmed contributions when computing the current total.",
    )


class RequiredPaymentResponse(_Contract):
    required_monthly_payment: float = Field(..., ge=0)
    contribution_start_date: date
    contribution_periods: int = Field(..., ge=1)
    projected_completion_date: date


class HistoryResponse(_Contract):
    months: List[MonthlyHistoryRow]


class ProjectionResponse(_Contract):
    points: List[ProjectionPoint]


class GoalEntry(_Contract):
    goal: Goal
    contributions: List[Contribution] = Field(default_factory=list)


class SummaryRequest(_Contract):
    goals: List[GoalEntry] = Field(..., min_length=1)
    today: Optional[date] = None


class SummaryResponse(_Contract):
    summary: PortfolioSummary
    goals: List[GoalWithCalculations]
