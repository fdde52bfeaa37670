from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class Goal(BaseModel):
    """Savings goal parameters, validated once at the boundary.

    Field names are snake_case; camelCase aliases (``targetAmount``,
    ``createdAt`` ...) are accepted as well so API payloads can be fed in
    as-is.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: Optional[str] = None
    name: Optional[str] = None

    target_amount: float = Field(gt=0)
    target_date: date
    initial_amount: float = Field(default=0.0, ge=0)
    monthly_pledge: float = Field(default=0.0, ge=0)
    expected_annual_rate_percent: float = Field(default=0.0, ge=0, le=100)
    created_at: datetime

    @field_validator("created_at", mode="before")
    @classmethod
    def midnight_for_plain_dates(cls, value: Any) -> Any:
        if isinstance(value, date) and not isinstance(value, datetime):
            return datetime.combine(value, time())
        return value

    @model_validator(mode="after")
    def ensure_validity(self) -> "Goal":
        if self.target_date <= self.created_at.date():
            raise ValueError("targetDate must be after createdAt")
        return self

    @property
    def created_on(self) -> date:
        return self.created_at.date()


class Contribution(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: Optional[str] = None
    amount: float = Field(gt=0)
    contribution_date: date = Field(alias="date")
    confirmed: bool = False


__all__ = ["Goal", "Contribution"]
