"""HTTP routes for the Flask API."""

import uuid
from http import HTTPStatus
from typing import Any, Dict

from flask import Blueprint, current_app, jsonify, request
from pydantic import BaseModel, ValidationError
from werkzeug.exceptions import BadRequest

from visionfund.config import Settings
from visionfund.core.metrics import (
    evaluate_goal,
    monthly_history,
    portfolio_summary,
    projection_series,
)
from visionfund.core.periods import contribution_periods, contribution_start_date
from visionfund.core.projection import projected_completion_date, required_monthly_payment
from visionfund.logs import get_logger, set_goal, set_log_context
from visionfund.schemas.goal import (
    EvaluateRequest,
    GoalRequest,
    HistoryResponse,
    ProjectionResponse,
    RequiredPaymentResponse,
    SummaryRequest,
    SummaryResponse,
)

api_bp = Blueprint("api", __name__)
logger = get_logger(__name__)


def _settings() -> Settings:
    return current_app.config["VISIONFUND_SETTINGS"]


def _payload() -> Dict[str, Any]:
    return request.get_json(force=True, silent=False)


def _respond(model: BaseModel) -> Any:
    return jsonify(model.model_dump(mode="json", by_alias=True))


@api_bp.before_request
def _tag_request() -> None:
    set_log_context(request_id=request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12], goal_id="-")


@api_bp.errorhandler(ValidationError)
def _handle_validation_error(exc: ValidationError):
    """Convert Pydantic validation errors into JSON responses."""
    logger.warning("rejected %s: %d validation error(s)", request.path, exc.error_count())
    return (
        jsonify({"detail": exc.errors(include_url=False, include_context=False)}),
        HTTPStatus.UNPROCESSABLE_ENTITY,
    )


@api_bp.errorhandler(BadRequest)
def _handle_bad_request(exc: BadRequest):
    logger.warning("bad request body on %s", request.path)
    return jsonify({"detail": exc.description}), HTTPStatus.BAD_REQUEST


@api_bp.get("/ping")
def ping() -> Any:
    """Health-check endpoint."""
    return jsonify({"message": "pong"})


@api_bp.post("/goals/evaluate")
def evaluate() -> Any:
    """Goal with progress, projections and on-track status."""
    payload = EvaluateRequest.model_validate(_payload())
    set_goal(payload.goal.id or "-")
    result = evaluate_goal(
        payload.goal,
        payload.contributions,
        today=payload.today,
        compound=payload.compound,
        tolerance_ratio=_settings().status_tolerance_ratio,
    )
    logger.info("evaluated goal status=%s", result.on_track_status.value)
    return _respond(result)


@api_bp.post("/goals/required-payment")
def required_payment() -> Any:
    """Monthly payment needed to reach the target by its date."""
    payload = GoalRequest.model_validate(_payload())
    goal = payload.goal
    start = contribution_start_date(goal.created_at)
    amount = required_monthly_payment(goal, today=payload.today)
    response = RequiredPaymentResponse(
        required_monthly_payment=amount,
        contribution_start_date=start,
        contribution_periods=contribution_periods(start, goal.target_date),
        projected_completion_date=projected_completion_date(goal, amount, today=payload.today),
    )
    return _respond(response)


@api_bp.post("/goals/history")
def history() -> Any:
    """Pledged vs actual contributions per month."""
    payload = GoalRequest.model_validate(_payload())
    rows = monthly_history(payload.goal, payload.contributions, today=payload.today)
    return _respond(HistoryResponse(months=rows))


@api_bp.post("/goals/projection")
def projection() -> Any:
    """Month-by-month projected and actual balances for the progress chart."""
    payload = GoalRequest.model_validate(_payload())
    points = projection_series(
        payload.goal,
        payload.contributions,
        today=payload.today,
        cap_multiple=_settings().chart_cap_multiple,
    )
    return _respond(ProjectionResponse(points=points))


@api_bp.post("/goals/summary")
def summary() -> Any:
    """Overall progress across several goals."""
    payload = SummaryRequest.model_validate(_payload())
    tolerance = _settings().status_tolerance_ratio
    evaluated = [
        evaluate_goal(entry.goal, entry.contributions, today=payload.today, tolerance_ratio=tolerance)
        for entry in payload.goals
    ]
    return _respond(SummaryResponse(summary=portfolio_summary(evaluated), goals=evaluated))
