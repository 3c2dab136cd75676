"""
Scoring router.

POST /scores          — score one hour for a condition profile
POST /scores/windows  — best time ranges in an hourly forecast
"""
from __future__ import annotations

from fastapi import APIRouter

from skywatch.core.config import settings
from skywatch.core.errors import ForecastTooLargeError, UnorderedForecastError
from skywatch.schemas.common import ErrorResponse
from skywatch.schemas.conditions import (
    ScoreRequest,
    ScoreResponse,
    WindowListResponse,
    WindowRequest,
    WindowResponse,
)
from skywatch.services.profiles import get_profile
from skywatch.services.samples import HourlySample
from skywatch.services.scoring import hour_summary, score
from skywatch.services.windows import find_windows

router = APIRouter(prefix="/scores", tags=["scores"])


@router.post(
    "",
    response_model=ScoreResponse,
    summary="Score one hour of conditions",
    responses={422: {"model": ErrorResponse, "description": "Malformed request body."}},
)
def score_hour(body: ScoreRequest):
    """
    Weighted multi-factor score (0–100) with rating, per-factor penalties,
    up to four reasons and a recommendation.

    Missing or malformed metrics fall back to neutral defaults.
    """
    sample = HourlySample.from_mapping(body.metrics)
    comfort = (body.comfort_range.min, body.comfort_range.max) if body.comfort_range else None
    result = score(sample, body.profile, comfort_range=comfort)
    return ScoreResponse.model_validate(result).model_copy(update={"summary": hour_summary(sample)})


@router.post(
    "/windows",
    response_model=WindowListResponse,
    summary="Find the best time windows in an hourly forecast",
    responses={
        422: {
            "model": ErrorResponse,
            "description": "FORECAST_TOO_LARGE, FORECAST_NOT_ORDERED or VALIDATION_ERROR.",
        },
    },
)
def score_windows(body: WindowRequest):
    """
    Runs of consecutive hours scoring at least `min_score`, ranked by peak
    score (earlier window wins ties). Windows shorter than
    `min_duration_minutes` are dropped; a window may run off the end of
    the forecast.
    """
    if len(body.samples) > settings.MAX_FORECAST_HOURS:
        raise ForecastTooLargeError(settings.MAX_FORECAST_HOURS, len(body.samples))

    samples = [HourlySample.from_mapping(s) for s in body.samples]
    previous = None
    for index, sample in enumerate(samples):
        if sample.time is None:
            continue
        if previous is not None and sample.time <= previous:
            raise UnorderedForecastError(index)
        previous = sample.time

    profile = get_profile(body.profile)
    windows = find_windows(
        samples,
        profile.key,
        min_score=settings.WINDOW_MIN_SCORE if body.min_score is None else body.min_score,
        min_duration_minutes=(
            settings.WINDOW_MIN_DURATION_MINUTES
            if body.min_duration_minutes is None
            else body.min_duration_minutes
        ),
        max_windows=settings.WINDOW_MAX_WINDOWS if body.max_windows is None else body.max_windows,
    )
    items = [WindowResponse.model_validate(w) for w in windows]
    return WindowListResponse(
        profile=profile.key,
        hours_scored=len(samples),
        best_window=items[0] if items else None,
        windows=items,
    )
