"""
Scoring, window and profile schemas.

POST /scores          ScoreRequest   → ScoreResponse
POST /scores/windows  WindowRequest  → WindowListResponse
GET  /profiles                       → ProfileListResponse

Metrics are accepted as free-form dicts: the scorer substitutes defaults
for missing or malformed values instead of rejecting the request.
"""
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator


class ComfortRangeIn(BaseModel):
    min: float = Field(description="Lower bound of the comfortable temperature range, °C.")
    max: float = Field(description="Upper bound of the comfortable temperature range, °C.")

    @model_validator(mode="after")
    def check_order(self) -> "ComfortRangeIn":
        if self.min > self.max:
            raise ValueError("comfort_range.min must not exceed comfort_range.max")
        return self


class ScoreRequest(BaseModel):
    profile: str = Field(
        default="default",
        description="Condition profile key, e.g. hiking, aurora, swimming-beginner. Unknown keys use default.",
        examples=["hiking"],
    )
    metrics: dict[str, Any] = Field(
        description="One hour of normalized metrics (snake_case or camelCase keys).",
        examples=[{"temperature": 15, "precip_probability": 0, "wind_speed": 10}],
    )
    comfort_range: Optional[ComfortRangeIn] = Field(
        default=None,
        description="Overrides the profile's comfort temperature range.",
    )


class FactorScoreResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    value: float
    penalty: int = Field(description="Points deducted by this factor.")
    max_penalty: int = Field(description="The factor's weight.")
    fraction: float


class AuroraAlertResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    should_send: bool
    priority: Optional[str] = Field(default=None, description='"high" | "normal" when should_send.')
    message: str = ""


class ScoreResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    score: int = Field(ge=0, le=100)
    rating: str = Field(description='"Excellent" | "Good" | "Fair" | "Poor" | "Not Recommended"')
    profile: str
    activity: str
    factors: dict[str, FactorScoreResponse]
    reasons: list[str]
    recommendation: str
    risk_flags: list[str] = Field(description="Compound-risk rules that fired.")
    compound_penalty: int
    caps_applied: list[str] = Field(description="Safety caps that limited the score.")
    warnings: list[str] = Field(default_factory=list)
    safety_level: str = Field(default="safe", description='"safe" | "caution" | "dangerous"')
    swim_duration: Optional[str] = Field(default=None, description="Swimming profiles only.")
    alert: Optional[AuroraAlertResponse] = Field(default=None, description="Aurora profile only.")
    summary: str = Field(default="", description='Short hour summary, e.g. "15°C, 40% rain".')
    timestamp: datetime


class WindowRequest(BaseModel):
    profile: str = Field(default="default", examples=["cycling"])
    samples: list[dict[str, Any]] = Field(
        description="Hourly samples in time order. Each may carry a `time` field.",
    )
    min_score: Optional[int] = Field(default=None, ge=0, le=100)
    min_duration_minutes: Optional[int] = Field(default=None, ge=0)
    max_windows: Optional[int] = Field(default=None, ge=0)


class WindowResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    start: Optional[datetime]
    end: Optional[datetime]
    duration_minutes: int
    peak_score: int
    avg_score: int
    peak_time: Optional[datetime] = Field(description="First hour that reached the peak score.")
    sample_count: int
    avg_temperature: Optional[int] = Field(default=None, description="°C, over hours that reported one.")


class WindowListResponse(BaseModel):
    profile: str
    hours_scored: int
    best_window: Optional[WindowResponse]
    windows: list[WindowResponse]


class FactorInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    label: str
    weight: int


class ProfileResponse(BaseModel):
    key: str
    name: str
    family: str
    comfort_range: Optional[ComfortRangeIn]
    tolerances: dict[str, str] = Field(description='Tolerance labels: "high" | "normal" | "low".')
    factors: list[FactorInfo]


class ProfileListResponse(BaseModel):
    total: int
    items: list[ProfileResponse]
