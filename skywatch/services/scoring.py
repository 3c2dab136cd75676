"""
Weighted multi-factor scorer.

Turns one HourlySample into a 0–100 score for a named condition profile.

Algorithm
---------
  1. every factor starts from 100 and owns `weight` points of it
  2. the factor's penalty shape maps its metric to a fraction in [0, 1]
  3. non-zero fractions are divided by the profile's tolerance multiplier
     (tolerance > 1 forgives, < 1 punishes) and capped at 1
  4. points lost = round_half_up(weight * fraction)
  5. two or more compound-risk rules firing costs 5 points per rule
  6. clamp to [0, 100], then apply the profile's safety caps

Safety output
-------------
  warnings        advisory texts, then warnings of the caps that fired
  safety_level    "safe" with no warnings, "dangerous" if any warning is,
                  "caution" otherwise
  swim_duration   swimming profiles only
  alert           aurora profile only: should a notification go out

The scorer is pure: it never raises on missing or malformed metrics (they
fall back to neutral defaults) and identical inputs give identical output.
The only time-dependent field, `timestamp`, is injectable via `now`.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Union

from skywatch.services.profiles import (
    COMPOUND_PENALTY_PER_FACTOR,
    DANGEROUS,
    AuroraAlert,
    ComfortRange,
    ConditionProfile,
    FactorWeight,
    aurora_alert_for,
    get_profile,
    round_half_up,
    swim_duration,
)
from skywatch.services.samples import HourlySample

MAX_REASONS = 4

# (minimum score, rating)
RATING_BANDS = (
    (80, "Excellent"),
    (65, "Good"),
    (50, "Fair"),
    (35, "Poor"),
)
NOT_RECOMMENDED = "Not Recommended"


@dataclass(frozen=True)
class FactorScore:
    value: float
    penalty: int
    max_penalty: int
    fraction: float


@dataclass(frozen=True)
class ScoreResult:
    score: int
    rating: str
    profile: str
    activity: str
    factors: dict[str, FactorScore]
    reasons: tuple[str, ...]
    recommendation: str
    risk_flags: tuple[str, ...]
    compound_penalty: int
    caps_applied: tuple[str, ...]
    timestamp: datetime
    warnings: tuple[str, ...] = ()
    safety_level: str = "safe"
    swim_duration: Optional[str] = None
    alert: Optional[AuroraAlert] = None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def score(
    metrics: Union[HourlySample, Mapping[str, Any]],
    profile_name: Optional[str] = "default",
    *,
    comfort_range: Optional[ComfortRange] = None,
    now: Optional[datetime] = None,
) -> ScoreResult:
    sample = metrics if isinstance(metrics, HourlySample) else HourlySample.from_mapping(metrics or {})
    profile = get_profile(profile_name)
    comfort = _comfort_range(profile, comfort_range)

    total = 100
    factor_scores: dict[str, FactorScore] = {}
    for factor in profile.factors:
        factor_score = _score_factor(profile, factor, sample, comfort)
        factor_scores[factor.id] = factor_score
        total -= factor_score.penalty

    risk_flags = tuple(rule.name for rule in profile.risk_rules if rule.applies(sample, comfort))
    compound_penalty = 0
    if len(risk_flags) >= 2:
        compound_penalty = len(risk_flags) * COMPOUND_PENALTY_PER_FACTOR
        total -= compound_penalty

    warnings = []
    levels = []
    for advisory in profile.advisories:
        if advisory.applies(sample):
            warnings.append(advisory.text(sample))
            levels.append(advisory.level)

    total = max(0, min(100, total))
    caps_applied = []
    for cap in profile.caps:
        if cap.applies(sample):
            caps_applied.append(cap.name)
            total = min(total, cap.limit)
            if cap.warning:
                warnings.append(cap.warning)
                levels.append(cap.level)

    rating = rating_for(total)
    return ScoreResult(
        score=total,
        rating=rating,
        profile=profile.key,
        activity=profile.name,
        factors=factor_scores,
        reasons=_reasons(profile, factor_scores, sample, comfort),
        recommendation=_recommendation(profile, rating, factor_scores),
        risk_flags=risk_flags,
        compound_penalty=compound_penalty,
        caps_applied=tuple(caps_applied),
        timestamp=now or datetime.now(timezone.utc),
        warnings=tuple(warnings),
        safety_level=safety_level(levels),
        swim_duration=(
            swim_duration(sample, profile.recommended_duration)
            if profile.recommended_duration else None
        ),
        alert=aurora_alert_for(sample) if profile.family == "aurora" else None,
    )


def safety_level(levels: list[str]) -> str:
    if not levels:
        return "safe"
    return DANGEROUS if DANGEROUS in levels else "caution"


def rating_for(value: int) -> str:
    for minimum, rating in RATING_BANDS:
        if value >= minimum:
            return rating
    return NOT_RECOMMENDED


def hour_summary(metrics: Union[HourlySample, Mapping[str, Any]]) -> str:
    """Compact one-line description of an hour, e.g. "15°C, 40% rain, 30km/h wind"."""
    sample = metrics if isinstance(metrics, HourlySample) else HourlySample.from_mapping(metrics or {})
    parts = [f"{round_half_up(sample.number('temperature', 15.0))}°C"]
    precip = sample.number("precip_probability", 0.0)
    if precip > 30:
        parts.append(f"{round_half_up(precip)}% rain")
    wind = sample.number("wind_speed", 0.0)
    if wind > 25:
        parts.append(f"{round_half_up(wind)}km/h wind")
    return ", ".join(parts)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _comfort_range(
    profile: ConditionProfile, override: Optional[ComfortRange]
) -> Optional[ComfortRange]:
    if override is None:
        return profile.comfort_range
    low, high = sorted(float(v) for v in override)
    return (low, high)


def _score_factor(
    profile: ConditionProfile,
    factor: FactorWeight,
    sample: HourlySample,
    comfort: Optional[ComfortRange],
) -> FactorScore:
    value = factor.metric(sample)
    fraction = factor.shape.fraction(value, comfort)
    if factor.secondary is not None:
        secondary_metric, table = factor.secondary
        fraction = max(fraction, table.fraction(secondary_metric(sample)))

    # Values inside the safe band stay at exactly zero
    if fraction > 0:
        fraction = min(1.0, fraction / profile.tolerance(factor.tolerance))
    if factor.active is not None and factor.active(sample):
        fraction = max(fraction, factor.active_floor)

    return FactorScore(
        value=value,
        penalty=round_half_up(factor.weight * fraction),
        max_penalty=factor.weight,
        fraction=round(fraction, 4),
    )


def _ranked(profile: ConditionProfile, factor_scores: dict[str, FactorScore]) -> list[FactorWeight]:
    # sorted() is stable: equal penalties keep profile factor order
    return sorted(profile.factors, key=lambda f: factor_scores[f.id].penalty, reverse=True)


def _reasons(
    profile: ConditionProfile,
    factor_scores: dict[str, FactorScore],
    sample: HourlySample,
    comfort: Optional[ComfortRange],
) -> tuple[str, ...]:
    reasons = []
    for factor in _ranked(profile, factor_scores):
        if factor.phrase is None:
            continue
        text = factor.phrase(factor_scores[factor.id].value, sample, comfort)
        if text:
            reasons.append(text)
        if len(reasons) == MAX_REASONS:
            break
    return tuple(reasons)


def _recommendation(
    profile: ConditionProfile, rating: str, factor_scores: dict[str, FactorScore]
) -> str:
    noun = profile.activity_noun
    worst = _ranked(profile, factor_scores)[0]
    worst_score = factor_scores[worst.id]
    advice = worst.advice if worst_score.penalty > 0 else ""

    if rating == "Excellent":
        return f"Excellent conditions for {noun}!"
    if rating == "Good":
        if advice and worst_score.fraction >= 0.3:
            return f"Good conditions for {noun}. {advice}"
        return f"Good conditions for {noun}."
    if rating == "Fair":
        return advice or f"Fair conditions. Possible but not ideal for {noun}."
    if rating == "Poor":
        return f"Conditions are poor. {advice}" if advice else "Conditions are poor. Consider alternatives."
    return f"Not recommended for {noun} right now."
