"""
Condition profiles — named parameter sets for the weighted scorer.

A profile is a tuple of factors plus the knobs that customize them for one
activity or phenomenon (comfort temperature range, tolerance multipliers,
compound-risk rules, safety caps). Everything here is data; the scoring
arithmetic lives in skywatch.services.scoring.

Penalty shapes
--------------
  ThresholdTable            ascending "badness" scan: first step with
                            value <= boundary wins, 1.0 if none match
  ThresholdTable(descending=True)
                            visibility style: badness grows as the value
                            falls; first step with value >= boundary wins
  RangeComfort              0 inside the comfort range, graduated step
                            function of the distance outside it

Families
--------
  outdoor     default, hiking, cycling, walking, running, picnic
  aurora      aurora
  stargazing  stargazing
  swimming    swimming, swimming-beginner, swimming-experienced,
              swimming-cold-water

Every profile is validated when this module is imported (weights sum,
table monotonicity, ranges, tolerances). A bad catalogue fails at startup
with ProfileConfigError, never in the middle of a scoring pass.

Unknown names fall back to the "default" profile.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Iterable, Mapping, Optional, Union

from skywatch.core.errors import ProfileConfigError
from skywatch.services.samples import HourlySample

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "default"

Step = tuple[float, float]
ComfortRange = tuple[float, float]
Metric = Callable[[HourlySample], float]
Phrase = Callable[[float, HourlySample, Optional[ComfortRange]], Optional[str]]


def round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# ---------------------------------------------------------------------------
# Penalty shapes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ThresholdTable:
    steps: tuple[Step, ...]
    descending: bool = False

    def fraction(self, value: float, comfort_range: Optional[ComfortRange] = None) -> float:
        for boundary, fraction in self.steps:
            within = value >= boundary if self.descending else value <= boundary
            if within:
                return fraction
        return 1.0

    def problems(self) -> list[str]:
        if not self.steps:
            return ["threshold table has no steps"]
        found = []
        boundaries = [b for b, _ in self.steps]
        fractions = [f for _, f in self.steps]
        pairs = list(zip(boundaries, boundaries[1:]))
        if self.descending and any(a <= b for a, b in pairs):
            found.append(f"boundaries must strictly decrease: {boundaries}")
        if not self.descending and any(a >= b for a, b in pairs):
            found.append(f"boundaries must strictly increase: {boundaries}")
        if any(a > b for a, b in zip(fractions, fractions[1:])):
            found.append(f"penalty fractions must not decrease: {fractions}")
        if any(not 0.0 <= f <= 1.0 for f in fractions):
            found.append(f"penalty fractions must lie in [0, 1]: {fractions}")
        return found


@dataclass(frozen=True)
class RangeComfort:
    """Steps are (max distance outside the range, penalty fraction)."""
    steps: tuple[Step, ...]

    def fraction(self, value: float, comfort_range: Optional[ComfortRange] = None) -> float:
        if comfort_range is None:
            return 0.0
        low, high = comfort_range
        if low <= value <= high:
            return 0.0
        distance = low - value if value < low else value - high
        for max_distance, fraction in self.steps:
            if distance <= max_distance:
                return fraction
        return 1.0

    def problems(self) -> list[str]:
        return ThresholdTable(self.steps).problems()


PenaltyShape = Union[ThresholdTable, RangeComfort]


# ---------------------------------------------------------------------------
# Profile building blocks
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FactorWeight:
    """
    One scoring dimension.

    secondary:    optional (metric, table) pair whose fraction is combined
                  with the primary one by max() — e.g. precipitation
                  probability vs. measured intensity.
    active:       predicate for "it is happening right now"; when true the
                  fraction is floored at active_floor after tolerance.
    """
    id: str
    label: str
    weight: int
    shape: PenaltyShape
    metric: Metric
    tolerance: Optional[str] = None
    secondary: Optional[tuple[Metric, ThresholdTable]] = None
    active: Optional[Callable[[HourlySample], bool]] = None
    active_floor: float = 0.0
    phrase: Optional[Phrase] = None
    advice: str = ""


@dataclass(frozen=True)
class RiskRule:
    """Fixed boolean "this factor is bad" rule for the compound-risk step."""
    name: str
    applies: Callable[[HourlySample, Optional[ComfortRange]], bool]


CAUTION = "caution"
DANGEROUS = "dangerous"
SAFETY_LEVELS = (CAUTION, DANGEROUS)


@dataclass(frozen=True)
class ScoreCap:
    """
    Safety gate: when `applies`, the final score cannot exceed `limit`.

    A cap with a warning also reports it, at `level`, in the score's
    safety output. Caps without one only limit the score.
    """
    name: str
    limit: int
    applies: Callable[[HourlySample], bool]
    warning: str = ""
    level: str = CAUTION


@dataclass(frozen=True)
class Advisory:
    """Safety warning that does not touch the score."""
    message: Union[str, Callable[[HourlySample], str]]
    applies: Callable[[HourlySample], bool]
    level: str = CAUTION

    def text(self, sample: HourlySample) -> str:
        return self.message if isinstance(self.message, str) else self.message(sample)


@dataclass(frozen=True)
class ConditionProfile:
    key: str
    name: str
    family: str
    activity_noun: str
    factors: tuple[FactorWeight, ...]
    comfort_range: Optional[ComfortRange] = None
    tolerances: Mapping[str, float] = field(default_factory=dict)
    risk_rules: tuple[RiskRule, ...] = ()
    caps: tuple[ScoreCap, ...] = ()
    advisories: tuple[Advisory, ...] = ()
    recommended_duration: Optional[str] = None

    @property
    def total_weight(self) -> int:
        return sum(f.weight for f in self.factors)

    def tolerance(self, key: Optional[str]) -> float:
        if key is None:
            return 1.0
        return self.tolerances.get(key, 1.0)

    def validate(self) -> None:
        """Raise ProfileConfigError on the first problem found."""
        def fail(problem: str) -> None:
            raise ProfileConfigError(self.key, problem)

        if not self.factors:
            fail("no factors defined")
        ids = [f.id for f in self.factors]
        if len(set(ids)) != len(ids):
            fail(f"duplicate factor ids: {ids}")
        for factor in self.factors:
            if factor.weight <= 0:
                fail(f"factor '{factor.id}' has non-positive weight {factor.weight}")
            for problem in factor.shape.problems():
                fail(f"factor '{factor.id}': {problem}")
            if factor.secondary is not None:
                for problem in factor.secondary[1].problems():
                    fail(f"factor '{factor.id}' secondary table: {problem}")
            if not 0.0 <= factor.active_floor <= 1.0:
                fail(f"factor '{factor.id}' active floor outside [0, 1]")
            if isinstance(factor.shape, RangeComfort) and self.comfort_range is None:
                fail(f"factor '{factor.id}' needs a comfort range")
        if self.total_weight > 100:
            fail(f"factor weights sum to {self.total_weight}, more than 100")
        if self.comfort_range is not None and self.comfort_range[0] > self.comfort_range[1]:
            fail(f"comfort range {self.comfort_range} has min > max")
        for key, multiplier in self.tolerances.items():
            if not multiplier > 0 or math.isinf(multiplier):
                fail(f"tolerance '{key}' must be a positive number, got {multiplier}")
        for cap in self.caps:
            if not 0 <= cap.limit <= 100:
                fail(f"cap '{cap.name}' limit {cap.limit} outside [0, 100]")
            if cap.level not in SAFETY_LEVELS:
                fail(f"cap '{cap.name}' has unknown safety level {cap.level!r}")
        for advisory in self.advisories:
            if advisory.level not in SAFETY_LEVELS:
                fail(f"advisory has unknown safety level {advisory.level!r}")


def tolerance_label(multiplier: float) -> str:
    if multiplier > 1:
        return "high"
    if multiplier < 1:
        return "low"
    return "normal"


# ---------------------------------------------------------------------------
# Shared tables
# ---------------------------------------------------------------------------

PRECIP_PROBABILITY = ThresholdTable((
    (0, 0.0),        # no rain
    (10, 0.2),       # very light chance
    (30, 0.5),       # light rain possible
    (50, 0.7),       # moderate chance
    (70, 0.85),      # likely
    (100, 1.0),
))

PRECIP_INTENSITY = ThresholdTable((   # mm/h
    (0, 0.0),
    (0.5, 0.3),      # drizzle
    (2.5, 0.6),      # light rain
    (7.5, 0.85),     # moderate rain
))

ACTIVE_PRECIP_FLOOR = 0.7

OUTDOOR_WIND = ThresholdTable((       # km/h
    (10, 0.0),
    (20, 0.2),
    (30, 0.4),
    (40, 0.65),
    (50, 0.85),
    (100, 1.0),
))

UV_INDEX = ThresholdTable((
    (2, 0.0),
    (5, 0.1),
    (7, 0.3),
    (10, 0.6),
    (15, 1.0),
))

VISIBILITY = ThresholdTable((         # metres
    (10000, 0.0),
    (5000, 0.2),
    (2000, 0.5),
    (1000, 0.75),
    (0, 1.0),
), descending=True)

TEMPERATURE_DISTANCE = RangeComfort((  # °C outside the comfort range
    (3, 0.2),
    (6, 0.4),
    (10, 0.6),
    (15, 0.8),
))

FEELS_LIKE_GAP = ThresholdTable((      # |apparent - actual| °C
    (2, 0.0),
    (5, 0.3),
    (8, 0.6),
    (math.inf, 0.9),
))

CLOUD_COVER = ThresholdTable((         # %
    (10, 0.0),
    (25, 0.3),
    (50, 0.6),
    (75, 0.85),
    (100, 1.0),
))

# Compound-risk boundaries (outdoor)
COLD_MARGIN = 5.0
HIGH_WIND = 40.0
COMPOUND_PENALTY_PER_FACTOR = 5


# ---------------------------------------------------------------------------
# Outdoor family
# ---------------------------------------------------------------------------

def _temperature(s: HourlySample) -> float:
    return s.number("temperature", 15.0)


def _feels_like_gap(s: HourlySample) -> float:
    actual = _temperature(s)
    return abs(s.number("feels_like", actual) - actual)


def _precip_phrase(value: float, s: HourlySample, _r: Optional[ComfortRange]) -> str:
    chance = round_half_up(value)
    if s.is_precipitating:
        if s.condition and s.condition_text != "clear":
            return f"Precipitation now ({s.condition_text})"
        return f"Raining now ({s.number('precip_intensity', 0):g} mm/h)"
    if value <= 10:
        return "Dry conditions expected"
    if value <= 30:
        return f"Low rain chance ({chance}%)"
    if value <= 60:
        return f"Rain possible ({chance}% chance)"
    return f"Rain likely ({chance}%)"


def _temperature_phrase(value: float, s: HourlySample, r: Optional[ComfortRange]) -> str:
    degrees = round_half_up(value)
    low, high = r if r is not None else (value, value)
    if low <= value <= high:
        return f"Comfortable temperature ({degrees}°C)"
    if value < low:
        return f"Cool ({degrees}°C) - dress warmly"
    return f"Warm ({degrees}°C) - stay hydrated"


def _wind_phrase(value: float, s: HourlySample, _r: Optional[ComfortRange]) -> str:
    speed = round_half_up(value)
    if value <= 15:
        return "Light winds"
    if value <= 30:
        return f"Breezy ({speed} km/h)"
    if value <= 45:
        return f"Windy ({speed} km/h)"
    return f"Very windy ({speed} km/h) - caution advised"


def _feels_like_phrase(value: float, s: HourlySample, _r: Optional[ComfortRange]) -> Optional[str]:
    if value <= 5:
        return None
    actual = _temperature(s)
    apparent = s.number("feels_like", actual)
    if apparent < actual:
        return f"Feels colder ({round_half_up(apparent)}°C) due to wind chill"
    return f"Feels warmer ({round_half_up(apparent)}°C) due to humidity"


def _uv_phrase(value: float, s: HourlySample, _r: Optional[ComfortRange]) -> Optional[str]:
    if value >= 6:
        return f"High UV ({value:g}) - sun protection needed"
    return None


def _visibility_phrase(value: float, s: HourlySample, _r: Optional[ComfortRange]) -> Optional[str]:
    if value < 2000:
        return "Poor visibility"
    return None


def _too_cold(s: HourlySample, r: Optional[ComfortRange]) -> bool:
    return r is not None and _temperature(s) < r[0] - COLD_MARGIN


OUTDOOR_FACTORS = (
    FactorWeight(
        id="precipitation", label="rain", weight=35,
        shape=PRECIP_PROBABILITY,
        metric=lambda s: s.number("precip_probability", 0.0),
        tolerance="rain",
        secondary=(lambda s: s.number("precip_intensity", 0.0), PRECIP_INTENSITY),
        active=lambda s: s.is_precipitating,
        active_floor=ACTIVE_PRECIP_FLOOR,
        phrase=_precip_phrase,
        advice="Rain likely - consider rescheduling or bring waterproof gear.",
    ),
    FactorWeight(
        id="temperature", label="temperature", weight=25,
        shape=TEMPERATURE_DISTANCE,
        metric=_temperature,
        phrase=_temperature_phrase,
        advice="Temperature outside comfort zone - dress appropriately.",
    ),
    FactorWeight(
        id="wind", label="wind", weight=20,
        shape=OUTDOOR_WIND,
        metric=lambda s: s.number("wind_speed", 10.0),
        tolerance="wind",
        phrase=_wind_phrase,
        advice="Quite windy - may be unpleasant for extended outdoor time.",
    ),
    FactorWeight(
        id="feels_like", label="feels-like temperature", weight=10,
        shape=FEELS_LIKE_GAP,
        metric=_feels_like_gap,
        phrase=_feels_like_phrase,
        advice="Wind chill or humidity makes it feel very different - layer up.",
    ),
    FactorWeight(
        id="uv_index", label="UV", weight=5,
        shape=UV_INDEX,
        metric=lambda s: s.number("uv_index", 0.0),
        tolerance="uv",
        phrase=_uv_phrase,
        advice="Strong sun - use sun protection and seek shade.",
    ),
    FactorWeight(
        id="visibility", label="visibility", weight=5,
        shape=VISIBILITY,
        metric=lambda s: s.number("visibility", 10000.0),
        phrase=_visibility_phrase,
        advice="Poor visibility - stick to familiar routes.",
    ),
)

OUTDOOR_RISK_RULES = (
    RiskRule("precipitating", lambda s, r: s.is_precipitating),
    RiskRule("too_cold", _too_cold),
    RiskRule("high_wind", lambda s, r: s.number("wind_speed", 10.0) > HIGH_WIND),
)


def _outdoor(
    key: str,
    name: str,
    temp_range: ComfortRange,
    wind: float = 1.0,
    rain: float = 1.0,
    uv_sensitivity: float = 1.0,
    noun: Optional[str] = None,
) -> ConditionProfile:
    return ConditionProfile(
        key=key,
        name=name,
        family="outdoor",
        activity_noun=noun or name.lower(),
        factors=OUTDOOR_FACTORS,
        comfort_range=temp_range,
        tolerances={"wind": wind, "rain": rain, "uv": 1 / uv_sensitivity},
        risk_rules=OUTDOOR_RISK_RULES,
    )


# ---------------------------------------------------------------------------
# Aurora family
# ---------------------------------------------------------------------------

DEFAULT_LATITUDE = 53.3   # Dublin

# Kp needed for a visible aurora, by absolute latitude
_KP_BY_LATITUDE = (
    (66, 1),   # arctic circle
    (62, 2),   # northern Scandinavia
    (58, 3),   # Scotland, southern Norway
    (55, 4),   # northern England, Denmark
    (52, 5),   # Ireland, northern Germany
    (48, 6),   # southern England, northern France
    (45, 7),   # Paris, Munich
)


def min_kp_for_latitude(latitude: float) -> int:
    lat = abs(latitude)
    for min_lat, kp in _KP_BY_LATITUDE:
        if lat >= min_lat:
            return kp
    return 8


STORM_KP = 7               # alert even through cloud
ALERT_MAX_CLOUD_COVER = 50
DARK_SUN_ALTITUDE = -12    # nautical twilight
HIGH_PRIORITY_KP_MARGIN = 2


@dataclass(frozen=True)
class AuroraAlert:
    should_send: bool
    priority: Optional[str] = None
    message: str = ""


def should_alert(kp: float, min_kp_needed: float, cloud_cover: float, is_dark: bool) -> AuroraAlert:
    """
    Whether an aurora notification is worth sending.

    Sends when Kp reaches the latitude requirement under a dark sky with at
    most 50% cloud, or for any storm of Kp 7+ regardless of sky.
    """
    if kp >= min_kp_needed and cloud_cover <= ALERT_MAX_CLOUD_COVER and is_dark:
        if kp >= min_kp_needed + HIGH_PRIORITY_KP_MARGIN:
            return AuroraAlert(True, "high", "Strong aurora activity! Excellent chance of sighting!")
        return AuroraAlert(True, "normal", "Aurora possible tonight - worth checking the sky")
    if kp >= STORM_KP:
        return AuroraAlert(True, "high", f"Rare strong geomagnetic storm (Kp {kp:g})! Check for cloud breaks.")
    return AuroraAlert(False)


def aurora_alert_for(sample: HourlySample) -> AuroraAlert:
    return should_alert(
        _kp(sample),
        _kp_needed(sample),
        _cloud_cover(sample),
        _sun_altitude(sample) < DARK_SUN_ALTITUDE,
    )


def _kp(s: HourlySample) -> float:
    return s.number("kp_index", 0.0)


def _kp_needed(s: HourlySample) -> int:
    return min_kp_for_latitude(s.number("latitude", DEFAULT_LATITUDE))


def _kp_deficit(s: HourlySample) -> float:
    return _kp_needed(s) - _kp(s)


def _sun_altitude(s: HourlySample) -> float:
    return s.number("sun_altitude", -20.0)


KP_DEFICIT = ThresholdTable((
    (-0.3, 0.0),     # comfortably above the latitude requirement
    (0.0, 0.3),      # at threshold - possible but not guaranteed
    (1.0, 0.6),      # just below
    (2.0, 0.85),
))

DARKNESS = ThresholdTable((            # sun altitude, degrees
    (-18, 0.0),      # astronomical night
    (-12, 0.2),      # nautical twilight
    (-6, 0.7),       # civil twilight
    (0, 0.9),        # sun just below horizon
))


def _kp_phrase(value: float, s: HourlySample, _r: Optional[ComfortRange]) -> str:
    kp, needed = _kp(s), _kp_needed(s)
    if kp >= needed + 1:
        return f"Strong aurora activity (Kp {kp:g}) - excellent for your latitude"
    if kp >= needed:
        return f"Kp {kp:g} - aurora possible at your latitude"
    if kp >= needed - 1:
        return f"Kp {kp:g} - slightly below ideal (need Kp {needed}+)"
    return f"Kp {kp:g} too low - need Kp {needed}+ for your latitude"


def _darkness_phrase(value: float, s: HourlySample, _r: Optional[ComfortRange]) -> str:
    if value < -18:
        return "Astronomically dark - ideal for aurora viewing"
    if value < -12:
        return "Dark enough for aurora viewing"
    if value < -6:
        return "Civil twilight - not dark enough yet"
    if value < 0:
        return "Twilight - not dark enough yet"
    return "Too bright - wait for darkness"


def _cloud_phrase(value: float, s: HourlySample, _r: Optional[ComfortRange]) -> str:
    clouds = round_half_up(value)
    if value <= 20:
        return f"Clear skies ({clouds}% clouds)"
    if value <= 50:
        return f"Partly cloudy ({clouds}%) - gaps may allow viewing"
    return f"Cloudy ({clouds}%) - may block the view"


def _cloud_cover(s: HourlySample) -> float:
    return s.number("cloud_cover", 50.0)


# Weights sum to 90: the remaining 10 points ("viewing") are a baseline the
# forecast cannot take away.
AURORA = ConditionProfile(
    key="aurora",
    name="Aurora Viewing",
    family="aurora",
    activity_noun="aurora viewing",
    factors=(
        FactorWeight(
            id="kp_index", label="geomagnetic activity", weight=40,
            shape=KP_DEFICIT, metric=_kp_deficit, phrase=_kp_phrase,
            advice="Geomagnetic activity too low for this latitude.",
        ),
        FactorWeight(
            id="darkness", label="darkness", weight=25,
            shape=DARKNESS, metric=_sun_altitude, phrase=_darkness_phrase,
            advice="Wait for darkness - aurora is only visible at night.",
        ),
        FactorWeight(
            id="cloud_cover", label="cloud cover", weight=25,
            shape=CLOUD_COVER, metric=_cloud_cover, phrase=_cloud_phrase,
            advice="Too cloudy to see aurora even if it's active - wait for clearer skies.",
        ),
    ),
    risk_rules=(
        RiskRule("kp_below_requirement", lambda s, r: _kp_deficit(s) > 0),
        RiskRule("not_dark", lambda s, r: _sun_altitude(s) >= -12),
        RiskRule("overcast", lambda s, r: _cloud_cover(s) > 75),
    ),
    caps=(
        ScoreCap("kp_far_too_low", 30, lambda s: _kp_deficit(s) > 1),
        ScoreCap("daylight", 25, lambda s: _sun_altitude(s) > -6),
    ),
)


# ---------------------------------------------------------------------------
# Stargazing family
# ---------------------------------------------------------------------------

MOON_ILLUMINATION = ThresholdTable((   # 0 (new) .. 1 (full)
    (0.1, 0.0),
    (0.3, 0.2),
    (0.6, 0.5),
    (0.9, 0.8),
))

HUMIDITY_HAZE = ThresholdTable((       # %
    (50, 0.0),
    (60, 0.25),
    (70, 0.5),
    (80, 0.75),
))

TELESCOPE_WIND = ThresholdTable((      # km/h
    (10, 0.0),
    (20, 0.35),
    (30, 0.7),
))


def _moon_phrase(value: float, s: HourlySample, _r: Optional[ComfortRange]) -> str:
    lit = round_half_up(value * 100)
    if value <= 0.1:
        return "Dark moonless sky"
    if value <= 0.6:
        return f"Moon {lit}% illuminated"
    return f"Bright moon ({lit}%) washes out faint stars"


def _humidity_phrase(value: float, s: HourlySample, _r: Optional[ComfortRange]) -> Optional[str]:
    if value > 70:
        return f"Humid ({round_half_up(value)}%) - expect haze"
    return None


STARGAZING = ConditionProfile(
    key="stargazing",
    name="Stargazing",
    family="stargazing",
    activity_noun="stargazing",
    factors=(
        FactorWeight(
            id="cloud_cover", label="cloud cover", weight=40,
            shape=CLOUD_COVER, metric=_cloud_cover, phrase=_cloud_phrase,
            advice="Too cloudy - wait for clearer skies.",
        ),
        FactorWeight(
            id="moon", label="moonlight", weight=25,
            shape=MOON_ILLUMINATION,
            metric=lambda s: s.number("moon_illumination", 0.5),
            phrase=_moon_phrase,
            advice="Bright moon - target planets and the moon itself.",
        ),
        FactorWeight(
            id="humidity", label="humidity", weight=15,
            shape=HUMIDITY_HAZE,
            metric=lambda s: s.number("humidity", 70.0),
            phrase=_humidity_phrase,
            advice="Humid air - expect haze and dew on optics.",
        ),
        FactorWeight(
            id="wind", label="wind", weight=10,
            shape=TELESCOPE_WIND,
            metric=lambda s: s.number("wind_speed", 10.0),
            phrase=lambda v, s, r: f"Windy ({round_half_up(v)} km/h) - unsteady views" if v > 20 else None,
            advice="Windy - shelter telescopes from gusts.",
        ),
        FactorWeight(
            id="visibility", label="visibility", weight=10,
            shape=VISIBILITY,
            metric=lambda s: s.number("visibility", 10000.0),
            phrase=_visibility_phrase,
            advice="Hazy air - only bright objects will show.",
        ),
    ),
    risk_rules=(
        RiskRule("overcast", lambda s, r: _cloud_cover(s) > 75),
        RiskRule("bright_moon", lambda s, r: s.number("moon_illumination", 0.5) > 0.9),
        RiskRule("haze", lambda s, r: s.number("humidity", 70.0) > 85),
    ),
)


# ---------------------------------------------------------------------------
# Swimming family
# ---------------------------------------------------------------------------

WETSUIT_BONUS = 5.0   # °C of effective comfort

WATER_TEMPERATURE = ThresholdTable((   # effective °C
    (20, 0.0),
    (18, 0.15),
    (15, 0.35),
    (12, 0.55),
    (10, 0.75),
    (8, 0.9),
), descending=True)

AIR_TEMPERATURE = ThresholdTable((     # °C
    (20, 0.0),
    (16, 0.2),
    (12, 0.4),
    (8, 0.65),
    (5, 0.85),
), descending=True)

SWIM_WIND = ThresholdTable((           # km/h
    (10, 0.0),
    (15, 0.2),
    (20, 0.4),
    (30, 0.65),
    (40, 0.85),
    (100, 1.0),
))

WAVE_HEIGHT = ThresholdTable((         # metres
    (0.3, 0.0),
    (0.5, 0.15),
    (1.0, 0.35),
    (1.5, 0.6),
    (2.0, 0.85),
    (10, 1.0),
))

SWIM_RAIN = ThresholdTable((           # %
    (10, 0.0),
    (30, 0.2),
    (50, 0.4),
    (70, 0.6),
    (100, 0.8),
))


def _water(s: HourlySample) -> float:
    return s.number("water_temperature", 14.0)


def _effective_water(s: HourlySample) -> float:
    return _water(s) + (WETSUIT_BONUS if s.has_wetsuit else 0.0)


def _waves(s: HourlySample) -> float:
    return s.number("wave_height", 0.5)


def _swim_wind(s: HourlySample) -> float:
    return s.number("wind_speed", 10.0)


def _water_phrase(value: float, s: HourlySample, _r: Optional[ComfortRange]) -> str:
    water = _water(s)
    if water >= 18:
        return f"Comfortable water ({water:g}°C)"
    if water >= 14:
        return f"Cool water ({water:g}°C) - refreshing!"
    if water >= 10:
        return f"Cold water ({water:g}°C) - limit swim time"
    return f"Very cold water ({water:g}°C)"


def _air_phrase(value: float, s: HourlySample, _r: Optional[ComfortRange]) -> str:
    degrees = round_half_up(value)
    if value >= 18:
        return f"Warm air ({degrees}°C) - comfortable exit"
    if value >= 12:
        return f"Cool air ({degrees}°C) - have warm clothes ready"
    return f"Cold air ({degrees}°C) - warm up quickly after"


def _wave_phrase(value: float, s: HourlySample, _r: Optional[ComfortRange]) -> str:
    if value <= 0.3:
        return "Calm sea"
    if value <= 0.7:
        return "Slight waves"
    if value <= 1.2:
        return "Moderate waves - swim with caution"
    return "Rough sea - dangerous conditions"


def swim_duration(sample: HourlySample, recommended: str) -> str:
    """Suggested time in the water; cold water or a cold exit shortens it."""
    water = _water(sample)
    if water < 12:
        return "5-10 min max" if water < 8 else "10-15 min"
    if _swim_wind(sample) > 25 or _temperature(sample) < 10:
        return "10-20 min"
    return recommended


def _swim_advisories(name: str, max_wave_height: float) -> tuple[Advisory, ...]:
    return (
        Advisory("Consider a wetsuit", lambda s: 10 <= _water(s) < 14 and not s.has_wetsuit),
        Advisory("Cold water risk - experienced swimmers only", lambda s: _water(s) < 10),
        Advisory("Wetsuit strongly recommended", lambda s: _water(s) < 10 and not s.has_wetsuit),
        Advisory("Bring warm dry clothes and hot drink", lambda s: _temperature(s) < 12),
        Advisory(
            lambda s: f"Strong wind ({round_half_up(_swim_wind(s))} km/h) - significant wind chill",
            lambda s: _swim_wind(s) > 30,
        ),
        Advisory("Rough sea - dangerous conditions", lambda s: _waves(s) > 1.2, DANGEROUS),
        Advisory(
            f"Waves exceed the safe level for {name.lower()}",
            lambda s: _waves(s) > max_wave_height,
        ),
    )


def _swimming(
    key: str,
    name: str,
    min_water_temp: float,
    max_wave_height: float,
    cold_water_multiplier: float,
    duration: str,
) -> ConditionProfile:
    return ConditionProfile(
        key=key,
        name=name,
        family="swimming",
        activity_noun="swimming",
        factors=(
            FactorWeight(
                id="water_temperature", label="water temperature", weight=35,
                shape=WATER_TEMPERATURE, metric=_effective_water,
                tolerance="cold_water", phrase=_water_phrase,
                advice="Cold water - keep the swim short or wear a wetsuit.",
            ),
            FactorWeight(
                id="air_temperature", label="air temperature", weight=20,
                shape=AIR_TEMPERATURE, metric=_temperature, phrase=_air_phrase,
                advice="Cold air - bring warm dry clothes and a hot drink.",
            ),
            FactorWeight(
                id="wind", label="wind", weight=20,
                shape=SWIM_WIND, metric=_swim_wind,
                phrase=lambda v, s, r: "Calm winds - ideal" if v <= 10 else f"Breezy ({round_half_up(v)} km/h) - wind chill when wet",
                advice="Windy - wind chill is significant when wet.",
            ),
            FactorWeight(
                id="waves", label="sea state", weight=15,
                shape=WAVE_HEIGHT, metric=_waves, phrase=_wave_phrase,
                advice="Rough sea - choose a sheltered spot or postpone.",
            ),
            FactorWeight(
                id="rain", label="rain", weight=10,
                shape=SWIM_RAIN,
                metric=lambda s: s.number("precip_probability", 0.0),
                phrase=lambda v, s, r: "Rain likely - you'll be wet anyway!" if v > 60 else None,
                advice="Rain on the way - plan a dry place to change.",
            ),
        ),
        tolerances={"cold_water": 1 / cold_water_multiplier},
        risk_rules=(
            RiskRule("cold_water", lambda s, r: _effective_water(s) < 12),
            RiskRule("strong_wind", lambda s, r: _swim_wind(s) > 30),
            RiskRule("waves_over_limit", lambda s, r: _waves(s) > max_wave_height),
        ),
        caps=(
            ScoreCap(
                "water_too_cold", 35,
                lambda s: _water(s) < min_water_temp and not s.has_wetsuit,
                warning=f"Water too cold for {name.lower()} without a wetsuit",
            ),
            ScoreCap(
                "dangerous_sea", 20, lambda s: _waves(s) > 2.0,
                warning="Sea conditions dangerous - do not swim", level=DANGEROUS,
            ),
            ScoreCap(
                "extreme_wind", 25, lambda s: _swim_wind(s) > 50,
                warning="Extreme wind - not safe for swimming", level=DANGEROUS,
            ),
        ),
        advisories=_swim_advisories(name, max_wave_height),
        recommended_duration=duration,
    )


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------

def validate_profiles(profiles: Iterable[ConditionProfile]) -> dict[str, ConditionProfile]:
    """Validate every profile and index them by key."""
    catalogue: dict[str, ConditionProfile] = {}
    for profile in profiles:
        if profile.key in catalogue:
            raise ProfileConfigError(profile.key, "duplicate profile key")
        profile.validate()
        catalogue[profile.key] = profile
    if DEFAULT_PROFILE not in catalogue:
        raise ProfileConfigError(DEFAULT_PROFILE, "the default profile is missing")
    return catalogue


PROFILES: dict[str, ConditionProfile] = validate_profiles([
    _outdoor("default", "General Outdoor", (10, 25), noun="outdoor activities"),
    _outdoor("hiking", "Hiking", (5, 25), wind=1.2, rain=0.8, uv_sensitivity=1.5),
    _outdoor("cycling", "Cycling", (8, 28), wind=0.7, rain=0.6, uv_sensitivity=1.2),
    _outdoor("walking", "Walking", (5, 28), wind=1.0, rain=0.9),
    _outdoor("running", "Running", (3, 22), wind=0.9, rain=0.7, uv_sensitivity=1.3),
    _outdoor("picnic", "Picnic", (15, 28), wind=0.7, rain=0.3),
    AURORA,
    STARGAZING,
    _swimming("swimming", "Swimming", 12, 1.0, 1.0, "15-30 min"),
    _swimming("swimming-beginner", "Beginner Swimming", 16, 0.5, 1.5, "10-15 min"),
    _swimming("swimming-experienced", "Experienced Swimming", 8, 1.5, 0.7, "20-45 min"),
    _swimming("swimming-cold-water", "Cold Water Swimming", 4, 1.0, 0.4, "5-20 min"),
])


def get_profile(name: Optional[str]) -> ConditionProfile:
    """Case-insensitive lookup; unknown or empty names get the default profile."""
    key = (name or "").strip().lower()
    profile = PROFILES.get(key)
    if profile is None:
        if key:
            logger.debug("Unknown profile %r, using %r", name, DEFAULT_PROFILE)
        profile = PROFILES[DEFAULT_PROFILE]
    return profile


def list_profiles() -> list[ConditionProfile]:
    return list(PROFILES.values())
