"""
HourlySample — one hour of already-normalized environmental metrics.

Produced by the data fetchers (outside this package) and read-only to the
scoring core. Every metric is optional: the scorer substitutes
profile-neutral defaults through `HourlySample.number()`, so a partially
populated or slightly malformed sample still yields a best-effort score.

Units
-----
  temperature, feels_like, water_temperature  °C
  precip_probability                          0–100 %
  precip_intensity                            mm/h
  wind_speed                                  km/h
  visibility                                  metres
  humidity, cloud_cover                       0–100 %
  moon_illumination                           0–1
  sun_altitude, latitude                      degrees
  wave_height                                 metres
"""
from __future__ import annotations

import math
from dataclasses import dataclass, fields
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

# Wet-weather words in coarse condition text ("light rain", "snow showers" …)
_PRECIP_WORDS = ("rain", "snow", "drizzle", "sleet", "shower", "thunder", "hail")

# camelCase / provider spellings accepted by from_mapping()
_ALIASES = {
    "temp": "temperature",
    "feelsLike": "feels_like",
    "precipProbability": "precip_probability",
    "precipAmount": "precip_intensity",
    "precipIntensity": "precip_intensity",
    "windSpeed": "wind_speed",
    "uvIndex": "uv_index",
    "uvi": "uv_index",
    "weatherCondition": "condition",
    "cloudCover": "cloud_cover",
    "clouds": "cloud_cover",
    "kpIndex": "kp_index",
    "sunAltitude": "sun_altitude",
    "moonIllumination": "moon_illumination",
    "waterTemp": "water_temperature",
    "waveHeight": "wave_height",
    "hasWetsuit": "has_wetsuit",
    "datetime": "time",
}


def to_float(value: Any) -> Optional[float]:
    """Lenient numeric coercion: None for anything that is not a finite number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


_TRUE_WORDS = {"true", "yes", "1"}


def to_flag(value: Any) -> bool:
    """True only for True, 1 and "true"/"yes"/"1" (any case). Anything else is False."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_WORDS
    return False


def to_time(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        parsed = datetime.fromtimestamp(value, tz=timezone.utc)
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class HourlySample:
    time: Optional[datetime] = None
    temperature: Optional[float] = None
    feels_like: Optional[float] = None
    precip_probability: Optional[float] = None
    precip_intensity: Optional[float] = None
    wind_speed: Optional[float] = None
    uv_index: Optional[float] = None
    visibility: Optional[float] = None
    condition: Optional[str] = None
    humidity: Optional[float] = None
    cloud_cover: Optional[float] = None
    kp_index: Optional[float] = None
    latitude: Optional[float] = None
    sun_altitude: Optional[float] = None
    moon_illumination: Optional[float] = None
    water_temperature: Optional[float] = None
    wave_height: Optional[float] = None
    has_wetsuit: bool = False

    # -- accessors ----------------------------------------------------------

    def number(self, name: str, default: float) -> float:
        """Return metric `name` as a float, or `default` when absent/invalid."""
        value = to_float(getattr(self, name, None))
        return default if value is None else value

    @property
    def condition_text(self) -> str:
        return (self.condition or "clear").strip().lower()

    @property
    def is_precipitating(self) -> bool:
        """Actively raining/snowing right now (as opposed to merely likely)."""
        if any(word in self.condition_text for word in _PRECIP_WORDS):
            return True
        return self.number("precip_intensity", 0.0) > 0

    # -- constructors -------------------------------------------------------

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "HourlySample":
        """
        Build a sample from an already-normalized dict.

        Unknown keys are ignored; non-numeric values become None so the
        scorer falls back to defaults instead of raising. When two keys
        name the same metric, the first usable value wins.
        """
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, raw in data.items():
            name = _ALIASES.get(key, key)
            if name not in known or values.get(name) is not None:
                continue
            if name == "time":
                value = to_time(raw)
            elif name == "condition":
                value = None if raw is None else str(raw)
            elif name == "has_wetsuit":
                if raw is None:
                    continue
                value = to_flag(raw)
            else:
                value = to_float(raw)
            if value is not None or name not in values:
                values[name] = value
        return cls(**values)

    @classmethod
    def from_openweather(cls, hour: Mapping[str, Any], **extra: Any) -> "HourlySample":
        """
        Normalize an OpenWeather One Call hourly record.

        pop 0–1 → percent, wind m/s → km/h, rain/snow "1h" → intensity.
        Extra keyword arguments (kp_index, latitude, …) are merged in.
        """
        weather = hour.get("weather") or [{}]
        description = weather[0].get("description") if weather else None
        pop = to_float(hour.get("pop"))
        wind = to_float(hour.get("wind_speed"))
        temp = to_float(hour.get("temp"))
        rain = (hour.get("rain") or {}).get("1h", 0) or 0
        snow = (hour.get("snow") or {}).get("1h", 0) or 0
        data: dict[str, Any] = {
            "time": hour.get("dt"),
            "temperature": temp,
            "feels_like": hour.get("feels_like", temp),
            "precip_probability": pop * 100 if pop is not None else None,
            "precip_intensity": (to_float(rain) or 0) + (to_float(snow) or 0),
            "wind_speed": wind * 3.6 if wind is not None else None,
            "uv_index": hour.get("uvi"),
            "visibility": hour.get("visibility"),
            "condition": description,
            "humidity": hour.get("humidity"),
            "cloud_cover": hour.get("clouds"),
        }
        data.update(extra)
        return cls.from_mapping(data)
