"""
Unit tests for HourlySample normalization.
"""
from datetime import datetime, timezone

import pytest

from skywatch.services.samples import HourlySample


class TestFromMapping:
    def test_aliases(self):
        s = HourlySample.from_mapping({"temp": 12, "windSpeed": "20", "kpIndex": 5.3, "clouds": 40})
        assert s.temperature == 12
        assert s.wind_speed == 20
        assert s.kp_index == 5.3
        assert s.cloud_cover == 40

    def test_snake_case_wins_when_first(self):
        s = HourlySample.from_mapping({"temperature": 10, "temp": 30})
        assert s.temperature == 10

    def test_missing_alias_does_not_mask_later_key(self):
        s = HourlySample.from_mapping({"temp": None, "temperature": 12})
        assert s.temperature == 12
        s = HourlySample.from_mapping({"windSpeed": "calm", "wind_speed": 8})
        assert s.wind_speed == 8

    @pytest.mark.parametrize("raw", [True, 1, "true", "TRUE", "yes", "Yes", "1", " true "])
    def test_wetsuit_truthy(self, raw):
        assert HourlySample.from_mapping({"has_wetsuit": raw}).has_wetsuit is True

    @pytest.mark.parametrize("raw", [False, 0, 2, "false", "False", "no", "0", "maybe", "", [1], None])
    def test_wetsuit_falsy(self, raw):
        assert HourlySample.from_mapping({"hasWetsuit": raw}).has_wetsuit is False

    def test_wetsuit_string_false_keeps_cold_water_cap(self):
        from skywatch.services.scoring import score

        result = score({"water_temperature": 10, "has_wetsuit": "false"}, "swimming-beginner")
        assert "water_too_cold" in result.caps_applied

    def test_unknown_keys_ignored(self):
        s = HourlySample.from_mapping({"mood": "great", "temperature": 5})
        assert s.temperature == 5

    def test_bad_numbers_become_none(self):
        s = HourlySample.from_mapping({"temperature": "n/a", "wind_speed": float("inf")})
        assert s.temperature is None
        assert s.number("temperature", 15.0) == 15.0
        assert s.number("wind_speed", 10.0) == 10.0

    def test_times(self):
        expected = datetime(2026, 3, 14, 21, 0, tzinfo=timezone.utc)
        assert HourlySample.from_mapping({"time": "2026-03-14T21:00:00Z"}).time == expected
        assert HourlySample.from_mapping({"time": expected.timestamp()}).time == expected
        assert HourlySample.from_mapping({"datetime": "2026-03-14T21:00:00"}).time == expected
        assert HourlySample.from_mapping({"time": "yesterday"}).time is None


class TestPrecipitation:
    def test_condition_words(self):
        assert HourlySample(condition="Light Rain").is_precipitating
        assert HourlySample(condition="snow showers").is_precipitating
        assert not HourlySample(condition="overcast clouds").is_precipitating

    def test_intensity(self):
        assert HourlySample(precip_intensity=0.2).is_precipitating
        assert not HourlySample(precip_intensity=0).is_precipitating

    def test_default_is_clear(self):
        assert HourlySample().condition_text == "clear"


class TestFromOpenWeather:
    HOUR = {
        "dt": 1773522000,
        "temp": 11.2,
        "feels_like": 8.9,
        "pop": 0.45,
        "wind_speed": 5.0,
        "uvi": 1.2,
        "visibility": 10000,
        "humidity": 81,
        "clouds": 75,
        "weather": [{"description": "light rain"}],
        "rain": {"1h": 0.6},
    }

    def test_units_converted(self):
        s = HourlySample.from_openweather(self.HOUR)
        assert s.precip_probability == pytest.approx(45)
        assert s.wind_speed == pytest.approx(18)
        assert s.precip_intensity == 0.6
        assert s.condition == "light rain"
        assert s.cloud_cover == 75
        assert s.time == datetime.fromtimestamp(1773522000, tz=timezone.utc)

    def test_extra_fields_merged(self):
        s = HourlySample.from_openweather(self.HOUR, kp_index=6.1, latitude=53.3)
        assert s.kp_index == 6.1
        assert s.latitude == 53.3

    def test_feels_like_defaults_to_temp(self):
        hour = dict(self.HOUR)
        del hour["feels_like"]
        assert HourlySample.from_openweather(hour).feels_like == 11.2

    def test_sparse_record(self):
        s = HourlySample.from_openweather({"temp": 20})
        assert s.temperature == 20
        assert s.precip_probability is None
        assert s.precip_intensity == 0
