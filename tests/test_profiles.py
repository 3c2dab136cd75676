"""
Unit tests for the condition profile catalogue and its load-time validation.
"""
import pytest

from skywatch.core.errors import ProfileConfigError
from skywatch.services.profiles import (
    DEFAULT_PROFILE,
    PROFILES,
    Advisory,
    ConditionProfile,
    FactorWeight,
    RangeComfort,
    ScoreCap,
    ThresholdTable,
    get_profile,
    list_profiles,
    min_kp_for_latitude,
    should_alert,
    tolerance_label,
    validate_profiles,
)


def make_profile(key="test", factors=None, **kwargs):
    if factors is None:
        factors = (
            FactorWeight(
                id="wind", label="wind", weight=50,
                shape=ThresholdTable(((10, 0.0), (20, 0.5))),
                metric=lambda s: s.number("wind_speed", 0.0),
            ),
        )
    return ConditionProfile(
        key=key, name="Test", family="outdoor", activity_noun="testing",
        factors=factors, **kwargs,
    )


class TestCatalogue:
    def test_expected_profiles_present(self):
        assert {
            "default", "hiking", "cycling", "walking", "running", "picnic",
            "aurora", "stargazing", "swimming", "swimming-beginner",
            "swimming-experienced", "swimming-cold-water",
        } <= set(PROFILES)

    def test_weights_never_exceed_100(self):
        for profile in list_profiles():
            assert profile.total_weight <= 100, profile.key

    def test_outdoor_weights(self):
        weights = {f.id: f.weight for f in PROFILES["default"].factors}
        assert weights == {
            "precipitation": 35, "temperature": 25, "wind": 20,
            "feels_like": 10, "uv_index": 5, "visibility": 5,
        }

    def test_aurora_leaves_a_baseline(self):
        assert PROFILES["aurora"].total_weight == 90

    def test_every_profile_validates(self):
        for profile in list_profiles():
            profile.validate()

    def test_hiking_tolerances(self):
        hiking = PROFILES["hiking"]
        assert hiking.comfort_range == (5, 25)
        assert hiking.tolerance("wind") == 1.2
        assert hiking.tolerance("rain") == 0.8
        assert hiking.tolerance("missing") == 1.0

    def test_swimming_cold_water_tolerance_ordering(self):
        beginner = PROFILES["swimming-beginner"].tolerance("cold_water")
        standard = PROFILES["swimming"].tolerance("cold_water")
        experienced = PROFILES["swimming-experienced"].tolerance("cold_water")
        cold_water = PROFILES["swimming-cold-water"].tolerance("cold_water")
        assert beginner < standard < experienced < cold_water


class TestLookup:
    def test_exact(self):
        assert get_profile("cycling").key == "cycling"

    def test_case_insensitive(self):
        assert get_profile("  HiKiNg ").key == "hiking"

    def test_unknown_falls_back_to_default(self):
        assert get_profile("kayaking").key == DEFAULT_PROFILE

    def test_none_falls_back_to_default(self):
        assert get_profile(None).key == DEFAULT_PROFILE


class TestShapes:
    def test_ascending_table(self):
        table = ThresholdTable(((10, 0.0), (20, 0.5)))
        assert table.fraction(5) == 0.0
        assert table.fraction(10) == 0.0
        assert table.fraction(15) == 0.5
        assert table.fraction(25) == 1.0

    def test_descending_table(self):
        table = ThresholdTable(((10000, 0.0), (5000, 0.2)), descending=True)
        assert table.fraction(20000) == 0.0
        assert table.fraction(6000) == 0.2
        assert table.fraction(100) == 1.0

    def test_range_comfort_inside(self):
        shape = RangeComfort(((3, 0.2), (6, 0.4)))
        assert shape.fraction(15, (10, 25)) == 0.0
        assert shape.fraction(10, (10, 25)) == 0.0

    def test_range_comfort_outside_both_sides(self):
        shape = RangeComfort(((3, 0.2), (6, 0.4)))
        assert shape.fraction(8, (10, 25)) == 0.2
        assert shape.fraction(30, (10, 25)) == 0.4
        assert shape.fraction(40, (10, 25)) == 1.0


class TestValidation:
    def test_weights_over_100(self):
        factors = tuple(
            FactorWeight(
                id=f"f{i}", label="f", weight=60,
                shape=ThresholdTable(((1, 0.0),)), metric=lambda s: 0.0,
            )
            for i in range(2)
        )
        with pytest.raises(ProfileConfigError) as exc:
            make_profile(factors=factors).validate()
        assert "120" in exc.value.message

    def test_non_monotonic_boundaries(self):
        factors = (
            FactorWeight(
                id="wind", label="wind", weight=20,
                shape=ThresholdTable(((20, 0.0), (10, 0.5))), metric=lambda s: 0.0,
            ),
        )
        with pytest.raises(ProfileConfigError):
            make_profile(factors=factors).validate()

    def test_decreasing_fractions(self):
        factors = (
            FactorWeight(
                id="wind", label="wind", weight=20,
                shape=ThresholdTable(((10, 0.5), (20, 0.2))), metric=lambda s: 0.0,
            ),
        )
        with pytest.raises(ProfileConfigError):
            make_profile(factors=factors).validate()

    def test_range_comfort_needs_range(self):
        factors = (
            FactorWeight(
                id="temperature", label="temperature", weight=20,
                shape=RangeComfort(((3, 0.2),)), metric=lambda s: 0.0,
            ),
        )
        with pytest.raises(ProfileConfigError):
            make_profile(factors=factors).validate()

    def test_inverted_comfort_range(self):
        with pytest.raises(ProfileConfigError):
            make_profile(comfort_range=(25, 10)).validate()

    def test_non_positive_tolerance(self):
        with pytest.raises(ProfileConfigError) as exc:
            make_profile(tolerances={"wind": 0}).validate()
        assert exc.value.code == "PROFILE_CONFIG_ERROR"
        assert exc.value.details["profile"] == "test"

    def test_duplicate_keys(self):
        with pytest.raises(ProfileConfigError):
            validate_profiles([make_profile("default"), make_profile("default")])

    def test_default_required(self):
        with pytest.raises(ProfileConfigError):
            validate_profiles([make_profile("hiking")])

    def test_valid_catalogue(self):
        catalogue = validate_profiles([make_profile("default"), make_profile("other")])
        assert set(catalogue) == {"default", "other"}


class TestAuroraLatitude:
    @pytest.mark.parametrize("latitude,kp", [
        (70, 1), (66, 1), (63, 2), (59, 3), (56, 4),
        (53.3, 5), (50, 6), (46, 7), (40, 8),
    ])
    def test_min_kp(self, latitude, kp):
        assert min_kp_for_latitude(latitude) == kp

    def test_southern_hemisphere(self):
        assert min_kp_for_latitude(-53.3) == 5


class TestAuroraAlert:
    def test_viewable_at_threshold(self):
        alert = should_alert(5, 5, 50, True)
        assert alert.should_send is True
        assert alert.priority == "normal"
        assert alert.message == "Aurora possible tonight - worth checking the sky"

    def test_two_levels_above_is_high_priority(self):
        alert = should_alert(6.5, 4, 20, True)
        assert alert.priority == "high"
        assert alert.message.startswith("Strong aurora activity")

    @pytest.mark.parametrize("kp,cloud,dark", [
        (4.9, 0, True),     # below requirement
        (5.5, 51, True),    # too cloudy
        (5.5, 0, False),    # not dark
    ])
    def test_not_viewable(self, kp, cloud, dark):
        assert should_alert(kp, 5, cloud, dark).should_send is False

    def test_storm_overrides_sky(self):
        alert = should_alert(7.3, 8, 95, False)
        assert alert.should_send is True
        assert alert.priority == "high"
        assert alert.message == "Rare strong geomagnetic storm (Kp 7.3)! Check for cloud breaks."

    def test_no_alert_has_no_priority(self):
        alert = should_alert(2, 5, 0, True)
        assert alert.priority is None
        assert alert.message == ""


class TestSafetyLevels:
    def test_unknown_cap_level_rejected(self):
        profile = make_profile(caps=(ScoreCap("odd", 50, lambda s: True, warning="x", level="scary"),))
        with pytest.raises(ProfileConfigError):
            profile.validate()

    def test_unknown_advisory_level_rejected(self):
        profile = make_profile(advisories=(Advisory("x", lambda s: True, level="mild"),))
        with pytest.raises(ProfileConfigError):
            profile.validate()

    def test_swimming_profiles_carry_duration(self):
        for profile in list_profiles():
            assert (profile.recommended_duration is not None) == (profile.family == "swimming")


class TestToleranceLabel:
    def test_labels(self):
        assert tolerance_label(1.2) == "high"
        assert tolerance_label(1.0) == "normal"
        assert tolerance_label(0.7) == "low"
