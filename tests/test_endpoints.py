"""
Integration tests for API endpoints using SQLite.
"""
from dataclasses import replace
from datetime import datetime, timedelta, timezone

T0 = datetime(2026, 6, 1, 6, 0, tzinfo=timezone.utc)

COMFORTABLE = {
    "temperature": 15,
    "precip_probability": 0,
    "wind_speed": 10,
    "uv_index": 2,
    "visibility": 10000,
}


def forecast(n, **overrides):
    return [
        dict(COMFORTABLE, time=(T0 + timedelta(hours=i)).isoformat(), **overrides)
        for i in range(n)
    ]


class TestHealth:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"


class TestProfiles:
    def test_list(self, client):
        r = client.get("/profiles")
        assert r.status_code == 200
        body = r.json()
        assert body["total"] == len(body["items"]) == 12
        by_key = {p["key"]: p for p in body["items"]}
        assert by_key["hiking"]["comfort_range"] == {"min": 5, "max": 25}
        assert by_key["hiking"]["tolerances"] == {"wind": "high", "rain": "low", "uv": "low"}
        assert by_key["default"]["tolerances"] == {"wind": "normal", "rain": "normal", "uv": "normal"}
        assert by_key["aurora"]["comfort_range"] is None
        assert by_key["aurora"]["family"] == "aurora"


class TestScores:
    def test_comfortable_hour(self, client):
        r = client.post("/scores", json={"profile": "default", "metrics": COMFORTABLE})
        assert r.status_code == 200
        body = r.json()
        assert body["score"] == 100
        assert body["rating"] == "Excellent"
        assert body["summary"] == "15°C"
        assert body["factors"]["precipitation"]["max_penalty"] == 35

    def test_active_rain(self, client):
        metrics = dict(COMFORTABLE, precip_intensity=3, condition="light rain")
        body = client.post("/scores", json={"metrics": metrics}).json()
        assert body["factors"]["precipitation"]["penalty"] >= 21
        assert body["score"] <= 79

    def test_unknown_profile_falls_back(self, client):
        body = client.post("/scores", json={"profile": "kayaking", "metrics": COMFORTABLE}).json()
        assert body["profile"] == "default"

    def test_comfort_range_override(self, client):
        metrics = dict(COMFORTABLE, temperature=30, feels_like=30)
        body = client.post(
            "/scores", json={"metrics": metrics, "comfort_range": {"min": 20, "max": 32}}
        ).json()
        assert body["factors"]["temperature"]["penalty"] == 0

    def test_inverted_comfort_range_rejected(self, client):
        r = client.post(
            "/scores", json={"metrics": COMFORTABLE, "comfort_range": {"min": 30, "max": 20}}
        )
        assert r.status_code == 422
        assert r.json()["code"] == "VALIDATION_ERROR"

    def test_malformed_metric_values_tolerated(self, client):
        r = client.post("/scores", json={"metrics": {"temperature": "hot", "wind_speed": None}})
        assert r.status_code == 200

    def test_swimming_safety(self, client):
        metrics = {"water_temperature": 20, "temperature": 22, "wind_speed": 5, "wave_height": 2.5}
        body = client.post("/scores", json={"profile": "swimming", "metrics": metrics}).json()
        assert body["safety_level"] == "dangerous"
        assert "Sea conditions dangerous - do not swim" in body["warnings"]
        assert body["swim_duration"] == "15-30 min"
        assert body["alert"] is None

    def test_wetsuit_string_flag(self, client):
        metrics = {"water_temperature": 10, "temperature": 22, "has_wetsuit": "false"}
        body = client.post("/scores", json={"profile": "swimming-beginner", "metrics": metrics}).json()
        assert "water_too_cold" in body["caps_applied"]

    def test_aurora_alert(self, client):
        metrics = {"kp_index": 5.4, "latitude": 53.3, "sun_altitude": -20, "cloud_cover": 10}
        body = client.post("/scores", json={"profile": "aurora", "metrics": metrics}).json()
        assert body["alert"] == {
            "should_send": True,
            "priority": "normal",
            "message": "Aurora possible tonight - worth checking the sky",
        }
        assert body["safety_level"] == "safe"
        assert body["swim_duration"] is None

    def test_missing_metrics_rejected(self, client):
        r = client.post("/scores", json={"profile": "hiking"})
        assert r.status_code == 422


class TestWindows:
    def test_one_long_window(self, client):
        r = client.post("/scores/windows", json={"profile": "walking", "samples": forecast(6)})
        assert r.status_code == 200
        body = r.json()
        assert body["hours_scored"] == 6
        assert len(body["windows"]) == 1
        assert body["windows"][0]["duration_minutes"] == 360
        assert body["windows"][0]["avg_temperature"] == 15
        assert body["best_window"] == body["windows"][0]

    def test_no_window(self, client):
        samples = forecast(4, precip_probability=100, wind_speed=70, condition="storm rain")
        body = client.post("/scores/windows", json={"samples": samples}).json()
        assert body["windows"] == []
        assert body["best_window"] is None

    def test_max_windows_override(self, client):
        samples = forecast(5)
        samples[1].update(precip_probability=100, wind_speed=70, condition="rain")
        samples[3].update(precip_probability=100, wind_speed=70, condition="rain")
        body = client.post("/scores/windows", json={"samples": samples, "max_windows": 2}).json()
        assert len(body["windows"]) == 2

    def test_too_many_samples(self, client):
        r = client.post("/scores/windows", json={"samples": [{}] * 241})
        assert r.status_code == 422
        body = r.json()
        assert body["code"] == "FORECAST_TOO_LARGE"
        assert body["details"]["received"] == 241

    def test_unordered_samples(self, client):
        samples = forecast(3)
        samples[2]["time"] = samples[0]["time"]
        r = client.post("/scores/windows", json={"samples": samples})
        assert r.status_code == 422
        assert r.json()["code"] == "FORECAST_NOT_ORDERED"
        assert r.json()["details"]["index"] == 2


class TestAlerts:
    def test_history(self, client, sql_tracker, clock):
        sql_tracker.record_alert("u1", "aurora", {"kp_index": 5.4, "location": "Dublin"})
        clock.advance(hours=1)
        sql_tracker.record_alert("u1", "tonights-sky", {"score": 81})

        r = client.get("/alerts/u1/history")
        assert r.status_code == 200
        body = r.json()
        assert body["user_id"] == "u1"
        assert body["total"] == 2
        assert body["items"][0]["alert_type"] == "tonights-sky"
        assert body["items"][0]["score"] == 81
        assert body["items"][1]["id"] == "aurora_aurora_kp5"
        assert body["items"][1]["location"] == "Dublin"

    def test_history_filter_and_limit(self, client, sql_tracker, clock):
        for _ in range(3):
            sql_tracker.record_alert("u1", "temperature", {})
            clock.advance(hours=1)
        sql_tracker.record_alert("u1", "aurora", {"kp_index": 6})

        body = client.get("/alerts/u1/history", params={"alert_type": "temperature", "limit": 2}).json()
        assert body["total"] == 2
        assert {i["alert_type"] for i in body["items"]} == {"temperature"}

    def test_history_with_numeric_severity(self, client, sql_tracker):
        sql_tracker.record_alert("u1", "weather-warning", {"type": "wind", "severity": 3, "score": "high"})

        r = client.get("/alerts/u1/history")
        assert r.status_code == 200
        item = r.json()["items"][0]
        assert item["severity"] == "3"
        assert item["score"] is None
        assert item["details"]["severity"] == 3

    def test_history_unknown_user(self, client):
        body = client.get("/alerts/nobody/history").json()
        assert body["items"] == []

    def test_purge(self, client, sql_tracker, sql_store, clock):
        sql_tracker.record_alert("u1", "aurora", {"kp_index": 5})
        sql_tracker.record_alert("u1", "daily-forecast", {})
        old = sql_store.get("u1", "aurora_aurora_kp5")
        sql_store.upsert_replace(replace(old, sent_at=clock.now - timedelta(days=45)))

        r = client.post("/alerts/purge", json={"retention_days": 30})
        assert r.status_code == 200
        assert r.json() == {"deleted": 1, "retention_days": 30}
        assert [i["alert_type"] for i in client.get("/alerts/u1/history").json()["items"]] == ["daily-forecast"]

    def test_purge_default_retention(self, client):
        r = client.post("/alerts/purge")
        assert r.status_code == 200
        assert r.json()["retention_days"] == 30
