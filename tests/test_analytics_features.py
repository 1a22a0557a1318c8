"""Tests for pulseboard.analytics.features -- single-day metric extractors."""

from pulseboard.analytics.features import (
    daily_readiness,
    expected_hrv,
    hrv_status,
    metric_status,
    recovery_events,
    resting_hr_status,
)
from tests.conftest import make_record


class TestRestingHRStatus:
    def test_levels(self):
        assert resting_hr_status(50).status == "Optimal"
        assert resting_hr_status(60).status == "Good"
        assert resting_hr_status(70).status == "Elevated"
        assert resting_hr_status(80).status == "High"

    def test_boundaries_fall_upward(self):
        assert resting_hr_status(55).status == "Good"
        assert resting_hr_status(75).status == "High"


class TestHRVStatus:
    def test_expected_by_age(self):
        assert expected_hrv(20) == 60.0
        assert expected_hrv(25) == 55.0
        assert expected_hrv(34) == 55.0
        assert expected_hrv(35) == 50.0

    def test_levels_young(self):
        # base 60 ms under 25
        assert hrv_status(75, 20).status == "Excellent"
        assert hrv_status(65, 20).status == "Good"
        assert hrv_status(55, 20).status == "Moderate"
        assert hrv_status(45, 20).status == "Low"

    def test_same_hrv_better_when_older(self):
        assert hrv_status(56, 20).status == "Moderate"
        assert hrv_status(56, 40).status == "Good"


class TestMetricStatus:
    def test_hrv_bands(self):
        assert metric_status(50, "hrv_night") == "green"
        assert metric_status(40, "hrv_night") == "yellow"
        assert metric_status(20, "hrv_night") == "red"

    def test_inverted_bands(self):
        assert metric_status(60, "resting_hr") == "green"
        assert metric_status(80, "resting_hr") == "red"
        assert metric_status(37.2, "temp_trend_c") == "red"

    def test_unknown_metric(self):
        assert metric_status(10, "steps") == "unknown"

    def test_gap_between_bands(self):
        assert metric_status(44.5, "hrv_night") == "unknown"


class TestDailyReadiness:
    def test_all_green(self):
        rec = make_record(hrv_night=50, resting_hr=60, sleep_duration_h=8, spo2_night=97)
        assert daily_readiness(rec) == 100.0

    def test_half_credit(self):
        rec = make_record(hrv_night=40, resting_hr=70, sleep_duration_h=7, spo2_night=95)
        assert daily_readiness(rec) == 50.0

    def test_absent_values_give_no_credit(self):
        assert daily_readiness(make_record()) == 0.0


class TestRecoveryEvents:
    def test_events(self):
        rec = make_record(training_load_pct=95, hrv_night=30, sleep_duration_h=5, resting_hr=75)
        assert recovery_events(rec) == [
            "High Load Session", "Low HRV", "Short Sleep", "Elevated RHR",
        ]

    def test_absent_values_raise_nothing(self):
        assert recovery_events(make_record()) == []

    def test_normal_day(self):
        rec = make_record(training_load_pct=60, hrv_night=55, sleep_duration_h=8, resting_hr=55)
        assert recovery_events(rec) == []
