"""Single-day metric extractors.

Each function reads one day's values and returns a scalar or categorical
health indicator.  Nothing here looks across days; see
:mod:`pulseboard.analytics.window` for that.
"""

from __future__ import annotations

from dataclasses import dataclass

from pulseboard.records import DailyBiometricRecord


@dataclass
class MetricStatus:
    """A categorical indicator with a short explanation."""

    status: str
    message: str

    def __repr__(self) -> str:
        return f"MetricStatus({self.status})"


# ---------------------------------------------------------------------------
# Resting HR / HRV status
# ---------------------------------------------------------------------------

RHR_OPTIMAL = 55.0
RHR_GOOD = 65.0
RHR_ELEVATED = 75.0

# Expected nightly HRV (ms) by age band
HRV_EXPECTED_UNDER_25 = 60.0
HRV_EXPECTED_UNDER_35 = 55.0
HRV_EXPECTED_OLDER = 50.0
HRV_BAND_MS = 10.0


def resting_hr_status(resting_hr: float) -> MetricStatus:
    if resting_hr < RHR_OPTIMAL:
        return MetricStatus("Optimal", "Excellent cardiovascular fitness")
    if resting_hr < RHR_GOOD:
        return MetricStatus("Good", "Healthy resting heart rate")
    if resting_hr < RHR_ELEVATED:
        return MetricStatus("Elevated", "Slightly elevated, monitor trends")
    return MetricStatus("High", "Significantly elevated, potential stress/fatigue")


def expected_hrv(age: float) -> float:
    """Age-adjusted expected nightly HRV in ms."""
    if age < 25:
        return HRV_EXPECTED_UNDER_25
    if age < 35:
        return HRV_EXPECTED_UNDER_35
    return HRV_EXPECTED_OLDER


def hrv_status(hrv: float, age: float) -> MetricStatus:
    base = expected_hrv(age)
    if hrv > base + HRV_BAND_MS:
        return MetricStatus("Excellent", "Strong parasympathetic activity")
    if hrv > base:
        return MetricStatus("Good", "Healthy HRV levels")
    if hrv > base - HRV_BAND_MS:
        return MetricStatus("Moderate", "Moderately reduced HRV, monitor trends")
    return MetricStatus("Low", "Reduced HRV, potential stress/fatigue")


# ---------------------------------------------------------------------------
# Traffic-light bands
# ---------------------------------------------------------------------------

# metric -> {colour: (low, high)}, inclusive on both ends.
# Bands are not contiguous: a value between two of them (HRV 44.5, sleep
# 7.45 h) is kept as "unknown" rather than rounded into a neighbour.
STATUS_BANDS: dict[str, dict[str, tuple[float, float]]] = {
    "hrv_night": {"green": (45, 100), "yellow": (35, 44), "red": (0, 34)},
    "resting_hr": {"green": (45, 65), "yellow": (66, 75), "red": (76, 120)},
    "spo2_night": {"green": (96, 100), "yellow": (94, 95), "red": (0, 93)},
    "deep_sleep_pct": {"green": (18, 30), "yellow": (15, 17), "red": (0, 14)},
    "rem_sleep_pct": {"green": (18, 30), "yellow": (15, 17), "red": (0, 14)},
    "sleep_duration_h": {"green": (7.5, 10), "yellow": (6.5, 7.4), "red": (0, 6.4)},
    "temp_trend_c": {"green": (36.0, 36.8), "yellow": (36.9, 36.9), "red": (37.0, 40.0)},
}


def metric_status(value: float, metric: str) -> str:
    """Classify *value* as green/yellow/red, or "unknown" outside every band."""
    bands = STATUS_BANDS.get(metric)
    if bands is None:
        return "unknown"
    for colour in ("green", "yellow", "red"):
        low, high = bands[colour]
        if low <= value <= high:
            return colour
    return "unknown"


# ---------------------------------------------------------------------------
# Per-day readiness and events
# ---------------------------------------------------------------------------


def _band_credit(value: float, full: float, half: float, higher_is_better: bool = True) -> float:
    if higher_is_better:
        return 1.0 if value > full else 0.5 if value > half else 0.0
    return 1.0 if value < full else 0.5 if value < half else 0.0


def daily_readiness(record: DailyBiometricRecord) -> float:
    """0-100 snapshot readiness from HRV, resting HR, sleep and SpO2 bands."""
    credits = [
        _band_credit(record.value("hrv_night"), 45, 35),
        _band_credit(record.value("resting_hr"), 65, 75, higher_is_better=False)
        if record.resting_hr is not None else 0.0,
        _band_credit(record.value("sleep_duration_h"), 7.5, 6.5),
        _band_credit(record.value("spo2_night"), 96, 94),
    ]
    return sum(credits) / len(credits) * 100.0


def recovery_events(record: DailyBiometricRecord) -> list[str]:
    """Notable events for one day.  Absent values never raise an event."""
    events: list[str] = []
    if record.training_load_pct is not None and record.training_load_pct > 90:
        events.append("High Load Session")
    if record.hrv_night is not None and record.hrv_night < 40:
        events.append("Low HRV")
    if record.sleep_duration_h is not None and record.sleep_duration_h < 6:
        events.append("Short Sleep")
    if record.resting_hr is not None and record.resting_hr > 70:
        events.append("Elevated RHR")
    return events
