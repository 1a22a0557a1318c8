"""Strain / stress index scoring.

Combines resting heart rate and nightly HRV, each measured against an
age-adjusted expectation, into a single 0-100 strain index.  Higher resting
HR and lower HRV both push the index up.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from pulseboard.analytics.features import expected_hrv
from pulseboard.analytics.window import field_values, mean, sort_by_date, trailing
from pulseboard.records import DailyBiometricRecord


# ---------------------------------------------------------------------------
# Index definition
# ---------------------------------------------------------------------------

HR_FLOOR = 40.0  # bpm mapped to 0
HR_SPAN = 60.0  # 40-100 bpm range
HRV_CEILING_FACTOR = 1.5  # HRV at 150% of expected maps to 0 strain
W_HR = 0.6
W_HRV = 0.4

# Level cut points
STRESS_LOW_CUTOFF = 30.0
STRESS_HIGH_CUTOFF = 60.0

# Acute/chronic stress load reference values
LOAD_REF_HR = 70.0
LOAD_REF_HRV = 60.0

DEFAULT_AGE = 25


@dataclass
class StressLevel:
    level: str  # Low / Moderate / High
    message: str


@dataclass
class StressLoad:
    """Acute (last N days) vs chronic (N days before that) stress."""

    acute: float
    chronic: float
    balance: float  # chronic - acute; positive = improving


@dataclass
class StressResult:
    """Stress index for the latest day and its change from the day before."""

    index: float
    level: str
    delta: float | None  # None with fewer than 2 days
    has_data: bool
    resting_hr: float
    hrv: float

    def __repr__(self) -> str:
        delta = f"{self.delta:+.1f}" if self.delta is not None else "n/a"
        return (
            f"StressResult(index={self.index:.1f}, "
            f"level={self.level}, delta={delta})"
        )


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def strain_index(resting_hr: float, hrv: float, age: float = DEFAULT_AGE) -> float:
    """Strain index from resting HR and HRV.

    Args:
        resting_hr: Resting heart rate (bpm).
        hrv: Nightly HRV (ms).
        age: Athlete age in years, selects the expected HRV band.

    Returns:
        Index on a 0-100 scale.  Both inputs at 0 yield 0; callers that need
        to tell "no data" from a real reading check the raw values.
    """
    if resting_hr <= 0 and hrv <= 0:
        return 0.0
    norm_hr = _clamp((resting_hr - HR_FLOOR) / HR_SPAN, 0.0, 1.0)
    norm_hrv = _clamp(hrv / (expected_hrv(age) * HRV_CEILING_FACTOR), 0.0, 1.0)
    return (norm_hr * W_HR + (1.0 - norm_hrv) * W_HRV) * 100.0


def stress_level(
    index: float,
    low_cutoff: float = STRESS_LOW_CUTOFF,
    high_cutoff: float = STRESS_HIGH_CUTOFF,
) -> StressLevel:
    if index < low_cutoff:
        return StressLevel("Low", "Low stress levels, good recovery")
    if index < high_cutoff:
        return StressLevel("Moderate", "Moderate stress, monitor recovery")
    return StressLevel("High", "High stress levels, prioritize recovery")


def _record_index(rec: DailyBiometricRecord, age: float) -> float:
    return strain_index(rec.value("resting_hr"), rec.value("hrv_night"), age)


def stress_delta(
    records: Sequence[DailyBiometricRecord],
    age: float = DEFAULT_AGE,
) -> float | None:
    """Latest index minus the previous day's; None with fewer than 2 days."""
    if len(records) < 2:
        return None
    ordered = sort_by_date(records)
    return _record_index(ordered[-1], age) - _record_index(ordered[-2], age)


def high_stress_days(
    records: Sequence[DailyBiometricRecord],
    age: float = DEFAULT_AGE,
    threshold: float = STRESS_HIGH_CUTOFF,
) -> int:
    """Days with both HR and HRV present whose index reaches *threshold*."""
    count = 0
    for rec in records:
        if rec.value("resting_hr") <= 0 or rec.value("hrv_night") <= 0:
            continue
        if _record_index(rec, age) >= threshold:
            count += 1
    return count


def _load(records: Sequence[DailyBiometricRecord]) -> float:
    hr = mean(field_values(records, "resting_hr"))
    hrv = mean(field_values(records, "hrv_night"))
    return (hr / LOAD_REF_HR) * 50.0 + (1.0 - hrv / LOAD_REF_HRV) * 50.0


def daily_stress_load(
    records: Sequence[DailyBiometricRecord],
    days: int = 7,
) -> StressLoad:
    """Compare the last *days* against the *days* before them.

    Needs ``2 * days`` records; otherwise every field is 0.
    """
    if len(records) < days * 2:
        return StressLoad(acute=0.0, chronic=0.0, balance=0.0)
    ordered = sort_by_date(records)
    acute = _load(ordered[-days:])
    chronic = _load(ordered[-2 * days:-days])
    return StressLoad(
        acute=round(acute, 1),
        chronic=round(chronic, 1),
        balance=round(chronic - acute, 1),
    )


def score_stress(
    records: Sequence[DailyBiometricRecord],
    age: float = DEFAULT_AGE,
    low_cutoff: float = STRESS_LOW_CUTOFF,
    high_cutoff: float = STRESS_HIGH_CUTOFF,
) -> StressResult:
    """Stress index, level and day-over-day delta for the latest record."""
    latest = trailing(records, 1)
    if not latest:
        return StressResult(
            index=0.0, level="No data", delta=None,
            has_data=False, resting_hr=0.0, hrv=0.0,
        )

    rec = latest[0]
    rhr = rec.value("resting_hr")
    hrv = rec.value("hrv_night")
    has_data = rhr > 0 and hrv > 0
    index = strain_index(rhr, hrv, age)
    level = stress_level(index, low_cutoff, high_cutoff).level if has_data else "No data"
    delta = stress_delta(records, age)

    return StressResult(
        index=round(index, 1),
        level=level,
        delta=round(delta, 1) if delta is not None else None,
        has_data=has_data,
        resting_hr=rhr,
        hrv=hrv,
    )
