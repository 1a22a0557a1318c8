"""Recovery readiness scoring.

Readiness blends four equally weighted 0-100 components:

    sleep   -- 7-day sleep debt against an 8 h nightly target
    hrv     -- short-term HRV trend (this week's mean vs last week's)
    rhr     -- latest resting heart rate
    load    -- latest training-load percentage

More sleep debt, a higher resting HR and a heavier training load each lower
readiness; a rising HRV trend raises it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np
from scipy import stats

from pulseboard.analytics.window import field_values, mean, sort_by_date, trailing
from pulseboard.records import DailyBiometricRecord


@dataclass
class ReadinessResult:
    """Readiness score and its inputs."""

    score: float  # 0-100
    sleep_debt_h: float
    hrv_trend_ms: float  # recent mean minus previous mean
    hrv_slope: float  # ms/day over the recent window
    resting_hr: float
    training_load: float
    breakdown: dict  # individual component scores

    def __repr__(self) -> str:
        return (
            f"ReadinessResult(score={self.score:.0f}, "
            f"debt={self.sleep_debt_h:.1f}h, "
            f"hrv_trend={self.hrv_trend_ms:+.1f}ms, "
            f"rhr={self.resting_hr:.0f}bpm)"
        )


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

SLEEP_TARGET_H = 8.0
TREND_DAYS = 7


def sleep_debt(
    records: Sequence[DailyBiometricRecord],
    days: int = TREND_DAYS,
    target_h: float = SLEEP_TARGET_H,
) -> float:
    """Hours owed below *target_h* over the last *days*, floored at 0 per night.

    Nights without a recorded duration are skipped rather than counted as
    zero hours slept.
    """
    durations = field_values(trailing(records, days), "sleep_duration_h")
    return float(sum(max(0.0, target_h - d) for d in durations))


def hrv_trend(records: Sequence[DailyBiometricRecord], days: int = TREND_DAYS) -> float:
    """Mean HRV of the last *days* minus the mean of the *days* before.

    Returns 0 with fewer than *days* records or no earlier window.
    """
    if len(records) < days:
        return 0.0
    ordered = sort_by_date(records)
    recent = field_values(ordered[-days:], "hrv_night")
    previous = field_values(ordered[-2 * days:-days], "hrv_night")
    if not recent or not previous:
        return 0.0
    return mean(recent) - mean(previous)


def hrv_slope(records: Sequence[DailyBiometricRecord], days: int = TREND_DAYS) -> float:
    """Least-squares HRV slope (ms/day) over the last *days* records.

    Returns 0 with fewer than 3 HRV readings.
    """
    window = [r for r in trailing(records, days) if r.hrv_night is not None]
    if len(window) < 3:
        return 0.0
    x = np.asarray([r.date.toordinal() for r in window], dtype=np.float64)
    y = np.asarray([r.hrv_night for r in window], dtype=np.float64)
    return float(stats.linregress(x, y).slope)


# ---------------------------------------------------------------------------
# Composite scoring
# ---------------------------------------------------------------------------

# Weights for the composite readiness score
W_SLEEP = 0.25
W_HRV = 0.25
W_RHR = 0.25
W_LOAD = 0.25

MIN_RECORDS = 3
NEUTRAL_SCORE = 50.0

SLEEP_DEBT_PENALTY = 10.0  # points per hour owed
HRV_TREND_GAIN = 2.0  # points per ms of trend, around 50
RHR_IDEAL = 50.0  # bpm; each bpm above costs RHR_PENALTY
RHR_PENALTY = 2.0
LOAD_CEILING = 85.0  # % above which load starts to cost
LOAD_PENALTY = 2.0


def _clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, value))


def readiness_components(
    sleep_debt_h: float,
    hrv_trend_ms: float,
    resting_hr: float,
    training_load: float,
) -> dict[str, float]:
    return {
        "sleep_component": _clamp(100.0 - max(0.0, sleep_debt_h) * SLEEP_DEBT_PENALTY),
        "hrv_component": _clamp(50.0 + hrv_trend_ms * HRV_TREND_GAIN),
        "rhr_component": _clamp(100.0 - (resting_hr - RHR_IDEAL) * RHR_PENALTY),
        "load_component": _clamp(
            100.0 - max(0.0, training_load - LOAD_CEILING) * LOAD_PENALTY
        ),
    }


def recovery_readiness(
    n_records: int,
    sleep_debt_h: float,
    hrv_trend_ms: float,
    resting_hr: float,
    training_load: float,
) -> float:
    """Composite readiness percentage.

    Args:
        n_records: Number of daily records behind the inputs.  Fewer than
            3 returns the neutral score of 50.
        sleep_debt_h: Hours of sleep owed over the last week.
        hrv_trend_ms: HRV trend from :func:`hrv_trend`.
        resting_hr: Latest resting heart rate.
        training_load: Latest training-load percentage.

    Returns:
        Readiness in [0, 100].
    """
    if n_records < MIN_RECORDS:
        return NEUTRAL_SCORE
    parts = readiness_components(sleep_debt_h, hrv_trend_ms, resting_hr, training_load)
    raw = (
        W_SLEEP * parts["sleep_component"]
        + W_HRV * parts["hrv_component"]
        + W_RHR * parts["rhr_component"]
        + W_LOAD * parts["load_component"]
    )
    return _clamp(raw)


def score_readiness(
    records: Sequence[DailyBiometricRecord],
    days: int = TREND_DAYS,
    sleep_target_h: float = SLEEP_TARGET_H,
) -> ReadinessResult:
    """Readiness for the latest day in *records*."""
    latest = trailing(records, 1)
    rhr = latest[0].value("resting_hr") if latest else 0.0
    load = latest[0].value("training_load_pct") if latest else 0.0

    debt = sleep_debt(records, days, sleep_target_h)
    trend = hrv_trend(records, days)
    score = recovery_readiness(len(records), debt, trend, rhr, load)
    parts = readiness_components(debt, trend, rhr, load)

    return ReadinessResult(
        score=round(score, 1),
        sleep_debt_h=round(debt, 2),
        hrv_trend_ms=round(trend, 1),
        hrv_slope=round(hrv_slope(records, days), 2),
        resting_hr=rhr,
        training_load=load,
        breakdown={k: round(v, 1) for k, v in parts.items()},
    )
