"""Athlete summary aggregator.

Pulls results from every analytics module into a single AthleteSummary that
is JSON-serializable.  Summaries are rebuilt on every call and never stored.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, asdict
from datetime import date
from typing import Any

from pulseboard.analytics.alerts import BiometricFlags, LoadTrend, RecoveryAlert
from pulseboard.analytics.availability import Availability
from pulseboard.analytics.circadian import CircadianResult
from pulseboard.analytics.recovery import ReadinessResult
from pulseboard.analytics.strain import StressResult
from pulseboard.records import DerivedScore


def _readiness_level(score: float) -> str:
    if score >= 70:
        return "Ready"
    if score >= 50:
        return "Caution"
    return "Recover"


def _circadian_level(score: float) -> str:
    if score >= 80:
        return "Aligned"
    if score >= 60:
        return "Drifting"
    return "Disrupted"


@dataclass
class AthleteSummary:
    """One athlete's derived metrics as of their latest record."""

    athlete_id: str | None
    date: str | None  # ISO date of the latest record
    days: int = 0  # records in the analysis window

    stress: DerivedScore = field(default_factory=lambda: DerivedScore(0.0, "No data"))
    stress_delta: float | None = None
    readiness: DerivedScore = field(default_factory=lambda: DerivedScore(50.0, "Caution"))
    circadian: DerivedScore = field(default_factory=lambda: DerivedScore(0.0, "Disrupted"))
    chronotype: str = "Intermediate"

    flags: dict[str, bool] = field(default_factory=dict)
    baselines: dict[str, float] = field(default_factory=dict)
    risk_score: int = 0
    risk_reasons: list[str] = field(default_factory=list)
    availability: str = Availability.HEALTHY.value

    alert: dict[str, str] = field(default_factory=dict)
    load_trend: dict[str, Any] = field(default_factory=dict)
    disruptions: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dict (JSON-friendly)."""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    def __repr__(self) -> str:
        return (
            f"AthleteSummary({self.athlete_id} @ {self.date}: "
            f"stress={self.stress.value:.0f}, "
            f"readiness={self.readiness.value:.0f}, "
            f"circadian={self.circadian.value:.0f}, "
            f"risk={self.risk_score}, {self.availability})"
        )


def build_athlete_summary(
    athlete_id: str | None,
    day: date | str | None,
    days: int = 0,
    stress: StressResult | None = None,
    readiness: ReadinessResult | None = None,
    circadian: CircadianResult | None = None,
    flags: BiometricFlags | None = None,
    risk_score: int = 0,
    risk_reasons: list[str] | None = None,
    availability: Availability = Availability.HEALTHY,
    alert: RecoveryAlert | None = None,
    load_trend: LoadTrend | None = None,
) -> AthleteSummary:
    """Build an athlete summary from individual analytics results.

    Args:
        athlete_id: Athlete the results belong to.
        day: Date of the latest record.
        days: Number of records analysed.
        stress: Stress index result.
        readiness: Recovery readiness result.
        circadian: Circadian analysis result.
        flags: Acute biometric flags.
        risk_score: Additive risk score.
        risk_reasons: Factors behind the risk score.
        availability: Availability state from open injuries.
        alert: Rule-based recovery alert.
        load_trend: Training-load trend.

    Returns:
        A populated AthleteSummary.
    """
    date_str = day.isoformat() if isinstance(day, date) else day

    summary = AthleteSummary(
        athlete_id=athlete_id,
        date=date_str,
        days=days,
        risk_score=risk_score,
        risk_reasons=list(risk_reasons or []),
        availability=availability.value,
    )

    if stress is not None:
        factors = []
        if stress.has_data:
            factors = [f"RHR {stress.resting_hr:g} bpm", f"HRV {stress.hrv:g} ms"]
        summary.stress = DerivedScore(stress.index, stress.level, factors)
        summary.stress_delta = stress.delta

    if readiness is not None:
        factors = [f"{k}: {v:g}" for k, v in readiness.breakdown.items()]
        summary.readiness = DerivedScore(
            readiness.score, _readiness_level(readiness.score), factors
        )

    if circadian is not None:
        factors = [f"{k}: -{v:g}" for k, v in circadian.penalties.items() if v > 0]
        summary.circadian = DerivedScore(
            circadian.score, _circadian_level(circadian.score), factors
        )
        summary.chronotype = circadian.chronotype.value
        summary.disruptions = list(circadian.disruptions)
        summary.recommendations = list(circadian.recommendations)

    if flags is not None:
        summary.flags = {
            "hrv_drop": flags.hrv_drop,
            "rhr_rise": flags.rhr_rise,
            "load_spike": flags.load_spike,
            "low_sleep": flags.low_sleep,
        }
        summary.baselines = dict(flags.baselines)

    if alert is not None:
        summary.alert = {
            "kind": alert.kind,
            "title": alert.title,
            "cause": alert.cause,
            "recommendation": alert.recommendation,
        }
        if alert.kind not in ("green", "no_data"):
            summary.recommendations.insert(0, alert.recommendation)

    if load_trend is not None:
        summary.load_trend = {"trend": load_trend.trend, "value": load_trend.value}

    return summary
