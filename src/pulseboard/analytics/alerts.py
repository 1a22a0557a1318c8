"""Threshold-based alerts and injury-risk ranking.

Acute biometric flags compare the latest day against a trailing baseline
that excludes it.  The flags are independent and feed, together with open
injuries and recent negative staff notes, into an additive risk score used to
rank a squad.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Iterable, Mapping, Sequence

from pulseboard.analytics.window import field_values, mean, night_minutes, sort_by_date, trailing
from pulseboard.records import (
    RTP_CONTACT,
    RTP_MODIFIED,
    RTP_NON_CONTACT,
    RTP_OFFFIELD,
    AthleteNote,
    DailyBiometricRecord,
    InjuryRecord,
    parse_datetime,
)


# ---------------------------------------------------------------------------
# Acute biometric flags
# ---------------------------------------------------------------------------

HRV_DROP_PCT = 0.15  # >= 15% below baseline
RHR_DELTA_BPM = 5.0  # >= +5 bpm above baseline
LOAD_SPIKE_PCT = 0.30  # >= 30% above baseline
SLEEP_MIN_HOURS = 6.0  # < 6 h, absolute
BASELINE_DAYS = 7


@dataclass
class BiometricFlags:
    """Independent acute flags for the latest day."""

    hrv_drop: bool = False
    rhr_rise: bool = False
    load_spike: bool = False
    low_sleep: bool = False
    date: str | None = None
    latest: dict = field(default_factory=dict)
    baselines: dict = field(default_factory=dict)

    @property
    def any(self) -> bool:
        return self.hrv_drop or self.rhr_rise or self.load_spike or self.low_sleep

    def labels(self) -> list[str]:
        out = []
        if self.hrv_drop:
            out.append("HRV drop")
        if self.rhr_rise:
            out.append("RHR rise")
        if self.load_spike:
            out.append("Load spike")
        if self.low_sleep:
            out.append("Low sleep")
        return out

    def __repr__(self) -> str:
        return f"BiometricFlags({', '.join(self.labels()) or 'none'})"


def biometric_flags(
    history: Sequence[DailyBiometricRecord],
    hrv_drop_pct: float = HRV_DROP_PCT,
    rhr_delta_bpm: float = RHR_DELTA_BPM,
    load_spike_pct: float = LOAD_SPIKE_PCT,
    sleep_min_hours: float = SLEEP_MIN_HOURS,
    baseline_days: int = BASELINE_DAYS,
) -> BiometricFlags:
    """Raise acute flags for the latest record against its trailing baseline.

    Every baseline-relative flag needs a strictly positive baseline and a
    reading for the latest day, so missing data never fires a flag.
    """
    if len(history) == 0:
        return BiometricFlags()

    latest = sort_by_date(history)[-1]
    baseline = trailing(history, baseline_days, exclude_latest=True)

    hrv_base = mean(field_values(baseline, "hrv_night"))
    rhr_base = mean(field_values(baseline, "resting_hr"))
    load_base = mean(field_values(baseline, "training_load_pct"))
    sleep_base = mean(field_values(baseline, "sleep_duration_h"))

    hrv = latest.value("hrv_night")
    rhr = latest.value("resting_hr")
    load = latest.value("training_load_pct")
    sleep = latest.value("sleep_duration_h")

    hrv_drop = (
        hrv_base > 0
        and latest.hrv_night is not None
        and (hrv_base - hrv) / hrv_base >= hrv_drop_pct
    )
    rhr_rise = (
        rhr_base > 0
        and latest.resting_hr is not None
        and rhr - rhr_base >= rhr_delta_bpm
    )
    load_spike = (
        load_base > 0
        and latest.training_load_pct is not None
        and (load - load_base) / load_base >= load_spike_pct
    )
    low_sleep = 0 < sleep < sleep_min_hours

    return BiometricFlags(
        hrv_drop=hrv_drop,
        rhr_rise=rhr_rise,
        load_spike=load_spike,
        low_sleep=low_sleep,
        date=latest.date.isoformat(),
        latest={"hrv": hrv, "rhr": rhr, "load": load, "sleep": sleep},
        baselines={
            "hrv_mean": round(hrv_base, 1),
            "rhr_mean": round(rhr_base, 1),
            "load_mean": round(load_base, 1),
            "sleep_mean": round(sleep_base, 2),
        },
    )


# ---------------------------------------------------------------------------
# Risk score
# ---------------------------------------------------------------------------


@dataclass
class RiskWeights:
    """Points added per contributing factor."""

    head_impact: int = 40
    severity: dict = field(
        default_factory=lambda: {"Severe": 40, "Moderate": 20, "Minor": 10}
    )
    rtp_stage: dict = field(
        default_factory=lambda: {
            RTP_OFFFIELD: 30,
            RTP_MODIFIED: 20,
            RTP_NON_CONTACT: 10,
            RTP_CONTACT: 5,
        }
    )
    negative_note: int = 10
    negative_note_cap: int = 20
    hrv_drop: int = 15
    rhr_rise: int = 10
    load_spike: int = 15
    low_sleep: int = 10


DEFAULT_WEIGHTS = RiskWeights()


def risk_score(
    injuries: Iterable[InjuryRecord],
    flags: BiometricFlags,
    negative_notes: int = 0,
    weights: RiskWeights = DEFAULT_WEIGHTS,
) -> int:
    """Additive, unbounded risk score.  Only open injuries count."""
    open_injuries = [i for i in injuries if i.is_open]
    score = 0

    if any(i.is_head_impact for i in open_injuries):
        score += weights.head_impact
    for inj in open_injuries:
        score += weights.severity.get(inj.severity, 0)
        score += weights.rtp_stage.get(inj.rtp_stage, 0)

    score += min(weights.negative_note_cap, negative_notes * weights.negative_note)

    if flags.hrv_drop:
        score += weights.hrv_drop
    if flags.rhr_rise:
        score += weights.rhr_rise
    if flags.load_spike:
        score += weights.load_spike
    if flags.low_sleep:
        score += weights.low_sleep
    return score


def risk_reasons(
    injuries: Iterable[InjuryRecord],
    flags: BiometricFlags,
    negative_notes: int = 0,
) -> list[str]:
    """Human-readable factors behind a risk score."""
    open_injuries = [i for i in injuries if i.is_open]
    reasons: list[str] = []

    if any(i.is_head_impact for i in open_injuries):
        reasons.append("HIA/Concussion")
    severities = {i.severity for i in open_injuries if i.severity}
    for sev in ("Severe", "Moderate", "Minor"):
        if sev in severities:
            reasons.append(f"{sev} injury")
            break
    stages = list(dict.fromkeys(i.rtp_stage for i in open_injuries if i.rtp_stage))
    if stages:
        reasons.append(f"RTP: {', '.join(stages)}")
    if negative_notes > 0:
        reasons.append(f"Negative notes: {negative_notes}")
    reasons.extend(flags.labels())
    return reasons


NOTES_WINDOW_HOURS = 48.0


def recent_negative_notes(
    notes: Iterable[AthleteNote],
    as_of: datetime | None = None,
    window_hours: float = NOTES_WINDOW_HOURS,
) -> list[AthleteNote]:
    """Negative notes created within *window_hours* before *as_of*.

    Naive timestamps, on either side, are read as UTC.
    """
    now = parse_datetime(as_of) or datetime.now(timezone.utc)
    cutoff = now - timedelta(hours=window_hours)
    recent = []
    for n in notes:
        created = parse_datetime(n.created_at)
        if n.is_negative and created is not None and cutoff <= created <= now:
            recent.append(n)
    return recent


@dataclass
class RiskEntry:
    athlete_id: str
    score: int
    reasons: list[str]

    def __repr__(self) -> str:
        return f"RiskEntry({self.athlete_id}: {self.score})"


def rank_athletes(
    biometrics: Mapping[str, Sequence[DailyBiometricRecord]],
    injuries: Mapping[str, Sequence[InjuryRecord]],
    negative_notes: Mapping[str, int],
    top_n: int = 5,
    weights: RiskWeights = DEFAULT_WEIGHTS,
    **flag_kwargs,
) -> list[RiskEntry]:
    """Score every athlete, drop zero scores, return the top *top_n*.

    Args:
        biometrics: athlete id -> daily records.
        injuries: athlete id -> injury records (closed ones are ignored).
        negative_notes: athlete id -> count of recent negative notes.
        top_n: Size of the returned slice.
        weights: Risk weights.
        **flag_kwargs: Threshold overrides passed to :func:`biometric_flags`.
    """
    athlete_ids = set(biometrics) | set(injuries) | set(negative_notes)
    entries: list[RiskEntry] = []
    for athlete_id in athlete_ids:
        flags = biometric_flags(biometrics.get(athlete_id, []), **flag_kwargs)
        inj = injuries.get(athlete_id, [])
        neg = negative_notes.get(athlete_id, 0)
        score = risk_score(inj, flags, neg, weights)
        if score <= 0:
            continue
        entries.append(RiskEntry(athlete_id, score, risk_reasons(inj, flags, neg)))

    # Highest first; id breaks ties so output is stable
    entries.sort(key=lambda e: (-e.score, e.athlete_id))
    return entries[:top_n]


# ---------------------------------------------------------------------------
# Day-over-day recovery alert
# ---------------------------------------------------------------------------

DAY_HRV_DROP = 0.15
DAY_RHR_RISE = 0.05
SINGLE_DAY_LOW_HRV = 40.0
SINGLE_DAY_HIGH_RHR = 70.0
TEMP_HIGH_C = 37.0
SPO2_LOW_PCT = 94.0
DEEP_LOW_PCT = 17.0
REM_LOW_PCT = 16.0
RESP_HIGH = 17.0
LATE_ONSET_MIN = 23 * 60 + 30  # 23:30, unwrapped past midnight


@dataclass
class RecoveryAlert:
    """The single most pressing recovery pattern for the latest day."""

    kind: str  # inflammation / circadian / nutrition / airway / green / no_data
    title: str
    cause: str
    recommendation: str

    def __repr__(self) -> str:
        return f"RecoveryAlert({self.kind})"


def _below(value: float | None, threshold: float, inclusive: bool = False) -> bool:
    if value is None:
        return False
    return value <= threshold if inclusive else value < threshold


def _above(value: float | None, threshold: float, inclusive: bool = False) -> bool:
    if value is None:
        return False
    return value >= threshold if inclusive else value > threshold


def recovery_alert(records: Sequence[DailyBiometricRecord]) -> RecoveryAlert:
    """Match the latest day against an ordered rule table; first hit wins."""
    if len(records) == 0:
        return RecoveryAlert(
            kind="no_data",
            title="No Data",
            cause="No recent biometric data available",
            recommendation="Please ensure data collection is active.",
        )

    ordered = sort_by_date(records)
    latest = ordered[-1]

    if len(ordered) >= 2:
        prev = ordered[-2]
        prev_hrv = prev.value("hrv_night")
        prev_rhr = prev.value("resting_hr")
        hrv_drop = (
            prev_hrv > 0 and latest.hrv_night is not None
            and (prev_hrv - latest.hrv_night) / prev_hrv > DAY_HRV_DROP
        )
        rhr_rise = (
            prev_rhr > 0 and latest.resting_hr is not None
            and (latest.resting_hr - prev_rhr) / prev_rhr > DAY_RHR_RISE
        )
    else:
        hrv_drop = _below(latest.hrv_night, SINGLE_DAY_LOW_HRV)
        rhr_rise = _above(latest.resting_hr, SINGLE_DAY_HIGH_RHR)

    temp_high = _above(latest.temp_trend_c, TEMP_HIGH_C, inclusive=True)
    spo2_low = _below(latest.spo2_night, SPO2_LOW_PCT, inclusive=True)
    deep_low = _below(latest.deep_sleep_pct, DEEP_LOW_PCT)
    rem_low = _below(latest.rem_sleep_pct, REM_LOW_PCT)
    resp_high = _above(latest.resp_rate_night, RESP_HIGH, inclusive=True)
    onset = night_minutes(latest.sleep_onset_time)
    sleep_late = onset is not None and onset >= LATE_ONSET_MIN

    if hrv_drop and rhr_rise and temp_high and spo2_low:
        return RecoveryAlert(
            kind="inflammation",
            title="Inflammation/Illness Risk",
            cause=(
                f"HRV down ({latest.hrv_night:g}) + RHR up ({latest.resting_hr:g}) "
                f"+ Temp up ({latest.temp_trend_c:g}) + SpO2 down ({latest.spo2_night:g})"
            ),
            recommendation=(
                "Prioritize rest, hydration, anti-inflammatory nutrition. "
                "Monitor temperature closely."
            ),
        )
    if hrv_drop and deep_low and sleep_late:
        return RecoveryAlert(
            kind="circadian",
            title="Circadian Misalignment",
            cause=f"HRV down + Deep Sleep down ({latest.deep_sleep_pct:g}%) + Late Sleep",
            recommendation=(
                "Advance bedtime by 45min, increase morning light exposure, "
                "avoid screens after 9PM."
            ),
        )
    if hrv_drop and rem_low and not temp_high:
        return RecoveryAlert(
            kind="nutrition",
            title="Possible Nutrient Gap",
            cause=f"HRV down + REM down ({latest.rem_sleep_pct:g}%) with stable temperature",
            recommendation=(
                "Check iron, magnesium, omega-3, B12 status. "
                "Increase nutrient-dense foods."
            ),
        )
    if spo2_low and resp_high:
        return RecoveryAlert(
            kind="airway",
            title="Airway/Respiratory Stress",
            cause=f"SpO2={latest.spo2_night:g}% + Resp Rate={latest.resp_rate_night:g}/min",
            recommendation=(
                "Evaluate sleep environment, nasal breathing. "
                "Consider air quality assessment."
            ),
        )
    return RecoveryAlert(
        kind="green",
        title="Optimal Recovery State",
        cause="All metrics within target ranges",
        recommendation="Maintain current training and recovery protocols.",
    )


# ---------------------------------------------------------------------------
# Training-load trend
# ---------------------------------------------------------------------------

LOAD_TREND_DAYS = 7
LOAD_TREND_BAND = 5.0


@dataclass
class LoadTrend:
    trend: str  # insufficient_data / new / increasing / decreasing / stable
    value: float


def training_load_trend(
    records: Sequence[DailyBiometricRecord],
    days: int = LOAD_TREND_DAYS,
) -> LoadTrend:
    """This week's mean training load against last week's."""
    if len(records) < days:
        return LoadTrend("insufficient_data", 0.0)

    ordered = sort_by_date(records)
    recent = mean(field_values(ordered[-days:], "training_load_pct"))
    if len(ordered) < days * 2:
        return LoadTrend("new", round(recent, 1))

    previous = mean(field_values(ordered[-2 * days:-days], "training_load_pct"))
    change = recent - previous
    if change > LOAD_TREND_BAND:
        return LoadTrend("increasing", round(change, 1))
    if change < -LOAD_TREND_BAND:
        return LoadTrend("decreasing", round(change, 1))
    return LoadTrend("stable", round(change, 1))
