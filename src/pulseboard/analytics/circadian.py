"""Circadian rhythm scoring and chronotype classification.

The circadian score starts at 100 and loses points for:

  - inconsistent sleep-onset / wake clock times (std of minute-of-day)
  - average sleep duration below 7 h
  - average deep-sleep share below 20%
  - average nightly HRV below 50 ms

Chronotype combines a signed genetic score over named circadian genes with
behavioural rules on observed sleep timing.  When the behavioural rules
reach a verdict they override the genetic score outright; the two are not
blended.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Sequence

from pulseboard.analytics.window import (
    clock_minutes,
    field_values,
    mean,
    night_minutes,
    pstdev,
)
from pulseboard.records import DailyBiometricRecord, GeneticMarker, genotype_map


class Chronotype(str, Enum):
    """Natural sleep-wake timing preference."""

    MORNING = "Morning Type"
    EVENING = "Evening Type"
    INTERMEDIATE = "Intermediate"


@dataclass
class CircadianResult:
    """Circadian analysis for a window of nights."""

    score: float  # 0-100
    chronotype: Chronotype
    genetic_score: float
    disruptions: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    penalties: dict = field(default_factory=dict)

    def __repr__(self) -> str:
        return (
            f"CircadianResult(score={self.score:.0f}, "
            f"{self.chronotype.value}, "
            f"disruptions={len(self.disruptions)})"
        )


# ---------------------------------------------------------------------------
# Score
# ---------------------------------------------------------------------------

CONSISTENCY_DIVISOR = 2.0  # penalty = avg std (min) / 2
CONSISTENCY_CAP = 30.0
SLEEP_TARGET_H = 7.0
SLEEP_PENALTY = 5.0  # per missing hour
DEEP_TARGET_PCT = 20.0
DEEP_PENALTY = 2.0  # per missing percentage point
HRV_TARGET_MS = 50.0
HRV_PENALTY = 0.5  # per missing ms


def _onset_minutes(records: Sequence[DailyBiometricRecord]) -> list[int]:
    return [m for m in (night_minutes(r.sleep_onset_time) for r in records) if m is not None]


def _wake_minutes(records: Sequence[DailyBiometricRecord]) -> list[int]:
    return [m for m in (clock_minutes(r.wake_time) for r in records) if m is not None]


def _sleeping_hrv(records: Sequence[DailyBiometricRecord]) -> list[float]:
    """HRV on nights that actually have sleep and a resting HR."""
    return [
        float(r.hrv_night)
        for r in records
        if r.hrv_night is not None
        and r.value("sleep_duration_h") > 0
        and r.value("resting_hr") > 0
    ]


def _shortfall(values: Sequence[float], target: float) -> float:
    """How far the mean of *values* falls below *target* (0 if no values)."""
    if not values:
        return 0.0
    return max(0.0, target - mean(values))


def circadian_penalties(records: Sequence[DailyBiometricRecord]) -> dict[str, float]:
    """Each penalty component.  Components without data are 0."""
    stds = [pstdev(v) for v in (_onset_minutes(records), _wake_minutes(records)) if v]
    consistency = min(mean(stds) / CONSISTENCY_DIVISOR, CONSISTENCY_CAP) if stds else 0.0

    duration = _shortfall(field_values(records, "sleep_duration_h"), SLEEP_TARGET_H)
    deep = _shortfall(field_values(records, "deep_sleep_pct"), DEEP_TARGET_PCT)
    hrv = _shortfall(_sleeping_hrv(records), HRV_TARGET_MS)

    return {
        "consistency": consistency,
        "duration": duration * SLEEP_PENALTY,
        "deep_sleep": deep * DEEP_PENALTY,
        "hrv": hrv * HRV_PENALTY,
    }


def circadian_score(records: Sequence[DailyBiometricRecord]) -> float:
    """Circadian rhythm score in [0, 100]; 0 for an empty window."""
    if len(records) == 0:
        return 0.0
    score = 100.0 - sum(circadian_penalties(records).values())
    return max(0.0, min(100.0, score))


# ---------------------------------------------------------------------------
# Chronotype
# ---------------------------------------------------------------------------

# Signed contributions: positive = morning preference
GENE_WEIGHTS = {
    "CLOCK": (1.0, -0.5),  # AA vs anything else
    "PER3": (-1.0, 0.5),  # long vs anything else
    "PER2": (0.3, -0.3),  # carries C vs not
    "ARNTL": (0.2, -0.2),  # carries G vs not
}
GENETIC_MORNING = 0.5
GENETIC_EVENING = -0.5

LATE_ONSET_HOUR = 23  # unwrapped; 00:00-03:59 onsets read as 24-27
EARLY_ONSET_HOUR = 21
EARLY_WAKE_HOUR = 7
INTERMEDIATE_ONSET_HOUR = 22


def _gene_matches(gene: str, genotype: str) -> bool:
    if gene == "CLOCK":
        return genotype == "AA"
    if gene == "PER3":
        return genotype == "long"
    if gene == "PER2":
        return "C" in genotype
    if gene == "ARNTL":
        return "G" in genotype
    return False


def genetic_chronotype_score(markers: Iterable[GeneticMarker]) -> float:
    """Signed morningness score from circadian genes (missing genes add 0)."""
    genes = genotype_map(markers)
    score = 0.0
    for gene, (hit, miss) in GENE_WEIGHTS.items():
        if gene in genes:
            score += hit if _gene_matches(gene, genes[gene]) else miss
    return score


def _genetic_chronotype(score: float) -> Chronotype:
    if score > GENETIC_MORNING:
        return Chronotype.MORNING
    if score < GENETIC_EVENING:
        return Chronotype.EVENING
    return Chronotype.INTERMEDIATE


def _behavioural_chronotype(records: Sequence[DailyBiometricRecord]) -> Chronotype | None:
    onset_hours = [m // 60 for m in _onset_minutes(records)]
    if not onset_hours:
        return None
    avg_onset = mean(onset_hours)
    wake_hours = [m // 60 for m in _wake_minutes(records)]

    if avg_onset >= LATE_ONSET_HOUR:
        return Chronotype.EVENING
    if wake_hours and avg_onset <= EARLY_ONSET_HOUR and mean(wake_hours) <= EARLY_WAKE_HOUR:
        return Chronotype.MORNING
    if avg_onset >= INTERMEDIATE_ONSET_HOUR:
        return Chronotype.INTERMEDIATE
    return None


def classify_chronotype(
    markers: Iterable[GeneticMarker],
    records: Sequence[DailyBiometricRecord],
) -> Chronotype:
    """Behavioural timing rules first; the genetic score only breaks silence."""
    behavioural = _behavioural_chronotype(records)
    if behavioural is not None:
        return behavioural
    return _genetic_chronotype(genetic_chronotype_score(markers))


# ---------------------------------------------------------------------------
# Disruptions and recommendations
# ---------------------------------------------------------------------------

IRREGULAR_ONSET_STD_MIN = 60.0
DEPRIVATION_HOURS = 7.0
LOW_DEEP_PCT = 15.0
ELEVATED_NIGHT_HR = 65.0
POOR_NIGHT_HRV = 40.0

IRREGULAR_SCHEDULE = "Irregular Sleep Schedule"
SLEEP_DEPRIVATION = "Chronic Sleep Deprivation"
LOW_DEEP_SLEEP = "Insufficient Deep Sleep"
ELEVATED_HR = "Elevated Nighttime Heart Rate"
POOR_RECOVERY = "Poor Nighttime Recovery"


def circadian_disruptions(records: Sequence[DailyBiometricRecord]) -> list[str]:
    """Named disruption factors.  Needs at least 2 nights."""
    if len(records) < 2:
        return []

    found: list[str] = []
    onsets = _onset_minutes(records)
    if onsets and pstdev(onsets) > IRREGULAR_ONSET_STD_MIN:
        found.append(IRREGULAR_SCHEDULE)

    durations = field_values(records, "sleep_duration_h")
    if durations and mean(durations) < DEPRIVATION_HOURS:
        found.append(SLEEP_DEPRIVATION)

    deep = field_values(records, "deep_sleep_pct")
    if deep and mean(deep) < LOW_DEEP_PCT:
        found.append(LOW_DEEP_SLEEP)

    rhr = field_values(records, "resting_hr")
    if rhr and mean(rhr) > ELEVATED_NIGHT_HR:
        found.append(ELEVATED_HR)

    hrv = _sleeping_hrv(records)
    if hrv and mean(hrv) < POOR_NIGHT_HRV:
        found.append(POOR_RECOVERY)

    return found


CHRONOTYPE_ADVICE = {
    Chronotype.MORNING: [
        "Maintain consistent early bedtime (9-10 PM) and wake time (5-6 AM)",
        "Schedule high-intensity training in the morning when cortisol is naturally higher",
        "Stop caffeine consumption by 2 PM to avoid sleep interference",
    ],
    Chronotype.EVENING: [
        "Allow flexible scheduling but maintain consistent sleep duration",
        "Consider later training sessions when energy levels are higher",
        "Use morning sunlight exposure to help regulate circadian rhythm",
        "Stop caffeine consumption by 4 PM to prevent delayed sleep onset",
    ],
    Chronotype.INTERMEDIATE: [
        "Aim for 10-11 PM bedtime and 6-7 AM wake time as a balanced approach",
        "Monitor energy levels throughout the day to optimize training timing",
        "Stop caffeine consumption by 3 PM for balanced circadian rhythm",
    ],
}

DISRUPTION_ADVICE = {
    IRREGULAR_SCHEDULE: [
        "Establish a consistent sleep schedule, even on weekends",
        "Use alarm clocks for both bedtime and wake time",
    ],
    SLEEP_DEPRIVATION: [
        "Prioritize 7-9 hours of sleep nightly",
        "Consider naps (20-30 minutes) if sleep debt accumulates",
    ],
    LOW_DEEP_SLEEP: [
        "Maintain cooler bedroom temperature (18-20°C)",
        "Avoid alcohol and heavy meals 3 hours before bedtime",
    ],
    ELEVATED_HR: [
        "Incorporate evening relaxation techniques (meditation, light stretching)",
        "Reduce screen time and blue light exposure 1 hour before bed",
    ],
    POOR_RECOVERY: [
        "Reduce late-evening training intensity until nightly HRV recovers",
    ],
}

# gene -> (advice when the marker matches, advice otherwise; None = same)
GENE_ADVICE: dict[str, tuple[str, str | None]] = {
    "CLOCK": (
        "Strong circadian drive (CLOCK AA) - maintain strict sleep consistency",
        "Flexible circadian rhythm - use time-restricted eating (10-hour window)",
    ),
    "PER3": (
        "Evening chronotype (PER3 long) - consider magnesium glycinate for better sleep onset",
        "Morning chronotype (PER3 short) - optimize with morning sunlight exposure",
    ),
    "PER2": (
        "PER2 variant detected - monitor light exposure timing for optimal circadian regulation",
        None,
    ),
    "ARNTL": (
        "BMAL1 (ARNTL) gene influences circadian strength - maintain consistent light/dark cycles",
        None,
    ),
}


def circadian_recommendations(
    chronotype: Chronotype,
    disruptions: Sequence[str],
    markers: Iterable[GeneticMarker],
    records: Sequence[DailyBiometricRecord],
) -> list[str]:
    recs = list(CHRONOTYPE_ADVICE[chronotype])
    for name in disruptions:
        recs.extend(DISRUPTION_ADVICE.get(name, []))

    genes = genotype_map(markers)
    for gene, (hit, miss) in GENE_ADVICE.items():
        if gene in genes:
            matched = _gene_matches(gene, genes[gene])
            recs.append(hit if matched or miss is None else miss)

    onsets = _onset_minutes(records)
    if onsets:
        if mean([m // 60 for m in onsets]) < LATE_ONSET_HOUR:
            recs.append("Early sleep onset detected - stop caffeine 6-8 hours before bedtime")
        else:
            recs.append("Later sleep onset - stop caffeine 4-6 hours before bedtime")

    # Dedupe, keeping order
    return list(dict.fromkeys(recs))


def analyze_circadian(
    records: Sequence[DailyBiometricRecord],
    markers: Sequence[GeneticMarker] = (),
) -> CircadianResult:
    """Score, chronotype, disruptions and advice for a window of nights."""
    chronotype = classify_chronotype(markers, records)
    disruptions = circadian_disruptions(records)
    penalties = circadian_penalties(records) if records else {}
    return CircadianResult(
        score=round(circadian_score(records), 1),
        chronotype=chronotype,
        genetic_score=round(genetic_chronotype_score(markers), 2),
        disruptions=disruptions,
        recommendations=circadian_recommendations(chronotype, disruptions, markers, records),
        penalties={k: round(v, 1) for k, v in penalties.items()},
    )
