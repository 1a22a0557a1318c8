"""Analytics pipeline: athlete rows -> AthleteSummary.

Sits between "fetch inputs" and "render".  Each call recomputes everything
from the rows it is given; nothing is carried over between calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Sequence, TypeVar

from pulseboard.analytics.alerts import (
    RiskEntry,
    biometric_flags,
    rank_athletes,
    recent_negative_notes,
    recovery_alert,
    risk_reasons,
    risk_score,
    training_load_trend,
)
from pulseboard.analytics.availability import InjuryKPIs, classify_availability, injury_kpis
from pulseboard.analytics.circadian import analyze_circadian
from pulseboard.analytics.recovery import TREND_DAYS, score_readiness
from pulseboard.analytics.strain import score_stress
from pulseboard.analytics.summary import AthleteSummary, build_athlete_summary
from pulseboard.analytics.window import sort_by_date, trailing
from pulseboard.config import Settings, get_settings
from pulseboard.records import (
    AthleteNote,
    DailyBiometricRecord,
    GeneticMarker,
    InjuryRecord,
)

logger = logging.getLogger(__name__)

WINDOW_DAYS = 30

T = TypeVar("T")


def _flag_kwargs(settings: Settings) -> dict:
    return {
        "hrv_drop_pct": settings.hrv_drop_pct,
        "rhr_delta_bpm": settings.rhr_delta_bpm,
        "load_spike_pct": settings.load_spike_pct,
        "sleep_min_hours": settings.sleep_min_hours,
        "baseline_days": settings.baseline_days,
    }


def group_by_athlete(rows: Iterable[T]) -> dict[str, list[T]]:
    """Bucket records by ``athlete_id``; records without one are dropped."""
    grouped: dict[str, list[T]] = {}
    dropped = 0
    for row in rows:
        athlete_id = getattr(row, "athlete_id", None)
        if athlete_id is None:
            dropped += 1
            continue
        grouped.setdefault(athlete_id, []).append(row)
    if dropped:
        logger.warning("Dropped %d record(s) with no athlete id", dropped)
    return grouped


def run_pipeline(
    biometrics: Sequence[DailyBiometricRecord],
    injuries: Sequence[InjuryRecord] = (),
    notes: Sequence[AthleteNote] = (),
    genetics: Sequence[GeneticMarker] = (),
    age: float | None = None,
    window_days: int = WINDOW_DAYS,
    as_of: datetime | None = None,
    settings: Settings | None = None,
    athlete_id: str | None = None,
) -> AthleteSummary:
    """Run the full analytics pipeline for one athlete.

    Args:
        biometrics: Daily records for the athlete, any order.
        injuries: The athlete's injury records (closed ones are ignored).
        notes: The athlete's staff notes.
        genetics: The athlete's genetic markers.
        age: Athlete age; defaults to ``settings.default_age``.
        window_days: Records considered by the stress, readiness and
            circadian scorers (7 or 30 in the dashboard).
        as_of: Reference time for the negative-notes window (default: now).
        settings: Threshold overrides (default: :func:`get_settings`).
        athlete_id: Id for the summary; defaults to the latest record's
            id, else the first id on the injuries, notes or genetics.

    Returns:
        A populated AthleteSummary.
    """
    s = settings or get_settings()
    age = s.default_age if age is None else age

    history = sort_by_date(biometrics)
    window = trailing(history, window_days)
    latest = history[-1] if history else None
    if athlete_id is None:
        rows = (*reversed(history), *injuries, *notes, *genetics)
        athlete_id = next((row.athlete_id for row in rows if row.athlete_id), None)

    logger.debug(
        "Pipeline for %s: %d records (%d in window), %d injuries, %d notes",
        athlete_id, len(history), len(window), len(injuries), len(notes),
    )

    stress = score_stress(window, age, s.stress_low_cutoff, s.stress_high_cutoff)
    readiness = score_readiness(window, TREND_DAYS, s.sleep_target_h)
    circadian = analyze_circadian(window, genetics)

    flags = biometric_flags(history, **_flag_kwargs(s))
    negative = recent_negative_notes(notes, as_of, s.notes_window_hours)
    score = risk_score(injuries, flags, len(negative))

    if flags.any:
        logger.info("%s: biometric flags %s", athlete_id, ", ".join(flags.labels()))

    return build_athlete_summary(
        athlete_id=athlete_id,
        day=latest.date if latest else None,
        days=len(window),
        stress=stress,
        readiness=readiness,
        circadian=circadian,
        flags=flags,
        risk_score=score,
        risk_reasons=risk_reasons(injuries, flags, len(negative)),
        availability=classify_availability(injuries),
        alert=recovery_alert(window),
        load_trend=training_load_trend(window),
    )


@dataclass
class CohortReport:
    """Summaries for a squad plus its risk ranking and injury KPIs."""

    summaries: dict[str, AthleteSummary] = field(default_factory=dict)
    ranking: list[RiskEntry] = field(default_factory=list)
    kpis: InjuryKPIs = field(default_factory=InjuryKPIs)

    def to_dict(self) -> dict:
        return {
            "summaries": {k: v.to_dict() for k, v in self.summaries.items()},
            "ranking": [
                {"athlete_id": e.athlete_id, "score": e.score, "reasons": e.reasons}
                for e in self.ranking
            ],
            "kpis": {
                "open_injuries": self.kpis.open_injuries,
                "by_severity": self.kpis.by_severity,
                "concussions": self.kpis.concussions,
                "concussion_stages": self.kpis.concussion_stages,
                "rtp_pipeline": self.kpis.rtp_pipeline,
                "availability": self.kpis.availability,
            },
        }


def run_cohort(
    biometrics: Iterable[DailyBiometricRecord],
    injuries: Iterable[InjuryRecord] = (),
    notes: Iterable[AthleteNote] = (),
    genetics: Iterable[GeneticMarker] = (),
    window_days: int = WINDOW_DAYS,
    as_of: datetime | None = None,
    top_n: int | None = None,
    settings: Settings | None = None,
) -> CohortReport:
    """Run :func:`run_pipeline` for every athlete and rank the squad."""
    s = settings or get_settings()
    top_n = s.top_n if top_n is None else top_n

    bio = group_by_athlete(biometrics)
    inj = group_by_athlete(injuries)
    nts = group_by_athlete(notes)
    gen = group_by_athlete(genetics)

    athlete_ids = sorted(set(bio) | set(inj) | set(nts))
    logger.info("Running cohort of %d athlete(s)", len(athlete_ids))

    summaries = {
        aid: run_pipeline(
            bio.get(aid, []),
            injuries=inj.get(aid, []),
            notes=nts.get(aid, []),
            genetics=gen.get(aid, []),
            window_days=window_days,
            as_of=as_of,
            settings=s,
            athlete_id=aid,
        )
        for aid in athlete_ids
    }

    negative_counts = {
        aid: len(recent_negative_notes(nts.get(aid, []), as_of, s.notes_window_hours))
        for aid in athlete_ids
    }
    ranking = rank_athletes(bio, inj, negative_counts, top_n=top_n, **_flag_kwargs(s))
    all_injuries = [i for rows in inj.values() for i in rows]

    return CohortReport(
        summaries=summaries,
        ranking=ranking,
        kpis=injury_kpis(all_injuries, athlete_ids),
    )
