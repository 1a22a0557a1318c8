"""Availability state and squad injury KPIs.

Availability is derived from an athlete's open injuries with a fixed
precedence: anything that rules the athlete out wins over anything that only
restricts training.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Mapping, Sequence

from pulseboard.records import (
    RTP_CONTACT,
    RTP_MODIFIED,
    RTP_NON_CONTACT,
    RTP_OFFFIELD,
    SEVERITIES,
    InjuryRecord,
    normalize_severity,
)


class Availability(str, Enum):
    HEALTHY = "Healthy"
    MODIFIED = "Modified"
    OUT = "Out"


def _rules_out(injury: InjuryRecord) -> bool:
    return (
        injury.is_head_impact
        or injury.rtp_stage == RTP_OFFFIELD
        or injury.severity == "Severe"
    )


def _restricts(injury: InjuryRecord) -> bool:
    return (
        injury.rtp_stage in (RTP_MODIFIED, RTP_NON_CONTACT)
        or injury.severity == "Moderate"
    )


def classify_availability(injuries: Iterable[InjuryRecord]) -> Availability:
    """Availability from open injuries.  No open injuries means Healthy."""
    open_injuries = [i for i in injuries if i.is_open]
    if any(_rules_out(i) for i in open_injuries):
        return Availability.OUT
    if any(_restricts(i) for i in open_injuries):
        return Availability.MODIFIED
    return Availability.HEALTHY


# ---------------------------------------------------------------------------
# KPIs
# ---------------------------------------------------------------------------


@dataclass
class InjuryKPIs:
    """Open-injury counts across a squad."""

    open_injuries: int = 0
    by_severity: dict[str, int] = field(default_factory=dict)
    concussions: int = 0
    concussion_stages: dict[str, int] = field(default_factory=dict)
    rtp_pipeline: dict[str, int] = field(default_factory=dict)
    availability: dict[str, int] = field(default_factory=dict)

    def __repr__(self) -> str:
        return (
            f"InjuryKPIs(open={self.open_injuries}, "
            f"concussions={self.concussions}, "
            f"out={self.availability.get(Availability.OUT.value, 0)})"
        )


def _by_athlete(injuries: Iterable[InjuryRecord]) -> dict[str, list[InjuryRecord]]:
    grouped: dict[str, list[InjuryRecord]] = {}
    for inj in injuries:
        if inj.athlete_id is None:
            continue
        grouped.setdefault(inj.athlete_id, []).append(inj)
    return grouped


def availability_by_athlete(
    injuries: Iterable[InjuryRecord],
    athlete_ids: Iterable[str] = (),
) -> dict[str, Availability]:
    """Availability for every athlete in *athlete_ids* plus any with injuries."""
    grouped = _by_athlete(injuries)
    ids = list(dict.fromkeys([*athlete_ids, *grouped]))
    return {aid: classify_availability(grouped.get(aid, [])) for aid in ids}


def injury_kpis(
    injuries: Sequence[InjuryRecord],
    athlete_ids: Iterable[str] = (),
) -> InjuryKPIs:
    """Squad-level counts of open injuries, concussions and availability.

    Args:
        injuries: All injury records for the squad, open or closed.
        athlete_ids: Every athlete on the squad, so injury-free athletes are
            counted as Healthy.
    """
    open_injuries = [i for i in injuries if i.is_open]

    by_severity = {sev: 0 for sev in SEVERITIES}
    by_severity["Unknown"] = 0
    for inj in open_injuries:
        key = normalize_severity(inj.severity) or "Unknown"
        by_severity[key] += 1

    concussions = [i for i in open_injuries if i.is_concussion]
    stages: dict[str, int] = {}
    for inj in concussions:
        stage = inj.concussion_stage or "Unknown"
        stages[stage] = stages.get(stage, 0) + 1

    pipeline = {s: 0 for s in (RTP_OFFFIELD, RTP_MODIFIED, RTP_NON_CONTACT, RTP_CONTACT)}
    for inj in open_injuries:
        if inj.rtp_stage in pipeline:
            pipeline[inj.rtp_stage] += 1

    totals = availability_counts(availability_by_athlete(injuries, athlete_ids))

    return InjuryKPIs(
        open_injuries=len(open_injuries),
        by_severity=by_severity,
        concussions=len(concussions),
        concussion_stages=stages,
        rtp_pipeline=pipeline,
        availability=totals,
    )


def availability_counts(states: Mapping[str, Availability]) -> dict[str, int]:
    totals = {a.value: 0 for a in Availability}
    for state in states.values():
        totals[state.value] += 1
    return totals
