"""Tests for pulseboard.analytics.availability -- availability state and KPIs."""

from pulseboard.analytics.availability import (
    availability_by_athlete,
    classify_availability,
    injury_kpis,
    Availability,
)
from tests.conftest import make_injury


class TestClassifyAvailability:
    def test_no_injuries(self):
        assert classify_availability([]) == Availability.HEALTHY

    def test_severe_beats_modified(self):
        injuries = [
            make_injury(severity="Severe"),
            make_injury(severity="Moderate", rtp_stage="modified"),
        ]
        assert classify_availability(injuries) == Availability.OUT

    def test_head_impact_out(self):
        assert classify_availability([make_injury(hia_flag=True)]) == Availability.OUT
        assert classify_availability([make_injury(is_concussion=True)]) == Availability.OUT

    def test_offfield_out(self):
        assert classify_availability([make_injury(rtp_stage="offfield")]) == Availability.OUT

    def test_modified(self):
        assert classify_availability([make_injury(rtp_stage="non-contact")]) == Availability.MODIFIED
        assert classify_availability([make_injury(rtp_stage="modified")]) == Availability.MODIFIED
        assert classify_availability([make_injury(severity="Moderate")]) == Availability.MODIFIED

    def test_minor_contact_healthy(self):
        injury = make_injury(severity="Minor", rtp_stage="contact")
        assert classify_availability([injury]) == Availability.HEALTHY

    def test_closed_injuries_ignored(self):
        injuries = [
            make_injury(severity="Severe", status="Closed"),
            make_injury(hia_flag=True, status="closed"),
        ]
        assert classify_availability(injuries) == Availability.HEALTHY

    def test_lowercase_spellings(self):
        injury = make_injury(severity="severe", rtp_stage="noncontact")
        assert classify_availability([injury]) == Availability.OUT
        assert classify_availability([make_injury(rtp_stage="Off-Field")]) == Availability.OUT
        assert classify_availability([make_injury(severity="MODERATE")]) == Availability.MODIFIED

    def test_enum_values(self):
        assert [a.value for a in Availability] == ["Healthy", "Modified", "Out"]


class TestInjuryKPIs:
    def _squad(self):
        return [
            make_injury("A", severity="Severe"),
            make_injury("B", severity="Moderate", rtp_stage="modified"),
            make_injury("C", severity="Severe", status="Closed"),
            make_injury("D", is_concussion=True, concussion_stage="Stage 2"),
        ]

    def test_counts(self):
        kpis = injury_kpis(self._squad(), ["A", "B", "C", "D", "E"])
        assert kpis.open_injuries == 3
        assert kpis.by_severity == {"Minor": 0, "Moderate": 1, "Severe": 1, "Unknown": 1}
        assert kpis.concussions == 1
        assert kpis.concussion_stages == {"Stage 2": 1}
        assert kpis.rtp_pipeline["modified"] == 1
        assert kpis.rtp_pipeline["offfield"] == 0

    def test_availability_totals(self):
        kpis = injury_kpis(self._squad(), ["A", "B", "C", "D", "E"])
        assert kpis.availability == {"Healthy": 2, "Modified": 1, "Out": 2}

    def test_lowercase_severity_counted(self):
        kpis = injury_kpis([make_injury("A1", severity="severe")], ["A1"])
        assert kpis.by_severity["Severe"] == 1
        assert kpis.availability["Out"] == 1

    def test_unrecognised_severity_is_unknown(self):
        injury = make_injury("A1", severity="Minor")
        injury.severity = "Critical"
        kpis = injury_kpis([injury], ["A1"])
        assert kpis.by_severity["Unknown"] == 1

    def test_empty(self):
        kpis = injury_kpis([])
        assert kpis.open_injuries == 0
        assert kpis.availability == {"Healthy": 0, "Modified": 0, "Out": 0}


class TestAvailabilityByAthlete:
    def test_includes_uninjured(self):
        states = availability_by_athlete([make_injury("A", rtp_stage="offfield")], ["A", "B"])
        assert states == {"A": Availability.OUT, "B": Availability.HEALTHY}

    def test_injuries_without_athlete_skipped(self):
        assert availability_by_athlete([make_injury(None, severity="Severe")]) == {}
