"""Tests for pulseboard.analytics.pipeline and summary -- end-to-end scoring."""

import json
from datetime import datetime

import pytest

from pulseboard.analytics.alerts import RecoveryAlert
from pulseboard.analytics.pipeline import group_by_athlete, run_cohort, run_pipeline
from pulseboard.analytics.summary import build_athlete_summary, AthleteSummary
from pulseboard.config import Settings
from pulseboard.records import AthleteNote
from tests.conftest import AS_OF, make_history, make_injury, make_note, steady_history


class TestRunPipeline:
    def test_steady_athlete(self):
        summary = run_pipeline(steady_history(14), as_of=AS_OF)
        assert summary.athlete_id == "A1"
        assert summary.date == "2024-03-14"
        assert summary.days == 14
        assert summary.stress.level == "Low"
        assert summary.readiness.value == pytest.approx(85.0)
        assert summary.circadian.value == 100.0
        assert summary.chronotype == "Intermediate"
        assert summary.risk_score == 0
        assert summary.availability == "Healthy"
        assert summary.alert["kind"] == "green"
        assert summary.load_trend == {"trend": "stable", "value": 0.0}

    def test_window_limits_scorers(self):
        summary = run_pipeline(steady_history(40), window_days=7, as_of=AS_OF)
        assert summary.days == 7

    def test_injured_without_biometrics(self):
        summary = run_pipeline([], injuries=[make_injury(severity="Severe")], as_of=AS_OF)
        assert summary.athlete_id == "A1"
        assert summary.date is None
        assert summary.stress.level == "No data"
        assert summary.readiness.value == 50.0
        assert summary.availability == "Out"
        assert summary.risk_score == 40
        assert summary.alert["kind"] == "no_data"

    def test_flags_and_notes_feed_risk(self):
        records = steady_history(8, hrv_night=[60.0] * 7 + [45.0])
        notes = [make_note("Negative", hours_ago=2), make_note("Negative", hours_ago=100)]
        summary = run_pipeline(records, notes=notes, as_of=AS_OF)
        assert summary.flags["hrv_drop"]
        assert summary.risk_score == 15 + 10
        assert "HRV drop" in summary.risk_reasons

    def test_settings_override(self):
        settings = Settings(sleep_min_hours=9.0)
        summary = run_pipeline(steady_history(8), as_of=AS_OF, settings=settings)
        assert summary.flags["low_sleep"]
        assert summary.risk_score == 10

    def test_stateless(self):
        first = run_pipeline(steady_history(14), as_of=AS_OF)
        run_pipeline([], injuries=[make_injury(hia_flag=True)], as_of=AS_OF)
        again = run_pipeline(steady_history(14), as_of=AS_OF)
        assert first.to_dict() == again.to_dict()

    def test_json_round_trip(self):
        summary = run_pipeline(steady_history(14), as_of=AS_OF)
        data = json.loads(summary.to_json())
        assert data["readiness"]["level"] == "Ready"
        assert data["stress"]["factors"] == ["RHR 55 bpm", "HRV 60 ms"]

    def test_athlete_id_from_notes(self):
        summary = run_pipeline([], notes=[make_note(athlete_id="N1")], as_of=AS_OF)
        assert summary.athlete_id == "N1"
        assert summary.risk_score == 10

    def test_naive_timestamps(self):
        note = AthleteNote("A1", category="Negative", created_at=datetime(2024, 3, 14, 9))
        summary = run_pipeline(
            steady_history(8), notes=[note], as_of=datetime(2024, 3, 14, 12),
        )
        assert summary.risk_score == 10


class TestRunCohort:
    def test_ranking_and_kpis(self):
        biometrics = steady_history(8, "A") + steady_history(8, "B")
        injuries = [make_injury("A", severity="Severe")]
        notes = [make_note(athlete_id="B"), make_note(athlete_id="B", hours_ago=3)]
        report = run_cohort(biometrics, injuries, notes, as_of=AS_OF)

        assert set(report.summaries) == {"A", "B"}
        assert [(e.athlete_id, e.score) for e in report.ranking] == [("A", 40), ("B", 20)]
        assert report.kpis.availability == {"Healthy": 1, "Modified": 0, "Out": 1}
        assert report.summaries["B"].risk_score == 20

    def test_notes_only_athlete_keeps_id(self):
        notes = [make_note(athlete_id="B")]
        report = run_cohort(steady_history(8, "A"), [], notes, as_of=AS_OF)
        assert report.summaries["B"].athlete_id == "B"
        assert report.summaries["A"].athlete_id == "A"

    def test_top_n_from_settings(self):
        biometrics = steady_history(8, "A")
        injuries = [make_injury(aid, severity="Minor") for aid in ("A", "B", "C")]
        report = run_cohort(biometrics, injuries, settings=Settings(top_n=2))
        assert len(report.ranking) == 2

    def test_to_dict(self):
        report = run_cohort(steady_history(8, "A"), [make_injury("A", hia_flag=True)])
        data = report.to_dict()
        assert data["ranking"][0]["reasons"] == ["HIA/Concussion"]
        assert data["kpis"]["availability"]["Out"] == 1
        json.dumps(data)


class TestGroupByAthlete:
    def test_rows_without_id_dropped(self):
        records = make_history(2, athlete_id="A") + make_history(1, athlete_id=None)
        grouped = group_by_athlete(records)
        assert list(grouped) == ["A"]
        assert len(grouped["A"]) == 2


class TestBuildAthleteSummary:
    def test_defaults(self):
        summary = build_athlete_summary("A1", None)
        assert isinstance(summary, AthleteSummary)
        assert summary.stress.level == "No data"
        assert summary.flags == {}
        assert summary.recommendations == []

    def test_alert_recommendation_first(self):
        alert = RecoveryAlert("airway", "Airway", "SpO2 low", "Check air quality.")
        summary = build_athlete_summary("A1", "2024-03-01", alert=alert)
        assert summary.recommendations[0] == "Check air quality."

    def test_green_alert_adds_nothing(self):
        alert = RecoveryAlert("green", "Optimal", "fine", "Maintain.")
        summary = build_athlete_summary("A1", "2024-03-01", alert=alert)
        assert summary.recommendations == []
