"""Tests for pulseboard.cli -- click commands."""

import json

from click.testing import CliRunner

from pulseboard.cli import main
from tests.conftest import write_json


def _bio_rows(athlete_id: str, n: int = 8, hrv_last: float = 60.0) -> list[dict]:
    rows = []
    for i in range(n):
        rows.append({
            "athlete_id": athlete_id,
            "date": f"2024-03-{i + 1:02d}",
            "resting_hr": 55,
            "hrv_night": hrv_last if i == n - 1 else 60,
            "sleep_duration_h": 8,
            "deep_sleep_pct": 22,
            "training_load_pct": 50,
            "sleep_onset_time": "22:30",
            "wake_time": "06:30",
        })
    return rows


class TestAnalyze:
    def test_prints_summary(self, tmp_path):
        bio = write_json(tmp_path / "bio.json", _bio_rows("A1"))
        result = CliRunner().invoke(main, ["analyze", str(bio)])
        assert result.exit_code == 0, result.output
        assert "Athlete A1" in result.output
        assert "Readiness" in result.output
        assert "Availability: Healthy" in result.output

    def test_writes_json(self, tmp_path):
        bio = write_json(tmp_path / "bio.json", _bio_rows("A1"))
        inj = write_json(tmp_path / "inj.json", {"items": [{"athleteId": "A1", "severity": "Severe"}]})
        out = tmp_path / "summary.json"
        result = CliRunner().invoke(
            main, ["analyze", str(bio), "--injuries", str(inj), "--output", str(out)],
        )
        assert result.exit_code == 0, result.output
        data = json.loads(out.read_text())
        assert data["athlete_id"] == "A1"
        assert data["availability"] == "Out"
        assert data["risk_score"] == 40

    def test_multiple_athletes_filtered(self, tmp_path):
        bio = write_json(tmp_path / "bio.json", _bio_rows("A1") + _bio_rows("B2"))
        out = tmp_path / "summary.json"
        result = CliRunner().invoke(
            main, ["analyze", str(bio), "--athlete", "B2", "--window", "7", "-o", str(out)],
        )
        assert result.exit_code == 0, result.output
        data = json.loads(out.read_text())
        assert data["athlete_id"] == "B2"
        assert data["days"] == 7

    def test_unknown_athlete(self, tmp_path):
        bio = write_json(tmp_path / "bio.json", _bio_rows("A1"))
        result = CliRunner().invoke(main, ["analyze", str(bio), "--athlete", "ZZ"])
        assert result.exit_code != 0
        assert "No rows for athlete" in result.output

    def test_bad_input(self, tmp_path):
        bio = tmp_path / "bio.json"
        bio.write_text("definitely not json")
        result = CliRunner().invoke(main, ["analyze", str(bio)])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_strict_rejects_malformed_rows(self, tmp_path):
        bio = write_json(tmp_path / "bio.json", _bio_rows("A1") + [{"athlete_id": "A1"}])
        assert CliRunner().invoke(main, ["analyze", str(bio)]).exit_code == 0
        result = CliRunner().invoke(main, ["analyze", str(bio), "--strict"])
        assert result.exit_code == 1


class TestRisk:
    def test_ranking(self, tmp_path):
        bio = write_json(tmp_path / "bio.json", _bio_rows("A1") + _bio_rows("B2", hrv_last=40.0))
        inj = write_json(tmp_path / "inj.json", [{"athleteId": "A1", "rTPStage": "offfield"}])
        result = CliRunner().invoke(main, ["risk", str(bio), "--injuries", str(inj)])
        assert result.exit_code == 0, result.output
        lines = [l for l in result.output.splitlines() if l.strip().startswith(("1.", "2."))]
        assert "A1" in lines[0]
        assert "B2" in lines[1]
        assert "HRV drop" in lines[1]

    def test_nobody_at_risk(self, tmp_path):
        bio = write_json(tmp_path / "bio.json", _bio_rows("A1"))
        result = CliRunner().invoke(main, ["risk", str(bio)])
        assert result.exit_code == 0
        assert "No athletes at risk." in result.output


class TestAvailability:
    def test_states(self, tmp_path):
        inj = write_json(tmp_path / "inj.json", [
            {"athleteId": "A1", "hIAFlag": True},
            {"athleteId": "B2", "severity": "Moderate"},
            {"athleteId": "C3", "severity": "Severe", "status": "Closed"},
        ])
        result = CliRunner().invoke(main, ["availability", str(inj)])
        assert result.exit_code == 0, result.output
        assert "Out" in result.output
        assert "Modified" in result.output
        assert "Healthy: 1, Modified: 1, Out: 1" in result.output

    def test_verbose_flag(self, tmp_path):
        inj = write_json(tmp_path / "inj.json", [])
        result = CliRunner().invoke(main, ["--verbose", "availability", str(inj)])
        assert result.exit_code == 0
