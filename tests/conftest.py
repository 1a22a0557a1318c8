"""Shared fixtures and helpers for the pulseboard test suite."""

from __future__ import annotations

import json
import os
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest

from pulseboard.config import reset_settings
from pulseboard.records import AthleteNote, DailyBiometricRecord, InjuryRecord


START = date(2024, 3, 1)
AS_OF = datetime(2024, 3, 20, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Record-building helpers
# ---------------------------------------------------------------------------


def make_record(day: int | date = 0, athlete_id: str | None = "A1", **fields) -> DailyBiometricRecord:
    """Build a daily record *day* days after START (or on a given date)."""
    when = day if isinstance(day, date) else START + timedelta(days=day)
    return DailyBiometricRecord(date=when, athlete_id=athlete_id, **fields)


def make_history(n: int, athlete_id: str | None = "A1", **fields) -> list[DailyBiometricRecord]:
    """Build *n* consecutive days.

    Each keyword is either a constant applied to every day or a list with
    one value per day, e.g. ``make_history(3, hrv_night=[50, 52, 40])``.
    """
    records = []
    for i in range(n):
        values = {
            name: (value[i] if isinstance(value, (list, tuple)) else value)
            for name, value in fields.items()
        }
        records.append(make_record(i, athlete_id, **values))
    return records


def steady_history(n: int = 8, athlete_id: str | None = "A1", **overrides) -> list[DailyBiometricRecord]:
    """A calm, healthy baseline athlete."""
    fields = dict(
        resting_hr=55.0,
        hrv_night=60.0,
        sleep_duration_h=8.0,
        deep_sleep_pct=22.0,
        rem_sleep_pct=22.0,
        spo2_night=97.0,
        resp_rate_night=14.0,
        temp_trend_c=36.5,
        training_load_pct=50.0,
        sleep_onset_time="22:30",
        wake_time="06:30",
    )
    fields.update(overrides)
    return make_history(n, athlete_id, **fields)


def make_injury(athlete_id: str | None = "A1", **fields) -> InjuryRecord:
    return InjuryRecord(athlete_id=athlete_id, **fields)


def make_note(
    category: str = "Negative",
    hours_ago: float = 1.0,
    athlete_id: str | None = "A1",
    as_of: datetime = AS_OF,
) -> AthleteNote:
    return AthleteNote(
        athlete_id=athlete_id,
        category=category,
        title="note",
        content="",
        created_at=as_of - timedelta(hours=hours_ago),
    )


# ---------------------------------------------------------------------------
# File helpers
# ---------------------------------------------------------------------------


def write_json(path: Path, data) -> Path:
    path.write_text(json.dumps(data))
    return path


def write_jsonl(path: Path, entries: list[dict]) -> Path:
    """Write a list of dicts as JSONL to the given path."""
    with open(path, "w") as f:
        for entry in entries:
            f.write(json.dumps(entry) + "\n")
    return path


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    """Isolate every test from PULSEBOARD_* variables and cached settings."""
    for key in list(os.environ):
        if key.startswith("PULSEBOARD_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(Path(__file__).parent)
    reset_settings()
    yield
    reset_settings()
