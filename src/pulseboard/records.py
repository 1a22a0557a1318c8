"""Row types consumed by the analytics engine.

The API layer hands us plain JSON rows.  Each ``from_row`` constructor
normalises one row into a typed record: numeric strings are coerced, empty
values become ``None`` and the handful of key spellings the API has used over
time (camelCase, PascalCase) are accepted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Iterable, Mapping


class RecordError(ValueError):
    """A row could not be normalised into a record."""


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------


def _pick(row: Mapping[str, Any], *keys: str) -> Any:
    """Return the first non-None value among *keys*."""
    for key in keys:
        value = row.get(key)
        if value is not None:
            return value
    return None


def _to_float(value: Any, name: str) -> float | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise RecordError(f"{name}: expected a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise RecordError(f"{name}: expected a number, got {value!r}") from exc


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "y")
    return bool(value)


def _to_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_date(value: Any) -> date | None:
    """Parse a calendar day from a date, datetime or ISO string."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError as exc:
        raise RecordError(f"invalid date {value!r}") from exc


def parse_datetime(value: Any) -> datetime | None:
    """Parse an ISO timestamp into an aware UTC datetime.

    Naive timestamps are assumed to be UTC.  A bare date maps to midnight.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError as exc:
            raise RecordError(f"invalid timestamp {value!r}") from exc
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


# ---------------------------------------------------------------------------
# Daily biometrics
# ---------------------------------------------------------------------------

BIOMETRIC_FIELDS = (
    "resting_hr",
    "hrv_night",
    "sleep_duration_h",
    "deep_sleep_pct",
    "rem_sleep_pct",
    "light_sleep_pct",
    "spo2_night",
    "resp_rate_night",
    "temp_trend_c",
    "training_load_pct",
)


@dataclass
class DailyBiometricRecord:
    """One calendar day of wearable-derived signals for one athlete."""

    date: date
    athlete_id: str | None = None
    resting_hr: float | None = None  # bpm
    hrv_night: float | None = None  # ms
    sleep_duration_h: float | None = None
    deep_sleep_pct: float | None = None
    rem_sleep_pct: float | None = None
    light_sleep_pct: float | None = None
    spo2_night: float | None = None  # %
    resp_rate_night: float | None = None  # breaths/min
    temp_trend_c: float | None = None
    training_load_pct: float | None = None
    sleep_onset_time: str | None = None  # "HH:MM"
    wake_time: str | None = None  # "HH:MM"

    def value(self, name: str) -> float:
        """Numeric field value, reading an absent field as 0."""
        raw = getattr(self, name)
        return float(raw) if raw is not None else 0.0

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "DailyBiometricRecord":
        day = parse_date(row.get("date"))
        if day is None:
            raise RecordError("biometric row has no date")
        values = {name: _to_float(row.get(name), name) for name in BIOMETRIC_FIELDS}
        return cls(
            date=day,
            athlete_id=_to_str(_pick(row, "athlete_id", "athleteId")),
            sleep_onset_time=_to_str(row.get("sleep_onset_time")),
            wake_time=_to_str(row.get("wake_time")),
            **values,
        )


# ---------------------------------------------------------------------------
# Injuries
# ---------------------------------------------------------------------------

RTP_OFFFIELD = "offfield"
RTP_MODIFIED = "modified"
RTP_NON_CONTACT = "non-contact"
RTP_CONTACT = "contact"

_RTP_ALIASES = {
    "offfield": RTP_OFFFIELD,
    "off-field": RTP_OFFFIELD,
    "off_field": RTP_OFFFIELD,
    "modified": RTP_MODIFIED,
    "non-contact": RTP_NON_CONTACT,
    "noncontact": RTP_NON_CONTACT,
    "non_contact": RTP_NON_CONTACT,
    "contact": RTP_CONTACT,
}

SEVERITIES = ("Minor", "Moderate", "Severe")


def normalize_rtp_stage(value: Any) -> str | None:
    """Map an RTP stage spelling onto its canonical name (None if unknown)."""
    text = _to_str(value)
    if text is None:
        return None
    return _RTP_ALIASES.get(text.lower())


def normalize_severity(value: Any) -> str | None:
    text = _to_str(value)
    if text is None:
        return None
    for sev in SEVERITIES:
        if text.lower() == sev.lower():
            return sev
    return None


@dataclass
class InjuryRecord:
    """One injury episode for one athlete."""

    athlete_id: str | None
    diagnosis: str = ""
    severity: str | None = None  # Minor / Moderate / Severe
    rtp_stage: str | None = None  # offfield / modified / non-contact / contact
    is_concussion: bool = False
    hia_flag: bool = False
    concussion_stage: str | None = None
    status: str = "Open"
    date_of_injury: date | None = None
    return_date_planned: date | None = None
    return_date_actual: date | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        self.severity = normalize_severity(self.severity)
        self.rtp_stage = normalize_rtp_stage(self.rtp_stage)

    @property
    def is_open(self) -> bool:
        return self.status.strip().lower() != "closed"

    @property
    def is_head_impact(self) -> bool:
        return self.hia_flag or self.is_concussion

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "InjuryRecord":
        return cls(
            athlete_id=_to_str(_pick(row, "athleteId", "AthleteId", "athlete_id")),
            diagnosis=_to_str(_pick(row, "diagnosis", "Diagnosis")) or "",
            severity=normalize_severity(_pick(row, "severity", "Severity")),
            rtp_stage=normalize_rtp_stage(_pick(row, "rTPStage", "RTPStage", "rtp_stage")),
            is_concussion=_to_bool(_pick(row, "isConcussion", "IsConcussion", "is_concussion")),
            hia_flag=_to_bool(_pick(row, "hIAFlag", "HIAFlag", "hia_flag")),
            concussion_stage=_to_str(_pick(row, "concussionStage", "ConcussionStage")),
            status=_to_str(_pick(row, "status", "Status")) or "Open",
            date_of_injury=parse_date(_pick(row, "dateOfInjury", "DateOfInjury")),
            return_date_planned=parse_date(
                _pick(row, "returnDatePlanned", "ReturnDatePlanned")
            ),
            return_date_actual=parse_date(
                _pick(row, "returnDateActual", "ReturnDateActual")
            ),
            created_at=parse_datetime(_pick(row, "createdAt", "CreatedAt")),
            updated_at=parse_datetime(_pick(row, "updatedAt", "UpdatedAt")),
        )


# ---------------------------------------------------------------------------
# Notes and genetics
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AthleteNote:
    """Free-text staff annotation.  Notes are never edited once written."""

    athlete_id: str | None
    category: str = ""
    title: str = ""
    content: str = ""
    created_at: datetime | None = None

    @property
    def is_negative(self) -> bool:
        return self.category.strip().lower() == "negative"

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "AthleteNote":
        return cls(
            athlete_id=_to_str(_pick(row, "athleteId", "AthleteId", "athlete_id")),
            category=_to_str(_pick(row, "category", "Category")) or "",
            title=_to_str(_pick(row, "title", "Title")) or "",
            content=_to_str(_pick(row, "content", "Content")) or "",
            created_at=parse_datetime(_pick(row, "createdAt", "CreatedAt", "created_at")),
        )


@dataclass
class GeneticMarker:
    """A genotype call for one named gene."""

    gene: str
    genotype: str
    athlete_id: str | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "GeneticMarker":
        gene = _to_str(row.get("gene"))
        if gene is None:
            raise RecordError("genetic row has no gene")
        return cls(
            gene=gene,
            genotype=_to_str(row.get("genotype")) or "",
            athlete_id=_to_str(_pick(row, "athlete_id", "athleteId")),
        )


def genotype_map(markers: Iterable[GeneticMarker]) -> dict[str, str]:
    """gene -> genotype; later markers win."""
    return {m.gene: m.genotype for m in markers}


# ---------------------------------------------------------------------------
# Derived output
# ---------------------------------------------------------------------------


@dataclass
class DerivedScore:
    """A freshly computed score.  Never stored; rebuilt on every call."""

    value: float
    level: str
    factors: list[str] = field(default_factory=list)

    def __repr__(self) -> str:
        return f"DerivedScore({self.value:.1f}, {self.level})"
