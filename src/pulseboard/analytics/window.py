"""Rolling window statistics over daily biometric records.

This is the shared foundation for all analytics modules.  It provides:
  - Date ordering and trailing-window slicing (7-day, 30-day)
  - Mean / population standard deviation over present field values
  - Clock-time helpers for sleep onset and wake times

Absence of data is expressed as 0 or an empty list, never as an exception.
Callers comparing today against a baseline gate on ``baseline > 0``.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from pulseboard.records import DailyBiometricRecord

MINUTES_PER_DAY = 1440


# ---------------------------------------------------------------------------
# Numeric helpers
# ---------------------------------------------------------------------------


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean, 0.0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    return float(np.mean(np.asarray(values, dtype=np.float64)))


def pstdev(values: Sequence[float]) -> float:
    """Population standard deviation (ddof=0), 0.0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    return float(np.std(np.asarray(values, dtype=np.float64), ddof=0))


# ---------------------------------------------------------------------------
# Windowing
# ---------------------------------------------------------------------------


def sort_by_date(records: Sequence[DailyBiometricRecord]) -> list[DailyBiometricRecord]:
    return sorted(records, key=lambda r: r.date)


def trailing(
    records: Sequence[DailyBiometricRecord],
    days: int | None = None,
    exclude_latest: bool = False,
) -> list[DailyBiometricRecord]:
    """The last *days* records in date order.

    Args:
        records: Records for one athlete, in any order.
        days: Window length in records; None keeps everything.
        exclude_latest: Drop the most recent record first, giving the
            baseline to compare the latest day against.

    Returns:
        Up to *days* records.  Shorter input is returned whole.
    """
    ordered = sort_by_date(records)
    if exclude_latest:
        ordered = ordered[:-1]
    if days is not None:
        ordered = ordered[-days:] if days > 0 else []
    return ordered


def field_values(records: Sequence[DailyBiometricRecord], name: str) -> list[float]:
    """Present (non-None) values of *name*, in record order."""
    values = []
    for rec in records:
        raw = getattr(rec, name)
        if raw is not None:
            values.append(float(raw))
    return values


def window_mean(
    records: Sequence[DailyBiometricRecord],
    name: str,
    days: int | None = None,
    exclude_latest: bool = False,
) -> float:
    """Mean of *name* over the trailing window (0.0 when no values)."""
    return mean(field_values(trailing(records, days, exclude_latest), name))


def window_std(
    records: Sequence[DailyBiometricRecord],
    name: str,
    days: int | None = None,
    exclude_latest: bool = False,
) -> float:
    """Population std of *name* over the trailing window (0.0 when no values)."""
    return pstdev(field_values(trailing(records, days, exclude_latest), name))


# ---------------------------------------------------------------------------
# Clock times
# ---------------------------------------------------------------------------


def clock_minutes(hhmm: str | None) -> int | None:
    """Minute-of-day for an "HH:MM" string, or None if absent/malformed."""
    if not hhmm:
        return None
    parts = hhmm.strip().split(":")
    if len(parts) < 2:
        return None
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        return None
    return hours * 60 + minutes


def night_minutes(hhmm: str | None) -> int | None:
    """Like :func:`clock_minutes` but times before noon count as next day.

    Keeps 23:30 and 00:30 onsets 60 minutes apart instead of 1380.
    """
    minutes = clock_minutes(hhmm)
    if minutes is None:
        return None
    if minutes < MINUTES_PER_DAY // 2:
        minutes += MINUTES_PER_DAY
    return minutes
