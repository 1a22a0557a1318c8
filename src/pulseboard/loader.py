"""Load exported API rows from disk for offline analysis."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, TypeVar

from pulseboard.records import (
    AthleteNote,
    DailyBiometricRecord,
    GeneticMarker,
    InjuryRecord,
    RecordError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def read_rows(path: str | Path) -> list[dict[str, Any]]:
    """Read rows from a JSON array, a paginated ``{"items": [...]}`` object,
    or a JSONL file (one object per line).

    Raises:
        FileNotFoundError: *path* does not exist.
        json.JSONDecodeError: the file is neither JSON nor JSONL.
        ValueError: the JSON document is not a list of objects.
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return []

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        data = None

    if data is None:
        rows = []
        for line_num, line in enumerate(text.splitlines(), 1):
            line = line.strip()
            if not line:
                continue
            try:
                rows.append(json.loads(line))
            except json.JSONDecodeError:
                logger.warning("%s line %d: invalid JSON, skipping", path.name, line_num)
        if not rows:
            raise json.JSONDecodeError("no JSON rows found", text, 0)
        data = rows

    if isinstance(data, dict):
        # A lone object is a one-row JSONL file
        data = data["items"] if "items" in data else [data]
    if not isinstance(data, list):
        raise ValueError(f"{path.name}: expected a list of rows")

    rows = [row for row in data if isinstance(row, dict)]
    if len(rows) != len(data):
        logger.warning("%s: skipped %d non-object row(s)", path.name, len(data) - len(rows))
    logger.debug("Read %d row(s) from %s", len(rows), path)
    return rows


def parse_rows(
    rows: list[dict[str, Any]],
    factory: Callable[[dict[str, Any]], T],
    strict: bool = False,
) -> list[T]:
    """Normalise rows with *factory*, skipping malformed ones unless *strict*."""
    out: list[T] = []
    for idx, row in enumerate(rows):
        try:
            out.append(factory(row))
        except RecordError as exc:
            if strict:
                raise
            logger.warning("Row %d skipped: %s", idx, exc)
    return out


def load_biometrics(path: str | Path, strict: bool = False) -> list[DailyBiometricRecord]:
    return parse_rows(read_rows(path), DailyBiometricRecord.from_row, strict)


def load_injuries(path: str | Path, strict: bool = False) -> list[InjuryRecord]:
    return parse_rows(read_rows(path), InjuryRecord.from_row, strict)


def load_notes(path: str | Path, strict: bool = False) -> list[AthleteNote]:
    return parse_rows(read_rows(path), AthleteNote.from_row, strict)


def load_genetics(path: str | Path, strict: bool = False) -> list[GeneticMarker]:
    return parse_rows(read_rows(path), GeneticMarker.from_row, strict)
