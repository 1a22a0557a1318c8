"""CLI for the pulseboard athlete analytics engine."""

from __future__ import annotations

import json
import logging
from typing import Callable, TypeVar

import click

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _load(loader: Callable[..., list[T]], path: str | None, strict: bool = False) -> list[T]:
    """Run a loader, turning input errors into a clean CLI failure."""
    if path is None:
        return []
    from pulseboard.records import RecordError

    try:
        return loader(path, strict=strict)
    except (RecordError, ValueError, OSError) as exc:
        # json.JSONDecodeError is a ValueError
        raise click.ClickException(f"{path}: {exc}") from exc


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def main(verbose: bool) -> None:
    """pulseboard: derived metrics for athlete monitoring."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


@main.command("analyze")
@click.argument("biometrics", type=click.Path(exists=True))
@click.option("--injuries", "-i", type=click.Path(exists=True), default=None, help="Injury rows (JSON/JSONL).")
@click.option("--notes", "-n", type=click.Path(exists=True), default=None, help="Staff note rows (JSON/JSONL).")
@click.option("--genetics", "-g", type=click.Path(exists=True), default=None, help="Genetic marker rows.")
@click.option("--athlete", "-a", default=None, help="Only analyze this athlete id.")
@click.option("--age", default=None, type=float, help="Athlete age (default from settings).")
@click.option("--window", "window_days", type=click.Choice(["7", "30"]), default="30",
              help="Analysis window in days.")
@click.option("--strict", is_flag=True, help="Fail on malformed rows instead of skipping them.")
@click.option("--output", "-o", default=None, help="Write summary JSON to file.")
def analyze_cmd(
    biometrics: str,
    injuries: str | None,
    notes: str | None,
    genetics: str | None,
    athlete: str | None,
    age: float | None,
    window_days: str,
    strict: bool,
    output: str | None,
) -> None:
    """Derive stress, readiness, circadian and risk metrics per athlete."""
    from pulseboard.analytics.pipeline import run_pipeline
    from pulseboard.loader import load_biometrics, load_genetics, load_injuries, load_notes

    bio = _load(load_biometrics, biometrics, strict)
    inj = _load(load_injuries, injuries, strict)
    nts = _load(load_notes, notes, strict)
    gen = _load(load_genetics, genetics, strict)
    logger.debug(
        "Loaded %d biometric, %d injury, %d note, %d genetic row(s)",
        len(bio), len(inj), len(nts), len(gen),
    )

    if athlete is not None:
        bio = [r for r in bio if r.athlete_id == athlete]
        inj = [r for r in inj if r.athlete_id == athlete]
        nts = [r for r in nts if r.athlete_id == athlete]
        gen = [r for r in gen if r.athlete_id in (athlete, None)]
        if not bio and not inj:
            raise click.ClickException(f"No rows for athlete {athlete!r}")

    athlete_ids = list(dict.fromkeys(r.athlete_id for r in bio)) or [athlete]
    summaries = []
    for aid in athlete_ids:
        summary = run_pipeline(
            [r for r in bio if r.athlete_id == aid],
            injuries=[r for r in inj if r.athlete_id == aid],
            notes=[r for r in nts if r.athlete_id == aid],
            genetics=[r for r in gen if r.athlete_id in (aid, None)],
            age=age,
            window_days=int(window_days),
        )
        summaries.append(summary)
        _print_summary(summary)

    if output:
        payload = summaries[0].to_dict() if len(summaries) == 1 else [s.to_dict() for s in summaries]
        with open(output, "w") as f:
            json.dump(payload, f, indent=2)
        click.echo(f"\nSummary written to {output}")


def _print_summary(summary) -> None:
    delta = f" ({summary.stress_delta:+.1f})" if summary.stress_delta is not None else ""
    click.echo(f"\n{'=' * 60}")
    click.echo(f"  Athlete {summary.athlete_id or '?'}: {summary.date or 'no data'}"
               f" ({summary.days} days)")
    click.echo(f"{'=' * 60}")
    click.echo(f"  Stress:       {summary.stress.value:.1f} {summary.stress.level}{delta}")
    click.echo(f"  Readiness:    {summary.readiness.value:.0f}/100 {summary.readiness.level}")
    click.echo(f"  Circadian:    {summary.circadian.value:.0f}/100 ({summary.chronotype})")
    click.echo(f"  Risk:         {summary.risk_score}"
               + (f"  [{', '.join(summary.risk_reasons)}]" if summary.risk_reasons else ""))
    click.echo(f"  Availability: {summary.availability}")
    if summary.alert:
        click.echo(f"  Alert:        {summary.alert['title']}")
    if summary.load_trend:
        click.echo(f"  Load trend:   {summary.load_trend['trend']} ({summary.load_trend['value']:g})")
    for name in summary.disruptions:
        click.echo(f"  ! {name}")
    click.echo(f"{'=' * 60}")


@main.command("risk")
@click.argument("biometrics", type=click.Path(exists=True))
@click.option("--injuries", "-i", type=click.Path(exists=True), default=None, help="Injury rows (JSON/JSONL).")
@click.option("--notes", "-n", type=click.Path(exists=True), default=None, help="Staff note rows (JSON/JSONL).")
@click.option("--top", "top_n", default=None, type=int, help="Number of athletes to list.")
@click.option("--output", "-o", default=None, help="Write the cohort report JSON to file.")
def risk_cmd(
    biometrics: str,
    injuries: str | None,
    notes: str | None,
    top_n: int | None,
    output: str | None,
) -> None:
    """Rank a squad by injury-risk score."""
    from pulseboard.analytics.pipeline import run_cohort
    from pulseboard.loader import load_biometrics, load_injuries, load_notes

    report = run_cohort(
        _load(load_biometrics, biometrics),
        injuries=_load(load_injuries, injuries),
        notes=_load(load_notes, notes),
        top_n=top_n,
    )

    if not report.ranking:
        click.echo("No athletes at risk.")
    else:
        click.echo(f"Top {len(report.ranking)} at-risk athlete(s):")
        for rank, entry in enumerate(report.ranking, 1):
            click.echo(f"  {rank}. {entry.athlete_id:<12} {entry.score:>4}  "
                       f"{', '.join(entry.reasons)}")

    if output:
        with open(output, "w") as f:
            json.dump(report.to_dict(), f, indent=2)
        click.echo(f"\nReport written to {output}")


@main.command("availability")
@click.argument("injuries", type=click.Path(exists=True))
def availability_cmd(injuries: str) -> None:
    """Show availability per athlete from their open injuries."""
    from pulseboard.analytics.availability import availability_by_athlete, injury_kpis
    from pulseboard.loader import load_injuries

    rows = _load(load_injuries, injuries)
    states = availability_by_athlete(rows)
    for athlete_id in sorted(states):
        click.echo(f"  {athlete_id:<12} {states[athlete_id].value}")

    kpis = injury_kpis(rows)
    totals = ", ".join(f"{k}: {v}" for k, v in kpis.availability.items())
    click.echo(f"\nOpen injuries: {kpis.open_injuries}  Concussions: {kpis.concussions}")
    click.echo(f"Availability: {totals}")


if __name__ == "__main__":
    main()
