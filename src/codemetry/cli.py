"""CLI for codemetry."""

from __future__ import annotations

import logging
from datetime import datetime

import click

DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S"]


@click.group()
def main() -> None:
    """codemetry: per-day mood proxy for git repositories."""


def _render_table(result) -> None:
    click.echo(f"\n{'=' * 72}")
    click.echo(f"  {'Day':<12}{'Score':>6}  {'Mood':<8}{'Conf':>6}  Top reason / confounders")
    click.echo(f"{'=' * 72}")
    for mood in result.windows:
        top = mood.reasons[0].summary if mood.reasons else "-"
        extra = f" [{', '.join(mood.confounders)}]" if mood.confounders else ""
        click.echo(
            f"  {mood.window_label:<12}{mood.mood_score:>6}  "
            f"{mood.mood_label.value:<8}{mood.confidence:>6.2f}  {top}{extra}"
        )
        if mood.ai_summary is not None:
            for bullet in mood.ai_summary.explanation_bullets:
                click.echo(f"{'':>36}- {bullet}")
    click.echo(f"{'=' * 72}")


@main.command("analyze")
@click.argument("path", type=click.Path(exists=True, file_okay=False), default=".")
@click.option("--since", type=click.DateTime(DATE_FORMATS), default=None, help="Start of range (inclusive).")
@click.option("--until", type=click.DateTime(DATE_FORMATS), default=None, help="End of range (exclusive).")
@click.option("--days", "-d", type=int, default=None, help="Days to look back when --since is omitted (default 7).")
@click.option("--author", default=None, help="Only count commits by this author.")
@click.option("--branch", default=None, help="Branch or revision to read.")
@click.option("--tz", "tz_name", default="UTC", help="IANA timezone for day boundaries.")
@click.option("--baseline-days", default=56, help="Trailing days used for the baseline.")
@click.option("--horizon", type=int, default=None, help="Follow-up horizon in days.")
@click.option("--ai/--no-ai", "ai_enabled", default=False, help="Enable AI explanations.")
@click.option("--ai-engine", default=None, help="AI engine id (see `codemetry engines`).")
@click.option("--batch-size", type=click.IntRange(min=1), default=None, help="Windows per AI request.")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False), default=None,
              help="YAML config file.")
@click.option("--format", "output_format", type=click.Choice(["json", "table"]), default="json",
              help="Output format.")
@click.option("--output", "-o", default=None, help="Write the JSON document to a file.")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging.")
def analyze_cmd(
    path: str,
    since: datetime | None,
    until: datetime | None,
    days: int | None,
    author: str | None,
    branch: str | None,
    tz_name: str,
    baseline_days: int,
    horizon: int | None,
    ai_enabled: bool,
    ai_engine: str | None,
    batch_size: int | None,
    config_path: str | None,
    output_format: str,
    output: str | None,
    verbose: bool,
) -> None:
    """Compute the mood proxy for each day in a repository."""
    from zoneinfo import ZoneInfoNotFoundError

    from codemetry.analytics.summary import AnalysisRequest
    from codemetry.analyzer import Analyzer
    from codemetry.config import load_config
    from codemetry.errors import CodemetryError
    from codemetry.windows import resolve_timezone

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        resolve_timezone(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        raise click.BadParameter(f"unknown timezone {tz_name!r}", param_hint="--tz")

    try:
        config = load_config(config_path, engine=ai_engine).with_overrides(batch_size=batch_size)
        request = AnalysisRequest(
            since=since,
            until=until,
            days=days,
            author=author,
            branch=branch,
            timezone=tz_name,
            baseline_days=baseline_days,
            follow_up_horizon_days=horizon,
            ai_enabled=ai_enabled,
            ai_engine=ai_engine,
            output_format=output_format,
        )
        analyzer = Analyzer()
        result = analyzer.analyze(path, request, config)
    except CodemetryError as exc:
        raise click.ClickException(str(exc)) from exc

    if analyzer.last_ai_error:
        click.echo(f"AI unavailable: {analyzer.last_ai_error}", err=True)

    if output_format == "table":
        _render_table(result)
    else:
        click.echo(result.to_json())

    if output:
        with open(output, "w") as f:
            f.write(result.to_json())
        click.echo(f"\nResult written to {output}", err=True)


@main.command("engines")
def engines_cmd() -> None:
    """List supported AI engines."""
    from codemetry.ai.engines import ENGINES

    for name, engine_cls in ENGINES.items():
        click.echo(f"  {name:<10} default model: {engine_cls.default_model}")


if __name__ == "__main__":
    main()
