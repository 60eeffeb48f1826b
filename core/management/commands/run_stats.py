"""Print per-tier statistics for a player's stored runs."""

from __future__ import annotations

from datetime import date

from django.core.management.base import BaseCommand, CommandError

from analysis.aggregations import calculate_tier_stats, filter_runs_by_date, filter_runs_by_type
from analysis.duplicates import analyze_key_collisions
from analysis.durations import format_duration
from analysis.dto import RunType
from analysis.field_registry import field_label
from analysis.sources import (
    COIN_SOURCES,
    extract_source_values,
    has_source_data,
    non_zero_sources,
    sort_by_percentage,
)
from analysis.trends import TrendsAggregation, TrendsDuration, calculate_field_trend, group_runs_by_period
from core.services import coin_discrepancy, display_context, load_runs
from gamedata.models import Player

_DEFAULT_FIELDS = ("coinsEarned", "cellsEarned", "wave")


def _parse_date(value: str | None, option: str) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise CommandError(f"{option} must be YYYY-MM-DD, got {value!r}.") from exc


class Command(BaseCommand):
    """Summarize stored runs by tier: max values, hourly rates and percentiles."""

    help = "Show per-tier max/hourly/percentile stats for a player's runs."

    def add_arguments(self, parser) -> None:
        """Add command arguments."""

        parser.add_argument("--player", default="default", help="Player name (default: default).")
        parser.add_argument(
            "--field",
            action="append",
            dest="fields",
            default=None,
            help="camelCase field to summarize; repeatable (default: coinsEarned, cellsEarned, wave).",
        )
        parser.add_argument("--type", dest="run_type", choices=[choice.value for choice in RunType])
        parser.add_argument("--since", default=None, help="Earliest run date (YYYY-MM-DD).")
        parser.add_argument("--until", default=None, help="Latest run date (YYYY-MM-DD).")
        parser.add_argument("--locale", default=None, help="Display locale, e.g. de-DE.")
        parser.add_argument(
            "--diagnostics",
            action="store_true",
            help="Also report composite-key collisions and coin breakdown discrepancies.",
        )
        parser.add_argument(
            "--trend",
            action="append",
            dest="trend_fields",
            default=None,
            help="camelCase field to follow across periods; repeatable.",
        )
        parser.add_argument(
            "--period",
            default=TrendsDuration.daily.value,
            choices=[choice.value for choice in TrendsDuration],
            help="Period size for --trend (default: daily).",
        )
        parser.add_argument("--periods", type=int, default=7, help="Number of periods for --trend (default: 7).")
        parser.add_argument(
            "--aggregation",
            default=TrendsAggregation.average.value,
            choices=[choice.value for choice in TrendsAggregation],
            help="Per-period reduction for --trend (default: average).",
        )
        parser.add_argument(
            "--sources",
            action="store_true",
            help="Show the coin source breakdown of each run.",
        )

    def handle(self, *args, **options) -> str | None:
        """Run the command."""

        player = Player.objects.filter(name=options["player"]).first()
        if player is None:
            raise CommandError(f"Unknown player: {options['player']!r}")

        runs = load_runs(player)
        runs = filter_runs_by_date(
            runs,
            start_date=_parse_date(options["since"], "--since"),
            end_date=_parse_date(options["until"], "--until"),
        )
        runs = filter_runs_by_type(runs, RunType(options["run_type"]) if options["run_type"] else None)

        context = display_context(options["locale"])
        field_names = tuple(options["fields"] or _DEFAULT_FIELDS)

        self.stdout.write(f"[STATS] player={player.name} runs={len(runs)} locale={context.locale}")
        for tier_stats in calculate_tier_stats(runs, field_names):
            self.stdout.write(f"Tier {tier_stats.tier} ({tier_stats.run_count} runs)")
            for field_name, stats in tier_stats.fields.items():
                hourly = (
                    f"{context.format_large_number(stats.hourly_rate)}/h"
                    if stats.hourly_rate is not None
                    else "-"
                )
                percentiles = stats.percentiles
                self.stdout.write(
                    f"  {field_label(field_name)}: max {context.format_large_number(stats.max_value)} "
                    f"in {format_duration(stats.max_value_run.real_time)} ({hourly}); "
                    f"P50 {context.format_large_number(percentiles.p50)} "
                    f"P75 {context.format_large_number(percentiles.p75)} "
                    f"P90 {context.format_large_number(percentiles.p90)} "
                    f"P99 {context.format_large_number(percentiles.p99)}"
                )

        if options["trend_fields"]:
            self._trends(runs, context, options)
        if options["sources"]:
            self._sources(runs, context)
        if options["diagnostics"]:
            self._diagnostics(runs, context)
        return None

    def _trends(self, runs, context, options) -> None:
        if options["periods"] < 1:
            raise CommandError("--periods must be at least 1.")
        periods = group_runs_by_period(runs, options["period"], options["periods"])
        labels = " | ".join(period.label for period in reversed(periods))
        self.stdout.write(f"Trends ({options['period']}, {options['aggregation']}): {labels}")
        for field_name in options["trend_fields"]:
            trend = calculate_field_trend(periods, field_name, aggregation=options["aggregation"])
            values = " | ".join(context.format_large_number(value) for value in trend.values)
            self.stdout.write(
                f"  {field_label(field_name, trend.display_name)}: {values}; "
                f"{trend.direction.value} {context.format_number(trend.percent_change, 1)}% "
                f"({trend.trend_type.value}, {trend.significance.value})"
            )

    def _sources(self, runs, context) -> None:
        for run in runs:
            if not has_source_data(run, COIN_SOURCES):
                continue
            sources = sort_by_percentage(non_zero_sources(extract_source_values(run, COIN_SOURCES)))
            shares = ", ".join(
                f"{source.label} {context.format_number(source.percentage, 2)}%" for source in sources
            )
            self.stdout.write(f"  {context.format_battle_date(run.timestamp)} tier {run.tier}: {shares or '-'}")

    def _diagnostics(self, runs, context) -> None:
        report = analyze_key_collisions(runs)
        self.stdout.write(
            f"Keys: {report.unique_keys} unique across {report.total_runs} runs, "
            f"{len(report.collisions)} collisions"
        )
        for collision in report.collisions:
            self.stdout.write(f"  {collision.key}: {len(collision.runs)} runs")

        for run in runs:
            discrepancy = coin_discrepancy(run)
            if discrepancy is None:
                continue
            self.stdout.write(
                f"  {context.format_battle_date(run.timestamp)} tier {run.tier}: coin sources "
                f"{discrepancy.type.value} {context.format_large_number(discrepancy.value)} "
                f"({context.format_number(discrepancy.percentage, 2)}%)"
            )
